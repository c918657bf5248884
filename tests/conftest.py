from __future__ import annotations

import copy
import json

import pytest

PETSTORE = {
    'openapi': '3.0.0',
    'info': {'title': 'Petstore', 'version': '1.2.0', 'description': 'Pets & owners'},
    'servers': [
        {'url': 'https://api.example.com/v1', 'description': 'Production'},
        {'url': 'https://staging.example.com'},
    ],
    'tags': [{'name': 'pets', 'description': 'Pet operations'}],
    'security': [{'apiKey': []}],
    'paths': {
        '/pets': {
            'get': {
                'operationId': 'listPets',
                'summary': 'List pets',
                'tags': ['pets'],
                'parameters': [
                    {
                        'name': 'limit',
                        'in': 'query',
                        'required': False,
                        'schema': {'type': 'integer'},
                        'description': 'Max items',
                    },
                ],
                'responses': {
                    '200': {
                        'description': 'A list of pets',
                        'headers': {
                            'X-Next': {'schema': {'type': 'string'}, 'description': 'Next page'},
                        },
                        'content': {
                            'application/json': {
                                'schema': {'type': 'array', 'items': {'$ref': '#/components/schemas/Pet'}},
                            },
                        },
                    },
                },
            },
            'post': {
                'operationId': 'createPet',
                'security': [{'apiKey': []}],
                'requestBody': {
                    'content': {
                        'application/json': {'schema': {'$ref': '#/components/schemas/NewPet'}},
                    },
                },
                'responses': {'201': {'description': 'Created'}},
            },
        },
        '/pets/{petId}': {
            'get': {
                'operationId': 'showPet',
                'parameters': [
                    {'name': 'petId', 'in': 'path', 'required': True, 'schema': {'type': 'string'}},
                ],
                'responses': {
                    '200': {
                        'description': 'A pet',
                        'content': {
                            'application/json': {'schema': {'$ref': '#/components/schemas/Pet'}},
                        },
                    },
                },
            },
        },
    },
    'components': {
        'schemas': {
            'Pet': {
                'type': 'object',
                'required': ['id', 'name'],
                'properties': {
                    'id': {'type': 'integer', 'description': 'Unique id'},
                    'name': {'type': 'string'},
                    'status': {'type': 'string', 'enum': ['available', 'sold'], 'example': 'available'},
                    'owner': {'$ref': '#/components/schemas/Owner'},
                    'tags': {'type': 'array', 'items': {'type': 'string'}},
                },
            },
            'NewPet': {
                'allOf': [
                    {'$ref': '#/components/schemas/Pet'},
                    {'properties': {'note': {'type': 'string'}}},
                ],
            },
            'Owner': {
                'type': 'object',
                'properties': {
                    'name': {'type': 'string'},
                    'pets': {'type': 'array', 'items': {'$ref': '#/components/schemas/Pet'}},
                },
            },
        },
    },
}


@pytest.fixture
def petstore_spec():
    return copy.deepcopy(PETSTORE)


@pytest.fixture
def petstore_text():
    return json.dumps(PETSTORE)
