from __future__ import annotations

from spec_doc_converter.flattening import flatten_schema, flatten_schema_dict, merge_all_of
from spec_doc_converter.records import RECURSIVE_DESCRIPTION, rows_to_dicts
from spec_doc_converter.references import build_registry
from spec_doc_converter.schema_nodes import (
    ArrayNode,
    ObjectNode,
    ReferenceNode,
    ScalarNode,
    node_from_dict,
)


def _ref(name):
    return ReferenceNode(target=f'#/components/schemas/{name}')


def _paths(rows):
    return [row.path for row in rows]


def test_object_with_array_flattens_to_ordered_rows():
    schema = {
        'type': 'object',
        'required': ['id'],
        'properties': {
            'id': {'type': 'integer'},
            'tags': {'type': 'array', 'items': {'type': 'string'}},
        },
    }
    assert rows_to_dicts(flatten_schema_dict(schema, {})) == [
        {'path': 'id', 'type': 'integer', 'required': True, 'description': ''},
        {'path': 'tags', 'type': 'array', 'required': False, 'description': ''},
        {'path': 'tags[]', 'type': 'string', 'required': False, 'description': ''},
    ]


def test_flattening_is_deterministic():
    node = node_from_dict({'properties': {'b': {'type': 'string'}, 'a': {'$ref': '#/components/schemas/A'}}})
    registry = {'A': ObjectNode(properties={'x': ScalarNode(kind='number')})}
    first = flatten_schema(node, registry)
    second = flatten_schema(node, registry)
    assert first == second
    assert first is not second
    assert _paths(first) == ['b', 'a', 'a.x']


def test_mutual_recursion_stops_with_one_marker():
    registry = {
        'A': ObjectNode(properties={'b': _ref('B')}),
        'B': ObjectNode(properties={'a': _ref('A')}),
    }
    rows = flatten_schema(_ref('A'), registry)
    assert _paths(rows) == ['', 'b', 'b.a']
    markers = [row for row in rows if row.type.startswith('Recursive(')]
    assert len(markers) == 1
    assert markers[0].type == 'Recursive(A)'
    assert markers[0].description == RECURSIVE_DESCRIPTION
    assert markers[0].ref == '#/components/schemas/A'
    assert rows[0].ref == '#/components/schemas/A'


def test_sibling_reuse_is_not_a_cycle():
    registry = {'Leaf': ObjectNode(properties={'v': ScalarNode(kind='integer')})}
    root = ObjectNode(properties={'left': _ref('Leaf'), 'right': _ref('Leaf')})
    rows = flatten_schema(root, registry)
    assert _paths(rows) == ['left', 'left.v', 'right', 'right.v']
    assert not any(row.type.startswith('Recursive(') for row in rows)


def test_each_branch_reports_its_own_cycle():
    registry = {'Node': ObjectNode(properties={'next': _ref('Node')})}
    root = ObjectNode(properties={'first': _ref('Node'), 'second': _ref('Node')})
    rows = flatten_schema(root, registry)
    assert _paths(rows) == ['first', 'first.next', 'second', 'second.next']
    assert [row.type for row in rows if row.type.startswith('Recursive(')] == ['Recursive(Node)'] * 2


def test_self_reference_through_all_of_stops_at_the_wrapper():
    registry = build_registry({'components': {'schemas': {
        'Node': {
            'type': 'object',
            'properties': {
                'id': {'type': 'integer'},
                'child': {'description': 'Nested node', 'allOf': [{'$ref': '#/components/schemas/Node'}]},
            },
        },
    }}})
    rows = flatten_schema(_ref('Node'), registry)
    assert [(row.path, row.type) for row in rows] == [
        ('', 'object'),
        ('id', 'integer'),
        ('child', 'Recursive(Node)'),
    ]
    assert rows[-1].ref == '#/components/schemas/Node'


def test_all_of_component_closing_a_cycle_is_marked():
    registry = build_registry({'components': {'schemas': {
        'A': {'properties': {'b': {'$ref': '#/components/schemas/B'}}},
        'B': {'allOf': [{'$ref': '#/components/schemas/A'}, {'properties': {'note': {'type': 'string'}}}]},
    }}})
    rows = flatten_schema(_ref('A'), registry)
    assert [(row.path, row.type) for row in rows] == [('', 'object'), ('b', 'Recursive(A)')]


def test_alternatives_do_not_share_visited_names():
    registry = {'Pet': ObjectNode(properties={'id': ScalarNode(kind='integer')})}
    node = node_from_dict({'properties': {'v': {'oneOf': [
        {'$ref': '#/components/schemas/Pet'},
        {'type': 'array', 'items': {'$ref': '#/components/schemas/Pet'}},
    ]}}})
    rows = flatten_schema(node, registry)
    assert [(row.path, row.type) for row in rows] == [
        ('v', 'object'),
        ('v.id', 'integer'),
        ('v', 'array'),
        ('v[]', 'object'),
        ('v[].id', 'integer'),
    ]
    assert not any(row.type.startswith('Recursive(') for row in rows)


def test_all_of_later_branch_wins():
    schema = {
        'allOf': [
            {'properties': {'x': {'type': 'string'}}},
            {'properties': {'x': {'type': 'integer'}}},
        ],
    }
    rows = flatten_schema_dict(schema, {})
    assert [(row.path, row.type) for row in rows] == [('x', 'integer')]


def test_all_of_merges_referenced_components_and_required():
    registry = {'Base': ObjectNode(properties={'id': ScalarNode(kind='integer')}, required=['id'])}
    node = node_from_dict({
        'allOf': [
            {'$ref': '#/components/schemas/Base'},
            {'required': ['note'], 'properties': {'note': {'type': 'string'}}},
        ],
    })
    merged, pulled = merge_all_of(node, registry)
    assert [branch.resolved_name for branch in pulled] == ['Base']
    assert isinstance(merged, ObjectNode)
    assert list(merged.properties) == ['id', 'note']
    assert merged.required == ['id', 'note']


def test_all_of_with_only_an_array_branch_stays_an_array():
    node = node_from_dict({'allOf': [{'type': 'array', 'items': {'type': 'string'}}]})
    merged, pulled = merge_all_of(node, {})
    assert merged == ArrayNode(items=ScalarNode(kind='string'))
    assert pulled == []


def test_one_of_duplicates_collapse():
    same = {'properties': {'v': {'oneOf': [{'type': 'string'}, {'type': 'string'}]}}}
    assert [(row.path, row.type) for row in flatten_schema_dict(same, {})] == [('v', 'string')]

    mixed = {'properties': {'v': {'anyOf': [{'type': 'string'}, {'type': 'integer'}]}}}
    assert [(row.path, row.type) for row in flatten_schema_dict(mixed, {})] == [('v', 'string'), ('v', 'integer')]


def test_maps_use_key_placeholder():
    schema = {
        'type': 'object',
        'properties': {
            'labels': {'type': 'object', 'additionalProperties': {'type': 'string'}},
            'extra': {'type': 'object', 'additionalProperties': True},
        },
    }
    rows = flatten_schema_dict(schema, {})
    assert [(row.path, row.type) for row in rows] == [
        ('labels', 'object'),
        ('labels.<key>', 'string'),
        ('extra', 'object'),
        ('extra.<key>', 'any'),
    ]
    assert rows[-1].description == 'Any value allowed'


def test_root_array_gets_its_own_row():
    schema = {'type': 'array', 'items': {'type': 'object', 'properties': {'id': {'type': 'integer'}}}}
    rows = flatten_schema_dict(schema, {})
    assert [(row.path, row.type) for row in rows] == [('', 'array'), ('[]', 'object'), ('[].id', 'integer')]


def test_unresolved_reference_becomes_marker_row():
    rows = flatten_schema_dict({'properties': {'m': {'$ref': '#/components/schemas/Missing'}}}, {})
    assert len(rows) == 1
    assert rows[0].type == 'Missing'
    assert rows[0].ref == '#/components/schemas/Missing'


def test_scalar_metadata_is_carried():
    schema = {'properties': {'n': {'type': 'integer', 'enum': [1, 2], 'example': 1, 'description': 'Count'}}}
    (row,) = flatten_schema_dict(schema, {})
    assert row.enum == ['1', '2']
    assert row.example == 1
    assert row.description == 'Count'


def test_reference_site_description_is_used_when_target_has_none():
    registry = {'Pet': ObjectNode(properties={'id': ScalarNode(kind='integer')})}
    node = ObjectNode(properties={'pet': ReferenceNode(target='#/components/schemas/Pet', description='The pet')})
    rows = flatten_schema(node, registry)
    assert rows[0].description == 'The pet'
    assert rows[0].type == 'object'


def test_empty_schema_yields_no_rows():
    assert flatten_schema_dict(None, {}) == []
    assert flatten_schema_dict({'type': 'object'}, {}) == []
