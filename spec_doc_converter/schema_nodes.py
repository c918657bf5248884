"""Schema node variant and conversion to/from OpenAPI schema dicts.

A schema is one of ObjectNode, ArrayNode, MapNode, ScalarNode or ReferenceNode.
CompositionNode (allOf/oneOf/anyOf) only survives until flattening resolves it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

COMBINATORS = ('allOf', 'oneOf', 'anyOf')
STRUCTURAL_KEYS = ('properties', 'additionalProperties', 'items', 'required')
ANY_TYPE = 'any'


@dataclass
class ObjectNode:
    properties: Dict[str, 'SchemaNode'] = field(default_factory=dict)
    required: List[str] = field(default_factory=list)
    additional_properties: Optional['SchemaNode'] = None
    description: Optional[str] = None


@dataclass
class ArrayNode:
    items: Optional['SchemaNode'] = None
    description: Optional[str] = None


@dataclass
class MapNode:
    # None means any value is allowed (additionalProperties: true).
    value_schema: Optional['SchemaNode'] = None
    description: Optional[str] = None


@dataclass
class ScalarNode:
    kind: Optional[str] = None
    enum: Optional[List[Any]] = None
    example: Any = None
    description: Optional[str] = None


@dataclass
class ReferenceNode:
    target: str = ''
    description: Optional[str] = None


@dataclass
class CompositionNode:
    kind: str = 'allOf'
    branches: List['SchemaNode'] = field(default_factory=list)
    base: Optional['SchemaNode'] = None
    type_name: Optional[str] = None
    description: Optional[str] = None


SchemaNode = Union[ObjectNode, ArrayNode, MapNode, ScalarNode, ReferenceNode, CompositionNode]


def _declared_type(raw: Mapping[str, Any]) -> Optional[str]:
    node_type = raw.get('type')
    if isinstance(node_type, list):
        filtered = [value for value in node_type if isinstance(value, str) and value != 'null']
        return filtered[0] if filtered else None
    if isinstance(node_type, str):
        return node_type
    return None


def _description(raw: Mapping[str, Any]) -> Optional[str]:
    desc = raw.get('description')
    if desc is None or desc == '':
        return None
    return desc if isinstance(desc, str) else str(desc)


def _additional_node(value: Any) -> Optional[SchemaNode]:
    if value is True:
        return ScalarNode(kind=ANY_TYPE)
    if isinstance(value, Mapping):
        return node_from_dict(value)
    return None


def node_from_dict(raw: Any) -> SchemaNode:
    """Build a schema node from an OpenAPI / JSON Schema dict.

    Never raises: anything that is not a mapping becomes a free-form scalar.
    """
    if not isinstance(raw, Mapping):
        return ScalarNode(kind=ANY_TYPE)

    description = _description(raw)

    ref = raw.get('$ref')
    if isinstance(ref, str):
        return ReferenceNode(target=ref, description=description)

    for combinator in COMBINATORS:
        branches = raw.get(combinator)
        if isinstance(branches, list):
            rest = {k: v for k, v in raw.items() if k != combinator}
            has_base = any(k in rest for k in STRUCTURAL_KEYS + COMBINATORS)
            return CompositionNode(
                kind=combinator,
                branches=[node_from_dict(b) for b in branches],
                base=node_from_dict(rest) if has_base else None,
                type_name=_declared_type(raw),
                description=description,
            )

    node_type = _declared_type(raw)
    properties = raw.get('properties')
    additional = raw.get('additionalProperties')

    if node_type == 'array' or (node_type is None and 'items' in raw):
        items = raw.get('items')
        return ArrayNode(
            items=node_from_dict(items) if isinstance(items, Mapping) else None,
            description=description,
        )

    if node_type == 'object' or isinstance(properties, Mapping) or isinstance(additional, Mapping) or additional is True:
        props = properties if isinstance(properties, Mapping) else {}
        if not props and (isinstance(additional, Mapping) or additional is True):
            value = _additional_node(additional)
            if isinstance(value, ScalarNode) and value.kind == ANY_TYPE and additional is True:
                value = None
            return MapNode(value_schema=value, description=description)

        required = raw.get('required')
        return ObjectNode(
            properties={str(k): node_from_dict(v) for k, v in props.items()},
            required=[r for r in required if isinstance(r, str)] if isinstance(required, list) else [],
            additional_properties=_additional_node(additional),
            description=description,
        )

    enum = raw.get('enum')
    return ScalarNode(
        kind=node_type,
        enum=list(enum) if isinstance(enum, list) else None,
        example=raw.get('example'),
        description=description,
    )


def _is_free_form(node: Optional[SchemaNode]) -> bool:
    return node is None or (
        isinstance(node, ScalarNode)
        and node.kind == ANY_TYPE
        and node.enum is None
        and node.example is None
        and node.description is None
    )


def node_to_dict(node: SchemaNode) -> Dict[str, Any]:
    """Inverse of node_from_dict, producing a plain OpenAPI schema dict."""
    out: Dict[str, Any] = {}

    if isinstance(node, ReferenceNode):
        out['$ref'] = node.target
    elif isinstance(node, ObjectNode):
        out['type'] = 'object'
        out['properties'] = {k: node_to_dict(v) for k, v in node.properties.items()}
        if node.required:
            out['required'] = list(node.required)
        if node.additional_properties is not None:
            out['additionalProperties'] = (
                True if _is_free_form(node.additional_properties) else node_to_dict(node.additional_properties)
            )
    elif isinstance(node, MapNode):
        out['type'] = 'object'
        out['additionalProperties'] = True if _is_free_form(node.value_schema) else node_to_dict(node.value_schema)
    elif isinstance(node, ArrayNode):
        out['type'] = 'array'
        if node.items is not None:
            out['items'] = node_to_dict(node.items)
    elif isinstance(node, CompositionNode):
        if node.type_name:
            out['type'] = node.type_name
        if node.base is not None:
            out.update(node_to_dict(node.base))
        out[node.kind] = [node_to_dict(b) for b in node.branches]
    else:
        if node.kind and node.kind != ANY_TYPE:
            out['type'] = node.kind
        if node.enum is not None:
            out['enum'] = list(node.enum)
        if node.example is not None:
            out['example'] = node.example

    if node.description:
        out['description'] = node.description
    return out


def schema_type_of(node: SchemaNode) -> str:
    """Type label used in rows; untyped scalars default to 'string'."""
    if isinstance(node, (ObjectNode, MapNode)):
        return 'object'
    if isinstance(node, ArrayNode):
        return 'array'
    if isinstance(node, ReferenceNode):
        return node.target.split('/')[-1] or 'object'
    if isinstance(node, CompositionNode):
        return node.type_name or 'object'
    return node.kind or 'string'
