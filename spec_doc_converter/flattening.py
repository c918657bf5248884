from __future__ import annotations

from typing import Dict, FrozenSet, List, Optional, Tuple

from loguru import logger

from .paths import array_item_path, child_path, map_value_path
from .records import (
    ANY_VALUE_DESCRIPTION,
    RECURSIVE_DESCRIPTION,
    PathRow,
    dedupe_rows,
    recursive_type,
)
from .references import ComponentRegistry, ResolvedNode, resolve_schema
from .schema_nodes import (
    ANY_TYPE,
    ArrayNode,
    CompositionNode,
    MapNode,
    ObjectNode,
    ReferenceNode,
    ScalarNode,
    SchemaNode,
    node_from_dict,
    schema_type_of,
)


def merge_all_of(
    node: CompositionNode,
    registry: ComponentRegistry,
    seen: FrozenSet[str] = frozenset(),
) -> Tuple[SchemaNode, List[ResolvedNode]]:
    """Collapse an allOf into a single Object/Map node.

    Branches are merged in order; a property defined again by a later branch
    replaces the earlier definition. With no object or map branch the last
    array or scalar branch stands in for the whole composition.

    Also returns every component the merge pulled in, nested ones included,
    so the caller can extend its visited-set before descending.
    """
    properties: Dict[str, SchemaNode] = {}
    required: List[str] = []
    additional: Optional[SchemaNode] = None
    has_map = False
    fallback: Optional[SchemaNode] = None
    pulled: List[ResolvedNode] = []

    parts = ([node.base] if node.base is not None else []) + list(node.branches)
    for part in parts:
        resolved = resolve_schema(part, registry)
        branch = resolved.node
        name = resolved.resolved_name
        if name is not None:
            pulled.append(resolved)
        if isinstance(branch, CompositionNode) and branch.kind == 'allOf':
            if name is not None and name in seen:
                logger.debug("Skipping recursive allOf branch {}", name)
                continue
            branch, nested = merge_all_of(branch, registry, seen | {name} if name else seen)
            pulled.extend(nested)

        if isinstance(branch, ObjectNode):
            properties.update(branch.properties)
            required.extend(r for r in branch.required if r not in required)
            if branch.additional_properties is not None:
                additional = branch.additional_properties
                has_map = True
        elif isinstance(branch, MapNode):
            additional = branch.value_schema
            has_map = True
        elif isinstance(branch, (ArrayNode, ScalarNode)):
            fallback = branch
        else:
            logger.debug("allOf branch {} contributes nothing to the merge", type(branch).__name__)

    if properties:
        merged: SchemaNode = ObjectNode(
            properties=properties,
            required=required,
            additional_properties=additional,
            description=node.description,
        )
    elif has_map:
        merged = MapNode(value_schema=additional, description=node.description)
    elif isinstance(fallback, ArrayNode):
        merged = ArrayNode(items=fallback.items, description=node.description or fallback.description)
    elif isinstance(fallback, ScalarNode):
        merged = ScalarNode(
            kind=node.type_name or fallback.kind,
            enum=fallback.enum,
            example=fallback.example,
            description=node.description or fallback.description,
        )
    else:
        merged = ObjectNode(description=node.description)
    return merged, pulled


def _build_row(
    node: SchemaNode,
    path: str,
    required: bool,
    description: str,
    ref: Optional[str],
) -> PathRow:
    row_type = schema_type_of(node)
    enum = None
    example = None
    if isinstance(node, ScalarNode):
        if node.enum is not None:
            enum = ['' if v is None else str(v) for v in node.enum]
        example = node.example
        if node.kind == ANY_TYPE and not description:
            description = ANY_VALUE_DESCRIPTION
    return PathRow(
        path=path,
        type=row_type,
        required=required,
        description=description,
        enum=enum,
        example=example,
        ref=ref,
    )


def _recursive_row(resolved: ResolvedNode, path: str, required: bool) -> PathRow:
    return PathRow(
        path=path,
        type=recursive_type(resolved.resolved_name),
        required=required,
        description=RECURSIVE_DESCRIPTION,
        ref=resolved.original_ref,
    )


def flatten_schema(
    node: SchemaNode,
    registry: ComponentRegistry,
    path: str = '',
    required: bool = False,
    visited: FrozenSet[str] = frozenset(),
) -> List[PathRow]:
    """Flatten a schema into pre-ordered path rows.

    `visited` is immutable and scoped to one descent branch: siblings share the
    parent's set but never see each other's additions. Each call returns a new
    list owned by the caller.
    """
    resolved = resolve_schema(node, registry)
    current = resolved.node
    name = resolved.resolved_name

    if name is not None:
        if name in visited:
            logger.debug("Recursive reference {} at '{}'", name, path)
            return [_recursive_row(resolved, path, required)]
        visited = visited | {name}

    incoming_ref = resolved.original_ref
    if isinstance(current, ReferenceNode):
        incoming_ref = current.target

    description = current.description or ''
    if not description and isinstance(node, ReferenceNode):
        description = node.description or ''

    if isinstance(current, CompositionNode):
        if current.kind != 'allOf':
            return _flatten_alternatives(current, registry, path, required, visited, incoming_ref, description)
        current, pulled = merge_all_of(current, registry, visited)
        for branch in pulled:
            if branch.resolved_name in visited:
                logger.debug("Recursive allOf reference {} at '{}'", branch.resolved_name, path)
                return [_recursive_row(branch, path, required)]
        visited = visited | {branch.resolved_name for branch in pulled}
        description = current.description or description

    rows: List[PathRow] = []
    is_container = isinstance(current, (ObjectNode, MapNode))
    if path or incoming_ref or not is_container:
        rows.append(_build_row(current, path, required, description, incoming_ref))

    if isinstance(current, ObjectNode):
        required_set = set(current.required)
        for key, prop in current.properties.items():
            rows.extend(flatten_schema(prop, registry, child_path(path, key), key in required_set, visited))
        if current.additional_properties is not None:
            rows.extend(flatten_schema(current.additional_properties, registry, map_value_path(path), False, visited))
    elif isinstance(current, MapNode):
        value = current.value_schema if current.value_schema is not None else ScalarNode(kind=ANY_TYPE)
        rows.extend(flatten_schema(value, registry, map_value_path(path), False, visited))
    elif isinstance(current, ArrayNode) and current.items is not None:
        rows.extend(flatten_schema(current.items, registry, array_item_path(path), False, visited))

    return rows


def _flatten_alternatives(
    node: CompositionNode,
    registry: ComponentRegistry,
    path: str,
    required: bool,
    visited: FrozenSet[str],
    incoming_ref: Optional[str],
    description: str,
) -> List[PathRow]:
    """oneOf/anyOf: every alternative is flattened at the same path."""
    rows: List[PathRow] = []
    if incoming_ref:
        rows.append(_build_row(node, path, required, description, incoming_ref))

    alternatives = ([node.base] if node.base is not None else []) + list(node.branches)
    for alternative in alternatives:
        rows.extend(flatten_schema(alternative, registry, path, required, visited))
    return dedupe_rows(rows)


def flatten_schema_dict(schema, registry: ComponentRegistry) -> List[PathRow]:
    """Convenience wrapper for raw schema dicts."""
    if schema is None:
        return []
    return flatten_schema(node_from_dict(schema), registry)
