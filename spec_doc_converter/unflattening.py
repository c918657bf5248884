from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

from loguru import logger

from .paths import ITEMS, KEY, MAP, PathSegment, split_row_path, starts_with_segments
from .records import PathRow, coerce_row, parse_recursive_type
from .schema_nodes import ANY_TYPE, SchemaNode, node_from_dict

COMPONENT_SCHEMA_PREFIX = '#/components/schemas/'

_CONTAINER_KEYS = ('properties', 'required', 'items', 'additionalProperties')


def _new_container() -> Dict[str, Any]:
    return {'type': 'object', 'properties': {}}


def _ensure_properties(node: Dict[str, Any]) -> Dict[str, Any]:
    if '$ref' in node:
        node.clear()
    if node.get('type') not in ('object', None):
        node['type'] = 'object'
        node.pop('items', None)
    props = node.get('properties')
    if not isinstance(props, dict):
        props = {}
        node['properties'] = props
    return props


def _ensure_items(node: Dict[str, Any]) -> Dict[str, Any]:
    if node.get('type') != 'array':
        for key in _CONTAINER_KEYS + ('$ref',):
            node.pop(key, None)
        node['type'] = 'array'
    items = node.get('items')
    if not isinstance(items, dict):
        items = _new_container()
        node['items'] = items
    return items


def _ensure_map_value(node: Dict[str, Any]) -> Dict[str, Any]:
    _ensure_properties(node)
    value = node.get('additionalProperties')
    if not isinstance(value, dict):
        value = _new_container()
        node['additionalProperties'] = value
    return value


def _replace_with_ref(node: Dict[str, Any], ref: str) -> None:
    node.clear()
    node['$ref'] = ref


def _apply_type(node: Dict[str, Any], row_type: str) -> None:
    if row_type == 'array':
        if node.get('type') != 'array':
            for key in ('properties', 'required', 'additionalProperties', '$ref'):
                node.pop(key, None)
            node['type'] = 'array'
    elif row_type == 'object':
        node.pop('$ref', None)
        node.pop('items', None)
        node['type'] = 'object'
        if not isinstance(node.get('properties'), dict):
            node['properties'] = {}
    else:
        for key in _CONTAINER_KEYS + ('$ref',):
            node.pop(key, None)
        node['type'] = row_type


def _mark_required(owner: Optional[Dict[str, Any]], last: Optional[PathSegment]) -> None:
    if owner is None or last is None or last.kind != KEY:
        return
    required = owner.get('required')
    if not isinstance(required, list):
        required = []
        owner['required'] = required
    if last.name not in required:
        required.append(last.name)


def _place_row(root: Dict[str, Any], row: PathRow, segments: List[PathSegment]) -> bool:
    """Write one row into the tree. Returns True when the row ended in a reference."""
    owner: Optional[Dict[str, Any]] = None
    last: Optional[PathSegment] = None
    cursor = root

    for seg in segments:
        owner, last = cursor, seg
        if seg.kind == KEY:
            props = _ensure_properties(cursor)
            child = props.get(seg.name)
            if not isinstance(child, dict):
                child = _new_container()
                props[seg.name] = child
            cursor = child
        elif seg.kind == ITEMS:
            cursor = _ensure_items(cursor)
        else:
            cursor = _ensure_map_value(cursor)

    if row.ref:
        _replace_with_ref(cursor, row.ref)
        if row.required:
            _mark_required(owner, last)
        return True

    cycle_name = parse_recursive_type(row.type)
    if cycle_name:
        _replace_with_ref(cursor, COMPONENT_SCHEMA_PREFIX + cycle_name)
        if row.required:
            _mark_required(owner, last)
        return True

    if row.type == ANY_TYPE and last is not None and last.kind == MAP and not row.enum:
        owner['additionalProperties'] = True
        return False

    _apply_type(cursor, row.type or 'string')
    if row.description:
        cursor['description'] = row.description
    else:
        cursor.pop('description', None)
    if row.enum is not None:
        cursor['enum'] = list(row.enum)
    if row.example is not None:
        cursor['example'] = row.example
    if row.required:
        _mark_required(owner, last)
    return False


def unflatten_to_dict(rows: Iterable[Any]) -> Dict[str, Any]:
    """Rebuild an OpenAPI schema dict from ordered path rows.

    Total: malformed rows are skipped or absorbed into a best-effort tree.
    Rows below a path that already resolved to a reference are discarded.
    """
    root = _new_container()
    skipped: List[List[PathSegment]] = []

    if rows is None or isinstance(rows, (str, bytes, Mapping)):
        return root
    try:
        row_iter = iter(rows)
    except TypeError:
        return root

    for raw in row_iter:
        row = coerce_row(raw)
        if row is None:
            logger.debug("Ignoring unusable row {!r}", raw)
            continue

        segments = split_row_path(row.path)
        if any(starts_with_segments(segments, prefix) for prefix in skipped):
            continue

        try:
            if _place_row(root, row, segments):
                skipped.append(segments)
        except (TypeError, ValueError, AttributeError) as exc:
            logger.warning("Could not place row '{}': {}", row.path, exc)

    return root


def unflatten_schema(rows: Iterable[Any]) -> SchemaNode:
    return node_from_dict(unflatten_to_dict(rows))
