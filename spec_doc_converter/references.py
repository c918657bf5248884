from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from loguru import logger

from .schema_nodes import ReferenceNode, SchemaNode, node_from_dict

ComponentRegistry = Mapping[str, SchemaNode]


@dataclass(frozen=True)
class ResolvedNode:
    node: SchemaNode
    resolved_name: Optional[str] = None
    original_ref: Optional[str] = None


def ref_name(pointer: str) -> str:
    """Final segment of a reference pointer ('#/components/schemas/Pet' -> 'Pet')."""
    if not isinstance(pointer, str):
        return ''
    return pointer.split('/')[-1]


def build_registry(spec: Any) -> Dict[str, SchemaNode]:
    """Component registry from `components.schemas` of a parsed spec."""
    if not isinstance(spec, Mapping):
        return {}
    components = spec.get('components')
    schemas = components.get('schemas') if isinstance(components, Mapping) else None
    if not isinstance(schemas, Mapping):
        return {}
    return {str(name): node_from_dict(raw) for name, raw in schemas.items()}


def resolve_schema(node: SchemaNode, registry: ComponentRegistry) -> ResolvedNode:
    """Resolve a reference against the registry.

    Unknown pointers pass through unchanged as opaque reference markers.
    Non-reference nodes come back as a shallow copy.
    """
    if isinstance(node, ReferenceNode):
        name = ref_name(node.target)
        target = registry.get(name) if name else None
        if target is not None:
            return ResolvedNode(node=target, resolved_name=name, original_ref=node.target)
        logger.debug("Unresolved reference {} left as marker", node.target)
        return ResolvedNode(node=node)
    return ResolvedNode(node=copy.copy(node))
