from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple

RECURSIVE_DESCRIPTION = 'Recursive reference detected'
ANY_VALUE_DESCRIPTION = 'Any value allowed'


@dataclass
class PathRow:
    """One flattened field: address, type and metadata."""

    path: str
    type: str
    required: bool = False
    description: str = ''
    enum: Optional[List[str]] = None
    example: Any = None
    ref: Optional[str] = None

    def dedupe_key(self) -> Tuple[str, str, str]:
        return (self.path, self.type, self.description)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            'path': self.path,
            'type': self.type,
            'required': self.required,
            'description': self.description,
        }
        if self.enum is not None:
            out['enum'] = list(self.enum)
        if self.example is not None:
            out['example'] = self.example
        if self.ref:
            out['ref'] = self.ref
        return out


def recursive_type(name: str) -> str:
    return f"Recursive({name})"


def parse_recursive_type(type_label: str) -> Optional[str]:
    if isinstance(type_label, str) and type_label.startswith('Recursive(') and type_label.endswith(')'):
        name = type_label[len('Recursive('):-1].strip()
        return name or None
    return None


def dedupe_rows(rows: Iterable[PathRow]) -> List[PathRow]:
    """Drop rows identical in (path, type, description), keeping the first."""
    seen: Set[Tuple[str, str, str]] = set()
    out: List[PathRow] = []
    for row in rows:
        key = row.dedupe_key()
        if key in seen:
            continue
        seen.add(key)
        out.append(row)
    return out


def _as_text(value: Any, default: str = '') -> str:
    if value is None:
        return default
    return value if isinstance(value, str) else str(value)


def coerce_row(raw: Any) -> Optional[PathRow]:
    """Best-effort PathRow from a PathRow or a row-like mapping; None if unusable."""
    if isinstance(raw, PathRow):
        return raw
    if not isinstance(raw, Mapping):
        return None

    enum = raw.get('enum')
    ref = raw.get('ref')
    return PathRow(
        path=_as_text(raw.get('path')),
        type=_as_text(raw.get('type'), 'string') or 'string',
        required=bool(raw.get('required', False)),
        description=_as_text(raw.get('description')),
        enum=[_as_text(v) for v in enum] if isinstance(enum, (list, tuple)) else None,
        example=raw.get('example'),
        ref=ref if isinstance(ref, str) and ref else None,
    )


def rows_to_dicts(rows: Iterable[PathRow]) -> List[Dict[str, Any]]:
    return [row.to_dict() for row in rows]
