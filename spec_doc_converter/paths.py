from __future__ import annotations

from typing import List, NamedTuple, Sequence, Tuple

ARRAY_SUFFIX = '[]'
MAP_KEY_SEGMENT = '<key>'
MAP_KEY_ALIASES = (MAP_KEY_SEGMENT, '*')

_SPECIAL_CHARS = '\\.[]<*'

KEY = 'key'
ITEMS = 'items'
MAP = 'map'


class PathSegment(NamedTuple):
    kind: str
    name: str = ''


def escape_path_segment(segment: str) -> str:
    """Escape a single property name for row-path representation.

    - Dots are escaped as '\\.' so keys like 'gpt-3.5-turbo' remain one segment.
    - '[', ']', '<' and '*' are escaped so a name can never read as array or
      map descent.
    - Backslashes are escaped as '\\\\' to preserve round-tripping.
    """
    if not isinstance(segment, str):
        segment = str(segment)
    return ''.join('\\' + ch if ch in _SPECIAL_CHARS else ch for ch in segment)


def join_path(parent: str, segment: str) -> str:
    return f"{parent}.{segment}" if parent else segment


def child_path(parent: str, key: str) -> str:
    return join_path(parent, escape_path_segment(key))


def map_value_path(parent: str) -> str:
    return join_path(parent, MAP_KEY_SEGMENT)


def array_item_path(parent: str) -> str:
    return f"{parent}{ARRAY_SUFFIX}"


def _scan_raw_segments(path: str) -> List[List[Tuple[str, bool]]]:
    """Split on unescaped '.', keeping (char, was_escaped) pairs per segment."""
    segments: List[List[Tuple[str, bool]]] = []
    buf: List[Tuple[str, bool]] = []
    escaping = False

    for ch in path:
        if escaping:
            buf.append((ch, True))
            escaping = False
            continue
        if ch == '\\':
            escaping = True
            continue
        if ch == '.':
            segments.append(buf)
            buf = []
            continue
        buf.append((ch, False))

    if escaping:
        # Trailing backslash; treat as literal.
        buf.append(('\\', True))

    segments.append(buf)
    return segments


def _strip_array_suffixes(chars: List[Tuple[str, bool]]) -> Tuple[List[Tuple[str, bool]], int]:
    depth = 0
    while len(chars) >= 2 and chars[-2:] == [('[', False), (']', False)]:
        chars = chars[:-2]
        depth += 1
    return chars, depth


def split_row_path(path: str) -> List[PathSegment]:
    """Parse a row path into member, array-item and map-key segments.

    An empty path is the root itself. A leading '[]' means the root is an array.
    Empty member names produced by stray dots are dropped.
    """
    if path is None:
        return []
    if not isinstance(path, str):
        path = str(path)
    if path == '':
        return []

    parsed: List[PathSegment] = []
    for raw in _scan_raw_segments(path):
        chars, depth = _strip_array_suffixes(raw)
        name = ''.join(ch for ch, _ in chars)
        if chars and not any(escaped for _, escaped in chars) and name in MAP_KEY_ALIASES:
            parsed.append(PathSegment(MAP))
        elif name:
            parsed.append(PathSegment(KEY, name))
        parsed.extend(PathSegment(ITEMS) for _ in range(depth))
    return parsed


def starts_with_segments(segments: Sequence[PathSegment], prefix: Sequence[PathSegment]) -> bool:
    """True when `segments` equals or lies below `prefix`, compared segment by segment."""
    if len(prefix) > len(segments):
        return False
    return list(segments[:len(prefix)]) == list(prefix)

