from __future__ import annotations

import json
from typing import Any, Dict

import yaml

from .config import SpecFormat

INVALID_FORMAT_MESSAGE = "Invalid format. Please provide valid JSON or YAML."


class SpecParseError(ValueError):
    """Raised when spec text is neither JSON nor YAML describing a mapping."""


def parse_spec_text(text: str) -> Dict[str, Any]:
    """Parse JSON, falling back to YAML. The document root must be a mapping."""
    if isinstance(text, bytes):
        try:
            text = text.decode('utf-8')
        except UnicodeDecodeError as exc:
            raise SpecParseError(INVALID_FORMAT_MESSAGE) from exc
    if not isinstance(text, str) or not text.strip():
        raise SpecParseError(INVALID_FORMAT_MESSAGE)

    try:
        parsed = json.loads(text)
    except ValueError:
        try:
            parsed = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise SpecParseError(INVALID_FORMAT_MESSAGE) from exc

    if not isinstance(parsed, dict):
        raise SpecParseError(INVALID_FORMAT_MESSAGE)
    return parsed


def serialize_spec(spec: Dict[str, Any], output_format: SpecFormat = SpecFormat.YAML) -> str:
    if output_format == SpecFormat.JSON:
        return json.dumps(spec, indent=2, ensure_ascii=False, default=str)
    return yaml.safe_dump(spec, sort_keys=False, allow_unicode=True)


def read_spec_content(file_obj) -> str:
    """Read text from an uploaded file or file path."""
    if file_obj is None:
        raise ValueError("No file uploaded.")

    if hasattr(file_obj, 'read'):
        if hasattr(file_obj, 'seek'):
            file_obj.seek(0)
        content = file_obj.read()
        if isinstance(content, bytes):
            content = content.decode('utf-8')
        return content

    path = file_obj.name if hasattr(file_obj, 'name') else file_obj
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()
