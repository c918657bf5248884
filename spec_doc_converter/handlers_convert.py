from __future__ import annotations

import os
import tempfile
from typing import Any, Dict, List, Optional

from loguru import logger

from .config import ConversionMode, ConversionOptions, SpecFormat, parse_spec_format
from .conversion import generate_conversion
from .fidelity import validate_spec_fidelity
from .flattening import flatten_schema
from .io_utils import parse_spec_text, read_spec_content
from .records import rows_to_dicts
from .references import build_registry
from .schema_nodes import node_from_dict

DEFAULT_DOC_NAME = "api-documentation"
DEFAULT_SPEC_NAME = "openapi-spec"


def build_options(include_examples, include_authentication, output_format) -> ConversionOptions:
    return ConversionOptions(
        include_examples=bool(include_examples),
        include_authentication=bool(include_authentication),
        output_format=parse_spec_format(output_format),
    )


def load_input_file(file_obj):
    if file_obj is None:
        return "", "No file uploaded."
    try:
        content = read_spec_content(file_obj)
    except (OSError, UnicodeDecodeError, ValueError) as e:
        return "", f"Error reading file: {str(e)}"
    return content, f"Loaded {len(content)} characters."


def _write_temp_file(content: str, file_name: Optional[str], default_name: str, ext: str) -> str:
    if not file_name or not file_name.strip():
        file_name = default_name
    file_name = file_name.strip()
    if not file_name.lower().endswith(ext):
        file_name += ext
    path = os.path.join(tempfile.gettempdir(), file_name)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(content)
    return path


def spec_to_doc_handler(content, include_examples, include_authentication, file_name=None):
    """Render spec text to HTML; returns (html, download path, status)."""
    if not content or not content.strip():
        return "", None, "No input provided."

    options = build_options(include_examples, include_authentication, SpecFormat.YAML)
    result = generate_conversion(content, ConversionMode.SPEC_TO_DOC, options)
    if result.startswith("Error:"):
        return "", None, result

    try:
        path = _write_temp_file(result, file_name, DEFAULT_DOC_NAME, ".html")
    except OSError as e:
        return result, None, f"Error during export: {str(e)}"
    return result, path, f"Document generated. Saved to {path}"


def doc_to_spec_handler(content, output_format, file_name=None):
    """Rebuild spec text from an HTML document; returns (spec text, download path, status)."""
    if not content or not content.strip():
        return "", None, "No input provided."

    try:
        options = ConversionOptions().with_format(parse_spec_format(output_format))
    except ValueError as e:
        return "", None, str(e)

    result = generate_conversion(content, ConversionMode.DOC_TO_SPEC, options)
    if result.startswith("Error:"):
        return "", None, result

    ext = f".{options.output_format.extension}"
    try:
        path = _write_temp_file(result, file_name, DEFAULT_SPEC_NAME, ext)
    except OSError as e:
        return result, None, f"Error during export: {str(e)}"
    return result, path, f"Spec generated. Saved to {path}"


def fidelity_handler(content, include_examples, include_authentication):
    """Returns (score text, report lines)."""
    if not content or not content.strip():
        return "", []
    options = build_options(include_examples, include_authentication, SpecFormat.JSON)
    result = validate_spec_fidelity(content, options)
    report = result.report if result.report else ["No discrepancies found."]
    return f"Fidelity score: {result.score}/100", report


def _component_schemas(spec) -> Dict[str, Any]:
    components = spec.get('components')
    schemas = components.get('schemas') if isinstance(components, dict) else None
    return schemas if isinstance(schemas, dict) else {}


def list_component_names(content) -> List[str]:
    if not content or not content.strip():
        return []
    try:
        spec = parse_spec_text(content)
    except ValueError:
        return []
    return list(_component_schemas(spec).keys())


def preview_component_rows(content, component_name) -> Optional[List[Dict[str, Any]]]:
    """Flattened rows of one component, for the preview table."""
    if not content or not component_name:
        return None
    try:
        spec = parse_spec_text(content)
    except ValueError:
        return None

    registry = build_registry(spec)
    schemas = _component_schemas(spec)
    if component_name not in schemas:
        return None
    try:
        rows = flatten_schema(node_from_dict(schemas[component_name]), registry, visited=frozenset({component_name}))
    except Exception:
        logger.exception("Could not flatten component {}", component_name)
        return None
    return rows_to_dicts(rows) or None
