from __future__ import annotations

from typing import Optional

from loguru import logger

from .config import ConversionMode, ConversionOptions
from .doc_extract import parse_document_to_spec
from .doc_render import render_spec_document
from .io_utils import parse_spec_text, serialize_spec

NOT_A_DOCUMENT_MESSAGE = "Error: Please provide the HTML Source code generated by this tool."


def convert_spec_to_doc(content: str, options: Optional[ConversionOptions] = None) -> str:
    spec = parse_spec_text(content)
    return render_spec_document(spec, options or ConversionOptions())


def convert_doc_to_spec(content: str, options: Optional[ConversionOptions] = None) -> str:
    options = options or ConversionOptions()
    if not content.strip().startswith('<'):
        return NOT_A_DOCUMENT_MESSAGE
    spec = parse_document_to_spec(content)
    return serialize_spec(spec, options.output_format)


def generate_conversion(
    content: str,
    mode: ConversionMode,
    options: Optional[ConversionOptions] = None,
) -> str:
    """Convert in the requested direction; failures come back as 'Error: ...' text."""
    if not content or not content.strip():
        return ''
    options = options or ConversionOptions()

    try:
        if ConversionMode(mode) == ConversionMode.SPEC_TO_DOC:
            result = convert_spec_to_doc(content, options)
        else:
            result = convert_doc_to_spec(content, options)
    except Exception as exc:
        logger.exception("Conversion failed")
        return f"Error: {exc}"

    logger.info("Converted {} characters ({})", len(content), ConversionMode(mode).value)
    return result
