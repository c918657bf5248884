"""Read an HTML document produced by `doc_render` back into a spec.

Extraction is split in two: `extract_document` pulls everything the markup
carries into plain dataclasses, and `document_to_spec` rebuilds an OpenAPI
dict from them, feeding each row table through the reconstructor.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup
from loguru import logger

from .records import PathRow
from .unflattening import unflatten_to_dict

DEFAULT_TITLE = 'Imported API'
DEFAULT_VERSION = '1.0.0'
OPENAPI_VERSION = '3.0.0'
PLACEHOLDER = '-'


@dataclass
class ServerEntry:
    url: str
    description: Optional[str] = None


@dataclass
class TagEntry:
    name: str
    description: Optional[str] = None


@dataclass
class SecurityRequirement:
    """Schemes that must all be satisfied together, with their scopes."""

    schemes: Dict[str, List[str]] = field(default_factory=dict)


@dataclass
class RowTable:
    """Rows of one schema container plus its root pointer, if any."""

    rows: List[PathRow] = field(default_factory=list)
    root_ref: Optional[str] = None


@dataclass
class ExtractedParameter:
    name: str
    location: str = 'query'
    required: bool = False
    type: str = 'string'
    description: str = ''


@dataclass
class ExtractedResponse:
    description: str = ''
    headers: Dict[str, Dict[str, str]] = field(default_factory=dict)
    content: Dict[str, RowTable] = field(default_factory=dict)


@dataclass
class ExtractedOperation:
    method: str
    path: str
    summary: str = ''
    description: str = ''
    operation_id: Optional[str] = None
    tags: Optional[List[str]] = None
    security: Optional[List[Dict[str, List[str]]]] = None
    parameters: List[ExtractedParameter] = field(default_factory=list)
    request_body: Dict[str, RowTable] = field(default_factory=dict)
    responses: Dict[str, ExtractedResponse] = field(default_factory=dict)


@dataclass
class ExtractedDocument:
    title: str = DEFAULT_TITLE
    description: str = ''
    version: str = DEFAULT_VERSION
    servers: List[ServerEntry] = field(default_factory=list)
    tags: List[TagEntry] = field(default_factory=list)
    security: List[SecurityRequirement] = field(default_factory=list)
    operations: List[ExtractedOperation] = field(default_factory=list)
    components: Dict[str, RowTable] = field(default_factory=dict)


def _text_of(el, default: str = '') -> str:
    if el is None:
        return default
    return el.get_text().strip()


def _optional_text(el) -> Optional[str]:
    text = _text_of(el)
    if not text or text == PLACEHOLDER:
        return None
    return text


def _json_attr(el, name: str) -> Any:
    if el is None:
        return None
    raw = el.get(name)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.debug("Unreadable {} attribute: {!r}", name, raw)
        return None


def _extract_row(tr) -> PathRow:
    path_el = tr.select_one('.field-path')
    path = path_el.get('data-raw-path') if path_el is not None else None
    if path is None:
        path = _text_of(path_el)

    type_el = tr.select_one('.field-type')
    row_type = type_el.get('data-raw-type') if type_el is not None else None
    if not row_type:
        row_type = _text_of(type_el).replace('(Ref)', '').strip() or 'string'

    enum = _json_attr(tr.select_one('.field-enum'), 'data-enum')
    return PathRow(
        path=path,
        type=row_type,
        required=_text_of(tr.select_one('.field-required')) == 'Yes',
        description=_text_of(tr.select_one('.desc-text')),
        enum=[str(v) for v in enum] if isinstance(enum, list) else None,
        example=_json_attr(tr.select_one('.field-example'), 'data-example'),
        ref=tr.get('data-ref') or None,
    )


def extract_row_table(container) -> RowTable:
    if container is None:
        return RowTable()
    table = container.select_one('.data-table')
    rows = [_extract_row(tr) for tr in table.select('tbody tr')] if table is not None else []
    return RowTable(rows=rows, root_ref=container.get('data-schema-ref') or None)


def _extract_content_blocks(blocks) -> Dict[str, RowTable]:
    content: Dict[str, RowTable] = {}
    for block in blocks:
        container = block.select_one('.schema-container')
        if container is None:
            continue
        content_type = _text_of(block.select_one('.content-type')) or 'application/json'
        content[content_type] = extract_row_table(container)
    return content


def _extract_parameters(op) -> List[ExtractedParameter]:
    params: List[ExtractedParameter] = []
    for tr in op.select('.params-table tbody tr'):
        name = _text_of(tr.select_one('.param-name'))
        if not name:
            continue
        params.append(ExtractedParameter(
            name=name,
            location=_text_of(tr.select_one('.param-in')) or 'query',
            required=_text_of(tr.select_one('.param-req')) == 'Yes',
            type=_text_of(tr.select_one('.param-type')) or 'string',
            description=_optional_text(tr.select_one('.param-desc')) or '',
        ))
    return params


def _extract_responses(op) -> Dict[str, ExtractedResponse]:
    responses: Dict[str, ExtractedResponse] = {}
    for rc in op.select('.resp-container'):
        code = rc.get('data-status-code') or _text_of(rc.select_one('.resp-code'), 'HTTP 200').replace('HTTP', '').strip()
        headers: Dict[str, Dict[str, str]] = {}
        for tr in rc.select('.resp-headers-table tbody tr'):
            name = _text_of(tr.select_one('.header-name'))
            if name:
                headers[name] = {
                    'type': _text_of(tr.select_one('.header-type')) or 'string',
                    'description': _optional_text(tr.select_one('.header-desc')) or '',
                }
        responses[code] = ExtractedResponse(
            description=_text_of(rc.select_one('.resp-desc')),
            headers=headers,
            content=_extract_content_blocks(rc.select('.resp-body-content')),
        )
    return responses


def _extract_operation(op) -> Optional[ExtractedOperation]:
    method_el = op.select_one('.op-method')
    path_el = op.select_one('.op-path')
    if method_el is None or path_el is None:
        return None

    tags = _json_attr(op, 'data-tags')
    security = _json_attr(op.select_one('.op-security'), 'data-raw')
    return ExtractedOperation(
        method=_text_of(method_el).lower() or 'get',
        path=_text_of(path_el) or '/',
        summary=_text_of(op.select_one('.op-summary')),
        description=_text_of(op.select_one('.op-desc')),
        operation_id=op.get('data-operation-id') or None,
        tags=[str(t) for t in tags] if isinstance(tags, list) and tags else None,
        security=security if isinstance(security, list) else None,
        parameters=_extract_parameters(op),
        request_body=_extract_content_blocks(op.select('.req-body-content')),
        responses=_extract_responses(op),
    )


def extract_document(html: str) -> ExtractedDocument:
    """Pull metadata, operations and row tables out of a rendered document."""
    soup = BeautifulSoup(html, 'html.parser')
    doc = ExtractedDocument(
        title=_text_of(soup.select_one('.doc-title')) or DEFAULT_TITLE,
        description=_text_of(soup.select_one('.doc-desc')),
        version=_text_of(soup.select_one('.doc-version')).replace('Version:', '').strip() or DEFAULT_VERSION,
    )

    for tr in soup.select('.servers-section tbody tr'):
        doc.servers.append(ServerEntry(
            url=_text_of(tr.select_one('.server-url')),
            description=_optional_text(tr.select_one('.server-desc')),
        ))

    for li in soup.select('.tags-section li'):
        name = li.get('data-tag-name')
        if name:
            doc.tags.append(TagEntry(name=name, description=_optional_text(li.select_one('.tag-desc'))))

    for li in soup.select('.security-section li.sec-requirement'):
        raw = _json_attr(li, 'data-raw')
        if isinstance(raw, dict):
            doc.security.append(SecurityRequirement(schemes={
                str(name): [str(s) for s in scopes] if isinstance(scopes, list) else []
                for name, scopes in raw.items()
            }))

    for el in soup.select('.component-def'):
        name = el.get('data-component-name')
        if name:
            doc.components[name] = extract_row_table(el.select_one('.schema-container'))

    for op in soup.select('.op-container'):
        operation = _extract_operation(op)
        if operation is not None:
            doc.operations.append(operation)

    logger.debug(
        "Extracted {} operations and {} components from document",
        len(doc.operations),
        len(doc.components),
    )
    return doc


def table_to_schema(table: RowTable) -> Dict[str, Any]:
    """A container's root pointer wins over its rows."""
    if table.root_ref:
        return {'$ref': table.root_ref}
    return unflatten_to_dict(table.rows)


def _content_to_spec(content: Dict[str, RowTable]) -> Dict[str, Any]:
    return {content_type: {'schema': table_to_schema(table)} for content_type, table in content.items()}


def _operation_to_spec(op: ExtractedOperation) -> Dict[str, Any]:
    operation: Dict[str, Any] = {'summary': op.summary, 'description': op.description}
    if op.operation_id:
        operation['operationId'] = op.operation_id
    if op.tags:
        operation['tags'] = list(op.tags)
    if op.security is not None:
        operation['security'] = op.security
    if op.parameters:
        operation['parameters'] = [
            {
                'name': p.name,
                'in': p.location,
                'required': p.required,
                'schema': {'type': p.type},
                'description': p.description,
            }
            for p in op.parameters
        ]
    if op.request_body:
        operation['requestBody'] = {'content': _content_to_spec(op.request_body)}

    responses: Dict[str, Any] = {}
    for code, response in op.responses.items():
        entry: Dict[str, Any] = {'description': response.description}
        if response.headers:
            entry['headers'] = {
                name: {'schema': {'type': h['type']}, 'description': h['description']}
                for name, h in response.headers.items()
            }
        if response.content:
            entry['content'] = _content_to_spec(response.content)
        responses[code] = entry
    operation['responses'] = responses
    return operation


def document_to_spec(doc: ExtractedDocument) -> Dict[str, Any]:
    """Rebuild an OpenAPI document from extracted data."""
    paths: Dict[str, Dict[str, Any]] = {}
    for op in doc.operations:
        paths.setdefault(op.path, {})[op.method] = _operation_to_spec(op)

    spec: Dict[str, Any] = {
        'openapi': OPENAPI_VERSION,
        'info': {'title': doc.title, 'version': doc.version, 'description': doc.description},
        'paths': paths,
    }
    if doc.servers:
        spec['servers'] = [
            {'url': s.url, **({'description': s.description} if s.description else {})}
            for s in doc.servers
        ]
    if doc.tags:
        spec['tags'] = [
            {'name': t.name, **({'description': t.description} if t.description else {})}
            for t in doc.tags
        ]
    if doc.security:
        spec['security'] = [dict(req.schemes) for req in doc.security]
    if doc.components:
        spec['components'] = {
            'schemas': {name: table_to_schema(table) for name, table in doc.components.items()}
        }
    return spec


def parse_document_to_spec(html: str) -> Dict[str, Any]:
    return document_to_spec(extract_document(html))
