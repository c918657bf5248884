"""Render a parsed spec into a standalone HTML document.

The markup is also the interchange format for the way back: every schema row
keeps its raw path, raw type, reference and plain description in attributes or
dedicated spans so `doc_extract` can rebuild the rows without guessing from the
display text.
"""
from __future__ import annotations

import json
from html import escape
from typing import Any, FrozenSet, List, Mapping, Optional

from .config import ConversionOptions
from .flattening import flatten_schema
from .records import PathRow
from .references import ComponentRegistry, build_registry, ref_name
from .schema_nodes import node_from_dict

HTTP_METHODS = ('get', 'put', 'post', 'delete', 'options', 'head', 'patch', 'trace')

_METHOD_COLORS = {'get': '#2563eb', 'post': '#16a34a', 'delete': '#dc2626'}
_DEFAULT_METHOD_COLOR = '#d97706'

_PAGE_STYLE = """
      body { font-family: 'Inter', 'Calibri', sans-serif; line-height: 1.6; color: #1e293b; max-width: 800px; margin: 0 auto; padding: 20px; }
      h1, h2, h3, h4, h5 { color: #0f172a; }
      table { width: 100%; border-collapse: collapse; margin-bottom: 1rem; }
      td, th { border: 1px solid #cbd5e1; padding: 8px; vertical-align: top; text-align: left; }
      th { background: #f1f5f9; }
      code { font-family: monospace; background: #f1f5f9; padding: 2px 4px; border-radius: 4px; }
      .badge { background: #e0e7ff; color: #3730a3; padding: 2px 8px; border-radius: 12px; font-size: 0.75rem; font-weight: 600; display: inline-block; }
      .muted { color: #64748b; font-size: 0.75rem; }
      .op-container { border: 1px solid #e2e8f0; border-radius: 0.75rem; padding: 2rem; margin-bottom: 2.5rem; }
"""


def _text(value: Any, default: str = '') -> str:
    if value is None:
        return default
    return escape(value if isinstance(value, str) else str(value), quote=True)


def _json_attr(value: Any) -> str:
    return escape(json.dumps(value, ensure_ascii=False, default=str), quote=True)


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _render_path_cell(path: str) -> str:
    parts = path.split('.')
    if len(parts) > 1:
        display = f'<span class="muted">{_text(".".join(parts[:-1]))}.</span><code>{_text(parts[-1])}</code>'
    else:
        display = f'<code>{_text(path)}</code>'
    return f'<td class="field-path" data-raw-path="{_text(path)}">{display}</td>'


def _render_row(row: PathRow, options: ConversionOptions) -> str:
    desc = f'<span class="desc-text">{_text(row.description)}</span>' if row.description else '-'
    if row.enum:
        desc += (
            f'<br/><span class="field-enum muted" data-enum="{_json_attr(row.enum)}">'
            f'Allowed: {_text(", ".join(row.enum))}</span>'
        )
    if options.include_examples and row.example is not None:
        desc += (
            f'<br/><span class="field-example muted" data-example="{_json_attr(row.example)}">'
            f'Example: {_text(row.example)}</span>'
        )

    row_attrs = f' data-ref="{_text(row.ref)}"' if row.ref else ''
    type_display = _text(row.type) + (' <span class="muted">(Ref)</span>' if row.ref else '')

    return (
        f'<tr{row_attrs}>'
        f'{_render_path_cell(row.path)}'
        f'<td class="field-type" data-raw-type="{_text(row.type)}">{type_display}</td>'
        f'<td class="field-required">{"Yes" if row.required else "No"}</td>'
        f'<td class="field-desc">{desc}</td>'
        f'</tr>'
    )


def render_schema_table(
    schema: Any,
    registry: ComponentRegistry,
    title: str = 'Properties',
    options: Optional[ConversionOptions] = None,
    visited: FrozenSet[str] = frozenset(),
) -> str:
    """One schema container: optional title with ref badge, then the row table."""
    if schema is None:
        return ''
    options = options or ConversionOptions()

    top_level_ref = schema.get('$ref') if isinstance(schema, Mapping) else None
    rows = flatten_schema(node_from_dict(schema), registry, visited=visited)

    container_attrs = f' data-schema-ref="{_text(top_level_ref)}"' if isinstance(top_level_ref, str) else ''
    html = f'<div class="schema-container"{container_attrs}>'
    if title:
        title_html = _text(title)
        if isinstance(top_level_ref, str):
            title_html += f' <span class="badge">Ref: {_text(ref_name(top_level_ref))}</span>'
        html += f'<h5>{title_html}</h5>'

    html += (
        '<table class="data-table"><thead><tr>'
        '<th>JSON Path</th><th>Type</th><th>Required</th><th>Description</th>'
        '</tr></thead><tbody>'
    )
    html += ''.join(_render_row(row, options) for row in rows)
    html += '</tbody></table></div>'
    return html


def _render_info(spec: Mapping[str, Any]) -> str:
    info = _mapping(spec.get('info'))
    title = info.get('title') or 'API Documentation'
    html = f'<h1 class="doc-title">{_text(title)}</h1>'
    if info.get('version') is not None:
        html += f'<p class="doc-version"><strong>Version:</strong> {_text(info.get("version"))}</p>'
    if info.get('description'):
        html += f'<p class="doc-desc">{_text(info.get("description"))}</p>'
    html += '<h2>Executive Summary</h2>'
    html += f'<p>This document outlines the technical specifications for the {_text(title)}.</p>'
    return html


def _render_servers(spec: Mapping[str, Any]) -> str:
    servers = [s for s in _list(spec.get('servers')) if isinstance(s, Mapping)]
    if not servers:
        return ''
    html = '<h3>Servers</h3><div class="servers-section"><table>'
    html += '<thead><tr><th>URL</th><th>Description</th></tr></thead><tbody>'
    for srv in servers:
        html += (
            f'<tr><td class="server-url"><code>{_text(srv.get("url"))}</code></td>'
            f'<td class="server-desc">{_text(srv.get("description") or "-")}</td></tr>'
        )
    html += '</tbody></table></div>'
    return html


def _render_security_and_tags(spec: Mapping[str, Any], options: ConversionOptions) -> str:
    html = ''
    security = _list(spec.get('security'))
    if options.include_authentication and security:
        html += '<div class="security-section"><h3>Global Security</h3><ul>'
        # One item per requirement; the schemes inside it are all required together.
        for requirement in security:
            schemes = {str(name): [str(s) for s in _list(scopes)] for name, scopes in _mapping(requirement).items()}
            parts = [
                f'<strong>{_text(name)}</strong>' + (f' ({_text(", ".join(scopes))})' if scopes else '')
                for name, scopes in schemes.items()
            ]
            html += f'<li class="sec-requirement" data-raw="{_json_attr(schemes)}">{" + ".join(parts) or "None"}</li>'
        html += '</ul></div>'

    tags = [t for t in _list(spec.get('tags')) if isinstance(t, Mapping)]
    if tags:
        html += '<div class="tags-section"><h3>Tags</h3><ul>'
        for tag in tags:
            html += (
                f'<li data-tag-name="{_text(tag.get("name"))}"><strong>{_text(tag.get("name"))}</strong>: '
                f'<span class="tag-desc">{_text(tag.get("description"))}</span></li>'
            )
        html += '</ul></div>'
    return html


def _render_parameters(parameters: List[Any]) -> str:
    params = [p for p in parameters if isinstance(p, Mapping)]
    if not params:
        return ''
    html = '<h4>Parameters</h4><table class="params-table"><thead><tr>'
    html += '<th>Name</th><th>In</th><th>Required</th><th>Type</th><th>Description</th></tr></thead><tbody>'
    for param in params:
        param_type = _mapping(param.get('schema')).get('type') or 'string'
        html += (
            '<tr>'
            f'<td class="param-name"><code>{_text(param.get("name"))}</code></td>'
            f'<td class="param-in">{_text(param.get("in"))}</td>'
            f'<td class="param-req">{"Yes" if param.get("required") else "No"}</td>'
            f'<td class="param-type">{_text(param_type)}</td>'
            f'<td class="param-desc">{_text(param.get("description") or "-")}</td>'
            '</tr>'
        )
    html += '</tbody></table>'
    return html


def _render_content_blocks(
    content: Mapping[str, Any],
    css_class: str,
    title: str,
    registry: ComponentRegistry,
    options: ConversionOptions,
) -> str:
    html = ''
    for content_type, media in content.items():
        html += f'<div class="{css_class}">'
        html += f'<p><strong>Content-Type:</strong> <code class="content-type">{_text(content_type)}</code></p>'
        html += render_schema_table(_mapping(media).get('schema'), registry, title, options)
        html += '</div>'
    return html


def _render_responses(responses: Mapping[str, Any], registry: ComponentRegistry, options: ConversionOptions) -> str:
    if not responses:
        return ''
    html = '<h4>Responses</h4>'
    for code, raw in responses.items():
        response = _mapping(raw)
        html += f'<div class="resp-container" data-status-code="{_text(code)}">'
        html += (
            f'<p><span class="resp-code">HTTP {_text(code)}</span> - '
            f'<span class="resp-desc">{_text(response.get("description"))}</span></p>'
        )

        headers = _mapping(response.get('headers'))
        if headers:
            html += '<h5>Response Headers</h5><table class="resp-headers-table"><thead><tr>'
            html += '<th>Header Name</th><th>Type</th><th>Description</th></tr></thead><tbody>'
            for name, header in headers.items():
                header = _mapping(header)
                header_type = _mapping(header.get('schema')).get('type') or 'string'
                html += (
                    f'<tr><td class="header-name">{_text(name)}</td>'
                    f'<td class="header-type">{_text(header_type)}</td>'
                    f'<td class="header-desc">{_text(header.get("description") or "-")}</td></tr>'
                )
            html += '</tbody></table>'

        html += _render_content_blocks(
            _mapping(response.get('content')), 'resp-body-content', 'Response Data Structure', registry, options
        )
        html += '</div>'
    return html


def _render_operation(
    path: str,
    method: str,
    op: Mapping[str, Any],
    registry: ComponentRegistry,
    options: ConversionOptions,
) -> str:
    tags = [str(t) for t in _list(op.get('tags'))]
    op_attrs = f'data-operation-id="{_text(op.get("operationId"))}" data-tags="{_json_attr(tags)}"'
    color = _METHOD_COLORS.get(method, _DEFAULT_METHOD_COLOR)

    html = f'<div class="op-container" {op_attrs}>'
    html += (
        f'<h3 class="op-header"><span class="op-method" style="background-color: {color}; color: white;">'
        f'{_text(method)}</span> <span class="op-path">{_text(path)}</span></h3>'
    )

    html += '<div class="op-meta">'
    if op.get('operationId'):
        html += f'<span><strong>ID:</strong> <span class="op-id">{_text(op.get("operationId"))}</span></span> '
    if tags:
        html += '<span><strong>Tags:</strong> ' + ' '.join(f'<span class="badge">{_text(t)}</span>' for t in tags) + '</span> '
    security = op.get('security')
    if options.include_authentication and isinstance(security, list):
        names = ', '.join(str(name) for req in security for name in _mapping(req).keys())
        html += (
            f'<span><strong>Security:</strong> <span class="op-security" data-raw="{_json_attr(security)}">'
            f'{_text(names)}</span></span>'
        )
    html += '</div>'

    if op.get('summary'):
        html += f'<p><strong>Summary:</strong> <span class="op-summary">{_text(op.get("summary"))}</span></p>'
    if op.get('description'):
        html += f'<p class="op-desc">{_text(op.get("description"))}</p>'

    html += _render_parameters(_list(op.get('parameters')))

    body_content = _mapping(_mapping(op.get('requestBody')).get('content'))
    if body_content:
        html += '<h4 class="req-body-title">Request Body</h4>'
        html += _render_content_blocks(body_content, 'req-body-content', 'Body Schema', registry, options)

    html += _render_responses(_mapping(op.get('responses')), registry, options)
    html += '</div>'
    return html


def _render_components(schemas: Mapping[str, Any], registry: ComponentRegistry, options: ConversionOptions) -> str:
    if not schemas:
        return ''
    html = '<h2>Data Models</h2><div class="components-section">'
    for name, schema in schemas.items():
        html += f'<div class="component-def" data-component-name="{_text(name)}">'
        html += f'<h3 id="model-{_text(name)}">{_text(name)}</h3>'
        html += render_schema_table(
            schema if schema is not None else {}, registry, 'Properties', options, frozenset({str(name)})
        )
        html += '</div>'
    html += '</div>'
    return html


def render_spec_document(spec: Mapping[str, Any], options: Optional[ConversionOptions] = None) -> str:
    """Project a parsed spec into a standalone HTML document."""
    options = options or ConversionOptions()
    registry = build_registry(spec)
    title = _mapping(spec.get('info')).get('title') or 'API Documentation'

    parts: List[str] = [
        '<!DOCTYPE html>\n<html>\n<head>\n<meta charset="utf-8">\n',
        f'<title>{_text(title)}</title>\n<style>{_PAGE_STYLE}</style>\n</head>\n<body>\n<div class="doc-content">',
        _render_info(spec),
        _render_servers(spec),
        _render_security_and_tags(spec, options),
    ]

    paths = _mapping(spec.get('paths'))
    if paths:
        parts.append('<h2>Endpoints</h2>')
        for path, item in paths.items():
            for method, op in _mapping(item).items():
                if str(method).lower() not in HTTP_METHODS:
                    continue
                parts.append(_render_operation(str(path), str(method).lower(), _mapping(op), registry, options))

    schemas = _mapping(_mapping(spec.get('components')).get('schemas'))
    parts.append(_render_components(schemas, registry, options))
    parts.append('</div>\n</body>\n</html>')
    return ''.join(parts)
