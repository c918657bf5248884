from __future__ import annotations

import io
import json

import pytest
import yaml

from spec_doc_converter.config import SpecFormat
from spec_doc_converter.io_utils import (
    INVALID_FORMAT_MESSAGE,
    SpecParseError,
    parse_spec_text,
    read_spec_content,
    serialize_spec,
)


def test_parse_json_and_yaml():
    assert parse_spec_text('{"openapi": "3.0.0"}') == {'openapi': '3.0.0'}
    assert parse_spec_text('openapi: 3.0.0\ninfo:\n  title: T\n') == {'openapi': '3.0.0', 'info': {'title': 'T'}}
    assert parse_spec_text(b'{"a": 1}') == {'a': 1}


@pytest.mark.parametrize('text', ['', '   ', 'plain words', '[1, 2]', 'key: [unclosed'])
def test_parse_rejects_non_mapping_documents(text):
    with pytest.raises(SpecParseError) as excinfo:
        parse_spec_text(text)
    assert str(excinfo.value) == INVALID_FORMAT_MESSAGE


def test_parse_rejects_undecodable_bytes():
    with pytest.raises(SpecParseError) as excinfo:
        parse_spec_text(b'\xff\xfe{"a": 1}')
    assert str(excinfo.value) == INVALID_FORMAT_MESSAGE
    assert isinstance(excinfo.value.__cause__, UnicodeDecodeError)


def test_serialize_json_keeps_unicode():
    text = serialize_spec({'title': 'Café'}, SpecFormat.JSON)
    assert 'Café' in text
    assert json.loads(text) == {'title': 'Café'}


def test_serialize_yaml_keeps_key_order():
    text = serialize_spec({'openapi': '3.0.0', 'info': {'title': 'T'}, 'paths': {}})
    assert text.index('openapi') < text.index('info') < text.index('paths')
    assert yaml.safe_load(text) == {'openapi': '3.0.0', 'info': {'title': 'T'}, 'paths': {}}


def test_read_spec_content_from_stream_and_path(tmp_path):
    assert read_spec_content(io.BytesIO(b'{"a": 1}')) == '{"a": 1}'
    target = tmp_path / 'spec.yaml'
    target.write_text('a: 1\n', encoding='utf-8')
    assert read_spec_content(str(target)) == 'a: 1\n'


def test_read_spec_content_requires_a_file():
    with pytest.raises(ValueError):
        read_spec_content(None)
