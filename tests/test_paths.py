from __future__ import annotations

from spec_doc_converter.paths import (
    ITEMS,
    KEY,
    MAP,
    PathSegment,
    array_item_path,
    child_path,
    map_value_path,
    split_row_path,
    starts_with_segments,
)


def test_split_member_and_array_segments():
    assert split_row_path('tags[]') == [PathSegment(KEY, 'tags'), PathSegment(ITEMS)]
    assert split_row_path('owner.pets[].name') == [
        PathSegment(KEY, 'owner'),
        PathSegment(KEY, 'pets'),
        PathSegment(ITEMS),
        PathSegment(KEY, 'name'),
    ]


def test_split_nested_arrays_and_root_array():
    assert split_row_path('matrix[][]') == [PathSegment(KEY, 'matrix'), PathSegment(ITEMS), PathSegment(ITEMS)]
    assert split_row_path('[]') == [PathSegment(ITEMS)]
    assert split_row_path('[].id') == [PathSegment(ITEMS), PathSegment(KEY, 'id')]


def test_split_map_segment_and_alias():
    assert split_row_path('meta.<key>') == [PathSegment(KEY, 'meta'), PathSegment(MAP)]
    assert split_row_path('meta.*') == [PathSegment(KEY, 'meta'), PathSegment(MAP)]
    assert split_row_path('<key>[]') == [PathSegment(MAP), PathSegment(ITEMS)]


def test_empty_path_is_root():
    assert split_row_path('') == []
    assert split_row_path(None) == []


def test_escaped_names_stay_single_segments():
    dotted = child_path('', 'gpt-3.5-turbo')
    assert dotted == 'gpt-3\\.5-turbo'
    assert split_row_path(dotted) == [PathSegment(KEY, 'gpt-3.5-turbo')]

    literal_wildcard = child_path('', '<key>')
    assert split_row_path(literal_wildcard) == [PathSegment(KEY, '<key>')]

    brackets = child_path('data', 'list[]')
    assert split_row_path(brackets) == [PathSegment(KEY, 'data'), PathSegment(KEY, 'list[]')]


def test_prefix_check_compares_whole_segments():
    user = split_row_path('user')
    assert starts_with_segments(split_row_path('user.name'), user)
    assert starts_with_segments(split_row_path('user[]'), user)
    assert starts_with_segments(split_row_path('user'), user)
    assert not starts_with_segments(split_row_path('user2'), user)
    assert not starts_with_segments(split_row_path('user2.name'), user)
    assert starts_with_segments(split_row_path('anything'), [])


def test_built_paths_parse_back_to_their_segments():
    path = array_item_path(child_path(map_value_path(child_path('', 'a.b')), 'grid'))
    assert path == 'a\\.b.<key>.grid[]'
    assert split_row_path(path) == [
        PathSegment(KEY, 'a.b'),
        PathSegment(MAP),
        PathSegment(KEY, 'grid'),
        PathSegment(ITEMS),
    ]
