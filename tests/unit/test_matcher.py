from __future__ import annotations

import pytest

from sheetsync.mapping.matcher import MatchRule, MatchSettings, match_header, resolve_header
from sheetsync.mapping.normalizer import normalize_header
from sheetsync.models.schema import Schema


def test_exact_key(instructor_schema):
    result = resolve_header("utorid", instructor_schema)
    assert result is not None
    assert result.key == "utorid"
    assert result.rule is MatchRule.EXACT


def test_alias(instructor_schema):
    result = resolve_header("Surname", instructor_schema)
    assert result is not None
    assert result.key == "last_name"
    assert result.rule is MatchRule.ALIAS


@pytest.mark.parametrize(
    "header,expected",
    [
        ("LAST NAME", "last_name"),
        ("First  Name", "first_name"),
        ("firstname", "first_name"),
        ("LastName", "last_name"),
        ("Family-Name", "last_name"),
        ("E-mail", "email"),
    ],
)
def test_normalized_exact(instructor_schema, header, expected):
    result = resolve_header(header, instructor_schema)
    assert result is not None
    assert result.key == expected
    assert result.rule is MatchRule.NORMALIZED


@pytest.mark.parametrize("key", ["first_name", "last_name", "utorid", "email"])
def test_normalized_equal_header_always_maps_to_key(instructor_schema, key):
    for header in (key.upper(), key.replace("_", " ").title(), f" {key} "):
        assert normalize_header(header) == normalize_header(key)
        assert match_header(header, instructor_schema) == key


@pytest.mark.parametrize(
    "header,expected,distance",
    [
        ("LAST NAMEE", "last_name", 1),
        ("Frist Name", "first_name", 2),
        ("emal", "email", 1),
        ("utorld", "utorid", 1),
    ],
)
def test_fuzzy_matches_close_headers(instructor_schema, header, expected, distance):
    result = resolve_header(header, instructor_schema)
    assert result is not None
    assert result.key == expected
    assert result.rule is MatchRule.FUZZY
    assert result.distance == distance


@pytest.mark.parametrize("header", ["name", "Department", "emial", "", "   ", "#"])
def test_dissimilar_headers_do_not_match(instructor_schema, header):
    assert match_header(header, instructor_schema) is None


def test_fuzzy_tie_prefers_lexicographically_first_key():
    schema = Schema(base_name="codes", keys=("code_b", "code_a"), primary_key="code_a")
    # "codec" は codeb / codea のどちらとも距離 1
    assert match_header("codec", schema) == "code_a"


def test_settings_can_disable_fuzzy_matching(instructor_schema):
    strict = MatchSettings(max_distance=0)
    assert match_header("LAST NAMEE", instructor_schema, strict) is None
    # 正規化一致は閾値に関係なく有効
    assert match_header("LAST NAME", instructor_schema, strict) == "last_name"


def test_short_candidates_require_exact_match():
    schema = Schema(base_name="t", keys=("abc", "longer_key"), primary_key="abc")
    assert match_header("abd", schema) is None
    assert match_header("ABC", schema) == "abc"


@pytest.mark.parametrize("kwargs", [{"max_distance": -1}, {"chars_per_edit": 0}])
def test_invalid_settings_rejected(kwargs):
    with pytest.raises(ValueError):
        MatchSettings(**kwargs)


def test_numeric_header_never_crashes(instructor_schema):
    assert match_header(2024, instructor_schema) is None
