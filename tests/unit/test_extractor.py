# tests/unit/test_extractor.py
"""Tests unitaires : extraction des liens de catégorie."""

from __future__ import annotations

import pytest

from categsync.taxonomy.extractor import extract_slugs, normalize_slug, scan_category_links
from conftest import link


@pytest.mark.parametrize("body", [None, "", "no links here", b"", "/categories/2021/", "category/2021/"])
def test_no_marker_gives_empty_list(body) -> None:
    assert extract_slugs(body) == []


def test_nested_link_yields_parent_then_child() -> None:
    body = f"Report filed. {link('2022', '22-ci-07')}"
    assert extract_slugs(body) == ["2022", "22-ci-07"]


def test_single_segment_link() -> None:
    assert extract_slugs(f"see {link('2021')}") == ["2021"]


def test_dedup_keeps_first_occurrence_order() -> None:
    body = " ".join([link("other-topic"), link("2021", "21-0001-21-01"), link("other-topic"), link("2021")])
    assert extract_slugs(body) == ["other-topic", "2021", "21-0001-21-01"]


def test_normalization_lowercases_and_strips_encoded_quotes() -> None:
    body = "href=%22https://x.org/category/CI-Memo%22 and href=\\\"https://x.org/category/2020\\\""
    assert extract_slugs(body) == ["ci-memo", "2020"]


def test_repeated_slashes_are_collapsed() -> None:
    assert extract_slugs("https://x.org/category//2021///21-ci-02/") == ["2021", "21-ci-02"]


@pytest.mark.parametrize(
    "tail, expected",
    [
        ("2021\" class=x", ["2021"]),
        ("2021' >", ["2021"]),
        ("2021 trailing words", ["2021"]),
        ("2021?paged=2", ["2021"]),
        ("2021#top", ["2021"]),
        ("2021&quot;", ["2021"]),
        ("2021<br>", ["2021"]),
    ],
)
def test_segment_terminators(tail: str, expected: list[str]) -> None:
    assert extract_slugs(f"https://x.org/category/{tail}") == expected


def test_only_first_two_segments_are_candidates() -> None:
    assert extract_slugs("https://x.org/category/2021/21-ci-01/page/2/") == ["2021", "21-ci-01"]


def test_marker_is_case_insensitive() -> None:
    assert extract_slugs("https://x.org/CATEGORY/2019/") == ["2019"]


def test_length_bounds() -> None:
    ok = "a" * 30
    too_long = "b" * 31
    result = scan_category_links(f"/category/{ok}/ /category/{too_long}/")
    assert result.slugs == (ok,)
    assert result.rejected == (too_long,)


@pytest.mark.parametrize("raw", ["foo_bar", "caf%C3%A9", "a%2Fb", "50%", "%ff", "dots.here"])
def test_invalid_characters_are_rejected(raw: str) -> None:
    assert normalize_slug(raw) is None
    result = scan_category_links(f"/category/{raw}/")
    assert result.slugs == ()
    assert result.rejected


def test_rejected_parent_does_not_hide_valid_child() -> None:
    result = scan_category_links("/category/bad_parent/22-ci-15/")
    assert result.slugs == ("22-ci-15",)
    assert result.rejected == ("bad_parent",)


def test_bytes_body_is_decoded() -> None:
    body = "x /category/2023/23-ci-01/ \xe9".encode("utf-8") + b"\xff"
    assert extract_slugs(body) == ["2023", "23-ci-01"]


def test_custom_marker_and_length() -> None:
    assert extract_slugs("/topics/abc/", marker="/topics/", max_length=2) == []
    assert extract_slugs("/topics/ab/", marker="/topics/", max_length=2) == ["ab"]
