"""Tests for Cache-Control parsing."""

from __future__ import annotations

import pytest

from rescache.cache_control import CacheControl


class TestParse:
    def test_flags_and_values(self) -> None:
        cc = CacheControl.parse("public, max-age=40, s-maxage=10, must-revalidate")
        assert cc.public
        assert not cc.private
        assert cc.must_revalidate
        assert cc.max_age == 40
        assert cc.shared_max_age == 10

    def test_names_are_case_insensitive(self) -> None:
        cc = CacheControl.parse("No-Store, MAX-AGE=5")
        assert cc.no_store
        assert cc.max_age == 5

    def test_quoted_values(self) -> None:
        assert CacheControl.parse('max-age="30"').max_age == 30

    @pytest.mark.parametrize("header", [None, "", " , ,"])
    def test_empty_header(self, header) -> None:
        cc = CacheControl.parse(header)
        assert not cc
        assert cc.max_age is None

    @pytest.mark.parametrize("value", ["abc", "-1", "1.5", "", "\u00b2"])
    def test_malformed_max_age_is_absent(self, value: str) -> None:
        assert CacheControl.parse(f"max-age={value}").max_age is None

    def test_flags(self) -> None:
        cc = CacheControl.parse("private, no-cache, proxy-revalidate")
        assert cc.private
        assert cc.no_cache
        assert cc.proxy_revalidate
        assert not cc.no_store


class TestNormalized:
    def test_reduces_lifetimes(self) -> None:
        cc = CacheControl.parse("public, max-age=40, s-maxage=20").normalized(6)
        assert cc.max_age == 34
        assert cc.shared_max_age == 14
        assert str(cc) == "public, max-age=34, s-maxage=14"

    def test_floors_at_zero(self) -> None:
        assert CacheControl.parse("max-age=3").normalized(10).max_age == 0

    def test_original_is_unchanged(self) -> None:
        cc = CacheControl.parse("max-age=40")
        cc.normalized(6)
        assert cc.max_age == 40

    def test_equality(self) -> None:
        assert CacheControl.parse("max-age=1, public") == CacheControl.parse("MAX-AGE=1,public")
