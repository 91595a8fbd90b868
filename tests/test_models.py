"""Tests for rescache.models -- request descriptors and config."""

from __future__ import annotations

import httpx
import pytest
from pydantic import ValidationError

from rescache.models import CacheConfig, HTTPMethod, RequestDescriptor


class TestRequestDescriptor:
    def test_method_is_case_insensitive(self) -> None:
        assert RequestDescriptor(method="POST", url="http://foo.bar/").method is HTTPMethod.POST
        assert RequestDescriptor(method="post", url="http://foo.bar/").method is HTTPMethod.POST

    def test_default_method_is_get(self) -> None:
        assert RequestDescriptor(url="http://foo.bar/").method is HTTPMethod.GET

    def test_unknown_method_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RequestDescriptor(method="FETCH", url="http://foo.bar/")

    def test_url_is_normalised(self) -> None:
        assert RequestDescriptor(url="HTTP://Foo.Bar/").url == "http://foo.bar/"

    @pytest.mark.parametrize("url", ["/relative/path", "foo.bar", ""])
    def test_relative_url_rejected(self, url: str) -> None:
        with pytest.raises(ValidationError):
            RequestDescriptor(url=url)

    def test_header_names_lowercased(self) -> None:
        request = RequestDescriptor(url="http://foo.bar/", headers={"Accept": "text/html"})
        assert request.headers == {"accept": "text/html"}

    def test_non_string_header_value_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RequestDescriptor(url="http://foo.bar/", headers={"X-Count": 3})

    def test_frozen(self) -> None:
        request = RequestDescriptor(url="http://foo.bar/")
        with pytest.raises(ValidationError):
            request.url = "http://other/"  # type: ignore[misc]

    def test_from_httpx(self) -> None:
        httpx_request = httpx.Request(
            "GET",
            "https://api.example.com/users?page=2",
            headers=[("Accept", "application/json"), ("X-Tag", "a"), ("X-Tag", "b")],
        )
        request = RequestDescriptor.from_httpx(httpx_request)
        assert request.method is HTTPMethod.GET
        assert request.url == "https://api.example.com/users?page=2"
        assert request.headers["accept"] == "application/json"
        assert request.headers["x-tag"] == "b"
        assert request.headers["host"] == "api.example.com"


class TestCacheConfig:
    def test_defaults(self) -> None:
        config = CacheConfig()
        assert config.codec == "json"
        assert config.backend == "disk"
        assert config.directory is None
        assert config.shared is True

    def test_unknown_codec_rejected(self) -> None:
        with pytest.raises(ValidationError):
            CacheConfig(codec="yaml")
