"""Tests for the JSON and pickle codecs."""

from __future__ import annotations

import pytest

from rescache.codecs import (
    DEFAULT_CODEC,
    JSONCodec,
    PickleCodec,
    available_codecs,
    get_codec,
)
from rescache.exceptions import ConfigError, DecodingError, EncodingError

_TREE = {
    "status": 200,
    "headers": {"content-type": "application/json", "etag": '"abc"'},
    "body": "aGVsbG8=",
    "max_age": None,
    "flags": [True, False, 1.5, "ü"],
}


class TestJSONCodec:
    def test_round_trip(self) -> None:
        codec = JSONCodec()
        assert codec.load(codec.dump(_TREE)) == _TREE

    def test_output_is_compact_and_key_sorted(self) -> None:
        assert JSONCodec().dump({"b": 1, "a": [1, 2]}) == b'{"a":[1,2],"b":1}'

    def test_non_ascii_is_utf8(self) -> None:
        assert JSONCodec().dump(["ü"]) == '["ü"]'.encode("utf-8")

    def test_non_primitive_raises_encoding_error(self) -> None:
        with pytest.raises(EncodingError):
            JSONCodec().dump({"value": object()})

    def test_nan_raises_encoding_error(self) -> None:
        with pytest.raises(EncodingError):
            JSONCodec().dump([float("nan")])

    @pytest.mark.parametrize("data", [b"{not json", b"\xff\xfe", b""])
    def test_corrupt_bytes_raise_decoding_error(self, data: bytes) -> None:
        with pytest.raises(DecodingError):
            JSONCodec().load(data)


class TestPickleCodec:
    def test_round_trip(self) -> None:
        codec = PickleCodec()
        assert codec.load(codec.dump(_TREE)) == _TREE

    def test_dump_is_deterministic(self) -> None:
        codec = PickleCodec()
        assert codec.dump([["method", "get"]]) == codec.dump([["method", "get"]])

    def test_unpicklable_raises_encoding_error(self) -> None:
        with pytest.raises(EncodingError):
            PickleCodec().dump({"fn": lambda: None})

    @pytest.mark.parametrize("data", [b"\x00\x01garbage", b"", b"c__nope__\nx\n."])
    def test_corrupt_bytes_raise_decoding_error(self, data: bytes) -> None:
        with pytest.raises(DecodingError):
            PickleCodec().load(data)


class TestRegistry:
    def test_default_is_json(self) -> None:
        assert DEFAULT_CODEC == "json"
        assert isinstance(get_codec(), JSONCodec)

    def test_get_pickle(self) -> None:
        assert isinstance(get_codec("pickle"), PickleCodec)

    def test_unknown_codec_raises_config_error(self) -> None:
        with pytest.raises(ConfigError, match="yaml"):
            get_codec("yaml")

    def test_available_codecs(self) -> None:
        assert available_codecs() == ["json", "pickle"]

    def test_get_codec_returns_new_instances(self) -> None:
        assert get_codec("json") is not get_codec("json")
