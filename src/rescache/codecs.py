"""Pluggable serialisation codecs for cache keys and stored entries.

A codec turns a tree of primitives (dicts, lists, strings, numbers,
booleans, ``None``) into bytes and back. The same codec is used both for
the stored response payload and for the key derivation input, so swapping
codecs changes the key of every entry: data written under one codec is
unreachable, not corrupted, under another.

Two codecs ship with the package:

* :class:`JSONCodec` (``"json"``) -- the default; textual and portable.
* :class:`PickleCodec` (``"pickle"``) -- Python-native binary; faster for
  large bodies but only readable by Python processes.

Use :func:`get_codec` to resolve a codec by its configured name.
"""

from __future__ import annotations

import io
import json
import pickle
from abc import ABC, abstractmethod
from typing import Any

from rescache.exceptions import ConfigError, DecodingError, EncodingError


class Codec(ABC):
    """Abstract base class for serialisation codecs.

    Implementations must be deterministic: equal values always dump to
    equal bytes, otherwise cache keys would drift between processes.
    """

    name: str = ""

    @abstractmethod
    def dump(self, value: Any) -> bytes:
        """Serialise *value* to bytes.

        Raises:
            EncodingError: If *value* contains something the codec cannot
                represent.
        """

    @abstractmethod
    def load(self, data: bytes) -> Any:
        """Deserialise *data* produced by :meth:`dump`.

        Raises:
            DecodingError: If *data* is corrupt or was written by another
                codec.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class JSONCodec(Codec):
    """Compact, key-sorted UTF-8 JSON."""

    name = "json"

    def dump(self, value: Any) -> bytes:
        try:
            text = json.dumps(
                value,
                separators=(",", ":"),
                sort_keys=True,
                ensure_ascii=False,
                allow_nan=False,
            )
        except (TypeError, ValueError) as exc:
            raise EncodingError(f"Cannot encode value as JSON: {exc}") from exc
        return text.encode("utf-8")

    def load(self, data: bytes) -> Any:
        try:
            return json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise DecodingError(f"Cannot decode JSON entry: {exc}") from exc


class PickleCodec(Codec):
    """Python pickle with a pinned protocol.

    The protocol is fixed rather than ``pickle.DEFAULT_PROTOCOL`` so that
    keys stay stable across interpreter upgrades.
    """

    name = "pickle"
    protocol = 4

    def dump(self, value: Any) -> bytes:
        buffer = io.BytesIO()
        pickler = pickle.Pickler(buffer, protocol=self.protocol)
        # No memo: equal values must encode equally whether or not they share objects.
        pickler.fast = True
        try:
            pickler.dump(value)
        except (pickle.PicklingError, TypeError, AttributeError, ValueError) as exc:
            raise EncodingError(f"Cannot pickle value: {exc}") from exc
        return buffer.getvalue()

    def load(self, data: bytes) -> Any:
        try:
            return pickle.loads(data)
        except Exception as exc:
            raise DecodingError(f"Cannot unpickle entry: {exc}") from exc


_CODECS: dict[str, type[Codec]] = {
    JSONCodec.name: JSONCodec,
    PickleCodec.name: PickleCodec,
}

DEFAULT_CODEC = JSONCodec.name
"""Name of the codec used when none is configured."""


def get_codec(name: str = DEFAULT_CODEC) -> Codec:
    """Return a new codec instance for *name*.

    Raises:
        ConfigError: If *name* is not a known codec.
    """
    try:
        codec_cls = _CODECS[name]
    except KeyError:
        available = ", ".join(sorted(_CODECS))
        raise ConfigError(f"Unknown codec '{name}' (available: {available})") from None
    return codec_cls()


def available_codecs() -> list[str]:
    """Return the names of all registered codecs, sorted."""
    return sorted(_CODECS)
