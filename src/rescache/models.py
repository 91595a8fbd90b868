"""Canonical Pydantic models shared across rescache modules.

The models fall into two groups:

**Request identity** -- :class:`HTTPMethod` and :class:`RequestDescriptor`,
the immutable description of a request from which the cache key is
derived. A descriptor is never stored.

**Configuration models** -- :class:`CacheConfig`, serialised as JSON in the
user's config directory and loaded by :func:`rescache.config.load_config`.
"""

from __future__ import annotations

import enum
from typing import Any, Literal, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator


class HTTPMethod(str, enum.Enum):
    """HTTP methods a request descriptor may carry.

    Values are lower-case; :class:`RequestDescriptor` accepts any casing.
    """

    GET = "get"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"
    HEAD = "head"
    OPTIONS = "options"
    TRACE = "trace"


class RequestDescriptor(BaseModel):
    """The identity of a request, used only to derive a cache key.

    Header names are lower-cased so that ``Accept`` and ``accept`` address
    the same entry. The URL must be absolute and is normalised through
    :class:`httpx.URL` (lower-case scheme and host, ``/`` for an empty path).

    Example::

        RequestDescriptor(
            method="GET",
            url="https://api.example.com/users",
            headers={"Accept": "application/json"},
        )
    """

    model_config = ConfigDict(frozen=True)

    method: HTTPMethod = HTTPMethod.GET
    url: str
    headers: dict[str, str] = Field(default_factory=dict)

    @field_validator("method", mode="before")
    @classmethod
    def _lower_method(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.lower()
        return value

    @field_validator("url", mode="before")
    @classmethod
    def _normalize_url(cls, value: Any) -> Any:
        if isinstance(value, httpx.URL):
            value = str(value)
        if not isinstance(value, str):
            return value
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as exc:
            raise ValueError(f"invalid URL {value!r}: {exc}") from exc
        if not url.scheme or not url.host:
            raise ValueError(f"URL must be absolute, got {value!r}")
        return str(url)

    @field_validator("headers", mode="before")
    @classmethod
    def _lower_header_names(cls, value: Any) -> Any:
        if isinstance(value, httpx.Headers):
            value = dict(value.items())
        if isinstance(value, dict):
            return {
                (k.lower() if isinstance(k, str) else k): v for k, v in value.items()
            }
        return value

    @classmethod
    def from_httpx(cls, request: httpx.Request) -> RequestDescriptor:
        """Build a descriptor from an outgoing :class:`httpx.Request`.

        Repeated header names are collapsed, the last value winning.
        """
        headers: dict[str, str] = {}
        for name, value in request.headers.multi_items():
            headers[name.lower()] = value
        return cls(method=request.method, url=str(request.url), headers=headers)


class CacheConfig(BaseModel):
    """Cache settings persisted at ``~/.config/rescache/config.json``.

    Loaded by :func:`~rescache.config.load_config`, which layers the
    ``RESCACHE_*`` environment variables on top of the file. Changing
    ``codec`` makes every existing entry unreachable because the key hash
    is computed over the codec's encoding of the request.
    """

    codec: Literal["json", "pickle"] = Field(
        default="json", description="Serialisation codec: json, pickle"
    )
    backend: Literal["memory", "disk"] = Field(
        default="disk", description="Storage backend: memory, disk"
    )
    directory: Optional[str] = Field(
        default=None,
        description="Disk backend directory (defaults to the XDG cache dir)",
    )
    shared: bool = Field(
        default=True,
        description="Evaluate responses as a shared cache (honours s-maxage and private)",
    )
