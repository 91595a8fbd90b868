"""Cached response records and HTTP freshness evaluation.

:class:`CachedResponse` is the unit persisted by
:class:`~rescache.storage.Storage`. It is immutable: every freshness query
(:meth:`~CachedResponse.age`, :meth:`~CachedResponse.ttl`,
:meth:`~CachedResponse.is_fresh`) is a pure function of its headers and the
current time.

Freshness follows RFC 7234 section 4.2:

* **Lifetime** (``max_age``) comes from ``s-maxage`` (shared caches only),
  then ``max-age``, then ``Expires`` measured from the moment the record
  was constructed. Without any of them the record is never fresh.
* **Age** is the corrected initial age, ``max(received_at - Date, Age)``,
  plus the time the record has been resident since ``received_at``.

Before a record is stored, :meth:`CachedResponse.to_payload` normalises
it: a non-zero ``Age`` header is subtracted from the lifetime, the ``Age``
header is dropped and ``Cache-Control`` is rewritten, so that a rehydrated
record tracks elapsed time from its ``Date`` alone. Malformed ``Date``,
``Expires``, ``Age`` or ``Cache-Control`` values are treated as absent and
never raise.
"""

from __future__ import annotations

import base64
import binascii
import time
from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Any, Callable, Mapping, Optional, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from rescache.cache_control import CacheControl
from rescache.exceptions import DecodingError

Clock = Callable[[], float]

CACHEABLE_STATUS_CODES = frozenset({200, 203, 300, 301, 302, 307, 404, 410})
"""Status codes a cache may store without explicit freshness information."""

# Headers describing the wire encoding of the body; the record keeps the
# decoded body, so these would be wrong after a round trip.
_TRANSFER_HEADERS = ("content-encoding", "content-length", "transfer-encoding")


def parse_http_date(value: Optional[str]) -> Optional[int]:
    """Parse an HTTP-date into epoch seconds, or ``None`` when malformed."""
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


def format_http_date(timestamp: float) -> str:
    """Format epoch seconds as an RFC 7231 HTTP-date (``GMT``)."""
    return format_datetime(datetime.fromtimestamp(int(timestamp), tz=timezone.utc), usegmt=True)


def parse_age(value: Optional[str]) -> int:
    """Parse an ``Age`` header value; anything but a non-negative integer is 0."""
    if value is None:
        return 0
    value = str(value).strip()
    if not (value.isascii() and value.isdigit()):
        return 0
    return int(value)


class ResponsePayload(BaseModel):
    """Shape of a stored entry, validated when an entry is rehydrated."""

    model_config = ConfigDict(extra="ignore", strict=True)

    status: int
    headers: dict[str, str] = Field(default_factory=dict)
    body: str = ""
    reason_phrase: Optional[str] = None
    max_age: Optional[int] = None


class CachedResponse:
    """An immutable HTTP response record with freshness evaluation.

    Header names are stored lower-cased; when a name is repeated the last
    value wins. A missing or malformed ``Date`` header is replaced with the
    construction time. The body is kept as raw bytes.

    Args:
        status: HTTP status code.
        headers: Response headers (mapping or ``(name, value)`` pairs).
        body: Response body; ``str`` bodies are UTF-8 encoded.
        reason_phrase: Optional status reason phrase.
        max_age: Explicit lifetime in seconds. When ``None`` the lifetime
            is derived from ``Cache-Control`` and ``Expires``. Rehydrated
            records pass the lifetime that was normalised at store time.
        shared: Evaluate as a shared cache (``s-maxage`` applies and
            ``private`` responses are not cacheable).
        clock: Returns the current epoch time; the construction instant
            becomes :attr:`received_at`.

    Example::

        resp = CachedResponse(200, {"Cache-Control": "max-age=60"}, b"ok")
        resp.is_fresh()   # True for the next 60 seconds
    """

    def __init__(
        self,
        status: int = 200,
        headers: Union[Mapping[str, str], list[tuple[str, str]], None] = None,
        body: Union[bytes, str] = b"",
        *,
        reason_phrase: Optional[str] = None,
        max_age: Optional[int] = None,
        shared: bool = True,
        clock: Clock = time.time,
    ) -> None:
        self._status = int(status)
        self._headers = _collapse_headers(headers)
        self._body = body.encode("utf-8") if isinstance(body, str) else bytes(body)
        self._reason_phrase = reason_phrase
        self._shared = shared
        self._clock = clock
        self._received_at = int(clock())
        self._cache_control = CacheControl.parse(self._headers.get("cache-control"))

        date = parse_http_date(self._headers.get("date"))
        if date is None:
            # Stored records always carry a Date to age from.
            date = self._received_at
            self._headers["date"] = format_http_date(date)
        self._date = date
        self._age_value = parse_age(self._headers.get("age"))
        self._max_age = max_age if max_age is not None else self._derive_max_age()

    def _derive_max_age(self) -> Optional[int]:
        cc = self._cache_control
        if self._shared and cc.shared_max_age is not None:
            return cc.shared_max_age
        if cc.max_age is not None:
            return cc.max_age
        expires = parse_http_date(self._headers.get("expires"))
        if expires is not None:
            return max(0, expires - self._received_at)
        return None

    # ------------------------------------------------------------------ #
    # Fields
    # ------------------------------------------------------------------ #

    @property
    def status(self) -> int:
        return self._status

    @property
    def headers(self) -> httpx.Headers:
        """A case-insensitive copy of the response headers."""
        return httpx.Headers(self._headers)

    @property
    def body(self) -> bytes:
        return self._body

    @property
    def reason_phrase(self) -> Optional[str]:
        return self._reason_phrase

    @property
    def shared(self) -> bool:
        return self._shared

    @property
    def received_at(self) -> int:
        """Epoch seconds at which this record was constructed."""
        return self._received_at

    @property
    def date(self) -> int:
        """Epoch seconds from the ``Date`` header, else :attr:`received_at`."""
        return self._date

    @property
    def age_value(self) -> int:
        """The ``Age`` header as received, 0 when absent or malformed."""
        return self._age_value

    @property
    def max_age(self) -> Optional[int]:
        """Freshness lifetime in seconds, ``None`` when the response has none."""
        return self._max_age

    @property
    def cache_control(self) -> CacheControl:
        return self._cache_control

    @property
    def etag(self) -> Optional[str]:
        return self._headers.get("etag")

    @property
    def last_modified(self) -> Optional[int]:
        return parse_http_date(self._headers.get("last-modified"))

    @property
    def is_not_modified(self) -> bool:
        return self._status == 304

    # ------------------------------------------------------------------ #
    # Freshness
    # ------------------------------------------------------------------ #

    def _now(self, now: Optional[float]) -> int:
        return int(self._clock() if now is None else now)

    def age(self, now: Optional[float] = None) -> int:
        """Current age in seconds at *now* (defaults to the clock)."""
        initial = max(self._received_at - self._date, self._age_value, 0)
        return max(0, initial + self._now(now) - self._received_at)

    def ttl(self, now: Optional[float] = None) -> Optional[int]:
        """Remaining lifetime in seconds; may be negative once stale."""
        if self._max_age is None:
            return None
        return self._max_age - self.age(now)

    def is_fresh(self, now: Optional[float] = None) -> bool:
        """Whether the record may be served without contacting the origin."""
        if self._max_age is None or self._cache_control.no_cache:
            return False
        return self.age(now) < self._max_age

    def is_cacheable(self, shared: Optional[bool] = None) -> bool:
        """Whether a cache may store this response at all.

        Requires a cacheable status code, no ``no-store`` (nor ``private``
        for shared caches), and either a validator (``ETag`` or
        ``Last-Modified``) or remaining freshness.
        """
        shared = self._shared if shared is None else shared
        cc = self._cache_control
        if self._status not in CACHEABLE_STATUS_CODES:
            return False
        if cc.no_store or (shared and cc.private):
            return False
        validatable = self.etag is not None or "last-modified" in self._headers
        return validatable or self.is_fresh()

    # ------------------------------------------------------------------ #
    # Serialisation
    # ------------------------------------------------------------------ #

    def to_payload(self) -> dict[str, Any]:
        """Return the normalised, codec-agnostic form of this record.

        A non-zero ``Age`` is folded into ``max_age`` and ``Cache-Control``
        and the ``Age`` header is dropped. The body is base64 encoded so the
        payload is a tree of primitives every codec can represent.
        """
        headers = dict(self._headers)
        max_age = self._max_age
        if self._age_value > 0:
            headers.pop("age", None)
            if max_age is not None:
                max_age = max(0, max_age - self._age_value)
            if self._cache_control:
                headers["cache-control"] = str(self._cache_control.normalized(self._age_value))
        return {
            "status": self._status,
            "headers": headers,
            "body": base64.b64encode(self._body).decode("ascii"),
            "reason_phrase": self._reason_phrase,
            "max_age": max_age,
        }

    @classmethod
    def from_payload(
        cls,
        payload: Any,
        *,
        shared: bool = True,
        clock: Clock = time.time,
    ) -> CachedResponse:
        """Rehydrate a record from :meth:`to_payload` output.

        Raises:
            DecodingError: If *payload* does not have the stored shape.
        """
        try:
            data = ResponsePayload.model_validate(payload)
            body = base64.b64decode(data.body.encode("ascii"), validate=True)
        except ValidationError as exc:
            raise DecodingError(f"Invalid cached response payload: {exc}") from exc
        except (binascii.Error, UnicodeEncodeError) as exc:
            raise DecodingError(f"Invalid cached response body: {exc}") from exc
        return cls(
            data.status,
            data.headers,
            body,
            reason_phrase=data.reason_phrase,
            max_age=data.max_age,
            shared=shared,
            clock=clock,
        )

    # ------------------------------------------------------------------ #
    # httpx adapters
    # ------------------------------------------------------------------ #

    @classmethod
    def from_httpx(
        cls,
        response: httpx.Response,
        *,
        shared: bool = True,
        clock: Clock = time.time,
    ) -> CachedResponse:
        """Build a record from a received :class:`httpx.Response`.

        The decoded body is stored, so wire-encoding headers
        (``Content-Encoding``, ``Content-Length``, ``Transfer-Encoding``)
        are not kept.
        """
        body = response.read()
        headers = [
            (name, value)
            for name, value in response.headers.multi_items()
            if name.lower() not in _TRANSFER_HEADERS
        ]
        return cls(
            response.status_code,
            headers,
            body,
            reason_phrase=response.reason_phrase or None,
            shared=shared,
            clock=clock,
        )

    def to_httpx(self, request: Optional[httpx.Request] = None) -> httpx.Response:
        """Return an :class:`httpx.Response` carrying this record's data."""
        extensions: dict[str, Any] = {}
        if self._reason_phrase:
            extensions["reason_phrase"] = self._reason_phrase.encode("ascii", "replace")
        return httpx.Response(
            self._status,
            headers=list(self._headers.items()),
            content=self._body,
            request=request,
            extensions=extensions,
        )

    # ------------------------------------------------------------------ #
    # Dunder
    # ------------------------------------------------------------------ #

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CachedResponse):
            return NotImplemented
        return (
            self._status == other._status
            and self._headers == other._headers
            and self._body == other._body
            and self._reason_phrase == other._reason_phrase
            and self._max_age == other._max_age
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"CachedResponse(status={self._status}, max_age={self._max_age}, "
            f"headers={len(self._headers)}, body={len(self._body)} bytes)"
        )


def _collapse_headers(
    headers: Union[Mapping[str, str], list[tuple[str, str]], None],
) -> dict[str, str]:
    """Lower-case header names; repeated names keep the last value."""
    if headers is None:
        return {}
    items = headers.items() if isinstance(headers, Mapping) else headers
    collapsed: dict[str, str] = {}
    for name, value in items:
        collapsed[str(name).lower()] = str(value)
    return collapsed
