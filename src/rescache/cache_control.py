"""Parsing of the ``Cache-Control`` response header."""

from __future__ import annotations

from typing import Optional


class CacheControl:
    """Immutable view over the directives of a ``Cache-Control`` header.

    Directive names are case-insensitive; values may be quoted. Unparseable
    numeric values are treated as absent.

    Example::

        cc = CacheControl.parse("public, max-age=40")
        cc.max_age          # 40
        str(cc.normalized(6))  # "public, max-age=34"
    """

    def __init__(self, directives: Optional[dict[str, Optional[str]]] = None) -> None:
        self._directives: dict[str, Optional[str]] = dict(directives or {})

    @classmethod
    def parse(cls, header: Optional[str]) -> CacheControl:
        directives: dict[str, Optional[str]] = {}
        if not header:
            return cls(directives)
        for part in header.split(","):
            part = part.strip()
            if not part:
                continue
            name, sep, value = part.partition("=")
            name = name.strip().lower()
            if not name:
                continue
            directives[name] = value.strip().strip('"') if sep else None
        return cls(directives)

    def _seconds(self, name: str) -> Optional[int]:
        value = self._directives.get(name)
        if value is None or not (value.isascii() and value.isdigit()):
            return None
        return int(value)

    @property
    def public(self) -> bool:
        return "public" in self._directives

    @property
    def private(self) -> bool:
        return "private" in self._directives

    @property
    def no_cache(self) -> bool:
        return "no-cache" in self._directives

    @property
    def no_store(self) -> bool:
        return "no-store" in self._directives

    @property
    def must_revalidate(self) -> bool:
        return "must-revalidate" in self._directives

    @property
    def proxy_revalidate(self) -> bool:
        return "proxy-revalidate" in self._directives

    @property
    def max_age(self) -> Optional[int]:
        return self._seconds("max-age")

    @property
    def shared_max_age(self) -> Optional[int]:
        """The ``s-maxage`` directive, honoured by shared caches only."""
        return self._seconds("s-maxage")

    def normalized(self, age: int) -> CacheControl:
        """Return a copy with ``max-age`` and ``s-maxage`` reduced by *age*.

        Lifetimes are floored at zero. Directives without a valid numeric
        value are kept untouched.
        """
        directives = dict(self._directives)
        for name in ("max-age", "s-maxage"):
            seconds = self._seconds(name)
            if seconds is not None:
                directives[name] = str(max(0, seconds - age))
        return CacheControl(directives)

    def __str__(self) -> str:
        parts = []
        for name, value in self._directives.items():
            parts.append(name if value is None else f"{name}={value}")
        return ", ".join(parts)

    def __bool__(self) -> bool:
        return bool(self._directives)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CacheControl):
            return NotImplemented
        return self._directives == other._directives

    def __repr__(self) -> str:
        return f"CacheControl({str(self)!r})"
