"""Cache Store -- persists response records keyed by request identity.

:class:`Storage` composes the pieces of the package:

1. :func:`~rescache.keys.derive_key` turns a
   :class:`~rescache.models.RequestDescriptor` into a key.
2. :meth:`~rescache.response.CachedResponse.to_payload` normalises the
   record and a :class:`~rescache.codecs.Codec` turns it into bytes.
3. A :class:`~rescache.backends.Backend` stores the bytes.

The store keeps no state of its own beyond the backend; reads never
mutate it. Whether a returned record may be served is for the caller to
ask through :meth:`~rescache.response.CachedResponse.is_fresh`.

See Also:
    :func:`rescache.config.load_config` -- produces the
    :class:`~rescache.models.CacheConfig` consumed by
    :meth:`Storage.from_config`.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from rescache.backends import Backend, DiskBackend, MemoryBackend
from rescache.codecs import Codec, JSONCodec, get_codec
from rescache.exceptions import ConfigError, StorageError
from rescache.keys import derive_key
from rescache.models import CacheConfig, RequestDescriptor
from rescache.response import CachedResponse, Clock

logger = logging.getLogger(__name__)


class Storage:
    """Reads and writes :class:`~rescache.response.CachedResponse` records.

    Args:
        backend: The key/value store entries are persisted in.
        codec: Serialisation codec for keys and entries. Defaults to a
            fresh :class:`~rescache.codecs.JSONCodec`.
        shared: Whether rehydrated records are evaluated as a shared cache.
        clock: Epoch-time source handed to rehydrated records.

    Example::

        storage = Storage(MemoryBackend())
        request = RequestDescriptor(method="GET", url="http://foo.bar/")
        storage.write(request, CachedResponse(200, {"Cache-Control": "max-age=60"}, b"hi"))
        cached = storage.read(request)
        cached.is_fresh()   # True
    """

    def __init__(
        self,
        backend: Backend,
        codec: Optional[Codec] = None,
        *,
        shared: bool = True,
        clock: Clock = time.time,
    ) -> None:
        self._backend = backend
        self._codec = codec if codec is not None else JSONCodec()
        self._shared = shared
        self._clock = clock

    @classmethod
    def from_config(cls, config: CacheConfig, *, clock: Clock = time.time) -> Storage:
        """Build a store with the backend and codec named in *config*.

        Raises:
            ConfigError: If the backend or codec name is unknown.
        """
        if config.backend == "memory":
            backend: Backend = MemoryBackend()
        elif config.backend == "disk":
            from rescache.config import get_cache_dir

            directory = config.directory or str(get_cache_dir() / "responses")
            backend = DiskBackend(directory)
        else:
            raise ConfigError(f"Unknown backend '{config.backend}'")
        return cls(backend, get_codec(config.codec), shared=config.shared, clock=clock)

    @property
    def backend(self) -> Backend:
        return self._backend

    @property
    def codec(self) -> Codec:
        return self._codec

    def cache_key(self, request: RequestDescriptor) -> str:
        """Return the backend key for *request* under the active codec."""
        return derive_key(request, self._codec)

    def write(self, request: RequestDescriptor, response: CachedResponse) -> None:
        """Store *response* under the key derived from *request*.

        Any existing entry is overwritten.

        Raises:
            EncodingError: If the record cannot be serialised.
            StorageError: If the backend fails.
        """
        key = self.cache_key(request)
        value = self._codec.dump(response.to_payload())
        try:
            self._backend.write(key, value)
        except OSError as exc:
            raise StorageError(f"Cannot write cache entry {key}: {exc}") from exc
        logger.debug("Stored %d bytes under %s (status %d)", len(value), key, response.status)

    def read(self, request: RequestDescriptor) -> Optional[CachedResponse]:
        """Return the record cached for *request*, or ``None`` on a miss.

        Raises:
            DecodingError: If the stored entry is corrupt or was written
                with another codec's layout.
            StorageError: If the backend fails.
        """
        key = self.cache_key(request)
        try:
            value = self._backend.read(key)
        except OSError as exc:
            raise StorageError(f"Cannot read cache entry {key}: {exc}") from exc
        if value is None:
            logger.debug("Cache miss for %s", key)
            return None
        payload = self._codec.load(value)
        logger.debug("Cache hit for %s", key)
        return CachedResponse.from_payload(payload, shared=self._shared, clock=self._clock)

    def delete(self, request: RequestDescriptor) -> bool:
        """Remove the entry cached for *request*, if any."""
        return self._backend.delete(self.cache_key(request))

    def close(self) -> None:
        self._backend.close()

    def __enter__(self) -> Storage:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
