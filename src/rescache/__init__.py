"""rescache -- storage and freshness engine for an HTTP response cache.

The package decides whether a previously observed HTTP response can be
reused instead of re-issuing a request, and persists eligible responses in
a pluggable key/value backend.

Typical use from an HTTP pipeline::

    from rescache import CachedResponse, MemoryBackend, RequestDescriptor, Storage

    storage = Storage(MemoryBackend())
    request = RequestDescriptor.from_httpx(httpx_request)
    cached = storage.read(request)
    if cached is None or not cached.is_fresh():
        response = send(httpx_request)
        storage.write(request, CachedResponse.from_httpx(response))

Modules:
    models: Request descriptor and configuration models.
    keys: Deterministic cache-key derivation.
    codecs: JSON and pickle serialisation codecs.
    response: Cached response records and freshness evaluation.
    backends: The Backend Port and memory/disk implementations.
    storage: The cache store orchestrating all of the above.
    config: XDG-aware configuration loading.
    app: The ``rescache`` maintenance CLI.
"""

__version__ = "0.1.0"

from rescache.backends import Backend, DiskBackend, MemoryBackend  # noqa: E402
from rescache.codecs import Codec, JSONCodec, PickleCodec, get_codec  # noqa: E402
from rescache.exceptions import (  # noqa: E402
    ConfigError,
    DecodingError,
    EncodingError,
    RescacheError,
    StorageError,
)
from rescache.keys import derive_key  # noqa: E402
from rescache.models import CacheConfig, HTTPMethod, RequestDescriptor  # noqa: E402
from rescache.response import CachedResponse  # noqa: E402
from rescache.storage import Storage  # noqa: E402

__all__ = [
    "Backend",
    "CacheConfig",
    "CachedResponse",
    "Codec",
    "ConfigError",
    "DecodingError",
    "DiskBackend",
    "EncodingError",
    "HTTPMethod",
    "JSONCodec",
    "MemoryBackend",
    "PickleCodec",
    "RequestDescriptor",
    "RescacheError",
    "Storage",
    "StorageError",
    "derive_key",
    "get_codec",
]
