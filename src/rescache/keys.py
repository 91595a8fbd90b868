"""Cache key derivation.

Keys are SHA-1 hex digests of the active codec's encoding of the request
folded into a sorted list of ``[field, value]`` pairs. Sorting is what
makes the key independent of the order in which headers were inserted, so
it must not be dropped even though Python dicts preserve insertion order.
"""

from __future__ import annotations

import hashlib
import logging

from rescache.codecs import Codec, JSONCodec
from rescache.models import RequestDescriptor

logger = logging.getLogger(__name__)

HEADER_FIELD_PREFIX = "header:"


def request_fields(request: RequestDescriptor) -> list[list[str]]:
    """Fold *request* into sorted ``[field, value]`` pairs.

    Sorted by field name, ties broken by value.
    """
    pairs = [
        ["method", request.method.value],
        ["url", request.url],
    ]
    for name, value in request.headers.items():
        pairs.append([f"{HEADER_FIELD_PREFIX}{name.lower()}", value])
    pairs.sort(key=lambda pair: (pair[0], pair[1]))
    return pairs


def derive_key(request: RequestDescriptor, codec: Codec | None = None) -> str:
    """Return the 40-character hex cache key for *request*.

    Args:
        request: The request identity.
        codec: Codec whose encoding is hashed. Defaults to :class:`JSONCodec`.

    Raises:
        EncodingError: If the codec cannot encode the folded request.
    """
    codec = codec or JSONCodec()
    encoded = codec.dump(request_fields(request))
    key = hashlib.sha1(encoded).hexdigest()
    logger.debug("Derived key %s for %s %s", key, request.method.value.upper(), request.url)
    return key
