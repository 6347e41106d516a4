"""Incremental digest construction by algorithm name.

Algorithm names are those of hashlib (``sha1``, ``sha256``, ``md5``...) plus
the xxHash family from the xxhash package, which is much faster for plain
content fingerprinting.
"""

from __future__ import annotations

import hashlib
from typing import Protocol

import xxhash

HASH_ALGORITHM_SHA1 = "sha1"
DEFAULT_HASH_TYPE = HASH_ALGORITHM_SHA1

XXHASH_ALGORITHMS = {
    "xxh32": xxhash.xxh32,
    "xxh64": xxhash.xxh64,
    "xxh3_64": xxhash.xxh3_64,
    "xxh128": xxhash.xxh3_128,
}


class Digest(Protocol):
    """The part of the hashlib object interface used for streaming."""

    def update(self, data: bytes, /) -> None: ...

    def hexdigest(self) -> str: ...


def _fixed_length(name: str) -> bool:
    # shake_* digests take their output length at hexdigest() time
    try:
        return hashlib.new(name).digest_size > 0
    except ValueError:
        return False


def is_supported(hash_type: str) -> bool:
    """Check whether a fixed-length digest algorithm name is available."""
    normalized = hash_type.lower()
    if normalized in XXHASH_ALGORITHMS:
        return True
    return normalized in hashlib.algorithms_available and _fixed_length(normalized)


def new_digest(hash_type: str) -> Digest:
    """Create a fresh digest object for an algorithm name.

    Raises:
        ValueError: If the algorithm is unknown or has no fixed output
            length (shake_128, shake_256).
    """
    normalized = hash_type.lower()
    factory = XXHASH_ALGORITHMS.get(normalized)
    if factory is not None:
        return factory()
    try:
        digest = hashlib.new(normalized)
    except ValueError as e:
        raise ValueError(f"Unsupported hash type: {hash_type}") from e
    if digest.digest_size == 0:
        raise ValueError(f"Unsupported hash type: {hash_type} (variable length)")
    return digest
