# -*- coding: utf-8 -*-
"""
entropy.py

Randomness source. All random bytes come from one entropy bridge, a callable
`fill(buffer: bytearray) -> None` that overwrites the whole buffer. The host
installs it once at start-up with set_entropy_source(); by default it is the
OS CSPRNG (os.urandom).

A sandbox without native entropy installs its host bridge here, or installs
None, in which case every draw raises EntropyUnavailable. There is no
fallback generator. Whatever the bridge raises surfaces as EntropyUnavailable.
"""

from __future__ import annotations

import os
from typing import Callable, Optional

from bn254 import R, SCALAR_BYTES
from errors import EntropyUnavailable


EntropySource = Callable[[bytearray], None]

# a bridge that keeps returning out-of-range scalars (e.g. all zeros) is broken
MAX_SCALAR_DRAWS = 64
_SCALAR_MASK = (1 << R.bit_length()) - 1


def os_entropy(buffer: bytearray) -> None:
    buffer[:] = os.urandom(len(buffer))


_source: Optional[EntropySource] = os_entropy


def set_entropy_source(source: Optional[EntropySource]) -> Optional[EntropySource]:
    """Install a new bridge; returns the previous one so callers can restore it."""
    global _source
    previous = _source
    _source = source
    return previous


def get_entropy_source() -> Optional[EntropySource]:
    return _source


def random_bytes(n: int) -> bytes:
    if n < 0:
        raise ValueError("n must be non-negative")
    source = _source
    if source is None:
        raise EntropyUnavailable("no entropy source installed")
    buf = bytearray(n)
    try:
        source(buf)
    except Exception as e:
        raise EntropyUnavailable(f"entropy source failed: {e}") from e
    if len(buf) != n:
        raise EntropyUnavailable(f"entropy source returned {len(buf)} bytes, expected {n}")
    return bytes(buf)


def random_scalar() -> int:
    """Uniform scalar in [1, r) by rejection sampling."""
    for _ in range(MAX_SCALAR_DRAWS):
        k = int.from_bytes(random_bytes(SCALAR_BYTES), "big") & _SCALAR_MASK
        if 0 < k < R:
            return k
    raise EntropyUnavailable("entropy source keeps producing unusable scalars")
