# -*- coding: utf-8 -*-
"""
hash_to_group.py

Deterministic maps from byte strings into the groups:

- hash_to_point(data) -> G2Point   (identities and attribute labels)
- hash_to_scalar(*parts) -> int    (non-zero scalar mod r)

py_ecc has no hash-to-curve for bn128, so hash_to_point is try-and-increment
on top of its FQ2 arithmetic: a counter is mixed into every attempt, so a
non-square x or a point that clears to infinity just moves on to the next
counter value. The attempt bound only stops a broken field implementation
from looping forever.
"""

from __future__ import annotations

import hashlib
from functools import lru_cache
from typing import Optional, Union

from py_ecc.optimized_bn128 import FQ2, b2

from bn254 import G2_COFACTOR, P, R, G2Point


HASH_TO_G2_DST = b"PAIRING-ENC-V01-BN254G2_XMD:SHA-512_TAI_"
HASH_TO_ZR_DST = b"PAIRING-ENC-V01-BN254ZR_XMD:SHA-512_"
MAX_ATTEMPTS = 256

_MINUS_ONE = FQ2([P - 1, 0])
_I = FQ2([0, 1])


def _as_bytes(data: Union[str, bytes, bytearray]) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    raise TypeError(f"expected str or bytes, got {type(data).__name__}")


def _coeffs(v: FQ2):
    return tuple(c if isinstance(c, int) else c.n for c in v.coeffs)


def fq2_sqrt(a: FQ2) -> Optional[FQ2]:
    """Square root in Fp2 (p = 3 mod 4), or None for a non-square."""
    a1 = a ** ((P - 3) // 4)
    alpha = a1 * (a1 * a)
    x0 = a1 * a
    if alpha == _MINUS_ONE:
        x = _I * x0
    else:
        x = (FQ2.one() + alpha) ** ((P - 1) // 2) * x0
    return x if x * x == a else None


def sgn0(v: FQ2) -> int:
    c0, c1 = _coeffs(v)
    return c0 & 1 if c0 else c1 & 1


def map_to_twist(x: FQ2, odd: bool) -> Optional[G2Point]:
    """Lift x onto the twist, pick the root by sign, clear the cofactor."""
    y = fq2_sqrt(x * x * x + b2)
    if y is None:
        return None
    if sgn0(y) != int(odd):
        y = -y
    q = G2Point.from_affine(x, y).multiply(G2_COFACTOR)
    return None if q.is_infinity else q


def _digest(dst: bytes, counter: int, index: int, data: bytes) -> bytes:
    h = hashlib.sha512()
    h.update(len(dst).to_bytes(1, "big"))
    h.update(dst)
    h.update(counter.to_bytes(4, "big"))
    h.update(index.to_bytes(1, "big"))
    h.update(data)
    return h.digest()


@lru_cache(maxsize=2048)
def _hash_to_point(data: bytes, dst: bytes) -> G2Point:
    for counter in range(MAX_ATTEMPTS):
        x0 = int.from_bytes(_digest(dst, counter, 0, data), "big") % P
        x1 = int.from_bytes(_digest(dst, counter, 1, data), "big") % P
        odd = bool(_digest(dst, counter, 2, data)[0] & 1)
        q = map_to_twist(FQ2([x0, x1]), odd)
        if q is not None:
            return q
    raise RuntimeError(f"hash_to_point gave up after {MAX_ATTEMPTS} attempts")


def hash_to_point(data: Union[str, bytes], dst: bytes = HASH_TO_G2_DST) -> G2Point:
    """Map data (str is UTF-8 encoded) to a non-trivial point of G2."""
    return _hash_to_point(_as_bytes(data), bytes(dst))


def hash_to_scalar(*parts: Union[str, bytes], dst: bytes = HASH_TO_ZR_DST) -> int:
    """Deterministic scalar in [1, r). Parts are length-prefixed before hashing."""
    h = hashlib.sha512()
    h.update(len(dst).to_bytes(1, "big"))
    h.update(dst)
    for part in parts:
        raw = _as_bytes(part)
        h.update(len(raw).to_bytes(4, "big"))
        h.update(raw)
    return int.from_bytes(h.digest(), "big") % (R - 1) + 1


# Base point B of G2 (the standard alt_bn128 generator).
G2_BASE = G2Point.generator()
