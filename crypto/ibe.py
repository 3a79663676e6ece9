# -*- coding: utf-8 -*-
"""
ibe.py  (Boneh-Franklin BasicIdent)

Setup / Extract / Encrypt / Decrypt:

    Setup:    s <- Z_r*,  P_pub = s P                       (keys.setup)
    Extract:  d_ID = s H(ID)                                 H: {0,1}* -> G2
    Encrypt:  r <- Z_r*,  U = r P,  V = M xor KDF(e(r P_pub, H(ID)))
    Decrypt:  M = V xor KDF(e(U, d_ID))

e(r P_pub, H(ID)) = e(P_pub, H(ID))^r = e(P, H(ID))^(rs) = e(U, d_ID).

The mask is stretched to the message length, so any length (including 0)
works. There is no integrity tag: a key for another identity decrypts to
pseudorandom bytes rather than raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from bn254 import CURVE_ID, G1Point, G2Point, pair
from entropy import random_scalar
from hash_to_group import hash_to_point
from kdf import kdf_from_gt, xor_bytes
from keys import MasterKey, PublicParams, SecretHandle, setup


def _check_identity(identity: str) -> str:
    if not isinstance(identity, str):
        raise TypeError(f"identity must be str, got {type(identity).__name__}")
    return identity


def _check_message(message) -> bytes:
    if message is None:
        raise ValueError("plaintext is None")
    if isinstance(message, str):
        raise TypeError("plaintext must be bytes; encode str first")
    return bytes(message)


def _check_params(params: PublicParams) -> None:
    if not isinstance(params, PublicParams):
        raise TypeError(f"expected PublicParams, got {type(params).__name__}")
    if params.curve != CURVE_ID:
        raise ValueError(f"unsupported curve: {params.curve!r}")


# ============================================================
# 1) Key / ciphertext objects
# ============================================================
class PrivateKey(SecretHandle):
    """d_ID = s H(ID) for one identity."""

    def __init__(self, identity: str, key_point: G2Point):
        self.identity = _check_identity(identity)
        if key_point.is_infinity:
            raise ValueError("private key point is the point at infinity")
        self._key_point: Optional[G2Point] = key_point

    @property
    def key_point(self) -> G2Point:
        self._check_alive()
        return self._key_point

    def _wipe(self) -> None:
        self._key_point = None

    def __eq__(self, other) -> bool:
        if not isinstance(other, PrivateKey):
            return NotImplemented
        return self.identity == other.identity and self._key_point == other._key_point

    __hash__ = None

    def __repr__(self) -> str:
        return f"PrivateKey(identity={self.identity!r})"


@dataclass(frozen=True)
class Ciphertext:
    u: G1Point
    v: bytes


# ============================================================
# 2) Scheme
# ============================================================
class BasicIdentIBE:
    name = "ibe"

    def setup(self) -> Tuple[MasterKey, PublicParams]:
        return setup()

    def extract(self, msk: MasterKey, identity: str) -> PrivateKey:
        q_id = hash_to_point(_check_identity(identity))
        return PrivateKey(identity, q_id * msk.scalar)

    def encrypt(self, params: PublicParams, identity: str, message: bytes) -> Ciphertext:
        _check_params(params)
        message = _check_message(message)
        q_id = hash_to_point(_check_identity(identity))
        r = random_scalar()
        u = params.generator * r
        k_gt = pair(params.public_point * r, q_id)
        v = xor_bytes(message, kdf_from_gt(k_gt, len(message)))
        return Ciphertext(u=u, v=v)

    def decrypt(self, sk: PrivateKey, ct: Ciphertext) -> bytes:
        k_gt = pair(ct.u, sk.key_point)
        return xor_bytes(ct.v, kdf_from_gt(k_gt, len(ct.v)))
