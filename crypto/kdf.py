# -*- coding: utf-8 -*-
"""
kdf.py

Turns a GT element (pairing output) into symmetric material:

- kdf_from_gt(): an arbitrarily long mask stream (ANSI X9.63 counter-mode
  KDF over SHA-256, sharedinfo = label)
- integrity_tag() / verify_integrity_tag(): HMAC-SHA256 keyed by a separately
  labelled KDF output, over length-prefixed fields

Both are built on the `cryptography` package; nothing here implements a hash.
"""

from __future__ import annotations

from typing import Union

from cryptography.hazmat.primitives import hashes, hmac
from cryptography.hazmat.primitives.kdf.x963kdf import X963KDF

from bn254 import GT, gt_to_bytes


MASK_LABEL = b"pairing-enc/v1/mask"
TAG_LABEL = b"pairing-enc/v1/tag"
TAG_BYTES = 32


def kdf_from_gt(k_gt: GT, length: int, label: bytes = MASK_LABEL) -> bytes:
    """Derive `length` bytes from a GT element; b"" for length 0."""
    if length < 0:
        raise ValueError("length must be non-negative")
    if length == 0:
        return b""
    kdf = X963KDF(algorithm=hashes.SHA256(), length=length, sharedinfo=label)
    return kdf.derive(gt_to_bytes(k_gt))


def xor_bytes(data: bytes, mask: bytes) -> bytes:
    if len(data) != len(mask):
        raise ValueError("data and mask lengths differ")
    return bytes(a ^ b for a, b in zip(data, mask))


def _tag_hmac(k_gt: GT, fields) -> hmac.HMAC:
    key = kdf_from_gt(k_gt, 32, TAG_LABEL)
    h = hmac.HMAC(key, hashes.SHA256())
    for field in fields:
        h.update(len(field).to_bytes(4, "big"))
        h.update(field)
    return h


def integrity_tag(k_gt: GT, *fields: Union[bytes, bytearray]) -> bytes:
    return _tag_hmac(k_gt, fields).finalize()


def verify_integrity_tag(k_gt: GT, tag: bytes, *fields: Union[bytes, bytearray]) -> None:
    """Raises cryptography.exceptions.InvalidSignature on mismatch."""
    _tag_hmac(k_gt, fields).verify(tag)
