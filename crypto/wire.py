# -*- coding: utf-8 -*-
"""
wire.py  (canonical binary encoding + JSON file helpers)

Binary layout (all integers big-endian):

    b"PE" | version (1 byte) | kind (1 byte) | body

    kind 1  MasterKey          scalar(32)
    kind 2  PublicParams       label(curve) G1(64) G1(64)
    kind 3  IBE PrivateKey     label(identity) G2(128)
    kind 4  IBE Ciphertext     G1 U(64) blob(V)
    kind 5  CP-ABE PrivateKey  labels(attributes) G2(128) * n
    kind 6  CP-ABE Ciphertext  labels(policy) G1 U(64) tag(32) blob(V)
    kind 7  KP-ABE PrivateKey  labels(policy) [G2 K(128) G1 L(64)] * n
    kind 8  KP-ABE Ciphertext  labels(attributes) G1 U(64) G2(128) * n tag(32) blob(V)

    label  = u32 length | UTF-8
    labels = u32 count | label * count      (insertion order, no duplicates)
    blob   = u32 length | bytes

Every field has exactly one encoding, so encode(decode(b)) == b for any b
that decodes. Anything else raises InvalidEncoding.

The JSON helpers (b64e / b64d / save_json / load_json) are what the host
tools use to keep these blobs in key files.
"""

from __future__ import annotations

import base64
import binascii
import json
import os
import struct
from enum import IntEnum
from typing import Any, Callable, Dict, Tuple, Type

from abe import CPABECiphertext, CPABEPrivateKey, KPABECiphertext, KPABEPrivateKey, encode_labels
from bn254 import CURVE_ID, G1Point, G2Point, scalar_from_bytes, scalar_to_bytes
from errors import InvalidEncoding
from ibe import Ciphertext, PrivateKey
from kdf import TAG_BYTES
from keys import MasterKey, PublicParams


MAGIC = b"PE"
WIRE_VERSION = 1


class Kind(IntEnum):
    MASTER_KEY = 1
    PUBLIC_PARAMS = 2
    IBE_PRIVATE_KEY = 3
    IBE_CIPHERTEXT = 4
    CPABE_PRIVATE_KEY = 5
    CPABE_CIPHERTEXT = 6
    KPABE_PRIVATE_KEY = 7
    KPABE_CIPHERTEXT = 8


# ============================================================
# 1) Primitive writers / reader
# ============================================================
def _label(text: str) -> bytes:
    raw = text.encode("utf-8")
    return struct.pack(">I", len(raw)) + raw


def _blob(data: bytes) -> bytes:
    return struct.pack(">I", len(data)) + data


class _Reader:
    def __init__(self, data: bytes):
        self.data = bytes(data)
        self.pos = 0

    def take(self, n: int) -> bytes:
        if n < 0 or self.pos + n > len(self.data):
            raise InvalidEncoding("truncated input")
        chunk = self.data[self.pos:self.pos + n]
        self.pos += n
        return chunk

    def u32(self) -> int:
        return struct.unpack(">I", self.take(4))[0]

    def blob(self) -> bytes:
        return self.take(self.u32())

    def label(self) -> str:
        try:
            return self.blob().decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidEncoding(f"label is not valid UTF-8: {e}") from e

    def labels(self) -> Tuple[str, ...]:
        count = self.u32()
        # every label needs at least its 4-byte length
        if count * 4 > len(self.data) - self.pos:
            raise InvalidEncoding("truncated input")
        out = tuple(self.label() for _ in range(count))
        if not out:
            raise InvalidEncoding("attribute list is empty")
        if len(set(out)) != len(out):
            raise InvalidEncoding("attribute list contains duplicates")
        if any(not a or a != a.strip() or "," in a for a in out):
            raise InvalidEncoding("attribute label is not normalized")
        return out

    def g1(self, allow_infinity: bool = False) -> G1Point:
        return G1Point.from_bytes(self.take(2 * G1Point.coord_size), allow_infinity=allow_infinity)

    def g2(self, allow_infinity: bool = False) -> G2Point:
        return G2Point.from_bytes(self.take(2 * G2Point.coord_size), allow_infinity=allow_infinity)

    def done(self) -> None:
        if self.pos != len(self.data):
            raise InvalidEncoding(f"{len(self.data) - self.pos} trailing bytes")


def _header(kind: Kind) -> bytes:
    return MAGIC + bytes([WIRE_VERSION, int(kind)])


# ============================================================
# 2) Per-object encoders
# ============================================================
def _enc_master_key(msk: MasterKey) -> bytes:
    return scalar_to_bytes(msk.scalar)


def _enc_public_params(params: PublicParams) -> bytes:
    return _label(params.curve) + params.generator.to_bytes() + params.public_point.to_bytes()


def _enc_ibe_key(sk: PrivateKey) -> bytes:
    return _label(sk.identity) + sk.key_point.to_bytes()


def _enc_ibe_ct(ct: Ciphertext) -> bytes:
    return ct.u.to_bytes() + _blob(ct.v)


def _enc_cp_key(sk: CPABEPrivateKey) -> bytes:
    comps = sk.components
    return encode_labels(sk.attributes) + b"".join(comps[a].to_bytes() for a in sk.attributes)


def _enc_cp_ct(ct: CPABECiphertext) -> bytes:
    return encode_labels(ct.policy) + ct.u.to_bytes() + ct.tag + _blob(ct.v)


def _enc_kp_key(sk: KPABEPrivateKey) -> bytes:
    comps = sk.components
    body = [encode_labels(sk.policy)]
    for a in sk.policy:
        k_a, l_a = comps[a]
        body.append(k_a.to_bytes() + l_a.to_bytes())
    return b"".join(body)


def _enc_kp_ct(ct: KPABECiphertext) -> bytes:
    return (
        encode_labels(ct.attributes)
        + ct.u.to_bytes()
        + b"".join(c.to_bytes() for c in ct.c)
        + ct.tag
        + _blob(ct.v)
    )


# ============================================================
# 3) Per-object decoders
# ============================================================
def _dec_master_key(rd: _Reader) -> MasterKey:
    return MasterKey(scalar_from_bytes(rd.take(32)))


def _dec_public_params(rd: _Reader) -> PublicParams:
    curve = rd.label()
    if curve != CURVE_ID:
        raise InvalidEncoding(f"unsupported curve: {curve!r}")
    generator = rd.g1()
    if generator != G1Point.generator():
        raise InvalidEncoding("unexpected G1 generator")
    return PublicParams(generator=generator, public_point=rd.g1(), curve=curve)


def _dec_ibe_key(rd: _Reader) -> PrivateKey:
    identity = rd.label()
    return PrivateKey(identity, rd.g2())


def _dec_ibe_ct(rd: _Reader) -> Ciphertext:
    u = rd.g1()
    return Ciphertext(u=u, v=rd.blob())


def _dec_cp_key(rd: _Reader) -> CPABEPrivateKey:
    attributes = rd.labels()
    return CPABEPrivateKey(attributes, {a: rd.g2() for a in attributes})


def _dec_cp_ct(rd: _Reader) -> CPABECiphertext:
    policy = rd.labels()
    u = rd.g1()
    tag = rd.take(TAG_BYTES)
    return CPABECiphertext(policy=policy, u=u, v=rd.blob(), tag=tag)


def _dec_kp_key(rd: _Reader) -> KPABEPrivateKey:
    policy = rd.labels()
    components = {}
    for a in policy:
        k_a = rd.g2(allow_infinity=True)
        components[a] = (k_a, rd.g1())
    return KPABEPrivateKey(policy, components)


def _dec_kp_ct(rd: _Reader) -> KPABECiphertext:
    attributes = rd.labels()
    u = rd.g1()
    c = tuple(rd.g2() for _ in attributes)
    tag = rd.take(TAG_BYTES)
    return KPABECiphertext(attributes=attributes, u=u, c=c, v=rd.blob(), tag=tag)


_CODECS: Dict[Kind, Tuple[Type, Callable[[Any], bytes], Callable[[_Reader], Any]]] = {
    Kind.MASTER_KEY: (MasterKey, _enc_master_key, _dec_master_key),
    Kind.PUBLIC_PARAMS: (PublicParams, _enc_public_params, _dec_public_params),
    Kind.IBE_PRIVATE_KEY: (PrivateKey, _enc_ibe_key, _dec_ibe_key),
    Kind.IBE_CIPHERTEXT: (Ciphertext, _enc_ibe_ct, _dec_ibe_ct),
    Kind.CPABE_PRIVATE_KEY: (CPABEPrivateKey, _enc_cp_key, _dec_cp_key),
    Kind.CPABE_CIPHERTEXT: (CPABECiphertext, _enc_cp_ct, _dec_cp_ct),
    Kind.KPABE_PRIVATE_KEY: (KPABEPrivateKey, _enc_kp_key, _dec_kp_key),
    Kind.KPABE_CIPHERTEXT: (KPABECiphertext, _enc_kp_ct, _dec_kp_ct),
}


def kind_of(obj: Any) -> Kind:
    for kind, (cls, _, _) in _CODECS.items():
        if type(obj) is cls:
            return kind
    raise TypeError(f"no wire encoding for {type(obj).__name__}")


def encode(obj: Any) -> bytes:
    kind = kind_of(obj)
    return _header(kind) + _CODECS[kind][1](obj)


def decode(data: bytes, expected: Kind = None) -> Any:
    """Decode one object; `expected` pins the kind."""
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError(f"expected bytes, got {type(data).__name__}")
    rd = _Reader(data)
    if rd.take(2) != MAGIC:
        raise InvalidEncoding("bad magic")
    version = rd.take(1)[0]
    if version != WIRE_VERSION:
        raise InvalidEncoding(f"unsupported wire version {version}")
    try:
        kind = Kind(rd.take(1)[0])
    except ValueError as e:
        raise InvalidEncoding(f"unknown object kind: {e}") from e
    if expected is not None and kind != expected:
        raise InvalidEncoding(f"expected {Kind(expected).name}, got {kind.name}")
    try:
        obj = _CODECS[kind][2](rd)
    except InvalidEncoding:
        raise
    except ValueError as e:
        # constructor-level validation of decoded fields
        raise InvalidEncoding(str(e)) from e
    rd.done()
    return obj


# ============================================================
# 4) base64 + JSON (key files)
# ============================================================
def b64e(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")


def b64d(s: str) -> bytes:
    try:
        return base64.b64decode(s.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise InvalidEncoding(f"invalid base64: {e}") from e


def save_json(path: str, obj: Any) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, ensure_ascii=False, indent=2)


def load_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def encode_b64(obj: Any) -> str:
    return b64e(encode(obj))


def decode_b64(s: str, expected: Kind = None) -> Any:
    return decode(b64d(s), expected)
