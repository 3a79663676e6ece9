# -*- coding: utf-8 -*-
"""
abe.py  (conjunctive CP-ABE / KP-ABE)

Both schemes use the IBE setup (s, P_pub = s P) and the same hash H into G2.
Policies are conjunctions: a list of attribute labels that must ALL be held.

CP-ABE (policy on the ciphertext)
    KeyGen(S):     K_a = s H(a)                      for a in S
    Encrypt(W, M): U = r P
                   g = prod_{a in W} e(P_pub, H(a))^r = e(r P_pub, sum_a H(a))
    Decrypt:       g = e(U, sum_{a in W} K_a)        needs S >= W

KP-ABE (policy on the key)
    KeyGen(W):     sum_{a in W} lambda_a = s, blinding t_a (both derived
                   deterministically from s and W)
                   K_a = lambda_a B + t_a H(a),  L_a = t_a P
    Encrypt(S, M): U = r P,  C_a = r H(a) for a in S,  g = e(r P_pub, B)
    Decrypt:       g = e(U, sum_{a in W} K_a) prod_{a in W} e(-L_a, C_a)
                                                  needs S >= W

    e(U, K_a) e(-L_a, C_a) = e(P, B)^(r lambda_a), so the product is
    e(P, B)^(rs) = e(r P_pub, B). Keys for different policies carry different
    shares and blindings and cannot be combined.

Every ciphertext carries an HMAC tag over (scheme, attribute list, U, M)
keyed from g, so a key that does not fit is reported as AttributeMismatch
instead of returning garbage.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from cryptography.exceptions import InvalidSignature

from bn254 import GT, R, G1Point, G2Point, multi_pair, pair
from entropy import random_scalar
from errors import AttributeMismatch, EmptyPolicy
from hash_to_group import G2_BASE, hash_to_point, hash_to_scalar
from ibe import _check_message, _check_params
from kdf import integrity_tag, kdf_from_gt, verify_integrity_tag, xor_bytes
from keys import MasterKey, PublicParams, SecretHandle, setup


AttributeInput = Union[str, Iterable[str]]


# ============================================================
# 0) Attribute lists
# ============================================================
def normalize_attributes(attrs: AttributeInput) -> Tuple[str, ...]:
    """
    "A, B,C" or ["A", "B", "C"] -> ("A", "B", "C")

    Labels are stripped, empties dropped, duplicates removed keeping the
    first occurrence. No labels left -> EmptyPolicy. A label holding a comma
    (only possible from an iterable) is a ValueError.
    """
    if attrs is None:
        raise EmptyPolicy("policy is empty")
    if isinstance(attrs, str):
        raw = attrs.split(",")
    else:
        raw = list(attrs)
    out: List[str] = []
    for a in raw:
        if not isinstance(a, str):
            raise TypeError(f"attribute labels must be str, got {type(a).__name__}")
        a = a.strip()
        if "," in a:
            raise ValueError(f"attribute label {a!r} contains a comma")
        if a and a not in out:
            out.append(a)
    if not out:
        raise EmptyPolicy("policy is empty")
    return tuple(out)


def encode_labels(labels: Iterable[str]) -> bytes:
    """u32 count, then u32 length + UTF-8 for each label, in order."""
    labels = list(labels)
    parts = [struct.pack(">I", len(labels))]
    for label in labels:
        raw = label.encode("utf-8")
        parts.append(struct.pack(">I", len(raw)))
        parts.append(raw)
    return b"".join(parts)


def _sum_points(points: Iterable[G2Point]) -> G2Point:
    acc = G2Point.infinity()
    for pt in points:
        acc = acc + pt
    return acc


def _mask(message: bytes, k_gt: GT) -> bytes:
    return xor_bytes(message, kdf_from_gt(k_gt, len(message)))


def _tag_fields(scheme: bytes, labels: Tuple[str, ...], u: G1Point, message: bytes):
    return (scheme, encode_labels(labels), u.to_bytes(), message)


def _unmask_and_verify(scheme: bytes, labels, u, v, tag, k_gt: GT) -> bytes:
    message = _mask(v, k_gt)
    try:
        verify_integrity_tag(k_gt, tag, *_tag_fields(scheme, labels, u, message))
    except InvalidSignature:
        raise AttributeMismatch("integrity check failed: key does not match ciphertext") from None
    return message


# ============================================================
# 1) CP-ABE
# ============================================================
class CPABEPrivateKey(SecretHandle):
    def __init__(self, attributes: AttributeInput, components: Mapping[str, G2Point]):
        self.attributes = normalize_attributes(attributes)
        if set(components) != set(self.attributes):
            raise ValueError("key components do not match the attribute set")
        self._components: Optional[Mapping[str, G2Point]] = MappingProxyType(
            {a: components[a] for a in self.attributes}
        )

    @property
    def components(self) -> Mapping[str, G2Point]:
        self._check_alive()
        return self._components

    def _wipe(self) -> None:
        self._components = None

    def __eq__(self, other) -> bool:
        if not isinstance(other, CPABEPrivateKey):
            return NotImplemented
        mine = None if self._components is None else dict(self._components)
        theirs = None if other._components is None else dict(other._components)
        return self.attributes == other.attributes and mine == theirs

    __hash__ = None

    def __repr__(self) -> str:
        return f"CPABEPrivateKey(attributes={self.attributes!r})"


@dataclass(frozen=True)
class CPABECiphertext:
    policy: Tuple[str, ...]
    u: G1Point
    v: bytes
    tag: bytes


class CPABE:
    name = "cp"
    _scheme = b"CP-ABE"

    def setup(self) -> Tuple[MasterKey, PublicParams]:
        return setup()

    def keygen(self, msk: MasterKey, attributes: AttributeInput) -> CPABEPrivateKey:
        attributes = normalize_attributes(attributes)
        s = msk.scalar
        return CPABEPrivateKey(attributes, {a: hash_to_point(a) * s for a in attributes})

    def encrypt(self, params: PublicParams, policy: AttributeInput, message: bytes) -> CPABECiphertext:
        _check_params(params)
        message = _check_message(message)
        policy = normalize_attributes(policy)
        r = random_scalar()
        u = params.generator * r
        k_gt = pair(params.public_point * r, _sum_points(hash_to_point(a) for a in policy))
        tag = integrity_tag(k_gt, *_tag_fields(self._scheme, policy, u, message))
        return CPABECiphertext(policy=policy, u=u, v=_mask(message, k_gt), tag=tag)

    def decrypt(self, sk: CPABEPrivateKey, ct: CPABECiphertext) -> bytes:
        components = sk.components
        missing = [a for a in ct.policy if a not in components]
        if missing:
            raise AttributeMismatch(f"key lacks policy attributes: {missing}")
        k_gt = pair(ct.u, _sum_points(components[a] for a in ct.policy))
        return _unmask_and_verify(self._scheme, ct.policy, ct.u, ct.v, ct.tag, k_gt)


# ============================================================
# 2) KP-ABE
# ============================================================
class KPABEPrivateKey(SecretHandle):
    """One (K_a, L_a) pair per policy attribute."""

    def __init__(self, policy: AttributeInput, components: Mapping[str, Tuple[G2Point, G1Point]]):
        self.policy = normalize_attributes(policy)
        if set(components) != set(self.policy):
            raise ValueError("key components do not match the policy")
        self._components: Optional[Mapping[str, Tuple[G2Point, G1Point]]] = MappingProxyType(
            {a: tuple(components[a]) for a in self.policy}
        )

    @property
    def components(self) -> Mapping[str, Tuple[G2Point, G1Point]]:
        self._check_alive()
        return self._components

    def _wipe(self) -> None:
        self._components = None

    def __eq__(self, other) -> bool:
        if not isinstance(other, KPABEPrivateKey):
            return NotImplemented
        mine = None if self._components is None else dict(self._components)
        theirs = None if other._components is None else dict(other._components)
        return self.policy == other.policy and mine == theirs

    __hash__ = None

    def __repr__(self) -> str:
        return f"KPABEPrivateKey(policy={self.policy!r})"


@dataclass(frozen=True)
class KPABECiphertext:
    attributes: Tuple[str, ...]
    u: G1Point
    c: Tuple[G2Point, ...]   # aligned with attributes
    v: bytes
    tag: bytes

    def component(self, attribute: str) -> G2Point:
        return self.c[self.attributes.index(attribute)]


class KPABE:
    name = "kp"
    _scheme = b"KP-ABE"

    def setup(self) -> Tuple[MasterKey, PublicParams]:
        return setup()

    def _shares(self, msk: MasterKey, policy: Tuple[str, ...]) -> Dict[str, Tuple[int, int]]:
        """Deterministic (lambda_a, t_a) with sum(lambda_a) = s mod r."""
        seed = msk.secret_bytes()
        encoded = encode_labels(policy)
        shares: Dict[str, Tuple[int, int]] = {}
        total = 0
        for i, a in enumerate(policy):
            index = i.to_bytes(4, "big")
            if i < len(policy) - 1:
                lam = hash_to_scalar(seed, encoded, b"share", index)
                total = (total + lam) % R
            else:
                lam = (msk.scalar - total) % R
            t = hash_to_scalar(seed, encoded, b"blind", index)
            shares[a] = (lam, t)
        return shares

    def keygen(self, msk: MasterKey, policy: AttributeInput) -> KPABEPrivateKey:
        policy = normalize_attributes(policy)
        g = G1Point.generator()
        components = {}
        for a, (lam, t) in self._shares(msk, policy).items():
            components[a] = (G2_BASE * lam + hash_to_point(a) * t, g * t)
        return KPABEPrivateKey(policy, components)

    def encrypt(self, params: PublicParams, attributes: AttributeInput, message: bytes) -> KPABECiphertext:
        _check_params(params)
        message = _check_message(message)
        attributes = normalize_attributes(attributes)
        r = random_scalar()
        u = params.generator * r
        c = tuple(hash_to_point(a) * r for a in attributes)
        k_gt = pair(params.public_point * r, G2_BASE)
        tag = integrity_tag(k_gt, *_tag_fields(self._scheme, attributes, u, message))
        return KPABECiphertext(attributes=attributes, u=u, c=c, v=_mask(message, k_gt), tag=tag)

    def decrypt(self, sk: KPABEPrivateKey, ct: KPABECiphertext) -> bytes:
        components = sk.components
        missing = [a for a in sk.policy if a not in ct.attributes]
        if missing:
            raise AttributeMismatch(f"ciphertext lacks policy attributes: {missing}")
        # prod e(U, K_a) = e(U, sum K_a)
        pairs = [(ct.u, _sum_points(components[a][0] for a in sk.policy))]
        for a in sk.policy:
            pairs.append((-components[a][1], ct.component(a)))
        k_gt = multi_pair(pairs)
        return _unmask_and_verify(self._scheme, ct.attributes, ct.u, ct.v, ct.tag, k_gt)
