# -*- coding: utf-8 -*-
"""
bn254.py  (BN254 group layer on top of py_ecc)

The field tower, curve arithmetic and the optimal ate pairing come from
py_ecc.optimized_bn128 (alt_bn128 / BN254). This file adds what the
protocols need around them:

1) G1Point / G2Point: small typed wrappers over py_ecc's projective points
   (+, -, k * P, ==, subgroup check)
2) pair(P, Q) with P in G1 first, Q in G2 second (py_ecc takes them the other
   way round), and multi_pair for products of pairings
3) Fixed-width big-endian encodings for points, GT elements and scalars.
   Decoding rejects wrong lengths, non-canonical coordinates, off-curve
   points and G2 points outside the order-r subgroup.
"""

from __future__ import annotations

from typing import Iterable, Tuple

from py_ecc.optimized_bn128 import (
    FQ,
    FQ2,
    FQ12,
    G1,
    G2,
    Z1,
    Z2,
    add,
    b as B1,
    b2 as B2,
    curve_order,
    eq,
    field_modulus,
    is_inf,
    is_on_curve,
    multiply,
    neg,
    normalize,
    pairing,
)

from errors import InvalidEncoding


# ============================================================
# 0) Curve parameters (BN254 / alt_bn128)
# ============================================================
CURVE_ID = "BN254"

P = field_modulus
R = curve_order
# #E'(Fp2) = r * (2p - r)
G2_COFACTOR = 2 * P - R

FIELD_BYTES = 32
SCALAR_BYTES = 32
GT_BYTES = 12 * FIELD_BYTES

GT = FQ12


def _int(c) -> int:
    # py_ecc keeps coefficients either as FQ or as plain ints
    return c if isinstance(c, int) else c.n


def _read_int(data: bytes) -> int:
    n = int.from_bytes(data, "big")
    if n >= P:
        raise InvalidEncoding("field element is not reduced modulo p")
    return n


# ============================================================
# 1) Points
# ============================================================
class _Point:
    """Wraps one py_ecc projective point; immutable."""

    __slots__ = ("pt",)

    b = None
    zero = None
    coord_size = FIELD_BYTES

    def __init__(self, pt):
        self.pt = pt

    @classmethod
    def infinity(cls):
        return cls(cls.zero)

    @property
    def is_infinity(self) -> bool:
        return is_inf(self.pt)

    def is_on_curve(self) -> bool:
        return is_on_curve(self.pt, self.b)

    def in_subgroup(self) -> bool:
        return is_inf(multiply(self.pt, R))

    def multiply(self, k: int):
        """k * P without reducing k modulo r (cofactor clearing, subgroup checks)."""
        if k < 0:
            return type(self)(multiply(neg(self.pt), -k))
        return type(self)(multiply(self.pt, k))

    def __neg__(self):
        return type(self)(neg(self.pt))

    def __add__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return type(self)(add(self.pt, other.pt))

    def __sub__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return type(self)(add(self.pt, neg(other.pt)))

    def __mul__(self, k):
        if not isinstance(k, int):
            return NotImplemented
        return type(self)(multiply(self.pt, k % R))

    __rmul__ = __mul__

    def __eq__(self, other) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return eq(self.pt, other.pt)

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.to_bytes()))

    def __repr__(self) -> str:
        if self.is_infinity:
            return f"{type(self).__name__}(infinity)"
        return f"{type(self).__name__}({self.to_bytes().hex()})"

    # --- encoding ---
    def _coords(self, v) -> bytes:
        raise NotImplementedError

    @classmethod
    def _field(cls, data: bytes):
        raise NotImplementedError

    def to_bytes(self) -> bytes:
        """x || y (affine); the point at infinity is all zeros."""
        if self.is_infinity:
            return bytes(2 * self.coord_size)
        x, y = normalize(self.pt)
        return self._coords(x) + self._coords(y)

    @classmethod
    def from_bytes(cls, data: bytes, allow_infinity: bool = True):
        size = 2 * cls.coord_size
        if len(data) != size:
            raise InvalidEncoding(f"{cls.__name__} must be {size} bytes, got {len(data)}")
        if data == bytes(size):
            if not allow_infinity:
                raise InvalidEncoding(f"{cls.__name__} is the point at infinity")
            return cls.infinity()
        x = cls._field(data[:cls.coord_size])
        y = cls._field(data[cls.coord_size:])
        point = cls((x, y, type(x).one()))
        if not point.is_on_curve():
            raise InvalidEncoding(f"{cls.__name__} is not on the curve")
        if not point.in_subgroup():
            raise InvalidEncoding(f"{cls.__name__} is not in the order-r subgroup")
        return point


class G1Point(_Point):
    """y^2 = x^3 + 3 over Fp (cofactor 1)."""

    __slots__ = ()

    b = B1
    zero = Z1
    coord_size = FIELD_BYTES

    @classmethod
    def generator(cls) -> "G1Point":
        return cls(G1)

    def in_subgroup(self) -> bool:
        return True

    def _coords(self, v) -> bytes:
        return _int(v).to_bytes(FIELD_BYTES, "big")

    @classmethod
    def _field(cls, data: bytes):
        return FQ(_read_int(data))


class G2Point(_Point):
    """y^2 = x^3 + 3 / (9 + i) over Fp2 (D-type sextic twist)."""

    __slots__ = ()

    b = B2
    zero = Z2
    coord_size = 2 * FIELD_BYTES

    @classmethod
    def generator(cls) -> "G2Point":
        return cls(G2)

    @classmethod
    def from_affine(cls, x: FQ2, y: FQ2) -> "G2Point":
        return cls((x, y, FQ2.one()))

    def _coords(self, v) -> bytes:
        return b"".join(_int(c).to_bytes(FIELD_BYTES, "big") for c in v.coeffs)

    @classmethod
    def _field(cls, data: bytes):
        return FQ2([_read_int(data[:FIELD_BYTES]), _read_int(data[FIELD_BYTES:])])


# ============================================================
# 2) Pairing
# ============================================================
def _check_pair_args(p, q) -> None:
    if not isinstance(p, G1Point):
        raise TypeError(f"pairing expects a G1Point first, got {type(p).__name__}")
    if not isinstance(q, G2Point):
        raise TypeError(f"pairing expects a G2Point second, got {type(q).__name__}")


def pair(p: G1Point, q: G2Point) -> GT:
    """e(P, Q) for P in G1, Q in G2; GT identity if either is infinity."""
    _check_pair_args(p, q)
    return pairing(q.pt, p.pt)


def multi_pair(pairs: Iterable[Tuple[G1Point, G2Point]]) -> GT:
    """prod e(P_i, Q_i)"""
    f = FQ12.one()
    for p, q in pairs:
        f = f * pair(p, q)
    return f


def gt_one() -> GT:
    return FQ12.one()


def gt_to_bytes(f: GT) -> bytes:
    return b"".join(_int(c).to_bytes(FIELD_BYTES, "big") for c in f.coeffs)


def gt_from_bytes(data: bytes) -> GT:
    if len(data) != GT_BYTES:
        raise InvalidEncoding(f"GT element must be {GT_BYTES} bytes, got {len(data)}")
    return FQ12([_read_int(data[k:k + FIELD_BYTES]) for k in range(0, GT_BYTES, FIELD_BYTES)])


# ============================================================
# 3) Scalars
# ============================================================
def scalar_to_bytes(k: int) -> bytes:
    if not 0 <= k < R:
        raise ValueError("scalar out of range [0, r)")
    return k.to_bytes(SCALAR_BYTES, "big")


def scalar_from_bytes(data: bytes, allow_zero: bool = False) -> int:
    if len(data) != SCALAR_BYTES:
        raise InvalidEncoding(f"scalar must be {SCALAR_BYTES} bytes, got {len(data)}")
    k = int.from_bytes(data, "big")
    if k >= R:
        raise InvalidEncoding("scalar is not reduced modulo r")
    if k == 0 and not allow_zero:
        raise InvalidEncoding("scalar is zero")
    return k
