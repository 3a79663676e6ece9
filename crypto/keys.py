# -*- coding: utf-8 -*-
"""
keys.py

Key material shared by all three schemes:

- SecretHandle: base for objects holding secrets. destroy() wipes them, the
  handle is a context manager, and it is wiped when garbage collected.
  Copying or pickling a handle is refused.
- MasterKey: the master scalar s, kept in a bytearray that destroy() zeroes.
- PublicParams: generator P in G1 and s*P.
- setup(): draws s and builds both.

NOTE:
- Python ints are immutable, so wiping is best effort: the bytearray is
  zeroed, the derived ints and points are dropped.
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass, field
from typing import Tuple

from bn254 import CURVE_ID, R, SCALAR_BYTES, G1Point
from entropy import random_scalar
from errors import KeyDestroyed


class SecretHandle:
    _destroyed = False

    def _wipe(self) -> None:
        raise NotImplementedError

    def destroy(self) -> None:
        if not self._destroyed:
            self._wipe()
            self._destroyed = True

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def _check_alive(self) -> None:
        if self._destroyed:
            raise KeyDestroyed(f"{type(self).__name__} has been destroyed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.destroy()

    def __del__(self):
        try:
            self.destroy()
        except AttributeError:
            # __init__ never finished
            pass

    def __copy__(self):
        raise TypeError(f"{type(self).__name__} cannot be copied")

    def __deepcopy__(self, memo):
        raise TypeError(f"{type(self).__name__} cannot be copied")

    def __reduce__(self):
        raise TypeError(f"{type(self).__name__} cannot be pickled; use wire.encode")


class MasterKey(SecretHandle):
    def __init__(self, secret: int):
        if not 0 < secret < R:
            raise ValueError("master secret must be in [1, r)")
        self._secret = bytearray(secret.to_bytes(SCALAR_BYTES, "big"))

    @property
    def scalar(self) -> int:
        self._check_alive()
        return int.from_bytes(self._secret, "big")

    def secret_bytes(self) -> bytes:
        self._check_alive()
        return bytes(self._secret)

    def _wipe(self) -> None:
        for i in range(len(self._secret)):
            self._secret[i] = 0

    def __eq__(self, other) -> bool:
        if not isinstance(other, MasterKey):
            return NotImplemented
        if self.destroyed or other.destroyed:
            return self is other
        return hmac.compare_digest(bytes(self._secret), bytes(other._secret))

    __hash__ = None

    def __repr__(self) -> str:
        state = "destroyed" if self.destroyed else "<redacted>"
        return f"MasterKey({state})"


@dataclass(frozen=True)
class PublicParams:
    generator: G1Point
    public_point: G1Point
    curve: str = field(default=CURVE_ID)

    def __post_init__(self):
        if self.curve != CURVE_ID:
            raise ValueError(f"unsupported curve: {self.curve!r}")
        if self.generator.is_infinity or self.public_point.is_infinity:
            raise ValueError("public parameters contain the point at infinity")


def setup() -> Tuple[MasterKey, PublicParams]:
    """Setup() -> (msk, params)"""
    s = random_scalar()
    g = G1Point.generator()
    params = PublicParams(generator=g, public_point=g * s)
    return MasterKey(s), params
