# -*- coding: utf-8 -*-
"""
errors.py

Exception taxonomy shared by the arithmetic layer, the protocols and the
wire codec. Callers can catch PairingCryptoError for everything raised here.
"""

from __future__ import annotations


class PairingCryptoError(Exception):
    """Base class for every error raised by this package."""


class InvalidEncoding(PairingCryptoError, ValueError):
    """Bytes that should hold a scalar, point or object are malformed."""


class EmptyPolicy(PairingCryptoError, ValueError):
    """Encrypt or KeyGen was called with no attributes."""


class AttributeMismatch(PairingCryptoError):
    """The ABE key does not satisfy the ciphertext (or the tag did not verify)."""


class EntropyUnavailable(PairingCryptoError, RuntimeError):
    """The host entropy bridge is missing or failed."""


class KeyDestroyed(PairingCryptoError):
    """A secret handle was used after destroy()."""
