# -*- coding: utf-8 -*-
"""
ta_local.py  (Trusted Authority host tool)

TA role utilities, run locally:
   - setup                      -> keys/ta_setup.json  {curve, mpk, msk}
   - extract  --identity ID     -> IBE private key for one identity
   - keygen   --scheme cp|kp    -> CP-ABE key for an attribute set, or
                                   KP-ABE key for a conjunctive policy

Keys are written as JSON with base64 wire blobs (see wire.py). The client
side (client_local.py) imports build_scheme / load_setup from here so both
roles share one scheme table.

NOTE:
- In a production system you would NOT ship msk outside the TA.
- For local use we keep mpk/msk/sk as JSON files under keys/.
"""

from __future__ import annotations

import argparse
import sys
from typing import Any, Dict, Optional, Tuple, Union

from abe import CPABE, KPABE
from bn254 import CURVE_ID
from errors import InvalidEncoding, PairingCryptoError
from ibe import BasicIdentIBE
from keys import MasterKey, PublicParams
from wire import Kind, decode_b64, encode_b64, load_json, save_json


Scheme = Union[BasicIdentIBE, CPABE, KPABE]

SCHEMES = {
    BasicIdentIBE.name: BasicIdentIBE,
    CPABE.name: CPABE,
    KPABE.name: KPABE,
}


# ============================================================
# 1) Factory + setup file access
# ============================================================
def build_scheme(name: str) -> Scheme:
    """'ibe' | 'cp' | 'kp' -> scheme instance."""
    try:
        return SCHEMES[name]()
    except KeyError:
        raise ValueError(f"unknown scheme {name!r}; expected one of {sorted(SCHEMES)}") from None


def check_curve(blob: Dict[str, Any], path: str) -> None:
    if not isinstance(blob, dict):
        raise InvalidEncoding(f"{path}: expected a json object, got {type(blob).__name__}")
    curve = blob.get("curve")
    if curve != CURVE_ID:
        raise InvalidEncoding(f"{path}: unsupported curve {curve!r}")


def b64_field(blob: Dict[str, Any], key: str, path: str) -> str:
    value = blob[key]
    if not isinstance(value, str):
        raise InvalidEncoding(f"{path}: {key} must be a base64 string, got {type(value).__name__}")
    return value


def load_setup(path: str, with_msk: bool = False) -> Tuple[PublicParams, Optional[MasterKey]]:
    """Returns (mpk, msk or None)."""
    blob = load_json(path)
    check_curve(blob, path)
    if "mpk" not in blob:
        raise KeyError(f"{path}: setup json missing key: mpk")
    mpk = decode_b64(b64_field(blob, "mpk", path), Kind.PUBLIC_PARAMS)
    msk = None
    if with_msk:
        if "msk" not in blob:
            raise KeyError(f"{path}: setup json missing key: msk")
        msk = decode_b64(b64_field(blob, "msk", path), Kind.MASTER_KEY)
    return mpk, msk


# ============================================================
# 2) TA CLI commands
# ============================================================
def cmd_setup(args: argparse.Namespace) -> None:
    msk, mpk = BasicIdentIBE().setup()
    with msk:
        out = {
            "curve": CURVE_ID,
            "mpk": encode_b64(mpk),
            "msk": encode_b64(msk),
        }
    save_json(args.out, out)
    print(f"[TA] Setup OK -> wrote: {args.out}")


def cmd_extract(args: argparse.Namespace) -> None:
    _, msk = load_setup(args.inp, with_msk=True)
    ibe = BasicIdentIBE()
    with msk, ibe.extract(msk, args.identity) as sk:
        out = {
            "curve": CURVE_ID,
            "scheme": ibe.name,
            "identity": sk.identity,
            "sk": encode_b64(sk),
        }
    save_json(args.out, out)
    print(f"[TA] Extract OK ({args.identity!r}) -> wrote: {args.out}")


def cmd_keygen(args: argparse.Namespace) -> None:
    if args.scheme not in (CPABE.name, KPABE.name):
        raise ValueError("keygen supports --scheme cp or kp; use extract for ibe")
    _, msk = load_setup(args.inp, with_msk=True)
    scheme = build_scheme(args.scheme)
    with msk, scheme.keygen(msk, args.attrs) as sk:
        out: Dict[str, Any] = {"curve": CURVE_ID, "scheme": scheme.name}
        if scheme.name == CPABE.name:
            out["attrs"] = list(sk.attributes)
        else:
            out["policy"] = list(sk.policy)
        out["sk"] = encode_b64(sk)
    save_json(args.out, out)
    print(f"[TA] KeyGen OK ({scheme.name}) -> wrote: {args.out}")


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(prog="pairing-ta")
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_setup = sub.add_parser("setup", help="TA: Setup() -> mpk,msk")
    ap_setup.add_argument("--out", default="keys/ta_setup.json")
    ap_setup.set_defaults(func=cmd_setup)

    ap_ex = sub.add_parser("extract", help="TA: Extract(msk,ID) -> d_ID (IBE)")
    ap_ex.add_argument("--inp", default="keys/ta_setup.json", help="TA setup json containing mpk+msk")
    ap_ex.add_argument("--identity", required=True)
    ap_ex.add_argument("--out", default="keys/user_sk.json")
    ap_ex.set_defaults(func=cmd_extract)

    ap_kg = sub.add_parser("keygen", help="TA: KeyGen(msk,A) -> sk_A (ABE)")
    ap_kg.add_argument("--inp", default="keys/ta_setup.json", help="TA setup json containing mpk+msk")
    ap_kg.add_argument("--scheme", choices=[CPABE.name, KPABE.name], default=CPABE.name)
    ap_kg.add_argument("--attrs", required=True,
                       help="Comma attrs: the key's attribute set (cp) or its conjunctive policy (kp).")
    ap_kg.add_argument("--out", default="keys/user_sk.json")
    ap_kg.set_defaults(func=cmd_keygen)

    args = ap.parse_args(argv)
    try:
        args.func(args)
    except (PairingCryptoError, ValueError, KeyError, OSError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
