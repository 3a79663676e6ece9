# -*- coding: utf-8 -*-
"""
client_local.py

Client-side tool:
- encrypt: loads mpk (setup json) and encrypts to
    ibe -> an identity         (--to alice@example.com)
    cp  -> a conjunctive policy (--to "A,B")
    kp  -> an attribute set     (--to "A,B,C")
  and writes {curve, scheme, ct} JSON.
- decrypt: loads a user key json (from ta_local.py) and a ciphertext json,
  and prints (or writes) the plaintext.

Scheme is recorded in both files; a key for one scheme is never tried
against another scheme's ciphertext.
"""

from __future__ import annotations

import argparse
import base64
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from errors import InvalidEncoding, PairingCryptoError
from ta_local import b64_field, build_scheme, check_curve, load_setup
from wire import Kind, decode_b64, encode_b64, load_json, save_json


_KEY_KINDS = {"ibe": Kind.IBE_PRIVATE_KEY, "cp": Kind.CPABE_PRIVATE_KEY, "kp": Kind.KPABE_PRIVATE_KEY}
_CT_KINDS = {"ibe": Kind.IBE_CIPHERTEXT, "cp": Kind.CPABE_CIPHERTEXT, "kp": Kind.KPABE_CIPHERTEXT}


# ------------------------
# helpers
# ------------------------
def _scheme_of(blob: Dict[str, Any], path: str) -> str:
    check_curve(blob, path)
    scheme = blob.get("scheme")
    if scheme not in _KEY_KINDS:
        raise InvalidEncoding(f"{path}: unknown scheme {scheme!r}")
    return scheme


def encrypt_bytes(plaintext: bytes, scheme: str, to: str, setup_path: str = "keys/ta_setup.json") -> Dict[str, Any]:
    if plaintext is None:
        raise ValueError("plaintext is None")
    mpk, _ = load_setup(setup_path)
    sch = build_scheme(scheme)
    ct = sch.encrypt(mpk, to, plaintext)
    return {"curve": mpk.curve, "scheme": sch.name, "ct": encode_b64(ct)}


def decrypt_bytes(bundle: Dict[str, Any], sk_path: str = "keys/user_sk.json") -> bytes:
    scheme = _scheme_of(bundle, "ciphertext")
    sk_blob = load_json(sk_path)
    if _scheme_of(sk_blob, sk_path) != scheme:
        raise InvalidEncoding(
            f"key scheme {sk_blob.get('scheme')!r} does not match ciphertext scheme {scheme!r}"
        )
    if "ct" not in bundle:
        raise KeyError("ciphertext json missing key: ct")
    if "sk" not in sk_blob:
        raise KeyError(f"{sk_path}: key json missing key: sk")
    ct_b64 = b64_field(bundle, "ct", "ciphertext")
    sk_b64 = b64_field(sk_blob, "sk", sk_path)
    ct = decode_b64(ct_b64, _CT_KINDS[scheme])
    with decode_b64(sk_b64, _KEY_KINDS[scheme]) as sk:
        return build_scheme(scheme).decrypt(sk, ct)


# ------------------------
# CLI
# ------------------------
def cmd_encrypt(args: argparse.Namespace) -> None:
    if args.inp:
        pt = Path(args.inp).read_bytes()
    else:
        pt = (args.plaintext or "").encode("utf-8")
    bundle = encrypt_bytes(pt, args.scheme, args.to, setup_path=args.setup)
    save_json(args.out, bundle)
    print(f"[CLIENT] Encrypt OK ({args.scheme}, {len(pt)} bytes) -> wrote: {args.out}")


def cmd_decrypt(args: argparse.Namespace) -> None:
    pt = decrypt_bytes(load_json(args.ct), sk_path=args.sk)
    if args.out:
        Path(args.out).parent.mkdir(parents=True, exist_ok=True)
        Path(args.out).write_bytes(pt)
        print(f"[CLIENT] Decrypt OK -> wrote: {args.out}")
        return
    try:
        print(pt.decode("utf-8"))
    except UnicodeDecodeError:
        print(base64.b64encode(pt).decode("ascii"))


def main(argv: Optional[list] = None) -> int:
    ap = argparse.ArgumentParser(prog="pairing-client")
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_enc = sub.add_parser("encrypt", help="Encrypt to an identity, policy or attribute set")
    ap_enc.add_argument("--setup", default="keys/ta_setup.json")
    ap_enc.add_argument("--scheme", choices=["ibe", "cp", "kp"], default="ibe")
    ap_enc.add_argument("--to", required=True,
                        help="identity (ibe), comma policy (cp) or comma attribute set (kp)")
    src = ap_enc.add_mutually_exclusive_group(required=True)
    src.add_argument("--plaintext", help="UTF-8 text to encrypt")
    src.add_argument("--in", dest="inp", help="file to encrypt")
    ap_enc.add_argument("--out", default="keys/ct.json")
    ap_enc.set_defaults(func=cmd_encrypt)

    ap_dec = sub.add_parser("decrypt", help="Decrypt a ciphertext json with a user key")
    ap_dec.add_argument("--sk", default="keys/user_sk.json")
    ap_dec.add_argument("--ct", default="keys/ct.json")
    ap_dec.add_argument("--out", default=None, help="write plaintext here instead of printing")
    ap_dec.set_defaults(func=cmd_decrypt)

    args = ap.parse_args(argv)
    try:
        args.func(args)
    except (PairingCryptoError, ValueError, KeyError, OSError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
