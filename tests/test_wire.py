import struct

import pytest

from bn254 import G1Point
from errors import InvalidEncoding
from wire import Kind, b64d, b64e, decode, encode, kind_of, load_json, save_json


@pytest.fixture(scope="module")
def objects(ibe, cp, kp, msk, mpk):
    return {
        Kind.MASTER_KEY: msk,
        Kind.PUBLIC_PARAMS: mpk,
        Kind.IBE_PRIVATE_KEY: ibe.extract(msk, "alice@example.com"),
        Kind.IBE_CIPHERTEXT: ibe.encrypt(mpk, "alice@example.com", b"Hello, IBE!"),
        Kind.CPABE_PRIVATE_KEY: cp.keygen(msk, "A,B,C"),
        Kind.CPABE_CIPHERTEXT: cp.encrypt(mpk, "A,B", b"Hello, ABE!"),
        Kind.KPABE_PRIVATE_KEY: kp.keygen(msk, "A,B"),
        Kind.KPABE_CIPHERTEXT: kp.encrypt(mpk, "A,B,C", b"Hello, ABE!"),
    }


def test_every_kind_roundtrips_canonically(objects):
    for kind, obj in objects.items():
        data = encode(obj)
        assert data[:4] == b"PE" + bytes([1, int(kind)])
        assert kind_of(obj) == kind
        back = decode(data)
        assert back == obj
        assert encode(back) == data


def test_decoded_keys_still_decrypt(ibe, cp, kp, objects):
    sk = decode(encode(objects[Kind.IBE_PRIVATE_KEY]))
    ct = decode(encode(objects[Kind.IBE_CIPHERTEXT]))
    assert ibe.decrypt(sk, ct) == b"Hello, IBE!"

    sk = decode(encode(objects[Kind.CPABE_PRIVATE_KEY]))
    ct = decode(encode(objects[Kind.CPABE_CIPHERTEXT]))
    assert cp.decrypt(sk, ct) == b"Hello, ABE!"

    sk = decode(encode(objects[Kind.KPABE_PRIVATE_KEY]))
    ct = decode(encode(objects[Kind.KPABE_CIPHERTEXT]))
    assert kp.decrypt(sk, ct) == b"Hello, ABE!"


def test_expected_kind_is_enforced(objects):
    data = encode(objects[Kind.IBE_CIPHERTEXT])
    assert decode(data, Kind.IBE_CIPHERTEXT) == objects[Kind.IBE_CIPHERTEXT]
    with pytest.raises(InvalidEncoding):
        decode(data, Kind.CPABE_CIPHERTEXT)


def test_truncation_and_trailing_bytes(objects):
    for obj in objects.values():
        data = encode(obj)
        with pytest.raises(InvalidEncoding):
            decode(data[:-1])
        with pytest.raises(InvalidEncoding):
            decode(data + b"\x00")


@pytest.mark.parametrize("header", [b"XX\x01\x04", b"PE\x02\x04", b"PE\x01\x00", b"PE\x01\x09", b"P"])
def test_bad_header(objects, header):
    data = encode(objects[Kind.IBE_CIPHERTEXT])
    with pytest.raises(InvalidEncoding):
        decode(header + data[4:])


def test_decode_rejects_non_bytes():
    with pytest.raises(TypeError):
        decode("PE")


def test_encode_rejects_unknown_objects():
    with pytest.raises(TypeError):
        encode(G1Point.generator())


def _labels(*labels):
    out = struct.pack(">I", len(labels))
    for raw in labels:
        out += struct.pack(">I", len(raw)) + raw
    return out


def test_label_list_validation(objects):
    ct = objects[Kind.CPABE_CIPHERTEXT]
    tail = ct.u.to_bytes() + ct.tag + struct.pack(">I", len(ct.v)) + ct.v
    header = b"PE\x01\x06"
    assert decode(header + _labels(b"A", b"B") + tail) == ct
    for bad in (_labels(), _labels(b"A", b"A"), _labels(b"A", b"\xff\xfe"), _labels(b" A", b"B")):
        with pytest.raises(InvalidEncoding):
            decode(header + bad + tail)


def test_infinity_rejected_where_not_allowed(objects):
    ct = objects[Kind.IBE_CIPHERTEXT]
    data = b"PE\x01\x04" + bytes(64) + struct.pack(">I", len(ct.v)) + ct.v
    with pytest.raises(InvalidEncoding):
        decode(data)


def test_public_params_checks(objects):
    data = bytearray(encode(objects[Kind.PUBLIC_PARAMS]))
    # curve label "BN254" starts after the 4-byte header and u32 length
    bad_curve = bytes(data[:8]) + b"BN256" + bytes(data[13:])
    with pytest.raises(InvalidEncoding):
        decode(bad_curve)
    bad_gen = bytes(data[:13]) + (G1Point.generator() * 2).to_bytes() + bytes(data[77:])
    with pytest.raises(InvalidEncoding):
        decode(bad_gen)


def test_master_key_scalar_checks():
    with pytest.raises(InvalidEncoding):
        decode(b"PE\x01\x01" + bytes(32))
    with pytest.raises(InvalidEncoding):
        decode(b"PE\x01\x01" + b"\xff" * 32)


def test_b64_and_json(tmp_path, objects):
    blob = encode(objects[Kind.PUBLIC_PARAMS])
    assert b64d(b64e(blob)) == blob
    with pytest.raises(InvalidEncoding):
        b64d("not base64!")
    path = tmp_path / "sub" / "x.json"
    save_json(str(path), {"curve": "BN254", "mpk": b64e(blob)})
    assert load_json(str(path))["mpk"] == b64e(blob)


def test_comma_labels_never_reach_the_wire(cp, kp, msk, mpk):
    # a label holding a comma has no wire form
    with pytest.raises(ValueError):
        cp.keygen(msk, ["A,B"])
    with pytest.raises(ValueError):
        kp.encrypt(mpk, ["A", "B,C"], b"m")
    sk = cp.keygen(msk, ["A;B", "C"])
    assert sk.attributes == ("A;B", "C")
    assert decode(encode(sk)) == sk
