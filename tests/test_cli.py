import json

import pytest

from client_local import decrypt_bytes
from conftest import run_tool
from errors import InvalidEncoding


@pytest.fixture(scope="module")
def alice_sk(keys_dir, ta_setup):
    sk_path = keys_dir / "alice_sk.json"
    run_tool("ta_local.py", "extract", "--inp", ta_setup, "--identity", "alice@example.com", "--out", sk_path)
    return sk_path


@pytest.fixture(scope="module")
def cp_sk_abc(keys_dir, ta_setup):
    sk_path = keys_dir / "cp_sk_ABC.json"
    run_tool("ta_local.py", "keygen", "--inp", ta_setup, "--scheme", "cp", "--attrs", "A,B,C", "--out", sk_path)
    return sk_path


def test_setup_file_layout(ta_setup):
    blob = json.loads(ta_setup.read_text())
    assert blob["curve"] == "BN254"
    assert set(blob) == {"curve", "mpk", "msk"}


def test_ibe_encrypt_decrypt(keys_dir, ta_setup, alice_sk):
    ct_path = keys_dir / "ibe_ct.json"
    p = run_tool("client_local.py", "encrypt", "--setup", ta_setup, "--scheme", "ibe",
                 "--to", "alice@example.com", "--plaintext", "Hello, IBE!", "--out", ct_path)
    assert "[CLIENT] Encrypt OK" in p.stdout
    assert json.loads(ct_path.read_text())["scheme"] == "ibe"

    p = run_tool("client_local.py", "decrypt", "--sk", alice_sk, "--ct", ct_path)
    assert p.stdout.strip() == "Hello, IBE!"


def test_cp_policy_not_satisfied(keys_dir, ta_setup, cp_sk_abc):
    ct_path = keys_dir / "cp_ct.json"
    run_tool("client_local.py", "encrypt", "--setup", ta_setup, "--scheme", "cp",
             "--to", "A,D", "--plaintext", "secret", "--out", ct_path)
    p = run_tool("client_local.py", "decrypt", "--sk", cp_sk_abc, "--ct", ct_path, check=False)
    assert p.returncode != 0
    assert "[ERROR]" in p.stderr


def test_kp_file_roundtrip(keys_dir, ta_setup, tmp_path):
    sk_path = keys_dir / "kp_sk.json"
    p = run_tool("ta_local.py", "keygen", "--inp", ta_setup, "--scheme", "kp", "--attrs", "A,B", "--out", sk_path)
    assert "[TA] KeyGen OK" in p.stdout
    assert json.loads(sk_path.read_text())["policy"] == ["A", "B"]

    src = tmp_path / "in.bin"
    src.write_bytes(bytes(range(256)))
    ct_path = keys_dir / "kp_ct.json"
    run_tool("client_local.py", "encrypt", "--setup", ta_setup, "--scheme", "kp",
             "--to", "A,B,C", "--in", src, "--out", ct_path)
    out = tmp_path / "out.bin"
    run_tool("client_local.py", "decrypt", "--sk", sk_path, "--ct", ct_path, "--out", out)
    assert out.read_bytes() == bytes(range(256))


def test_scheme_mismatch_is_reported(keys_dir, ta_setup, alice_sk):
    ct_path = keys_dir / "cp_ct2.json"
    run_tool("client_local.py", "encrypt", "--setup", ta_setup, "--scheme", "cp",
             "--to", "A", "--plaintext", "x", "--out", ct_path)
    p = run_tool("client_local.py", "decrypt", "--sk", alice_sk, "--ct", ct_path, check=False)
    assert p.returncode != 0
    assert "does not match" in p.stderr


def test_empty_policy_is_an_error(keys_dir, ta_setup):
    p = run_tool("ta_local.py", "keygen", "--inp", ta_setup, "--scheme", "cp", "--attrs", " , ",
                 "--out", keys_dir / "never.json", check=False)
    assert p.returncode == 1
    assert "[ERROR]" in p.stderr
    assert not (keys_dir / "never.json").exists()


def test_missing_setup_file(tmp_path):
    p = run_tool("client_local.py", "encrypt", "--setup", tmp_path / "nope.json", "--scheme", "ibe",
                 "--to", "x", "--plaintext", "x", "--out", tmp_path / "ct.json", check=False)
    assert p.returncode == 1
    assert "[ERROR]" in p.stderr


@pytest.mark.parametrize("bundle", [
    ["BN254", "ibe"],
    "ct",
    {"curve": "BN254", "scheme": "ibe", "ct": 5},
    {"curve": "BN254", "scheme": "ibe", "ct": None},
])
def test_malformed_ciphertext_json(alice_sk, bundle):
    with pytest.raises(InvalidEncoding):
        decrypt_bytes(bundle, sk_path=str(alice_sk))


def test_malformed_key_json(tmp_path, alice_sk):
    ct = {"curve": "BN254", "scheme": "ibe", "ct": "AAAA"}
    sk_path = tmp_path / "sk.json"
    sk_path.write_text(json.dumps({"curve": "BN254", "scheme": "ibe", "sk": ["x"]}))
    with pytest.raises(InvalidEncoding):
        decrypt_bytes(ct, sk_path=str(sk_path))
    sk_path.write_text(json.dumps([1, 2, 3]))
    with pytest.raises(InvalidEncoding):
        decrypt_bytes(ct, sk_path=str(sk_path))


def test_non_object_json_is_a_cli_error(tmp_path, alice_sk):
    ct_path = tmp_path / "ct.json"
    ct_path.write_text("[1, 2, 3]")
    p = run_tool("client_local.py", "decrypt", "--sk", alice_sk, "--ct", ct_path, check=False)
    assert p.returncode == 1
    assert "[ERROR]" in p.stderr
    assert "Traceback" not in p.stderr

    setup_path = tmp_path / "setup.json"
    setup_path.write_text(json.dumps({"curve": "BN254", "mpk": 7}))
    p = run_tool("client_local.py", "encrypt", "--setup", setup_path, "--scheme", "ibe",
                 "--to", "x", "--plaintext", "x", "--out", tmp_path / "out.json", check=False)
    assert p.returncode == 1
    assert "[ERROR]" in p.stderr
