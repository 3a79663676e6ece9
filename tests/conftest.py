import subprocess
from pathlib import Path
import pytest
import sys

# tests/conftest.py

ROOT = Path(__file__).resolve().parents[1]
CRYPTO = ROOT / "crypto"
if str(CRYPTO) not in sys.path:
    sys.path.insert(0, str(CRYPTO))

from abe import CPABE, KPABE  # noqa: E402
from ibe import BasicIdentIBE  # noqa: E402


def run_tool(script, *args, check=True):
    """Run crypto/<script> as a subprocess; returns the CompletedProcess."""
    p = subprocess.run(
        [sys.executable, str(CRYPTO / script), *map(str, args)],
        capture_output=True,
        text=True,
    )
    if check and p.returncode != 0:
        raise RuntimeError(f"cmd failed:\n{p.stdout}\n{p.stderr}")
    return p


@pytest.fixture(scope="session")
def keys_dir(tmp_path_factory):
    d = tmp_path_factory.mktemp("keys")
    return Path(d)


@pytest.fixture(scope="session")
def ibe():
    return BasicIdentIBE()


@pytest.fixture(scope="session")
def cp():
    return CPABE()


@pytest.fixture(scope="session")
def kp():
    return KPABE()


@pytest.fixture(scope="session")
def master(ibe):
    """(msk, mpk) shared by all in-process tests; never destroyed."""
    return ibe.setup()


@pytest.fixture(scope="session")
def msk(master):
    return master[0]


@pytest.fixture(scope="session")
def mpk(master):
    return master[1]


@pytest.fixture(scope="session")
def ta_setup(keys_dir):
    setup_path = keys_dir / "ta_setup.json"
    run_tool("ta_local.py", "setup", "--out", setup_path)
    return setup_path
