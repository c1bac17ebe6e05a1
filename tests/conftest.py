"""
Copyright (c) 2019-2020, the Decred developers
See LICENSE for details
"""

import json
import random
from types import SimpleNamespace

import pytest

from ethkeystore.crypto.crypto import ScryptParams
from ethkeystore.util import helpers


# Web3 Secret Storage scrypt test vector. The password is "testpassword".
KEY_JSON = {
    "address": "008aeeda4d805471df9b2a5b0f38a0c3bcba786b",
    "crypto": {
        "cipher": "aes-128-ctr",
        "cipherparams": {"iv": "83dbcc02d8ccb40e466191a123791e0e"},
        "ciphertext": (
            "d172bf743a674da9cdad04534d56926ef8358534d458fffccd4e6ad2fbde479c"
        ),
        "kdf": "scrypt",
        "kdfparams": {
            "dklen": 32,
            "n": 262144,
            "p": 8,
            "r": 1,
            "salt": "ab0c7876052600dd703518d6fc3fe8984592145b591fc8fb5c6d43190334ba19",
        },
        "mac": "2103ac29920d71da29f15d75b4a16dbe95cfd7ff8faea1056c33131d846e3097",
    },
    "id": "e13b209c-3b2f-4327-bab0-3bef2e51630d",
    "version": 3,
}
KEY_PASSWORD = "testpassword"
KEY_PRIVATE = "7a28b5ba57c53603b0b07b56bba752f7784bf506fa95edc395f5cf6c7514fe9d"
KEY_ADDRESS = "0x008AeEda4D805471dF9b2A5B0f38A0C3bCBA786b"
KEY_FILENAME = (
    "UTC--2018-01-02T20-55-25.186770975Z--008aeeda4d805471df9b2a5b0f38a0c3bcba786b"
)

# A BIP-0039 mnemonic whose first Ethereum address is well known.
TEST_MNEMONIC = (
    "ripple scissors kick mammal hire column oak again sun offer wealth "
    "tomorrow wagon turn fatal"
)
TEST_PASSPHRASE = "TREZOR"
TEST_MNEMONIC_ADDRESS = "0x27Ef5cDBe01777D62438AfFeb695e33fC2335979"


@pytest.fixture
def randBytes():
    def _randBytes(low=0, high=50):
        return bytes(random.randint(0, 255) for _ in range(random.randint(low, high)))

    return _randBytes


@pytest.fixture(scope="module")
def prepareLogger(request):
    helpers.prepareLogging()


@pytest.fixture
def lightKDF():
    """
    Cheap scrypt parameters, so tests that encrypt don't pay for the standard
    strength.
    """

    def _lightKDF():
        return ScryptParams(n=1 << 10, r=8, p=1)

    return _lightKDF


@pytest.fixture
def keyVector():
    """
    The Web3 Secret Storage test vector keyfile and its known values.
    """
    return SimpleNamespace(
        dict=KEY_JSON,
        password=KEY_PASSWORD,
        privateKey=KEY_PRIVATE,
        address=KEY_ADDRESS,
        fileName=KEY_FILENAME,
    )


@pytest.fixture
def mnemonicVector():
    return SimpleNamespace(
        words=TEST_MNEMONIC,
        passphrase=TEST_PASSPHRASE,
        address=TEST_MNEMONIC_ADDRESS,
    )


@pytest.fixture
def keyJSON():
    return json.dumps(KEY_JSON)


@pytest.fixture
def legacyKeyJSON():
    d = dict(KEY_JSON)
    d["Crypto"] = d.pop("crypto")
    return json.dumps(d)


@pytest.fixture
def keyDir(tmp_path, keyJSON):
    """
    A keyfile directory holding the test vector keyfile and some files that
    are not keyfiles.
    """
    d = tmp_path / "keystore"
    d.mkdir()
    (d / KEY_FILENAME).write_text(keyJSON)
    (d / "README").write_text("not a keyfile")
    (d / "empty.json").write_text("{}")
    (d / ".hidden").write_text(keyJSON)
    (d / "subdir").mkdir()
    return d
