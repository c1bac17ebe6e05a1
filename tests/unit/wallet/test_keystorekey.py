"""
Copyright (c) 2020, the Decred developers
See LICENSE for details
"""

import datetime
import json

import pytest

from ethkeystore import KeystoreError
from ethkeystore.crypto.crypto import AddressMismatch, InvalidPassword, KeyHeader
from ethkeystore.crypto.mnemonic import InvalidMnemonic
from ethkeystore.crypto.secp256k1.curve import Secp256k1Error, curve as Curve
from ethkeystore.eth.addrlib import Address
from ethkeystore.util.encode import ByteArray
from ethkeystore.wallet.derivation import DEFAULT_PATH
from ethkeystore.wallet.keystorekey import (
    KeyDecodeError,
    KeystoreKey,
    KeyType,
    keyFileName,
    mnemonicFromPayload,
)


ZERO_WORDS = " ".join(["abandon"] * 11 + ["about"])
ZERO_ADDRESS = "0x9858EfFD232B4033E47d90003D41EC34EcaEda94"
ZERO_PRIVATE = "1ab42cc412b618bdea3a599e3c9bae199ebf030895b039e9db1e30dafb12b727"

# 2018-01-02T20:55:25.186770975 UTC
VECTOR_NS = 1514926525186770975

PRIV_KEY = ByteArray(
    "D30519BCAE8D180DBFCC94FE0B8383DC310185B0BE97B4365083EBCECCD75759"
)


def test_keyfile_vector(keyVector, keyJSON, legacyKeyJSON):
    key = KeystoreKey.fromJSON(keyJSON)
    assert key.address == keyVector.address
    assert key.type == KeyType.encryptedKey
    assert not key.isHD
    assert key.id == keyVector.dict["id"]
    assert key.version == 3
    assert key.fileName(VECTOR_NS) == keyVector.fileName
    with key.privateKey(keyVector.password) as privKey:
        assert privKey == keyVector.privateKey

    # Older wallets capitalize the crypto key.
    legacy = KeystoreKey.fromJSON(legacyKeyJSON)
    assert legacy.address == key.address
    assert legacy.crypto.dict() == key.crypto.dict()

    # Encoding adds the type, and otherwise reproduces the input.
    d = key.dict()
    assert d.pop("type") == KeyType.encryptedKey
    assert d == keyVector.dict


def test_keyFileName():
    address = Address.fromString("008aeeda4d805471df9b2a5b0f38a0c3bcba786b")
    assert keyFileName(address, VECTOR_NS) == (
        "UTC--2018-01-02T20-55-25.186770975Z--008aeeda4d805471df9b2a5b0f38a0c3bcba786b"
    )
    pst = datetime.timezone(datetime.timedelta(hours=-8))
    assert keyFileName(address, VECTOR_NS, pst) == (
        "UTC--2018-01-02T12-55-25.186770975-0800--"
        "008aeeda4d805471df9b2a5b0f38a0c3bcba786b"
    )
    ist = datetime.timezone(datetime.timedelta(hours=5, minutes=30))
    assert keyFileName("someid", VECTOR_NS + 5, ist) == (
        "UTC--2018-01-03T02-25-25.186770980+0530--someid"
    )
    name = keyFileName(address)
    assert name.startswith("UTC--")
    assert name.endswith("Z--008aeeda4d805471df9b2a5b0f38a0c3bcba786b")


def test_private_key(lightKDF):
    key = KeystoreKey.fromPrivateKey(PRIV_KEY, "abc", lightKDF())
    pubKey = Curve.publicKey(PRIV_KEY).serializeUncompressed()
    assert key.address == Address.fromPublicKey(pubKey)
    assert key.type == KeyType.encryptedKey

    d = json.loads(key.json())
    assert d["address"] == key.address.hex()
    assert d["type"] == "private-key"
    assert d["version"] == 3
    assert "derivationPath" not in d
    assert d["crypto"]["kdf"] == "scrypt"
    assert d["crypto"]["kdfparams"]["n"] == 1 << 10

    reKey = KeystoreKey.fromJSON(key.json())
    assert reKey.id == key.id
    assert reKey.privateKey("abc") == PRIV_KEY
    # A path means nothing to a private key keyfile.
    assert reKey.privateKey("abc", "m/44'/60'/0'/0/5") == PRIV_KEY

    with pytest.raises(InvalidPassword):
        reKey.privateKey("abd")
    with pytest.raises(InvalidMnemonic):
        reKey.decryptMnemonic("abc")

    msgHash = bytes(range(32))
    sig = reKey.sign(msgHash, "abc")
    assert Curve.recover(sig, msgHash).serializeUncompressed() == pubKey
    sigs = reKey.signHashes([msgHash, bytes(32)], "abc")
    assert sigs[0] == sig
    assert Curve.verify(sigs[1], bytes(32), pubKey)


def test_address_mismatch(lightKDF):
    key = KeystoreKey.fromPrivateKey(PRIV_KEY, "abc", lightKDF())
    d = key.dict()
    d["address"] = "00" * 20
    forged = KeystoreKey.fromDict(d)
    # The file still decrypts, but the key is not the recorded address's.
    forged.decrypt("abc").zero()
    with pytest.raises(AddressMismatch):
        forged.privateKey("abc")
    with pytest.raises(AddressMismatch):
        forged.sign(bytes(32), "abc")
    with pytest.raises(AddressMismatch):
        forged.reencrypt("abc", "def", lightKDF())


def test_signing_zeroes_secrets(lightKDF, monkeypatch):
    secrets = []

    def recorder(func):
        def wrapped(*a, **k):
            secret = func(*a, **k)
            secrets.append(secret)
            return secret

        return wrapped

    monkeypatch.setattr(KeyHeader, "decrypt", recorder(KeyHeader.decrypt))
    monkeypatch.setattr(KeystoreKey, "privateKey", recorder(KeystoreKey.privateKey))

    rawKey = KeystoreKey.fromPrivateKey(PRIV_KEY, "abc", lightKDF())
    hdKey = KeystoreKey.fromMnemonic(ZERO_WORDS, "abc", kdfParams=lightKDF())
    msgHash = bytes(range(32))

    for key in (rawKey, hdKey):
        secrets.clear()
        key.sign(msgHash, "abc")
        key.signHashes([msgHash, bytes(32)], "abc")
        with pytest.raises(Secp256k1Error):
            key.sign(msgHash[:31], "abc")
        with pytest.raises(Secp256k1Error):
            key.signHashes([msgHash, msgHash[:31]], "abc")
        # One decrypted payload and one signing key per call.
        assert len(secrets) == 8
        for secret in secrets:
            assert len(secret) > 0
            assert secret.iszero()


def test_mnemonic(lightKDF):
    key = KeystoreKey.fromMnemonic(ZERO_WORDS, "abc", kdfParams=lightKDF())
    assert key.isHD
    assert key.type == KeyType.hdWallet
    assert key.address == ZERO_ADDRESS
    assert key.derivationPath == DEFAULT_PATH

    d = json.loads(key.json())
    assert d["type"] == "mnemonic"
    assert d["derivationPath"] == DEFAULT_PATH
    assert d["address"] == ZERO_ADDRESS[2:].lower()

    reKey = KeystoreKey.fromJSON(key.json())
    assert reKey.isHD
    assert reKey.decryptMnemonic("abc") == ZERO_WORDS
    with reKey.decrypt("abc") as secret:
        assert secret == ZERO_WORDS.encode()
    assert reKey.privateKey("abc") == ZERO_PRIVATE
    other = reKey.privateKey("abc", "m/44'/60'/0'/0/1")
    assert other != ZERO_PRIVATE

    with reKey.hdWallet("abc") as wallet:
        assert wallet.getKey(1).privateKey == other

    msgHash = bytes(range(32))
    sig = reKey.sign(msgHash, "abc", "m/44'/60'/0'/0/1")
    assert Curve.verify(sig, msgHash, Curve.publicKey(other))

    with pytest.raises(InvalidPassword):
        reKey.decryptMnemonic("abd")


def test_mnemonic_path(lightKDF):
    key = KeystoreKey.fromMnemonic(
        ZERO_WORDS, "abc", derivationPath="m/44'/61'/0'/0/x", kdfParams=lightKDF()
    )
    reKey = KeystoreKey.fromJSON(key.json())
    assert reKey.derivationPath == "m/44'/61'/0'/0/x"
    assert reKey.address == key.address
    assert reKey.address != ZERO_ADDRESS
    assert reKey.privateKey("abc") != ZERO_PRIVATE


def test_passphrase_is_not_stored(lightKDF, mnemonicVector):
    key = KeystoreKey.fromMnemonic(
        mnemonicVector.words,
        "abc",
        passphrase=mnemonicVector.passphrase,
        kdfParams=lightKDF(),
    )
    assert key.address == mnemonicVector.address
    assert mnemonicVector.passphrase not in key.json()

    reKey = KeystoreKey.fromJSON(key.json())
    with pytest.raises(AddressMismatch):
        reKey.privateKey("abc")
    assert reKey.decryptMnemonic("abc") == mnemonicVector.words
    with reKey.privateKey("abc", passphrase=mnemonicVector.passphrase) as privKey:
        assert privKey == key.privateKey("abc")

    # Re-encryption checks the password only.
    newKey = reKey.reencrypt("abc", "def", lightKDF())
    assert newKey.decryptMnemonic("def") == mnemonicVector.words

    reKey.passphrase = mnemonicVector.passphrase
    with reKey.privateKey("abc") as privKey:
        assert len(privKey) == 32


def test_invalid_mnemonic(lightKDF):
    badWords = " ".join(["abandon"] * 12)
    with pytest.raises(InvalidMnemonic):
        KeystoreKey.fromMnemonic(badWords, "abc", kdfParams=lightKDF())
    with pytest.raises(InvalidMnemonic):
        KeystoreKey.fromMnemonic("ábandon", "abc", kdfParams=lightKDF())


def test_mnemonicFromPayload():
    assert mnemonicFromPayload(ByteArray(b"abandon about\x00")) == "abandon about"
    assert mnemonicFromPayload(ByteArray(b"abandon about")) == "abandon about"
    assert mnemonicFromPayload(ByteArray(b"")) == ""
    with pytest.raises(InvalidMnemonic):
        mnemonicFromPayload(ByteArray(b"\xff\xfe"))


def test_reencrypt(lightKDF):
    key = KeystoreKey.fromPrivateKey(PRIV_KEY, "abc", lightKDF())
    newKey = key.reencrypt("abc", "def", lightKDF())
    assert newKey.address == key.address
    assert newKey.id != key.id
    assert newKey.crypto.kdfParams.salt != key.crypto.kdfParams.salt
    assert newKey.crypto.iv != key.crypto.iv
    assert newKey.privateKey("def") == PRIV_KEY
    with pytest.raises(InvalidPassword):
        newKey.privateKey("abc")
    with pytest.raises(InvalidPassword):
        key.reencrypt("abd", "def", lightKDF())

    assert key.reencrypt("abc", "def", lightKDF(), keepID=True).id == key.id

    hdKey = KeystoreKey.fromMnemonic(ZERO_WORDS, "abc", kdfParams=lightKDF())
    newHDKey = hdKey.reencrypt("abc", "def", lightKDF())
    assert newHDKey.isHD
    assert newHDKey.derivationPath == hdKey.derivationPath
    assert newHDKey.decryptMnemonic("def") == ZERO_WORDS


def test_generate(lightKDF):
    key = KeystoreKey.generate("abc", kdfParams=lightKDF())
    assert not key.isHD
    assert len(key.privateKey("abc")) == 32
    assert KeystoreKey.generate("abc", kdfParams=lightKDF()).address != key.address

    hdKey = KeystoreKey.generate("abc", KeyType.hdWallet, lightKDF())
    assert hdKey.isHD
    assert len(hdKey.decryptMnemonic("abc").split()) == 24

    with pytest.raises(KeystoreError):
        KeystoreKey.generate("abc", "ed25519", lightKDF())


def test_decode(lightKDF):
    key = KeystoreKey.fromPrivateKey(PRIV_KEY, "abc", lightKDF())

    # Unknown and missing types are private key keyfiles.
    for keyType in ("something-else", None):
        d = key.dict()
        if keyType:
            d["type"] = keyType
        else:
            del d["type"]
        assert KeystoreKey.fromDict(d).type == KeyType.encryptedKey

    # A 0x prefix on the address is accepted.
    d = key.dict()
    d["address"] = "0x" + d["address"]
    assert KeystoreKey.fromDict(d).address == key.address

    with pytest.raises(KeyDecodeError):
        KeystoreKey.fromJSON("not json")
    with pytest.raises(KeyDecodeError):
        KeystoreKey.fromJSON("[]")
    with pytest.raises(KeyDecodeError):
        KeystoreKey.fromJSON("{}")

    d = key.dict()
    del d["crypto"]
    with pytest.raises(KeyDecodeError):
        KeystoreKey.fromDict(d)

    d = key.dict()
    del d["crypto"]["mac"]
    with pytest.raises(KeyDecodeError):
        KeystoreKey.fromDict(d)

    d = key.dict()
    d["address"] = "1234"
    with pytest.raises(KeystoreError):
        KeystoreKey.fromDict(d)

    d = KeystoreKey.fromMnemonic(ZERO_WORDS, "abc", kdfParams=lightKDF()).dict()
    d["derivationPath"] = "m/44'/y"
    with pytest.raises(KeystoreError):
        KeystoreKey.fromDict(d)

    # Keyfiles can be read from disk as bytes.
    d = key.dict()
    assert KeystoreKey.fromJSON(json.dumps(d).encode()).address == key.address


def test_fromFile(tmp_path, keyVector, keyJSON):
    path = tmp_path / keyVector.fileName
    path.write_text(keyJSON)
    key = KeystoreKey.fromFile(path)
    assert key.address == keyVector.address
