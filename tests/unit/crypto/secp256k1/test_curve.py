"""
Copyright (c) 2019-2020, the Decred developers
See LICENSE for details
"""

import pytest

from ethkeystore.crypto.crypto import keccak256
from ethkeystore.crypto.secp256k1 import curve as secp
from ethkeystore.crypto.secp256k1.curve import Secp256k1Error, curve as Curve
from ethkeystore.util.encode import ByteArray


PRIV_KEY = ByteArray(
    "D30519BCAE8D180DBFCC94FE0B8383DC310185B0BE97B4365083EBCECCD75759"
)
MSG_HASH = keccak256(b"a message to sign")

# The generator point, the public key of private key 1.
G_UNCOMPRESSED = (
    "0479be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"
    "483ada7726a3c4655da4fbfc0e1108a8fd17b448a68554199c47d08ffb10d4b8"
)
G_COMPRESSED = "0279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"


def test_keys():
    pub = Curve.publicKey(ByteArray(1, length=32))
    assert pub.serializeUncompressed() == G_UNCOMPRESSED
    assert pub.serializeCompressed() == G_COMPRESSED
    assert Curve.parsePubKey(G_UNCOMPRESSED) == pub
    assert Curve.parsePubKey(G_COMPRESSED) == pub
    assert hash(Curve.parsePubKey(G_COMPRESSED)) == hash(pub)

    priv = Curve.privateKey(PRIV_KEY)
    assert priv.serialize() == PRIV_KEY
    assert priv.pub == Curve.publicKey(PRIV_KEY)

    with pytest.raises(Secp256k1Error):
        Curve.privateKey(bytes(32))
    with pytest.raises(Secp256k1Error):
        Curve.privateKey(ByteArray(Curve.N))
    with pytest.raises(Secp256k1Error):
        Curve.privateKey(bytes(31))
    with pytest.raises(Secp256k1Error):
        Curve.parsePubKey(bytes(64))
    with pytest.raises(Secp256k1Error):
        Curve.parsePubKey(bytes(33))

    key = secp.generateKey()
    assert len(key.serialize()) == 32
    assert secp.generateKey().serialize() != key.serialize()


def test_add():
    # 1*G + 1*G == 2*G
    g = Curve.publicKey(ByteArray(1, length=32))
    assert Curve.add(g, ByteArray(1, length=32)) == Curve.publicKey(
        ByteArray(2, length=32)
    )


def test_sign():
    sig = Curve.sign(PRIV_KEY, MSG_HASH)
    assert len(sig) == secp.SIGNATURE_LEN
    assert sig[64] in (0, 1, 2, 3)
    # Deterministic.
    assert Curve.sign(PRIV_KEY, MSG_HASH) == sig
    # Low S.
    assert sig[32:64].int() <= Curve.N // 2

    pub = Curve.publicKey(PRIV_KEY)
    assert Curve.recover(sig, MSG_HASH) == pub
    assert Curve.verify(sig, MSG_HASH, pub)
    assert Curve.verify(sig, MSG_HASH, pub.serializeUncompressed())
    assert Curve.verify(sig[:64], MSG_HASH, pub)

    otherHash = keccak256(b"a different message")
    assert not Curve.verify(sig, otherHash, pub)
    assert Curve.recover(sig, otherHash) != pub
    otherPub = Curve.publicKey(ByteArray(1, length=32))
    assert not Curve.verify(sig, MSG_HASH, otherPub)

    badRecID = sig.copy()
    badRecID[64] = 4
    assert not Curve.verify(badRecID, MSG_HASH, pub)
    with pytest.raises(Secp256k1Error):
        Curve.recover(badRecID, MSG_HASH)

    assert not Curve.verify(sig[:63], MSG_HASH, pub)
    with pytest.raises(Secp256k1Error):
        Curve.recover(sig[:64], MSG_HASH)
    with pytest.raises(Secp256k1Error):
        Curve.sign(PRIV_KEY, MSG_HASH[:31])
