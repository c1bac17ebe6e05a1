"""
Copyright (c) 2019, Brian Stafford
Copyright (c) 2019-2020, The Decred developers
See LICENSE for details

secp256k1 keys and recoverable ECDSA signatures, backed by libsecp256k1
through coincurve. The library context is created once per process and
shared by every key and signature operation here.
"""

import coincurve
from coincurve.context import GLOBAL_CONTEXT
from coincurve.ecdsa import (
    cdata_to_der,
    deserialize_compact,
    deserialize_recoverable,
    recoverable_convert,
)

from ethkeystore import KeystoreError
from ethkeystore.util.encode import ByteArray


COORDINATE_LEN = 32
PUBKEY_COMPRESSED_LEN = COORDINATE_LEN + 1
PUBKEY_LEN = 65
PUBKEY_COMPRESSED = 0x02  # 0x02 y_bit + x coord
PUBKEY_UNCOMPRESSED = 0x04  # 0x04 x coord + y coord
SIGNATURE_LEN = 65  # r (32) || s (32) || recovery id (1)
HASH_LEN = 32


class Secp256k1Error(KeystoreError):
    """
    An invalid private key, public key, or signature was supplied.
    """

    pass


class PublicKey:
    """
    A secp256k1 public key.
    """

    def __init__(self, key):
        """
        Args:
            key (coincurve.PublicKey): The parsed key.
        """
        self.key = key

    def serializeCompressed(self):
        """
        The 33-byte compressed encoding.

        Returns:
            ByteArray: The public key.
        """
        return ByteArray(self.key.format(compressed=True))

    def serializeUncompressed(self):
        """
        The 65-byte uncompressed encoding, prefixed with 0x04.

        Returns:
            ByteArray: The public key.
        """
        return ByteArray(self.key.format(compressed=False))

    def __eq__(self, other):
        return (
            isinstance(other, PublicKey)
            and self.serializeCompressed() == other.serializeCompressed()
        )

    def __hash__(self):
        return hash(self.serializeCompressed())


class PrivateKey:
    """
    A secp256k1 private key with its public key.
    """

    def __init__(self, key):
        """
        Args:
            key (coincurve.PrivateKey): The parsed key.
        """
        self.key = key
        self.pub = PublicKey(key.public_key)

    def serialize(self):
        """
        The 32-byte private scalar.

        Returns:
            ByteArray: The private key.
        """
        return ByteArray(self.key.secret)


class Curve:
    """
    Curve wraps the shared library context and provides the key, point and
    signature operations needed for key derivation and signing.
    """

    # The order of the base point.
    N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

    def __init__(self, context=GLOBAL_CONTEXT):
        self.context = context

    def privateKey(self, k):
        """
        Parse the private key.

        Args:
            k (bytes-like): The 32-byte private scalar.

        Returns:
            PrivateKey: The private key.
        """
        k = ByteArray(k)
        if len(k) != COORDINATE_LEN:
            raise Secp256k1Error(f"invalid private key length {len(k)}")
        try:
            return PrivateKey(coincurve.PrivateKey(k.bytes(), context=self.context))
        except ValueError as e:
            raise Secp256k1Error(f"invalid private key: {e}")

    def publicKey(self, k):
        """
        The public key for the private key.

        Args:
            k (bytes-like): The 32-byte private scalar.

        Returns:
            PublicKey: The public key.
        """
        return self.privateKey(k).pub

    def parsePubKey(self, pubKeyB):
        """
        Parse a compressed or uncompressed public key.

        Args:
            pubKeyB (bytes-like): The encoded public key.

        Returns:
            PublicKey: The public key.
        """
        pubKeyB = ByteArray(pubKeyB)
        if len(pubKeyB) not in (PUBKEY_COMPRESSED_LEN, PUBKEY_LEN):
            raise Secp256k1Error(f"invalid public key length {len(pubKeyB)}")
        try:
            return PublicKey(
                coincurve.PublicKey(pubKeyB.bytes(), context=self.context)
            )
        except ValueError as e:
            raise Secp256k1Error(f"invalid public key: {e}")

    def add(self, pubKey, tweak):
        """
        Add tweak*G to the public key point.

        Args:
            pubKey (PublicKey): The public key.
            tweak (bytes-like): The 32-byte scalar.

        Returns:
            PublicKey: The resulting public key.
        """
        try:
            return PublicKey(pubKey.key.add(ByteArray(tweak).bytes()))
        except ValueError as e:
            raise Secp256k1Error(f"point addition failed: {e}")

    def sign(self, privKey, msgHash):
        """
        Sign the 32-byte hash. The signature is deterministic (RFC 6979) with
        a low S value.

        Args:
            privKey (bytes-like): The 32-byte private scalar.
            msgHash (bytes-like): The hash to sign.

        Returns:
            ByteArray: The 65-byte signature r || s || recovery id.
        """
        msgHash = checkHash(msgHash)
        return ByteArray(
            self.privateKey(privKey).key.sign_recoverable(msgHash, hasher=None)
        )

    def recover(self, sig, msgHash):
        """
        Recover the public key that produced the recoverable signature.

        Args:
            sig (bytes-like): The 65-byte signature.
            msgHash (bytes-like): The signed hash.

        Returns:
            PublicKey: The signing key.
        """
        msgHash = checkHash(msgHash)
        sig = ByteArray(sig)
        if len(sig) != SIGNATURE_LEN:
            raise Secp256k1Error(f"invalid recoverable signature length {len(sig)}")
        if sig[64] > 3:
            raise Secp256k1Error(f"invalid recovery id {sig[64]}")
        try:
            return PublicKey(
                coincurve.PublicKey.from_signature_and_message(
                    sig.bytes(), msgHash, hasher=None, context=self.context
                )
            )
        except ValueError as e:
            raise Secp256k1Error(f"signature recovery failed: {e}")

    def verify(self, sig, msgHash, pubKey):
        """
        Check the signature against the hash and public key. Both 65-byte
        recoverable and 64-byte compact signatures are accepted.

        Args:
            sig (bytes-like): The signature.
            msgHash (bytes-like): The signed hash.
            pubKey (bytes-like or PublicKey): The expected signer.

        Returns:
            bool: True if the signature is valid.
        """
        msgHash = checkHash(msgHash)
        if not isinstance(pubKey, PublicKey):
            pubKey = self.parsePubKey(pubKey)
        sig = ByteArray(sig).bytes()
        try:
            if len(sig) == SIGNATURE_LEN:
                if sig[64] > 3:
                    return False
                cdata = recoverable_convert(
                    deserialize_recoverable(sig, context=self.context),
                    context=self.context,
                )
            elif len(sig) == SIGNATURE_LEN - 1:
                cdata = deserialize_compact(sig, context=self.context)
            else:
                return False
            der = cdata_to_der(cdata, context=self.context)
        except ValueError:
            return False
        return pubKey.key.verify(der, msgHash, hasher=None)


def checkHash(msgHash):
    msgHash = ByteArray(msgHash).bytes()
    if len(msgHash) != HASH_LEN:
        raise Secp256k1Error(f"expected {HASH_LEN}-byte hash, got {len(msgHash)}")
    return msgHash


def generateKey():
    """
    Generate a new private key with the library's secure random source.

    Returns:
        PrivateKey: The new key.
    """
    return PrivateKey(coincurve.PrivateKey(context=curve.context))


curve = Curve()
