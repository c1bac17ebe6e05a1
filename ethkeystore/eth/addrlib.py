"""
Copyright (c) 2019, Brian Stafford
Copyright (c) 2019-2020, The Decred developers
See LICENSE for details

Account-model addresses. An address is the last 20 bytes of the keccak256
hash of the uncompressed public key, displayed with an EIP-55 mixed-case
checksum.
"""

from ethkeystore import KeystoreError
from ethkeystore.crypto.crypto import KeyLengthError, keccak256
from ethkeystore.crypto.secp256k1.curve import PUBKEY_LEN, PUBKEY_UNCOMPRESSED
from ethkeystore.util.encode import ByteArray, EncodingError, decodeHex, strip0x


ADDRESS_LENGTH = 20


class AddressError(KeystoreError):
    pass


def checksumEncode(addr):
    """
    EIP-55 encoding. Each hex letter is upper-cased when the corresponding
    nibble of keccak256(lowercase hex) is 8 or more.

    Args:
        addr (bytes-like): The 20 address bytes.

    Returns:
        str: The checksummed, 0x-prefixed address.
    """
    hx = ByteArray(addr).hex()
    hashHex = keccak256(hx.encode("ascii")).hex()
    chars = [c.upper() if int(hashHex[i], 16) >= 8 else c for i, c in enumerate(hx)]
    return "0x" + "".join(chars)


class Address:
    """
    A 20-byte account address. Equality and hashing are over the raw bytes.
    """

    def __init__(self, data):
        """
        Args:
            data (bytes-like): The 20 address bytes.
        """
        data = ByteArray(data)
        if len(data) != ADDRESS_LENGTH:
            raise AddressError(f"invalid address length {len(data)}")
        self.data = data

    @staticmethod
    def fromString(s):
        """
        Parse a hex address, with or without a 0x prefix, in any case.

        Args:
            s (str): The address.

        Returns:
            Address: The address.
        """
        try:
            return Address(decodeHex(s))
        except EncodingError as e:
            raise AddressError(f"invalid address {s!r}: {e}")

    @staticmethod
    def fromEIP55(s):
        """
        Parse an address that must carry a valid EIP-55 checksum.

        Args:
            s (str): The checksummed address, with or without a 0x prefix.

        Returns:
            Address: The address.
        """
        addr = Address.fromString(s)
        if strip0x(s) != strip0x(addr.string()):
            raise AddressError(f"address checksum mismatch for {s!r}")
        return addr

    @staticmethod
    def fromPublicKey(pubKey):
        """
        The address for an uncompressed public key.

        Args:
            pubKey (bytes-like): The 65-byte public key with the 0x04 prefix.

        Returns:
            Address: The address.
        """
        return Address(addressFromPublicKey(pubKey))

    def string(self):
        """
        The EIP-55 checksummed string.

        Returns:
            str: The address.
        """
        return checksumEncode(self.data)

    def hex(self):
        """
        Lowercase hex without prefix, the keyfile form.
        """
        return self.data.hex()

    def bytes(self):
        return self.data.bytes()

    def __str__(self):
        return self.string()

    def __repr__(self):
        return f"Address({self.string()})"

    def __eq__(self, other):
        if isinstance(other, str):
            try:
                other = Address.fromString(other)
            except AddressError:
                return False
        if isinstance(other, Address):
            return self.data == other.data
        return self.data == other

    def __hash__(self):
        return hash(self.data)


def addressFromPublicKey(pubKey):
    """
    Hash the uncompressed public key into address bytes.

    Args:
        pubKey (bytes-like): The 65-byte public key with the 0x04 prefix.

    Returns:
        ByteArray: The 20-byte address.
    """
    pubKey = ByteArray(pubKey)
    if len(pubKey) != PUBKEY_LEN or pubKey[0] != PUBKEY_UNCOMPRESSED:
        raise KeyLengthError("expected a 65-byte uncompressed public key")
    return keccak256(pubKey[1:])[-ADDRESS_LENGTH:]
