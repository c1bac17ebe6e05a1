"""
Copyright (c) 2020, Brian Stafford
Copyright (c) 2020, the Decred developers
See LICENSE for details

A class that wraps bytearray and provides some convenient operators, plus the
hexadecimal codec used by the keyfile format.
"""

import binascii

from ethkeystore import KeystoreError


class EncodingError(KeystoreError):
    pass


def intToBytes(i):
    """
    Encodes an unsigned integer to the minimal number of big-endian bytes.

    Args:
        i (int): The integer.

    Returns:
        bytearray: The encoded integer.
    """
    length = (i.bit_length() + 7) // 8
    return bytearray(i.to_bytes(length, byteorder="big"))


def intFromBytes(b):
    """
    Decodes a big-endian unsigned integer from bytes.

    Args:
        b (bytes-like): The encoded integer.

    Returns:
        int: The decoded integer.
    """
    return int.from_bytes(b, "big")


def strip0x(s):
    """
    Remove a leading 0x or 0X from the string, if present.
    """
    if s[:2] in ("0x", "0X"):
        return s[2:]
    return s


def decodeHex(s):
    """
    Decode a hexadecimal string. A leading 0x is accepted.

    Args:
        s (str): The hexadecimal string.

    Returns:
        bytearray: The decoded bytes.

    Raises:
        EncodingError: The string has an odd length or non-hex characters.
    """
    s = strip0x(s)
    if len(s) % 2:
        raise EncodingError(f"odd-length hex string {s!r}")
    try:
        return bytearray(binascii.unhexlify(s))
    except (binascii.Error, ValueError):
        raise EncodingError(f"invalid hex string {s!r}")


def decodeBA(b, copy=False):
    """
    Decode into a bytearray.

    Args:
        b (str, bytes-like, ByteArray, int, list(int)): The value to decode to
            a bytearray. Strings are interpreted as hexadecimal, with or
            without a 0x prefix. Integers are minimally encoded to an unsigned
            integer.

    Returns:
        bytearray: The decoded bytes.
    """
    if isinstance(b, ByteArray):
        return bytearray(b.b) if copy else b.b
    if isinstance(b, bytearray):
        return bytearray(b) if copy else b
    if isinstance(b, bytes):
        return bytearray(b)
    if isinstance(b, int):
        return intToBytes(b) if b else bytearray([0])
    if isinstance(b, str):
        return decodeHex(b)
    if hasattr(b, "__iter__"):
        return bytearray(b)
    raise TypeError("decodeBA: unknown type %s" % type(b))


class ByteArray:
    """
    ByteArray is a bytearray manager. It provides convenience decodings on the
    fly, so operations work with various types of input. Since bytearrays are
    mutable, ByteArray can also zero the internal value without relying on
    garbage collection, which is how every decrypted secret in this package is
    held. Used as a context manager, the ByteArray zeroes itself on exit,
    whether the block returns normally or raises.

    An integer argument to the ByteArray constructor results in the shortest
    possible byte representation of the integer. To get a zero-padded
    ByteArray of length n, use the `length` keyword argument.
    """

    def __init__(self, b=b"", copy=True, length=None):
        """
        Set copy to False if you want to share the memory with another
        bytearray/ByteArray. If the type of b is not bytearray or ByteArray,
        copy has no effect.
        """
        b = decodeBA(b, copy=copy)
        if length:
            if len(b) > length:
                raise EncodingError(f"value too long for length {length}")
            b = bytearray(length - len(b)) + b
        self.b = b

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.zero()

    def __lt__(self, a):
        return bytearray.__lt__(self.b, decodeBA(a))

    def __le__(self, a):
        return bytearray.__le__(self.b, decodeBA(a))

    def __eq__(self, a):
        try:
            return bytearray.__eq__(self.b, decodeBA(a))
        except (TypeError, EncodingError):
            return False

    def __ne__(self, a):
        return not self.__eq__(a)

    def __ge__(self, a):
        return bytearray.__ge__(self.b, decodeBA(a))

    def __gt__(self, a):
        return bytearray.__gt__(self.b, decodeBA(a))

    def __repr__(self):
        return "ByteArray(" + self.hex() + ")"

    def __len__(self):
        return len(self.b)

    def __add__(self, a):
        """Append the bytes and return a new ByteArray."""
        return ByteArray(self.b + decodeBA(a))

    def __getitem__(self, k):
        if isinstance(k, slice):
            return ByteArray(self.b[k.start : k.stop : k.step], copy=False)
        return self.b[k]

    def __setitem__(self, i, v):
        v = decodeBA(v, copy=False)
        if i + len(v) > len(self.b):
            raise EncodingError("source bytes too long")
        for j in range(len(v)):
            self.b[i + j] = v[j]

    def __hash__(self):
        """Enables ByteArray to be a dict key."""
        return hash(bytes(self.b))

    def __bytes__(self):
        return bytes(self.b)

    def hex(self):
        """
        A lowercase hexadecimal string representation of the bytes, without a
        0x prefix.

        Returns:
            str: The hex bytes.
        """
        return self.b.hex()

    def zero(self):
        """
        Sets the bytes of the underlying bytearray to zero. The benefit of
        zeroing is that the info is destroyed immediately, rather than relying
        on the garbage collector.
        """
        for i in range(len(self.b)):
            self.b[i] = 0

    def iszero(self):
        """
        True if all bytes are zero.
        """
        return all((v == 0 for v in self.b))

    def int(self):
        """The bytes as an integer."""
        return intFromBytes(self.b)

    def bytes(self):
        """The bytes as Python `bytes`."""
        return bytes(self.b)

    def copy(self):
        """A copy of the ByteArray."""
        return ByteArray(self.b)
