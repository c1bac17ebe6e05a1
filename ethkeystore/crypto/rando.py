"""
Copyright (c) 2019, Brian Stafford
Copyright (c) 2019-20, The Decred developers
See LICENSE for details
"""

import os

from ethkeystore import KeystoreError
from ethkeystore.util.encode import ByteArray


SALT_SIZE = 32
IV_SIZE = 16

MinSeedBytes = 16  # 128 bits
MaxSeedBytes = 64  # 512 bits


def checkSeedLength(length):
    """
    Check that seed length is correct.

    Args:
        length int: the seed length to be checked.

    Raises:
        KeystoreError if length is not between MinSeedBytes and MaxSeedBytes
        included.
    """
    if length < MinSeedBytes or length > MaxSeedBytes:
        raise KeystoreError(f"Invalid seed length {length}")


def newSalt():
    """
    Generate a random scrypt salt of SALT_SIZE length.

    Returns:
        ByteArray: the salt.
    """
    return ByteArray(os.urandom(SALT_SIZE))


def newIV():
    """
    Generate a random AES initialization vector of IV_SIZE length.

    Returns:
        ByteArray: the IV.
    """
    return ByteArray(os.urandom(IV_SIZE))
