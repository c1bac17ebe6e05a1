"""
Copyright (c) 2019, Brian Stafford
Copyright (c) 2019-2020, The Decred developers
See LICENSE for details

BIP-0039 mnemonic seed phrases, English wordlist.
"""

from mnemonic import Mnemonic

from ethkeystore import KeystoreError
from ethkeystore.util.encode import ByteArray


STRENGTHS = (128, 160, 192, 224, 256)
MAX_PASSPHRASE_LENGTH = 256

_wordlist = Mnemonic("english")


class InvalidMnemonic(KeystoreError):
    """
    The phrase is not a valid BIP-0039 mnemonic, or is not usable where it was
    supplied.
    """

    pass


def generate(strength=256):
    """
    Generate a random mnemonic.

    Args:
        strength (int): The entropy bits. A multiple of 32 in [128, 256].

    Returns:
        str: The space-separated words.
    """
    if strength not in STRENGTHS:
        raise KeystoreError(f"invalid mnemonic strength {strength}")
    return _wordlist.generate(strength=strength)


def fromEntropy(entropy):
    """
    The mnemonic that encodes the entropy.

    Args:
        entropy (bytes-like): 16, 20, 24, 28 or 32 bytes.

    Returns:
        str: The space-separated words.
    """
    entropy = ByteArray(entropy)
    if len(entropy) * 8 not in STRENGTHS:
        raise KeystoreError(f"invalid entropy length {len(entropy)}")
    return _wordlist.to_mnemonic(entropy.bytes())


def isValid(words):
    """
    Whether the words are a valid mnemonic, including the checksum.
    """
    return _wordlist.check(words)


def toSeed(words, passphrase=""):
    """
    The 64-byte BIP-0039 seed.

    Args:
        words (str): The mnemonic.
        passphrase (str): An optional passphrase, at most 256 characters.

    Returns:
        ByteArray: The seed. The caller should zero it when done.
    """
    if len(passphrase) > MAX_PASSPHRASE_LENGTH:
        raise KeystoreError("mnemonic passphrase too long")
    return ByteArray(Mnemonic.to_seed(words, passphrase=passphrase))
