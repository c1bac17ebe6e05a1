"""
Copyright (c) 2020, the Decred developers
See LICENSE for details
"""

import pytest

from ethkeystore import KeystoreError
from ethkeystore.crypto import rando


def test_checkSeedLength():
    with pytest.raises(KeystoreError):
        rando.checkSeedLength(rando.MinSeedBytes - 1)
    with pytest.raises(KeystoreError):
        rando.checkSeedLength(rando.MaxSeedBytes + 1)
    rando.checkSeedLength(rando.MinSeedBytes)
    rando.checkSeedLength(rando.MaxSeedBytes)


def test_random_values():
    assert len(rando.newSalt()) == rando.SALT_SIZE
    assert len(rando.newIV()) == rando.IV_SIZE
    assert rando.newSalt() != rando.newSalt()
