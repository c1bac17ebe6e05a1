"""
Copyright (c) 2020, The Decred developers
See LICENSE for details
"""


class KeystoreError(Exception):
    pass
