"""
Copyright (c) 2020, The Decred developers
See LICENSE for details

BIP-0032 derivation paths, e.g. m/44'/60'/0'/0/0.
"""

import re

from ethkeystore import KeystoreError
from ethkeystore.crypto.crypto import HARDENED_KEY_START


# The address index placeholder in a path template.
PLACEHOLDER = "x"

DEFAULT_PATH = "m/44'/60'/0'/0/x"

_componentRE = re.compile(r"([0-9]+)(')?")


class DerivationPathError(KeystoreError):
    pass


class Index:
    """
    One step of a derivation path.
    """

    def __init__(self, value, hardened=False):
        """
        Args:
            value (int): The index value, in [0, 2^31).
            hardened (bool): Whether this is a hardened index.
        """
        if not isinstance(value, int) or value < 0 or value >= HARDENED_KEY_START:
            raise DerivationPathError(f"index value {value!r} out of range")
        self.value = value
        self.hardened = hardened

    @property
    def derivationIndex(self):
        """
        The child number, biased by 2^31 for hardened indices.
        """
        return self.value + HARDENED_KEY_START if self.hardened else self.value

    def __str__(self):
        return f"{self.value}'" if self.hardened else str(self.value)

    def __repr__(self):
        return f"Index({self})"

    def __eq__(self, other):
        return (
            isinstance(other, Index)
            and self.value == other.value
            and self.hardened == other.hardened
        )

    def __hash__(self):
        return hash((self.value, self.hardened))


class DerivationPath:
    """
    An immutable sequence of Index. Renders as m/44'/60'/0'/0/0.
    """

    def __init__(self, indices):
        """
        Args:
            indices (iterable(Index)): The path indices. Must not be empty.
        """
        self.indices = tuple(indices)
        if not self.indices:
            raise DerivationPathError("empty derivation path")

    @staticmethod
    def parse(s):
        """
        Parse a path string. The leading "m" is optional.

        Args:
            s (str): The path.

        Returns:
            DerivationPath: The path.

        Raises:
            DerivationPathError: A component is empty, non-numeric or out of
                range, or there are no components.
        """
        components = s.split("/")
        if components[0] == "m":
            components = components[1:]
        indices = []
        for component in components:
            m = _componentRE.fullmatch(component)
            if not m:
                raise DerivationPathError(
                    f"invalid path component {component!r} in {s!r}"
                )
            indices.append(Index(int(m.group(1)), hardened=bool(m.group(2))))
        return DerivationPath(indices)

    def _at(self, i):
        return self.indices[i].value if len(self.indices) > i else None

    @property
    def purpose(self):
        return self._at(0)

    @property
    def coinType(self):
        return self._at(1)

    @property
    def account(self):
        return self._at(2)

    @property
    def change(self):
        return self._at(3)

    @property
    def address(self):
        return self._at(4)

    def derivationIndices(self):
        """
        The child numbers to walk from the root key.

        Returns:
            list(int): The child numbers.
        """
        return [idx.derivationIndex for idx in self.indices]

    def incremented(self):
        """
        The path with the last index value increased by one.

        Returns:
            DerivationPath: The new path.
        """
        last = self.indices[-1]
        nextIdx = Index(last.value + 1, last.hardened)
        return DerivationPath(self.indices[:-1] + (nextIdx,))

    def __str__(self):
        return "/".join(["m"] + [str(idx) for idx in self.indices])

    def __repr__(self):
        return f"DerivationPath({self})"

    def __len__(self):
        return len(self.indices)

    def __eq__(self, other):
        if isinstance(other, str):
            try:
                other = DerivationPath.parse(other)
            except DerivationPathError:
                return False
        return isinstance(other, DerivationPath) and self.indices == other.indices

    def __hash__(self):
        return hash(self.indices)


def pathForIndex(template, index):
    """
    Substitute the address index for the placeholder. A template without a
    placeholder is returned parsed but otherwise unchanged.

    Args:
        template (str): A path like m/44'/60'/0'/0/x.
        index (int): The address index.

    Returns:
        DerivationPath: The concrete path.
    """
    return DerivationPath.parse(str(template).replace(PLACEHOLDER, str(index)))
