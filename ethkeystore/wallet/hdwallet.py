"""
Copyright (c) 2020, The Decred developers
See LICENSE for details

Hierarchical deterministic keys from BIP-0039 mnemonics.
"""

from ethkeystore.crypto import mnemonic
from ethkeystore.crypto.crypto import ExtendedKey, ParameterRangeError
from ethkeystore.crypto.mnemonic import InvalidMnemonic
from ethkeystore.crypto.secp256k1.curve import curve as Curve
from ethkeystore.eth.addrlib import Address
from ethkeystore.util.encode import ByteArray

from .derivation import DEFAULT_PATH, DerivationPath, Index, pathForIndex


SECP256K1 = "secp256k1"


def seed(words, passphrase=""):
    """
    The BIP-0039 seed for the mnemonic and passphrase.

    Returns:
        ByteArray: The 64-byte seed.
    """
    return mnemonic.toSeed(words, passphrase)


def deriveNode(seedB, curveName=SECP256K1):
    """
    The root node of the key tree.

    Args:
        seedB (bytes-like): The seed.
        curveName (str): The curve. Only secp256k1 is supported.

    Returns:
        ExtendedKey: The master extended private key.
    """
    if curveName != SECP256K1:
        raise ParameterRangeError(f"unsupported curve {curveName!r}")
    return ExtendedKey.new(seedB)


def childKey(node, index, hardened=False):
    """
    One step of child key derivation.

    Args:
        node (ExtendedKey): The parent.
        index (int): The index value, in [0, 2^31).
        hardened (bool): Whether to derive a hardened child.

    Returns:
        ExtendedKey: The child.
    """
    return node.child(Index(index, hardened).derivationIndex)


def toPath(path):
    if isinstance(path, DerivationPath):
        return path
    return DerivationPath.parse(path)


class HDKey:
    """
    The key pair and address at one position of the key tree. Used as a
    context manager, the private key is zeroed on exit.
    """

    def __init__(self, privKey, path):
        """
        Args:
            privKey (bytes-like): The private key. A copy is held.
            path (DerivationPath): The key's position.
        """
        self.path = path
        self.privateKey = ByteArray(privKey)
        self.publicKey = Curve.publicKey(self.privateKey).serializeUncompressed()
        self.address = Address.fromPublicKey(self.publicKey)

    def sign(self, msgHash):
        """
        Sign the 32-byte hash.

        Returns:
            ByteArray: The 65-byte recoverable signature.
        """
        return Curve.sign(self.privateKey, msgHash)

    def zero(self):
        self.privateKey.zero()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.zero()


class HDWallet:
    """
    HDWallet derives keys along BIP-0044 paths from a mnemonic and optional
    passphrase. The path template's placeholder is replaced with an address
    index by getKey.
    """

    def __init__(self, words, passphrase="", path=DEFAULT_PATH):
        """
        Args:
            words (str): The mnemonic.
            passphrase (str): The BIP-0039 passphrase.
            path (str): The path template, e.g. m/44'/60'/0'/0/x.

        Raises:
            InvalidMnemonic: The mnemonic fails validation.
        """
        if not mnemonic.isValid(words):
            raise InvalidMnemonic("invalid mnemonic")
        # Validate the template.
        pathForIndex(path, 0)
        self.mnemonic = words
        self.passphrase = passphrase
        self.path = str(path)
        self.seed = seed(words, passphrase)

    @staticmethod
    def generate(strength=256, passphrase="", path=DEFAULT_PATH):
        """
        An HDWallet for a new random mnemonic.
        """
        return HDWallet(mnemonic.generate(strength), passphrase, path)

    def rootNode(self):
        return deriveNode(self.seed)

    def node(self, path):
        """
        The extended key at the path.

        Args:
            path (str or DerivationPath): The position.

        Returns:
            ExtendedKey: The extended private key.
        """
        root = self.rootNode()
        node = root.derive(toPath(path).derivationIndices())
        if node is not root:
            root.zero()
        return node

    def keyAt(self, path):
        """
        The key at the path.

        Args:
            path (str or DerivationPath): The position.

        Returns:
            HDKey: The key. The caller should zero it when done.
        """
        path = toPath(path)
        node = self.node(path)
        try:
            return HDKey(node.key, path)
        finally:
            node.zero()

    def getKey(self, index):
        """
        The key at the template path with the placeholder set to index.

        Returns:
            HDKey: The key.
        """
        return self.keyAt(pathForIndex(self.path, index))

    def extendedPublicKey(self, coinType, account=0):
        """
        The serialized extended public key of the account node
        m/44'/<coinType>'/<account>'.

        Returns:
            str: The xpub string.
        """
        path = DerivationPath(
            [Index(44, True), Index(coinType, True), Index(account, True)]
        )
        node = self.node(path)
        try:
            return node.neuter().string()
        finally:
            node.zero()

    def zero(self):
        """
        Zero the seed.
        """
        self.seed.zero()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.zero()
