"""
Copyright (c) 2020, The Decred developers
See LICENSE for details
"""

from ethkeystore import KeystoreError
from ethkeystore.crypto.secp256k1.curve import curve as Curve
from ethkeystore.util import chains

from .derivation import DerivationPath, pathForIndex
from .hdwallet import toPath


class InvalidKeyType(KeystoreError):
    """
    The operation does not apply to the wallet's kind of key.
    """

    pass


class Account:
    """
    An address at a derivation path of a wallet. The wallet is referenced by
    its identifier.
    """

    def __init__(self, address, derivationPath, walletID, extendedPublicKey=None):
        """
        Args:
            address (Address): The address.
            derivationPath (DerivationPath): The position of the key in the
                wallet's key tree.
            walletID (str): The owning wallet's identifier.
            extendedPublicKey (str): optional. The account-level extended
                public key, for accounts derived from a mnemonic.
        """
        self.address = address
        self.derivationPath = derivationPath
        self.walletID = walletID
        self.extendedPublicKey = extendedPublicKey

    def __eq__(self, other):
        return (
            isinstance(other, Account)
            and self.address == other.address
            and self.derivationPath == other.derivationPath
            and self.walletID == other.walletID
        )

    def __hash__(self):
        return hash((self.address, self.derivationPath, self.walletID))

    def __repr__(self):
        return f"Account({self.address}, {self.derivationPath}, {self.walletID})"


class Wallet:
    """
    Wallet is one keyfile and the accounts derived from it. There is at most
    one account per derivation path.
    """

    def __init__(self, identifier, key, keyPath=None):
        """
        Args:
            identifier (str): The keyfile name.
            key (KeystoreKey): The key.
            keyPath (str): optional. The keyfile path.
        """
        self.identifier = identifier
        self.key = key
        self.keyPath = keyPath
        self.accounts = []

    @property
    def type(self):
        return self.key.type

    def accountForPath(self, path):
        """
        The account at the path, if it has been derived.

        Args:
            path (str or DerivationPath): The position.

        Returns:
            Account or None: The account.
        """
        path = toPath(path)
        for account in self.accounts:
            if account.derivationPath == path:
                return account
        return None

    def addAccount(self, account):
        """
        Add the account unless one already exists at its path.

        Returns:
            Account: The account at the path.
        """
        existing = self.accountForPath(account.derivationPath)
        if existing:
            return existing
        self.accounts.append(account)
        return account

    def primaryAccount(self):
        """
        The account for the address recorded in the keyfile. No password is
        needed.

        Returns:
            Account: The account.
        """
        if self.key.isHD:
            path = pathForIndex(self.key.derivationPath, 0)
        else:
            path = DerivationPath.parse(chains.defaultPath(chains.BipIDs.ethereum))
        return self.addAccount(Account(self.key.address, path, self.identifier))

    def getAccount(self, password, coinType=chains.BipIDs.ethereum):
        """
        The account of a private key wallet for the asset.

        Args:
            password (str): The keyfile password.
            coinType (int or str): The asset. BIP0044 ID or ticker symbol.

        Returns:
            Account: The account.

        Raises:
            InvalidKeyType: This is a mnemonic wallet. Use getAccounts.
        """
        if self.key.isHD:
            raise InvalidKeyType("getAccount is for private key wallets")
        path = DerivationPath.parse(chains.defaultPath(coinType))
        account = self.accountForPath(path)
        if account:
            return account
        codec = chains.addressCodec(coinType)
        with self.key.privateKey(password) as privKey:
            pubKey = Curve.publicKey(privKey).serializeUncompressed()
        return self.addAccount(
            Account(codec.fromPublicKey(pubKey), path, self.identifier)
        )

    def getAccounts(self, derivationPaths, password, passphrase=None):
        """
        The accounts of a mnemonic wallet at the derivation paths. Accounts
        that have not been derived before are derived from the decrypted
        mnemonic. The coin type of each path selects the address type. Paths too
        short to have a coin type get Ethereum addresses.

        Args:
            derivationPaths (list(str or DerivationPath)): The positions.
            password (str): The keyfile password.
            passphrase (str): optional. The BIP-0039 passphrase, if the key
                doesn't hold it.

        Returns:
            list(Account): The accounts, in the order of derivationPaths.

        Raises:
            InvalidKeyType: This is a private key wallet. Use getAccount.
        """
        if not self.key.isHD:
            raise InvalidKeyType("getAccounts is for mnemonic wallets")
        paths = [toPath(p) for p in derivationPaths]
        missing = [p for p in paths if self.accountForPath(p) is None]
        if missing:
            with self.key.hdWallet(password, passphrase) as hdWallet:
                with hdWallet.getKey(0) as key:
                    self.key.checkAddress(key.address)
                for path in missing:
                    coinType = path.coinType
                    if coinType is None:
                        coinType = chains.BipIDs.ethereum
                    codec = chains.addressCodec(coinType)
                    with hdWallet.keyAt(path) as key:
                        address = codec.fromPublicKey(key.publicKey)
                    xpub = None
                    if len(path) >= 3:
                        xpub = hdWallet.extendedPublicKey(coinType, path.account)
                    self.addAccount(Account(address, path, self.identifier, xpub))
        return [self.accountForPath(p) for p in paths]
