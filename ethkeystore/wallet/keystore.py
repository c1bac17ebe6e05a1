"""
Copyright (c) 2020, The Decred developers
See LICENSE for details

KeyStore manages a directory of keyfiles.
"""

import os
import threading

from ethkeystore import KeystoreError
from ethkeystore.crypto import mnemonic
from ethkeystore.crypto.crypto import (
    STANDARD_SCRYPT_N,
    STANDARD_SCRYPT_P,
    ScryptParams,
)
from ethkeystore.crypto.mnemonic import InvalidMnemonic
from ethkeystore.eth.addrlib import Address
from ethkeystore.util import helpers

from .derivation import DEFAULT_PATH
from .keystorekey import KeystoreKey, KeyType, mnemonicFromPayload
from .wallet import Wallet


log = helpers.getLogger("KSTR")


class AccountAlreadyExists(KeystoreError):
    pass


class AccountNotFound(KeystoreError):
    pass


class KeyStore:
    """
    KeyStore indexes the keyfiles of a directory by address. There is at most
    one keyfile per address. Every operation that needs a secret takes the
    password and decrypts for the duration of the call only.

    Mutations hold a lock around the change to both the directory and the
    index. A keyfile is always written under a temporary name and renamed
    into place.
    """

    def __init__(self, keyDir, scryptN=STANDARD_SCRYPT_N, scryptP=STANDARD_SCRYPT_P):
        """
        Args:
            keyDir (str): The keyfile directory. Created if it doesn't exist.
            scryptN (int): The scrypt cost factor for new keyfiles.
            scryptP (int): The scrypt parallelization for new keyfiles.
        """
        self.keyDir = str(keyDir)
        self.scryptN = scryptN
        self.scryptP = scryptP
        self.mtx = threading.RLock()
        self._wallets = {}
        self._accounts = {}
        self._keys = {}
        self.load()

    def kdfParams(self):
        """
        Scrypt parameters for a new keyfile, with a fresh salt.
        """
        return ScryptParams(n=self.scryptN, p=self.scryptP)

    def load(self):
        """
        Read the keyfile directory, replacing the index. Hidden files,
        directories and files that are not keyfiles are skipped. When two
        keyfiles have the same address, the one whose name sorts first wins.
        """
        with self.mtx:
            if not helpers.mkdir(self.keyDir):
                raise KeystoreError(f"{self.keyDir} is not a directory")
            wallets, accounts, keys = {}, {}, {}
            for name in sorted(os.listdir(self.keyDir)):
                path = os.path.join(self.keyDir, name)
                if name.startswith(".") or not os.path.isfile(path):
                    continue
                try:
                    key = KeystoreKey.fromFile(path)
                except (KeystoreError, OSError, ValueError) as e:
                    log.debug(f"skipping {name}: {e}")
                    continue
                if key.address in keys:
                    log.warning(f"skipping {name}: duplicate address {key.address}")
                    continue
                wallet = Wallet(name, key, path)
                account = wallet.primaryAccount()
                wallets[name] = wallet
                accounts[account.address] = account
                keys[account.address] = key
            self._wallets, self._accounts, self._keys = wallets, accounts, keys
        log.info(f"loaded {len(wallets)} keyfiles from {self.keyDir}")

    @property
    def accounts(self):
        """
        A snapshot of the indexed accounts.

        Returns:
            list(Account): The accounts.
        """
        with self.mtx:
            return list(self._accounts.values())

    @property
    def wallets(self):
        """
        A snapshot of the wallets.

        Returns:
            list(Wallet): The wallets.
        """
        with self.mtx:
            return list(self._wallets.values())

    def account(self, address):
        """
        The account for the address.

        Args:
            address (Address or str): The address.

        Returns:
            Account or None: The account, or None if the address isn't indexed.
        """
        if not isinstance(address, Address):
            address = Address.fromString(address)
        with self.mtx:
            return self._accounts.get(address)

    def wallet(self, account):
        """
        The wallet that owns the account.

        Returns:
            Wallet: The wallet.

        Raises:
            AccountNotFound: The account's wallet is not in the store.
        """
        with self.mtx:
            wallet = self._wallets.get(account.walletID)
            if wallet is None:
                raise AccountNotFound(f"no wallet for account {account.address}")
            return wallet

    def keyFor(self, account):
        """
        The keyfile of the account's wallet.

        Returns:
            KeystoreKey: The key.
        """
        return self.wallet(account).key

    def _store(self, key):
        """
        Write a new keyfile and index it. The caller must hold the lock.

        Returns:
            Account: The key's account.
        """
        if key.address in self._keys:
            raise AccountAlreadyExists(f"account {key.address} already exists")
        name = key.fileName()
        path = os.path.join(self.keyDir, name)
        helpers.saveFile(path, key.json())
        wallet = Wallet(name, key, path)
        account = wallet.primaryAccount()
        self._wallets[name] = wallet
        self._accounts[account.address] = account
        self._keys[account.address] = key
        log.info(f"stored account {account.address} in {name}")
        return account

    def _checkNew(self, address):
        with self.mtx:
            if address in self._keys:
                raise AccountAlreadyExists(f"account {address} already exists")

    def createAccount(self, password, keyType=KeyType.encryptedKey):
        """
        Create a keyfile for a new random private key or mnemonic.

        Args:
            password (str): The encryption password.
            keyType (str): A KeyType value.

        Returns:
            Account: The new account.
        """
        key = KeystoreKey.generate(password, keyType, self.kdfParams())
        with self.mtx:
            return self._store(key)

    def importJSON(self, data, password, newPassword):
        """
        Import a keyfile. The secret is re-encrypted under newPassword into a
        new keyfile with a fresh salt, IV and id.

        Args:
            data (str or bytes): The keyfile JSON.
            password (str): The password of the keyfile.
            newPassword (str): The password for the imported keyfile.

        Returns:
            Account: The imported account.

        Raises:
            AccountAlreadyExists: The address is already in the store.
        """
        key = KeystoreKey.fromJSON(data)
        self._checkNew(key.address)
        newKey = key.reencrypt(password, newPassword, self.kdfParams())
        with self.mtx:
            return self._store(newKey)

    def importPrivateKey(self, privKey, password):
        """
        Import a raw private key.

        Args:
            privKey (bytes-like): The 32-byte private key.
            password (str): The encryption password.

        Returns:
            Account: The imported account.
        """
        key = KeystoreKey.fromPrivateKey(privKey, password, self.kdfParams())
        with self.mtx:
            return self._store(key)

    def importMnemonic(self, words, passphrase, derivationPath, encryptPassword):
        """
        Import a mnemonic.

        Args:
            words (str): The mnemonic.
            passphrase (str): The BIP-0039 passphrase.
            derivationPath (str): The path template, e.g. m/44'/60'/0'/0/x.
            encryptPassword (str): The encryption password.

        Returns:
            Account: The imported account.

        Raises:
            InvalidMnemonic: The mnemonic checksum is invalid.
            AccountAlreadyExists: The address is already in the store.
        """
        if not mnemonic.isValid(words):
            raise InvalidMnemonic("invalid mnemonic")
        key = KeystoreKey.fromMnemonic(
            words,
            encryptPassword,
            passphrase=passphrase,
            derivationPath=derivationPath if derivationPath else DEFAULT_PATH,
            kdfParams=self.kdfParams(),
        )
        with self.mtx:
            return self._store(key)

    def exportJSON(self, account, password, newPassword):
        """
        A keyfile for the account's secret encrypted under newPassword. The
        store is not changed.

        Returns:
            bytes: The keyfile JSON.
        """
        key = self.keyFor(account)
        return key.reencrypt(password, newPassword, self.kdfParams()).json().encode()

    def exportPrivateKey(self, account, password, passphrase=None):
        """
        The account's private key. For a mnemonic wallet, this is the key at
        the account's derivation path.

        Args:
            account (Account): The account.
            password (str): The keyfile password.
            passphrase (str): optional. The BIP-0039 passphrase of a mnemonic
                wallet. Needed when the wallet has one and was loaded from
                its file, since the passphrase is never written there.

        Returns:
            ByteArray: The private key. The caller should zero it when done.
        """
        key = self.keyFor(account)
        path = account.derivationPath if key.isHD else None
        return key.privateKey(password, path, passphrase)

    def exportMnemonic(self, account, password):
        """
        The mnemonic of the account's wallet. The passphrase is not needed.

        Returns:
            str: The mnemonic.

        Raises:
            InvalidMnemonic: The account is not from a mnemonic wallet.
        """
        key = self.keyFor(account)
        if not key.isHD:
            raise InvalidMnemonic("account is not from a mnemonic wallet")
        with key.decrypt(password) as secret:
            return mnemonicFromPayload(secret)

    def update(self, account, password, newPassword):
        """
        Change the password of the account's keyfile. The keyfile keeps its
        name, id and address.
        """
        key = self.keyFor(account)
        newKey = key.reencrypt(password, newPassword, self.kdfParams(), keepID=True)
        with self.mtx:
            wallet = self.wallet(account)
            if wallet.key is not key:
                raise KeystoreError("keyfile changed during update")
            helpers.saveFile(wallet.keyPath, newKey.json())
            wallet.key = newKey
            for acct in wallet.accounts:
                if self._keys.get(acct.address) is key:
                    self._keys[acct.address] = newKey
        log.info(f"updated keyfile {wallet.identifier}")

    def delete(self, account, password):
        """
        Delete the account's keyfile, and every account of its wallet. The
        password must decrypt the keyfile.

        Raises:
            InvalidPassword: The password is wrong.
        """
        key = self.keyFor(account)
        key.decrypt(password).zero()
        with self.mtx:
            wallet = self.wallet(account)
            os.remove(wallet.keyPath)
            del self._wallets[wallet.identifier]
            for acct in wallet.accounts:
                if self._accounts.get(acct.address) == acct:
                    del self._accounts[acct.address]
                    del self._keys[acct.address]
        log.info(f"deleted keyfile {wallet.identifier}")

    def deriveAccounts(self, account, derivationPaths, password, passphrase=None):
        """
        Derive accounts of a mnemonic wallet and add them to the index. An
        address that is already indexed keeps its existing account.

        Args:
            account (Account): Any account of the wallet.
            derivationPaths (list(str or DerivationPath)): The positions.
            password (str): The keyfile password.
            passphrase (str): optional. The BIP-0039 passphrase. See
                exportPrivateKey.

        Returns:
            list(Account): The accounts, in the order of derivationPaths.
        """
        with self.mtx:
            wallet = self.wallet(account)
            accounts = wallet.getAccounts(derivationPaths, password, passphrase)
            for acct in accounts:
                if acct.address not in self._accounts:
                    self._accounts[acct.address] = acct
                    self._keys[acct.address] = wallet.key
            return accounts

    def signHash(self, msgHash, account, password, passphrase=None):
        """
        Sign the 32-byte hash with the account's key.

        Returns:
            ByteArray: The 65-byte recoverable signature.
        """
        key = self.keyFor(account)
        path = account.derivationPath if key.isHD else None
        return key.sign(msgHash, password, path, passphrase)

    def signHashes(self, hashes, account, password, passphrase=None):
        """
        Sign each hash with the account's key, decrypting only once.

        Returns:
            list(ByteArray): The signatures.
        """
        key = self.keyFor(account)
        path = account.derivationPath if key.isHD else None
        return key.signHashes(hashes, password, path, passphrase)
