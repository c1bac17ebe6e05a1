"""
Copyright (c) 2020, The Decred developers
See LICENSE for details

Version 3 keyfiles. The JSON format is Web3 Secret Storage, extended with a
key type and a derivation path for keyfiles that encrypt a mnemonic rather
than a private key.
"""

import datetime
import json
import time
import uuid

from ethkeystore import KeystoreError
from ethkeystore.crypto import mnemonic
from ethkeystore.crypto.crypto import AddressMismatch, KeyHeader
from ethkeystore.crypto.mnemonic import InvalidMnemonic
from ethkeystore.crypto.secp256k1.curve import curve as Curve, generateKey
from ethkeystore.eth.addrlib import Address
from ethkeystore.util.encode import ByteArray

from .derivation import DEFAULT_PATH, pathForIndex
from .hdwallet import HDWallet


VERSION = 3


class KeyType:
    """
    The kind of secret a keyfile encrypts, by its keyfile "type" value.
    """

    encryptedKey = "private-key"
    hdWallet = "mnemonic"


class KeyDecodeError(KeystoreError):
    """
    The data is not a keyfile.
    """

    pass


# The encrypted payload is read from the first of these keys that holds a
# usable object. "Crypto" is written by some older wallets.
CRYPTO_DECODERS = (
    lambda d: d["crypto"],
    lambda d: d["Crypto"],
)


def decodeCrypto(d):
    """
    Find and parse the encrypted payload of the keyfile object.

    Args:
        d (dict): The keyfile object.

    Returns:
        KeyHeader: The payload.
    """
    for decoder in CRYPTO_DECODERS:
        try:
            return KeyHeader.fromDict(decoder(d))
        except (KeyError, TypeError):
            continue
    raise KeyDecodeError("no valid crypto object")


def mnemonicFromPayload(secret):
    """
    Decode a decrypted mnemonic payload, dropping one trailing NUL byte if
    present.

    Args:
        secret (ByteArray): The plaintext.

    Returns:
        str: The mnemonic.
    """
    end = len(secret) - 1 if len(secret) and secret[-1] == 0 else len(secret)
    try:
        return bytes(secret.b[:end]).decode("ascii")
    except UnicodeDecodeError:
        raise InvalidMnemonic("mnemonic payload is not ASCII")


def keyFileName(address, ns=None, tz=None):
    """
    The keyfile name, UTC--<timestamp>--<address>. The timestamp has
    nanosecond precision and ends with Z in UTC or with a +HHMM/-HHMM offset.

    Args:
        address (Address or str): The address, or another identifier.
        ns (int): optional. Nanoseconds since the epoch. Default is now.
        tz (datetime.tzinfo): optional. The zone to render the timestamp in.
            Default is UTC.

    Returns:
        str: The file name.
    """
    ns = time.time_ns() if ns is None else ns
    secs, frac = divmod(ns, 10 ** 9)
    dt = datetime.datetime.fromtimestamp(secs, tz if tz else datetime.timezone.utc)
    offsetMinutes = int(dt.utcoffset().total_seconds()) // 60
    if offsetMinutes == 0:
        zone = "Z"
    else:
        sign = "-" if offsetMinutes < 0 else "+"
        hours, minutes = divmod(abs(offsetMinutes), 60)
        zone = f"{sign}{hours:02d}{minutes:02d}"
    ident = address.hex() if isinstance(address, Address) else str(address)
    return f"UTC--{dt.strftime('%Y-%m-%dT%H-%M-%S')}.{frac:09d}{zone}--{ident}"


class KeystoreKey:
    """
    KeystoreKey is an encrypted private key or mnemonic, with the address it
    controls.
    """

    def __init__(
        self,
        address,
        crypto,
        keyType=KeyType.encryptedKey,
        id=None,
        derivationPath=DEFAULT_PATH,
        passphrase="",
        version=VERSION,
    ):
        """
        Args:
            address (Address): The address of the key, or of the first derived
                key for a mnemonic.
            crypto (KeyHeader): The encrypted payload.
            keyType (str): A KeyType value.
            id (str): optional. The keyfile UUID. A random UUID is generated by
                default.
            derivationPath (str): The path template for mnemonic keyfiles.
            passphrase (str): The BIP-0039 passphrase for mnemonic keyfiles.
                Held in memory only.
            version (int): The keyfile version.
        """
        self.address = address
        self.crypto = crypto
        self.type = keyType
        self.id = id if id else str(uuid.uuid4())
        self.derivationPath = str(derivationPath)
        self.passphrase = passphrase
        self.version = version

    @staticmethod
    def fromPrivateKey(privKey, password, kdfParams=None):
        """
        Encrypt a private key.

        Args:
            privKey (bytes-like): The 32-byte private key.
            password (str): The encryption password.
            kdfParams (ScryptParams): optional. Default is the standard
                strength.

        Returns:
            KeystoreKey: The key.
        """
        pubKey = Curve.publicKey(privKey).serializeUncompressed()
        return KeystoreKey(
            address=Address.fromPublicKey(pubKey),
            crypto=KeyHeader.encrypt(privKey, password, kdfParams),
        )

    @staticmethod
    def fromMnemonic(
        words, password, passphrase="", derivationPath=DEFAULT_PATH, kdfParams=None
    ):
        """
        Encrypt a mnemonic. The address is that of the key at index 0 of the
        derivation path template.

        Args:
            words (str): The mnemonic.
            password (str): The encryption password.
            passphrase (str): The BIP-0039 passphrase.
            derivationPath (str): The path template.
            kdfParams (ScryptParams): optional. Default is the standard
                strength.

        Returns:
            KeystoreKey: The key.
        """
        try:
            payload = ByteArray(words.encode("ascii"))
        except UnicodeEncodeError:
            raise InvalidMnemonic("mnemonic is not ASCII")
        with payload:
            with HDWallet(words, passphrase, derivationPath) as wallet:
                with wallet.getKey(0) as key:
                    address = key.address
            crypto = KeyHeader.encrypt(payload, password, kdfParams)
        return KeystoreKey(
            address=address,
            crypto=crypto,
            keyType=KeyType.hdWallet,
            derivationPath=derivationPath,
            passphrase=passphrase,
        )

    @staticmethod
    def generate(password, keyType=KeyType.encryptedKey, kdfParams=None):
        """
        Encrypt a new random private key or 24-word mnemonic.

        Args:
            password (str): The encryption password.
            keyType (str): A KeyType value.
            kdfParams (ScryptParams): optional. Default is the standard
                strength.

        Returns:
            KeystoreKey: The key.
        """
        if keyType == KeyType.hdWallet:
            return KeystoreKey.fromMnemonic(
                mnemonic.generate(256), password, kdfParams=kdfParams
            )
        if keyType != KeyType.encryptedKey:
            raise KeystoreError(f"unknown key type {keyType!r}")
        with generateKey().serialize() as privKey:
            return KeystoreKey.fromPrivateKey(privKey, password, kdfParams)

    @property
    def isHD(self):
        return self.type == KeyType.hdWallet

    def decrypt(self, password):
        """
        Decrypt the payload.

        Returns:
            ByteArray: The private key or mnemonic bytes. The caller should
                zero it when done.
        """
        return self.crypto.decrypt(password)

    def decryptMnemonic(self, password):
        """
        Decrypt the mnemonic.

        Returns:
            str: The mnemonic.

        Raises:
            InvalidMnemonic: This is not a mnemonic keyfile.
        """
        if not self.isHD:
            raise InvalidMnemonic("not a mnemonic keyfile")
        with self.decrypt(password) as secret:
            return mnemonicFromPayload(secret)

    def hdWallet(self, password, passphrase=None):
        """
        Decrypt the mnemonic into an HDWallet.

        Args:
            password (str): The password.
            passphrase (str): optional. The BIP-0039 passphrase. Default is the
                passphrase held by this key, which is empty for a key read
                from a file.

        Returns:
            HDWallet: The wallet. The caller should zero it when done.
        """
        if passphrase is None:
            passphrase = self.passphrase
        return HDWallet(self.decryptMnemonic(password), passphrase, self.derivationPath)

    def checkAddress(self, address):
        """
        Raise AddressMismatch if the address derived from the secret is not the
        recorded address.
        """
        if address != self.address:
            raise AddressMismatch(
                f"keyfile address {self.address} does not match its key {address}"
            )

    def verifySecret(self, secret):
        """
        Check that a decrypted private key produces the recorded address.
        Mnemonic payloads are not checked here. Their address also depends on
        the BIP-0039 passphrase, which is checked where the HD tree is built.

        Args:
            secret (ByteArray): The decrypted payload.
        """
        if self.isHD:
            return
        pubKey = Curve.publicKey(secret).serializeUncompressed()
        self.checkAddress(Address.fromPublicKey(pubKey))

    def privateKey(self, password, path=None, passphrase=None):
        """
        Decrypt the signing key. For a mnemonic keyfile, this is the key at
        path, by default index 0 of the path template.

        Args:
            password (str): The password.
            path (str or DerivationPath): optional. The position for mnemonic
                keyfiles. Ignored for private key keyfiles.
            passphrase (str): optional. The BIP-0039 passphrase for mnemonic
                keyfiles. See hdWallet.

        Returns:
            ByteArray: The private key. The caller should zero it when done.

        Raises:
            AddressMismatch: The key at index 0 is not the recorded address.
                For a mnemonic keyfile, this usually means a wrong passphrase.
        """
        if not self.isHD:
            secret = self.decrypt(password)
            try:
                self.verifySecret(secret)
            except Exception:
                secret.zero()
                raise
            return secret
        with self.hdWallet(password, passphrase) as wallet:
            with wallet.getKey(0) as key:
                self.checkAddress(key.address)
            if path is None:
                path = pathForIndex(self.derivationPath, 0)
            with wallet.keyAt(path) as key:
                return key.privateKey.copy()

    def sign(self, msgHash, password, path=None, passphrase=None):
        """
        Sign the 32-byte hash.

        Returns:
            ByteArray: The 65-byte recoverable signature.
        """
        with self.privateKey(password, path, passphrase) as privKey:
            return Curve.sign(privKey, msgHash)

    def signHashes(self, hashes, password, path=None, passphrase=None):
        """
        Sign each hash with the same key, decrypting only once.

        Returns:
            list(ByteArray): The signatures.
        """
        with self.privateKey(password, path, passphrase) as privKey:
            return [Curve.sign(privKey, h) for h in hashes]

    def reencrypt(self, password, newPassword, kdfParams=None, keepID=False):
        """
        Decrypt the payload and encrypt it again under newPassword, with a
        fresh salt and IV.

        Args:
            password (str): The current password.
            newPassword (str): The new password.
            kdfParams (ScryptParams): optional. Default is the standard
                strength.
            keepID (bool): Whether the result keeps this keyfile's id. A new
                id is generated otherwise.

        Returns:
            KeystoreKey: The re-encrypted key.
        """
        with self.decrypt(password) as secret:
            self.verifySecret(secret)
            crypto = KeyHeader.encrypt(secret, newPassword, kdfParams)
        return KeystoreKey(
            address=self.address,
            crypto=crypto,
            keyType=self.type,
            id=self.id if keepID else None,
            derivationPath=self.derivationPath,
            passphrase=self.passphrase,
        )

    def fileName(self, ns=None, tz=None):
        """
        The keyfile name for this key. See keyFileName.
        """
        return keyFileName(self.address, ns, tz)

    def dict(self):
        """
        The JSON-encodable keyfile object.
        """
        d = {
            "address": self.address.hex(),
            "crypto": self.crypto.dict(),
            "id": self.id,
            "type": self.type,
            "version": self.version,
        }
        if self.isHD:
            d["derivationPath"] = self.derivationPath
        return d

    def json(self):
        """
        The keyfile JSON.

        Returns:
            str: The JSON.
        """
        return json.dumps(self.dict())

    @staticmethod
    def fromDict(d):
        """
        Parse a keyfile object. A missing or unrecognized "type" means a
        private key keyfile.

        Args:
            d (dict): The keyfile object.

        Returns:
            KeystoreKey: The key.
        """
        if not isinstance(d, dict):
            raise KeyDecodeError("keyfile is not a JSON object")
        try:
            address = Address.fromString(d["address"])
            crypto = decodeCrypto(d)
            keyType = d.get("type")
            if keyType != KeyType.hdWallet:
                keyType = KeyType.encryptedKey
            derivationPath = d.get("derivationPath") or DEFAULT_PATH
            pathForIndex(derivationPath, 0)
            return KeystoreKey(
                address=address,
                crypto=crypto,
                keyType=keyType,
                id=d.get("id"),
                derivationPath=derivationPath,
                version=d.get("version", VERSION),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise KeyDecodeError(f"invalid keyfile: {e}")

    @staticmethod
    def fromJSON(s):
        """
        Parse keyfile JSON.

        Args:
            s (str or bytes): The JSON.

        Returns:
            KeystoreKey: The key.
        """
        try:
            d = json.loads(s)
        except ValueError as e:
            raise KeyDecodeError(f"invalid keyfile JSON: {e}")
        return KeystoreKey.fromDict(d)

    @staticmethod
    def fromFile(path):
        """
        Read and parse a keyfile.
        """
        with open(path, "rb") as f:
            return KeystoreKey.fromJSON(f.read())
