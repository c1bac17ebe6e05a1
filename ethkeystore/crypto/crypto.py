"""
Copyright (c) 2019, Brian Stafford
Copyright (c) 2019-2020, The Decred developers
See LICENSE for details

Cryptographic functions.
"""

import hashlib
import hmac
import sys

from base58 import b58decode, b58encode
from Crypto.Cipher import AES
from Crypto.Hash import RIPEMD160, keccak
from Crypto.Protocol.KDF import scrypt

from ethkeystore import KeystoreError
from ethkeystore.util.encode import ByteArray

from . import rando
from .secp256k1.curve import curve as Curve


KECCAK256_SIZE = 32
RIPEMD160_SIZE = 20
SERIALIZED_KEY_LENGTH = 4 + 1 + 4 + 4 + 32 + 33  # 78 bytes
HARDENED_KEY_START = 2 ** 31
MASTER_KEY = b"Bitcoin seed"

# BIP-0032 mainnet version bytes, xprv and xpub.
XPRV_VERSION = ByteArray("0488ade4")
XPUB_VERSION = ByteArray("0488b21e")

KDF_SCRYPT = "scrypt"
CIPHER_AES_128_CTR = "aes-128-ctr"
CIPHER_AES_128_CBC = "aes-128-cbc"
AES_BLOCK_SIZE = 16
AES_128_KEY_SIZE = 16

# The standard scrypt strength. Around 256 MB of memory and a second of CPU
# on a modern machine.
STANDARD_SCRYPT_N = 1 << 18
STANDARD_SCRYPT_P = 1

# A light strength for constrained environments. Around 4 MB of memory.
LIGHT_SCRYPT_N = 1 << 12
LIGHT_SCRYPT_P = 6

SCRYPT_R = 8
SCRYPT_DKLEN = 32
MAX_SCRYPT_DKLEN = (2 ** 32 - 1) * 32
MAX_SCRYPT_BLOCK = 1 << 30


class CrazyKeyError(KeystoreError):
    """
    Both derived public or private keys rely on treating the left 32-byte
    sequence calculated above (Il) as a 256-bit integer that must be within the
    valid range for a secp256k1 private key.  There is an extremely tiny chance
    (< 1 in 2^127) this condition will not hold, and in that case, a child
    extended key can't be created for this index and the caller should simply
    increment to the next index.
    """

    pass


class ParameterRangeError(KeystoreError):
    """
    An input parameter is out of the acceptable range.
    """

    pass


class KeyLengthError(KeystoreError):
    """
    A KeyLengthError indicates a key or hash input that is of an unexpected
    length or form.
    """

    pass


class ScryptParamsError(KeystoreError):
    """
    The scrypt parameters are unusable.
    """

    pass


class DesiredKeyLengthTooLarge(ScryptParamsError):
    pass


class BlockSizeTooLarge(ScryptParamsError):
    pass


class InvalidCostFactor(ScryptParamsError):
    pass


class ScryptOverflow(ScryptParamsError):
    pass


class DecryptError(KeystoreError):
    """
    The encrypted payload could not be decrypted.
    """

    pass


class UnsupportedKDF(DecryptError):
    pass


class UnsupportedCipher(DecryptError):
    pass


class InvalidCipher(DecryptError):
    """
    The IV or ciphertext is malformed for the cipher, e.g. a CBC ciphertext
    that is not block-aligned.
    """

    pass


class InvalidPassword(DecryptError):
    """
    The MAC did not match. A wrong password and a tampered file are
    indistinguishable, so both are reported this way.
    """

    pass


class AddressMismatch(DecryptError):
    """
    The decrypted secret does not produce the address recorded for it.
    """

    pass


def hmacDigest(key, msg, digestmod=hashlib.sha512):
    """
    Get the hmac keyed hash.

    Args:
        key (byte-like): the key
        msg (byte-like): the message
        digestmod (digest): A hashlib digest type constant.

    Returns:
        bytes: The secure hash of msg.
    """
    h = hmac.new(key, msg=msg, digestmod=digestmod)
    return h.digest()


def keccak256(b):
    """
    The legacy Keccak-256 hash used by Ethereum, which differs from the
    finalized SHA3-256 in its padding.

    Args:
        b (byte-like): The bytes to hash.

    Returns:
        ByteArray: A 32-byte hash.
    """
    return ByteArray(keccak.new(data=bytes(b), digest_bits=256).digest())


def hash160(b):
    """
    A RIPEMD160 hash of the sha256 hash of the input.

    Args:
        b (byte-like): The bytes to hash.

    Returns:
        ByteArray: A 20-byte hash.
    """
    h = RIPEMD160.new()
    h.update(hashlib.sha256(bytes(b)).digest())
    return ByteArray(h.digest())


def checksum(b):
    """
    A checksum.

    Args:
        b (byte-like): Bytes to obtain a checksum for.

    Returns:
        bytes: The first 4 bytes of a double sha256 hash of input.
    """
    v = hashlib.sha256(bytes(b)).digest()
    return hashlib.sha256(v).digest()[:4]


def encodePassword(password):
    if isinstance(password, str):
        return password.encode("utf-8")
    return bytes(password)


class ScryptParams:
    """
    Parameters for the scrypt key derivation function. The parameters are
    validated once, on construction.
    """

    def __init__(
        self,
        salt=None,
        dklen=SCRYPT_DKLEN,
        n=STANDARD_SCRYPT_N,
        r=SCRYPT_R,
        p=STANDARD_SCRYPT_P,
    ):
        """
        Args:
            salt (bytes-like): optional. The salt. A fresh random 32-byte salt
                is generated by default.
            dklen (int): The derived key length.
            n (int): The CPU/memory cost factor. A power of 2, at least 2.
            r (int): The block size.
            p (int): The parallelization factor.

        Raises:
            ScryptParamsError: One of the parameters is unusable. The specific
                subclass indicates which.
        """
        self.salt = rando.newSalt() if salt is None else ByteArray(salt)
        self.dklen = dklen
        self.n = n
        self.r = r
        self.p = p
        self.validate()

    @staticmethod
    def light(salt=None):
        """
        ScryptParams with the light strength preset.
        """
        return ScryptParams(salt=salt, n=LIGHT_SCRYPT_N, p=LIGHT_SCRYPT_P)

    def validate(self):
        """
        Check the parameters, raising the matching ScryptParamsError.
        """
        if self.dklen > MAX_SCRYPT_DKLEN:
            raise DesiredKeyLengthTooLarge(
                f"derived key length {self.dklen} > {MAX_SCRYPT_DKLEN}"
            )
        if self.dklen < 2 * AES_128_KEY_SIZE:
            raise ScryptParamsError(f"derived key length {self.dklen} too short")
        if self.r < 1 or self.p < 1:
            raise ScryptParamsError(f"r = {self.r} and p = {self.p} must be positive")
        if self.r * self.p >= MAX_SCRYPT_BLOCK:
            raise BlockSizeTooLarge(f"r * p = {self.r * self.p} >= {MAX_SCRYPT_BLOCK}")
        if self.n < 2 or self.n & (self.n - 1) != 0:
            raise InvalidCostFactor(f"n = {self.n} is not a power of 2 >= 2")
        maxInt = sys.maxsize
        if self.r > maxInt // 128 // self.p or self.n > maxInt // 128 // self.r:
            raise ScryptOverflow("scrypt parameters too large")

    def deriveKey(self, password):
        """
        Run scrypt over the password.

        Args:
            password (str or bytes-like): The password. Strings are UTF-8
                encoded.

        Returns:
            ByteArray: The derived key. The caller should zero it when done.
        """
        try:
            dk = scrypt(
                encodePassword(password),
                self.salt.bytes(),
                self.dklen,
                self.n,
                self.r,
                self.p,
            )
        except ValueError as e:
            raise ScryptParamsError(f"scrypt failed: {e}")
        return ByteArray(dk)

    def dict(self):
        """
        The keyfile "kdfparams" object.

        Returns:
            dict: The JSON-encodable parameters.
        """
        return dict(
            dklen=self.dklen, n=self.n, p=self.p, r=self.r, salt=self.salt.hex()
        )

    @staticmethod
    def fromDict(d):
        """
        Parse and validate a keyfile "kdfparams" object.
        """
        return ScryptParams(
            salt=ByteArray(d["salt"]), dklen=d["dklen"], n=d["n"], r=d["r"], p=d["p"],
        )

    def __eq__(self, other):
        return isinstance(other, ScryptParams) and self.dict() == other.dict()


def deriveKey(password, params):
    """
    Derive the encryption key for the password.

    Args:
        password (str or bytes-like): The password.
        params (ScryptParams): The KDF parameters.

    Returns:
        ByteArray: The derived key.
    """
    return params.deriveKey(password)


def newAES(cipher, key, iv):
    """
    An AES-128 cipher object for the named mode.
    """
    if len(iv) != AES_BLOCK_SIZE:
        raise InvalidCipher(f"invalid IV length {len(iv)}")
    if cipher == CIPHER_AES_128_CTR:
        # The whole IV is the initial 128-bit big-endian counter block.
        return AES.new(key, AES.MODE_CTR, nonce=b"", initial_value=bytes(iv))
    if cipher == CIPHER_AES_128_CBC:
        return AES.new(key, AES.MODE_CBC, iv=bytes(iv))
    raise UnsupportedCipher(f"unsupported cipher {cipher!r}")


def computeMAC(derivedKey, cipherText):
    """
    The keyfile MAC, keccak256 of the last 16 bytes of the derived key
    followed by the cipher text. For the standard 32-byte derived key, that
    is derivedKey[16:32].

    Args:
        derivedKey (ByteArray): The KDF output.
        cipherText (bytes-like): The encrypted payload.

    Returns:
        ByteArray: The 32-byte MAC.
    """
    return keccak256(derivedKey[-AES_128_KEY_SIZE:] + cipherText)


def encrypt(plaintext, derivedKey, iv, cipher=CIPHER_AES_128_CTR):
    """
    Encrypt the plaintext with the first 16 bytes of the derived key and
    compute the MAC. No padding is applied, so CBC input must be
    block-aligned.

    Args:
        plaintext (bytes-like): The secret.
        derivedKey (ByteArray): The KDF output.
        iv (bytes-like): The 16-byte IV.
        cipher (str): The cipher name.

    Returns:
        ByteArray: The cipherText.
        ByteArray: The MAC.
    """
    plaintext = ByteArray(plaintext, copy=False)
    if cipher == CIPHER_AES_128_CBC and len(plaintext) % AES_BLOCK_SIZE:
        raise InvalidCipher("CBC plaintext is not block-aligned")
    aes = newAES(cipher, derivedKey[:AES_128_KEY_SIZE].bytes(), iv)
    cipherText = ByteArray(aes.encrypt(plaintext.bytes()))
    return cipherText, computeMAC(derivedKey, cipherText)


def decrypt(header, password):
    """
    Decrypt the keyfile payload. The MAC is checked before the cipher is
    touched.

    Args:
        header (KeyHeader): The encrypted payload.
        password (str or bytes-like): The password.

    Returns:
        ByteArray: The plaintext. The caller should zero it when done.

    Raises:
        UnsupportedKDF: The header names a KDF other than scrypt.
        UnsupportedCipher: The header names an unknown cipher.
        InvalidPassword: The MAC does not match.
    """
    if header.kdf != KDF_SCRYPT:
        raise UnsupportedKDF(f"unsupported key derivation function {header.kdf!r}")
    if header.cipher not in (CIPHER_AES_128_CTR, CIPHER_AES_128_CBC):
        raise UnsupportedCipher(f"unsupported cipher {header.cipher!r}")
    with header.kdfParams.deriveKey(password) as derivedKey:
        mac = computeMAC(derivedKey, header.cipherText)
        if not hmac.compare_digest(mac.bytes(), header.mac.bytes()):
            raise InvalidPassword("invalid password")
        aes = newAES(header.cipher, derivedKey[:AES_128_KEY_SIZE].bytes(), header.iv)
    plaintext = bytearray(len(header.cipherText))
    try:
        aes.decrypt(header.cipherText.bytes(), output=plaintext)
    except ValueError as e:
        raise InvalidCipher(f"decryption failed: {e}")
    return ByteArray(plaintext, copy=False)


class KeyHeader:
    """
    KeyHeader is the "crypto" object of a version 3 keyfile. It holds the
    encrypted payload and everything needed to decrypt it with a password.
    """

    def __init__(
        self,
        cipherText,
        mac,
        iv,
        kdfParams,
        cipher=CIPHER_AES_128_CTR,
        kdf=KDF_SCRYPT,
    ):
        """
        Args:
            cipherText (bytes-like): The encrypted payload.
            mac (bytes-like): The MAC.
            iv (bytes-like): The cipher IV.
            kdfParams (ScryptParams or dict): The KDF parameters. A dict is
                only expected for KDFs that are not supported.
            cipher (str): The cipher name.
            kdf (str): The KDF name.
        """
        self.cipherText = ByteArray(cipherText)
        self.mac = ByteArray(mac)
        self.iv = ByteArray(iv)
        self.kdfParams = kdfParams
        self.cipher = cipher
        self.kdf = kdf

    @staticmethod
    def encrypt(data, password, kdfParams=None, cipher=CIPHER_AES_128_CTR):
        """
        Encrypt the data under the password.

        Args:
            data (bytes-like): The secret.
            password (str or bytes-like): The password.
            kdfParams (ScryptParams): optional. Default is the standard
                strength with a fresh salt.
            cipher (str): The cipher name.

        Returns:
            KeyHeader: The encrypted payload.
        """
        kdfParams = kdfParams if kdfParams else ScryptParams()
        iv = rando.newIV()
        with kdfParams.deriveKey(password) as derivedKey:
            cipherText, mac = encrypt(data, derivedKey, iv, cipher)
        return KeyHeader(
            cipherText=cipherText, mac=mac, iv=iv, kdfParams=kdfParams, cipher=cipher,
        )

    def decrypt(self, password):
        """
        Decrypt the payload. See the module-level decrypt.

        Returns:
            ByteArray: The plaintext.
        """
        return decrypt(self, password)

    def dict(self):
        """
        The JSON-encodable "crypto" object.
        """
        kdfParams = self.kdfParams
        if isinstance(kdfParams, ScryptParams):
            kdfParams = kdfParams.dict()
        return {
            "cipher": self.cipher,
            "cipherparams": {"iv": self.iv.hex()},
            "ciphertext": self.cipherText.hex(),
            "kdf": self.kdf,
            "kdfparams": kdfParams,
            "mac": self.mac.hex(),
        }

    @staticmethod
    def fromDict(d):
        """
        Parse a "crypto" object. Parameters of KDFs other than scrypt are kept
        as-is so that the keyfile can still be indexed. Decrypting such a
        keyfile raises UnsupportedKDF.
        """
        kdf = d["kdf"]
        kdfParams = d["kdfparams"]
        if kdf == KDF_SCRYPT:
            kdfParams = ScryptParams.fromDict(kdfParams)
        return KeyHeader(
            cipherText=ByteArray(d["ciphertext"]),
            mac=ByteArray(d["mac"]),
            iv=ByteArray(d["cipherparams"]["iv"]),
            kdfParams=kdfParams,
            cipher=d["cipher"],
            kdf=kdf,
        )


class ExtendedKey:
    """
    ExtendedKey houses all the information needed to support a BIP0044
    hierarchical deterministic extended key.
    """

    def __init__(
        self,
        privVer,
        pubVer,
        key,
        pubKey,
        chainCode,
        parentFP,
        depth,
        childNum,
        isPrivate,
    ):
        """
        Args:
            privVer (byte-like): Version bytes for extended priv keys.
            pubVer (byte-like): Version bytes for extended pub keys.
            key (byte-like): The key.
            pubKey (byte-like): Will be the same as `key` for public key. Will
                be generated from key if empty.
            chainCode (byte-like): Chain code for key derivation.
            parentFP (ByteArray): parent key fingerprint.
            depth (int): Key depth.
            childNum (int): Child number.
            isPrivate (bool): Whether the key is a private or public key.
        """
        if len(privVer) != 4 or len(pubVer) != 4:
            msg = "Version bytes of incorrect lengths {} and {}"
            raise KeyLengthError(msg.format(len(privVer), len(pubVer)))
        self.privVer = ByteArray(privVer)
        self.pubVer = ByteArray(pubVer)
        self.key = ByteArray(key)
        self.pubKey = ByteArray(pubKey)
        if len(self.pubKey) == 0:
            if isPrivate:
                self.pubKey = Curve.publicKey(self.key).serializeCompressed()
            else:
                self.pubKey = self.key
        self.chainCode = ByteArray(chainCode)
        self.parentFP = ByteArray(parentFP)
        self.depth = depth
        self.childNum = childNum
        self.isPrivate = isPrivate

    @staticmethod
    def new(seed, privVer=XPRV_VERSION, pubVer=XPUB_VERSION):
        """
        new creates a new master ExtendedKey from the seed. The extended key
        can be used to generate purpose, coin-type and account keys in
        accordance with BIP-0032 and BIP-0044.

        Args:
            seed (bytes-like): A seed from which the extended key is made, e.g.
                a BIP-0039 mnemonic seed.
            privVer (bytes-like): Version bytes for extended private keys.
            pubVer (bytes-like): Version bytes for extended public keys.

        Returns:
            crypto.ExtendedKey: A master hierarchical deterministic key.
        """
        seed = bytes(seed)
        rando.checkSeedLength(len(seed))

        # First take the HMAC-SHA512 of the master key and the seed data:
        # SHA512 hash is 64 bytes.
        lr = hmacDigest(MASTER_KEY, seed)

        # Split "I" into two 32-byte sequences Il and Ir where:
        #   Il = master secret key
        #   Ir = master chain code
        lrLen = len(lr) // 2
        secretKey = lr[:lrLen]
        chainCode = lr[lrLen:]

        # Ensure the key is usable.
        secretInt = int.from_bytes(secretKey, byteorder="big")
        if secretInt >= Curve.N or secretInt <= 0:
            raise KeyLengthError("generated key was outside acceptable range")

        return ExtendedKey(
            privVer=privVer,
            pubVer=pubVer,
            key=secretKey,
            pubKey="",
            chainCode=chainCode,
            parentFP=ByteArray(length=4),
            depth=0,
            childNum=0,
            isPrivate=True,
        )

    def child(self, i):
        """
        Child returns a derived child extended key at the given index. When
        this extended key is a private extended key, a private extended key
        will be derived. Otherwise, the derived extended key will also be a
        public extended key.

        When the index is greater than or equal to the HARDENED_KEY_START
        constant, the derived extended key will be a hardened extended key. It
        is only possible to derive a hardended extended key from a private
        extended key. Consequently, this function will throw an exception if a
        hardened child extended key is requested from a public extended key.

        NOTE: There is an extremely small chance (< 1 in 2^127) the specific
        child index does not derive to a usable child. An exception will happen
        if this should occur, and the caller is expected to ignore the invalid
        child and simply increment to the next index.

        There are four scenarios that could happen here:
        1) Private extended key -> Hardened child private extended key
        2) Private extended key -> Non-hardened child private extended key
        3) Public extended key -> Non-hardened child public extended key
        4) Public extended key -> Hardened child public extended key (INVALID!)

        Args:
            i (int): Child number.

        Returns:
            ExtendedKey: The child key.
        """
        if i < 0 or i >= 2 ** 32:
            raise ParameterRangeError(f"child index {i} out of range")

        # Case #4 is invalid, so error out early.
        isChildHardened = i >= HARDENED_KEY_START
        if not self.isPrivate and isChildHardened:
            raise ParameterRangeError(
                "cannot generate hardened child from public extended key"
            )

        # The data used to derive the child key depends on whether or not the
        # child is hardened per [BIP32].
        #
        # For hardened children:
        #   0x00 || ser256(parentKey) || ser32(i)
        #
        # For normal children:
        #   serP(parentPubKey) || ser32(i)
        if isChildHardened:
            data = ByteArray(length=1) + self.key
        else:
            data = self.pubKey.copy()
        data += ByteArray(i, length=4)

        # Take the HMAC-SHA512 of the current key's chain code and the derived
        # data:
        #   I = HMAC-SHA512(Key = chainCode, Data = data)
        ilr = ByteArray(hmacDigest(self.chainCode.bytes(), data.bytes()))
        data.zero()

        # Split "I" into two 32-byte sequences Il and Ir where:
        #   Il = intermediate key used to derive the child
        #   Ir = child chain code
        il = ilr[: len(ilr) // 2]
        childChainCode = ilr[len(ilr) // 2 :]

        # See CrazyKeyError docs for an explanation of this condition.
        if il.int() >= Curve.N or il.iszero():
            raise CrazyKeyError("ExtendedKey.child: generated Il outside valid range")

        # For private children:
        #   childKey = parse256(Il) + parentKey
        #
        # For public children:
        #   childKey = serP(point(parse256(Il)) + parentKey)
        if self.isPrivate:
            # Case #1 or #2.
            childInt = (self.key.int() + il.int()) % Curve.N
            if childInt == 0:
                raise CrazyKeyError("ExtendedKey.child: derived zero key")
            childKey = ByteArray(childInt, length=32)
        else:
            # Case #3.
            pubKey = Curve.parsePubKey(self.key)
            childKey = Curve.add(pubKey, il).serializeCompressed()
        il.zero()

        # The fingerprint of the parent for the derived child is the first 4
        # bytes of the RIPEMD160(SHA256(parentPubKey)).
        parentFP = hash160(self.pubKey.b)[:4]

        return ExtendedKey(
            privVer=self.privVer,
            pubVer=self.pubVer,
            key=childKey,
            pubKey="",
            chainCode=childChainCode,
            parentFP=parentFP,
            depth=self.depth + 1,
            childNum=i,
            isPrivate=self.isPrivate,
        )

    def derive(self, indices):
        """
        Walk the child indices starting from this key.

        Args:
            indices (iterable(int)): Child numbers, hardened ones already
                biased by HARDENED_KEY_START.

        Returns:
            ExtendedKey: The descendant key.
        """
        node = self
        for i in indices:
            child = node.child(i)
            # Intermediate keys are not returned.
            if node is not self:
                node.zero()
            node = child
        return node

    def neuter(self):
        """
        neuter returns a new extended public key from this extended private key.
        The same extended key will be returned unaltered if it is already an
        extended public key.

        As the name implies, an extended public key does not have access to the
        private key, so it is not capable of signing. However, it is capable of
        deriving further child extended public keys.

        Returns:
            ExtendedKey: The public extended key.
        """
        if not self.isPrivate:
            return self

        # This is the function N((k,c)) -> (K, c) from [BIP32].
        return ExtendedKey(
            privVer=self.privVer,
            pubVer=self.pubVer,
            key=self.pubKey,
            pubKey=self.pubKey,
            chainCode=self.chainCode,
            parentFP=self.parentFP,
            depth=self.depth,
            childNum=self.childNum,
            isPrivate=False,
        )

    def serialize(self):
        """
        Return the extended key in serialized form.

        Returns:
            ByteArray: The serialized extended key.
        """
        if self.key.iszero():
            raise KeystoreError("unexpected zero key")

        # The serialized format is:
        #   version (4) || depth (1) || parent fingerprint (4)) ||
        #   child num (4) || chain code (32) || key data (33) || checksum (4)
        b = ByteArray(self.privVer if self.isPrivate else self.pubVer)
        b += ByteArray(self.depth % 256, length=1)
        b += self.parentFP
        b += ByteArray(self.childNum, length=4)
        b += self.chainCode
        if self.isPrivate:
            b += ByteArray(length=1) + self.key
        else:
            b += self.pubKey
        b += checksum(b.b)
        return b

    def string(self):
        """
        string returns the extended key as a base58-encoded string. See
        `decodeExtendedKey` for decoding.

        Returns:
            str: The encoded extended key.
        """
        return b58encode(self.serialize().bytes()).decode()

    def privateKey(self):
        """
        A PrivateKey structure that can be used for signatures.

        Returns:
            secp256k1.PrivateKey: The private key structure.
        """
        if not self.isPrivate:
            raise KeystoreError("not a private extended key")
        return Curve.privateKey(self.key)

    def publicKey(self):
        """
        A PublicKey structure of the pubKey.

        Returns:
            secp256k1.PublicKey: The public key structure.
        """
        return Curve.parsePubKey(self.pubKey)

    def zero(self):
        """
        Zero the private key and chain code.
        """
        self.key.zero()
        self.chainCode.zero()


def decodeExtendedKey(s, privVer=XPRV_VERSION, pubVer=XPUB_VERSION):
    """
    Decode a base58 ExtendedKey.

    Args:
        s (str): Base-58 encoded extended key.
        privVer (bytes-like): Expected extended private key version.
        pubVer (bytes-like): Expected extended public key version.

    Returns:
        ExtendedKey: The decoded key.
    """
    try:
        decoded = ByteArray(b58decode(s))
    except ValueError as e:
        raise KeystoreError(f"invalid base58 extended key: {e}")
    decodedLen = len(decoded)
    if decodedLen != SERIALIZED_KEY_LENGTH + 4:
        raise KeyLengthError(f"decoded extended key is wrong length: {decodedLen}")

    # Split the payload and checksum up and ensure the checksum matches.
    payload = decoded[: decodedLen - 4]
    includedChecksum = decoded[decodedLen - 4 :]
    if includedChecksum != checksum(payload.b):
        raise KeystoreError("wrong checksum")

    version = payload[:4]
    if version not in (privVer, pubVer):
        raise KeystoreError(f"unknown extended key version {version.hex()}")

    depth = payload[4:5].int()
    parentFP = payload[5:9]
    childNum = payload[9:13].int()
    chainCode = payload[13:45]
    keyData = payload[45:78]

    # The key data is a private key if it starts with 0x00. Serialized
    # compressed pubkeys either start with 0x02 or 0x03.
    isPrivate = keyData[0] == 0x00
    if isPrivate:
        keyData = keyData[1:]
        if keyData.int() >= Curve.N or keyData.iszero():
            raise KeystoreError("unusable key")
        # Ensure the public key parses correctly and is actually on the
        # secp256k1 curve.
        Curve.publicKey(keyData)
    else:
        Curve.parsePubKey(keyData)

    return ExtendedKey(
        privVer=privVer,
        pubVer=pubVer,
        key=keyData,
        pubKey="",
        chainCode=chainCode,
        parentFP=parentFP,
        depth=depth,
        childNum=childNum,
        isPrivate=isPrivate,
    )
