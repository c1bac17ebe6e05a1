"""
Copyright (c) 2019, Brian Stafford
Copyright (c) 2019-2020, the Decred developers
See LICENSE for details

Configuration settings for the keystore.
"""

import argparse
import logging
import os

from appdirs import AppDirs

from ethkeystore import KeystoreError
from ethkeystore.crypto.crypto import (
    LIGHT_SCRYPT_N,
    LIGHT_SCRYPT_P,
    STANDARD_SCRYPT_N,
    STANDARD_SCRYPT_P,
)
from ethkeystore.util import helpers
from ethkeystore.wallet.keystore import KeyStore


# Set the data directory in a OS-appropriate location.
_ad = AppDirs("EthKeystore", False)
DATA_DIR = _ad.user_data_dir

# The master configuration file name.
CONFIG_NAME = "ethkeystore.conf"

# Keyfiles are kept in a subdirectory of the data directory by default.
KEYSTORE_DIRNAME = "keystore"

# Log files are kept in a subdirectory of the data directory.
LOG_DIRNAME = "logs"
LOG_NAME = "ethkeystore.log"

# Settings file keys.
KEY_KEYSTORE = "keystore"
KEY_LIGHT_KDF = "lightkdf"
KEY_LOG_LEVEL = "loglevel"

log = helpers.getLogger("CONFIG")


class KeystoreConfig:
    """
    KeystoreConfig is configuration settings. The configuration file is JSON
    formatted. Command-line arguments override the file.
    """

    def __init__(self, dataDir=None, args=None):
        """
        Args:
            dataDir (str): optional. The data directory holding the settings
                file. Default is the OS-appropriate user data directory.
            args (list(str)): optional. Command-line arguments. Default is
                sys.argv.
        """
        self.dataDir = dataDir if dataDir else DATA_DIR
        if not helpers.mkdir(self.dataDir):
            raise KeystoreError(f"{self.dataDir} is not a directory")
        self.path = os.path.join(self.dataDir, CONFIG_NAME)
        self.file = helpers.fetchSettingsFile(self.path)
        parser = argparse.ArgumentParser(allow_abbrev=False)
        parser.add_argument("--keystore", help="keyfile directory")
        parser.add_argument(
            "--lightkdf",
            action="store_true",
            help="use less memory and CPU for new keyfiles, at the cost of security",
        )
        parser.add_argument(
            "--loglevel",
            help="log level, or logger:level pairs, e.g. KSTR:debug,CONFIG:info",
        )
        parsed, unknown = parser.parse_known_args(args)
        if unknown:
            log.warning(f"ignoring unknown arguments: {unknown!r}")
        self.args = parsed
        self.normalize()

    def set(self, k, v):
        """
        Set the configuration option. The configuration is not saved, so `save`
        should be called separately.

        Args:
            k (str): The setting key.
            v (JSON-encodable): The value.
        """
        self.file[k] = v

    def get(self, *keys):
        """
        Retrieve the setting at the provided key path. Multiple keys can be
        provided, with each successive key being retrieved from the previous
        key's value.

        Args:
            *keys (str): Recursive key list.

        Returns:
            mixed: The configuration value.
        """
        d = self.file
        rVal = None
        for k in keys:
            if not isinstance(d, dict) or k not in d:
                return None
            rVal = d[k]
            d = rVal
        return rVal

    def normalize(self):
        """
        Perform attribute checks and initialization.
        """
        file = self.file
        if KEY_KEYSTORE not in file:
            file[KEY_KEYSTORE] = os.path.join(self.dataDir, KEYSTORE_DIRNAME)
        if KEY_LIGHT_KDF not in file:
            file[KEY_LIGHT_KDF] = False
        if KEY_LOG_LEVEL not in file:
            file[KEY_LOG_LEVEL] = "info"

    def save(self):
        """
        Save the file.
        """
        helpers.saveJSON(self.path, self.file, indent=4, sort_keys=True)

    def keyDir(self):
        """
        The keyfile directory.
        """
        return self.args.keystore if self.args.keystore else self.get(KEY_KEYSTORE)

    def lightKDF(self):
        return bool(self.args.lightkdf or self.get(KEY_LIGHT_KDF))

    def scryptN(self):
        return LIGHT_SCRYPT_N if self.lightKDF() else STANDARD_SCRYPT_N

    def scryptP(self):
        return LIGHT_SCRYPT_P if self.lightKDF() else STANDARD_SCRYPT_P

    def levelSpecifier(self):
        lvl = self.args.loglevel if self.args.loglevel else self.get(KEY_LOG_LEVEL)
        return str(lvl)

    def logLevel(self):
        """
        The numeric default log level. When the level setting is a list of
        logger:level pairs, the default is INFO.
        """
        setting = self.levelSpecifier()
        if any(ch in setting for ch in (",", ":")):
            return logging.INFO
        return helpers.logLevel(setting)

    def moduleLevels(self):
        """
        The per-logger levels of a level setting such as KSTR:debug,CONFIG:info.

        Returns:
            dict: Numeric levels keyed by logger name.

        Raises:
            KeystoreError: The setting is malformed.
        """
        setting = self.levelSpecifier()
        if not any(ch in setting for ch in (",", ":")):
            return {}
        try:
            pairs = (s.split(":") for s in setting.split(","))
            return {k: helpers.logLevel(v) for k, v in pairs}
        except ValueError:
            raise KeystoreError(f"malformed loglevel specifier: {setting}")

    def initLogging(self):
        """
        Initialize logging at the configured levels, to stdout and to a
        rotating file in the data directory.
        """
        logDir = os.path.join(self.dataDir, LOG_DIRNAME)
        if not helpers.mkdir(logDir):
            raise KeystoreError(f"{logDir} is not a directory")
        helpers.prepareLogging(
            os.path.join(logDir, LOG_NAME),
            logLvl=self.logLevel(),
            lvlMap=self.moduleLevels(),
        )
        log.info(f"configuration file at {self.path}")
        log.info(f"keyfile directory at {self.keyDir()}")

    def openKeyStore(self):
        """
        A KeyStore for the configured directory and scrypt strength.

        Returns:
            KeyStore: The key store.
        """
        return KeyStore(self.keyDir(), scryptN=self.scryptN(), scryptP=self.scryptP())


keystoreConfig = None


def load(dataDir=None, args=None):
    """
    Load and return the current configuration. Logging is initialized from
    it on the first call.

    The configuration is only loaded once. Successive calls to the modular `load`
    function will return the same instance.

    Returns:
        KeystoreConfig: The current configuration.
    """
    global keystoreConfig
    if not keystoreConfig:
        keystoreConfig = KeystoreConfig(dataDir, args)
        keystoreConfig.initLogging()
    return keystoreConfig
