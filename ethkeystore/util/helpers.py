"""
Copyright (c) 2019, Brian Stafford
Copyright (c) 2019-2020, The Decred developers
See LICENSE for details
"""

import json
import logging
from logging import Logger
from logging.handlers import RotatingFileHandler
import os
from pathlib import Path
import sys
import tempfile
from typing import Any, Dict, Optional, Union


def mkdir(path: Union[Path, str]) -> bool:
    """
    Create the directory if it doesn't exist. Uses os.path .

    Args:
        path: the directory path.

    Returns:
        False if a file already exists at path, else True.
    """
    if os.path.isdir(path):
        return True
    if os.path.isfile(path):
        return False
    os.makedirs(path)
    return True


class LogSettings:
    """
    Used to track a few logging-related settings.
    """

    root = logging.getLogger("")
    defaultLevel = logging.INFO
    moduleLevels: Dict[str, int] = {}
    loggers: Dict[str, Logger] = {}


LogSettings.root.setLevel(logging.NOTSET)


def prepareLogging(
    filepath: Union[Path, str, None] = None,
    logLvl: int = logging.INFO,
    lvlMap: Optional[Dict[str, int]] = None,
) -> None:
    """
    Prepare for using getLogger. Logs to stdout. If filepath is provided, log
    outputs will be saved to a rotating log file at the specified location. Any
    loggers, both future loggers and those already created, will have their
    levels set according to the new logLvl and lvlMap.

    Args:
        filepath: The base name for the rotating log file.
        logLvl: The default logging level used for all new loggers without
            entries in the lvlMap.
        lvlMap: The name->level mapping will be added to the stored level dict,
            which is referenced when loggers are created using getLogger.
    """
    LogSettings.defaultLevel = logLvl
    LogSettings.moduleLevels.update(lvlMap if lvlMap else {})
    for name, logger in LogSettings.loggers.items():
        if name in LogSettings.moduleLevels:
            logger.setLevel(LogSettings.moduleLevels[name])
        else:
            logger.setLevel(LogSettings.defaultLevel)

    log_formatter = logging.Formatter(
        "%(asctime)s %(module)s %(levelname)s %(funcName)s(%(lineno)d) %(message)s"
    )
    if filepath:
        fileHandler = RotatingFileHandler(
            filepath,
            mode="a",
            maxBytes=5 * 1024 * 1024,
            backupCount=2,
            encoding=None,
            delay=False,
        )
        fileHandler.setFormatter(log_formatter)
        LogSettings.root.addHandler(fileHandler)
    if not sys.executable.endswith("pythonw.exe"):
        # Skip adding the stdout handler for pythonw in windows.
        printHandler = logging.StreamHandler()
        printHandler.setFormatter(log_formatter)
        LogSettings.root.addHandler(printHandler)


def getLogger(name: str) -> Logger:
    """
    Gets a named logger. If the name has a log level registered with
    prepareLogging, that level will be used, otherwise the default is used.

    Args:
        name: The logger name.
    """
    l = LogSettings.root.getChild(name)
    l.setLevel(LogSettings.moduleLevels.get(name, LogSettings.defaultLevel))
    LogSettings.loggers[name] = l
    return l


def logLevel(lvl: Union[int, str]) -> int:
    """
    Resolve a log level given either as a number or as a level name, e.g.
    "debug" or "WARNING". Unknown names resolve to logging.NOTSET.

    Args:
        lvl: The level.

    Returns:
        The numeric logging level.
    """
    try:
        return int(lvl)
    except ValueError:
        resolved = logging.getLevelName(str(lvl).upper())
        return resolved if isinstance(resolved, int) else logging.NOTSET


def saveFile(
    path: Union[Path, str], contents: Union[str, bytes], binary: bool = False
) -> None:
    """
    Atomic file save. The contents are written and synced to a temporary file
    in the destination directory, which is then renamed over the destination,
    so a reader never sees a partially written file under the final name.

    Args:
        path: The destination path.
        contents: The file contents.
        binary: Whether contents are bytes.
    """
    dirPath = os.path.dirname(os.path.abspath(path))
    fd, tmpPath = tempfile.mkstemp(dir=dirPath, prefix=".", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb" if binary else "w") as f:
            f.write(contents)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmpPath, path)
    except BaseException:
        if os.path.exists(tmpPath):
            os.remove(tmpPath)
        raise


def saveJSON(path: Union[Path, str], obj: Any, **kwargs: Any) -> None:
    """
    Serialize the object to JSON and save it atomically. kwargs are passed
    to json.dumps.
    """
    saveFile(path, json.dumps(obj, **kwargs))


def loadJSON(path: Union[Path, str]) -> Any:
    """
    Read and decode the JSON file.
    """
    with open(path, "r") as f:
        return json.load(f)


def fetchSettingsFile(path: Union[Path, str]) -> Dict[str, Any]:
    """
    Fetches the JSON settings file, creating an empty json object if necessary.

    Args:
        path: The settings file path.

    Returns:
        The decoded settings.
    """
    if not os.path.isfile(path):
        saveFile(path, "{}")
    return loadJSON(path)
