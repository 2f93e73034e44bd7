#!/usr/bin/env python
#
# Copyright (c) 2024-2025, Ryan Galloway (ryan@rsgalloway.com)
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
#  - Redistributions of source code must retain the above copyright notice,
#    this list of conditions and the following disclaimer.
#
#  - Redistributions in binary form must reproduce the above copyright notice,
#    this list of conditions and the following disclaimer in the documentation
#    and/or other materials provided with the distribution.
#
#  - Neither the name of the software nor the names of its contributors
#    may be used to endorse or promote products derived from this software
#    without specific prior written permission.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.
#

__doc__ = """
Contains logging functions and classes.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional, Union

from cratemirror import config

log = logging.Logger(config.LOG_NAME)

# one step past CRITICAL, nothing gets through
OFF = logging.CRITICAL + 10

# verbosity names as used in config files and on the command line
LOG_LEVEL_MAP = {
    "off": OFF,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}

# ordered from quietest to loudest, indexed by -v/-q counts
VERBOSITY_LEVELS = [OFF, logging.ERROR, logging.WARNING, logging.INFO, logging.DEBUG]


def get_level(value: Union[str, int, None], default: str = config.LOG_LEVEL_DEFAULT):
    """Converts a level name or number to a logging level.

    :param value: level name (e.g. "info"), number, or None.
    :param default: level name used when value is None or unknown.
    :return: logging level.
    """
    if value is None:
        return LOG_LEVEL_MAP[default]
    if isinstance(value, int):
        return value
    if value.isdigit():
        return int(value)
    return LOG_LEVEL_MAP.get(value.strip().lower(), LOG_LEVEL_MAP[default])


def verbosity_level(verbose: int = 0, quiet: int = 0, base: str = "error") -> int:
    """Converts -v/-q counts to a logging level, starting from base.

    :param verbose: number of -v flags.
    :param quiet: number of -q flags.
    :param base: level name with no flags given.
    :return: logging level.
    """
    index = VERBOSITY_LEVELS.index(LOG_LEVEL_MAP[base]) + verbose - quiet
    index = max(0, min(index, len(VERBOSITY_LEVELS) - 1))
    return VERBOSITY_LEVELS[index]


def _remove_handlers():
    """Removes handlers added by previous setup calls."""
    for h in list(log.handlers):
        if h.name == log.name:
            log.removeHandler(h)
            h.close()


def setup_stream_handler(level: int = logging.ERROR):
    """Adds a new stderr stream handler.

    :param level: log level.
    :return: handler.
    """
    handler = logging.StreamHandler()
    handler.set_name(log.name)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))

    log.addHandler(handler)
    return handler


def setup_file_handler(
    logfile: str,
    maxBytes: int = config.LOG_MAX_BYTES,
    backupCount: int = config.LOG_BACKUP_COUNT,
    level: int = logging.ERROR,
):
    """Adds a new rotating file handler.

    :param logfile: path to the log file.
    :param maxBytes: max bytes per file.
    :param backupCount: number of backup files.
    :param level: log level.
    :return: handler.
    """
    logdir = os.path.dirname(os.path.abspath(logfile))
    os.makedirs(logdir, exist_ok=True)

    handler = RotatingFileHandler(
        logfile, maxBytes=maxBytes, backupCount=backupCount
    )
    handler.set_name(log.name)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(threadName)s - %(levelname)s - %(message)s"
        )
    )

    log.addHandler(handler)
    return handler


def setup_logging(level: int = logging.ERROR, logfile: Optional[str] = None):
    """Setup log handlers. Logs go to logfile if given, stderr otherwise.

    :param level: log level.
    :param logfile: optional path to a log file.
    """
    _remove_handlers()
    log.setLevel(level)
    # log is not registered with the manager, so setLevel leaves its cache
    log._cache.clear()

    if logfile:
        setup_file_handler(logfile, level=level)
    else:
        setup_stream_handler(level)


log.setLevel(get_level(config.LOG_LEVEL))
log.addHandler(logging.NullHandler())
