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
Contains run settings: command line options merged with an optional toml
config file. Command line options win, except for the log level where the
more verbose of the two is used.

Example config file:

    input = "/srv/crates.io-index"
    output = "/srv/crate-metadata"
    logfile = "/var/log/cratemirror.log"
    count = 16
    verbose = "info"
"""

import os
from dataclasses import dataclass
from typing import Optional

import toml

from cratemirror import config
from cratemirror.logger import LOG_LEVEL_MAP, get_level

# keys accepted in config files
CONFIG_KEYS = {"input", "output", "logfile", "count", "verbose", "registry", "timeout"}


class SettingsError(Exception):
    """Raised when settings are missing or invalid."""

    pass


@dataclass
class Settings:
    """Resolved settings for a mirror run."""

    input: str
    output: str
    logfile: Optional[str] = None
    count: int = config.WORKERS_DEFAULT
    level: int = LOG_LEVEL_MAP[config.LOG_LEVEL_DEFAULT]
    registry: str = config.REGISTRY_URL
    timeout: float = config.REQUEST_TIMEOUT


def load_config_file(path: str) -> Optional[dict]:
    """Read a toml config file.

    :param path: Path to the config file.
    :raises SettingsError: if the file exists but cannot be parsed.
    :return: Config values, or None if the file does not exist.
    """
    if not os.path.isfile(path):
        return None

    try:
        data = toml.load(path)
    except (OSError, toml.TomlDecodeError) as e:
        raise SettingsError(f"Can't parse config file {path} : {e}")

    unknown = set(data) - CONFIG_KEYS
    if unknown:
        raise SettingsError(
            f"Unknown keys in config file {path}: {', '.join(sorted(unknown))}"
        )

    verbose = data.get("verbose")
    if verbose is not None and str(verbose).lower() not in LOG_LEVEL_MAP:
        raise SettingsError(f"Invalid verbose level in {path}: {verbose}")

    return data


def _positive_int(name: str, value) -> int:
    try:
        value = int(value)
    except (TypeError, ValueError):
        raise SettingsError(f"{name} must be an integer, got {value!r}")
    if value < 1:
        raise SettingsError(f"{name} must be at least 1, got {value}")
    return value


def merge_settings(
    input: Optional[str] = None,
    output: Optional[str] = None,
    logfile: Optional[str] = None,
    count: Optional[int] = None,
    level: Optional[int] = None,
    registry: Optional[str] = None,
    timeout: Optional[float] = None,
    file_config: Optional[dict] = None,
) -> Settings:
    """Merge command line values with config file values.

    :param input: Index directory option.
    :param output: Mirror directory option.
    :param logfile: Log file option.
    :param count: Worker count option.
    :param level: Log level from verbosity flags.
    :param registry: Registry url option.
    :param timeout: Request timeout option.
    :param file_config: Values loaded from the config file, if any.
    :raises SettingsError: if input or output is unset, or a value is invalid.
    :return: Resolved settings.
    """
    file_config = file_config or {}

    input = input or file_config.get("input")
    output = output or file_config.get("output")
    if not input:
        raise SettingsError("Input not set")
    if not output:
        raise SettingsError("Output not set")

    if count is None:
        count = file_config.get("count", config.WORKERS_DEFAULT)

    if timeout is None:
        timeout = file_config.get("timeout", config.REQUEST_TIMEOUT)
    try:
        timeout = float(timeout)
    except (TypeError, ValueError):
        raise SettingsError(f"timeout must be a number, got {timeout!r}")

    # lower logging level means more verbose
    if level is None:
        level = LOG_LEVEL_MAP[config.LOG_LEVEL_DEFAULT]
    if "verbose" in file_config:
        level = min(level, get_level(str(file_config["verbose"])))

    return Settings(
        input=str(input),
        output=str(output),
        logfile=logfile or file_config.get("logfile"),
        count=_positive_int("count", count),
        level=level,
        registry=registry or file_config.get("registry", config.REGISTRY_URL),
        timeout=timeout,
    )
