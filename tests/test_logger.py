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
Contains tests for the logger module.
"""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from cratemirror import logger
from cratemirror.logger import OFF, get_level, log, setup_logging, verbosity_level


@pytest.fixture(autouse=True)
def reset_log():
    level = log.level
    yield
    logger._remove_handlers()
    log.setLevel(level)


@pytest.mark.parametrize(
    "verbose,quiet,expected",
    [
        (0, 0, logging.ERROR),
        (1, 0, logging.WARNING),
        (2, 0, logging.INFO),
        (3, 0, logging.DEBUG),
        (9, 0, logging.DEBUG),
        (0, 1, OFF),
        (0, 5, OFF),
        (2, 1, logging.WARNING),
    ],
)
def test_verbosity_level(verbose, quiet, expected):
    assert verbosity_level(verbose, quiet) == expected


def test_get_level():
    assert get_level("info") == logging.INFO
    assert get_level("WARN") == logging.WARNING
    assert get_level("trace") == logging.DEBUG
    assert get_level("off") == OFF
    assert get_level("10") == logging.DEBUG
    assert get_level(20) == logging.INFO
    assert get_level(None) == logging.ERROR
    assert get_level("bogus") == logging.ERROR


def test_setup_logging_stream():
    setup_logging(logging.INFO)
    handlers = [h for h in log.handlers if h.name == log.name]
    assert len(handlers) == 1
    assert isinstance(handlers[0], logging.StreamHandler)
    assert log.level == logging.INFO


def test_setup_logging_file(tmp_path):
    logfile = tmp_path / "logs" / "cratemirror.log"
    setup_logging(logging.INFO, str(logfile))
    log.info("serde: downloaded")
    log.debug("hidden")

    handlers = [h for h in log.handlers if h.name == log.name]
    assert len(handlers) == 1
    assert isinstance(handlers[0], RotatingFileHandler)
    handlers[0].flush()

    text = logfile.read_text()
    assert "serde: downloaded" in text
    assert "hidden" not in text


def test_setup_logging_replaces_handlers(tmp_path):
    setup_logging(logging.INFO)
    setup_logging(logging.DEBUG, str(tmp_path / "cratemirror.log"))
    handlers = [h for h in log.handlers if h.name == log.name]
    assert len(handlers) == 1


def test_setup_logging_lower_level_after_logging(tmp_path):
    logfile = tmp_path / "cratemirror.log"
    setup_logging(logging.ERROR)
    log.info("before")
    setup_logging(logging.INFO, str(logfile))
    log.info("serde: downloaded")

    for h in log.handlers:
        h.flush()
    text = logfile.read_text()
    assert "serde: downloaded" in text
    assert "before" not in text
