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
Contains shared test fixtures: fake registry clients and index builders.
"""

import json
import threading
import time
from pathlib import Path

import pytest

from cratemirror.registry import RegistryError
from cratemirror.shard import shard_path


def crate_json(name: str, versions=("0.1.0",)) -> str:
    """Returns a registry response body for a crate."""
    return json.dumps(
        {
            "crate": {
                "id": name,
                "name": name,
                "description": f"the {name} crate",
                "downloads": 42,
                "keywords": ["test"],
                "license": "MIT",
                "max_version": versions[-1] if versions else "",
                "created_at": "2020-01-01T00:00:00.000000+00:00",
                "updated_at": "2020-01-02T00:00:00.000000+00:00",
            },
            "versions": [
                {"id": i + 1, "num": num} for i, num in enumerate(versions)
            ],
        }
    )


class FakeClient(object):
    """Registry client that serves crates from a dict and records calls.

    :param versions: crate name -> list of versions the registry knows.
    :param fail: crate names that raise RegistryError.
    :param delay: seconds to sleep per call, or a dict of name -> seconds.
    """

    def __init__(self, versions=None, fail=(), delay=0.0):
        self.versions = versions or {}
        self.fail = set(fail)
        self.delay = delay
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.lock = threading.Lock()

    def get_crate_data(self, name: str) -> str:
        with self.lock:
            self.calls.append(name)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            delay = self.delay
            if isinstance(delay, dict):
                delay = delay.get(name, 0)
            if delay:
                time.sleep(delay)
            if name in self.fail:
                raise RegistryError(f"Error fetching data for {name}: 500 boom")
            return crate_json(name, self.versions.get(name, ("0.1.0",)))
        finally:
            with self.lock:
                self.in_flight -= 1


def add_crate(index: Path, name: str, versions=("0.1.0",)) -> Path:
    """Creates a crate directory with version subdirectories in index."""
    crate_dir = index / shard_path(name)
    crate_dir.mkdir(parents=True, exist_ok=True)
    for v in versions:
        (crate_dir / v).mkdir(exist_ok=True)
    return crate_dir


@pytest.fixture
def index(tmp_path):
    """Empty index directory."""
    path = tmp_path / "index"
    path.mkdir()
    return path


@pytest.fixture
def mirror(tmp_path):
    """Empty mirror directory."""
    path = tmp_path / "mirror"
    path.mkdir()
    return path
