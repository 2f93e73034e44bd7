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
Contains index path helpers. The package index shards crates by name:

    a     -> 1/a
    ab    -> 2/ab
    abc   -> ab/c/abc
    abcd  -> ab/cd/abcd
"""

from pathlib import Path
from typing import Union

PathLike = Union[str, Path]


def build_new_path(root: PathLike, entry: PathLike) -> Path:
    """Appends the last component of entry to root. Used to grow the
    destination path one index level at a time while walking the source.

    :param root: Destination directory.
    :param entry: Source index entry.
    :raises ValueError: if entry has no final component.
    :return: root / basename(entry).
    """
    name = Path(entry).name
    if not name:
        raise ValueError(f"path has no final component: {str(entry)!r}")
    return Path(root) / name


def shard_path(name: str) -> Path:
    """Returns the index path of a crate relative to the index root.

    :param name: Crate name.
    :raises ValueError: if name is empty.
    :return: Relative shard path ending with the crate name.
    """
    if not name:
        raise ValueError("crate name cannot be empty")
    if len(name) <= 2:
        return Path(str(len(name)), name)
    return Path(name[:2], name[2:4], name)
