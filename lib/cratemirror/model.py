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
Contains the crate metadata records stored in the mirror.
"""

import json
from dataclasses import dataclass, field
from typing import List, Optional, Set


@dataclass
class Version:
    """A published crate version."""

    id: int
    num: str

    def __str__(self):
        return self.num

    @classmethod
    def from_dict(cls, data: dict) -> "Version":
        return cls(id=int(data["id"]), num=str(data["num"]))


@dataclass
class Crate:
    """Describes a crate as returned by the registry."""

    name: str
    id: str = ""
    created_at: str = ""
    updated_at: str = ""
    description: Optional[str] = None
    documentation: Optional[str] = None
    downloads: int = 0
    homepage: Optional[str] = None
    keywords: List[str] = field(default_factory=list)
    license: Optional[str] = None
    max_version: str = ""
    repository: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Crate":
        return cls(
            name=data["name"],
            id=data.get("id", data["name"]),
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
            description=data.get("description"),
            documentation=data.get("documentation"),
            downloads=int(data.get("downloads") or 0),
            homepage=data.get("homepage"),
            keywords=list(data.get("keywords") or []),
            license=data.get("license"),
            max_version=data.get("max_version", ""),
            repository=data.get("repository"),
        )


@dataclass
class CrateMetadata:
    """Crate metadata file contents: the crate plus every known version.

    Serialized with the crate under the "crate" key, matching the registry
    response so that downloaded responses can be stored as-is.
    """

    crate: Crate
    versions: List[Version] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "CrateMetadata":
        """Builds metadata from a decoded registry response.

        :param data: decoded JSON object.
        :raises ValueError: if required keys are missing or malformed.
        :return: CrateMetadata instance.
        """
        try:
            return cls(
                crate=Crate.from_dict(data["crate"]),
                versions=[Version.from_dict(v) for v in data["versions"]],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"invalid crate metadata: {e!r}")

    @classmethod
    def loads(cls, text: str) -> "CrateMetadata":
        """Parses metadata from a JSON string."""
        return cls.from_dict(json.loads(text))

    @classmethod
    def load(cls, path) -> "CrateMetadata":
        """Reads metadata from a JSON file.

        :param path: path to the metadata file.
        :raises OSError: if the file cannot be read.
        :raises ValueError: if the file is not valid crate metadata.
        :return: CrateMetadata instance.
        """
        with open(path, "r", encoding="utf-8") as f:
            return cls.loads(f.read())

    @property
    def name(self) -> str:
        return self.crate.name

    def version_numbers(self) -> Set[str]:
        """Returns the set of known version strings."""
        return {v.num for v in self.versions}
