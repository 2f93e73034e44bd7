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
Contains the registry API client.
"""

from typing import Optional

import requests
from requests.adapters import HTTPAdapter

from cratemirror import config
from cratemirror.logger import log


class RegistryError(Exception):
    """Raised when crate metadata cannot be fetched from the registry."""

    pass


class RegistryClient(object):
    """Fetches raw crate metadata from a crates.io compatible registry.

    One session is shared by all worker threads.
    """

    def __init__(
        self,
        base_url: str = config.REGISTRY_URL,
        timeout: float = config.REQUEST_TIMEOUT,
        user_agent: str = config.USER_AGENT,
        pool_size: int = config.WORKERS_DEFAULT,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the client.

        :param base_url: registry root url, e.g. https://crates.io
        :param timeout: per-request timeout in seconds.
        :param user_agent: User-Agent header (required by crates.io).
        :param pool_size: max connections kept per host, one per worker.
        :param session: optional requests session to use.
            Its adapters are kept as-is, pool_size only applies to the
            default session.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        if session is None:
            session = requests.Session()
            adapter = HTTPAdapter(pool_connections=1, pool_maxsize=pool_size)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        self.session = session
        self.session.headers.update(
            {"Accept": "application/json", "User-Agent": user_agent}
        )

    def __repr__(self):
        return f"<RegistryClient {self.base_url}>"

    def crate_url(self, name: str) -> str:
        """Returns the API url for a crate."""
        return f"{self.base_url}/{config.REGISTRY_API}/{name}"

    def get_crate_data(self, name: str) -> str:
        """Fetches the metadata of a crate.

        :param name: crate name.
        :raises RegistryError: on network errors or non-2xx responses.
        :return: raw JSON response body.
        """
        url = self.crate_url(name)
        log.debug("GET %s", url)
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise RegistryError(f"Error fetching data for {name}: {e}")

        if not resp.ok:
            raise RegistryError(
                f"Error fetching data for {name}: {self._error_detail(resp)}"
            )

        return resp.text

    @staticmethod
    def _error_detail(resp: requests.Response) -> str:
        """Returns a readable error message from a failed response."""
        try:
            errors = resp.json().get("errors") or []
            details = [e["detail"] for e in errors if e.get("detail")]
        except (ValueError, AttributeError, TypeError):
            details = []
        if details:
            return f"{resp.status_code} {'; '.join(details)}"
        return f"{resp.status_code} {resp.reason}"
