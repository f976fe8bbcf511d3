#  cloudflareddns - Keep Cloudflare DNS records in sync with your public IP
#  Copyright (C) 2023 The cloudflareddns contributors
#
#  This program is free software: you can redistribute it and/or modify
#  it under the terms of the GNU General Public License as published by
#  the Free Software Foundation, either version 3 of the License, or
#  (at your option) any later version.
#
#  This program is distributed in the hope that it will be useful,
#  but WITHOUT ANY WARRANTY; without even the implied warranty of
#  MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#  GNU General Public License for more details.
#
#  You should have received a copy of the GNU General Public License
#  along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""Prober that asks a what-is-my-ip-style website for the public address"""

import ipaddress
import socket
from typing import Dict

import requests

from ..configuration import USER_AGENT
from ..exceptions import ConfigError, ProbeError
from ..util import RequestsFamilyRestriction
from .prober import Prober


class WebProber(Prober):
    """Prober that fetches a URL returning the caller's address as plain
    text. The IPv4 and IPv6 requests are forced over the matching address
    family.

    :param name: Name of the prober
    :param config: Dict of config options for this prober
    :raises ConfigError: if the configuration is invalid
    """

    def __init__(self, name: str, config: Dict[str, str]):
        super().__init__(name, config)

        # URL to request the IPv4 address from. The request is made over IPv4
        # only.
        self.url4 = config.get('url', 'https://api.ipify.org')

        # URL to request the IPv6 address from. The request is made over IPv6
        # only. Many services answer on both families, so this can be the
        # same as 'url'.
        self.url6 = config.get('url6', 'https://api6.ipify.org')

        # Timeout to use waiting for a response from the HTTP server, in
        # seconds
        try:
            self.timeout4 = float(config.get('timeout', '10'))
        except ValueError:
            self.log.critical("'timeout' config option must be a number")
            raise ConfigError(f"'timeout' option for {self.name} prober "
                              "must be a number") from None

        try:
            self.timeout6 = float(config['timeout6'])
        except KeyError:
            self.timeout6 = self.timeout4
        except ValueError:
            self.log.critical("'timeout6' config option must be a number")
            raise ConfigError(f"'timeout6' option for {self.name} prober "
                              "must be a number") from None

    def _fetch(self, url: str, timeout: float, family: int) -> str:
        """Fetch the given URL over the given address family and return the
        stripped response text

        :raises ProbeError: if the request failed
        """
        with RequestsFamilyRestriction(family):
            try:
                r = requests.get(url, timeout=timeout,
                                 headers={'User-Agent': USER_AGENT})
            except requests.exceptions.RequestException as e:
                raise ProbeError(f"Could not fetch {url}: {e}") from e
        try:
            r.raise_for_status()
        except requests.exceptions.HTTPError:
            raise ProbeError(f"Received HTTP {r.status_code} from "
                             f"{url}") from None
        return r.text.strip()

    def probe_ipv4(self) -> ipaddress.IPv4Address:
        text = self._fetch(self.url4, self.timeout4, socket.AF_INET)
        try:
            return ipaddress.IPv4Address(text)
        except ValueError:
            raise ProbeError(f'Response from {self.url4} did not contain a '
                             f'valid IPv4 address: "{text}"') from None

    def probe_ipv6(self) -> ipaddress.IPv6Address:
        text = self._fetch(self.url6, self.timeout6, socket.AF_INET6)
        try:
            return ipaddress.IPv6Address(text)
        except ValueError:
            raise ProbeError(f'Response from {self.url6} did not contain a '
                             f'valid IPv6 address: "{text}"') from None
