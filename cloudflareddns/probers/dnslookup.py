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

"""Prober that asks a DNS server which address the query came from"""

import ipaddress
from typing import Dict

import dns.exception    # type: ignore
import dns.resolver     # type: ignore

from ..exceptions import ConfigError, ProbeError
from .prober import Prober


class DnsProber(Prober):
    """Prober using a DNS service that answers a special name with the
    address of whoever asked, like OpenDNS's ``myip.opendns.com``.

    The IPv4 lookup (``A``) is sent to an IPv4 nameserver and the IPv6
    lookup (``AAAA``) to an IPv6 nameserver, so each travels over the
    family being probed.

    :param name: Name of the prober
    :param config: Dict of config options for this prober
    :raises ConfigError: if the configuration is invalid
    """

    def __init__(self, name: str, config: Dict[str, str]):
        super().__init__(name, config)

        # Name to look up
        self.hostname = config.get('dns_name', 'myip.opendns.com')

        # Nameservers that answer the lookup with the caller's address.
        # Defaults are resolver1.opendns.com.
        self.server4 = self._nameserver(config, 'dns_server4',
                                        '208.67.222.222', 4)
        self.server6 = self._nameserver(config, 'dns_server6',
                                        '2620:119:35::35', 6)

        # Seconds to wait for an answer, including retries
        try:
            self.timeout = float(config.get('timeout', '5'))
        except ValueError:
            self.log.critical("'timeout' config option must be a number")
            raise ConfigError(f"'timeout' option for {self.name} prober "
                              "must be a number") from None

    def _nameserver(self, config: Dict[str, str], option: str, default: str,
                    version: int) -> str:
        """Read and validate a nameserver address option"""
        server = config.get(option, default)
        try:
            addr = ipaddress.ip_address(server)
        except ValueError:
            addr = None
        if addr is None or addr.version != version:
            self.log.critical("'%s' config option must be an IPv%d address",
                              option, version)
            raise ConfigError(f"'{option}' option for {self.name} prober "
                              f"must be an IPv{version} address")
        return server

    def _lookup(self, server: str, rdtype: str) -> str:
        """Look up :attr:`hostname` on the given server and return the first
        address in the answer

        :raises ProbeError: if the lookup failed or had no answer
        """
        resolver = dns.resolver.Resolver(configure=False)
        resolver.nameservers = [server]
        resolver.lifetime = self.timeout
        try:
            answer = resolver.resolve(self.hostname, rdtype)
        except (OSError, dns.exception.DNSException) as e:
            raise ProbeError(f"Could not look up {rdtype} {self.hostname} on "
                             f"{server}: {e}") from e
        for rec in answer:
            return rec.address
        raise ProbeError(f"No {rdtype} record for {self.hostname} on "
                         f"{server}")

    def probe_ipv4(self) -> ipaddress.IPv4Address:
        address = self._lookup(self.server4, 'A')
        try:
            return ipaddress.IPv4Address(address)
        except ValueError:
            raise ProbeError(f"Invalid IPv4 address {address}") from None

    def probe_ipv6(self) -> ipaddress.IPv6Address:
        address = self._lookup(self.server6, 'AAAA')
        try:
            return ipaddress.IPv6Address(address)
        except ValueError:
            raise ProbeError(f"Invalid IPv6 address {address}") from None
