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

"""Base class for cloudflareddns probers"""

import ipaddress
import logging
# Note: We are not using abstractmethod the way it is intended. We are using it
# purely to mark methods as abstract in the docs. Thus, we intentionally do
# NOT use ABCMeta or inherit from ABC.
from abc import abstractmethod
from typing import Dict, List, Optional

from ..exceptions import ProbeError


class Prober:
    """Base class for all probers. A prober finds the current public IPv4 and
    IPv6 addresses of this host.

    Subclasses implement :meth:`probe_ipv4` and :meth:`probe_ipv6`. Callers
    use :meth:`get_ipv4` and :meth:`get_ipv6`, which never fail: an address
    that could not be determined is simply absent.

    :param name: Name of the prober
    :param config: Dict of config options for this prober
    :raises ConfigError: (in subclasses) if the configuration is invalid
    :raises SetupError: (in subclasses) if the prober cannot be set up for
                        any other reason
    """

    def __init__(self, name: str, config: Dict[str, str]):
        #: Prober name
        self.name: str = name

        #: Logger (see standard :mod:`logging` module)
        self.log = logging.getLogger(f'cloudflareddns.prober.{self.name}')

    def get_ipv4(self) -> Optional[ipaddress.IPv4Address]:
        """Get the current public IPv4 address

        :return: The address, or ``None`` if there is none or it could not be
                 determined
        """
        try:
            address = self.probe_ipv4()
        except (ProbeError, NotImplementedError) as e:
            self.log.debug("No IPv4 address: %s", e)
            return None
        self.log.debug("Found IPv4 address %s", address.exploded)
        return address

    def get_ipv6(self) -> Optional[ipaddress.IPv6Address]:
        """Get the current public IPv6 address

        :return: The address, or ``None`` if there is none or it could not be
                 determined
        """
        try:
            address = self.probe_ipv6()
        except (ProbeError, NotImplementedError) as e:
            self.log.debug("No IPv6 address: %s", e)
            return None
        self.log.debug("Found IPv6 address %s", address.compressed)
        return address

    @abstractmethod
    def probe_ipv4(self) -> ipaddress.IPv4Address:
        """Look up the current public IPv4 address.

        **Must be implemented by subclasses that support IPv4.**

        :raises ProbeError: if there is no address or the lookup failed
        """
        raise NotImplementedError("IPv4 not supported")

    @abstractmethod
    def probe_ipv6(self) -> ipaddress.IPv6Address:
        """Look up the current public IPv6 address.

        **Must be implemented by subclasses that support IPv6.**

        :raises ProbeError: if there is no address or the lookup failed
        """
        raise NotImplementedError("IPv6 not supported")


class ChainProber(Prober):
    """Asks a list of probers in turn, using the first address found for each
    family

    :param probers: The probers, in order of preference
    """

    def __init__(self, probers: List[Prober]):
        super().__init__('chain', {})
        self.probers = probers

    def probe_ipv4(self) -> ipaddress.IPv4Address:
        for prober in self.probers:
            address = prober.get_ipv4()
            if address is not None:
                return address
        raise ProbeError("No prober found an IPv4 address")

    def probe_ipv6(self) -> ipaddress.IPv6Address:
        for prober in self.probers:
            address = prober.get_ipv6()
            if address is not None:
                return address
        raise ProbeError("No prober found an IPv6 address")
