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

"""Address snapshots handed from the poll loop to the workers"""

import ipaddress
from typing import NamedTuple, Optional, Union


class AddressSnapshot(NamedTuple):
    """One observation of the current public addresses. Either family may be
    ``None`` if it could not be determined."""

    v4: Optional[ipaddress.IPv4Address] = None
    v6: Optional[ipaddress.IPv6Address] = None

    def address_for(
        self,
        record_type: str,
    ) -> Optional[Union[ipaddress.IPv4Address, ipaddress.IPv6Address]]:
        """Get the address relevant to a record type

        :param record_type: ``'A'`` or ``'AAAA'``
        :return: The IPv4 address for ``A``, the IPv6 address for ``AAAA``,
                 or ``None`` if that family is absent
        :raises ValueError: for any other record type
        """
        if record_type == 'A':
            return self.v4
        if record_type == 'AAAA':
            return self.v6
        raise ValueError(f"Record type {record_type} has no address family")

    def __str__(self):
        v4 = self.v4.exploded if self.v4 is not None else '(none)'
        v6 = self.v6.compressed if self.v6 is not None else '(none)'
        return f"IPv4 {v4}, IPv6 {v6}"
