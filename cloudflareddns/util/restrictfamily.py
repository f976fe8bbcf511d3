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

"""Restrict the address family used by Requests (through urllib3), so the
same URL can be fetched once over IPv4 and once over IPv6"""

import socket
import threading
from typing import Optional

from urllib3.util import connection

_allowed_gai_family_orig = connection.allowed_gai_family

# Held for as long as a restriction is active, so only one thread at a time
# can impose one and other threads see the restriction only while it applies
_family_lock = threading.RLock()
_family: Optional[int] = None


def _allowed_gai_family() -> int:
    with _family_lock:
        if _family is None:
            return _allowed_gai_family_orig()
        return _family


connection.allowed_gai_family = _allowed_gai_family


class RequestsFamilyRestriction:
    """Context manager that makes Requests connect using only the given
    address family while active

    :param family: :data:`socket.AF_INET` or :data:`socket.AF_INET6`
    """

    def __init__(self, family: int):
        if family not in (socket.AF_INET, socket.AF_INET6):
            raise ValueError("family must be AF_INET or AF_INET6")
        self.family = family

    def __enter__(self):
        global _family
        _family_lock.acquire()
        _family = self.family
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        global _family
        _family = None
        _family_lock.release()
