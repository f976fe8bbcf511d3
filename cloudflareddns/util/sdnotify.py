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

"""Minimal systemd service notifications (``sd_notify(3)``), sent by writing
to the datagram socket named in ``$NOTIFY_SOCKET``. Every function does
nothing when not running under systemd."""

import os
import socket


def _notify(**kwargs) -> None:
    """Send ``KEY=value`` lines to the notify socket, if there is one

    :raises OSError: if the socket exists but cannot be written to
    """
    sock_name = os.environ.get('NOTIFY_SOCKET')
    if not sock_name or not hasattr(socket, 'AF_UNIX'):
        return
    # Leading @ means the abstract namespace
    if sock_name[0] == '@':
        sock_name = '\0' + sock_name[1:]

    msg = ''.join(f"{key}={value}\n" for key, value in kwargs.items())
    with socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM) as sock:
        sock.connect(sock_name)
        sock.sendall(msg.encode('utf-8'))


def ready() -> None:
    """Tell systemd the service has finished starting up"""
    _notify(READY=1)


def stopping() -> None:
    """Tell systemd the service is shutting down"""
    _notify(STOPPING=1)


def status(msg: str) -> None:
    """Give systemd a freeform status line to display"""
    _notify(STATUS=msg)
