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

"""The poll loop: checks the public addresses on a fixed interval and hands
each snapshot to the distributor"""

import logging
import threading
from typing import Optional

from .distributor import Distributor
from .probers import Prober
from .snapshot import AddressSnapshot


class PollLoop:
    """Periodically probes the current public addresses and distributes them.

    :param prober: Where to get the current addresses
    :param distributor: Where to send each snapshot
    :param interval: Milliseconds to wait between polls
    :param update_upon_start: Whether to poll once immediately on start,
                              before the first interval
    """

    def __init__(self,
                 prober: Prober,
                 distributor: Distributor,
                 interval: int,
                 update_upon_start: bool = False):
        self.log = logging.getLogger('cloudflareddns.poller')
        self.prober = prober
        self.distributor = distributor
        self.interval = interval
        self.update_upon_start = update_upon_start

        self._stopping = threading.Event()
        # Set to cut the current wait short
        self._wake = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def poll(self) -> AddressSnapshot:
        """Probe both address families once

        :return: The new snapshot. Families that could not be determined are
                 ``None``.
        """
        snapshot = AddressSnapshot(self.prober.get_ipv4(),
                                   self.prober.get_ipv6())
        self.log.info("Current public addresses: %s", snapshot)
        return snapshot

    def poll_and_send(self) -> None:
        """Probe once and deliver the snapshot to every worker"""
        self.distributor.send(self.poll())

    def run(self) -> None:
        """Poll until :meth:`stop` is called"""
        if self.update_upon_start:
            self.poll_and_send()
        while True:
            self._wake.wait(self.interval / 1000)
            self._wake.clear()
            if self._stopping.is_set():
                break
            self.poll_and_send()
        self.log.debug("Poll loop stopped")

    def start(self) -> None:
        """Run the poll loop on a new thread"""
        if self._thread is not None:
            self.log.warning("Not starting poll loop: Already started")
            return
        self.log.info("Starting poll loop, polling every %d ms",
                      self.interval)
        self._thread = threading.Thread(target=self.run, name='poller',
                                        daemon=True)
        self._thread.start()

    def poll_now(self) -> None:
        """Make the poll loop poll right away instead of waiting for the rest
        of the interval"""
        self._wake.set()

    def stop(self) -> None:
        """Make the poll loop exit. A poll in progress is allowed to finish."""
        self._stopping.set()
        self._wake.set()

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the poll loop thread to exit"""
        if self._thread is not None:
            self._thread.join(timeout)
