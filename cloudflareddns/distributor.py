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

"""Fan-out of address snapshots to the record workers"""

import logging
from typing import List, Tuple

from .channel import SlotChannel
from .exceptions import ChannelClosedError
from .snapshot import AddressSnapshot


class Distributor:
    """Delivers every snapshot to every registered channel, one at a time, in
    registration order.

    Each delivery waits until the worker has taken the previous snapshot out
    of its channel, so a busy worker holds up the workers registered after it
    but never misses a snapshot. Channels that have been closed (because
    their worker halted) are skipped.
    """

    def __init__(self):
        self.log = logging.getLogger('cloudflareddns.distributor')
        self._channels: List[Tuple[str, SlotChannel[AddressSnapshot]]] = []

    def register(self, name: str, channel: SlotChannel[AddressSnapshot]):
        """Add a channel to receive all future snapshots

        :param name: Name of the receiving worker, for logging
        :param channel: The worker's channel
        """
        self.log.debug("Registering worker %s", name)
        self._channels.append((name, channel))

    def __len__(self):
        return len(self._channels)

    def send(self, snapshot: AddressSnapshot) -> None:
        """Deliver a snapshot to every channel, blocking on each in turn

        :param snapshot: The snapshot to deliver
        """
        self.log.debug("Distributing snapshot: %s", snapshot)
        for name, channel in self._channels:
            try:
                channel.put(snapshot)
            except ChannelClosedError:
                self.log.debug("Not delivering to halted worker %s", name)

    def close(self) -> None:
        """Close every channel. Workers finish the snapshot they already
        received and then exit."""
        for _, channel in self._channels:
            channel.close()
