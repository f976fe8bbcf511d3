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

"""Single-slot delivery channel between the distributor and a worker"""

import threading
from typing import Generic, Optional, TypeVar

from .exceptions import ChannelClosedError


T = TypeVar('T')


class SlotChannel(Generic[T]):
    """A channel that holds at most one item. :meth:`put` blocks while the
    slot is occupied and :meth:`get` blocks while it is empty.

    Either end may :meth:`close` the channel. After that, :meth:`put` raises
    :exc:`~cloudflareddns.ChannelClosedError` immediately, and :meth:`get`
    returns the item still in the slot (if any) before raising it too.
    """

    def __init__(self):
        self._cond = threading.Condition()
        self._item: Optional[T] = None
        self._full = False
        self._closed = False

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def put(self, item: T) -> None:
        """Place an item in the slot, waiting for the receiver to take the
        previous one first.

        :param item: The item to deliver
        :raises ChannelClosedError: if the channel is or becomes closed before
                                    the item could be placed
        """
        with self._cond:
            while self._full and not self._closed:
                self._cond.wait()
            if self._closed:
                raise ChannelClosedError("Channel is closed")
            self._item = item
            self._full = True
            self._cond.notify_all()

    def get(self) -> T:
        """Take the item from the slot, waiting for one if necessary.

        :raises ChannelClosedError: if the channel is closed and empty
        :return: The item
        """
        with self._cond:
            while not self._full and not self._closed:
                self._cond.wait()
            if not self._full:
                raise ChannelClosedError("Channel is closed")
            item = self._item
            self._item = None
            self._full = False
            self._cond.notify_all()
            return item  # type: ignore

    def close(self) -> None:
        """Close the channel, waking anyone blocked on it. Closing twice has
        no further effect."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()
