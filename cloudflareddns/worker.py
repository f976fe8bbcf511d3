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

"""Record workers: one thread per DNS record, each deciding on its own when
its record needs updating"""

import logging
import threading
from typing import Optional

from .channel import SlotChannel
from .cloudflare import RECORD_TYPES, CloudflareClient, UpdateResult
from .exceptions import ChannelClosedError, PublishError
from .snapshot import AddressSnapshot
from .targets import RecordTarget


class RecordWorker:
    """Keeps one DNS record pointed at the current public address of its
    family (IPv4 for ``A``, IPv6 for ``AAAA``).

    The worker is either idle or retrying. While idle, a snapshot with a new
    address for its family is published right away. If the API cannot be
    reached, the worker is retrying: the next snapshot that has an address
    for its family causes the *same* content to be sent again, whatever the
    newer address is. Once the API has been reached, the worker is idle again
    and picks up any newer address on the following snapshot.

    Snapshots are received through :attr:`channel`, which holds at most one
    snapshot at a time.

    :param target: The record to keep updated
    :param client: The (shared) Cloudflare client
    """

    def __init__(self, target: RecordTarget, client: CloudflareClient):
        self.target = target
        self.client = client

        #: Logger (see standard :mod:`logging` module)
        self.log = logging.getLogger(f'cloudflareddns.worker.{target.label}')

        #: The content last decided on for the record. Empty until the first
        #: address arrives, so the first address always counts as new.
        self.last_sent_content: str = ''

        #: Whether the last attempt to send :attr:`last_sent_content` failed
        #: to reach the API
        self.pending_retry: bool = False

        #: Where the distributor delivers snapshots
        self.channel: SlotChannel[AddressSnapshot] = SlotChannel()

        self._halt = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def name(self) -> str:
        return self.target.label

    def start(self) -> None:
        """Start processing snapshots on a new thread"""
        if self._thread is not None:
            self.log.warning("Not starting worker: Already started")
            return
        self._thread = threading.Thread(target=self.run,
                                        name=f'worker-{self.name}',
                                        daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop processing snapshots. An update already in progress is allowed
        to finish, but nothing further is sent."""
        self._halt.set()
        self.channel.close()

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the worker thread to exit"""
        if self._thread is not None:
            self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run(self) -> None:
        """Receive and handle snapshots until the channel is closed. Returns
        right away, closing the channel, if the record type cannot be
        updated."""
        if self.target.record_type not in RECORD_TYPES:
            self.log.error("Record %s has type %s, but only A and AAAA "
                           "records can be updated. This worker will halt.",
                           self.target.name, self.target.record_type)
            self.channel.close()
            return

        self.log.debug("Worker started for %s record %s (id %s)",
                       self.target.record_type, self.target.name,
                       self.target.record_id)
        try:
            while True:
                try:
                    snapshot = self.channel.get()
                except ChannelClosedError:
                    break
                if self._halt.is_set():
                    break
                self.handle(snapshot)
        except Exception:
            self.log.exception("Unexpected error updating %s. This worker "
                               "will halt.", self.target.name)
        finally:
            # Nothing may be left waiting to deliver to a dead worker
            self.channel.close()
        self.log.debug("Worker stopped")

    def handle(self, snapshot: AddressSnapshot) -> None:
        """Process one snapshot: decide whether to send an update and track
        whether it needs to be retried.

        :param snapshot: The latest public addresses
        """
        address = snapshot.address_for(self.target.record_type)
        if address is None:
            self.log.debug("No address for %s record in this snapshot",
                           self.target.record_type)
            return

        if self.pending_retry:
            self.log.info("Retrying update of %s to %s",
                          self.target.name, self.last_sent_content)
            try:
                result = self._push()
            except PublishError as e:
                self.log.warning("Still unable to reach Cloudflare API: %s",
                                 e)
                return
            # The retry is over once the API was reached, even if it rejected
            # the update
            self._report(result)
            self.pending_retry = False
            return

        content = str(address)
        if content == self.last_sent_content:
            self.log.debug("Skipping update as %s is current address",
                           content)
            return

        self.last_sent_content = content
        try:
            result = self._push()
        except PublishError as e:
            self.log.warning("Unable to reach Cloudflare API, will retry on "
                             "the next poll: %s", e)
            self.pending_retry = True
            return
        # A rejected update is not retried
        self._report(result)

    def _push(self) -> UpdateResult:
        """Send :attr:`last_sent_content` to the API

        :raises PublishError: if the API could not be reached
        """
        return self.client.update_record(
            self.target.zone_id,
            self.target.record_id,
            self.target.api_key,
            self.target.record_shape(),
            self.last_sent_content,
        )

    def _report(self, result: UpdateResult) -> None:
        """Log the API's answer to an update"""
        if result.success:
            self.log.info("Updated %s record %s to %s",
                          self.target.record_type, self.target.name,
                          self.last_sent_content)
        else:
            errors = '; '.join(str(e) for e in result.errors) or 'no details'
            self.log.warning("Cloudflare API rejected update of %s to %s: %s",
                             self.target.name, self.last_sent_content, errors)
