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

"""DDNS Manager: resolves the configured records and sets up the workers,
the distributor, and the poll loop"""

import logging
import sys
from typing import List, Optional

if sys.version_info < (3, 10):
    from importlib_metadata import entry_points
else:
    from importlib.metadata import entry_points

from . import configuration
from . import probers
from .cloudflare import CloudflareClient
from .distributor import Distributor
from .exceptions import ConfigError
from .poller import PollLoop
from .probers import ChainProber, Prober
from .targets import resolve_targets
from .worker import RecordWorker


log = logging.getLogger('cloudflareddns.manager')


class DDNSManager:
    """Manages the rest of the system. Looks up the configured records,
    creates one worker per record, and polls for address changes.

    :param config: A :class:`~cloudflareddns.Config` with the configuration
                   to use
    :param client: Cloudflare client to use instead of creating one from the
                   configuration
    :param prober: Prober to use instead of creating one from the
                   configuration
    :raises ConfigError: if the configuration is invalid
    :raises SetupError: if a prober could not be set up
    """

    def __init__(self,
                 config: configuration.Config,
                 client: Optional[CloudflareClient] = None,
                 prober: Optional[Prober] = None):
        try:
            config.finalize(validate_prober_type)
        except ConfigError as e:
            log.critical("Config error: %s", e)
            raise
        self.config = config
        settings = config.settings

        if client is None:
            client = CloudflareClient(settings.endpoint,
                                      settings.provider_timeout)
        self.client = client

        if prober is None:
            prober = self._create_prober()
        self.prober = prober

        targets = resolve_targets(self.client, self.config)

        self.workers: List[RecordWorker] = []
        self.distributor = Distributor()
        for target in targets:
            worker = RecordWorker(target, self.client)
            self.workers.append(worker)
            self.distributor.register(worker.name, worker.channel)
        log.info("Resolved %d of %d configured records",
                 len(self.distributor), len(self.config.records()))

        self.poller = PollLoop(self.prober, self.distributor,
                               settings.ip_poll, settings.update_upon_start)

    def _create_prober(self) -> Prober:
        """Create the configured probers. Assumes they have been previously
        imported by :func:`validate_prober_type`."""
        created: List[Prober] = []
        for name in self.config.settings.probers:
            prober_class = probers.probers[name]
            created.append(prober_class(name,
                                        self.config.probers.get(name, {})))
        if len(created) == 1:
            return created[0]
        return ChainProber(created)

    def _start_workers(self) -> None:
        if len(self.distributor) == 0:
            log.warning("No records could be resolved. Nothing will be "
                        "updated.")
        for worker in self.workers:
            worker.start()

    def start(self) -> None:
        """Start all workers and the poll loop"""
        log.info("Starting %d workers...", len(self.distributor))
        self._start_workers()
        self.poller.start()
        log.info("All workers started.")

    def poll_now(self) -> None:
        """Poll the current addresses immediately rather than waiting for the
        rest of the poll interval"""
        log.info("Polling immediately")
        self.poller.poll_now()

    def check_once(self) -> None:
        """Poll the current addresses a single time, let every worker process
        them, and wait for the workers to exit. The manager cannot be started
        afterwards."""
        log.info("Checking once for all records...")
        self._start_workers()
        self.poller.poll_and_send()
        self.distributor.close()
        for worker in self.workers:
            worker.join()
        log.info("Check for all records complete.")

    def stop(self) -> None:
        """Stop the poll loop and all workers. Updates already in progress are
        allowed to finish."""
        log.info("Stopping...")
        self.poller.stop()
        for worker in self.workers:
            worker.stop()
        log.info("Stopped.")

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the poll loop to exit after :meth:`stop`"""
        self.poller.join(timeout)


def validate_prober_type(type_: str) -> bool:
    """Check if a prober type exists, loading it from the
    ``cloudflareddns.prober`` entry point group if it is not one of the
    built-in probers

    :param type_: The name of the prober
    :returns: ``True`` if the prober exists, ``False`` otherwise
    """
    if type_ in probers.probers:
        return True
    discovered = entry_points(group='cloudflareddns.prober')
    try:
        entry_point = discovered[type_]
    except KeyError:
        return False
    probers.probers[type_] = entry_point.load()
    return True
