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

import time

import pytest

import cloudflareddns.configuration
import doubles
from cloudflareddns import RecordTarget, RecordWorker


@pytest.fixture
def configfile_factory(tmp_path):
    """Fixture creating a factory for temporary config files"""
    class ConfigFileFactory:
        def __init__(self, contents):
            with open(self.filename, 'w') as f:
                for line in contents.splitlines():
                    print(line.strip(), file=f)

        @property
        def filename(self):
            return tmp_path / 'config.ini'
    return ConfigFileFactory


@pytest.fixture
def config_factory(configfile_factory):
    """Fixture creating a factory that reads a :class:`~cloudflareddns.Config`
    from the given config file contents"""
    def factory(contents):
        configfile = configfile_factory(contents)
        return cloudflareddns.configuration.read_config_from_path(
            configfile.filename
        )
    return factory


@pytest.fixture
def fake_client():
    """Fixture creating a fake Cloudflare client whose updates all succeed"""
    return doubles.FakeClient()


@pytest.fixture
def target_factory():
    """Fixture creating a factory for :class:`~cloudflareddns.RecordTarget`"""
    class TargetFactory:
        def __init__(self):
            self._count = 0

        def __call__(self, **kwargs):
            self._count += 1
            args = {
                'label': f'record_{self._count}',
                'zone_id': 'zone1',
                'record_id': f'id{self._count}',
                'api_key': 'secret',
                'record_type': 'A',
                'name': 'home.example.com',
            }
            args.update(kwargs)
            return RecordTarget(**args)
    return TargetFactory()


@pytest.fixture
def worker_factory(target_factory, fake_client):
    """Fixture creating a factory for :class:`~cloudflareddns.RecordWorker`.
    Uses the ``fake_client`` fixture unless a client is given."""
    workers = []

    def factory(client=None, **kwargs):
        if client is None:
            client = fake_client
        worker = RecordWorker(target_factory(**kwargs), client)
        workers.append(worker)
        return worker

    yield factory

    for worker in workers:
        worker.stop()


@pytest.fixture
def wait_for():
    """Fixture providing a function that polls a condition until it is true
    or a timeout expires"""
    def wait(predicate, timeout=5.0):
        deadline = time.monotonic() + timeout
        while not predicate():
            if time.monotonic() > deadline:
                return False
            time.sleep(0.01)
        return True
    return wait
