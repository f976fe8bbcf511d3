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

"""cloudflareddns: keep Cloudflare DNS records in sync with this host's public
IP addresses

Top-level module, containing the classes and objects useful to programs
embedding cloudflareddns and to custom probers.
"""

from .configuration import Config, read_config, read_config_from_path
from .exceptions import (CloudflareDDNSException, SetupError, ConfigError,
                         ProbeError, PublishError, ZoneLookupError,
                         ChannelClosedError)
from .cloudflare import CloudflareClient, CloudflareError, UpdateResult
from .snapshot import AddressSnapshot
from .targets import RecordTarget, resolve_targets
from .worker import RecordWorker
from .distributor import Distributor
from .poller import PollLoop
from .probers import Prober, ChainProber
from .manager import DDNSManager
