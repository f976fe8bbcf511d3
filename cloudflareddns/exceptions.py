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

"""All cloudflareddns exceptions"""


class CloudflareDDNSException(Exception):
    """Base class for all cloudflareddns exceptions"""


class SetupError(CloudflareDDNSException):
    """Base class for exceptions that happen during startup"""


class ConfigError(SetupError):
    """Raised when the configuration is malformed or has other errors"""


class ProbeError(CloudflareDDNSException):
    """Probers should raise when an attempt to look up the current public
    address fails. The failure is treated the same as the address being
    absent."""


class PublishError(CloudflareDDNSException):
    """Raised by the Cloudflare client when the API could not be reached or
    returned something that is not an API response at all. For record
    updates, this puts the worker into its retrying state."""


class ZoneLookupError(PublishError):
    """Raised by the Cloudflare client when listing the records of a zone was
    rejected by the API"""


class ChannelClosedError(CloudflareDDNSException):
    """Raised when sending to or receiving from a closed delivery channel"""
