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

"""cloudflareddns configuration parsing"""

import configparser
import pathlib
import sys
from typing import Callable, Dict, List, Optional, TextIO, Union

if sys.version_info < (3, 10):
    from importlib_metadata import version
else:
    from importlib.metadata import version

from .exceptions import ConfigError


USER_AGENT = f"cloudflareddns/{version('cloudflareddns')}"

DEFAULT_ENDPOINT = 'https://api.cloudflare.com/client/v4'

#: Milliseconds between public address checks
DEFAULT_IP_POLL = 300000

DEFAULT_PROBERS = 'dns web'


def _parse_bool(value: str, option: str, where: str) -> bool:
    """Parse a boolean config value the way
    :meth:`configparser.ConfigParser.getboolean` does

    :param value: The raw value from the config file
    :param option: Option name, for the error message
    :param where: Section description, for the error message
    :raises ConfigError: if the value is not a recognized boolean
    """
    try:
        return configparser.ConfigParser.BOOLEAN_STATES[value.lower()]
    except KeyError:
        raise ConfigError(f"'{option}' option for {where} must be boolean "
                          "(true/yes/on/1/false/no/off/0)") from None


class Settings:
    """Global settings (from the ``[cloudflareddns]`` section)

    :param options: The raw options from the section
    :raises ConfigError: if any option is invalid
    """

    def __init__(self, options: Dict[str, str]):
        where = 'cloudflareddns'

        #: Milliseconds to wait between polls of the public address
        try:
            self.ip_poll: int = int(options.get('ip_poll', DEFAULT_IP_POLL))
        except ValueError:
            raise ConfigError("'ip_poll' option must be an integer number of "
                              "milliseconds") from None
        if self.ip_poll <= 0:
            raise ConfigError("'ip_poll' option must be greater than 0")

        #: Whether to poll and deliver once before the first interval elapses
        self.update_upon_start: bool = _parse_bool(
            options.get('update_upon_start', 'false'),
            'update_upon_start', where,
        )

        #: Names of the probers to use, in order of preference
        self.probers: List[str] = options.get('probers',
                                              DEFAULT_PROBERS).split()
        if len(self.probers) == 0:
            raise ConfigError("'probers' option must name at least one "
                              "prober")

        #: ``'syslog'``, ``'stderr'``, or a path to a log file
        self.log: str = options.get('log', 'syslog')

        #: Base URL of the Cloudflare API
        self.endpoint: str = options.get('endpoint',
                                         DEFAULT_ENDPOINT).rstrip('/')

        #: Timeout in seconds for Cloudflare API requests, or ``None`` to wait
        #: as long as it takes
        try:
            timeout = options['provider_timeout']
        except KeyError:
            self.provider_timeout: Optional[float] = None
        else:
            try:
                self.provider_timeout = float(timeout)
            except ValueError:
                raise ConfigError("'provider_timeout' option must be a "
                                  "number") from None
            if self.provider_timeout <= 0:
                raise ConfigError("'provider_timeout' option must be greater "
                                  "than 0")


class RecordConfig:
    """Configuration for a single DNS record (from a ``[record.<label>]``
    section)

    :param label: The section name after ``record.``
    :param options: The raw options from the section
    :raises ConfigError: if any option is invalid
    """

    def __init__(self, label: str, options: Dict[str, str]):
        where = f"record {label}"

        #: Section label, used to name the worker
        self.label: str = label

        #: Name of the ``[zone.<name>]`` section this record belongs to, or
        #: ``None`` if it should be inferred
        self.zone: Optional[str] = options.get('zone')

        #: Fully-qualified DNS name of the record
        self.name: str = options.get('name', label)

        #: Record type. Only ``A`` and ``AAAA`` can be updated; anything else
        #: is reported when the worker starts.
        self.record_type: str = options.get('type', 'A')

        try:
            self.ttl: int = int(options.get('ttl', '1'))
        except ValueError:
            raise ConfigError(f"'ttl' option for {where} must be an "
                              "integer") from None
        if self.ttl < 1:
            raise ConfigError(f"'ttl' option for {where} must be at least 1 "
                              "(1 means automatic)")

        try:
            proxied = options['proxied']
        except KeyError:
            self.proxied: Optional[bool] = None
        else:
            self.proxied = _parse_bool(proxied, 'proxied', where)

        try:
            self.tags: Optional[List[str]] = options['tags'].split()
        except KeyError:
            self.tags = None

        self.comment: Optional[str] = options.get('comment')

        #: Statically configured record identifier, or ``None`` to look it up
        #: by name
        self.record_id: Optional[str] = options.get('id')


class ZoneConfig:
    """Configuration for a Cloudflare zone (from a ``[zone.<label>]``
    section)

    :param label: The section name after ``zone.``
    :param options: The raw options from the section
    :raises ConfigError: if a required option is missing
    """

    def __init__(self, label: str, options: Dict[str, str]):
        self.label: str = label

        try:
            self.zone_id: str = options['zone_id']
        except KeyError:
            raise ConfigError(f"Zone {label} requires 'zone_id' config "
                              "option") from None

        try:
            self.api_key: str = options['api_key']
        except KeyError:
            raise ConfigError(f"Zone {label} requires 'api_key' config "
                              "option") from None

        #: Records in this zone, in config file order
        self.records: List[RecordConfig] = []


class Config:
    """cloudflareddns configuration data

    :param settings: Global settings
    :param zones: Zone configs, in config file order, with their records
                  already attached
    :param probers: Per-prober options (from ``[prober.<name>]`` sections)
    """

    def __init__(self,
                 settings: Settings,
                 zones: Dict[str, ZoneConfig],
                 probers: Dict[str, Dict[str, str]]):
        self.settings: Settings = settings
        self.zones: Dict[str, ZoneConfig] = zones
        self.probers: Dict[str, Dict[str, str]] = probers

        #: Whether the config has been finalized yet
        self._finalized = False

    def finalize(self, validate_prober_type: Callable[[str], bool]) -> None:
        """Used by :class:`~cloudflareddns.DDNSManager` to finish validating
        the configuration once the available probers are known.

        :param validate_prober_type: A callable to check if a prober name is
                                     valid
        :raises ConfigError: if the configuration is invalid
        """
        if self._finalized:
            return

        for prober in self.settings.probers:
            if not validate_prober_type(prober):
                raise ConfigError(f"No prober of type {prober}")
        for prober in self.probers:
            if prober not in self.settings.probers:
                raise ConfigError(f"Prober {prober} is configured but not "
                                  "listed in 'probers'")

        self._finalized = True

    def records(self) -> List[RecordConfig]:
        """All configured records, in registration order"""
        return [record for zone in self.zones.values()
                for record in zone.records]


def _process_config(config: configparser.ConfigParser) -> Config:
    """Process the given :class:`~configparser.ConfigParser` into a
    :class:`Config`

    :param config: The configuration to process
    :raises ConfigError: if the configuration is invalid
    :returns: the processed and validated configuration
    """
    # Note: ConfigParser already handles catching duplicate sections and
    #   duplicate keys

    main: Dict[str, str] = dict()
    zones: Dict[str, ZoneConfig] = dict()
    records: List[RecordConfig] = []
    probers: Dict[str, Dict[str, str]] = dict()

    for section in config.sections():
        if section == 'cloudflareddns':
            main.update(config[section])
            continue

        kind, _, label = section.partition('.')
        if label == '':
            raise ConfigError(f"Config section {section} needs a name, e.g. "
                              f"[{section}.example]")
        if kind == 'zone':
            zones[label] = ZoneConfig(label, dict(config[section]))
        elif kind == 'record':
            records.append(RecordConfig(label, dict(config[section])))
        elif kind == 'prober':
            probers[label] = dict(config[section])
        else:
            raise ConfigError(f"Config section {section} is not a zone, "
                              "record, or prober section")

    settings = Settings(main)

    if len(zones) == 0:
        raise ConfigError("At least one [zone.<name>] section is required")

    for record in records:
        if record.zone is None:
            if len(zones) > 1:
                raise ConfigError(f"Record {record.label} requires 'zone' "
                                  "config option when more than one zone is "
                                  "configured")
            record.zone = next(iter(zones))
        try:
            zone = zones[record.zone]
        except KeyError:
            raise ConfigError(f"Zone {record.zone} (for record "
                              f"{record.label}) does not exist") from None
        for other in zone.records:
            if (other.name == record.name and
                    other.record_type == record.record_type):
                raise ConfigError(f"Records {other.label} and {record.label} "
                                  f"both configure {record.record_type} "
                                  f"{record.name}")
        zone.records.append(record)

    return Config(settings, zones, probers)


def read_config(configfile: TextIO) -> Config:
    """Read configuration from the given file-like object

    :param configfile: Filelike object to read the config from
    :raises ConfigError: if the config file cannot be read or is invalid
    :return: A :class:`Config` ready to be passed to
             :class:`~cloudflareddns.DDNSManager`
    """
    config = configparser.ConfigParser(inline_comment_prefixes=(';',))
    try:
        config.read_file(configfile)
    except configparser.Error as e:
        raise ConfigError("Error in config file: %s" % e) from e
    except OSError as e:
        raise ConfigError("Could not read config file: %s" % e) from e

    return _process_config(config)


def read_config_from_path(filename: Union[str, pathlib.Path]) -> Config:
    """Read configuration from the named file or :class:`~pathlib.Path`

    :param filename: Filename or path to read from
    :raises ConfigError: if the config file cannot be read or is invalid
    :return: A :class:`Config` ready to be passed to
             :class:`~cloudflareddns.DDNSManager`
    """
    try:
        with open(filename, 'r') as f:
            return read_config(f)
    except OSError as e:
        raise ConfigError("Could not read config file %s: %s" %
                          (filename, e.strerror)) from e
