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

"""Record targets and the startup step that resolves record identifiers"""

import logging
from typing import Any, Dict, List, Optional

from .cloudflare import CloudflareClient
from .configuration import Config, RecordConfig, ZoneConfig
from .exceptions import PublishError


log = logging.getLogger('cloudflareddns.targets')


class RecordTarget:
    """Everything a worker needs to know about the record it keeps updated.
    Never modified after startup."""

    def __init__(self,
                 label: str,
                 zone_id: str,
                 record_id: str,
                 api_key: str,
                 record_type: str,
                 name: str,
                 ttl: int = 1,
                 proxied: Optional[bool] = None,
                 tags: Optional[List[str]] = None,
                 comment: Optional[str] = None):
        self.label = label
        self.zone_id = zone_id
        self.record_id = record_id
        self.api_key = api_key
        self.record_type = record_type
        self.name = name
        self.ttl = ttl
        self.proxied = proxied
        self.tags = tuple(tags) if tags is not None else None
        self.comment = comment

    @classmethod
    def from_config(cls, zone: ZoneConfig, record: RecordConfig,
                    record_id: str) -> 'RecordTarget':
        return cls(
            label=record.label,
            zone_id=zone.zone_id,
            record_id=record_id,
            api_key=zone.api_key,
            record_type=record.record_type,
            name=record.name,
            ttl=record.ttl,
            proxied=record.proxied,
            tags=record.tags,
            comment=record.comment,
        )

    def record_shape(self) -> Dict[str, Any]:
        """The request body for an update, minus ``content``. Options that
        were not configured are left out so Cloudflare keeps its defaults."""
        shape: Dict[str, Any] = {
            'name': self.name,
            'ttl': self.ttl,
            'type': self.record_type,
        }
        if self.proxied is not None:
            shape['proxied'] = self.proxied
        if self.tags is not None:
            shape['tags'] = list(self.tags)
        if self.comment is not None:
            shape['comment'] = self.comment
        return shape

    def __repr__(self):
        return (f"<RecordTarget {self.label}: {self.record_type} {self.name} "
                f"(zone {self.zone_id}, id {self.record_id})>")


def resolve_zone(client: CloudflareClient,
                 zone: ZoneConfig) -> List[RecordTarget]:
    """Create the targets for one zone. Records with an ``id`` configured use
    it directly. The others are matched by exact name against a single
    listing of the zone, fetched only if needed. Records with no match are
    skipped.

    :param client: The Cloudflare client
    :param zone: The zone and its records

    :raises PublishError: if the zone listing failed, in which case none of
                          the zone's records should be used
    :return: Targets for the records that could be resolved, in config order
    """
    ids: Optional[Dict[str, str]] = None
    if any(record.record_id is None for record in zone.records):
        log.debug("Looking up record identifiers in zone %s", zone.label)
        # Last one wins if a name appears more than once
        ids = {rec.name: rec.id
               for rec in client.list_records(zone.zone_id, zone.api_key)}

    targets = []
    for record in zone.records:
        record_id = record.record_id
        if record_id is None:
            assert ids is not None
            try:
                record_id = ids[record.name]
            except KeyError:
                log.warning("No A or AAAA record named %s in zone %s. "
                            "Skipping record %s.",
                            record.name, zone.label, record.label)
                continue
            log.info("Found record %s for %s", record_id, record.name)
        targets.append(RecordTarget.from_config(zone, record, record_id))
    return targets


def resolve_targets(client: CloudflareClient,
                    config: Config) -> List[RecordTarget]:
    """Resolve the targets for every configured zone. A zone whose listing
    fails is left out entirely but does not affect the other zones.

    :param client: The Cloudflare client
    :param config: The finalized configuration
    :return: All targets, in registration order
    """
    targets = []
    for zone in config.zones.values():
        try:
            targets.extend(resolve_zone(client, zone))
        except PublishError as e:
            log.warning("Could not look up records for zone %s, none of its "
                        "records will be updated: %s", zone.label, e)
    return targets
