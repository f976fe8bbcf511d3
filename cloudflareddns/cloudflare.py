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

"""Client for the parts of the Cloudflare v4 API used to update DNS
records"""

import logging
from typing import Any, Dict, List, Mapping, NamedTuple, Optional

import requests

from .configuration import DEFAULT_ENDPOINT, USER_AGENT
from .exceptions import PublishError, ZoneLookupError


#: Record types that can be kept in sync with a public address
RECORD_TYPES = ('A', 'AAAA')

#: Records requested per page when listing a zone
PAGE_SIZE = 100


class CloudflareError(NamedTuple):
    """An entry in the ``errors`` list of a Cloudflare API response"""
    code: int
    message: str

    def __str__(self):
        return f"{self.message} (code: {self.code})"


class DnsRecord(NamedTuple):
    """A DNS record as listed by the Cloudflare API"""
    name: str
    id: str
    type: str
    content: str


class UpdateResult(NamedTuple):
    """The API's answer to a record update. Only returned when the API was
    actually reached; failures to reach it raise
    :exc:`~cloudflareddns.PublishError` instead."""
    success: bool
    errors: List[CloudflareError]


class CloudflareClient:
    """Cloudflare API client. A single instance (and its
    :class:`requests.Session`) is shared by every worker; it holds no state
    besides the session.

    :param endpoint: Base URL of the API
    :param timeout: Seconds to wait for each request, or ``None`` for no
                    limit
    :param session: The session to use. A new one is created if not
                    provided.
    """

    def __init__(self,
                 endpoint: str = DEFAULT_ENDPOINT,
                 timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        self.log = logging.getLogger('cloudflareddns.cloudflare')
        self.endpoint = endpoint.rstrip('/')
        self.timeout = timeout
        if session is None:
            session = requests.Session()
        session.headers['User-Agent'] = USER_AGENT
        self.session = session

    def close(self):
        """Close the underlying session"""
        self.session.close()

    def _api_request(self,
                     method: str,
                     api: str,
                     api_key: str,
                     params: Optional[Dict[str, Any]] = None,
                     data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Issue a Cloudflare API request.

        The HTTP status is not checked: Cloudflare describes failures in the
        response body, which is returned as-is for the caller to inspect.

        :param method: HTTP method, ``'GET'`` or ``'PUT'``
        :param api: Specific API to access, e.g. ``'/zones/abc/dns_records'``
        :param api_key: API token to authenticate with
        :param params: A dict of URL parameters
        :param data: A JSON-serializable dict to become the request body

        :raises PublishError: if the API could not be reached or did not send
                              a JSON object back
        :return: The decoded response body
        """
        url = self.endpoint + api
        headers = {'Authorization': f"Bearer {api_key}"}
        self.log.debug("%s %s", method, url)
        try:
            r = self.session.request(method, url, headers=headers,
                                     params=params, json=data,
                                     timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise PublishError(f"Could not {method} {url}: {e}") from e

        try:
            obj = r.json()
        except ValueError:
            self.log.debug("Non-JSON response (HTTP %d) from %s %s:\n%s",
                           r.status_code, method, url, r.text)
            raise PublishError(f"Received HTTP {r.status_code} without an "
                               f"API response from {method} {url}") from None
        if not isinstance(obj, dict):
            raise PublishError(f"Unknown response structure from {method} "
                               f"{url}")
        return obj

    @staticmethod
    def _errors(response: Mapping[str, Any]) -> List[CloudflareError]:
        """Extract the ``errors`` list from an API response"""
        errors = []
        for err in response.get('errors') or []:
            try:
                errors.append(CloudflareError(err['code'], err['message']))
            except (KeyError, TypeError):
                errors.append(CloudflareError(0, str(err)))
        return errors

    def list_records(self, zone_id: str, api_key: str) -> List[DnsRecord]:
        """List the ``A`` and ``AAAA`` records in a zone, following
        pagination until every page has been fetched.

        :param zone_id: Cloudflare zone identifier
        :param api_key: API token with read access to the zone

        :raises PublishError: if the API could not be reached
        :raises ZoneLookupError: if the API refused the request
        :return: The records, in the order the API returned them
        """
        api = f'/zones/{zone_id}/dns_records'
        records: List[DnsRecord] = []
        page = 1
        total_pages = 1
        while page <= total_pages:
            params = {'page': page, 'per_page': PAGE_SIZE}
            response = self._api_request('GET', api, api_key, params=params)
            if not response.get('success'):
                errors = ', '.join(str(e) for e in self._errors(response))
                raise ZoneLookupError(f"Could not list records for zone "
                                      f"{zone_id}: {errors}")
            try:
                for rec in response['result']:
                    if rec['type'] not in RECORD_TYPES:
                        continue
                    records.append(DnsRecord(rec['name'], rec['id'],
                                             rec['type'], rec['content']))
                result_info = response.get('result_info') or {}
                total_pages = int(result_info.get('total_pages', 1))
            except (KeyError, TypeError, ValueError):
                raise PublishError(f"Unknown response structure from {api}")
            page += 1
        return records

    def update_record(self,
                      zone_id: str,
                      record_id: str,
                      api_key: str,
                      record: Mapping[str, Any],
                      content: str) -> UpdateResult:
        """Overwrite a DNS record with new content.

        :param zone_id: Cloudflare zone identifier
        :param record_id: Cloudflare record identifier
        :param api_key: API token with edit access to the zone
        :param record: The record shape to send (``name``, ``ttl``,
                       ``type``, and optionally ``proxied``, ``tags``, and
                       ``comment``)
        :param content: The new record content

        :raises PublishError: if the API could not be reached
        :return: Whether the API accepted the update, and any errors it
                 reported
        """
        api = f'/zones/{zone_id}/dns_records/{record_id}'
        data = dict(record)
        data['content'] = content
        response = self._api_request('PUT', api, api_key, data=data)
        return UpdateResult(bool(response.get('success')),
                            self._errors(response))
