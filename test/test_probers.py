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

import ipaddress
import socket

import dns.exception
import dns.resolver
import pytest
import requests

import doubles
from cloudflareddns import ChainProber, ConfigError, ProbeError
from cloudflareddns.probers.dnslookup import DnsProber
from cloudflareddns.probers.web import WebProber


class TestProberBase:
    def test_get_addresses(self):
        """Test get_ipv4 and get_ipv6 return the probed addresses"""
        prober = doubles.FakeProber(ipv4s=['203.0.113.1'],
                                    ipv6s=['2001:db8::1'])
        assert prober.get_ipv4() == ipaddress.IPv4Address('203.0.113.1')
        assert prober.get_ipv6() == ipaddress.IPv6Address('2001:db8::1')

    def test_probe_error_is_none(self):
        """Test a failed probe gives None instead of raising"""
        prober = doubles.FakeProber(ipv4s=[None], ipv6s=[None])
        assert prober.get_ipv4() is None
        assert prober.get_ipv6() is None

    def test_unsupported_family_is_none(self):
        """Test a prober that doesn't implement a family gives None"""
        class V4Only(doubles.FakeProber):
            def probe_ipv6(self):
                raise NotImplementedError("IPv6 not supported")

        prober = V4Only(ipv4s=['203.0.113.1'])
        assert prober.get_ipv4() == ipaddress.IPv4Address('203.0.113.1')
        assert prober.get_ipv6() is None


class TestChainProber:
    def test_first_found_wins(self):
        """Test the first prober with an address is used for each family"""
        first = doubles.FakeProber('first', ipv4s=[None],
                                   ipv6s=['2001:db8::1'])
        second = doubles.FakeProber('second', ipv4s=['203.0.113.2'],
                                    ipv6s=['2001:db8::2'])
        chain = ChainProber([first, second])

        assert chain.get_ipv4() == ipaddress.IPv4Address('203.0.113.2')
        assert chain.get_ipv6() == ipaddress.IPv6Address('2001:db8::1')
        assert second.ipv6_calls == 0

    def test_none_found(self):
        """Test the chain gives None when no prober has an address"""
        chain = ChainProber([doubles.FakeProber('a'),
                             doubles.FakeProber('b')])
        assert chain.get_ipv4() is None
        assert chain.get_ipv6() is None


@pytest.fixture
def http_get(mocker):
    """Fixture patching requests.get. Set the response text with
    ``http_get.return_value.text``."""
    get = mocker.patch('requests.get')
    get.return_value.text = ''
    return get


class TestWebProber:
    def test_defaults(self):
        """Test WebProber default options"""
        prober = WebProber('web', {})
        assert prober.url4 == 'https://api.ipify.org'
        assert prober.url6 == 'https://api6.ipify.org'
        assert prober.timeout4 == 10
        assert prober.timeout6 == 10

    def test_timeout6_separate(self):
        """Test timeout6 overrides the timeout for IPv6 only"""
        prober = WebProber('web', {'timeout': '3', 'timeout6': '7'})
        assert prober.timeout4 == 3
        assert prober.timeout6 == 7

    @pytest.mark.parametrize('option', ['timeout', 'timeout6'])
    def test_bad_timeout(self, option):
        """Test a non-numeric timeout raises ConfigError"""
        with pytest.raises(ConfigError):
            WebProber('web', {option: 'soon'})

    def test_ipv4(self, http_get):
        """Test fetching the IPv4 address"""
        http_get.return_value.text = '203.0.113.7\n'
        prober = WebProber('web', {'url': 'https://ip.example.test'})

        assert prober.get_ipv4() == ipaddress.IPv4Address('203.0.113.7')
        assert http_get.call_args.args == ('https://ip.example.test',)
        assert http_get.call_args.kwargs['timeout'] == 10

    def test_ipv6(self, http_get):
        """Test fetching the IPv6 address"""
        http_get.return_value.text = '2001:db8::7'
        prober = WebProber('web', {'url6': 'https://ip6.example.test',
                                   'timeout6': '2'})

        assert prober.get_ipv6() == ipaddress.IPv6Address('2001:db8::7')
        assert http_get.call_args.args == ('https://ip6.example.test',)
        assert http_get.call_args.kwargs['timeout'] == 2

    def test_family_restricted(self, http_get, mocker):
        """Test each request is restricted to its address family"""
        restriction = mocker.patch(
            'cloudflareddns.probers.web.RequestsFamilyRestriction'
        )
        http_get.return_value.text = '203.0.113.7'
        WebProber('web', {}).probe_ipv4()
        restriction.assert_called_once_with(socket.AF_INET)

        restriction.reset_mock()
        http_get.return_value.text = '2001:db8::7'
        WebProber('web', {}).probe_ipv6()
        restriction.assert_called_once_with(socket.AF_INET6)

    def test_request_failure(self, http_get):
        """Test a failed request is a ProbeError"""
        http_get.side_effect = requests.exceptions.ConnectionError("down")
        with pytest.raises(ProbeError):
            WebProber('web', {}).probe_ipv4()

    def test_http_error(self, http_get):
        """Test an HTTP error status is a ProbeError"""
        http_get.return_value.status_code = 503
        http_get.return_value.raise_for_status.side_effect = \
            requests.exceptions.HTTPError("503 Server Error")
        with pytest.raises(ProbeError):
            WebProber('web', {}).probe_ipv4()

    @pytest.mark.parametrize('text', ['', 'hello', '2001:db8::7'])
    def test_bad_ipv4_response(self, http_get, text):
        """Test a response without a valid IPv4 address is a ProbeError"""
        http_get.return_value.text = text
        with pytest.raises(ProbeError):
            WebProber('web', {}).probe_ipv4()

    def test_bad_ipv6_response(self, http_get):
        """Test a response without a valid IPv6 address is a ProbeError"""
        http_get.return_value.text = '203.0.113.7'
        with pytest.raises(ProbeError):
            WebProber('web', {}).probe_ipv6()


@pytest.fixture
def resolver(mocker):
    """Fixture patching the dnspython resolver. Set the answer with
    ``resolver.answer(address, ...)``."""
    resolver_class = mocker.patch('dns.resolver.Resolver')
    instance = resolver_class.return_value

    def answer(*addresses):
        instance.resolve.return_value = [mocker.Mock(address=a)
                                         for a in addresses]
    instance.answer = answer
    instance.resolver_class = resolver_class
    return instance


class TestDnsProber:
    def test_defaults(self):
        """Test DnsProber default options"""
        prober = DnsProber('dns', {})
        assert prober.hostname == 'myip.opendns.com'
        assert prober.server4 == '208.67.222.222'
        assert prober.server6 == '2620:119:35::35'
        assert prober.timeout == 5

    @pytest.mark.parametrize('config', [
        {'dns_server4': 'resolver1.opendns.com'},
        {'dns_server4': '2620:119:35::35'},
        {'dns_server6': '208.67.222.222'},
        {'timeout': 'soon'},
    ])
    def test_bad_config(self, config):
        """Test invalid options raise ConfigError"""
        with pytest.raises(ConfigError):
            DnsProber('dns', config)

    def test_ipv4(self, resolver):
        """Test looking up the IPv4 address"""
        resolver.answer('203.0.113.7')
        prober = DnsProber('dns', {'timeout': '2'})

        assert prober.get_ipv4() == ipaddress.IPv4Address('203.0.113.7')
        resolver.resolver_class.assert_called_once_with(configure=False)
        assert resolver.nameservers == ['208.67.222.222']
        assert resolver.lifetime == 2
        resolver.resolve.assert_called_once_with('myip.opendns.com', 'A')

    def test_ipv6(self, resolver):
        """Test looking up the IPv6 address"""
        resolver.answer('2001:db8::7')
        prober = DnsProber('dns', {'dns_name': 'whoami.example.test',
                                   'dns_server6': '2001:db8::53'})

        assert prober.get_ipv6() == ipaddress.IPv6Address('2001:db8::7')
        assert resolver.nameservers == ['2001:db8::53']
        resolver.resolve.assert_called_once_with('whoami.example.test',
                                                 'AAAA')

    @pytest.mark.parametrize('error', [
        dns.exception.Timeout(),
        dns.resolver.NXDOMAIN(),
        OSError("Network unreachable"),
    ])
    def test_lookup_failure(self, resolver, error):
        """Test a failed lookup is a ProbeError"""
        resolver.resolve.side_effect = error
        with pytest.raises(ProbeError):
            DnsProber('dns', {}).probe_ipv4()

    def test_empty_answer(self, resolver):
        """Test an empty answer is a ProbeError"""
        resolver.answer()
        with pytest.raises(ProbeError):
            DnsProber('dns', {}).probe_ipv6()

    def test_wrong_family_answer(self, resolver):
        """Test an answer of the wrong family is a ProbeError"""
        resolver.answer('2001:db8::7')
        with pytest.raises(ProbeError):
            DnsProber('dns', {}).probe_ipv4()
