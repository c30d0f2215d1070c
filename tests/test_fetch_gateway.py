"""
Fetch Gateway - Unit Tests
Relay fallback, content floor and the first-success combinator
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import asyncio
import gzip

import httpx
import pytest

from bizscrape.models.scrape import ScrapeConfig, Location
from bizscrape.services.anti_detection import AntiDetectionProfile
from bizscrape.services.fetch_gateway import FetchGateway, FetchResult, first_success, build_relay_url
from bizscrape.services.record_normalizer import sentinel_record, FAILURE_MARKER


RELAYS = [
    'https://relay-one.test/?url=',
    'https://relay-two.test/?url=',
    'https://relay-three.test/?url=',
]
TARGET = 'https://directory-site.com/plumbers?page=1'


class TestFetchGateway:
    """Test relay fallback against a fake transport"""

    def setup_method(self):
        """Setup for each test"""
        self.requests = []

    def _gateway(self, handler):
        def recording_handler(request):
            self.requests.append(request)
            return handler(request)
        return FetchGateway(relays=RELAYS, transport=httpx.MockTransport(recording_handler))

    def test_third_relay_wins(self):
        """Only the third relay answers with a usable body"""
        body = 'x' * 500

        def handler(request):
            if request.url.host == 'relay-three.test':
                return httpx.Response(200, text=body)
            return httpx.Response(500, text='relay error')

        result = asyncio.run(self._gateway(handler).fetch_html(TARGET, {'User-Agent': 'test'}))

        assert result.ok
        assert result.html == body
        assert result.relay == RELAYS[2]
        assert len(result.errors) == 2
        assert len(self.requests) == 3

    def test_target_is_encoded_into_relay_url(self):
        """The relay receives the full target URL as one encoded value"""
        def handler(request):
            return httpx.Response(200, text='y' * 200)

        asyncio.run(self._gateway(handler).fetch_html(TARGET))

        assert self.requests[0].url.params.get('url') == TARGET

    def test_all_relays_fail(self):
        """Every relay returns 500: failure value, no exception"""
        def handler(request):
            return httpx.Response(500, text='relay error')

        result = asyncio.run(self._gateway(handler).fetch_html(TARGET))

        assert not result.ok
        assert not result
        assert result.html == ''
        assert len(result.errors) == 3

    def test_failure_leads_to_sentinel_record(self):
        """Callers substitute a labelled failure record"""
        def handler(request):
            return httpx.Response(500)

        result = asyncio.run(self._gateway(handler).fetch_html(TARGET))
        config = ScrapeConfig(location=Location(city='Austin', state='TX'), industry='plumbers')

        assert not result.ok
        record = sentinel_record(config)
        assert FAILURE_MARKER in record.name
        assert record.city == 'Austin'

    def test_short_body_is_rejected(self):
        """A 200 below the content floor counts as failure"""
        def handler(request):
            if request.url.host == 'relay-one.test':
                return httpx.Response(200, text='blocked')
            return httpx.Response(200, text='z' * 150)

        result = asyncio.run(self._gateway(handler).fetch_html(TARGET))

        assert result.ok
        assert result.relay == RELAYS[1]
        assert 'body too short' in result.errors[0]

    def test_transport_errors_are_swallowed(self):
        """Connection errors move on to the next relay"""
        def handler(request):
            if request.url.host == 'relay-one.test':
                raise httpx.ConnectError('connection refused', request=request)
            return httpx.Response(200, text='ok' * 100)

        result = asyncio.run(self._gateway(handler).fetch_html(TARGET))

        assert result.ok
        assert result.relay == RELAYS[1]

    def test_fetch_text_without_floor(self):
        """robots.txt style fetches accept short bodies"""
        def handler(request):
            return httpx.Response(200, text='User-agent: *')

        result = asyncio.run(self._gateway(handler).fetch_text(TARGET, min_length=0))

        assert result.ok
        assert result.html == 'User-agent: *'

    def test_no_relays(self):
        """An empty relay list is a failure, not an error"""
        gateway = FetchGateway(relays=[], transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        result = asyncio.run(gateway.fetch_html(TARGET))
        assert not result.ok

    def test_with_relays_keeps_transport(self):
        """Derived gateways share transport and limits"""
        gateway = self._gateway(lambda request: httpx.Response(200, text='a' * 200))
        derived = gateway.with_relays(['https://other.test/?url='])

        assert derived.transport is gateway.transport
        assert derived.min_length == gateway.min_length
        assert derived.relays == ['https://other.test/?url=']

    def test_brotli_body_is_not_accepted(self):
        """Compressed bytes httpx cannot decode move on to the next relay"""
        html = '<html><body>' + 'Acme Plumbing ' * 20 + '</body></html>'
        compressed = bytes(range(256)) * 2

        def handler(request):
            if request.url.host == 'relay-one.test':
                return httpx.Response(200, content=compressed, headers={'Content-Encoding': 'br'})
            return httpx.Response(200, text=html)

        headers = AntiDetectionProfile.emulated_headers('test-agent')
        result = asyncio.run(self._gateway(handler).fetch_html(TARGET, headers))

        assert result.ok
        assert result.html == html
        assert result.relay == RELAYS[1]
        assert 'br' not in self.requests[0].headers['accept-encoding']

    def test_gzip_body_is_decoded(self):
        html = '<html><body>' + 'Acme Plumbing ' * 20 + '</body></html>'

        def handler(request):
            return httpx.Response(200, content=gzip.compress(html.encode('utf-8')),
                                  headers={'Content-Encoding': 'gzip', 'Content-Type': 'text/html; charset=utf-8'})

        result = asyncio.run(self._gateway(handler).fetch_html(TARGET))

        assert result.ok
        assert result.html == html


class TestFirstSuccess:
    """Test the first-success-of-N combinator"""

    def test_stops_at_first_value(self):
        """Later candidates are never attempted"""
        attempted = []

        async def attempt(candidate):
            attempted.append(candidate)
            if candidate == 'b':
                return 'value-b', None
            return None, 'nope'

        value, failures = asyncio.run(first_success(['a', 'b', 'c'], attempt))

        assert value == 'value-b'
        assert attempted == ['a', 'b']
        assert failures == ['a: nope']

    def test_all_fail(self):
        """No value and one failure per candidate"""
        async def attempt(candidate):
            return None, None

        value, failures = asyncio.run(first_success(['a', 'b'], attempt))

        assert value is None
        assert failures == ['a: no usable content', 'b: no usable content']


class TestRelayUrl:
    """Test relay URL construction"""

    def test_prefix_relay(self):
        url = build_relay_url('https://corsproxy.io/?', 'https://site.com/a b')
        assert url == 'https://corsproxy.io/?https%3A%2F%2Fsite.com%2Fa%20b'

    def test_placeholder_relay(self):
        url = build_relay_url('https://relay.test/fetch?target={url}&raw=1', 'https://site.com/')
        assert url == 'https://relay.test/fetch?target=https%3A%2F%2Fsite.com%2F&raw=1'

    def test_failure_result_is_falsy(self):
        assert not FetchResult.failure(['x'])
        assert FetchResult(ok=True, html='<html></html>')
