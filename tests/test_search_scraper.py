"""
Search Scraping - Unit Tests
Query building, result parsing and the engine fallback chain
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import asyncio

import httpx
import pytest

from bizscrape.models.scrape import ScrapeConfig, Location, PolicyFlags
from bizscrape.services.anti_detection import NoDelayProfile
from bizscrape.services.fetch_gateway import FetchGateway
from bizscrape.services.record_normalizer import FAILURE_MARKER
from bizscrape.services.search_scraper import (
    SearchScraper,
    build_search_query,
    parse_google_results,
    parse_duckduckgo_results
)


GOOGLE_HTML = """
<html><body>
  <div class="g">
    <a href="https://acmeplumbing.com"><h3>Acme Plumbing - Austin</h3></a>
    <div class="VwiC3b">Licensed plumbers. Email info@acmeplumbing.com for a quote.</div>
  </div>
  <div class="g">
    <a href="https://drainpros.com"><h3>Drain Pros</h3></a>
    <div class="VwiC3b">Same day drain cleaning.</div>
  </div>
</body></html>
"""

DUCKDUCKGO_HTML = """
<html><body>
  <div class="result">
    <h2 class="result__title">Pipe Masters</h2>
    <a class="result__url" href="https://pipemasters.com">pipemasters.com</a>
    <a class="result__snippet">Call or write to team@pipemasters.com, serving Austin since 1990.</a>
  </div>
</body></html>
"""


class TestSearchParsing:
    """Test query building and result parsing"""

    def setup_method(self):
        """Setup for each test"""
        self.config = ScrapeConfig(industry='plumbers', location=Location(city='Austin', state='TX'))

    def test_query_with_location(self):
        assert build_search_query(self.config) == 'plumbers in Austin, TX contact email address'

    def test_query_defaults(self):
        assert build_search_query(ScrapeConfig()) == 'businesses contact email address'

    def test_query_state_only(self):
        config = ScrapeConfig(industry='dentists', location=Location(state='OR'))
        assert build_search_query(config) == 'dentists in OR contact email address'

    def test_parse_google(self):
        listings = parse_google_results(GOOGLE_HTML, self.config)

        assert len(listings) == 2
        first = listings[0].extracted
        assert first.name == 'Acme Plumbing - Austin'
        assert first.website == 'https://acmeplumbing.com'
        assert first.email == 'info@acmeplumbing.com'
        assert (first.city, first.state, first.industry) == ('Austin', 'TX', 'plumbers')
        assert listings[1].extracted.email is None
        assert listings[0].url == 'https://acmeplumbing.com'

    def test_parse_duckduckgo(self):
        listings = parse_duckduckgo_results(DUCKDUCKGO_HTML, self.config)

        assert len(listings) == 1
        assert listings[0].extracted.name == 'Pipe Masters'
        assert listings[0].extracted.email == 'team@pipemasters.com'

    def test_no_results(self):
        assert parse_google_results('<html><body></body></html>', self.config) == []


class TestSearchScraper:
    """Test the engine fallback chain against a fake transport"""

    def setup_method(self):
        """Setup for each test"""
        self.config = ScrapeConfig(
            industry='plumbers',
            location=Location(city='Austin', state='TX'),
            policy=PolicyFlags(base_delay_seconds=0)
        )
        self.requested = []

    def _scraper(self, handler):
        def recording_handler(request):
            self.requested.append(str(request.url))
            return handler(request)

        gateway = FetchGateway(relays=[], transport=httpx.MockTransport(recording_handler))
        return SearchScraper(gateway, NoDelayProfile(use_fake_useragent=False))

    def test_google_results(self):
        def handler(request):
            if 'google.com' in str(request.url):
                return httpx.Response(200, text=GOOGLE_HTML)
            return httpx.Response(404)

        listings = asyncio.run(self._scraper(handler).scrape(self.config))

        assert [l.extracted.name for l in listings] == ['Acme Plumbing - Austin', 'Drain Pros']

    def test_duckduckgo_fallback(self):
        """Google blocked on every relay: DuckDuckGo answers"""
        def handler(request):
            if 'duckduckgo' in str(request.url):
                return httpx.Response(200, text=DUCKDUCKGO_HTML)
            return httpx.Response(429)

        listings = asyncio.run(self._scraper(handler).scrape(self.config))

        assert len(listings) == 1
        assert listings[0].extracted.name == 'Pipe Masters'

    def test_sentinel_when_everything_fails(self):
        def handler(request):
            return httpx.Response(500)

        listings = asyncio.run(self._scraper(handler).scrape(self.config))

        assert len(listings) == 1
        assert FAILURE_MARKER in listings[0].extracted.name
        assert listings[0].extracted.city == 'Austin'
