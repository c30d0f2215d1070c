"""
Search Scraper
Finds business listings through search engine result pages when no target site is given
"""

from typing import Callable, List, Optional
from urllib.parse import quote_plus

from loguru import logger

from bizscrape.config import Config
from bizscrape.models.business import BusinessData
from bizscrape.models.scrape import ScrapeConfig, RawListing
from bizscrape.services.anti_detection import AntiDetectionProfile
from bizscrape.services.cancellation import CancelToken, check_cancelled
from bizscrape.services.email_enricher import EmailEnricher, extract_emails_from_text
from bizscrape.services.fetch_gateway import FetchGateway
from bizscrape.services.listing_locator import make_soup, safe_select, safe_select_one
from bizscrape.services.field_extractor import element_text
from bizscrape.services.record_normalizer import sentinel_listing


GOOGLE_SEARCH_URL = 'https://www.google.com/search?q={query}&num=100'
DUCKDUCKGO_SEARCH_URL = 'https://html.duckduckgo.com/html/?q={query}'


def build_search_query(config: ScrapeConfig) -> str:
    """
    Search phrase for a run

    "plumbers" + Austin, TX -> "plumbers in Austin, TX contact email address"
    """
    query = config.industry or 'businesses'

    city = config.location.city
    state = config.location.state
    if city and state:
        query += f" in {city}, {state}"
    elif city or state:
        query += f" in {city or state}"

    return f"{query} contact email address"


def _search_listing(result, title_selector: str, link_selector: str,
                    snippet_selector: str, config: ScrapeConfig) -> RawListing:
    title_el = safe_select_one(result, title_selector)
    link_el = safe_select_one(result, link_selector)
    snippet_el = safe_select_one(result, snippet_selector)

    title = element_text(title_el) if title_el is not None else ''
    link = (link_el.get('href') or '').strip() if link_el is not None else ''
    snippet = element_text(snippet_el) if snippet_el is not None else ''

    record = BusinessData(
        name=title or 'Unknown',
        website=link,
        description=snippet,
        industry=config.industry,
        city=config.location.city,
        state=config.location.state,
    )

    if snippet:
        emails = extract_emails_from_text(snippet)
        if emails:
            record.email = emails[0]

    return RawListing(raw_html=str(result), url=link or None, extracted=record)


def parse_google_results(html: str, config: ScrapeConfig) -> List[RawListing]:
    """One listing per Google organic result block"""
    results = safe_select(make_soup(html), 'div.g')
    logger.info(f"Found {len(results)} Google search results")
    return [_search_listing(result, 'h3', 'a', '.VwiC3b', config) for result in results]


def parse_duckduckgo_results(html: str, config: ScrapeConfig) -> List[RawListing]:
    """One listing per DuckDuckGo HTML result block"""
    results = safe_select(make_soup(html), '.result')
    logger.info(f"Found {len(results)} alternative search results")
    return [
        _search_listing(result, '.result__title', '.result__url', '.result__snippet', config)
        for result in results
    ]


class SearchScraper:
    """Google first, DuckDuckGo second, a labelled sample listing last"""

    def __init__(
        self,
        gateway: Optional[FetchGateway] = None,
        profile: Optional[AntiDetectionProfile] = None,
        enricher: Optional[EmailEnricher] = None
    ):
        self.config = Config()
        base = gateway or FetchGateway()
        self.google_gateway = base.with_relays(self.config.SEARCH_RELAY_URLS)
        self.alternate_gateway = base.with_relays(self.config.ALTERNATE_SEARCH_RELAY_URLS)
        self.profile = profile or AntiDetectionProfile()
        self.enricher = enricher or EmailEnricher(base, self.profile)

    async def _search(
        self,
        gateway: FetchGateway,
        url_template: str,
        parser: Callable[[str, ScrapeConfig], List[RawListing]],
        config: ScrapeConfig,
        cancel_token: Optional[CancelToken]
    ) -> List[RawListing]:
        query = build_search_query(config)
        search_url = url_template.format(query=quote_plus(query))
        logger.info(f"Using search query: {query}")

        user_agent = self.profile.user_agent_for(config.policy.use_random_user_agents)
        result = await gateway.fetch_html(search_url, self.profile.emulated_headers(user_agent))
        if not result.ok:
            logger.warning(f"Search fetch failed for {search_url}")
            return []

        listings = parser(result.html, config)
        if listings:
            check_cancelled(cancel_token)
            records = [listing.extracted for listing in listings]
            await self.enricher.enrich(records, config, cancel_token)
        return listings

    async def scrape_google(self, config: ScrapeConfig, cancel_token: Optional[CancelToken] = None) -> List[RawListing]:
        return await self._search(
            self.google_gateway, GOOGLE_SEARCH_URL, parse_google_results, config, cancel_token
        )

    async def scrape_alternate(self, config: ScrapeConfig, cancel_token: Optional[CancelToken] = None) -> List[RawListing]:
        logger.info("Attempting to use alternative search engine...")
        return await self._search(
            self.alternate_gateway, DUCKDUCKGO_SEARCH_URL, parse_duckduckgo_results, config, cancel_token
        )

    async def scrape(self, config: ScrapeConfig, cancel_token: Optional[CancelToken] = None) -> List[RawListing]:
        """
        Run the search fallback chain

        Args:
            config: Run configuration (industry and location drive the query)
            cancel_token: Checked between engines

        Returns:
            Listings with pre-extracted records; a single sample listing when every engine failed
        """
        listings = await self.scrape_google(config, cancel_token)
        if listings:
            return listings

        check_cancelled(cancel_token)
        listings = await self.scrape_alternate(config, cancel_token)
        if listings:
            return listings

        logger.warning("All scraping methods failed, returning a labelled sample listing")
        return [sentinel_listing(config)]
