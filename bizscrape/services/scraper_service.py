"""
Scraper Service
Orchestrates a scrape run: crawl policy, relay fetch, listing extraction, enrichment and post-processing
"""

import asyncio
from typing import List, Optional

from loguru import logger

from bizscrape.config import Config
from bizscrape.models.business import BusinessData
from bizscrape.models.scrape import (
    ScrapeConfig, ProcessingConfig, ScrapingResult, RawListing, PermissionResult
)
from bizscrape.services.anti_detection import AntiDetectionProfile
from bizscrape.services.cancellation import CancelToken, check_cancelled
from bizscrape.services.email_enricher import EmailEnricher
from bizscrape.services.errors import (
    PolicyDeniedError, FetchExhaustedError, PersistenceError, RunCancelledError
)
from bizscrape.services.fetch_gateway import FetchGateway
from bizscrape.services.field_extractor import FieldExtractor
from bizscrape.services.listing_locator import ListingLocator
from bizscrape.services.persistence import PersistenceGateway
from bizscrape.services.record_enhancer import RecordEnhancer
from bizscrape.services.record_normalizer import normalize
from bizscrape.services.result_filter import filter_records
from bizscrape.services.robots_policy import PolicyChecker, DENYLIST_REASON, INVALID_URL_REASON
from bizscrape.services.search_scraper import SearchScraper


NO_LISTINGS_WARNING = "No listings matched any selector on the fetched page"
NOT_SAVED_WARNING = "Data was extracted but could not be saved"

# Denials that apply even when robots.txt is knowingly overridden
HARD_DENY_REASONS = (DENYLIST_REASON, INVALID_URL_REASON)


class ScraperService:
    """Runs the scrape-and-extract pipeline for one ScrapeConfig at a time"""

    def __init__(
        self,
        gateway: Optional[FetchGateway] = None,
        profile: Optional[AntiDetectionProfile] = None,
        policy_checker: Optional[PolicyChecker] = None,
        locator: Optional[ListingLocator] = None,
        extractor: Optional[FieldExtractor] = None,
        enricher: Optional[EmailEnricher] = None,
        search_scraper: Optional[SearchScraper] = None
    ):
        self.config = Config()
        self.gateway = gateway or FetchGateway()
        self.profile = profile or AntiDetectionProfile()
        self.policy_checker = policy_checker or PolicyChecker(self.gateway)
        self.locator = locator or ListingLocator()
        self.extractor = extractor or FieldExtractor()
        self.enricher = enricher or EmailEnricher(self.gateway, self.profile)
        self.search_scraper = search_scraper or SearchScraper(self.gateway, self.profile, self.enricher)

    async def check_permissions(self, url: str) -> PermissionResult:
        return await self.policy_checker.check_permissions(url)

    async def _enforce_policy(self, config: ScrapeConfig, result: ScrapingResult) -> PermissionResult:
        permission = await self.check_permissions(config.url)

        if not permission.allowed:
            if permission.reason in HARD_DENY_REASONS or config.policy.respect_robots_txt:
                raise PolicyDeniedError(config.url, permission.reason or 'Scraping not allowed')
            logger.warning(f"Ignoring robots.txt as requested: {permission.reason}")
            result.warn(f"robots.txt overridden: {permission.reason}")
        elif permission.reason:
            logger.info(permission.reason)
            result.warn(permission.reason)

        return permission

    async def scrape_site(
        self,
        config: ScrapeConfig,
        result: ScrapingResult,
        cancel_token: Optional[CancelToken] = None
    ) -> List[RawListing]:
        """
        Fetch the target site and cut it into listings

        Raises:
            PolicyDeniedError: The target may not be scraped
            FetchExhaustedError: Every relay failed
        """
        permission = await self._enforce_policy(config, result)
        check_cancelled(cancel_token)

        if config.policy.use_rotating_proxies:
            logger.info(f"Using proxy label: {self.profile.random_proxy_label()}")

        base_delay = max(config.policy.base_delay_seconds, permission.recommended_delay or 0)
        delay = await self.profile.sleep_jittered(base_delay)
        logger.debug(f"Waited {delay:.0f}ms before fetching {config.url}")
        check_cancelled(cancel_token)

        user_agent = self.profile.user_agent_for(config.policy.use_random_user_agents)
        fetched = await self.gateway.fetch_html(config.url, self.profile.emulated_headers(user_agent))
        if not fetched.ok:
            raise FetchExhaustedError(config.url, len(self.gateway.relays))

        elements = self.locator.locate(fetched.html, config.selector('container'))
        listings = [RawListing(raw_html=str(element), url=config.url) for element in elements]
        return listings

    async def collect_listings(
        self,
        config: ScrapeConfig,
        result: ScrapingResult,
        cancel_token: Optional[CancelToken] = None
    ) -> List[RawListing]:
        """Direct site listings, falling back to search engines when the site cannot be fetched"""
        if config.is_search:
            return await self.search_scraper.scrape(config, cancel_token)

        try:
            return await self.scrape_site(config, result, cancel_token)
        except FetchExhaustedError as e:
            logger.warning(f"{str(e)}, falling back to search engines")
            result.warn(f"Could not fetch {config.url}; results come from search engines")
            check_cancelled(cancel_token)
            return await self.search_scraper.scrape(config, cancel_token)

    async def run(
        self,
        config: ScrapeConfig,
        processing: Optional[ProcessingConfig] = None,
        cancel_token: Optional[CancelToken] = None
    ) -> ScrapingResult:
        """
        Execute one scrape run

        Args:
            config: Run inputs
            processing: Post-processing settings for the rule enhancer
            cancel_token: Optional cooperative cancellation

        Returns:
            ScrapingResult with status success or error; never raises
        """
        result = ScrapingResult().start()
        logger.info(f"Starting scrape run {result.run_id} for {config.url or 'search: ' + str(config.industry)}")

        try:
            listings = await self.collect_listings(config, result, cancel_token)
            result.raw_data = listings
            check_cancelled(cancel_token)

            if not listings:
                result.warn(NO_LISTINGS_WARNING)
                logger.warning(f"Run {result.run_id}: {NO_LISTINGS_WARNING}")
                return result.succeed([])

            records = self.extractor.extract_all(listings, config.selectors)

            # Search listings arrive pre-extracted and already enriched
            if all(listing.extracted is None for listing in listings):
                await self.enricher.enrich(records, config, cancel_token)
            check_cancelled(cancel_token)

            records = filter_records(records, config.location, config.industry)
            records, warnings = normalize(records)
            for warning in warnings:
                result.warn(warning)

            records = RecordEnhancer(processing).enhance(records)

            logger.info(f"Run {result.run_id} finished with {len(records)} records")
            return result.succeed(records)

        except PolicyDeniedError as e:
            logger.warning(f"Run {result.run_id} denied: {e.reason}")
            return result.fail(e.reason)
        except RunCancelledError as e:
            logger.info(f"Run {result.run_id} cancelled: {str(e)}")
            return result.fail(f"Run cancelled: {str(e)}")
        except Exception as e:
            logger.error(f"Run {result.run_id} failed: {str(e)}")
            return result.fail(str(e))

    def run_sync(
        self,
        config: ScrapeConfig,
        processing: Optional[ProcessingConfig] = None,
        cancel_token: Optional[CancelToken] = None
    ) -> ScrapingResult:
        """Blocking wrapper for request handlers and worker threads"""
        return asyncio.run(self.run(config, processing, cancel_token))

    def save_run(
        self,
        store: PersistenceGateway,
        config: ScrapeConfig,
        processing: Optional[ProcessingConfig],
        result: ScrapingResult
    ) -> Optional[str]:
        """
        Persist a finished run; storage failures become a warning on the result

        Returns:
            Stored result id, or None when saving failed
        """
        try:
            scrape_id = store.save_scrape_config(config)
            processing_id = store.save_processing_config(processing) if processing else None
            return store.save_result(scrape_id, processing_id, result)
        except PersistenceError as e:
            logger.error(f"Failed to save run {result.run_id}: {str(e)}")
            result.warn(NOT_SAVED_WARNING)
            return None

    @staticmethod
    def records_from_payload(payload: List[dict]) -> List[BusinessData]:
        """Records posted back by a client (export, re-save)"""
        return [BusinessData.from_dict(item) for item in payload if isinstance(item, dict)]
