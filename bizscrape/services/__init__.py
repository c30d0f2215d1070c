"""
Services Package
"""

from bizscrape.services.scraper_service import ScraperService
from bizscrape.services.export_service import ExportService, to_csv, parse_csv
from bizscrape.services.persistence import PersistenceGateway
from bizscrape.services.scraping_job_manager import ScrapeJobManager, ScrapeJob, JobStatus
from bizscrape.services.robots_policy import PolicyChecker, parse_robots_txt
from bizscrape.services.fetch_gateway import FetchGateway, FetchResult, first_success
from bizscrape.services.anti_detection import AntiDetectionProfile
from bizscrape.services.listing_locator import ListingLocator
from bizscrape.services.field_extractor import FieldExtractor
from bizscrape.services.email_enricher import EmailEnricher
from bizscrape.services.result_filter import filter_records
from bizscrape.services.record_enhancer import RecordEnhancer
from bizscrape.services.search_scraper import SearchScraper
from bizscrape.services.cancellation import CancelToken
from bizscrape.services.errors import (
    ScrapeError,
    PolicyDeniedError,
    FetchExhaustedError,
    PersistenceError,
    RunCancelledError
)

__all__ = [
    'ScraperService',
    'ExportService',
    'to_csv',
    'parse_csv',
    'PersistenceGateway',
    'ScrapeJobManager',
    'ScrapeJob',
    'JobStatus',
    'PolicyChecker',
    'parse_robots_txt',
    'FetchGateway',
    'FetchResult',
    'first_success',
    'AntiDetectionProfile',
    'ListingLocator',
    'FieldExtractor',
    'EmailEnricher',
    'filter_records',
    'RecordEnhancer',
    'SearchScraper',
    'CancelToken',
    'ScrapeError',
    'PolicyDeniedError',
    'FetchExhaustedError',
    'PersistenceError',
    'RunCancelledError'
]
