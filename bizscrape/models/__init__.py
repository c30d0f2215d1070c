"""
Data Models Package
"""

from bizscrape.models.business import BusinessData, CORE_FIELDS, UNKNOWN_BUSINESS
from bizscrape.models.scrape import (
    Location,
    PolicyFlags,
    ScrapeConfig,
    ProcessingConfig,
    RobotsPolicy,
    PermissionResult,
    RawListing,
    ScrapingResult,
    ResultStatus,
)

__all__ = [
    'BusinessData',
    'CORE_FIELDS',
    'UNKNOWN_BUSINESS',
    'Location',
    'PolicyFlags',
    'ScrapeConfig',
    'ProcessingConfig',
    'RobotsPolicy',
    'PermissionResult',
    'RawListing',
    'ScrapingResult',
    'ResultStatus',
]
