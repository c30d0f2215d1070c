"""
Record Normalizer
Post-processing of the combined record set: sentinel detection, name guarantees, export field order
"""

from typing import Iterable, List, Optional, Tuple

from loguru import logger

from bizscrape.models.business import BusinessData, UNKNOWN_BUSINESS
from bizscrape.models.scrape import ScrapeConfig, RawListing
from bizscrape.services.field_extractor import repair_record


FAILURE_MARKER = 'SCRAPING FAILED'
WARNING_GLYPH = '⚠️'

PRIORITY_FIELDS = [
    'name',
    'phone',
    'email',
    'website',
    'address',
    'city',
    'state',
    'industry',
    'category',
    'description',
]

SENTINEL_DESCRIPTION = (
    f"{WARNING_GLYPH} NOTICE: This is sample data shown because web scraping failed. "
    "This could be due to relay restrictions, IP blocking, or changing website structures. "
    "Try adjusting your search criteria or try again later. See the logs for details."
)


def is_sample_record(record: BusinessData) -> bool:
    """Sentinel failure records carry fixed marker text"""
    return FAILURE_MARKER in (record.name or '') or WARNING_GLYPH in (record.description or '')


def sample_warning(records: List[BusinessData]) -> Optional[str]:
    """Aggregate warning when any record is a failure placeholder"""
    count = sum(1 for record in records if is_sample_record(record))
    if not count:
        return None
    return (
        f"{count} of {len(records)} records are sample placeholders because scraping failed; "
        "they are not real business data"
    )


def order_fields(keys: Iterable[str]) -> List[str]:
    """Priority fields first in fixed order, the rest alphabetically"""
    unique = list(dict.fromkeys(keys))
    priority = [key for key in PRIORITY_FIELDS if key in unique]
    rest = sorted(key for key in unique if key not in PRIORITY_FIELDS)
    return priority + rest


def sentinel_record(config: ScrapeConfig) -> BusinessData:
    """Clearly labelled placeholder returned when every scraping strategy failed"""
    return BusinessData(
        name=f"{FAILURE_MARKER} - Sample Result",
        email='example@domain.com',
        phone='555-123-4567',
        city=config.location.city or 'Sample City',
        state=config.location.state or 'Sample State',
        industry=config.industry or 'Sample Industry',
        description=SENTINEL_DESCRIPTION,
    )


def sentinel_listing(config: ScrapeConfig) -> RawListing:
    return RawListing(
        raw_html="<div class='sample-data'>Sample Data Notice</div>",
        extracted=sentinel_record(config),
    )


def normalize(records: List[BusinessData]) -> Tuple[List[BusinessData], List[str]]:
    """
    Final pass before hand-off

    Returns:
        Tuple of (records, warnings)
    """
    warnings = []
    for record in records:
        if not (record.name or '').strip():
            record.name = UNKNOWN_BUSINESS
        repair_record(record)

    warning = sample_warning(records)
    if warning:
        logger.warning(warning)
        warnings.append(warning)

    return records, warnings
