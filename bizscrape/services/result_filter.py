"""
Result Filter
Location and industry matching with permissive bidirectional substring rules
"""

from typing import List, Optional

from loguru import logger

from bizscrape.models.business import BusinessData
from bizscrape.models.scrape import Location


INDUSTRY_FIELDS = ('industry', 'category', 'description', 'name')


def _norm(value: Optional[str]) -> str:
    return (value or '').strip().lower()


def _part_matches(field_text: str, address_text: str, wanted: str) -> bool:
    # Bidirectional: "ny" matches "company" and an empty field matches any filter
    if not wanted:
        return True
    return wanted in field_text or field_text in wanted or wanted in address_text


def matches_location(record: BusinessData, location: Optional[Location]) -> bool:
    """City rule and state rule must both pass; a missing filter part passes trivially"""
    if location is None or location.is_empty:
        return True

    address = _norm(record.address)
    city_ok = _part_matches(_norm(record.city), address, _norm(location.city))
    state_ok = _part_matches(_norm(record.state), address, _norm(location.state))
    return city_ok and state_ok


def matches_industry(record: BusinessData, industry: Optional[str]) -> bool:
    """Any of industry/category/description/name fuzzily matches the filter"""
    wanted = _norm(industry)
    if not wanted:
        return True

    for field_name in INDUSTRY_FIELDS:
        value = _norm(record.get(field_name))
        if value and (wanted in value or value in wanted):
            return True
    return False


def filter_records(
    records: List[BusinessData],
    location: Optional[Location] = None,
    industry: Optional[str] = None
) -> List[BusinessData]:
    """
    Keep records matching both the location and the industry filter

    Args:
        records: Extracted records
        location: Optional city/state filter
        industry: Optional industry term

    Returns:
        Matching subset; the input list itself when no filter is set
    """
    has_location = location is not None and not location.is_empty
    has_industry = bool(_norm(industry))

    if not has_location and not has_industry:
        return records

    filtered = [
        record for record in records
        if matches_location(record, location) and matches_industry(record, industry)
    ]
    logger.info(f"Filtered {len(records)} records to {len(filtered)} relevant listings")
    return filtered
