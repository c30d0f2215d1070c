"""
Field Extractor
Turns one listing fragment into a BusinessData record using selector cascades and text heuristics
"""

import re
from typing import Dict, List, Optional, Tuple, Union

from bs4 import BeautifulSoup, Tag
from loguru import logger

from bizscrape.models.business import BusinessData, CORE_FIELDS, UNKNOWN_BUSINESS
from bizscrape.models.scrape import RawListing
from bizscrape.services.listing_locator import make_soup, safe_select_one


# Default selector cascade per field, tried after any operator override
FIELD_SELECTORS: Dict[str, List[str]] = {
    'name': ['.business-name', '.name', '.biz-name', "[itemprop='name']", 'h1', 'h2', 'h3'],
    'phone': ['.phone', '.tel', '.telephone', "[itemprop='telephone']", '.phones'],
    'email': ['.email', '.e-mail', "[itemprop='email']"],
    'address': ['.address', '.street-address', "[itemprop='address']", '.adr', '.location'],
    'website': ['.website', '.url', "[itemprop='url']", 'a.website', '.links a.website'],
    'description': ['.description', '.desc', "[itemprop='description']", '.snippet', '.business-desc'],
    'category': ['.category', '.categories', "[itemprop='category']", '.business-categories'],
    'city': ['.city', '.locality', "[itemprop='addressLocality']"],
    'state': ['.state', '.region', "[itemprop='addressRegion']"],
    'industry': ['.industry', '.business-category', '.primary-facet'],
}

STATE_ZIP_PATTERN = re.compile(r'([A-Z]{2})\s+\d{5}')
EMAIL_PATTERN = re.compile(r'[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}')


def element_text(element: Tag) -> str:
    """Visible text of an element with whitespace collapsed"""
    text = re.sub(r'\s+', ' ', element.get_text(' ')).strip()
    return re.sub(r'\s+([,.;:])', r'\1', text)


def parse_address(address: str) -> Tuple[Optional[str], Optional[str]]:
    """
    Best-effort city/state from a US-style address

    "123 Main St, Springfield, IL 62704" -> ("Springfield", "IL")
    """
    if not address:
        return None, None

    parts = [part.strip() for part in address.split(',')]
    if len(parts) < 2:
        return None, None

    city = parts[-2] or None
    match = STATE_ZIP_PATTERN.search(parts[-1])
    state = match.group(1) if match else None
    return city, state


def repair_fields(values: Dict[str, Optional[str]]) -> Dict[str, Optional[str]]:
    """Derive city/state from address and industry from category, in place"""
    address = values.get('address')
    if address and (not values.get('city') or not values.get('state')):
        try:
            city, state = parse_address(address)
            if not values.get('city') and city:
                values['city'] = city
            if not values.get('state') and state:
                values['state'] = state
        except Exception as e:
            logger.error(f"Error parsing address '{address}': {str(e)}")

    if not values.get('industry') and values.get('category'):
        values['industry'] = values['category']

    return values


def repair_record(record: BusinessData) -> BusinessData:
    """Apply the address and category repairs to an existing record"""
    values = {key: record.get(key) for key in ('address', 'city', 'state', 'industry', 'category')}
    repair_fields(values)
    for key, value in values.items():
        if value is not None and record.get(key) is None:
            record.set(key, value)
    if not record.name:
        record.name = UNKNOWN_BUSINESS
    return record


class FieldExtractor:
    """Per-listing extraction with selector cascades"""

    def __init__(self, field_selectors: Optional[Dict[str, List[str]]] = None):
        self.field_selectors = field_selectors or FIELD_SELECTORS

    def selectors_for(self, field_name: str, overrides: Optional[Dict[str, str]] = None) -> List[str]:
        cascade = list(self.field_selectors.get(field_name, []))
        override = ((overrides or {}).get(field_name) or '').strip()
        if override:
            cascade = [override] + [s for s in cascade if s != override]
        return cascade

    def find_content(self, root: Union[BeautifulSoup, Tag], selectors: List[str]) -> Tuple[Optional[str], Optional[Tag]]:
        """First non-empty text among the selectors"""
        for selector in selectors:
            element = safe_select_one(root, selector)
            if element is None:
                continue
            text = element_text(element)
            if text:
                return text, element
        return None, None

    @staticmethod
    def _website_value(text: str, element: Tag) -> str:
        anchors = [element] if element.name == 'a' else element.find_all('a', href=True)
        for anchor in anchors:
            href = (anchor.get('href') or '').strip()
            if href.startswith(('http://', 'https://')):
                return href
        return text

    @staticmethod
    def _email_value(text: str, element: Tag) -> str:
        anchors = [element] if element.name == 'a' else element.find_all('a', href=True)
        for anchor in anchors:
            href = (anchor.get('href') or '').strip()
            if href.lower().startswith('mailto:'):
                return href[len('mailto:'):].split('?', 1)[0]
        match = EMAIL_PATTERN.search(text)
        return match.group(0) if match else text

    def _fallback_name(self, root: Union[BeautifulSoup, Tag]) -> str:
        for level in range(1, 6):
            heading = root.find(f'h{level}')
            if heading is not None:
                return element_text(heading) or UNKNOWN_BUSINESS

        title = root.find('title')
        if title is not None:
            return element_text(title) or UNKNOWN_BUSINESS

        return UNKNOWN_BUSINESS

    def extract(
        self,
        fragment: Union[str, BeautifulSoup, Tag],
        selector_overrides: Optional[Dict[str, str]] = None
    ) -> BusinessData:
        """
        Extract a record from one listing fragment

        Args:
            fragment: Listing markup or parsed element
            selector_overrides: Field name -> CSS selector supplied by the operator

        Returns:
            BusinessData whose name is never empty
        """
        root = make_soup(fragment)
        values: Dict[str, Optional[str]] = {}

        for field_name in CORE_FIELDS:
            text, element = self.find_content(root, self.selectors_for(field_name, selector_overrides))
            if text is None:
                continue
            if field_name == 'website':
                text = self._website_value(text, element)
            elif field_name == 'email':
                text = self._email_value(text, element)
            values[field_name] = text

        repair_fields(values)

        if not values.get('name'):
            try:
                values['name'] = self._fallback_name(root)
            except Exception as e:
                logger.debug(f"Name fallback failed: {str(e)}")
                values['name'] = UNKNOWN_BUSINESS

        return BusinessData(**{key: value for key, value in values.items() if value})

    def extract_all(
        self,
        listings: List[RawListing],
        selector_overrides: Optional[Dict[str, str]] = None
    ) -> List[BusinessData]:
        """Extract every listing; rows that arrive pre-extracted are reused"""
        records = []
        for listing in listings:
            try:
                if listing.extracted is not None:
                    record = repair_record(listing.extracted.copy())
                else:
                    record = self.extract(listing.raw_html, selector_overrides)
                    if listing.url and not record.get('source_url'):
                        record.set('source_url', listing.url)
                records.append(record)
            except Exception as e:
                logger.warning(f"Error extracting listing: {str(e)}")
                continue

        logger.info(f"Extracted {len(records)} records from {len(listings)} listings")
        return records
