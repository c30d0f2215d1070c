"""
Listing Locator
Finds the repeating container elements that hold individual business listings
"""

from typing import List, Optional, Tuple, Union

from bs4 import BeautifulSoup, Tag
from loguru import logger


DEFAULT_CONTAINER_SELECTOR = '.business-card'

# Known directory-site patterns, most specific first
DEFAULT_CONTAINER_SELECTORS = [
    '.organic .result',       # YellowPages
    '.business-listing',
    '.biz-listing-large',     # Yelp
    '.businessCapsule',       # YellowPages UK
    '.list-item',
    '.business',
    'article',
    '.card',
    '.listing',
]


def make_soup(document: Union[str, BeautifulSoup, Tag]) -> Union[BeautifulSoup, Tag]:
    """Accept raw HTML or an already parsed tree"""
    if isinstance(document, (BeautifulSoup, Tag)):
        return document
    return BeautifulSoup(document or '', 'html.parser')


def safe_select(root: Union[BeautifulSoup, Tag], selector: str) -> List[Tag]:
    """CSS select that treats a malformed selector as no match"""
    try:
        return root.select(selector)
    except Exception as e:
        logger.warning(f"Skipping invalid selector '{selector}': {str(e)[:100]}")
        return []


def safe_select_one(root: Union[BeautifulSoup, Tag], selector: str) -> Optional[Tag]:
    try:
        return root.select_one(selector)
    except Exception as e:
        logger.warning(f"Skipping invalid selector '{selector}': {str(e)[:100]}")
        return None


class ListingLocator:
    """Selector cascade over a fetched document"""

    def __init__(self, fallback_selectors: Optional[List[str]] = None):
        self.fallback_selectors = list(fallback_selectors or DEFAULT_CONTAINER_SELECTORS)
        self.used_selector: Optional[str] = None

    def candidate_selectors(self, configured_selector: Optional[str] = None) -> List[str]:
        first = (configured_selector or '').strip() or DEFAULT_CONTAINER_SELECTOR
        return [first] + [s for s in self.fallback_selectors if s != first]

    def locate_with_selector(
        self,
        document: Union[str, BeautifulSoup, Tag],
        configured_selector: Optional[str] = None
    ) -> Tuple[List[Tag], Optional[str]]:
        """Return the first non-empty match set and the selector that produced it"""
        soup = make_soup(document)

        for selector in self.candidate_selectors(configured_selector):
            found = safe_select(soup, selector)
            if found:
                logger.info(f"Found {len(found)} business listings using selector {selector}")
                return found, selector

        logger.warning("No listings found with any selector")
        return [], None

    def locate(
        self,
        document: Union[str, BeautifulSoup, Tag],
        configured_selector: Optional[str] = None
    ) -> List[Tag]:
        elements, self.used_selector = self.locate_with_selector(document, configured_selector)
        return elements
