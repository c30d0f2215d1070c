"""
Record Enhancer
Rule-based enrichment of extracted records (categorisation and industry inference)
"""

from typing import List, Optional

from loguru import logger

from bizscrape.models.business import BusinessData, UNKNOWN_BUSINESS
from bizscrape.models.scrape import ProcessingConfig
from bizscrape.services.field_extractor import parse_address


# Checked in order, first keyword hit wins
CATEGORY_KEYWORDS = [
    ('Technology', ['technology', 'innovative']),
    ('Food & Dining', ['food', 'cafe', 'restaurant']),
    ('Professional Services', ['service', 'professional']),
    ('Home Services', ['plumbing', 'emergency']),
    ('Legal Services', ['legal', 'law']),
]

DEFAULT_CATEGORY = 'Other'

INDUSTRY_BY_CATEGORY = {
    'Food & Dining': 'Restaurants',
    'Home Services': 'Home Improvement',
    'Technology': 'Tech Companies',
    'Professional Services': 'Consulting',
    'Legal Services': 'Lawyers',
}


class RecordEnhancer:
    """Fills category, location and industry gaps without inventing contact data"""

    def __init__(self, processing: Optional[ProcessingConfig] = None):
        self.processing = processing or ProcessingConfig()

    @staticmethod
    def infer_category(description: Optional[str]) -> Optional[str]:
        if not description:
            return None

        text = description.lower()
        for category, keywords in CATEGORY_KEYWORDS:
            if any(keyword in text for keyword in keywords):
                return category
        return DEFAULT_CATEGORY

    @staticmethod
    def infer_industry(category: Optional[str]) -> str:
        return INDUSTRY_BY_CATEGORY.get(category, category or DEFAULT_CATEGORY)

    def enhance_record(self, record: BusinessData) -> BusinessData:
        """Return an enhanced copy of one record"""
        enhanced = record.copy()

        if not enhanced.name:
            enhanced.name = UNKNOWN_BUSINESS

        if not enhanced.category:
            category = self.infer_category(enhanced.description)
            if category:
                enhanced.category = category

        if enhanced.address and (not enhanced.city or not enhanced.state):
            city, state = parse_address(enhanced.address)
            if not enhanced.city and city:
                enhanced.city = city
            if not enhanced.state and state:
                enhanced.state = state

        if not enhanced.industry:
            enhanced.industry = self.infer_industry(enhanced.category)

        return enhanced

    def enhance(self, records: List[BusinessData]) -> List[BusinessData]:
        """
        Enhance every record

        Args:
            records: Normalized records

        Returns:
            New list of enhanced copies, same order
        """
        logger.info(f"Enhancing {len(records)} records with '{self.processing.model}' rules")
        if self.processing.instructions:
            logger.debug(f"Processing instructions: {self.processing.instructions}")

        return [self.enhance_record(record) for record in records]
