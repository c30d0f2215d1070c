"""
Email Enricher
Mines email addresses from listing websites and their contact/about pages
"""

import asyncio
import re
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from email_validator import validate_email, EmailNotValidError
from loguru import logger

from bizscrape.config import Config
from bizscrape.models.business import BusinessData
from bizscrape.models.scrape import ScrapeConfig
from bizscrape.services.anti_detection import AntiDetectionProfile
from bizscrape.services.cancellation import CancelToken, check_cancelled
from bizscrape.services.fetch_gateway import FetchGateway


# Extraction passes, each capturing one candidate address
EMAIL_REGEX_PATTERNS = [
    # plain address
    re.compile(r'([a-zA-Z0-9._%+-]+@[a-zA-Z0-9._-]+\.[a-zA-Z0-9_-]+)'),
    # mailto: links
    re.compile(r'mailto:([a-zA-Z0-9._%+-]+@[a-zA-Z0-9._-]+\.[a-zA-Z0-9_-]+)', re.IGNORECASE),
    # name [at] domain [dot] com
    re.compile(
        r'([a-zA-Z0-9._-]+\s*[\[\(\{]\s*at\s*[\]\)\}]\s*[a-zA-Z0-9._-]+'
        r'(?:\s*[\[\(\{]\s*dot\s*[\]\)\}]\s*[a-zA-Z0-9_-]+)+)',
        re.IGNORECASE
    ),
    # name @ domain . com, spaces on both sides of a separator or none
    re.compile(r'([a-zA-Z0-9._-]+(?:\s+@\s+|@)[a-zA-Z0-9_-]+(?:(?:\s+\.\s+|\.)[a-zA-Z0-9_-]+)+)'),
    # name at domain dot com
    re.compile(r'\b([a-zA-Z0-9._-]+\s+at\s+[a-zA-Z0-9_-]+(?:\s+dot\s+[a-zA-Z0-9_-]+)+)\b', re.IGNORECASE),
]

AT_TOKEN = re.compile(r'\s*[\[\(\{]\s*at\s*[\]\)\}]\s*|\s+at\s+', re.IGNORECASE)
DOT_TOKEN = re.compile(r'\s*[\[\(\{]\s*dot\s*[\]\)\}]\s*|\s+dot\s+', re.IGNORECASE)
VALID_EMAIL = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9._-]+\.[a-zA-Z0-9_-]+$')

# Image and asset names that look like addresses (logo@2x.png)
ASSET_SUFFIXES = ('.png', '.jpg', '.jpeg', '.gif', '.svg', '.webp', '.css', '.js', '.ico')

CONTACT_TERMS = ['contact', 'get in touch', 'reach us', 'email us', 'about us', 'about', 'our team']

ADDITIONAL_EMAILS_PREFIX = 'Additional emails: '


def _clean_candidate(match: str) -> str:
    email = AT_TOKEN.sub('@', match)
    email = DOT_TOKEN.sub('.', email)
    email = re.sub(r'\s+', '', email)
    email = re.sub(r'[^\w.@+-]+$', '', email)
    return email.strip('.').lower()


def _is_valid(email: str) -> bool:
    if not VALID_EMAIL.match(email) or email.endswith(ASSET_SUFFIXES):
        return False
    try:
        validate_email(email, check_deliverability=False)
        return True
    except EmailNotValidError:
        return False


def extract_emails_from_text(text: str) -> List[str]:
    """
    Extract email addresses using every regex pass

    Args:
        text: Page HTML or plain text

    Returns:
        Unique addresses, in discovery order
    """
    emails = []
    if not text:
        return emails

    for pattern in EMAIL_REGEX_PATTERNS:
        for match in pattern.findall(text):
            email = _clean_candidate(match)
            if email not in emails and _is_valid(email):
                emails.append(email)

    return emails


def find_contact_links(html: str) -> List[str]:
    """Hrefs of anchors whose target or text suggests a contact/about page"""
    soup = BeautifulSoup(html or '', 'html.parser')
    links = []

    for anchor in soup.find_all('a', href=True):
        href = anchor['href'].strip()
        text = anchor.get_text(' ').lower()

        if not href or href.startswith('#') or href.lower().startswith(('javascript:', 'mailto:')):
            continue

        if any(term in href.lower() or term in text for term in CONTACT_TERMS):
            if href not in links:
                links.append(href)

    return links


def _absolute_url(url: str) -> str:
    url = url.strip()
    if not url.startswith(('http://', 'https://')):
        url = f"https://{url}"
    return url


class EmailEnricher:
    """Secondary pass that fills missing emails from listing websites"""

    def __init__(
        self,
        gateway: Optional[FetchGateway] = None,
        profile: Optional[AntiDetectionProfile] = None
    ):
        self.config = Config()
        self.gateway = gateway or FetchGateway()
        self.profile = profile or AntiDetectionProfile()
        self.threshold = self.config.EMAIL_ENRICH_THRESHOLD
        self.max_records = self.config.EMAIL_ENRICH_MAX_RECORDS
        self.batch_size = max(1, self.config.EMAIL_ENRICH_BATCH_SIZE)
        self.max_contact_pages = self.config.MAX_CONTACT_PAGES

    def should_skip(self, records: List[BusinessData]) -> bool:
        """Enough records already carry an email"""
        emails_found = sum(1 for record in records if record.has_email)
        logger.info(f"Found {emails_found} emails in initial results")
        return emails_found >= len(records) * self.threshold

    async def _fetch_page(self, url: str, headers: dict) -> Optional[str]:
        result = await self.gateway.fetch_html(url, headers)
        return result.html if result.ok else None

    async def discover_emails(self, website: str, headers: dict) -> List[str]:
        """Emails on a website, following contact/about links when the homepage has none"""
        site_url = _absolute_url(website)
        html = await self._fetch_page(site_url, headers)
        if not html:
            return []

        emails = extract_emails_from_text(html)
        if emails:
            return emails

        contact_links = find_contact_links(html)
        if contact_links:
            logger.debug(f"Found {len(contact_links)} potential contact page links on {site_url}")

        for link in contact_links[:self.max_contact_pages]:
            contact_url = urljoin(site_url, link)
            logger.debug(f"Checking contact page: {contact_url}")
            await self.profile.sleep_jittered(0)

            contact_html = await self._fetch_page(contact_url, headers)
            if not contact_html:
                continue

            contact_emails = extract_emails_from_text(contact_html)
            if contact_emails:
                return contact_emails

        return []

    async def _enrich_record(self, record: BusinessData, config: ScrapeConfig, headers: dict) -> bool:
        if record.has_email or not record.website:
            return False

        try:
            await self.profile.sleep_jittered(config.policy.base_delay_seconds or 3)
            emails = await self.discover_emails(record.website, headers)
        except Exception as e:
            logger.warning(f"Email enrichment failed for {record.name}: {str(e)[:100]}")
            return False

        if not emails:
            return False

        logger.info(f"Found email address for {record.name}: {emails[0]}")
        record.email = emails[0]

        if len(emails) > 1:
            note = f"{ADDITIONAL_EMAILS_PREFIX}{', '.join(emails[1:])}"
            record.description = f"{record.description or ''}\n{note}".strip()

        return True

    async def enrich(
        self,
        records: List[BusinessData],
        config: ScrapeConfig,
        cancel_token: Optional[CancelToken] = None
    ) -> int:
        """
        Fill missing emails in place

        Args:
            records: Extracted records, mutated in place
            config: Run configuration (delay and user-agent policy)
            cancel_token: Checked between batches

        Returns:
            Number of records that gained an email
        """
        if self.should_skip(records):
            logger.info("Sufficient emails already found, skipping enhancement")
            return 0

        user_agent = self.profile.user_agent_for(config.policy.use_random_user_agents)
        headers = self.profile.emulated_headers(user_agent)

        to_scan = records[:min(self.max_records, len(records))]
        logger.info(f"Enhancing up to {len(to_scan)} results with email extraction")

        enriched = 0
        for start in range(0, len(to_scan), self.batch_size):
            check_cancelled(cancel_token)
            batch = to_scan[start:start + self.batch_size]
            outcomes = await asyncio.gather(
                *(self._enrich_record(record, config, headers) for record in batch)
            )
            enriched += sum(1 for outcome in outcomes if outcome)
            logger.debug(f"Processed {min(start + self.batch_size, len(to_scan))} out of {len(to_scan)} results")

        logger.info(f"Email enrichment added {enriched} emails")
        return enriched
