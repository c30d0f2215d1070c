"""
Crawl Policy Checker
Fetches and parses robots.txt and decides whether a target may be scraped
"""

from typing import Optional, Sequence
from urllib.parse import urlparse

from loguru import logger

from bizscrape.config import Config
from bizscrape.models.scrape import RobotsPolicy, PermissionResult
from bizscrape.services.fetch_gateway import FetchGateway


INVALID_URL_REASON = "Invalid URL format"
DENYLIST_REASON = "This website has strong anti-scraping measures and may block our requests"


def _is_relevant_agent(agent: str) -> bool:
    agent = agent.strip().lower()
    return agent == '*' or 'bot' in agent or 'crawler' in agent


def parse_robots_txt(text: str) -> RobotsPolicy:
    """
    Parse robots.txt content into allow/disallow prefixes and crawl delay

    Only groups addressed to '*' or to agents containing 'bot'/'crawler' count.
    """
    policy = RobotsPolicy()
    relevant = False

    for raw_line in text.splitlines():
        line = raw_line.split('#', 1)[0].strip()
        if not line or ':' not in line:
            continue

        key, _, value = line.partition(':')
        key = key.strip().lower()
        value = value.strip()

        if key == 'user-agent':
            relevant = _is_relevant_agent(value)
            continue

        if not relevant:
            continue

        # An empty Allow/Disallow value carries no prefix
        if key == 'allow' and value:
            policy.allowed_paths.append(value)
        elif key == 'disallow' and value:
            policy.disallowed_paths.append(value)
        elif key == 'crawl-delay':
            try:
                delay = int(float(value))
            except ValueError:
                delay = 0
            policy.crawl_delay = delay or None

    return policy


def _normalize_url(url: str) -> str:
    url = (url or '').strip()
    if not url.startswith(('http://', 'https://')):
        url = f"https://{url}"
    return url


class PolicyChecker:
    """Decides allow/deny/delay for a target URL"""

    def __init__(
        self,
        gateway: Optional[FetchGateway] = None,
        denylist: Optional[Sequence[str]] = None
    ):
        self.config = Config()
        self.gateway = gateway or FetchGateway()
        self.denylist = list(denylist if denylist is not None else self.config.DENYLISTED_SITES)

    def is_denylisted(self, url: str) -> bool:
        """Sites known for aggressive anti-scraping measures"""
        lowered = (url or '').lower()
        return any(entry.lower() in lowered for entry in self.denylist)

    async def fetch_policy(self, domain: str) -> RobotsPolicy:
        """Fetch robots.txt for a domain; unreachable files mean permissive defaults"""
        logger.info(f"Fetching robots.txt from {domain}")
        try:
            result = await self.gateway.fetch_text(f"https://{domain}/robots.txt", min_length=0)
        except Exception as e:
            logger.error(f"Error fetching robots.txt for {domain}: {str(e)}")
            return RobotsPolicy.default()

        if not result.ok:
            logger.warning(f"Couldn't fetch robots.txt from {domain}, using default rules")
            return RobotsPolicy.default()

        policy = parse_robots_txt(result.html)
        logger.debug(
            f"robots.txt for {domain}: {len(policy.allowed_paths)} allow, "
            f"{len(policy.disallowed_paths)} disallow, crawl-delay {policy.crawl_delay}"
        )
        return policy

    async def check_permissions(self, url: str) -> PermissionResult:
        """
        Check whether a URL may be scraped

        Never raises; verification failures fail open.
        """
        try:
            logger.info(f"Checking scraping permissions for {url}")

            parsed = urlparse(_normalize_url(url))
            domain = parsed.hostname
            if not domain:
                return PermissionResult(allowed=False, reason=INVALID_URL_REASON)

            if self.is_denylisted(url):
                logger.warning(f"{domain} is on the anti-scraping denylist")
                return PermissionResult(allowed=False, reason=DENYLIST_REASON)

            policy = await self.fetch_policy(domain)
            recommended_delay = policy.crawl_delay or self.config.SCRAPING_DELAY

            if len(policy.disallowed_paths) > self.config.RESTRICTIVE_DISALLOW_COUNT:
                logger.warning(f"{domain} has many disallowed paths in robots.txt")
                return PermissionResult(
                    allowed=True,
                    reason="Website has restrictive robots.txt but we'll proceed carefully",
                    recommended_delay=recommended_delay,
                    restrictive=True
                )

            path = parsed.path or '/'
            if not policy.is_path_allowed(path):
                logger.warning(f"Path {path} is not allowed by robots.txt")
                return PermissionResult(
                    allowed=False,
                    reason=f"Path {path} is disallowed by robots.txt",
                    recommended_delay=recommended_delay
                )

            if policy.crawl_delay and policy.crawl_delay > self.config.HIGH_CRAWL_DELAY_SECONDS:
                logger.warning(f"Crawl delay is very high: {policy.crawl_delay} seconds")
                return PermissionResult(
                    allowed=True,
                    reason=f"Website requests {policy.crawl_delay}s between requests but we'll proceed carefully",
                    recommended_delay=policy.crawl_delay
                )

            if 'google.com/search' in url:
                return PermissionResult(
                    allowed=True,
                    reason="Note: Google search results scraping requires careful handling to avoid blocks",
                    recommended_delay=recommended_delay
                )

            return PermissionResult(allowed=True, recommended_delay=recommended_delay)

        except Exception as e:
            logger.error(f"Error checking scraping permissions: {str(e)}")
            return PermissionResult(
                allowed=True,
                reason="Could not verify permissions but will proceed"
            )
