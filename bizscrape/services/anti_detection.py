"""
Anti-Detection Profile
Rotating user agents, placeholder proxy labels, browser-like headers and jittered delays
"""

import asyncio
import random
from typing import Dict, Optional, Sequence

from fake_useragent import UserAgent
from loguru import logger

from bizscrape.config import Config


# Curated desktop and mobile browser strings
USER_AGENTS = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36',
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.0 Safari/605.1.15',
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:109.0) Gecko/20100101 Firefox/119.0',
    'Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36',
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.0.0',
    'Mozilla/5.0 (iPhone; CPU iPhone OS 17_1 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1',
    'Mozilla/5.0 (iPad; CPU OS 17_1 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) CriOS/119.0.6045.169 Mobile/15E148 Safari/604.1',
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36',
)

# Labels only; real egress IPs must be supplied by a proxy provider
PROXY_LABELS = (
    'proxy1.example.com:8080',
    'proxy2.example.com:8080',
    'proxy3.example.com:8080',
)

MAX_JITTER_MS = 2000


class AntiDetectionProfile:
    """Stateless selector over immutable UA and proxy pools"""

    def __init__(
        self,
        user_agents: Sequence[str] = USER_AGENTS,
        proxy_labels: Sequence[str] = PROXY_LABELS,
        rng: Optional[random.Random] = None,
        use_fake_useragent: Optional[bool] = None
    ):
        if not user_agents:
            raise ValueError("At least one user agent is required")
        self.config = Config()
        self.user_agents = tuple(user_agents)
        self.proxy_labels = tuple(proxy_labels)
        self.rng = rng or random.Random()

        if use_fake_useragent is None:
            use_fake_useragent = self.config.USE_FAKE_USERAGENT
        self.ua = UserAgent(fallback=self.user_agents[0]) if use_fake_useragent else None

    def random_user_agent(self) -> str:
        """Pick a user agent uniformly from the curated pool"""
        if self.ua is not None and self.rng.random() < 0.3:
            try:
                return self.ua.random
            except Exception as e:
                logger.debug(f"fake-useragent lookup failed: {str(e)}")
        return self.rng.choice(self.user_agents)

    def random_proxy_label(self) -> Optional[str]:
        if not self.proxy_labels:
            return None
        return self.rng.choice(self.proxy_labels)

    def user_agent_for(self, use_random: bool) -> str:
        """User agent for a run, honouring the operator's rotation toggle"""
        if use_random:
            return self.random_user_agent()
        return self.config.CRAWLER_USER_AGENT

    @staticmethod
    def emulated_headers(user_agent: str) -> Dict[str, str]:
        """Headers of a real browser navigation request"""
        return {
            'User-Agent': user_agent,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.9',
            'Accept-Encoding': 'gzip, deflate',
            'Connection': 'keep-alive',
            'Upgrade-Insecure-Requests': '1',
            'Sec-Fetch-Dest': 'document',
            'Sec-Fetch-Mode': 'navigate',
            'Sec-Fetch-Site': 'none',
            'Sec-Fetch-User': '?1',
            'Cache-Control': 'max-age=0',
        }

    def jittered_delay_ms(self, base_seconds: float) -> float:
        """Base delay plus up to two seconds of uniform jitter"""
        return max(0.0, base_seconds) * 1000 + self.rng.uniform(0, MAX_JITTER_MS)

    async def sleep_jittered(self, base_seconds: float) -> float:
        """Suspend for a jittered delay, returns the delay used in ms"""
        delay = self.jittered_delay_ms(base_seconds)
        await asyncio.sleep(delay / 1000)
        return delay


class NoDelayProfile(AntiDetectionProfile):
    """Profile that never waits, for tests and previews"""

    def jittered_delay_ms(self, base_seconds: float) -> float:
        return 0.0
