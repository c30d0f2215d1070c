"""
Fetch Gateway
Retrieves pages through an ordered list of pass-through relays, first usable response wins
"""

from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar
from urllib.parse import quote

import httpx
from loguru import logger

from bizscrape.config import Config


T = TypeVar('T')

# Content codings httpx decodes without optional extras
DECODED_ENCODINGS = {'', 'identity', 'gzip', 'deflate'}


@dataclass
class FetchResult:
    """Outcome of a relay fetch; failures are values, not exceptions"""
    ok: bool
    html: str = ''
    relay: Optional[str] = None
    status_code: Optional[int] = None
    errors: List[str] = field(default_factory=list)

    @classmethod
    def failure(cls, errors: Optional[List[str]] = None) -> 'FetchResult':
        return cls(ok=False, errors=list(errors or []))

    def __bool__(self) -> bool:
        return self.ok


async def first_success(
    candidates: Sequence[T],
    attempt: Callable[[T], Awaitable[Tuple[Optional[object], Optional[str]]]]
) -> Tuple[Optional[object], List[str]]:
    """
    Try candidates one after another until one yields a value

    Args:
        candidates: Ordered candidates (relay prefixes, search engines, ...)
        attempt: Coroutine returning (value, error); a None value means failure

    Returns:
        Tuple of (first value or None, error messages of failed candidates)
    """
    failures = []
    for candidate in candidates:
        value, error = await attempt(candidate)
        if value is not None:
            return value, failures
        failures.append(f"{candidate}: {error or 'no usable content'}")
    return None, failures


def build_relay_url(relay: str, target_url: str) -> str:
    """Relay prefix plus the encoded target; '{url}' placeholders are filled in"""
    encoded = quote(target_url, safe='')
    if '{url}' in relay:
        return relay.replace('{url}', encoded)
    return f"{relay}{encoded}"


class FetchGateway:
    """HTTP retrieval through pass-through relays"""

    def __init__(
        self,
        relays: Optional[Sequence[str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
        min_length: Optional[int] = None
    ):
        self.config = Config()
        self.relays = list(relays if relays is not None else self.config.RELAY_URLS)
        self.transport = transport
        self.timeout = httpx.Timeout(timeout or self.config.REQUEST_TIMEOUT)
        self.min_length = self.config.MIN_CONTENT_LENGTH if min_length is None else min_length

    def with_relays(self, relays: Sequence[str]) -> 'FetchGateway':
        """Same transport and limits, different relay list"""
        return FetchGateway(
            relays=relays,
            transport=self.transport,
            timeout=self.timeout.read,
            min_length=self.min_length
        )

    def _client(self, headers: Optional[Dict[str, str]]) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self.transport,
            headers=headers or {},
            follow_redirects=True
        )

    async def fetch_html(self, target_url: str, headers: Optional[Dict[str, str]] = None) -> FetchResult:
        """
        Fetch a page through the relay list

        Args:
            target_url: Page to retrieve
            headers: Request headers (browser emulation)

        Returns:
            FetchResult with the body of the first HTTP 200 response of at least min_length bytes
        """
        return await self.fetch_text(target_url, headers, self.min_length)

    async def fetch_text(
        self,
        target_url: str,
        headers: Optional[Dict[str, str]] = None,
        min_length: int = 0
    ) -> FetchResult:
        """Fetch with a custom body length floor"""
        if not self.relays:
            logger.warning(f"No relays configured, cannot fetch {target_url}")
            return FetchResult.failure(['no relays configured'])

        async with self._client(headers) as client:

            async def attempt(relay: str):
                relay_url = build_relay_url(relay, target_url)
                try:
                    logger.debug(f"Fetching {target_url} via relay {relay}")
                    response = await client.get(relay_url)
                except httpx.HTTPError as e:
                    logger.warning(f"Relay {relay} failed for {target_url}: {str(e)[:100]}")
                    return None, str(e)[:100]

                if response.status_code != 200:
                    logger.warning(f"Relay {relay} returned status {response.status_code} for {target_url}")
                    return None, f"status {response.status_code}"

                encoding = response.headers.get('content-encoding', '').strip().lower()
                if encoding not in DECODED_ENCODINGS:
                    logger.warning(f"Relay {relay} returned undecodable {encoding} content for {target_url}")
                    return None, f"unsupported content encoding {encoding}"

                body = response.text
                if len(body) < min_length:
                    logger.warning(f"Relay {relay} returned only {len(body)} bytes for {target_url}")
                    return None, f"body too short ({len(body)} bytes)"

                logger.debug(f"Fetched {len(body)} bytes of {target_url} via {relay}")
                return FetchResult(ok=True, html=body, relay=relay, status_code=200), None

            result, failures = await first_success(self.relays, attempt)

        if result is None:
            logger.warning(f"All {len(self.relays)} relays failed for {target_url}")
            return FetchResult.failure(failures)

        result.errors = failures
        return result
