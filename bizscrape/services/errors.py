"""
Scraping Pipeline Errors
"""


class ScrapeError(Exception):
    """Base class for pipeline errors"""


class PolicyDeniedError(ScrapeError):
    """Target site is off limits for this run"""

    def __init__(self, url: str, reason: str):
        super().__init__(reason)
        self.url = url
        self.reason = reason


class FetchExhaustedError(ScrapeError):
    """Every relay failed or returned unusable content"""

    def __init__(self, url: str, attempts: int = 0):
        super().__init__(f"All {attempts} relays failed for {url}")
        self.url = url
        self.attempts = attempts


class PersistenceError(ScrapeError):
    """The record store could not be read or written"""


class RunCancelledError(ScrapeError):
    """The operator abandoned the run"""
