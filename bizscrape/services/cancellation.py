"""
Cooperative cancellation for scrape runs
"""

import threading
from typing import Optional

from bizscrape.services.errors import RunCancelledError


class CancelToken:
    """Set by the operator, checked by the pipeline between stages and batches"""

    def __init__(self):
        self._event = threading.Event()
        self.reason: Optional[str] = None

    def cancel(self, reason: str = 'Cancelled by operator') -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RunCancelledError(self.reason or 'Run cancelled')


def check_cancelled(token: Optional[CancelToken]) -> None:
    """No-op when the caller did not supply a token"""
    if token is not None:
        token.raise_if_cancelled()
