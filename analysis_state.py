"""
Search lifecycle for the dashboard: IDLE -> LOADING -> SUCCESS | ERROR.

Every search gets a token from `begin()`. Only the newest token may settle the
state, so a slow response from an earlier search never overwrites a newer one.
"""

import logging
from enum import Enum
from itertools import count
from typing import Callable, Optional

from data_adapter import FinancialSnapshot
from engine import AnalysisError

logger = logging.getLogger(__name__)


class LoadingState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class AnalysisState:
    """Holds the current search, its result or its error."""

    def __init__(self):
        self._tokens = count(1)
        self._current_token = 0
        self.status = LoadingState.IDLE
        self.snapshot: Optional[FinancialSnapshot] = None
        self.error: Optional[str] = None
        self.query: str = ""
        self.report_type: str = "consolidated"

    @property
    def is_loading(self) -> bool:
        return self.status == LoadingState.LOADING

    def begin(self, query: str, report_type: str = "consolidated") -> int:
        """Start a new search; prior data and error are cleared."""
        self._current_token = next(self._tokens)
        self.status = LoadingState.LOADING
        self.snapshot = None
        self.error = None
        self.query = query
        self.report_type = report_type
        return self._current_token

    def _is_current(self, token: int) -> bool:
        if token != self._current_token:
            logger.debug("Ignoring stale search settlement (token %s, current %s)", token, self._current_token)
            return False
        return True

    def complete(self, token: int, snapshot: FinancialSnapshot) -> bool:
        """Apply a successful result. Returns False if the token is stale."""
        if not self._is_current(token):
            return False
        self.status = LoadingState.SUCCESS
        self.snapshot = snapshot
        self.error = None
        return True

    def fail(self, token: int, message: str) -> bool:
        """Apply a failure. Returns False if the token is stale."""
        if not self._is_current(token):
            return False
        self.status = LoadingState.ERROR
        self.snapshot = None
        self.error = message
        return True

    def run(self, provider: Callable[[str, str], FinancialSnapshot], query: str,
            report_type: str = "consolidated") -> LoadingState:
        """Run one full search through `provider`; provider errors end in ERROR, never raise."""
        token = self.begin(query, report_type)
        try:
            snapshot = provider(query, report_type)
        except (AnalysisError, ValueError) as e:
            self.fail(token, str(e))
            return self.status
        self.complete(token, snapshot)
        return self.status
