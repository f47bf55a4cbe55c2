"""
Authoritative in-memory state for the admin dashboard.

``DashboardController`` is the only writer of the issue collection and the
load phase. Issue cards never mutate state themselves; they report an updated
record or a deleted id and the controller reconciles its collection.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Optional, Protocol, Tuple

from issue_analytics import IssueSummary, summarize
from issue_models import IssueRecord, LoadError, LoadErrorKind, LoadPhase


HOME_ROUTE = "/"
NAVIGATION_DELAY_SECONDS = 2.0

logger = logging.getLogger(__name__)


class Cancellable(Protocol):
    def cancel(self) -> Any: ...


Scheduler = Callable[[float, Callable[[], None]], Cancellable]


class PendingNavigation:
    """Navigation waiting for its owner to fire it. Nothing runs on another thread."""

    def __init__(self, delay: float, action: Callable[[], None]) -> None:
        self.delay = delay
        self.cancelled = False
        self.fired = False
        self._action = action

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> bool:
        if self.cancelled or self.fired:
            return False
        self.fired = True
        self._action()
        return True


def hold_navigation(delay: float, action: Callable[[], None]) -> PendingNavigation:
    return PendingNavigation(delay, action)


def _no_navigation(target: str) -> None:
    logger.info("Navigation to %s requested but no navigator is attached", target)


class DashboardController:
    def __init__(
        self,
        navigate: Callable[[str], None] = _no_navigation,
        scheduler: Scheduler = hold_navigation,
    ) -> None:
        self._issues: List[IssueRecord] = []
        self._phase = LoadPhase.LOADING
        self._error_message: Optional[str] = None
        self._navigate = navigate
        self._scheduler = scheduler
        self._torn_down = False
        self.pending_navigation: Optional[Cancellable] = None

    @property
    def issues(self) -> Tuple[IssueRecord, ...]:
        return tuple(self._issues)

    @property
    def load_phase(self) -> LoadPhase:
        return self._phase

    @property
    def error_message(self) -> Optional[str]:
        return self._error_message if self._phase is LoadPhase.FAILED else None

    @property
    def torn_down(self) -> bool:
        return self._torn_down

    def summary(self) -> IssueSummary:
        return summarize(self._issues)

    def on_load_succeeded(self, issues: Iterable[IssueRecord]) -> None:
        if self._torn_down or self._phase is not LoadPhase.LOADING:
            return
        self._issues = list(issues)
        self._phase = LoadPhase.READY
        self._error_message = None

    def on_load_failed(self, error: LoadError) -> None:
        if self._torn_down or self._phase is not LoadPhase.LOADING:
            return
        self._phase = LoadPhase.FAILED
        self._error_message = error.message
        if error.kind is LoadErrorKind.ACCESS_DENIED and self.pending_navigation is None:
            self.pending_navigation = self._scheduler(
                NAVIGATION_DELAY_SECONDS, self._navigate_home
            )

    def on_issue_updated(self, updated: IssueRecord) -> None:
        if self._torn_down:
            return
        for index, issue in enumerate(self._issues):
            if issue.id == updated.id:
                self._issues[index] = updated
                return
        # The card that sent this should already be in the collection.
        logger.info("Ignoring update for unknown issue %s", updated.id)

    def on_issue_deleted(self, deleted_id: str) -> None:
        if self._torn_down:
            return
        deleted_id = str(deleted_id)
        for index, issue in enumerate(self._issues):
            if issue.id == deleted_id:
                del self._issues[index]
                return

    def teardown(self) -> None:
        self._torn_down = True
        if self.pending_navigation is not None:
            self.pending_navigation.cancel()

    def _navigate_home(self) -> None:
        if self._torn_down:
            return
        self._navigate(HOME_ROUTE)
