"""
Initial load of the admin issue list.

``load_issues`` performs the authorized fetch and turns every failure into a
``LoadError`` value, so nothing raised while loading reaches the page.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from dashboard_state import DashboardController
from issue_api import fetch_issue_list
from issue_models import IssueRecord, LoadError, LoadPhase, LoadResult


FORBIDDEN_STATUS = 403

Fetcher = Callable[[Optional[str]], List[Dict[str, Any]]]

logger = logging.getLogger(__name__)


def classify_failure(exc: BaseException) -> LoadError:
    status_code = getattr(exc, "status_code", None)
    if status_code == FORBIDDEN_STATUS:
        return LoadError.access_denied(status_code)
    return LoadError.load_failure(status_code)


def load_issues(credential: Optional[str], fetch: Fetcher = fetch_issue_list) -> LoadResult:
    try:
        payload = fetch(credential)
        issues = [IssueRecord.from_dict(item) for item in payload]
    except Exception as exc:
        error = classify_failure(exc)
        logger.warning("Issue load failed (%s): %s", error.kind.value, exc)
        return LoadResult.failure(error)

    logger.debug("Loaded %d issues", len(issues))
    return LoadResult.success(issues)


def run_initial_load(
    controller: DashboardController,
    credential: Optional[str],
    fetch: Fetcher = fetch_issue_list,
) -> bool:
    """Load once for this controller. Returns False when there was nothing to do."""

    if controller.torn_down or controller.load_phase is not LoadPhase.LOADING:
        return False

    result = load_issues(credential, fetch)
    if result.ok:
        controller.on_load_succeeded(result.issues)
    else:
        controller.on_load_failed(result.error)
    return True
