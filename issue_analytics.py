"""
Summary statistics for the admin dashboard.

Every function here is pure: it reads a snapshot of the issue collection and
returns fresh values. Nothing is cached between renders.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Union

import pandas as pd

from issue_models import IssueRecord


DEFAULT_STATUS = "Pending"
RESOLVED_STATUS = "Resolved"
DEFAULT_CATEGORY = "Uncategorized"

IssueLike = Union[IssueRecord, Mapping[str, Any]]


def _read(issue: IssueLike, name: str) -> Any:
    if isinstance(issue, IssueRecord):
        return getattr(issue, name)
    if isinstance(issue, Mapping):
        return issue.get(name)
    return None


def normalize_status(value: Any) -> str:
    return str(value) if value else DEFAULT_STATUS


def normalize_category(value: Any) -> str:
    return str(value) if value else DEFAULT_CATEGORY


def _count(values: Iterable[str]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for value in values:
        counts[value] = counts.get(value, 0) + 1
    return counts


def count_by_status(issues: Iterable[IssueLike]) -> Dict[str, int]:
    return _count(normalize_status(_read(issue, "status")) for issue in issues)


def count_by_category(issues: Iterable[IssueLike]) -> Dict[str, int]:
    return _count(normalize_category(_read(issue, "category")) for issue in issues)


def total_count(issues: Sequence[IssueLike]) -> int:
    return len(issues)


def pending_count(status_counts: Mapping[str, int]) -> int:
    return status_counts.get(DEFAULT_STATUS, 0)


def resolved_count(status_counts: Mapping[str, int]) -> int:
    return status_counts.get(RESOLVED_STATUS, 0)


@dataclass(frozen=True)
class IssueSummary:
    total: int
    pending: int
    resolved: int
    status_counts: Dict[str, int]
    category_counts: Dict[str, int]


def summarize(issues: Sequence[IssueLike]) -> IssueSummary:
    """Build every counter the dashboard shows from one snapshot."""

    status_counts = count_by_status(issues)
    return IssueSummary(
        total=total_count(issues),
        pending=pending_count(status_counts),
        resolved=resolved_count(status_counts),
        status_counts=status_counts,
        category_counts=count_by_category(issues),
    )


def _counts_frame(counts: Mapping[str, int], label: str) -> pd.DataFrame:
    return pd.DataFrame(
        {label: list(counts.keys()), "Issues": list(counts.values())},
        columns=[label, "Issues"],
    )


def status_chart_frame(status_counts: Mapping[str, int]) -> pd.DataFrame:
    return _counts_frame(status_counts, "Status")


def category_chart_frame(category_counts: Mapping[str, int]) -> pd.DataFrame:
    return _counts_frame(category_counts, "Category")


ISSUE_TABLE_COLUMNS = ["Id", "Title", "Status", "Category", "Reported By", "Created At"]


def issues_frame(issues: Sequence[IssueLike]) -> pd.DataFrame:
    """Tabular view of the collection with normalized status and category."""

    rows: List[Dict[str, Any]] = []
    for issue in issues:
        if isinstance(issue, IssueRecord):
            issue_id, extra = issue.id, issue.fields
        else:
            issue_id, extra = issue.get("_id", issue.get("id")), issue
        reporter = extra.get("reportedBy") or extra.get("user")
        if isinstance(reporter, Mapping):
            reporter = reporter.get("name") or reporter.get("email")
        rows.append(
            {
                "Id": issue_id,
                "Title": extra.get("title"),
                "Status": normalize_status(_read(issue, "status")),
                "Category": normalize_category(_read(issue, "category")),
                "Reported By": reporter,
                "Created At": pd.to_datetime(extra.get("createdAt"), errors="coerce"),
            }
        )

    return pd.DataFrame(rows, columns=ISSUE_TABLE_COLUMNS)
