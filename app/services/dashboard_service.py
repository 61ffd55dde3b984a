"""Read-only statistics and filtered views over concession applications."""

from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence

from app.models.concession import ApplicationStatus, ConcessionApplication, DocumentSlot
from app.schemas.dashboard import (
    ApplicationFilter,
    DashboardStatsResponse,
    DocumentPresence,
    StatusCounts,
)

SEARCH_FIELDS = ("student_name", "concession_form_no", "from_station", "to_station")


def _value(value) -> Optional[str]:
    return getattr(value, "value", value)


def count_by_status(records: Sequence[ConcessionApplication]) -> StatusCounts:
    """Count applications per status. The buckets always sum to the total."""
    counts = Counter(_value(record.status) for record in records)
    return StatusCounts(
        total=len(records),
        pending=counts[ApplicationStatus.PENDING.value],
        approved=counts[ApplicationStatus.APPROVED.value],
        rejected=counts[ApplicationStatus.REJECTED.value],
    )


def group_by_branch(records: Iterable[ConcessionApplication]) -> Dict[str, int]:
    """Applications per branch, only for branches that appear."""
    return dict(Counter(_value(record.branch) for record in records))


def has_documents(record: ConcessionApplication) -> bool:
    return any(record.document_reference(slot) is not None for slot in DocumentSlot)


def _matches_search(record: ConcessionApplication, term: str) -> bool:
    term = term.lower()
    return any(term in (getattr(record, field) or "").lower() for field in SEARCH_FIELDS)


def filter_applications(
    records: Sequence[ConcessionApplication],
    filters: Optional[ApplicationFilter] = None,
) -> List[ConcessionApplication]:
    """
    Project ``records`` through the admin filters, keeping input order.

    The search term matches name, form number or either station
    (case-insensitive substring); every other filter must match exactly.
    """
    if filters is None:
        return list(records)

    def keep(record: ConcessionApplication) -> bool:
        if filters.search_term and not _matches_search(record, filters.search_term):
            return False
        if filters.status and _value(record.status) != filters.status.value:
            return False
        if filters.branch and _value(record.branch) != filters.branch.value:
            return False
        if filters.year and _value(record.year) != filters.year.value:
            return False
        if filters.documents == DocumentPresence.WITH_DOCS:
            return has_documents(record)
        if filters.documents == DocumentPresence.WITHOUT_DOCS:
            return not has_documents(record)
        return True

    return [record for record in records if keep(record)]


def dashboard_stats(records: Sequence[ConcessionApplication]) -> DashboardStatsResponse:
    """Counts and branch breakdown for the overview screens."""
    return DashboardStatsResponse(
        counts=count_by_status(records),
        by_branch=group_by_branch(records),
    )
