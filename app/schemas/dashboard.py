"""Dashboard statistics and filter schemas."""

import enum
from typing import Dict, Optional

from app.models.concession import AcademicYear, ApplicationStatus, Branch
from app.schemas.base import BaseSchema


class DocumentPresence(str, enum.Enum):
    """Evidence filter for the document review screen."""

    ANY = "any"
    WITH_DOCS = "with_docs"
    WITHOUT_DOCS = "without_docs"


class ApplicationFilter(BaseSchema):
    """Filters for the admin application list. Unset fields do not constrain."""

    search_term: Optional[str] = None
    status: Optional[ApplicationStatus] = None
    branch: Optional[Branch] = None
    year: Optional[AcademicYear] = None
    documents: DocumentPresence = DocumentPresence.ANY


class StatusCounts(BaseSchema):
    """Application counts per status."""

    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0


class DashboardStatsResponse(BaseSchema):
    """Overview numbers for the dashboards."""

    counts: StatusCounts
    by_branch: Dict[str, int]
