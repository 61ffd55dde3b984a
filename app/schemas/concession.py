"""Concession application schemas."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import Field, field_validator

from app.models.concession import (
    AcademicYear,
    ApplicationStatus,
    Branch,
    Category,
    ClassType,
    PassType,
    RailwayType,
)
from app.schemas.base import BaseSchema


class ConcessionDraft(BaseSchema):
    """
    An application as typed by the student, possibly incomplete.

    Fields are loosely typed; the lifecycle service validates them on
    submit and names the offending field. Renewal returns one of these
    prefilled from the expired application.
    """

    year: Optional[str] = None
    category: Optional[str] = None
    branch: Optional[str] = None
    from_station: Optional[str] = None
    to_station: Optional[str] = None
    class_type: Optional[str] = None
    railway_type: Optional[str] = None
    pass_type: Optional[str] = None
    date_of_birth: Optional[date] = None
    concession_form_no: Optional[str] = None
    season_ticket_no: Optional[str] = None
    previous_pass_date: Optional[date] = None
    supersedes_id: Optional[str] = None


class ConcessionSubmission(BaseSchema):
    """Fully validated draft, ready to persist."""

    year: AcademicYear
    category: Category
    branch: Branch
    from_station: str = Field(..., min_length=1, max_length=100)
    to_station: str = Field(..., min_length=1, max_length=100)
    class_type: ClassType
    railway_type: RailwayType
    pass_type: PassType
    date_of_birth: date
    concession_form_no: str = Field(..., min_length=1, max_length=50)
    season_ticket_no: Optional[str] = Field(None, max_length=50)
    previous_pass_date: Optional[date] = None
    supersedes_id: Optional[str] = None


class PassDates(BaseSchema):
    """Pass dates an administrator records when approving."""

    issue_date: date
    expiry_date: Optional[date] = None  # derived from the pass type when omitted


class DecisionRequest(BaseSchema):
    """Administrator decision on a pending application."""

    decision: ApplicationStatus
    pass_dates: Optional[PassDates] = None

    @field_validator("decision")
    @classmethod
    def validate_decision(cls, v: ApplicationStatus) -> ApplicationStatus:
        if v == ApplicationStatus.PENDING:
            raise ValueError("Decision must be approved or rejected")
        return v


class ExtendValidityRequest(BaseSchema):
    """Extend an approved pass by a number of calendar months."""

    months: int = Field(..., ge=1)


class ConcessionApplicationResponse(BaseSchema):
    """Concession application response."""

    id: str
    student_id: str
    student_name: str
    year: AcademicYear
    category: Category
    branch: Branch
    from_station: str
    to_station: str
    class_type: ClassType
    railway_type: RailwayType
    pass_type: PassType
    date_of_birth: date
    age: int
    concession_form_no: str
    season_ticket_no: Optional[str] = None
    previous_pass_date: Optional[date] = None
    previous_pass_expiry: Optional[date] = None
    id_card_url: Optional[str] = None
    aadhar_url: Optional[str] = None
    fee_receipt_url: Optional[str] = None
    status: ApplicationStatus
    decided_at: Optional[datetime] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    is_expired: bool = False
    supersedes_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ConcessionApplicationListResponse(BaseSchema):
    """List of concession applications, newest first."""

    items: List[ConcessionApplicationResponse]
    total: int


class DocumentCompleteness(BaseSchema):
    """How many of the evidence slots are filled."""

    uploaded: int
    total: int = 3


class DocumentBundleResponse(BaseSchema):
    """Evidence pointers for an application."""

    application_id: str
    id_card_url: Optional[str] = None
    aadhar_url: Optional[str] = None
    fee_receipt_url: Optional[str] = None
    completeness: DocumentCompleteness
