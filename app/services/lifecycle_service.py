"""Concession application lifecycle: submission, decisions, validity and renewal."""

import enum
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Sequence

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.concession import ApplicationStatus, ConcessionApplication, PassType
from app.models.user import User
from app.schemas.concession import ConcessionDraft, ConcessionSubmission, PassDates
from app.utils.dates import add_months, as_utc, end_of_day, start_of_day, utcnow
from core.config import config
from core.db import PersistenceGateway
from core.exceptions.base import (
    InvalidTransitionException,
    NotFoundException,
    ValidationException,
)
from core.logging import get_logger

logger = get_logger(__name__)

MONTHLY_PASS_DAYS = 30
QUARTERLY_PASS_MONTHS = 3

# Applicant and travel details carried into a renewal draft
RENEWAL_FIELDS = (
    "year",
    "category",
    "branch",
    "from_station",
    "to_station",
    "class_type",
    "railway_type",
    "pass_type",
    "date_of_birth",
    "season_ticket_no",
)


def derive_age(date_of_birth: date, on: date) -> int:
    """Completed years between ``date_of_birth`` and ``on``."""
    years = on.year - date_of_birth.year
    if (on.month, on.day) < (date_of_birth.month, date_of_birth.day):
        years -= 1
    return years


def derive_expiry(issue_date: date, pass_type: PassType | str) -> date:
    """
    Expiry of a pass issued on ``issue_date``.

    Monthly passes run 30 days; quarterly passes run three calendar months.
    Used for applicant-entered and administrator-entered dates alike.
    """
    if PassType(pass_type) == PassType.MONTHLY:
        return issue_date + timedelta(days=MONTHLY_PASS_DAYS)
    return add_months(issue_date, QUARTERLY_PASS_MONTHS)


def is_expired(record: ConcessionApplication, now: datetime) -> bool:
    """True iff the record has a validity window and ``now`` is past its end."""
    valid_until = as_utc(record.valid_until)
    return valid_until is not None and as_utc(now) > valid_until


def validate_draft(draft: ConcessionDraft) -> ConcessionSubmission:
    """Check a draft for missing or out-of-range fields."""
    try:
        return ConcessionSubmission.model_validate(draft.model_dump(exclude_none=True))
    except ValidationError as exc:
        errors = [
            {
                "field": ".".join(str(part) for part in error["loc"]),
                "message": error["msg"],
            }
            for error in exc.errors()
        ]
        field = errors[0]["field"]
        raise ValidationException(
            message=f"Invalid or missing field: {field}",
            data={"field": field, "errors": errors},
        ) from exc


def _plain(value):
    return value.value if isinstance(value, enum.Enum) else value


class LifecycleService:
    """
    Applies state transitions to concession applications.

    Status moves pending -> approved or pending -> rejected, exactly once.
    Expiry is not a status: it is derived from ``valid_until`` whenever it is
    read. Every mutation returns the freshly stored record.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.gateway = PersistenceGateway(db_session)
        self.clock = clock

    def _now(self) -> datetime:
        return as_utc(self.clock())

    async def get_application(self, application_id: str) -> ConcessionApplication:
        """Get an application or raise NotFoundException."""
        record = await self.gateway.get(ConcessionApplication, application_id)
        if not record:
            raise NotFoundException(data={"application_id": application_id})
        return record

    async def list_applications(
        self, student_id: Optional[str] = None
    ) -> Sequence[ConcessionApplication]:
        """All applications (or one student's), newest first."""
        filters = {"student_id": student_id} if student_id else None
        return await self.gateway.query(ConcessionApplication, filters)

    async def submit(self, student: User, draft: ConcessionDraft) -> ConcessionApplication:
        """
        Validate a draft and store it as a new pending application.

        Age and previous pass expiry are derived here; any applicant-entered
        values for them are not consulted.
        """
        submission = validate_draft(draft)
        now = self._now()

        if submission.date_of_birth > now.date():
            raise ValidationException(
                message="Date of birth cannot be in the future",
                data={"field": "date_of_birth"},
            )

        if submission.supersedes_id:
            prior = await self.gateway.get(ConcessionApplication, submission.supersedes_id)
            if not prior or prior.student_id != student.id:
                raise ValidationException(
                    message="Application being renewed was not found",
                    data={"field": "supersedes_id"},
                )

        previous_pass_expiry = None
        if submission.previous_pass_date:
            previous_pass_expiry = derive_expiry(
                submission.previous_pass_date, submission.pass_type
            )

        values = submission.model_dump()
        values.update(
            student_id=student.id,
            student_name=student.name,
            age=derive_age(submission.date_of_birth, now.date()),
            previous_pass_expiry=previous_pass_expiry,
            status=ApplicationStatus.PENDING,
            valid_from=None,
            valid_until=None,
            created_at=now,
            updated_at=now,
        )
        application_id = await self.gateway.insert(ConcessionApplication, values)
        logger.info(
            f"Application submitted: {application_id} by student {student.id}"
            + (f" (renews {submission.supersedes_id})" if submission.supersedes_id else "")
        )
        return await self.get_application(application_id)

    async def decide(
        self,
        application_id: str,
        decision: ApplicationStatus | str,
        pass_dates: Optional[PassDates] = None,
        decided_by: Optional[str] = None,
    ) -> ConcessionApplication:
        """
        Approve or reject a pending application.

        Approval may carry administrator pass dates, which replace the
        applicant's previous pass dates and define the validity window.
        Rejection leaves pass and validity fields untouched.
        """
        try:
            decision = ApplicationStatus(decision)
        except ValueError:
            decision = None
        if decision not in (ApplicationStatus.APPROVED, ApplicationStatus.REJECTED):
            raise ValidationException(
                message="Decision must be approved or rejected",
                data={"field": "decision"},
            )

        record = await self.get_application(application_id)
        if record.status != ApplicationStatus.PENDING:
            logger.warning(
                f"Refused decision {decision.value} on {application_id}: already {record.status.value}"
            )
            raise InvalidTransitionException(
                data={"application_id": application_id, "status": record.status.value}
            )

        now = self._now()
        patch = {
            "status": decision,
            "decided_at": now,
            "decided_by": decided_by,
            "updated_at": now,
        }
        if decision == ApplicationStatus.APPROVED:
            patch.update(self._approval_fields(record, pass_dates, now))

        affected = await self.gateway.update(
            ConcessionApplication,
            application_id,
            patch,
            expected={"status": ApplicationStatus.PENDING},
        )
        if affected == 0:
            # Another administrator decided it between our read and write
            logger.warning(f"Lost decision race on {application_id}")
            raise InvalidTransitionException(data={"application_id": application_id})

        logger.info(f"Application {application_id} {decision.value} by {decided_by}")
        return await self.get_application(application_id)

    def _approval_fields(
        self,
        record: ConcessionApplication,
        pass_dates: Optional[PassDates],
        now: datetime,
    ) -> dict:
        if pass_dates is None:
            return {
                "valid_from": now,
                "valid_until": end_of_day(derive_expiry(now.date(), record.pass_type)),
            }

        issue_date = pass_dates.issue_date
        expiry_date = pass_dates.expiry_date or derive_expiry(issue_date, record.pass_type)
        if expiry_date < issue_date:
            raise ValidationException(
                message="Pass expiry date cannot precede the issue date",
                data={"field": "pass_dates.expiry_date"},
            )
        return {
            "previous_pass_date": issue_date,
            "previous_pass_expiry": expiry_date,
            "valid_from": start_of_day(issue_date),
            "valid_until": end_of_day(expiry_date),
        }

    async def extend_validity(self, application_id: str, months: int) -> ConcessionApplication:
        """
        Push an approved pass's expiry out by ``months`` calendar months.

        Extends from the current expiry, or from now when none is set, whether
        or not the pass has already lapsed.
        """
        if months < 1 or months > config.MAX_EXTENSION_MONTHS:
            raise ValidationException(
                message=f"Extension must be between 1 and {config.MAX_EXTENSION_MONTHS} months",
                data={"field": "months"},
            )

        record = await self.get_application(application_id)
        if record.status != ApplicationStatus.APPROVED:
            raise InvalidTransitionException(
                message="Only approved passes can be extended",
                data={"application_id": application_id, "status": record.status.value},
            )

        now = self._now()
        new_expiry = add_months(as_utc(record.valid_until) or now, months)
        affected = await self.gateway.update(
            ConcessionApplication,
            application_id,
            {"valid_until": new_expiry, "updated_at": now},
            expected={"status": ApplicationStatus.APPROVED},
        )
        if affected == 0:
            raise NotFoundException(data={"application_id": application_id})

        logger.info(f"Application {application_id} extended by {months} month(s) to {new_expiry.isoformat()}")
        return await self.get_application(application_id)

    async def renew(
        self, application_id: str, student_id: Optional[str] = None
    ) -> ConcessionDraft:
        """
        Build a draft for renewing an expired pass.

        The expired application is left as it is; submitting the returned
        draft creates a new application that points back at it.
        """
        record = await self.get_application(application_id)
        if student_id and record.student_id != student_id:
            raise NotFoundException(data={"application_id": application_id})

        if record.status != ApplicationStatus.APPROVED or not is_expired(record, self._now()):
            raise InvalidTransitionException(
                message="Only expired passes can be renewed",
                data={"application_id": application_id, "status": record.status.value},
            )

        prefill = {field: _plain(getattr(record, field)) for field in RENEWAL_FIELDS}
        # The pass being renewed becomes the previous pass
        prefill["previous_pass_date"] = record.previous_pass_date
        return ConcessionDraft(**prefill, supersedes_id=record.id)
