import enum
from datetime import date, datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import Date, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base, TimestampMixin


def _enum_column(enum_cls: type[enum.Enum], **kwargs) -> Enum:
    """Store enum values (not member names) as plain strings."""
    return Enum(
        enum_cls,
        native_enum=False,
        values_callable=lambda x: [e.value for e in x],
        validate_strings=True,
        length=32,
        **kwargs,
    )


class ApplicationStatus(str, enum.Enum):
    """Decision status of a concession application."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AcademicYear(str, enum.Enum):
    FE = "FE"
    SE = "SE"
    TE = "TE"
    BE = "BE"


class Branch(str, enum.Enum):
    CIVIL = "Civil"
    COMPUTER = "Computer"
    CHEMICAL = "Chemical"
    ELECTRONICS = "Electronics"
    IT = "IT"
    MECHANICAL = "Mechanical"


class Category(str, enum.Enum):
    OPEN = "Open"
    OBC = "OBC"
    SC = "SC"
    ST = "ST"
    OTHER = "Other"


class ClassType(str, enum.Enum):
    FIRST = "1st Class"
    SECOND = "2nd Class"


class RailwayType(str, enum.Enum):
    CENTRAL = "Central Railway"
    WESTERN = "Western Railway"


class PassType(str, enum.Enum):
    """Billing period of the pass; drives expiry derivation."""

    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"


class DocumentSlot(str, enum.Enum):
    """Evidence slots and the column each one is stored in."""

    ID_CARD = "id_card"
    AADHAR = "aadhar"
    FEE_RECEIPT = "fee_receipt"

    @property
    def column(self) -> str:
        return f"{self.value}_url"


class ConcessionApplication(Base, TimestampMixin):
    """A student's train concession application."""

    __tablename__ = "concession_applications"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid4())
    )
    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )

    # Applicant snapshot at submission time
    student_name: Mapped[str] = mapped_column(String(200), nullable=False)
    year: Mapped[AcademicYear] = mapped_column(_enum_column(AcademicYear), nullable=False)
    branch: Mapped[Branch] = mapped_column(_enum_column(Branch), nullable=False, index=True)
    category: Mapped[Category] = mapped_column(_enum_column(Category), nullable=False)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    concession_form_no: Mapped[str] = mapped_column(String(50), nullable=False)
    season_ticket_no: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Travel
    from_station: Mapped[str] = mapped_column(String(100), nullable=False)
    to_station: Mapped[str] = mapped_column(String(100), nullable=False)
    class_type: Mapped[ClassType] = mapped_column(_enum_column(ClassType), nullable=False)
    railway_type: Mapped[RailwayType] = mapped_column(_enum_column(RailwayType), nullable=False)
    pass_type: Mapped[PassType] = mapped_column(_enum_column(PassType), nullable=False)

    # Prior pass; expiry is always derived or administrator supplied
    previous_pass_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    previous_pass_expiry: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Evidence references (opaque public URLs)
    id_card_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    aadhar_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    fee_receipt_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[ApplicationStatus] = mapped_column(
        _enum_column(ApplicationStatus),
        default=ApplicationStatus.PENDING,
        nullable=False,
        index=True,
    )
    decided_by: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=True
    )
    decided_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Validity window, only set once approved
    valid_from: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    valid_until: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Renewal chain
    supersedes_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("concession_applications.id"), nullable=True, index=True
    )

    def document_reference(self, slot: DocumentSlot) -> Optional[str]:
        """Get the evidence reference stored in a slot."""
        return getattr(self, slot.column)

    @property
    def is_expired(self) -> bool:
        """Whether the validity window has lapsed, evaluated now."""
        from app.services.lifecycle_service import is_expired
        from app.utils.dates import utcnow

        return is_expired(self, utcnow())
