from app.models.concession import (
    AcademicYear,
    ApplicationStatus,
    Branch,
    Category,
    ClassType,
    ConcessionApplication,
    DocumentSlot,
    PassType,
    RailwayType,
)
from app.models.user import Role, User

__all__ = [
    # User
    "User",
    "Role",
    # Concession
    "ConcessionApplication",
    "ApplicationStatus",
    "AcademicYear",
    "Branch",
    "Category",
    "ClassType",
    "RailwayType",
    "PassType",
    "DocumentSlot",
]
