"""Administrator review, decision and export endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_admin
from app.models.concession import AcademicYear, ApplicationStatus, Branch
from app.models.user import User
from app.schemas.concession import (
    ConcessionApplicationListResponse,
    ConcessionApplicationResponse,
    DecisionRequest,
    ExtendValidityRequest,
)
from app.schemas.dashboard import ApplicationFilter, DashboardStatsResponse, DocumentPresence
from app.services.dashboard_service import dashboard_stats, filter_applications
from app.services.export_service import ExportService
from app.services.lifecycle_service import LifecycleService
from app.utils.dates import utcnow
from core.db import get_db
from core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/admin/applications", tags=["Admin"])


@router.get("", response_model=ConcessionApplicationListResponse)
async def list_applications(
    search: Optional[str] = Query(None, description="Name, form number or station"),
    status: Optional[ApplicationStatus] = None,
    branch: Optional[Branch] = None,
    year: Optional[AcademicYear] = None,
    documents: DocumentPresence = DocumentPresence.ANY,
    current_user: User = Depends(get_current_admin),
    db_session: AsyncSession = Depends(get_db),
) -> ConcessionApplicationListResponse:
    """List all applications, newest first, with optional filters (admin only)."""
    records = await LifecycleService(db_session).list_applications()
    filtered = filter_applications(
        records,
        ApplicationFilter(
            search_term=search,
            status=status,
            branch=branch,
            year=year,
            documents=documents,
        ),
    )
    return ConcessionApplicationListResponse(
        items=[ConcessionApplicationResponse.model_validate(r) for r in filtered],
        total=len(filtered),
    )


@router.get("/stats", response_model=DashboardStatsResponse)
async def get_stats(
    current_user: User = Depends(get_current_admin),
    db_session: AsyncSession = Depends(get_db),
) -> DashboardStatsResponse:
    """Status counts and branch breakdown across all applications (admin only)."""
    records = await LifecycleService(db_session).list_applications()
    return dashboard_stats(records)


@router.get("/export")
async def export_approved(
    current_user: User = Depends(get_current_admin),
    db_session: AsyncSession = Depends(get_db),
) -> StreamingResponse:
    """Download approved applications as a PDF (admin only)."""
    logger.info(f"Approved applications export by admin: {current_user.id}")
    records = await LifecycleService(db_session).list_applications()

    generated_at = utcnow()
    pdf_buffer = ExportService.generate_approved_pdf(records, generated_at)
    filename = ExportService.export_filename(generated_at)

    return StreamingResponse(
        pdf_buffer,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.post("/{application_id}/decision", response_model=ConcessionApplicationResponse)
async def decide_application(
    application_id: str,
    data: DecisionRequest,
    current_user: User = Depends(get_current_admin),
    db_session: AsyncSession = Depends(get_db),
) -> ConcessionApplicationResponse:
    """
    Approve or reject a pending application (admin only).

    Pass dates are optional on approval; a missing expiry is derived from the
    pass type. Deciding an application that is no longer pending returns 409.
    """
    service = LifecycleService(db_session)
    record = await service.decide(
        application_id,
        data.decision,
        pass_dates=data.pass_dates,
        decided_by=current_user.id,
    )
    return ConcessionApplicationResponse.model_validate(record)


@router.post("/{application_id}/extend", response_model=ConcessionApplicationResponse)
async def extend_application(
    application_id: str,
    data: ExtendValidityRequest,
    current_user: User = Depends(get_current_admin),
    db_session: AsyncSession = Depends(get_db),
) -> ConcessionApplicationResponse:
    """Extend an approved pass by whole calendar months (admin only)."""
    logger.info(f"Extend {application_id} by {data.months} month(s), admin: {current_user.id}")
    record = await LifecycleService(db_session).extend_validity(application_id, data.months)
    return ConcessionApplicationResponse.model_validate(record)
