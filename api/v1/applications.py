"""Student-facing concession application endpoints."""

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_student, get_current_user
from app.models.concession import ConcessionApplication, DocumentSlot
from app.models.user import Role, User
from app.schemas.concession import (
    ConcessionApplicationListResponse,
    ConcessionApplicationResponse,
    ConcessionDraft,
    DocumentBundleResponse,
)
from app.schemas.dashboard import DashboardStatsResponse
from app.services.dashboard_service import dashboard_stats
from app.services.document_service import DocumentBundle, bundle_for
from app.services.file_service import DocumentStorage, get_document_storage
from app.services.lifecycle_service import LifecycleService
from core.db import get_db
from core.exceptions.base import NotFoundException
from core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/applications", tags=["Applications"])


async def _get_visible_application(
    service: LifecycleService, application_id: str, user: User
) -> ConcessionApplication:
    """Students only see their own applications; admins see all."""
    record = await service.get_application(application_id)
    if user.role != Role.ADMIN and record.student_id != user.id:
        raise NotFoundException(data={"application_id": application_id})
    return record


@router.post("", response_model=ConcessionApplicationResponse)
async def submit_application(
    draft: ConcessionDraft,
    current_user: User = Depends(get_current_student),
    db_session: AsyncSession = Depends(get_db),
) -> ConcessionApplicationResponse:
    """
    Submit a concession application.

    Age and previous pass expiry are computed by the server. To renew an
    expired pass, submit the draft returned by the renew endpoint, which
    carries ``supersedes_id``.
    """
    service = LifecycleService(db_session)
    record = await service.submit(current_user, draft)
    return ConcessionApplicationResponse.model_validate(record)


@router.get("/me", response_model=ConcessionApplicationListResponse)
async def list_my_applications(
    current_user: User = Depends(get_current_student),
    db_session: AsyncSession = Depends(get_db),
) -> ConcessionApplicationListResponse:
    """List the current student's applications, newest first."""
    records = await LifecycleService(db_session).list_applications(student_id=current_user.id)
    return ConcessionApplicationListResponse(
        items=[ConcessionApplicationResponse.model_validate(r) for r in records],
        total=len(records),
    )


@router.get("/me/stats", response_model=DashboardStatsResponse)
async def get_my_stats(
    current_user: User = Depends(get_current_student),
    db_session: AsyncSession = Depends(get_db),
) -> DashboardStatsResponse:
    """Status counts for the student overview."""
    records = await LifecycleService(db_session).list_applications(student_id=current_user.id)
    return dashboard_stats(records)


@router.get("/{application_id}", response_model=ConcessionApplicationResponse)
async def get_application(
    application_id: str,
    current_user: User = Depends(get_current_user),
    db_session: AsyncSession = Depends(get_db),
) -> ConcessionApplicationResponse:
    """Get a single application."""
    record = await _get_visible_application(
        LifecycleService(db_session), application_id, current_user
    )
    return ConcessionApplicationResponse.model_validate(record)


@router.post("/{application_id}/renew", response_model=ConcessionDraft)
async def renew_application(
    application_id: str,
    current_user: User = Depends(get_current_student),
    db_session: AsyncSession = Depends(get_db),
) -> ConcessionDraft:
    """
    Start renewing an expired pass.

    Returns a draft prefilled from the expired application. Nothing is stored
    until the draft is submitted.
    """
    logger.info(f"Renewal draft requested for {application_id} by {current_user.id}")
    service = LifecycleService(db_session)
    return await service.renew(application_id, student_id=current_user.id)


@router.get("/{application_id}/documents", response_model=DocumentBundleResponse)
async def get_documents(
    application_id: str,
    current_user: User = Depends(get_current_user),
    db_session: AsyncSession = Depends(get_db),
) -> DocumentBundleResponse:
    """Evidence links and how many slots are filled."""
    record = await _get_visible_application(
        LifecycleService(db_session), application_id, current_user
    )
    return bundle_for(record)


@router.post("/{application_id}/documents/{slot}", response_model=DocumentBundleResponse)
async def upload_document(
    application_id: str,
    slot: DocumentSlot,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_student),
    db_session: AsyncSession = Depends(get_db),
    storage: DocumentStorage = Depends(get_document_storage),
) -> DocumentBundleResponse:
    """Upload an ID card, Aadhar card or fee receipt while the application is pending."""
    await _get_visible_application(LifecycleService(db_session), application_id, current_user)

    content = await file.read()
    record = await DocumentBundle(db_session).attach_upload(
        application_id,
        slot,
        storage,
        content=content,
        filename=file.filename or "",
        content_type=file.content_type,
    )
    return bundle_for(record)
