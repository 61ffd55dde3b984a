"""Evidence documents attached to concession applications."""

from datetime import datetime
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.concession import ApplicationStatus, ConcessionApplication, DocumentSlot
from app.schemas.concession import DocumentBundleResponse, DocumentCompleteness
from app.services.file_service import DocumentStorage
from app.utils.dates import as_utc, utcnow
from core.db import PersistenceGateway
from core.exceptions.base import (
    CustomException,
    InvalidTransitionException,
    NotFoundException,
)
from core.logging import get_logger

logger = get_logger(__name__)

SLOT_BUCKETS = {
    DocumentSlot.ID_CARD: "id-cards",
    DocumentSlot.AADHAR: "aadhar-cards",
    DocumentSlot.FEE_RECEIPT: "fee-receipts",
}


def completeness(record: ConcessionApplication) -> DocumentCompleteness:
    """Count the filled evidence slots."""
    uploaded = sum(1 for slot in DocumentSlot if record.document_reference(slot) is not None)
    return DocumentCompleteness(uploaded=uploaded, total=len(DocumentSlot))


def bundle_for(record: ConcessionApplication) -> DocumentBundleResponse:
    return DocumentBundleResponse(
        application_id=record.id,
        id_card_url=record.id_card_url,
        aadhar_url=record.aadhar_url,
        fee_receipt_url=record.fee_receipt_url,
        completeness=completeness(record),
    )


class DocumentBundle:
    """Attaches evidence references to applications that are still pending."""

    def __init__(
        self,
        db_session: AsyncSession,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.gateway = PersistenceGateway(db_session)
        self.clock = clock

    async def _get(self, application_id: str) -> ConcessionApplication:
        record = await self.gateway.get(ConcessionApplication, application_id)
        if not record:
            raise NotFoundException(data={"application_id": application_id})
        return record

    def _ensure_pending(self, record: ConcessionApplication) -> None:
        if record.status != ApplicationStatus.PENDING:
            raise InvalidTransitionException(
                message="Documents cannot be changed after a decision",
                data={"application_id": record.id, "status": record.status.value},
            )

    async def attach(
        self, application_id: str, slot: DocumentSlot | str, reference: str
    ) -> ConcessionApplication:
        """Put ``reference`` into ``slot``, replacing whatever was there."""
        slot = DocumentSlot(slot)
        record = await self._get(application_id)
        self._ensure_pending(record)

        affected = await self.gateway.update(
            ConcessionApplication,
            application_id,
            {slot.column: reference, "updated_at": as_utc(self.clock())},
            expected={"status": ApplicationStatus.PENDING},
        )
        if affected == 0:
            raise InvalidTransitionException(
                message="Documents cannot be changed after a decision",
                data={"application_id": application_id},
            )

        logger.info(f"Attached {slot.value} to application {application_id}")
        return await self._get(application_id)

    async def attach_upload(
        self,
        application_id: str,
        slot: DocumentSlot | str,
        storage: DocumentStorage,
        content: bytes,
        filename: str,
        content_type: str | None,
    ) -> ConcessionApplication:
        """Store an uploaded file and attach it; the file is removed if attaching fails for any reason."""
        slot = DocumentSlot(slot)
        self._ensure_pending(await self._get(application_id))

        reference = storage.store(SLOT_BUCKETS[slot], content, filename, content_type)
        try:
            return await self.attach(application_id, slot, reference)
        except CustomException:
            storage.delete(reference)
            raise
