"""Document storage for uploaded evidence files."""

from io import BytesIO
from pathlib import Path
from typing import Optional
from uuid import uuid4

from PIL import Image, UnidentifiedImageError

from core.config import config
from core.exceptions.base import ValidationException
from core.logging import get_logger

logger = get_logger(__name__)

# Stored names take their extension from the validated MIME type, never the client filename
EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "application/pdf": ".pdf",
}
PDF_SIGNATURE = b"%PDF-"


class DocumentStorage:
    """
    Stores evidence files in buckets under the upload directory.

    ``store`` returns a public URL; callers treat it as an opaque reference.
    """

    def __init__(self, upload_dir: Optional[str] = None, public_base_url: Optional[str] = None):
        self.upload_dir = Path(upload_dir or config.UPLOAD_DIR)
        self.public_base_url = (public_base_url or config.PUBLIC_BASE_URL).rstrip("/")
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def validate_file(self, content: bytes, content_type: Optional[str]) -> None:
        """
        Validate file type and size.

        Raises:
            ValidationException: If the file is empty, too large, of a
                disallowed type, an image that cannot be decoded, or a PDF
                without the PDF header
        """
        allowed = config.ALLOWED_IMAGE_TYPES + config.ALLOWED_DOCUMENT_TYPES
        if content_type not in allowed:
            raise ValidationException(
                message=f"Invalid file type. Allowed: {', '.join(allowed)}"
            )

        if not content:
            raise ValidationException(message="File is empty")

        if len(content) > config.MAX_FILE_SIZE:
            max_mb = config.MAX_FILE_SIZE / 1024 / 1024
            raise ValidationException(message=f"File too large (max {max_mb:.0f}MB)")

        if content_type in config.ALLOWED_IMAGE_TYPES:
            try:
                with Image.open(BytesIO(content)) as img:
                    img.verify()
            except (UnidentifiedImageError, OSError, SyntaxError) as e:
                logger.warning(f"Rejected unreadable image upload: {e}")
                raise ValidationException(message="Failed to process image file")

        if content_type == "application/pdf" and not content.startswith(PDF_SIGNATURE):
            raise ValidationException(message="File is not a PDF document")

    def store(
        self,
        bucket: str,
        content: bytes,
        filename: str = "",
        content_type: Optional[str] = None,
    ) -> str:
        """
        Save a file into ``bucket`` and return its public URL.

        Args:
            bucket: Bucket (sub-directory) name, e.g. "id-cards"
            content: Raw file bytes
            filename: Original filename, only logged
            content_type: MIME type reported by the client

        Raises:
            ValidationException: If the file is invalid
        """
        self.validate_file(content, content_type)

        ext = EXTENSIONS.get(content_type, "")
        unique_name = f"{uuid4()}{ext}"

        bucket_dir = self.upload_dir / bucket
        bucket_dir.mkdir(parents=True, exist_ok=True)
        file_path = bucket_dir / unique_name
        file_path.write_bytes(content)

        logger.info(f"Stored document {bucket}/{unique_name} from '{filename}' ({len(content)} bytes)")
        return f"{self.public_base_url}/uploads/{bucket}/{unique_name}"

    def delete(self, reference: str) -> None:
        """Delete a stored file given the reference returned by ``store``."""
        prefix = f"{self.public_base_url}/uploads/"
        if not reference.startswith(prefix):
            logger.warning(f"Not a stored document reference: {reference}")
            return

        full_path = self.upload_dir / reference[len(prefix):]
        if full_path.exists():
            full_path.unlink()
            logger.info(f"Deleted document: {reference}")
        else:
            logger.warning(f"Document not found for deletion: {reference}")


def get_document_storage() -> DocumentStorage:
    """Get document storage instance (dependency injection)."""
    return DocumentStorage()
