"""
Upload validation.

Checks size, extension, declared media type and binary signature, in that
order, stopping at the first failure. Results are returned, not raised, so
callers decide how to surface them.
"""

import io
import re
import zipfile
from typing import Dict, Optional, Set

from decksmith.models import DOCX_MEDIA_TYPE, PDF_MEDIA_TYPE, UploadedDocument, ValidationResult
from decksmith.utils.logging import get_logger

logger = get_logger(__name__)

MIN_FILE_SIZE = 100
MAX_FILE_SIZE = 50 * 1024 * 1024

ALLOWED_EXTENSIONS = ("pdf", "docx")

ALLOWED_MEDIA_TYPES: Dict[str, Set[str]] = {
    "pdf": {PDF_MEDIA_TYPE},
    # Legacy Word type accepted for uploads named .docx by older clients
    "docx": {DOCX_MEDIA_TYPE, "application/msword"},
}

PDF_MAGIC = b"%PDF"
ZIP_MAGIC = (b"PK\x03\x04", b"PK\x05\x06")
DOCX_MARKER = "word/document.xml"


def _mb(size: int) -> str:
    return f"{size / 1024 / 1024:.2f}MB"


def _reject(reason: str, code: str) -> ValidationResult:
    logger.info(f"Upload rejected ({code}): {reason}")
    return ValidationResult(accepted=False, reason=reason, code=code)


def sniff_pdf(data: bytes) -> bool:
    return data[:4] == PDF_MAGIC


def sniff_docx(data: bytes) -> bool:
    """ZIP magic followed by a word-processing main part inside the archive."""
    if not data.startswith(ZIP_MAGIC):
        return False
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            return DOCX_MARKER in archive.namelist()
    except (zipfile.BadZipFile, OSError):
        return False


SIGNATURE_CHECKS = {
    "pdf": sniff_pdf,
    "docx": sniff_docx,
}


class DocumentValidator:
    """
    Gate uploads before any processing happens.

    A declared media type that does not match the extension is rejected
    outright when `strict_media_type` is set; otherwise it becomes a warning
    and the signature check decides.
    """

    def __init__(
        self,
        max_size: int = MAX_FILE_SIZE,
        min_size: int = MIN_FILE_SIZE,
        strict_media_type: bool = True,
        sniff_signature: bool = True,
    ):
        self.max_size = max_size
        self.min_size = min_size
        self.strict_media_type = strict_media_type
        self.sniff_signature = sniff_signature

    def validate(self, document: Optional[UploadedDocument]) -> ValidationResult:
        if document is None:
            return _reject("No file provided", "missing")

        size = document.size_bytes
        if size == 0 or size < self.min_size:
            return _reject("File appears to be empty or corrupted", "empty")

        if size > self.max_size:
            return _reject(
                f"File too large: {_mb(size)}. Maximum size is {self.max_size / 1024 / 1024:g}MB.",
                "too_large",
            )

        extension = document.extension
        if extension not in ALLOWED_EXTENSIONS:
            shown = f".{extension}" if extension else "(none)"
            return _reject(
                f"Invalid file extension: {shown}. Allowed extensions: {', '.join(ALLOWED_EXTENSIONS)}",
                "bad_extension",
            )

        warnings = []
        media_type = (document.media_type or "").split(";")[0].strip().lower()
        if media_type not in ALLOWED_MEDIA_TYPES[extension]:
            message = (
                f"File type mismatch: declared '{document.media_type or 'unknown'}' "
                f"for a .{extension} file"
            )
            if self.strict_media_type:
                return _reject(message, "bad_media_type")
            warnings.append(message)
            logger.warning(message)

        if self.sniff_signature or warnings:
            if not SIGNATURE_CHECKS[extension](document.data):
                return _reject(
                    f"File signature validation failed. This may not be a valid {extension.upper()} file.",
                    "bad_signature",
                )

        logger.debug(f"Upload accepted: {document.filename} ({size} bytes)")
        return ValidationResult(accepted=True, warnings=warnings)


def validate_document(document: Optional[UploadedDocument]) -> ValidationResult:
    """Validate with the default limits."""
    return DocumentValidator().validate(document)


def sanitize_filename(filename: str) -> str:
    """Remove path separators and control characters from a user-supplied name."""
    cleaned = re.sub(r'[<>:"/\\|?*\x00-\x1F]', "", filename)
    cleaned = re.sub(r"^\.+", "", cleaned)
    return cleaned[:255]
