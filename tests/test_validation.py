"""
Tests for upload validation.
"""

from decksmith.models import DOCX_MEDIA_TYPE, PDF_MEDIA_TYPE, UploadedDocument
from decksmith.validation import DocumentValidator, sanitize_filename, sniff_docx, validate_document
from fakes import make_docx, make_pdf


def _pdf(data: bytes, filename: str = "report.pdf", media_type: str = PDF_MEDIA_TYPE) -> UploadedDocument:
    return UploadedDocument(data=data, media_type=media_type, filename=filename)


def test_accepts_real_pdf_and_docx():
    """Test that genuine documents pass every check."""
    assert validate_document(_pdf(make_pdf(["Hello world"]))).accepted
    docx_doc = UploadedDocument(data=make_docx(["Hello"]), media_type=DOCX_MEDIA_TYPE, filename="a.docx")
    assert validate_document(docx_doc).accepted


def test_rejects_missing_and_tiny_files():
    """Test the presence and minimum size checks."""
    assert validate_document(None).code == "missing"
    result = validate_document(_pdf(b"%PDF-1.4"))
    assert not result.accepted
    assert result.code == "empty"
    assert result.reason == "File appears to be empty or corrupted"


def test_rejects_oversized_upload():
    """Test that a 60 MB PDF is rejected citing the 50MB limit."""
    data = b"%PDF-1.7\n" + b"0" * (60 * 1024 * 1024 - 9)
    result = validate_document(_pdf(data))
    assert not result.accepted
    assert result.code == "too_large"
    assert "60.00MB" in result.reason
    assert "50MB" in result.reason


def test_rejects_unknown_extension():
    """Test the extension allow-list."""
    result = validate_document(_pdf(make_pdf(["x"]), filename="slides.pptx"))
    assert result.code == "bad_extension"
    assert ".pptx" in result.reason


def test_media_type_mismatch_rejected_by_default():
    """Test that a mismatched declared type is a hard rejection."""
    result = validate_document(_pdf(make_pdf(["x"]), media_type="text/plain"))
    assert not result.accepted
    assert result.code == "bad_media_type"


def test_media_type_mismatch_warning_when_lenient():
    """Test that lenient mode warns and lets the signature decide."""
    validator = DocumentValidator(strict_media_type=False)
    result = validator.validate(_pdf(make_pdf(["x"]), media_type="application/octet-stream"))
    assert result.accepted
    assert len(result.warnings) == 1

    forged = _pdf(b"GIF89a" + b"\x00" * 200, media_type="application/octet-stream")
    assert validator.validate(forged).code == "bad_signature"


def test_rejects_bad_signature():
    """Test signature sniffing for both formats."""
    assert validate_document(_pdf(b"<html>" + b" " * 200)).code == "bad_signature"

    # A plain ZIP archive is not a Word document
    fake_docx = UploadedDocument(
        data=b"PK\x05\x06" + b"\x00" * 200, media_type=DOCX_MEDIA_TYPE, filename="a.docx"
    )
    assert validate_document(fake_docx).code == "bad_signature"
    assert not sniff_docx(b"PK\x03\x04garbage")


def test_legacy_word_media_type_allowed():
    """Test that application/msword is accepted for .docx uploads."""
    document = UploadedDocument(data=make_docx(["Hi"]), media_type="application/msword", filename="old.docx")
    assert validate_document(document).accepted


def test_sanitize_filename():
    """Test that path separators and control characters are stripped."""
    assert sanitize_filename("../../etc/passwd") == "etcpasswd"
    assert sanitize_filename("re:port\x00.pdf") == "report.pdf"
