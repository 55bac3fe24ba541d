"""Attachment validation for resume uploads.

Security: Enforces the size limit and MIME whitelist before any network
call. The type is always detected from content (magic bytes), never taken
from the picker alone, and filenames are reduced to a header-safe basename
before they go into a multipart body.
"""

import re

import magic
import structlog

from candidate_onboarding.core.config import settings
from candidate_onboarding.core.errors import AttachmentValidationFailed
from candidate_onboarding.schemas.documents import AttachmentFile

logger = structlog.get_logger()

# Bytes handed to libmagic when sniffing (enough for every whitelisted type)
SNIFF_BYTES = 8 * 1024

# Allowed MIME types and their display labels
ALLOWED_MIMES: dict[str, str] = {
    "application/pdf": "PDF",
    "application/msword": "DOC",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "DOCX",
    "text/plain": "TXT",
}

# Declared types that say nothing about the content
_UNDECLARED_MIMES = frozenset({"", "application/octet-stream"})

_ALLOWED_LABELS = ", ".join(dict.fromkeys(ALLOWED_MIMES.values()))

_INVALID_TYPE_MESSAGE = f"Invalid file type. Allowed: {_ALLOWED_LABELS}."

DEFAULT_FILENAME = "resume"

_UNSAFE_FILENAME_CHARS = re.compile(r'["\;\x00-\x1f\x7f]')


def _normalize_mime(content_type: str | None) -> str:
    """Drop parameters (``; charset=utf-8``) and lowercase."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def validate_attachment(file: AttachmentFile, max_size: int | None = None) -> str:
    """Validate a picked file against the size limit and MIME whitelist.

    The size check runs first so oversized files are never sniffed. The
    detected type must be whitelisted and, when the picker declared a
    type, must agree with it.

    Args:
        file: File selected by the candidate.
        max_size: Size limit in bytes. Defaults to the configured limit.

    Returns:
        The detected MIME type, one of the ALLOWED_MIMES keys.

    Raises:
        AttachmentValidationFailed: If the file is empty, too large, of a
            type outside the whitelist, or not what its declared type says.
    """
    limit = settings.max_attachment_size_bytes if max_size is None else max_size

    if file.size == 0:
        raise AttachmentValidationFailed(
            message="The selected file is empty.",
            reason="EMPTY_FILE",
        )

    if file.size > limit:
        raise AttachmentValidationFailed(
            message=f"File too large. Maximum size: {limit // (1024 * 1024)}MB",
            reason="FILE_TOO_LARGE",
        )

    sniffed = magic.from_buffer(file.content[:SNIFF_BYTES], mime=True)
    detected = _normalize_mime(sniffed)
    declared = _normalize_mime(file.content_type)

    if detected not in ALLOWED_MIMES:
        # Log detected MIME for debugging; do NOT expose to the candidate
        logger.warning(
            "Attachment type rejected",
            detected_mime=detected,
            filename=file.filename,
        )
        raise AttachmentValidationFailed(
            message=_INVALID_TYPE_MESSAGE, reason="INVALID_FILE_TYPE"
        )

    if declared not in _UNDECLARED_MIMES and declared != detected:
        logger.warning(
            "Attachment content does not match declared type",
            declared_mime=declared,
            detected_mime=detected,
            filename=file.filename,
        )
        raise AttachmentValidationFailed(
            message=_INVALID_TYPE_MESSAGE, reason="INVALID_FILE_TYPE"
        )

    return detected


def sanitize_filename(filename: str, max_length: int = 200) -> str:
    """Reduce a picked filename to a basename safe for Content-Disposition.

    Path components (either separator) are dropped, then quotes,
    semicolons and control characters. Over-long names are cut from the
    stem so the extension survives.
    """
    basename = filename.replace("\\", "/").rsplit("/", 1)[-1]
    safe = _UNSAFE_FILENAME_CHARS.sub("", basename).strip()

    if len(safe) > max_length:
        stem, dot, ext = safe.rpartition(".")
        if dot and len(ext) + 1 < max_length:
            safe = stem[: max_length - len(ext) - 1] + dot + ext
        else:
            safe = safe[:max_length]

    return safe or DEFAULT_FILENAME
