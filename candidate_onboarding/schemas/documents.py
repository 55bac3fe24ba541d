"""Document (attachment) types exchanged with the document service."""

from dataclasses import dataclass, field
from typing import Any

RESUME_DOCUMENT_TYPE = "resume"
"""document_type tag sent with every onboarding upload."""

CANDIDATE_ENTITY_TYPE = "candidate"
"""entity_type tag associating an upload with a candidate record."""


@dataclass(frozen=True)
class AttachmentFile:
    """A local file the candidate picked for upload.

    Attributes:
        filename: Original filename from the picker.
        content: Full file bytes.
        content_type: MIME type declared by the picker, if any.
    """

    filename: str
    content: bytes = field(repr=False)
    content_type: str | None = None

    @property
    def size(self) -> int:
        """File size in bytes."""
        return len(self.content)


@dataclass(frozen=True)
class UploadedDocument:
    """Document service response for a successful upload.

    Attributes:
        id: Opaque document id.
        raw_data: Full response body for callers needing extra fields.
    """

    id: str
    raw_data: dict[str, Any] | None = field(default=None, repr=False)
