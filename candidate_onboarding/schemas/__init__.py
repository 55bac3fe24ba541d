"""Wire schemas for the candidate backend and document service."""

from candidate_onboarding.schemas.documents import (
    CANDIDATE_ENTITY_TYPE,
    RESUME_DOCUMENT_TYPE,
    AttachmentFile,
    UploadedDocument,
)
from candidate_onboarding.schemas.profile import (
    AVAILABILITY_OPTIONS,
    JOB_TYPE_OPTIONS,
    Identity,
    OnboardingStatus,
    ProfileRecord,
)

__all__ = [
    "AVAILABILITY_OPTIONS",
    "CANDIDATE_ENTITY_TYPE",
    "JOB_TYPE_OPTIONS",
    "RESUME_DOCUMENT_TYPE",
    "AttachmentFile",
    "Identity",
    "OnboardingStatus",
    "ProfileRecord",
    "UploadedDocument",
]
