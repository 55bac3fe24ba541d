"""Abstract interface for the candidate backend and document service.

The orchestrator depends only on CandidateBackend. The HTTP implementation
talks to the REST contract; tests substitute an in-memory fake.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from candidate_onboarding.schemas.documents import AttachmentFile, UploadedDocument
from candidate_onboarding.schemas.profile import Identity, ProfileRecord

TokenProvider = Callable[[], Awaitable[str | None]]
"""Returns a fresh bearer token (or None when signed out). Called per request."""


@dataclass(frozen=True)
class ProvisionResult:
    """Outcome of the provider-specific creation call.

    Attributes:
        success: Whether the backend reported success.
        candidate: The created (or claimed) record, when one came back.
        error: Backend error message on failure.
    """

    success: bool
    candidate: ProfileRecord | None = None
    error: str | None = None


class CandidateBackend(ABC):
    """Backend operations the onboarding orchestrator consumes.

    Implementations raise the errors in ``candidate_onboarding.core.errors``:
    RecordNotFound for a missing record, AuthTokenMissing when no token is
    available, BackendRequestError for everything else.
    """

    @abstractmethod
    async def get_current_candidate(self) -> ProfileRecord:
        """Look up the record linked to the authenticated identity.

        Raises:
            RecordNotFound: If the identity has no record yet.
        """
        ...

    @abstractmethod
    async def provision_candidate(self, identity: Identity) -> ProvisionResult:
        """Create a record with defaults taken from the identity."""
        ...

    @abstractmethod
    async def update_candidate(
        self, candidate_id: str, patch: dict[str, Any]
    ) -> ProfileRecord:
        """Apply a sparse patch; only the keys present are changed."""
        ...

    @abstractmethod
    async def upload_document(
        self, candidate_id: str, file: AttachmentFile
    ) -> UploadedDocument:
        """Upload a resume associated with the candidate record."""
        ...

    @abstractmethod
    async def delete_document(self, document_id: str) -> None:
        """Delete a previously uploaded document."""
        ...
