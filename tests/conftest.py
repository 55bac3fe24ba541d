"""Shared fixtures for onboarding tests.

FakeCandidateBackend is an in-memory CandidateBackend that records every
call, can be told to fail per operation, and can hold calls open on an
asyncio.Event so tests control interleaving deterministically.
"""

import asyncio
from typing import Any

import pytest
import pytest_asyncio

from candidate_onboarding.adapters.base import CandidateBackend, ProvisionResult
from candidate_onboarding.core.errors import OnboardingError, RecordNotFound
from candidate_onboarding.schemas.documents import AttachmentFile, UploadedDocument
from candidate_onboarding.schemas.profile import (
    Identity,
    OnboardingStatus,
    ProfileRecord,
)
from candidate_onboarding.services.onboarding_service import OnboardingService

TEST_USER_ID = "user_2abcDEF"
TEST_CANDIDATE_ID = "cand-00000000-0001"
TEST_EMAIL = "jordan@example.com"

MIB = 1024 * 1024


def make_record(**overrides: Any) -> ProfileRecord:
    """Build a ProfileRecord with sensible defaults."""
    base: dict[str, Any] = {
        "id": TEST_CANDIDATE_ID,
        "onboarding_status": OnboardingStatus.PENDING,
        "full_name": "Jordan Lee",
        "email": TEST_EMAIL,
    }
    return ProfileRecord(**{**base, **overrides})


def make_pdf(size: int = 2048, filename: str = "resume.pdf") -> AttachmentFile:
    """Build a PDF attachment of the given size."""
    body = b"%PDF-1.4\n" + b"0" * max(size - 9, 0)
    return AttachmentFile(
        filename=filename, content=body[:size], content_type="application/pdf"
    )


class FakeCandidateBackend(CandidateBackend):
    """In-memory backend recording calls.

    Attributes:
        record: Current record; None means the identity is not provisioned.
        calls: Operation names in call order.
        errors: Operation name → error to raise on the next calls.
        gates: Operation name → event the call waits on before completing.
        provision_result: Overrides the provisioning response when set.
    """

    def __init__(self, record: ProfileRecord | None = None) -> None:
        self.record = record
        self.calls: list[str] = []
        self.errors: dict[str, OnboardingError] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.provision_result: ProvisionResult | None = None
        self.patches: list[tuple[str, dict[str, Any]]] = []
        self.uploads: list[tuple[str, AttachmentFile]] = []
        self.deleted: list[str] = []
        self._document_seq = 0

    def count(self, operation: str) -> int:
        """Number of calls made to an operation."""
        return self.calls.count(operation)

    async def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        gate = self.gates.get(operation)
        if gate is not None:
            await gate.wait()
        else:
            await asyncio.sleep(0)
        error = self.errors.get(operation)
        if error is not None:
            raise error

    async def get_current_candidate(self) -> ProfileRecord:
        await self._enter("get_current_candidate")
        if self.record is None:
            raise RecordNotFound()
        return self.record

    async def provision_candidate(self, identity: Identity) -> ProvisionResult:
        await self._enter("provision_candidate")
        if self.provision_result is not None:
            return self.provision_result
        self.record = make_record(
            full_name=identity.fallback_name, email=identity.email
        )
        return ProvisionResult(success=True, candidate=self.record)

    async def update_candidate(
        self, candidate_id: str, patch: dict[str, Any]
    ) -> ProfileRecord:
        await self._enter("update_candidate")
        self.patches.append((candidate_id, patch))
        current = self.record or make_record(id=candidate_id)
        self.record = ProfileRecord.model_validate({**current.model_dump(), **patch})
        return self.record

    async def upload_document(
        self, candidate_id: str, file: AttachmentFile
    ) -> UploadedDocument:
        await self._enter("upload_document")
        self._document_seq += 1
        self.uploads.append((candidate_id, file))
        return UploadedDocument(id=f"doc-{self._document_seq}")

    async def delete_document(self, document_id: str) -> None:
        await self._enter("delete_document")
        self.deleted.append(document_id)


@pytest.fixture
def identity() -> Identity:
    """Authenticated identity with a display name."""
    return Identity(
        user_id=TEST_USER_ID,
        email=TEST_EMAIL,
        display_name="Jordan Lee",
        avatar_url="https://img.example.com/jordan.png",
    )


@pytest.fixture
def backend() -> FakeCandidateBackend:
    """Backend holding a pending candidate record."""
    return FakeCandidateBackend(record=make_record())


@pytest.fixture
def service(backend: FakeCandidateBackend) -> OnboardingService:
    """Unstarted onboarding service over the fake backend."""
    return OnboardingService(backend)


@pytest_asyncio.fixture
async def started_service(
    service: OnboardingService, identity: Identity
) -> OnboardingService:
    """Service whose session has resolved the pending record."""
    outcome = await service.start(identity)
    assert outcome.ok
    return service

