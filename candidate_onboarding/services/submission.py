"""Submission orchestrator: persist skip / complete transitions.

Complete sends a sparse patch: only draft fields the candidate actually
supplied are included, so anything left blank keeps its saved value on the
server. A user may fill in step 1 only and finish.

Both operations are no-ops while another submission is in flight or
before a record id has been resolved. Failures leave status, visibility
and the draft untouched so the candidate can retry.
"""

from collections.abc import Callable
from dataclasses import replace
from typing import Any

import structlog

from candidate_onboarding.adapters.base import CandidateBackend
from candidate_onboarding.core.errors import OnboardingError, SubmissionFailed
from candidate_onboarding.schemas.profile import OnboardingStatus
from candidate_onboarding.services.field_codec import decode_tag_list, encode_tag_list
from candidate_onboarding.services.onboarding_state import (
    OnboardingDraft,
    OnboardingSession,
    SessionStore,
)
from candidate_onboarding.services.outcome import Outcome

logger = structlog.get_logger()

STATUS_FIELD = "onboarding_status"

# Draft attributes sent under their wire names, in patch order
_SCALAR_FIELDS: tuple[str, ...] = (
    "full_name",
    "phone",
    "location",
    "current_title",
    "current_company",
    "bio",
    "linkedin_url",
    "github_url",
    "portfolio_url",
    "availability",
    "open_to_remote",
    "open_to_relocation",
    "desired_salary_min",
    "desired_salary_max",
)

_TAG_LIST_FIELD = "desired_job_type"


def _is_present(value: object) -> bool:
    """Non-empty string, defined boolean, or defined number."""
    if value is None:
        return False
    if isinstance(value, str):
        return value != ""
    return isinstance(value, bool | int | float)


def build_sparse_patch(
    draft: OnboardingDraft, status: OnboardingStatus = OnboardingStatus.COMPLETED
) -> dict[str, Any]:
    """Build the PATCH body for a completed draft.

    Args:
        draft: Accumulated wizard edits.
        status: Status to force into the patch.

    Returns:
        Dict with ``onboarding_status`` plus every present draft field.
        Absent and empty fields are omitted entirely.
    """
    patch: dict[str, Any] = {STATUS_FIELD: status.value}

    for name in _SCALAR_FIELDS:
        value = getattr(draft, name)
        if _is_present(value):
            patch[name] = value

    encoded = encode_tag_list(draft.desired_job_type)
    if encoded is not None and decode_tag_list(encoded):
        patch[_TAG_LIST_FIELD] = encoded

    return patch


def _begin(session: OnboardingSession) -> OnboardingSession:
    return replace(session, submitting=True, last_error=None)


def _succeed(session: OnboardingSession, status: OnboardingStatus) -> OnboardingSession:
    return replace(session, status=status, is_presented=False, submitting=False)


def _fail(session: OnboardingSession, message: str) -> OnboardingSession:
    return replace(session, submitting=False, last_error=message)


class SubmissionOrchestrator:
    """Runs skip/complete against the backend and commits the result.

    ``submitting`` is the mutual-exclusion flag: while it is set, further
    calls return a no-op outcome and nothing is queued.
    """

    def __init__(self, store: SessionStore, backend: CandidateBackend) -> None:
        self._store = store
        self._backend = backend

    async def skip(self) -> Outcome[OnboardingStatus]:
        """Mark onboarding skipped with a single-field update."""
        return await self._submit(
            OnboardingStatus.SKIPPED,
            lambda _session: {STATUS_FIELD: OnboardingStatus.SKIPPED.value},
        )

    async def complete(self) -> Outcome[OnboardingStatus]:
        """Mark onboarding completed, sending every supplied draft field."""
        return await self._submit(
            OnboardingStatus.COMPLETED,
            lambda session: build_sparse_patch(session.draft),
        )

    async def _submit(
        self,
        status: OnboardingStatus,
        build_patch: Callable[[OnboardingSession], dict[str, Any]],
    ) -> Outcome[OnboardingStatus]:
        session = self._store.session
        if session.submitting or session.candidate_id is None:
            return Outcome.skipped()

        candidate_id = session.candidate_id
        epoch = self._store.epoch
        patch = build_patch(session)
        self._store.apply(_begin)

        try:
            await self._backend.update_candidate(candidate_id, patch)
        except OnboardingError as exc:
            logger.warning(
                "Onboarding submission failed",
                candidate_id=candidate_id,
                target_status=status.value,
                error_code=exc.code,
            )
            error = SubmissionFailed(cause=exc)
            if self._is_current(epoch, candidate_id):
                self._store.apply(lambda s: _fail(s, error.message))
            return Outcome.failure(error)

        if not self._is_current(epoch, candidate_id):
            logger.info(
                "Discarding submission result for replaced session",
                candidate_id=candidate_id,
            )
            return Outcome.skipped()

        self._store.apply(lambda s: _succeed(s, status))
        logger.info(
            "Onboarding submitted", candidate_id=candidate_id, status=status.value
        )
        return Outcome.success(status)

    def _is_current(self, epoch: int, candidate_id: str) -> bool:
        return (
            self._store.epoch == epoch
            and self._store.session.candidate_id == candidate_id
        )
