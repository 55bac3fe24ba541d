"""Session resolver: one candidate record per authenticated identity.

Flow:
1. GET the record linked to the identity → found, ``created=False``
2. RecordNotFound → provision with identity defaults → ``created=True``
3. Provisioning fails, or "succeeds" without a usable record →
   AccountProvisioningFailed carrying the cause

Only RecordNotFound triggers provisioning. Any other lookup failure (no
token, transport error, 5xx) fails immediately so a transient outage can
never create a duplicate record.

Single-flight: concurrent calls for the same identity share one in-flight
task. Successful results are cached until ``forget``/``clear``; failures
are not cached, so a deliberate retry runs the flow again. Nothing here
retries on its own.
"""

import asyncio
from dataclasses import dataclass

import structlog

from candidate_onboarding.adapters.base import CandidateBackend
from candidate_onboarding.core.errors import (
    AccountProvisioningFailed,
    BackendRequestError,
    OnboardingError,
    RecordNotFound,
)
from candidate_onboarding.schemas.profile import Identity, ProfileRecord
from candidate_onboarding.services.outcome import Outcome

logger = structlog.get_logger()


@dataclass(frozen=True)
class ResolvedRecord:
    """A canonical record and whether this resolution created it."""

    record: ProfileRecord
    created: bool


class SessionResolver:
    """Resolves (or lazily provisions) the candidate record for an identity.

    Safe for concurrent use on a single event loop.
    """

    def __init__(self, backend: CandidateBackend) -> None:
        self._backend = backend
        self._inflight: dict[str, asyncio.Task[Outcome[ResolvedRecord]]] = {}
        self._resolved: dict[str, Outcome[ResolvedRecord]] = {}

    async def resolve(self, identity: Identity) -> Outcome[ResolvedRecord]:
        """Return the identity's record, provisioning it at most once.

        Args:
            identity: Authenticated identity; ``user_id`` is the flight key.

        Returns:
            Outcome with a ResolvedRecord, or AccountProvisioningFailed.
        """
        key = identity.user_id
        cached = self._resolved.get(key)
        if cached is not None:
            return cached

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.create_task(self._run(identity))
            self._inflight[key] = task

        # Shield: one cancelled caller must not cancel the shared flight
        return await asyncio.shield(task)

    def forget(self, user_id: str) -> None:
        """Drop the cached result for one identity.

        A flight already under way is kept and shared with the next caller,
        so a reset never starts a second concurrent provisioning.
        """
        self._resolved.pop(user_id, None)

    def clear(self) -> None:
        """Drop every cached result (in-flight calls are kept)."""
        self._resolved.clear()

    async def _run(self, identity: Identity) -> Outcome[ResolvedRecord]:
        key = identity.user_id
        this_task = asyncio.current_task()
        try:
            outcome = await self._lookup_or_provision(identity)
        finally:
            if self._inflight.get(key) is this_task:
                del self._inflight[key]

        if outcome.ok:
            self._resolved[key] = outcome
        return outcome

    async def _lookup_or_provision(
        self, identity: Identity
    ) -> Outcome[ResolvedRecord]:
        try:
            record = await self._backend.get_current_candidate()
        except RecordNotFound:
            logger.info("No candidate record, provisioning", user_id=identity.user_id)
        except OnboardingError as exc:
            logger.warning(
                "Candidate lookup failed",
                user_id=identity.user_id,
                error_code=exc.code,
            )
            return Outcome.failure(AccountProvisioningFailed(cause=exc))
        else:
            return Outcome.success(ResolvedRecord(record=record, created=False))

        try:
            result = await self._backend.provision_candidate(identity)
        except OnboardingError as exc:
            logger.warning(
                "Candidate provisioning failed",
                user_id=identity.user_id,
                error_code=exc.code,
            )
            return Outcome.failure(AccountProvisioningFailed(cause=exc))

        candidate = result.candidate
        if not result.success or candidate is None or not candidate.id:
            logger.warning(
                "Candidate provisioning returned no record",
                user_id=identity.user_id,
                backend_success=result.success,
            )
            cause = BackendRequestError(
                result.error or "Provisioning returned no candidate record"
            )
            return Outcome.failure(AccountProvisioningFailed(cause=cause))

        logger.info(
            "Provisioned candidate record",
            user_id=identity.user_id,
            candidate_id=candidate.id,
        )
        return Outcome.success(ResolvedRecord(record=candidate, created=True))
