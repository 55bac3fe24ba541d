"""Onboarding service: the public entry point for a browsing session.

Wires the session resolver, wizard state, submission orchestrator and
attachment handler around one SessionStore. Consumers (UI layers) call the
operations below and observe state through ``subscribe``; they never write
the session themselves.

Usage:
    backend = HttpCandidateBackend(token_provider=get_token)
    service = OnboardingService(backend)
    service.subscribe(render)

    outcome = await service.start(identity)
    if not outcome.ok:
        show_fatal(outcome.error)      # AccountProvisioningFailed
    service.update_draft({"phone": "555-0100"})
    service.next_step()
    await service.complete()
"""

from collections.abc import Callable, Mapping
from dataclasses import replace

import structlog

from candidate_onboarding.adapters.base import CandidateBackend
from candidate_onboarding.schemas.documents import AttachmentFile
from candidate_onboarding.schemas.profile import Identity, OnboardingStatus
from candidate_onboarding.services import onboarding_state as state
from candidate_onboarding.services.attachment import AttachmentHandler
from candidate_onboarding.services.onboarding_state import (
    OnboardingSession,
    SessionListener,
    SessionStore,
)
from candidate_onboarding.services.outcome import Outcome
from candidate_onboarding.services.session_resolver import (
    ResolvedRecord,
    SessionResolver,
)
from candidate_onboarding.services.submission import SubmissionOrchestrator

logger = structlog.get_logger()


class OnboardingService:
    """Candidate onboarding orchestrator for one browsing session.

    Args:
        backend: Candidate backend / document service.
        resolver: Shared resolver. Pass one resolver to several services to
            keep provisioning single-flight across them.
        max_attachment_size: Attachment size limit override in bytes.
    """

    def __init__(
        self,
        backend: CandidateBackend,
        *,
        resolver: SessionResolver | None = None,
        max_attachment_size: int | None = None,
    ) -> None:
        self._store = SessionStore()
        self._resolver = resolver or SessionResolver(backend)
        self._submission = SubmissionOrchestrator(self._store, backend)
        self._attachments = AttachmentHandler(
            self._store, backend, max_size=max_attachment_size
        )
        self._identity: Identity | None = None

    # -------------------------------------------------------------------------
    # Observation
    # -------------------------------------------------------------------------

    @property
    def session(self) -> OnboardingSession:
        """Current session snapshot."""
        return self._store.session

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Receive every new session; returns an unsubscribe callable."""
        return self._store.subscribe(listener)

    # -------------------------------------------------------------------------
    # Session lifecycle
    # -------------------------------------------------------------------------

    async def start(self, identity: Identity) -> Outcome[ResolvedRecord]:
        """Resolve the candidate record and populate the session.

        Safe to call repeatedly: the resolver is single-flight and cached,
        and a result is applied only if no reset happened meanwhile.

        Returns:
            Outcome with the resolved record, or AccountProvisioningFailed.
        """
        if self._identity is not None and self._identity.user_id != identity.user_id:
            self._store.reset()
        elif self._store.session.candidate_id is not None:
            # Already resolved: re-entry must not clobber edits or position
            return await self._resolver.resolve(identity)

        self._identity = identity
        epoch = self._store.epoch
        self._store.apply(lambda s: replace(s, loading=True, last_error=None))

        outcome = await self._resolver.resolve(identity)

        if epoch != self._store.epoch:
            logger.info("Discarding resolution for replaced session")
            return outcome

        if outcome.error is not None:
            message = outcome.error.message
            self._store.apply(lambda s: replace(s, loading=False, last_error=message))
            return outcome

        resolved = outcome.value
        if self._store.session.candidate_id == resolved.record.id:
            # A concurrent start already applied this record
            return outcome

        self._store.apply(lambda s: state.session_from_record(s, resolved.record))
        logger.info(
            "Onboarding session resolved",
            candidate_id=resolved.record.id,
            created=resolved.created,
            status=resolved.record.onboarding_status.value,
        )
        return outcome

    async def reset(self) -> Outcome[ResolvedRecord]:
        """Discard the session and resolve again from a clean state.

        Replaces a full page reload as the retry path after a fatal
        provisioning failure. Pending async results from before the reset
        are dropped when they land.
        """
        if self._identity is None:
            self._store.reset()
            return Outcome.skipped()

        self._resolver.forget(self._identity.user_id)
        self._store.reset()
        return await self.start(self._identity)

    # -------------------------------------------------------------------------
    # Wizard navigation and edits
    # -------------------------------------------------------------------------

    def next_step(self) -> OnboardingSession:
        """Advance one step (stays on the last)."""
        return self._store.apply(state.next_step)

    def previous_step(self) -> OnboardingSession:
        """Go back one step (stays on the first)."""
        return self._store.apply(state.previous_step)

    def go_to_step(self, step: int) -> OnboardingSession:
        """Jump to a step, clamped into range."""
        return self._store.apply(lambda s: state.go_to_step(s, step))

    def update_draft(self, partial: Mapping[str, object]) -> OnboardingSession:
        """Merge edits into the draft."""
        return self._store.apply(lambda s: state.update_draft(s, partial))

    def present(self) -> OnboardingSession:
        """Show the wizard from step 1."""
        return self._store.apply(state.present)

    def dismiss(self) -> OnboardingSession:
        """Hide the wizard."""
        return self._store.apply(state.dismiss)

    # -------------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------------

    async def skip(self) -> Outcome[OnboardingStatus]:
        """Persist a skipped status."""
        return await self._submission.skip()

    async def complete(self) -> Outcome[OnboardingStatus]:
        """Persist a completed status plus every supplied draft field."""
        return await self._submission.complete()

    # -------------------------------------------------------------------------
    # Attachment
    # -------------------------------------------------------------------------

    async def select_attachment(self, file: AttachmentFile) -> Outcome[str]:
        """Validate and upload a resume."""
        return await self._attachments.select(file)

    async def remove_attachment(self) -> Outcome[None]:
        """Remove the current resume."""
        return await self._attachments.remove()
