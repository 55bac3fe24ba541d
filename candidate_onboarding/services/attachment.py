"""Attachment handler for the single resume slot.

Slot phases: absent → selected → uploading → attached, and back to absent
on upload failure or removal.

- Validation is local and happens before any network call.
- Removal is a user-facing undo: the slot empties immediately and the
  document delete is best effort (failures are logged, never surfaced).
- Every select/remove supersedes the previous upload. A superseded upload's
  result is discarded and its orphaned document deleted; a result arriving
  after onboarding reached a terminal status is discarded as well.
"""

from dataclasses import replace

import structlog

from candidate_onboarding.adapters.base import CandidateBackend
from candidate_onboarding.core.errors import (
    AttachmentDeleteFailed,
    AttachmentUploadFailed,
    AttachmentValidationFailed,
    OnboardingError,
)
from candidate_onboarding.core.file_validation import validate_attachment
from candidate_onboarding.schemas.documents import AttachmentFile
from candidate_onboarding.services.onboarding_state import (
    AttachmentPhase,
    AttachmentState,
    OnboardingSession,
    SessionStore,
)
from candidate_onboarding.services.outcome import Outcome

logger = structlog.get_logger()


def _with_attachment(
    session: OnboardingSession,
    attachment: AttachmentState,
    last_error: str | None = None,
) -> OnboardingSession:
    return replace(
        session,
        draft=replace(session.draft, attachment=attachment),
        last_error=last_error,
    )


class AttachmentHandler:
    """Validates, uploads and removes the candidate's resume.

    Args:
        store: Session store the slot lives in.
        backend: Document service.
        max_size: Size limit override in bytes (defaults to settings).
    """

    def __init__(
        self,
        store: SessionStore,
        backend: CandidateBackend,
        max_size: int | None = None,
    ) -> None:
        self._store = store
        self._backend = backend
        self._max_size = max_size
        # Incremented by every select/remove; an upload only lands if unchanged
        self._request_token = 0

    async def select(self, file: AttachmentFile) -> Outcome[str]:
        """Validate and upload a picked file.

        Returns:
            Outcome with the assigned document id; a validation or upload
            error; or a no-op when no record id is resolved or the result
            was superseded.
        """
        session = self._store.session
        candidate_id = session.candidate_id
        if candidate_id is None:
            return Outcome.skipped()

        try:
            mime = validate_attachment(file, self._max_size)
        except AttachmentValidationFailed as exc:
            logger.info(
                "Attachment rejected", filename=file.filename, reason=exc.reason
            )
            self._store.apply(lambda s: replace(s, last_error=exc.message))
            return Outcome.failure(exc)

        if file.content_type != mime:
            file = replace(file, content_type=mime)

        self._request_token += 1
        token = self._request_token
        epoch = self._store.epoch
        previous_document_id = session.draft.attachment.document_id

        self._store.apply(
            lambda s: _with_attachment(
                s, AttachmentState(phase=AttachmentPhase.SELECTED, file=file)
            )
        )
        self._store.apply(
            lambda s: _with_attachment(
                s, AttachmentState(phase=AttachmentPhase.UPLOADING, file=file)
            )
        )

        try:
            document = await self._backend.upload_document(candidate_id, file)
        except OnboardingError as exc:
            error = AttachmentUploadFailed(cause=exc)
            logger.warning(
                "Attachment upload failed",
                candidate_id=candidate_id,
                error_code=exc.code,
            )
            if self._is_current(token, epoch) and not self._store.session.is_terminal:
                self._store.apply(
                    lambda s: _with_attachment(s, AttachmentState(), error.message)
                )
            return Outcome.failure(error)

        if not self._is_current(token, epoch):
            logger.info(
                "Discarding superseded upload", document_id=document.id
            )
            await self._delete_quietly(document.id)
            return Outcome.skipped()

        if self._store.session.is_terminal:
            logger.info(
                "Discarding upload that finished after onboarding ended",
                document_id=document.id,
            )
            return Outcome.skipped()

        self._store.apply(
            lambda s: _with_attachment(
                s,
                AttachmentState(
                    phase=AttachmentPhase.ATTACHED,
                    file=file,
                    document_id=document.id,
                ),
                s.last_error,
            )
        )

        # One resume per candidate: the replaced upload is no longer referenced
        if previous_document_id and previous_document_id != document.id:
            await self._delete_quietly(previous_document_id)

        return Outcome.success(document.id)

    async def remove(self) -> Outcome[None]:
        """Empty the slot, then delete the stored document on a best-effort basis.

        The slot reverts to absent and last_error is cleared whatever the
        delete outcome.
        """
        session = self._store.session
        attachment = session.draft.attachment
        if attachment.phase == AttachmentPhase.ABSENT:
            if session.last_error is not None:
                self._store.apply(lambda s: replace(s, last_error=None))
            return Outcome.success()

        self._request_token += 1
        document_id = (
            attachment.document_id
            if attachment.phase == AttachmentPhase.ATTACHED
            else None
        )

        self._store.apply(lambda s: _with_attachment(s, AttachmentState()))

        if document_id:
            await self._delete_quietly(document_id)
        return Outcome.success()

    async def _delete_quietly(self, document_id: str) -> None:
        try:
            await self._backend.delete_document(document_id)
        except OnboardingError as exc:
            failure = AttachmentDeleteFailed(cause=exc)
            logger.warning(
                "Attachment delete failed",
                document_id=document_id,
                error_code=failure.code,
                cause_code=exc.code,
            )

    def _is_current(self, token: int, epoch: int) -> bool:
        return token == self._request_token and epoch == self._store.epoch
