"""Onboarding session state and the pure transitions over it.

OnboardingSession is immutable. Every operation returns a new session and
the SessionStore swaps it in whole, so readers never observe a
half-applied update. Subscribers receive each committed session.

Step navigation never validates earlier steps: every step is optional.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum

from candidate_onboarding.schemas.documents import AttachmentFile
from candidate_onboarding.schemas.profile import OnboardingStatus, ProfileRecord
from candidate_onboarding.services.field_codec import decode_tag_list

FIRST_STEP = 1
LAST_STEP = 4

STEP_NAMES: dict[int, str] = {
    1: "Basic info",
    2: "Professional",
    3: "Preferences",
    4: "Resume",
}

# =============================================================================
# Draft
# =============================================================================


class AttachmentPhase(Enum):
    """Lifecycle of the single resume slot."""

    ABSENT = "absent"
    SELECTED = "selected"
    UPLOADING = "uploading"
    ATTACHED = "attached"


@dataclass(frozen=True)
class AttachmentState:
    """Transient, never-persisted attachment metadata.

    Attributes:
        phase: Current slot phase.
        file: Local file being (or last) uploaded; None once reverted.
        document_id: Document id assigned by the document service.
    """

    phase: AttachmentPhase = AttachmentPhase.ABSENT
    file: AttachmentFile | None = None
    document_id: str | None = None


@dataclass(frozen=True)
class OnboardingDraft:
    """Accumulated wizard edits. None means "not supplied"."""

    # Step 1: basic info
    full_name: str | None = None
    phone: str | None = None
    location: str | None = None
    # Step 2: professional
    current_title: str | None = None
    current_company: str | None = None
    bio: str | None = None
    linkedin_url: str | None = None
    github_url: str | None = None
    portfolio_url: str | None = None
    # Step 3: preferences
    desired_job_type: tuple[str, ...] = ()
    availability: str | None = None
    open_to_remote: bool | None = None
    open_to_relocation: bool | None = None
    desired_salary_min: int | None = None
    desired_salary_max: int | None = None
    # Step 4: resume
    attachment: AttachmentState = field(default_factory=AttachmentState)


EDITABLE_FIELDS: frozenset[str] = frozenset(
    {
        "full_name",
        "phone",
        "location",
        "current_title",
        "current_company",
        "bio",
        "linkedin_url",
        "github_url",
        "portfolio_url",
        "desired_job_type",
        "availability",
        "open_to_remote",
        "open_to_relocation",
        "desired_salary_min",
        "desired_salary_max",
    }
)
"""Draft fields writable through update_draft (attachment is handler-owned)."""


# =============================================================================
# Session
# =============================================================================


@dataclass(frozen=True)
class OnboardingSession:
    """In-memory wizard state for one authenticated browsing session.

    Attributes:
        step: Current wizard step, always within FIRST_STEP..LAST_STEP.
        status: Mirrors the record's onboarding_status once resolved.
        is_presented: Whether the wizard is currently shown.
        draft: Accumulated edits plus attachment metadata.
        submitting: True only while a skip/complete call is in flight.
        last_error: Human-readable message from the last failed operation.
        candidate_id: Resolved record id; None until resolution succeeds.
        loading: True while the session resolver is running.
    """

    step: int = FIRST_STEP
    status: OnboardingStatus | None = None
    is_presented: bool = False
    draft: OnboardingDraft = field(default_factory=OnboardingDraft)
    submitting: bool = False
    last_error: str | None = None
    candidate_id: str | None = None
    loading: bool = False

    @property
    def is_terminal(self) -> bool:
        """True once onboarding was completed or skipped."""
        return self.status is not None and self.status.is_terminal


def _clamp_step(step: int) -> int:
    return max(FIRST_STEP, min(step, LAST_STEP))


# =============================================================================
# Navigation
# =============================================================================


def next_step(session: OnboardingSession) -> OnboardingSession:
    """Advance one step, staying on the last step."""
    return replace(session, step=min(session.step + 1, LAST_STEP))


def previous_step(session: OnboardingSession) -> OnboardingSession:
    """Go back one step, staying on the first step."""
    return replace(session, step=max(session.step - 1, FIRST_STEP))


def go_to_step(session: OnboardingSession, step: int) -> OnboardingSession:
    """Jump to a step, clamped into range."""
    return replace(session, step=_clamp_step(step))


def present(session: OnboardingSession) -> OnboardingSession:
    """Show the wizard from the first step."""
    return replace(session, is_presented=True, step=FIRST_STEP)


def dismiss(session: OnboardingSession) -> OnboardingSession:
    """Hide the wizard without changing status."""
    return replace(session, is_presented=False)


# =============================================================================
# Draft Edits
# =============================================================================


def _normalize_job_types(value: object) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(decode_tag_list(value))
    if isinstance(value, Iterable):
        return tuple(str(item) for item in value)
    raise TypeError(f"desired_job_type must be a string or sequence, got {value!r}")


def update_draft(
    session: OnboardingSession, partial: Mapping[str, object]
) -> OnboardingSession:
    """Shallow-merge ``partial`` into the draft.

    Later edits merge into earlier ones; untouched fields keep their values.
    Step, status, submitting and last_error are left alone.

    Args:
        session: Current session.
        partial: Field name to new value. A tag list may be given as a
            sequence or in wire form.

    Returns:
        New session with the merged draft.

    Raises:
        ValueError: If ``partial`` names a field that is not editable.
    """
    unknown = set(partial) - EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"Not editable draft fields: {sorted(unknown)}")

    changes = dict(partial)
    if "desired_job_type" in changes:
        changes["desired_job_type"] = _normalize_job_types(changes["desired_job_type"])

    return replace(session, draft=replace(session.draft, **changes))


def draft_from_record(record: ProfileRecord) -> OnboardingDraft:
    """Pre-fill a draft from the resolved record's current values."""
    attachment = AttachmentState()
    if record.resume_document_id:
        attachment = AttachmentState(
            phase=AttachmentPhase.ATTACHED,
            document_id=record.resume_document_id,
        )

    return OnboardingDraft(
        full_name=record.full_name,
        phone=record.phone,
        location=record.location,
        current_title=record.current_title,
        current_company=record.current_company,
        bio=record.bio,
        linkedin_url=record.linkedin_url,
        github_url=record.github_url,
        portfolio_url=record.portfolio_url,
        desired_job_type=tuple(decode_tag_list(record.desired_job_type)),
        availability=record.availability,
        open_to_remote=record.open_to_remote,
        open_to_relocation=record.open_to_relocation,
        desired_salary_min=record.desired_salary_min,
        desired_salary_max=record.desired_salary_max,
        attachment=attachment,
    )


def session_from_record(
    session: OnboardingSession, record: ProfileRecord
) -> OnboardingSession:
    """Populate a session from a resolved record.

    The wizard is presented only while the record is still pending.
    """
    return replace(
        session,
        step=FIRST_STEP,
        status=record.onboarding_status,
        is_presented=record.onboarding_status == OnboardingStatus.PENDING,
        draft=draft_from_record(record),
        candidate_id=record.id,
        loading=False,
        last_error=None,
    )


# =============================================================================
# Store
# =============================================================================

SessionListener = Callable[[OnboardingSession], None]


class SessionStore:
    """Holder of the current session with change notification.

    Single writer per event loop: services read ``session`` after every
    await and commit whole replacements, never in-place edits.

    ``epoch`` increases on every reset so async handlers can tell that the
    session they started against has been replaced.
    """

    def __init__(self, session: OnboardingSession | None = None) -> None:
        self._session = session or OnboardingSession()
        self._listeners: list[SessionListener] = []
        self._epoch = 0

    @property
    def session(self) -> OnboardingSession:
        """The current session snapshot."""
        return self._session

    @property
    def epoch(self) -> int:
        """Reset counter."""
        return self._epoch

    def commit(self, session: OnboardingSession) -> OnboardingSession:
        """Replace the current session and notify listeners."""
        if session is self._session:
            return session
        self._session = session
        for listener in list(self._listeners):
            listener(session)
        return session

    def apply(
        self, transition: Callable[[OnboardingSession], OnboardingSession]
    ) -> OnboardingSession:
        """Run a pure transition against the current session and commit it."""
        return self.commit(transition(self._session))

    def reset(self) -> OnboardingSession:
        """Start a new epoch with an empty session."""
        self._epoch += 1
        return self.commit(OnboardingSession())

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
