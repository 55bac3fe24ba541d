"""Onboarding services: codec, wizard state, resolver, submission, attachment."""

from candidate_onboarding.services.onboarding_service import OnboardingService
from candidate_onboarding.services.onboarding_state import (
    AttachmentPhase,
    AttachmentState,
    OnboardingDraft,
    OnboardingSession,
    SessionStore,
)
from candidate_onboarding.services.outcome import Outcome
from candidate_onboarding.services.session_resolver import (
    ResolvedRecord,
    SessionResolver,
)

__all__ = [
    "AttachmentPhase",
    "AttachmentState",
    "OnboardingDraft",
    "OnboardingService",
    "OnboardingSession",
    "Outcome",
    "ResolvedRecord",
    "SessionResolver",
    "SessionStore",
]
