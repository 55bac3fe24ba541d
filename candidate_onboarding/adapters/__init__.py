"""Candidate backend adapters.

Usage:
    from candidate_onboarding.adapters import HttpCandidateBackend

    backend = HttpCandidateBackend(token_provider=get_token)
    record = await backend.get_current_candidate()
"""

from candidate_onboarding.adapters.base import (
    CandidateBackend,
    ProvisionResult,
    TokenProvider,
)
from candidate_onboarding.adapters.http_backend import HttpCandidateBackend

__all__ = [
    "CandidateBackend",
    "HttpCandidateBackend",
    "ProvisionResult",
    "TokenProvider",
]
