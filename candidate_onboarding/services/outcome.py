"""Explicit result values returned by every async onboarding operation.

Expected failures come back as ``Outcome.error`` instead of being raised,
so callers must look at the result to know whether an operation worked.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

from candidate_onboarding.core.errors import OnboardingError

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of an onboarding operation.

    Attributes:
        value: Payload on success (operation-specific, may be None).
        error: Failure, or None on success.
        performed: False when the call was a no-op (e.g., a submission was
            already in flight or no record id was resolved yet).
    """

    value: T | None = None
    error: OnboardingError | None = None
    performed: bool = True

    @property
    def ok(self) -> bool:
        """True when the operation ran and did not fail."""
        return self.performed and self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> "Outcome[T]":
        """Build a successful outcome."""
        return cls(value=value)

    @classmethod
    def failure(cls, error: OnboardingError) -> "Outcome[T]":
        """Build a failed outcome."""
        return cls(error=error)

    @classmethod
    def skipped(cls) -> "Outcome[T]":
        """Build a no-op outcome."""
        return cls(performed=False)
