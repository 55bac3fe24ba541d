"""Candidate profile wire schemas.

The backend owns ProfileRecord; this module only describes the shape the
orchestrator reads from ``GET /candidates/me`` and the provisioning call.
Unknown fields are ignored so backend additions never break parsing.
"""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict

# =============================================================================
# Enums and Vocabularies
# =============================================================================


class OnboardingStatus(str, Enum):
    """Candidate onboarding lifecycle status.

    Values match the backend's ``onboarding_status`` column.
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        """Completed and skipped end the wizard."""
        return self in (OnboardingStatus.COMPLETED, OnboardingStatus.SKIPPED)


JOB_TYPE_OPTIONS: tuple[str, ...] = ("Full-time", "Part-time", "Contract", "Freelance")
"""Job-type tags offered by the preferences step."""

AVAILABILITY_OPTIONS: tuple[str, ...] = (
    "Immediate",
    "2 weeks",
    "1 month",
    "2+ months",
    "Not actively looking",
)
"""Availability tags offered by the preferences step."""


# =============================================================================
# Identity
# =============================================================================


@dataclass(frozen=True)
class Identity:
    """An authenticated user as reported by the auth provider.

    Attributes:
        user_id: Stable auth-provider user id (single-flight key).
        email: Primary email address.
        display_name: Full name, if the provider supplied one.
        avatar_url: Profile image URL, if the provider supplied one.
    """

    user_id: str
    email: str
    display_name: str | None = None
    avatar_url: str | None = None

    @property
    def fallback_name(self) -> str:
        """Display name, or the email local part when none was supplied."""
        if self.display_name and self.display_name.strip():
            return self.display_name.strip()
        return self.email.split("@", 1)[0]


# =============================================================================
# Profile Record
# =============================================================================


class ProfileRecord(BaseModel):
    """Candidate record as returned by the backend.

    ``desired_job_type`` stays in wire form (one delimited string); the
    field codec decodes it when the draft is populated.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    onboarding_status: OnboardingStatus = OnboardingStatus.PENDING

    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    location: str | None = None
    current_title: str | None = None
    current_company: str | None = None
    bio: str | None = None
    linkedin_url: str | None = None
    github_url: str | None = None
    portfolio_url: str | None = None

    desired_job_type: str | None = None
    availability: str | None = None
    open_to_remote: bool | None = None
    open_to_relocation: bool | None = None
    desired_salary_min: int | None = None
    desired_salary_max: int | None = None

    resume_document_id: str | None = None
