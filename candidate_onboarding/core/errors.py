"""Onboarding error taxonomy.

Every failure the orchestrator can surface has its own class so callers can
branch on type (or on ``code``) instead of parsing messages.

Adapters raise these. Services catch them at their public boundary and
hand them back inside an ``Outcome`` so expected failures never escape as
exceptions.
"""

__all__ = [
    "OnboardingError",
    "AuthTokenMissing",
    "RecordNotFound",
    "BackendRequestError",
    "AccountProvisioningFailed",
    "SubmissionFailed",
    "AttachmentValidationFailed",
    "AttachmentUploadFailed",
    "AttachmentDeleteFailed",
]


class OnboardingError(Exception):
    """Base class for onboarding errors.

    Attributes:
        code: Machine-readable error code (e.g., "SUBMISSION_FAILED").
        message: Human-readable message, safe to show to the candidate.
        cause: Underlying exception, if any.
    """

    code = "ONBOARDING_ERROR"

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class AuthTokenMissing(OnboardingError):
    """No bearer token could be obtained for a backend call."""

    code = "AUTH_TOKEN_MISSING"

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class RecordNotFound(OnboardingError):
    """The authenticated identity has no candidate record yet.

    Expected on first login; triggers provisioning and is never shown
    to the candidate.
    """

    code = "RECORD_NOT_FOUND"

    def __init__(self, message: str = "Candidate profile not found") -> None:
        super().__init__(message)


class BackendRequestError(OnboardingError):
    """Transport failure or non-404 error response from the backend.

    Attributes:
        status_code: HTTP status, or None when no response was received.
    """

    code = "BACKEND_REQUEST_FAILED"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(message, cause)


class AccountProvisioningFailed(OnboardingError):
    """The candidate record could neither be found nor created.

    Fatal for the session: nothing is editable without a record id.
    """

    code = "ACCOUNT_PROVISIONING_FAILED"

    def __init__(
        self,
        message: str = "We couldn't set up your profile. Please try again.",
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause)


class SubmissionFailed(OnboardingError):
    """A skip or complete update was rejected. Retryable."""

    code = "SUBMISSION_FAILED"

    def __init__(
        self,
        message: str = "Failed to save your profile. Please try again.",
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause)


class AttachmentValidationFailed(OnboardingError):
    """Selected file was rejected locally; no upload was attempted.

    Attributes:
        reason: One of "FILE_TOO_LARGE", "INVALID_FILE_TYPE", "EMPTY_FILE".
    """

    code = "ATTACHMENT_VALIDATION_FAILED"

    def __init__(self, message: str, reason: str) -> None:
        self.reason = reason
        super().__init__(message)


class AttachmentUploadFailed(OnboardingError):
    """Upload call failed; the attachment slot reverts to absent."""

    code = "ATTACHMENT_UPLOAD_FAILED"

    def __init__(
        self,
        message: str = "Failed to upload resume. Please try again.",
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause)


class AttachmentDeleteFailed(OnboardingError):
    """Best-effort document delete failed. Logged only, never surfaced."""

    code = "ATTACHMENT_DELETE_FAILED"

    def __init__(
        self,
        message: str = "Failed to delete document",
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause)
