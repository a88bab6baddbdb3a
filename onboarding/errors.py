"""
Onboarding error taxonomy.

Every failure the workflow surfaces is an OnboardingError subclass:
  - ValidationError        → local, raised before any network call
  - OtpRejectedError       → server says the code is wrong (consumes an attempt)
  - OtpLockedError         → attempt limit reached (locally or server-side)
  - TransientNetworkError  → connectivity / timeout / gateway (retryable, free)
  - ResourceConflictError  → account or shop already exists
  - RateLimitedError       → server cooldown on sending codes
  - UpstreamError          → any other non-success response
"""


class OnboardingError(Exception):
    """Base class for workflow errors."""

    retryable = True

    def __init__(self, message: str = "", *, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationError(OnboardingError):
    """Form input rejected locally."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class OtpRejectedError(OnboardingError):
    pass


class OtpLockedError(OnboardingError):
    retryable = False


class TransientNetworkError(OnboardingError):
    pass


class ResourceConflictError(OnboardingError):
    """The resource already exists; retrying will not help."""

    retryable = False

    def __init__(
        self,
        message: str = "",
        *,
        status_code: int | None = None,
        existing_id: str | None = None,
    ):
        super().__init__(message, status_code=status_code)
        self.existing_id = existing_id


class RateLimitedError(OnboardingError):
    pass


class UpstreamError(OnboardingError):
    pass


class InvalidTransitionError(OnboardingError):
    retryable = False


class DuplicateSubmissionError(OnboardingError):
    """A call for the same stage is already in flight."""
