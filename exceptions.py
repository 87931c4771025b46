"""Error taxonomy for the SEO asset generator"""

from typing import Optional


class SeoGeneratorError(Exception):
    """Base error for the generator."""

    error_code = "INTERNAL_ERROR"


class ConfigurationError(SeoGeneratorError):
    """Invalid configuration value."""

    error_code = "CONFIGURATION_ERROR"


class ValidationError(SeoGeneratorError):
    """Caller input rejected before any session is allocated."""

    error_code = "VALIDATION_ERROR"


class GenerationError(SeoGeneratorError):
    """Unrecoverable failure while generating a bundle."""

    error_code = "GENERATION_FAILED"


class ArtifactWriteError(SeoGeneratorError):
    """A single artifact could not be written."""

    error_code = "ARTIFACT_WRITE_FAILED"

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f"Failed to write {filename}: {reason}")


class InsufficientCreditsError(SeoGeneratorError):
    """User balance is below the cost of the action."""

    error_code = "INSUFFICIENT_CREDITS"

    def __init__(self, user_id: int, required: int, available: int):
        self.user_id = user_id
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient credits. You need {required} credit(s) but have {available}."
        )


class UserNotFoundError(SeoGeneratorError):
    """No account with the given identifier."""

    error_code = "USER_NOT_FOUND"

    def __init__(self, user_id):
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


class SessionExpiredError(SeoGeneratorError):
    """Session namespace no longer exists."""

    error_code = "SESSION_EXPIRED"

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session expired or not found: {session_id}")


class PackagingError(SeoGeneratorError):
    """Archive could not be written."""

    error_code = "PACKAGING_FAILED"


class UpstreamError(SeoGeneratorError):
    """Text-enhancement service failed; safe to retry."""

    error_code = "UPSTREAM_ERROR"
    retryable = True

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
