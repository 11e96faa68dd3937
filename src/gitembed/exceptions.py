"""
Custom exceptions for gitembed.

Every terminal failure of the resolver pipeline maps onto one of these classes.
Each carries a short `user_message` that is safe to hand back to a caller, while
`details` holds transport or parsing context meant only for debug logging.
"""

from gitembed.constants import (
    MSG_CUSTOM_DOMAIN_REQUIRED,
    MSG_FETCH_FAILED,
    MSG_REPOSITORY_REQUIRED,
)


class GitEmbedError(Exception):
    """
    Base exception for all gitembed errors.

    All custom exceptions in gitembed inherit from this class to allow for easy
    catching of all application-specific errors.
    """

    user_message = MSG_FETCH_FAILED

    def __init__(self, message: str, details: str | None = None) -> None:
        """
        Initialize the exception.

        Args:
            message: The primary error message.
            details: Optional additional context about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(GitEmbedError):
    """Exception raised when the configuration file cannot be read or is invalid."""

    pass


# =============================================================================
# Request Validation Errors
# =============================================================================


class RequestValidationError(GitEmbedError):
    """
    Exception raised when a request is rejected before any upstream call.

    These are caller-facing: the message itself is the user-visible text.
    """

    @property
    def user_message(self) -> str:  # type: ignore[override]
        return self.message


class MissingRepositoryIdentityError(RequestValidationError):
    """Raised when the owner or repository name is empty."""

    def __init__(self, details: str | None = None) -> None:
        super().__init__(MSG_REPOSITORY_REQUIRED, details)


class MissingCustomDomainError(RequestValidationError):
    """Raised when a self-hosted platform is requested without a domain."""

    def __init__(self, platform: str, details: str | None = None) -> None:
        super().__init__(
            MSG_CUSTOM_DOMAIN_REQUIRED.format(platform=str(platform).capitalize()),
            details,
        )
        self.platform = platform


# =============================================================================
# Resolution Errors
# =============================================================================


class ResolutionError(GitEmbedError):
    """
    Base exception for failures while resolving repository metadata.

    All subclasses surface to callers as the generic fetch-failure message.
    """

    pass


class UnsupportedPlatformError(ResolutionError):
    """Raised when the platform identifier is not one of the known platforms."""

    def __init__(self, platform: str, details: str | None = None) -> None:
        super().__init__(f"Unsupported platform: {platform!r}", details)
        self.platform = platform


class UpstreamError(ResolutionError):
    """
    Base exception for failures of the primary repository-metadata fetch.

    Attributes:
        url: The upstream URL that was requested.
        status_code: HTTP status code when a response was received.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.url = url
        self.status_code = status_code


class UpstreamUnavailableError(UpstreamError):
    """Raised on a transport error or a non-200 response."""

    pass


class UpstreamMalformedError(UpstreamError):
    """Raised when a 200 response does not carry a usable JSON repository object."""

    pass
