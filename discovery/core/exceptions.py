"""
Custom exception hierarchy for the discovery assistant.

All application exceptions inherit from DiscoveryError.
"""


class DiscoveryError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(DiscoveryError):
    """Invalid or missing configuration."""

    pass


# =============================================================================
# LLM Errors
# =============================================================================


class LLMError(DiscoveryError):
    """Base for LLM-related errors."""

    pass


class LLMTimeoutError(LLMError):
    """LLM call timed out."""

    pass


class LLMRateLimitError(LLMError):
    """LLM rate limit exceeded."""

    pass


class LLMResponseParseError(LLMError):
    """Failed to parse LLM response."""

    pass


# =============================================================================
# Listening Session Errors
# =============================================================================


class SessionError(DiscoveryError):
    """Listening session error."""

    pass


class SessionNotFoundError(SessionError):
    """Session does not exist."""

    pass


class SessionAlreadyActiveError(SessionError):
    """A listening session is already running."""

    pass


class SessionNotActiveError(SessionError):
    """Operation requires a listening session."""

    pass


class RecognizerError(SessionError):
    """The speech recognizer could not be started."""

    pass


# =============================================================================
# Backlog Errors
# =============================================================================


class QuestionNotFoundError(DiscoveryError):
    """Question does not exist in the backlog."""

    pass


class UserNotFoundError(DiscoveryError):
    """User does not exist in the roster."""

    pass


class PermissionDeniedError(DiscoveryError):
    """Operator role does not allow the operation."""

    pass


class ValidationError(DiscoveryError):
    """Input validation failed."""

    pass
