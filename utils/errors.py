"""
Defines custom exception classes for the application.
"""
from typing import TYPE_CHECKING, Iterable, List, Optional

if TYPE_CHECKING:
    from core.contracts.models import StrategyAttempt


INVALID_API_KEY_CODE = "invalid_api_key"

# Phrases that identify a rejected credential when no structured code is available.
AUTH_ERROR_PHRASES = (
    "invalid_api_key",
    "incorrect api key",
    "invalid api key",
    "api authentication failed",
)
AUTH_ERROR_KEYWORDS = ("authentication", "unauthorized")
AUTH_ERROR_PROVIDERS = ("openai", "anthropic")


class CommitCraftException(Exception):
    """Base exception class for commitcraft application."""
    pass

class CollectorError(CommitCraftException):
    """Raised when the diff cannot be obtained from the repository."""
    pass

class NoChangesError(CommitCraftException):
    """Raised when there is nothing to describe."""
    pass

class ConfigError(CommitCraftException):
    """Raised when there is a configuration error."""
    pass

class ProviderError(CommitCraftException):
    """Raised when an error occurs with a text-generation provider."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code

class AuthenticationError(ProviderError):
    """Raised when the provider rejects (or never received) a usable credential."""

    def __init__(self, message: str, code: Optional[str] = INVALID_API_KEY_CODE):
        super().__init__(message, code=code)

class GenerationError(CommitCraftException):
    """Raised when every generation strategy failed."""

    def __init__(self, attempts: Iterable["StrategyAttempt"]):
        self.attempts: List["StrategyAttempt"] = list(attempts)
        super().__init__(self._render())

    def _render(self) -> str:
        if not self.attempts:
            return "All generation strategies failed: no strategy was attempted"
        lines = [f"  - {attempt.strategy}: {attempt.error}" for attempt in self.attempts]
        return "All generation strategies failed:\n" + "\n".join(lines)


def is_authentication_error(error: BaseException) -> bool:
    """
    Checks whether an error means the configured credential was rejected.

    Structured information wins: an AuthenticationError, or any error carrying
    an ``invalid_api_key`` code. Otherwise the error text is matched against
    known phrases. Bare "authentication"/"unauthorized" wording only counts
    when it also names a provider, so unrelated failures are not mistaken
    for credential problems.
    """
    if isinstance(error, AuthenticationError):
        return True
    if getattr(error, "code", None) == INVALID_API_KEY_CODE:
        return True

    message = str(error).lower()
    if any(phrase in message for phrase in AUTH_ERROR_PHRASES):
        return True
    return any(keyword in message for keyword in AUTH_ERROR_KEYWORDS) and any(
        provider in message for provider in AUTH_ERROR_PROVIDERS
    )
