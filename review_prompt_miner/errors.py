"""Exception types and user-facing error formatting."""

from typing import Optional

from .output.colors import RED, RESET


NETWORK_ERROR_PATTERNS = [
    'network',
    'connection',
    'econnrefused',
    'econnreset',
    'etimedout',
    'enotfound',
    'unable to connect',
    'max retries exceeded',
    'name or service not known',
]

AUTH_ERROR_PATTERNS = [
    'bad credentials',
    'unauthorized',
    '401',
    'invalid api key',
    'authentication',
]


class ReviewPromptMinerError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(ReviewPromptMinerError):
    """Missing credentials or inaccessible organization; fatal before any fetch."""

    def __init__(self, message: str, suggestion: Optional[str] = None):
        super().__init__(message)
        self.suggestion = suggestion


class GraphQLError(ReviewPromptMinerError):
    """A GitHub GraphQL request failed."""


class AuthenticationError(GraphQLError):
    """GitHub rejected the token."""


class ServiceUnavailableError(GraphQLError):
    """GitHub kept returning server errors after all retries."""


class LLMError(ReviewPromptMinerError):
    """An Anthropic API call failed for a reason other than prompt size."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TokenLimitError(LLMError):
    """The analysis prompt does not fit into the model's context window."""


class InputFormatError(ReviewPromptMinerError):
    """An analysis input file is missing or has an unknown structure."""


def format_error(brief: str, detail: Optional[str] = None, suggestion: Optional[str] = None) -> str:
    """Format an error message for the terminal.

    Args:
        brief: One-line description of what failed
        detail: Optional longer explanation
        suggestion: Optional remediation hint

    Returns:
        Multi-line message, brief line colored red
    """
    lines = [f"{RED}✗ Error: {brief}{RESET}", ""]

    if detail:
        lines.append(detail)
        lines.append("")

    if suggestion:
        lines.append(f"Suggestion: {suggestion}")

    return "\n".join(lines)


def is_network_error(error: Exception) -> bool:
    message = str(error).lower()
    return any(pattern in message for pattern in NETWORK_ERROR_PATTERNS)


def is_auth_error(error: Exception) -> bool:
    if isinstance(error, AuthenticationError):
        return True
    message = str(error).lower()
    return any(pattern in message for pattern in AUTH_ERROR_PATTERNS)
