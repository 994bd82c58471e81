"""
Application errors for clean API error handling.

Raise these from services and the agent layer; app/api/handlers.py maps them to
HTTP (InvalidRequestError -> 400, everything else -> 500 with {"error": message}).
"""


class AppError(Exception):
    """Base class for errors that carry a user-facing message."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class RateLimitedError(AppError):
    """Raised when the caller has exhausted its quota. Handled by the route, never surfaced as an error."""


class InvalidRequestError(AppError):
    """Raised when the request cannot be processed (e.g. empty message list)."""


class AgentError(AppError):
    """Raised when the agent run fails."""


class ToolFailureError(AgentError):
    """Raised when a tool (e.g. the knowledge retriever) fails during the agent loop."""


class ModelFailureError(AgentError):
    """Raised when the language model errors, returns unparseable output, or never reaches an answer."""


class AgentTimeoutError(AgentError):
    """Raised when an agent run exceeds its time limit."""


class MalformedObservationError(AgentError):
    """Raised when a tool observation cannot be parsed into JSON objects."""
