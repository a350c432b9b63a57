class AgentError(Exception):
    """Base exception for all local signing agent errors."""


class AgentUnreachableError(AgentError):
    """Raised when nothing listens on the agent endpoint (agent not running or crashed)."""

    def __init__(self, message: str = "agent unreachable") -> None:
        super().__init__(message)


class AgentSignError(AgentError):
    """Raised when the agent answers a sign request without a usable signature."""
