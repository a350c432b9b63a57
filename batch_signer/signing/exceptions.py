class SigningError(Exception):
    """Base exception for signing run errors."""


class PreconditionError(SigningError):
    """Raised when the agent or certificate is not ready; no invoice was touched."""
