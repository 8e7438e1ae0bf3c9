"""Secretary exception hierarchy."""


class SecretaryError(Exception):
    """Base exception for Secretary errors."""
    pass


class BackendUnavailableError(SecretaryError):
    """No backend is attached to the session."""
    pass


class SessionClosedError(SecretaryError):
    """The session scope was closed while work was pending."""
    pass


class UnknownNodeError(SecretaryError):
    """Node id has no definition in the flow graph."""
    pass


__all__ = [
    "SecretaryError",
    "BackendUnavailableError",
    "SessionClosedError",
    "UnknownNodeError",
]
