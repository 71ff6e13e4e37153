"""Exceptions raised by the Fetch Pet portal client."""


class FetchPetError(RuntimeError):
    """Base class for environment failures the caller cannot fix by retrying the same inputs."""


class BrowserNotInitializedError(FetchPetError):
    """Raised when an operation needs the browser page before initialize() has run."""

    def __init__(self, message: str = "Browser not initialized. Call initialize() first.") -> None:
        super().__init__(message)


class LoginError(FetchPetError):
    """Raised when logging in to the portal fails."""
