from __future__ import annotations

from typing import Optional


class StartupError(RuntimeError):
    """
    Raised when the login entry point cannot be loaded. There is no retry for this: without the login page
    there is nothing for the login flow to work with.
    """


class InteractionError(RuntimeError):
    """
    Raised by a page driver when navigation, fill or click on the live page fails.
    """


class CredentialsUnavailableError(RuntimeError):
    """
    Raised when the credential provider can no longer supply input (e.g. stdin closed).
    """


class LoginFailedError(RuntimeError):
    def __init__(self, reason: str, *, state: Optional[str] = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.state = state
