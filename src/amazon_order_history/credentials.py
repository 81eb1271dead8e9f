from __future__ import annotations

import getpass
import logging
from typing import Callable, Optional, Protocol

from .errors import CredentialsUnavailableError


logger = logging.getLogger(__name__)


class CredentialProvider(Protocol):
    """
    Supplies login input on demand. Each method may be called again after a failed attempt;
    `attempt` is 1-based and `remaining` counts attempts left including this one.
    """

    def identifier(self, *, attempt: int, remaining: int) -> str: ...

    def secret(self, *, attempt: int, remaining: int) -> str: ...

    def verification_code(self, *, attempt: int, remaining: int) -> str: ...


class PromptCredentialProvider:
    """
    Terminal prompts. A configured username/password (from `.env` / config) is used for the first request
    only; retries always ask the user.
    """

    def __init__(
        self,
        *,
        username: str = "",
        password: str = "",
        input_fn: Callable[[str], str] = input,
        secret_fn: Callable[[str], str] = getpass.getpass,
        echo: Callable[[str], None] = print,
    ) -> None:
        self._preset_username: Optional[str] = username.strip() or None
        self._preset_password: Optional[str] = password or None
        self._input = input_fn
        self._secret = secret_fn
        self._echo = echo

    def identifier(self, *, attempt: int, remaining: int) -> str:
        if self._preset_username is not None:
            value, self._preset_username = self._preset_username, None
            logger.info("Using configured username.")
            return value
        return self._ask(self._input, f"Enter your Amazon.in email or 10-digit phone number ({remaining} left): ")

    def secret(self, *, attempt: int, remaining: int) -> str:
        if self._preset_password is not None:
            value, self._preset_password = self._preset_password, None
            logger.info("Using configured password.")
            return value
        return self._ask(self._secret, f"Enter your password ({remaining} left): ")

    def verification_code(self, *, attempt: int, remaining: int) -> str:
        self._echo(f"Verification required (attempt {attempt}, {remaining} left).")
        return self._ask(self._input, "Enter the OTP sent to your device: ")

    def _ask(self, fn: Callable[[str], str], prompt: str) -> str:
        try:
            return fn(prompt)
        except EOFError as e:
            raise CredentialsUnavailableError("Input stream closed while waiting for login input.") from e
