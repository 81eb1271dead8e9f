from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from ..config import AppConfig
from ..credentials import CredentialProvider
from ..errors import InteractionError, LoginFailedError, StartupError
from ..models import AuthSession, Credentials, IdentifierKind
from ..site.driver import PageDriver
from ..site.locate import Signal, first_visible, rounds_for, url_matches, wait_for_signal
from ..site.selectors import SiteSelectors
from ..util.validators import classify_identifier, mask_code, validate_secret
from .second_factor import SecondFactorDetector


logger = logging.getLogger(__name__)


class AuthState(str, Enum):
    START = "start"
    USERNAME_ENTRY = "username_entry"
    PASSWORD_ENTRY = "password_entry"
    SECOND_FACTOR_CHECK = "second_factor_check"
    SECOND_FACTOR_ENTRY = "second_factor_entry"
    VERIFY = "verify"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


class StageOutcome(str, Enum):
    SUCCESS = "success"
    RETRY = "retry"
    EXHAUSTED = "exhausted"


class PasswordResult(str, Enum):
    ACCEPTED = "accepted"
    SECOND_FACTOR_PENDING = "second_factor_pending"
    REJECTED = "rejected"


@dataclass
class AttemptBudget:
    total: int
    used: int = 0

    @property
    def remaining(self) -> int:
        return max(0, self.total - self.used)

    @property
    def attempt(self) -> int:
        return self.used + 1

    @property
    def exhausted(self) -> bool:
        return self.remaining <= 0

    def consume(self) -> int:
        self.used += 1
        return self.remaining


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    t = (text or "").lower()
    return any(k.lower() in t for k in keywords)


class AuthEngine:
    """
    Sign-in state machine:

        START -> USERNAME_ENTRY -> PASSWORD_ENTRY -> SECOND_FACTOR_CHECK -> (SECOND_FACTOR_ENTRY) -> VERIFY
              -> AUTHENTICATED | FAILED

    Each stage has its own attempt budget. Invalid input (malformed identifier, empty secret/code) is
    re-requested without touching the page and without using an attempt. A VERIFY miss restarts the whole
    cycle from a fresh sign-in page while the outer `login_attempts` budget allows.
    """

    def __init__(
        self,
        driver: PageDriver,
        credentials: CredentialProvider,
        *,
        config: AppConfig,
        selectors: Optional[SiteSelectors] = None,
    ) -> None:
        self.driver = driver
        self.credentials = credentials
        self.site = config.site
        self.budgets = config.auth
        self.timeouts = config.timeouts
        self.selectors = selectors or SiteSelectors()
        self.detector = SecondFactorDetector(self.selectors)

        self.state = AuthState.START
        self.transitions: list[AuthState] = []
        self.failure_reason: Optional[str] = None
        self._failed_in: Optional[AuthState] = None
        self._identifier = ""
        self._identifier_kind: IdentifierKind = IdentifierKind.UNKNOWN

    def authenticate(self) -> AuthSession:
        """
        Run the state machine to a terminal state.

        Returns the session on AUTHENTICATED; raises `LoginFailedError` on FAILED and `StartupError` if the
        sign-in page cannot be loaded.
        """
        cycles = self.budgets.login_attempts
        for cycle in range(1, cycles + 1):
            self._transition(AuthState.START)
            self._navigate_to_login()

            outcome = self._run_cycle()
            if outcome is StageOutcome.SUCCESS:
                self._transition(AuthState.AUTHENTICATED)
                logger.info("Login successful (identifier type=%s).", self._identifier_kind.value)
                return AuthSession(driver=self.driver, identifier_kind=self._identifier_kind)
            if outcome is StageOutcome.EXHAUSTED:
                break
            logger.warning("Login cycle %d/%d did not reach an authenticated page.", cycle, cycles)

        self._failed_in = self._failed_in or self.state
        self._transition(AuthState.FAILED)
        reason = self.failure_reason or "Login failed."
        logger.error("Login failed in state %s: %s", self._failed_in.value, reason)
        raise LoginFailedError(reason, state=self._failed_in.value)

    def _run_cycle(self) -> StageOutcome:
        self._transition(AuthState.USERNAME_ENTRY)
        if self._username_stage() is StageOutcome.EXHAUSTED:
            return StageOutcome.EXHAUSTED

        self._transition(AuthState.PASSWORD_ENTRY)
        if self._password_stage() is StageOutcome.EXHAUSTED:
            return StageOutcome.EXHAUSTED

        self._transition(AuthState.SECOND_FACTOR_CHECK)
        self.driver.snapshot("possible_otp_page")
        if self.detector.is_required(self.driver):
            self._transition(AuthState.SECOND_FACTOR_ENTRY)
            if self._second_factor_stage() is StageOutcome.EXHAUSTED:
                return StageOutcome.EXHAUSTED

        self._transition(AuthState.VERIFY)
        return self._verify()

    def _transition(self, new_state: AuthState) -> None:
        if new_state is not self.state:
            logger.debug("Login state %s -> %s", self.state.value, new_state.value)
        self.state = new_state
        self.transitions.append(new_state)

    def _navigate_to_login(self) -> None:
        try:
            self.driver.goto(self.site.login_url, timeout_ms=self.timeouts.order_page_load)
        except InteractionError as e:
            raise StartupError(f"Could not open the sign-in page: {e}") from e
        self.driver.wait(self.timeouts.page_settle)

    def _exhausted(self, reason: str) -> StageOutcome:
        self.failure_reason = reason
        self._failed_in = self.state
        return StageOutcome.EXHAUSTED

    def _username_stage(self) -> StageOutcome:
        budget = AttemptBudget(self.budgets.username_attempts)
        while True:
            identifier, kind = self._request_identifier(budget)
            reason = self._submit_identifier(identifier)
            if reason is None:
                self._identifier, self._identifier_kind = identifier, kind
                logger.info("Identifier accepted (%s); password step reached.", kind.value)
                return StageOutcome.SUCCESS

            remaining = budget.consume()
            logger.warning("Identifier step failed: %s (%d attempt(s) left)", reason, remaining)
            self.driver.snapshot(f"username_failed_{remaining}_left")
            if budget.exhausted:
                return self._exhausted(f"Identifier not accepted after {budget.total} attempt(s): {reason}")
            self._navigate_to_login()

    def _request_identifier(self, budget: AttemptBudget) -> tuple[str, IdentifierKind]:
        while True:
            value = (self.credentials.identifier(attempt=budget.attempt, remaining=budget.remaining) or "").strip()
            kind = classify_identifier(value)
            if kind is not IdentifierKind.UNKNOWN:
                return value, kind
            logger.warning("Please enter a valid email address or a 10-digit phone number.")

    def _submit_identifier(self, identifier: str) -> Optional[str]:
        """
        Return None when the password field shows up, else a failure reason.
        """
        d, s, t = self.driver, self.selectors, self.timeouts
        d.snapshot("login_page_state")
        try:
            d.fill(s.email_input, identifier)
            d.click(s.continue_button)
        except InteractionError as e:
            return f"could not submit identifier ({e})"

        d.wait(t.element_wait)

        if d.is_visible(s.invalid_identifier_alert):
            return "site reported an invalid mobile number / identifier"

        if d.is_visible(s.alert_content):
            text = d.text_of(s.alert_content)
            if _contains_any(text, s.identifier_failure_keywords):
                return f"site alert: {text}"
            logger.info("Alert after identifier submit (not treated as a failure): %r", text)

        found = first_visible(
            d,
            (s.password_input,),
            rounds=rounds_for(t.password_field, t.poll_interval),
            poll_ms=t.poll_interval,
        )
        if found is not None:
            return None
        return "timed out waiting for the password field"

    def _password_stage(self) -> StageOutcome:
        budget = AttemptBudget(self.budgets.password_attempts)
        while True:
            creds = Credentials(identifier=self._identifier, secret=self._request_secret(budget))
            result, reason = self._submit_secret(creds)
            if result is not PasswordResult.REJECTED:
                logger.info("Password step passed (%s).", result.value)
                return StageOutcome.SUCCESS

            remaining = budget.consume()
            logger.warning("Password step failed: %s (%d attempt(s) left)", reason, remaining)
            self.driver.snapshot(f"password_failed_{remaining}_left")
            if budget.exhausted:
                return self._exhausted(f"Password not accepted after {budget.total} attempt(s): {reason}")

    def _request_secret(self, budget: AttemptBudget) -> str:
        while True:
            secret = self.credentials.secret(attempt=budget.attempt, remaining=budget.remaining) or ""
            if validate_secret(secret):
                return secret
            logger.warning("Password cannot be empty.")

    def _submit_secret(self, creds: Credentials) -> tuple[PasswordResult, str]:
        """
        Submit the password and classify what the site did with it.

        "Still on an intermediate page" is ambiguous: it is either an OTP challenge or a rejection. Ambiguous
        alerts resolve towards the OTP branch; that branch re-checks the page anyway.
        """
        d, s, t = self.driver, self.selectors, self.timeouts
        try:
            d.fill(s.password_input, creds.secret)
            d.click(s.sign_in_button)
        except InteractionError as e:
            return PasswordResult.REJECTED, f"could not submit password ({e})"

        d.wait(t.element_wait)
        d.snapshot("after_password_submit")

        if self.detector.is_required(d):
            return PasswordResult.SECOND_FACTOR_PENDING, "second factor requested"

        if d.is_visible(s.incorrect_password_alert):
            return PasswordResult.REJECTED, "site reported the password is incorrect"

        if d.is_visible(s.error_container):
            text = d.text_of(s.error_container)
            if _contains_any(text, s.second_factor_alert_keywords):
                logger.info("Alert looks like a verification / rate-limit notice, not a rejection: %r", text)
                return PasswordResult.SECOND_FACTOR_PENDING, text
            return PasswordResult.REJECTED, f"site alert: {text}"

        signal = wait_for_signal(
            d,
            landmarks=s.post_login_landmarks,
            timeout_ms=t.sign_in_navigation,
            poll_ms=t.poll_interval,
        )
        url = d.current_url()
        logger.info("Sign-in submit settled (signal=%s url=%s)", signal.value, url)
        if not url_matches(url, s.auth_url_fragments):
            return PasswordResult.ACCEPTED, ""
        if self.detector.is_required(d):
            return PasswordResult.SECOND_FACTOR_PENDING, "second factor requested"
        return PasswordResult.REJECTED, "still on an authentication page after sign-in"

    def _second_factor_stage(self) -> StageOutcome:
        budget = AttemptBudget(self.budgets.verification_attempts)
        while True:
            code = self._request_code(budget)
            reason = self._submit_code(code)
            if reason is None:
                logger.info("Verification code accepted.")
                return StageOutcome.SUCCESS

            remaining = budget.consume()
            logger.warning("Verification failed: %s (%d attempt(s) left)", reason, remaining)
            self.driver.snapshot(f"otp_failed_{remaining}_left")
            if budget.exhausted:
                return self._exhausted(f"Verification code not accepted after {budget.total} attempt(s): {reason}")

    def _request_code(self, budget: AttemptBudget) -> str:
        while True:
            code = (self.credentials.verification_code(attempt=budget.attempt, remaining=budget.remaining) or "").strip()
            if code:
                return code
            logger.warning("Verification code cannot be empty.")

    def _submit_code(self, code: str) -> Optional[str]:
        d, s, t = self.driver, self.selectors, self.timeouts
        rounds = rounds_for(t.element_wait, t.poll_interval)
        d.snapshot("otp_page")

        input_sel = first_visible(d, s.otp_inputs, rounds=rounds, poll_ms=t.poll_interval)
        if input_sel is None:
            return "could not find the verification code input"
        try:
            d.fill(input_sel, "")
            d.fill(input_sel, code)
        except InteractionError as e:
            return f"could not enter the code ({e})"
        logger.info("Entered verification code %s (input=%s)", mask_code(code), input_sel)

        submit_sel = first_visible(d, s.otp_submit_buttons, rounds=rounds, poll_ms=t.poll_interval)
        if submit_sel is None:
            return "could not find the verification submit control"
        try:
            d.click(submit_sel)
        except InteractionError as e:
            return f"could not submit the code ({e})"

        signal = wait_for_signal(
            d,
            landmarks=s.post_login_landmarks,
            timeout_ms=t.otp_navigation,
            poll_ms=t.poll_interval,
        )
        if signal is Signal.TIMEOUT:
            logger.info("No navigation after submitting the code; checking page state.")
        d.snapshot("after_otp_submission")

        still_required = self.detector.detect(d)
        alert_visible = d.is_visible(s.error_container)
        if still_required is None and not alert_visible:
            return None
        alert_text = d.text_of(s.error_container) if alert_visible else ""
        return f"code not accepted ({alert_text or still_required})"

    def _verify(self) -> StageOutcome:
        hit = first_visible(self.driver, self.selectors.login_landmarks)
        if hit is None:
            return StageOutcome.SUCCESS
        logger.warning("Sign-in element %s still visible after completing login steps.", hit)
        self.driver.snapshot("still_on_login_page")
        self.failure_reason = "Still on the sign-in page after completing all login steps."
        self._failed_in = AuthState.VERIFY
        return StageOutcome.RETRY
