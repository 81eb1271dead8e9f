from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Iterable, Optional, Sequence

from .driver import PageDriver


logger = logging.getLogger(__name__)


class Signal(str, Enum):
    NAVIGATION = "navigation"
    LANDMARK = "landmark"
    TIMEOUT = "timeout"


def rounds_for(timeout_ms: int, poll_ms: int) -> int:
    return max(1, int(timeout_ms) // max(1, int(poll_ms)))


def first_visible(
    driver: PageDriver,
    selectors: Sequence[str],
    *,
    rounds: int = 1,
    poll_ms: int = 0,
) -> Optional[str]:
    """
    Return the first selector (in order) whose element is visible, or None.

    Candidates are evaluated lazily: later selectors are only queried when earlier ones miss.
    With `rounds > 1` the whole list is re-scanned after each `poll_ms` wait.
    """
    for round_idx in range(max(1, rounds)):
        for selector in selectors:
            try:
                if driver.is_visible(selector):
                    return selector
            except Exception:
                # A malformed or engine-specific selector must not stop the remaining candidates.
                logger.debug("Visibility check raised (selector=%s); skipping.", selector, exc_info=True)
        if round_idx + 1 < rounds and poll_ms > 0:
            driver.wait(poll_ms)
    return None


def any_visible(driver: PageDriver, selectors: Sequence[str]) -> bool:
    return first_visible(driver, selectors) is not None


def poll_until(
    driver: PageDriver,
    predicate: Callable[[], bool],
    *,
    rounds: int,
    poll_ms: int,
) -> bool:
    for round_idx in range(max(1, rounds)):
        if predicate():
            return True
        if round_idx + 1 < rounds:
            driver.wait(poll_ms)
    return False


def url_matches(url: str, fragments: Iterable[str]) -> bool:
    u = (url or "").lower()
    return any(f.lower() in u for f in fragments if f)


def wait_for_signal(
    driver: PageDriver,
    *,
    landmarks: Sequence[str],
    timeout_ms: int,
    poll_ms: int,
) -> Signal:
    """
    Race three outcomes after a form submit: the tab navigated and finished loading, a landmark element
    appeared, or the timeout elapsed. Implemented as short polls so no single wait blocks for long.
    """
    start_url = driver.current_url()
    for _ in range(rounds_for(timeout_ms, poll_ms)):
        if driver.current_url() != start_url and driver.wait_for_load(timeout_ms=poll_ms):
            return Signal.NAVIGATION
        if any_visible(driver, landmarks):
            return Signal.LANDMARK
        driver.wait(poll_ms)
    return Signal.TIMEOUT
