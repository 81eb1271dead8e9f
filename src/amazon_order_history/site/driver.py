from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Protocol

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page, sync_playwright

from ..errors import InteractionError


logger = logging.getLogger(__name__)


class PageDriver(Protocol):
    """
    The small set of browser-tab capabilities the login engine and harvester depend on.

    Query methods (`is_visible`, `text_of`, `body_text`, `title`) report "nothing there" instead of raising;
    actions (`goto`, `fill`, `click`) raise `InteractionError`.
    """

    def current_url(self) -> str: ...

    def title(self) -> str: ...

    def goto(self, url: str, *, timeout_ms: int) -> None: ...

    def is_visible(self, selector: str) -> bool: ...

    def text_of(self, selector: str) -> str: ...

    def body_text(self) -> str: ...

    def content(self) -> str: ...

    def fill(self, selector: str, value: str) -> None: ...

    def click(self, selector: str) -> None: ...

    def wait(self, ms: int) -> None: ...

    def wait_for_load(self, *, timeout_ms: int) -> bool: ...

    def snapshot(self, name: str) -> None: ...


class PlaywrightPageDriver:
    def __init__(self, page: Page, *, debug_dir: str, action_timeout_ms: int = 5_000) -> None:
        self.page = page
        self.debug_dir = debug_dir
        self.action_timeout_ms = action_timeout_ms

    def current_url(self) -> str:
        try:
            return self.page.url or ""
        except PlaywrightError:
            return ""

    def title(self) -> str:
        try:
            return self.page.title() or ""
        except PlaywrightError:
            return ""

    def goto(self, url: str, *, timeout_ms: int) -> None:
        try:
            self.page.goto(url, wait_until="load", timeout=timeout_ms)
        except PlaywrightError as e:
            raise InteractionError(f"Navigation to {url} failed: {e}") from e

    def is_visible(self, selector: str) -> bool:
        try:
            return bool(self.page.is_visible(selector))
        except PlaywrightError:
            logger.debug("is_visible failed (selector=%s)", selector, exc_info=True)
            return False

    def text_of(self, selector: str) -> str:
        try:
            loc = self.page.locator(selector)
            if loc.count() == 0:
                return ""
            return (loc.first.text_content(timeout=self.action_timeout_ms) or "").strip()
        except PlaywrightError:
            logger.debug("text_of failed (selector=%s)", selector, exc_info=True)
            return ""

    def body_text(self) -> str:
        try:
            return self.page.inner_text("body", timeout=self.action_timeout_ms) or ""
        except PlaywrightError:
            return ""

    def content(self) -> str:
        try:
            return self.page.content()
        except PlaywrightError as e:
            raise InteractionError(f"Could not read page HTML: {e}") from e

    def fill(self, selector: str, value: str) -> None:
        try:
            self.page.fill(selector, value, timeout=self.action_timeout_ms)
        except PlaywrightError as e:
            raise InteractionError(f"fill failed (selector={selector}): {e}") from e

    def click(self, selector: str) -> None:
        try:
            self.page.click(selector, timeout=self.action_timeout_ms)
        except PlaywrightError as e:
            raise InteractionError(f"click failed (selector={selector}): {e}") from e

    def wait(self, ms: int) -> None:
        self.page.wait_for_timeout(ms)

    def wait_for_load(self, *, timeout_ms: int) -> bool:
        try:
            self.page.wait_for_load_state("load", timeout=timeout_ms)
            return True
        except PlaywrightError:
            return False

    def snapshot(self, name: str) -> None:
        """
        Best-effort screenshot + HTML + body text for troubleshooting. Never raises.
        """
        safe = re.sub(r"[^a-zA-Z0-9_-]+", "_", name).strip("_")[:80] or "snapshot"
        logger.debug("Snapshot %s (url=%s)", safe, self.current_url())
        try:
            out_dir = Path(self.debug_dir)
            out_dir.mkdir(parents=True, exist_ok=True)
            self.page.screenshot(path=str(out_dir / f"{safe}.png"), full_page=True)
            (out_dir / f"{safe}.html").write_text(self.page.content(), encoding="utf-8")
            try:
                (out_dir / f"{safe}.txt").write_text(self.page.inner_text("body"), encoding="utf-8")
            except PlaywrightError:
                pass
        except (PlaywrightError, OSError):
            logger.debug("Failed to save snapshot (name=%s).", safe, exc_info=True)


@contextmanager
def open_browser(
    *,
    headless: bool,
    debug_dir: str,
    slow_mo_ms: int = 0,
    action_timeout_ms: int = 5_000,
) -> Iterator[PlaywrightPageDriver]:
    """
    Launch Chromium with one context + tab, yielding a driver for the tab.

    The context and browser are closed on every exit path, including exceptions and Ctrl+C.
    """
    Path(debug_dir).mkdir(parents=True, exist_ok=True)
    with sync_playwright() as p:
        slow_mo = int(slow_mo_ms or 0)
        try:
            browser = p.chromium.launch(headless=headless, slow_mo=slow_mo)
        except PlaywrightError as e:
            msg = str(e)
            if "Executable doesn't exist" not in msg:
                raise
            logger.warning(
                "Playwright Chromium executable missing; falling back to system browser channel. (%s)",
                msg,
            )
            try:
                browser = p.chromium.launch(headless=headless, slow_mo=slow_mo, channel="chrome")
            except PlaywrightError:
                browser = p.chromium.launch(headless=headless, slow_mo=slow_mo, channel="msedge")
        try:
            ctx = browser.new_context(color_scheme="light", locale="en-IN")
            try:
                page = ctx.new_page()
                yield PlaywrightPageDriver(page, debug_dir=debug_dir, action_timeout_ms=action_timeout_ms)
            finally:
                try:
                    ctx.close()
                except PlaywrightError:
                    logger.debug("Failed to close browser context.", exc_info=True)
        finally:
            browser.close()
