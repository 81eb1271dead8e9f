from __future__ import annotations

from typing import Callable, Iterable, Optional, Sequence

from amazon_order_history.errors import InteractionError


class FakePage:
    """
    Scriptable stand-in for a browser tab.

    Visibility is exact selector membership in `visible`. `on_click[selector]` and `on_goto` let a test
    change the "page" in response to actions. Waits only accumulate into `waited_ms`.
    """

    def __init__(
        self,
        *,
        url: str = "about:blank",
        title: str = "",
        visible: Iterable[str] = (),
        texts: Optional[dict[str, str]] = None,
        body: str = "",
        html: str = "<html><body></body></html>",
    ) -> None:
        self.url = url
        self.page_title = title
        self.visible: set[str] = set(visible)
        self.texts: dict[str, str] = dict(texts or {})
        self.body = body
        self.html = html

        self.calls: list[tuple[str, ...]] = []
        self.checked: list[str] = []
        self.snapshots: list[str] = []
        self.waited_ms = 0

        self.on_click: dict[str, Callable[["FakePage"], None]] = {}
        self.on_goto: Optional[Callable[["FakePage", str], None]] = None
        self.fail_goto: set[str] = set()
        self.raise_on_visible: set[str] = set()

    def show(
        self,
        *,
        url: Optional[str] = None,
        title: Optional[str] = None,
        visible: Iterable[str] = (),
        texts: Optional[dict[str, str]] = None,
        body: str = "",
        html: Optional[str] = None,
    ) -> None:
        """Replace what is on screen."""
        if url is not None:
            self.url = url
        if title is not None:
            self.page_title = title
        self.visible = set(visible)
        self.texts = dict(texts or {})
        self.body = body
        if html is not None:
            self.html = html

    # PageDriver

    def current_url(self) -> str:
        return self.url

    def title(self) -> str:
        return self.page_title

    def goto(self, url: str, *, timeout_ms: int) -> None:
        self.calls.append(("goto", url))
        if url in self.fail_goto:
            raise InteractionError(f"Navigation to {url} failed: net::ERR_TIMED_OUT")
        self.url = url
        if self.on_goto is not None:
            self.on_goto(self, url)

    def is_visible(self, selector: str) -> bool:
        self.checked.append(selector)
        if selector in self.raise_on_visible:
            raise ValueError(f"bad selector: {selector}")
        return selector in self.visible

    def text_of(self, selector: str) -> str:
        return self.texts.get(selector, "")

    def body_text(self) -> str:
        return self.body

    def content(self) -> str:
        return self.html

    def fill(self, selector: str, value: str) -> None:
        self.calls.append(("fill", selector, value))
        if selector not in self.visible:
            raise InteractionError(f"fill failed (selector={selector}): element not found")

    def click(self, selector: str) -> None:
        self.calls.append(("click", selector))
        if selector not in self.visible:
            raise InteractionError(f"click failed (selector={selector}): element not found")
        handler = self.on_click.get(selector)
        if handler is not None:
            handler(self)

    def wait(self, ms: int) -> None:
        self.waited_ms += int(ms)

    def wait_for_load(self, *, timeout_ms: int) -> bool:
        return True

    def snapshot(self, name: str) -> None:
        self.snapshots.append(name)

    # helpers

    def fills(self, selector: str) -> list[str]:
        return [c[2] for c in self.calls if c[0] == "fill" and c[1] == selector]

    def last_fill(self, selector: str) -> str:
        values = self.fills(selector)
        return values[-1] if values else ""

    def gotos(self) -> list[str]:
        return [c[1] for c in self.calls if c[0] == "goto"]


class ScriptedCredentials:
    """
    Returns answers in order; once a script has one answer left it keeps repeating it.
    """

    def __init__(
        self,
        *,
        identifiers: Sequence[str] = ("user@example.com",),
        secrets: Sequence[str] = ("hunter2",),
        codes: Sequence[str] = ("123456",),
    ) -> None:
        self._scripts = {
            "identifier": list(identifiers),
            "secret": list(secrets),
            "verification_code": list(codes),
        }
        self.requests: list[tuple[str, int, int]] = []

    def _next(self, kind: str, attempt: int, remaining: int) -> str:
        self.requests.append((kind, attempt, remaining))
        script = self._scripts[kind]
        return script.pop(0) if len(script) > 1 else script[0]

    def identifier(self, *, attempt: int, remaining: int) -> str:
        return self._next("identifier", attempt, remaining)

    def secret(self, *, attempt: int, remaining: int) -> str:
        return self._next("secret", attempt, remaining)

    def verification_code(self, *, attempt: int, remaining: int) -> str:
        return self._next("verification_code", attempt, remaining)

    def count(self, kind: str) -> int:
        return sum(1 for r in self.requests if r[0] == kind)
