from __future__ import annotations

import logging
import re
from typing import Optional

from ..site.driver import PageDriver
from ..site.locate import first_visible, url_matches
from ..site.selectors import SiteSelectors


logger = logging.getLogger(__name__)


class SecondFactorDetector:
    """
    Decide whether the tab is showing an OTP / two-step verification challenge.

    The sign-in markup drifts, so several independent signals are checked, cheapest first:
    1) URL path fragment (authoritative when present)
    2) page title wording
    3) known OTP form/input elements (first visible wins)
    4) phrase search over the page's body text
    """

    def __init__(self, selectors: SiteSelectors) -> None:
        self.selectors = selectors
        # Case-insensitive substring, anchored at a word start only ("otp" must not match "Hotpoint", "OTPs" must).
        self._phrase_patterns = [
            (phrase, re.compile(rf"\b{re.escape(phrase)}", re.I)) for phrase in selectors.second_factor_phrases
        ]

    def detect(self, driver: PageDriver) -> Optional[str]:
        """
        Return a short description of the first positive signal, or None when no challenge is shown.
        """
        url = driver.current_url()
        if url_matches(url, self.selectors.second_factor_url_fragments):
            return f"url:{url}"

        title = driver.title()
        for word in self.selectors.second_factor_title_words:
            if word.lower() in title.lower():
                return f"title:{word}"

        hit = first_visible(driver, self.selectors.second_factor_indicators)
        if hit is not None:
            return f"element:{hit}"

        text = driver.body_text()
        if text:
            for phrase, pattern in self._phrase_patterns:
                if pattern.search(text):
                    return f"text:{phrase}"

        return None

    def is_required(self, driver: PageDriver) -> bool:
        signal = self.detect(driver)
        if signal:
            logger.info("Second factor detected (%s)", signal)
            return True
        return False
