from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Optional

from ..config import AppConfig
from ..errors import InteractionError
from ..models import AuthSession, PurchaseRecord
from ..site.locate import any_visible, first_visible, poll_until, url_matches
from ..site.selectors import SiteSelectors
from .extraction import extract_purchase_records


logger = logging.getLogger(__name__)


class HistoryHarvester:
    """
    Walks the order history of an authenticated session, newest year first, until `quota` records are
    collected or `max_years` year filters have been visited.
    """

    def __init__(
        self,
        session: AuthSession,
        *,
        config: AppConfig,
        selectors: Optional[SiteSelectors] = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.session = session
        self.driver = session.driver
        self.site = config.site
        self.limits = config.harvest
        self.timeouts = config.timeouts
        self.selectors = selectors or SiteSelectors()
        self._today = today
        self.years_visited: list[int] = []

    def _on_history_page(self) -> bool:
        if url_matches(self.driver.current_url(), self.selectors.order_history_url_fragments):
            return True
        return any_visible(self.driver, self.selectors.order_page_landmarks)

    def open_order_history(self) -> bool:
        """
        Get the tab onto the order-history view.

        Tries the header "Returns & Orders" link first, then direct navigation. Returns False only when
        neither a landmark nor a history-looking URL can be confirmed.
        """
        d, s, t = self.driver, self.selectors, self.timeouts

        nav = first_visible(d, s.orders_nav)
        if nav is not None:
            try:
                d.click(nav)
            except InteractionError as e:
                logger.warning("Orders link click failed (%s); falling back to direct navigation.", e)
            else:
                logger.info("Waiting for order page elements to appear...")
                ok = poll_until(
                    d,
                    self._on_history_page,
                    rounds=self.limits.order_page_poll_rounds,
                    poll_ms=t.element_wait,
                )
                d.snapshot("order_page_check")
                if ok:
                    logger.info("Order history reached via navigation link (url=%s)", d.current_url())
                    d.wait(t.order_page_check)
                    return True
                logger.warning("Timed out waiting for order page content after clicking the orders link.")

        logger.info("Using direct URL navigation to the order history page...")
        try:
            d.goto(self.site.order_history_url, timeout_ms=t.order_page_load)
        except InteractionError as e:
            logger.warning("Direct navigation to order history failed: %s", e)

        hit = first_visible(d, s.order_page_landmarks)
        d.snapshot("order_page_check")
        if hit is not None:
            logger.info("Order page loaded after direct navigation (found %s)", hit)
            return True
        if url_matches(d.current_url(), s.order_history_url_fragments):
            logger.info("URL indicates the orders page; proceeding (url=%s)", d.current_url())
            return True
        logger.error("Could not reach the order history page (url=%s)", d.current_url())
        return False

    def _open_year(self, year: int) -> bool:
        """
        Jump to the year filter. False means the navigation itself failed; missing content is only logged.
        """
        d, t = self.driver, self.timeouts
        try:
            d.goto(self.site.year_url(year), timeout_ms=t.order_page_load)
        except InteractionError as e:
            logger.error("Error selecting year %s: %s", year, e)
            d.snapshot(f"year_direct_navigation_{year}")
            return False

        d.wait(t.year_navigation)
        rounds = self.limits.year_poll_rounds
        found = first_visible(
            d,
            self.selectors.order_content,
            rounds=rounds,
            poll_ms=max(1, t.order_content // rounds),
        )
        if found is None:
            d.snapshot(f"year_direct_navigation_{year}")
            logger.warning("Year %s shows no visible orders; continuing.", year)
        else:
            logger.info("Accessed %s orders via direct URL", year)
        return True

    def harvest(self) -> list[PurchaseRecord]:
        if not self.open_order_history():
            return []

        quota = self.limits.quota
        collected: list[PurchaseRecord] = []
        current_year = self._today().year

        for year in range(current_year, current_year - self.limits.max_years, -1):
            if len(collected) >= quota:
                break
            self.years_visited.append(year)
            if not self._open_year(year):
                continue

            try:
                html = self.driver.content()
            except InteractionError as e:
                logger.error("Could not read the %s order page: %s", year, e)
                continue
            records = extract_purchase_records(html, base_url=self.site.base_url, selectors=self.selectors)
            logger.info(
                "Year %s: extracted %d order(s) with %d item(s)",
                year,
                len(records),
                sum(len(r.items) for r in records),
            )
            collected.extend(records)

        if len(collected) > quota:
            logger.info("Truncating %d collected order(s) to %d.", len(collected), quota)
        return collected[:quota]
