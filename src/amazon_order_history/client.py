from __future__ import annotations

import logging
import time
from typing import Optional

from .auth.engine import AuthEngine
from .config import AppConfig
from .credentials import CredentialProvider
from .harvest.harvester import HistoryHarvester
from .models import PurchaseRecord
from .site.driver import open_browser
from .site.selectors import SiteSelectors


logger = logging.getLogger(__name__)


class OrderHistoryClient:
    """
    One run: open a browser, sign in, harvest recent orders, close the browser.
    """

    def __init__(
        self,
        config: AppConfig,
        credentials: CredentialProvider,
        selectors: Optional[SiteSelectors] = None,
    ) -> None:
        self.config = config
        self.credentials = credentials
        self.selectors = selectors or SiteSelectors()

    def run(self, *, headless: Optional[bool] = None) -> list[PurchaseRecord]:
        cfg = self.config
        if headless is None:
            headless = cfg.browser.headless

        t0 = time.time()
        with open_browser(
            headless=headless,
            debug_dir=cfg.output.debug_dir,
            slow_mo_ms=cfg.browser.slow_mo_ms,
            action_timeout_ms=cfg.timeouts.password_field,
        ) as driver:
            engine = AuthEngine(driver, self.credentials, config=cfg, selectors=self.selectors)
            session = engine.authenticate()
            logger.info(
                "Authenticated at %s (seconds=%.2f)",
                session.authenticated_at.isoformat(timespec="seconds"),
                time.time() - t0,
            )

            t_harvest = time.time()
            records = HistoryHarvester(session, config=cfg, selectors=self.selectors).harvest()
            logger.info(
                "Harvest complete: %d order(s) (seconds=%.2f)",
                len(records),
                time.time() - t_harvest,
            )
            return records
