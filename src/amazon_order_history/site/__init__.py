from .driver import PageDriver, PlaywrightPageDriver, open_browser
from .selectors import SiteSelectors

__all__ = ["PageDriver", "PlaywrightPageDriver", "SiteSelectors", "open_browser"]
