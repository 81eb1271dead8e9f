from __future__ import annotations

import re
from typing import Optional


# Amazon.in renders "₹1,299.00"; older markup and some locales use "Rs. 1,299" or "$12.34".
_MONEY_RE = re.compile(r"(?:₹|Rs\.?|INR|\$)\s*[\d,]+(?:\.\d{1,2})?", re.I)


def find_first_money(text: str) -> Optional[str]:
    """
    Return the first currency amount in `text` exactly as rendered, or None.
    """
    m = _MONEY_RE.search(text or "")
    return m.group(0).strip() if m else None
