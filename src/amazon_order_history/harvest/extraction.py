from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urljoin

from selectolax.lexbor import LexborHTMLParser, LexborNode

from ..models import PurchaseItem, PurchaseRecord
from ..site.selectors import SiteSelectors
from ..util.money import find_first_money


logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"
_TEXT_TAG = "-text"


def _text(node: Optional[LexborNode]) -> str:
    if node is None:
        return ""
    return " ".join(node.text(separator=" ").split())


def _absolute(href: str, base_url: str) -> str:
    href = (href or "").strip()
    if not href:
        return ""
    return urljoin(base_url.rstrip("/") + "/", href)


def _item_from_link(node: Optional[LexborNode], base_url: str) -> Optional[PurchaseItem]:
    name = _text(node)
    if not name:
        return None
    link = _absolute(node.attributes.get("href") or "", base_url)
    if not link:
        return None
    return PurchaseItem(product_name=name, link=link)


def _first_item(scope: LexborNode, selectors: tuple[str, ...], base_url: str) -> Optional[PurchaseItem]:
    for sel in selectors:
        item = _item_from_link(scope.css_first(sel), base_url)
        if item is not None:
            return item
    return None


def _record_from_container(container: LexborNode, *, base_url: str, s: SiteSelectors) -> Optional[PurchaseRecord]:
    group = container.css_first(s.order_box_group) or container

    order_date = _text(group.css_first(s.order_date)) or NOT_AVAILABLE
    total = _text(group.css_first(s.order_total)) or NOT_AVAILABLE

    items: list[PurchaseItem] = []
    boxes = group.css(s.delivery_box)
    if boxes:
        for box in boxes:
            item = _first_item(box, (s.product_title_link, s.media_title_link), base_url)
            if item is not None:
                items.append(item)
    else:
        item = _first_item(group, (s.product_title_link, s.media_title_link), base_url)
        if item is not None:
            items.append(item)

    if not items:
        return None
    return PurchaseRecord(order_date=order_date, total=total, items=tuple(items))


def _anchors(node: LexborNode) -> list[LexborNode]:
    found = list(node.css("a[href]"))
    if node.tag == "a":
        found.insert(0, node)
    return found


def _has_other_product(node: LexborNode, own_link: str, product_links: set[str], base_url: str) -> bool:
    for a in _anchors(node):
        href = _absolute(a.attributes.get("href") or "", base_url)
        if href != own_link and href in product_links:
            return True
    return False


def _price_in(node: LexborNode, s: SiteSelectors) -> Optional[str]:
    for sel in s.price_candidates:
        for candidate in node.css(sel):
            money = find_first_money(_text(candidate))
            if money:
                return money
    return None


def _nearby_price(
    link_node: LexborNode,
    *,
    link: str,
    product_links: set[str],
    base_url: str,
    s: SiteSelectors,
) -> Optional[str]:
    """
    Closest money amount after the link, without crossing into another product's markup.

    Following siblings are scanned first (stopping at the next product link), then the search widens one
    ancestor at a time for as long as that ancestor holds no other product link.
    """
    node = link_node
    for _ in range(s.price_ancestor_depth):
        sib = node.next
        while sib is not None:
            if sib.tag != _TEXT_TAG:
                if _has_other_product(sib, link, product_links, base_url):
                    return None
                money = _price_in(sib, s)
                if money:
                    return money
            money = find_first_money(_text(sib))
            if money:
                return money
            sib = sib.next

        parent = node.parent
        if parent is None or _has_other_product(parent, link, product_links, base_url):
            return None
        money = _price_in(parent, s)
        if money:
            return money
        node = parent
    return None


def _fallback_records(tree: LexborHTMLParser, *, base_url: str, s: SiteSelectors) -> list[PurchaseRecord]:
    """
    Last resort when none of the known order containers match: every product-detail link becomes a
    one-item record, paired with the closest money amount that belongs to it.
    """
    anchors = [a for sel in s.product_detail_links for a in tree.css(sel)]
    product_links = {_absolute(a.attributes.get("href") or "", base_url) for a in anchors}
    product_links.discard("")

    out: list[PurchaseRecord] = []
    seen: set[str] = set()
    for a in anchors:
        link = _absolute(a.attributes.get("href") or "", base_url)
        if not link or link in seen:
            continue
        name = _text(a) or (a.attributes.get("title") or "").strip()
        if not name:
            img = a.css_first("img")
            name = ((img.attributes.get("alt") if img is not None else "") or "").strip()
        if not name:
            continue
        seen.add(link)
        total = _nearby_price(a, link=link, product_links=product_links, base_url=base_url, s=s)
        out.append(
            PurchaseRecord(
                order_date=NOT_AVAILABLE,
                total=total or NOT_AVAILABLE,
                items=(PurchaseItem(product_name=name, link=link),),
            )
        )
    return out


def extract_purchase_records(
    html: str,
    *,
    base_url: str,
    selectors: Optional[SiteSelectors] = None,
) -> list[PurchaseRecord]:
    """
    Parse one order-history page into purchase records, in page order.

    Known order containers are tried top-down and the first selector with any match wins. Orders where no
    product name can be found are dropped. If no container matches at all, product-detail links are used.
    """
    s = selectors or SiteSelectors()
    tree = LexborHTMLParser(html or "")

    for sel in s.order_containers:
        containers = tree.css(sel)
        if not containers:
            continue
        records = [r for r in (_record_from_container(c, base_url=base_url, s=s) for c in containers) if r]
        logger.debug(
            "Extracted %d order(s) from %d container(s) (selector=%s)", len(records), len(containers), sel
        )
        return records

    records = _fallback_records(tree, base_url=base_url, s=s)
    if records:
        logger.info("No order containers found; fallback extraction found %d product link(s).", len(records))
    return records
