from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from .site.driver import PageDriver


class IdentifierKind(str, Enum):
    EMAIL = "email"
    PHONE = "phone"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Credentials:
    identifier: str
    secret: str = field(repr=False)


@dataclass
class AuthSession:
    """
    Live handle to the authenticated browser tab.

    Only the authentication engine creates one; the harvester borrows it for the rest of the run.
    """

    driver: "PageDriver"
    identifier_kind: IdentifierKind
    authenticated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class PurchaseItem(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    product_name: str = Field(alias="productName", min_length=1)
    link: str


class PurchaseRecord(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    order_date: str = Field(alias="orderDate")
    # Currency-formatted as rendered by the site (e.g. "₹1,299.00").
    total: str
    items: tuple[PurchaseItem, ...] = Field(min_length=1)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
