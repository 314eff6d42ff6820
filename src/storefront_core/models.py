"""Data Models Module

Defines Pydantic models for records at each stage of the storefront core:
raw source payloads, canonical product/order records, and the derived view
models (comparison matrix, financial breakdown) handed to the renderer.
"""

import math
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

SpecValue = Union[bool, int, float, str, None]
CellValue = Union[bool, int, float, str, None]


class RawRecord(BaseModel):
    """Wrapper for a loosely-typed record from either source.

    Any key may be absent, null, wrongly typed or extra. Nothing downstream
    of the normalizers reads this type.
    """
    data: Dict[str, Any] = {}


class CanonicalProduct(BaseModel):
    """Fully defaulted product record."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price: float = 0.0
    original_price: Optional[float] = None
    rating: Optional[float] = None
    num_reviews: int = 0
    stock_count: int = 0
    in_stock: bool = False
    brand: Optional[str] = None
    features: List[str] = []
    specifications: Dict[str, SpecValue] = {}
    images: List[str] = []

    @property
    def has_discount(self) -> bool:
        return self.original_price is not None and self.original_price > self.price

    @property
    def discount_fraction(self) -> float:
        """(original - price) / original, 0 when there is no usable original price."""
        if not self.original_price:
            return 0.0
        return (self.original_price - self.price) / self.original_price

    @property
    def discount_percent(self) -> int:
        # half-up, matching the "N% off" label
        return int(math.floor(self.discount_fraction * 100 + 0.5))


class ShippingAddress(BaseModel):
    model_config = ConfigDict(frozen=True)

    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderItem(BaseModel):
    """One order line: display name, optional image, quantity and unit price."""
    model_config = ConfigDict(frozen=True)

    name: str = "Item"
    image: Optional[str] = None
    quantity: int = Field(default=1, ge=1)
    price: float = Field(default=0.0, ge=0)

    @property
    def line_total(self) -> float:
        return self.price * self.quantity

    @property
    def placeholder_image_url(self) -> str:
        initials = "".join(part[0] for part in self.name.split() if part)
        return f"https://placehold.co/80x80/E0E0E0/333333?text={initials or 'No+Image'}"


class CanonicalOrder(BaseModel):
    """Fully defaulted order record.

    paid_at / delivered_at are only set when the event happened.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    created_at: datetime
    total_price: float = 0.0
    status: OrderStatus = OrderStatus.PENDING
    items: List[OrderItem] = []
    shipping_address: ShippingAddress = ShippingAddress()
    payment_method: str = "card"
    is_paid: bool = False
    paid_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None


CanonicalRecord = Union[CanonicalProduct, CanonicalOrder]


class Resolved(BaseModel):
    """Successful resolution: the canonical record and which source produced it."""
    model_config = ConfigDict(frozen=True)

    record: CanonicalRecord
    source: Literal["primary", "fallback"]


class NotFound(BaseModel):
    """Neither source holds the entity. Returned, never raised."""
    model_config = ConfigDict(frozen=True)

    kind: str
    entity_id: str


class Badges(BaseModel):
    """Badge holders for one comparison pass.

    The *_index fields are positions in the compared collection and decide
    which column gets a badge; ids are not unique across a collection, so
    best_value / highest_rated carry the holder's id for display only.
    """
    model_config = ConfigDict(frozen=True)

    best_value_index: Optional[int] = None
    highest_rated_index: Optional[int] = None
    best_value: Optional[str] = None
    highest_rated: Optional[str] = None

    def badge_for(self, position: int) -> Optional[str]:
        if position == self.best_value_index:
            return "best_value"
        if position == self.highest_rated_index:
            return "highest_rated"
        return None


class ProductCard(BaseModel):
    """Header data shown above each comparison column."""
    model_config = ConfigDict(frozen=True)

    product_id: str
    display_name: str
    price: str
    original_price: Optional[str] = None
    discount_percent: Optional[int] = None
    badge: Optional[str] = None


class FeatureRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    feature: str
    cells: List[CellValue]


class ComparisonMatrix(BaseModel):
    """Feature set, per-cell values and badges for a product collection."""
    model_config = ConfigDict(frozen=True)

    products: List[CanonicalProduct]
    feature_set: List[str]
    rows: List[FeatureRow]
    cards: List[ProductCard]
    badges: Badges
    is_demo: bool = False

    def cell_value(self, product: CanonicalProduct, feature: str) -> CellValue:
        from .comparison import cell_value

        return cell_value(product, feature)


class FinancialBreakdown(BaseModel):
    """Subtotal / tax / shipping split of an order total.

    shipping is whatever remains of the total and can be negative when the
    upstream total disagrees with the line items.
    """
    model_config = ConfigDict(frozen=True)

    subtotal: float
    tax: float
    shipping: float
    total: float
    tax_rate: float
    line_totals: List[float] = []

    @property
    def is_consistent(self) -> bool:
        return self.shipping >= 0


class OrderView(BaseModel):
    model_config = ConfigDict(frozen=True)

    order: CanonicalOrder
    breakdown: FinancialBreakdown
    source: Literal["primary", "fallback"]
