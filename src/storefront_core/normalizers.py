"""Record Normalization Module

Converts loosely-typed records from the remote API or the local fallback
store into canonical product and order records.

Key responsibilities:
  - Resolve each field from the first non-null value among legacy aliases
  - Coerce numbers, booleans and timestamps, defaulting instead of failing
  - Rebuild nested structures (shipping address, item product) field by field
  - Derive stock availability from whichever stock fields are present

Nothing in here raises on bad input: sources are untrusted and partial
records must still render.
"""

import math
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .models import (
    CanonicalOrder,
    CanonicalProduct,
    OrderItem,
    OrderStatus,
    RawRecord,
    ShippingAddress,
    SpecValue,
)

logger = logging.getLogger(__name__)

PRODUCT_NAME_PLACEHOLDER = "Unnamed Product"
ITEM_NAME_PLACEHOLDER = "Item"
DEFAULT_PAYMENT_METHOD = "card"

ID_KEYS = ("_id", "id")
PRODUCT_ID_KEYS = ID_KEYS + ("productId", "sku")
ORDER_ID_KEYS = ID_KEYS + ("orderId",)
STOCK_FLAG_KEYS = ("inStock", "in_stock", "available")
STOCK_COUNT_KEYS = ("countInStock", "stock", "stockCount", "inventory_quantity")

ADDRESS_FIELD_KEYS = {
    "street": ("street", "address", "line1", "addressLine1"),
    "city": ("city", "town"),
    "state": ("state", "province", "region"),
    "zip_code": ("zipCode", "zip", "postalCode", "postal_code", "pincode"),
    "country": ("country", "countryCode"),
}

_TRUE_STRINGS = {"true", "yes", "1", "y"}
_FALSE_STRINGS = {"false", "no", "0", "n", ""}


# ============================================================================
# Coercion helpers
# ============================================================================

def first_present(raw: Mapping[str, Any], keys: Sequence[str]) -> Any:
    """Return the first value under `keys` that is not None."""
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def as_mapping(value: Any) -> Dict[str, Any]:
    if isinstance(value, RawRecord):
        return dict(value.data)
    return dict(value) if isinstance(value, Mapping) else {}


def to_number(value: Any) -> Optional[float]:
    """Parse a finite number from ints, floats or numeric strings.

    Booleans are not numbers here. Thousands separators and surrounding
    whitespace in strings are tolerated.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = value.strip().replace(",", "")
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def to_non_negative(value: Any, default: float = 0.0) -> float:
    number = to_number(value)
    if number is None:
        return default
    return max(number, 0.0)


def to_count(value: Any, default: int = 0) -> int:
    number = to_number(value)
    if number is None:
        return default
    return max(int(number), 0)


def to_bool(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return None


def to_optional_str(value: Any) -> Optional[str]:
    """Normalize to a stripped string or None. Empty strings become None."""
    if value is None or isinstance(value, (dict, list)):
        return None
    s = str(value).strip()
    return s or None


def to_timestamp(value: Any) -> Optional[datetime]:
    """Parse ISO-8601 strings, datetimes or epoch milliseconds into aware UTC datetimes."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_str_list(value: Any) -> List[str]:
    """Ordered, duplicate-free list of non-empty labels."""
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    labels: List[str] = []
    for item in value:
        label = to_optional_str(item)
        if label is not None and label not in labels:
            labels.append(label)
    return labels


def to_image_urls(value: Any) -> List[str]:
    """Image references given as strings or as {"url": ...} objects."""
    if isinstance(value, (str, Mapping)):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    urls: List[str] = []
    for item in value:
        url = to_optional_str(item.get("url")) if isinstance(item, Mapping) else to_optional_str(item)
        if url:
            urls.append(url)
    return urls


def _spec_value(value: Any) -> SpecValue:
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    return str(value)


def to_specifications(value: Any) -> Dict[str, SpecValue]:
    """Ordered label -> display value mapping.

    Accepts a mapping or a list of {label|name|key, value} pairs.
    """
    specs: Dict[str, SpecValue] = {}
    if isinstance(value, Mapping):
        pairs = list(value.items())
    elif isinstance(value, (list, tuple)):
        pairs = []
        for entry in value:
            if not isinstance(entry, Mapping):
                continue
            label = first_present(entry, ("label", "name", "key"))
            if label is not None:
                pairs.append((label, entry.get("value")))
    else:
        return specs

    for label, spec in pairs:
        key = to_optional_str(label)
        if key is not None and key not in specs:
            specs[key] = _spec_value(spec)
    return specs


# ============================================================================
# Products
# ============================================================================

def normalize_product(raw: Any, default_id: Optional[str] = None) -> CanonicalProduct:
    """Convert a raw product record into a CanonicalProduct.

    Args:
        raw: Product payload from either source (non-mappings count as empty)
        default_id: Identifier to use when the payload carries none, usually
            the id the caller looked up

    Returns:
        CanonicalProduct with every field defaulted or coerced
    """
    raw = as_mapping(raw)

    product_id = to_optional_str(first_present(raw, PRODUCT_ID_KEYS)) or default_id or ""
    name = to_optional_str(first_present(raw, ("name", "title", "productName")))

    original_price = to_number(
        first_present(raw, ("originalPrice", "original_price", "mrp", "compareAtPrice"))
    )
    if original_price is not None and original_price < 0:
        original_price = None

    rating = to_number(first_present(raw, ("rating", "averageRating", "avgRating")))
    if rating is not None:
        rating = min(max(rating, 0.0), 5.0)

    stock_count = to_count(first_present(raw, STOCK_COUNT_KEYS))
    in_stock = to_bool(first_present(raw, STOCK_FLAG_KEYS))
    if in_stock is None:
        in_stock = stock_count > 0

    return CanonicalProduct(
        id=product_id,
        name=name or PRODUCT_NAME_PLACEHOLDER,
        price=to_non_negative(first_present(raw, ("price", "salePrice", "unitPrice"))),
        original_price=original_price,
        rating=rating,
        num_reviews=to_count(first_present(raw, ("numReviews", "num_reviews", "reviewCount"))),
        stock_count=stock_count,
        in_stock=in_stock,
        brand=to_optional_str(first_present(raw, ("brand", "vendor", "manufacturer"))),
        features=to_str_list(raw.get("features")),
        specifications=to_specifications(first_present(raw, ("specifications", "specs"))),
        images=to_image_urls(first_present(raw, ("images", "imageUrls", "image", "imageUrl"))),
    )


# ============================================================================
# Orders
# ============================================================================

def normalize_address(raw: Any) -> ShippingAddress:
    """Rebuild a shipping address; each field defaults to "" on its own."""
    raw = as_mapping(raw)
    return ShippingAddress(**{
        field: to_optional_str(first_present(raw, keys)) or ""
        for field, keys in ADDRESS_FIELD_KEYS.items()
    })


def normalize_order_item(raw: Any) -> OrderItem:
    raw = as_mapping(raw)
    product = raw.get("product")

    if isinstance(product, Mapping):
        name = to_optional_str(product.get("name")) or to_optional_str(raw.get("name"))
        images = to_image_urls(product.get("images")) or to_image_urls(raw.get("images"))
        price = first_present(raw, ("price", "unitPrice"))
        if to_number(price) is None:
            price = product.get("price")
    else:
        name = to_optional_str(raw.get("name"))
        images = to_image_urls(first_present(raw, ("images", "image")))
        price = first_present(raw, ("price", "unitPrice"))

    quantity = to_count(first_present(raw, ("quantity", "qty")), default=1)

    return OrderItem(
        name=name or ITEM_NAME_PLACEHOLDER,
        image=images[0] if images else None,
        quantity=max(quantity, 1),
        price=to_non_negative(price),
    )


def to_status(value: Any) -> OrderStatus:
    label = (to_optional_str(value) or "").lower()
    if label == "canceled":
        label = "cancelled"
    try:
        return OrderStatus(label)
    except ValueError:
        if label:
            logger.debug("Unknown order status %r, using pending", value)
        return OrderStatus.PENDING


def normalize_order(raw: Any, default_id: Optional[str] = None) -> CanonicalOrder:
    """Convert a raw order record into a CanonicalOrder.

    Args:
        raw: Order payload from either source (non-mappings count as empty)
        default_id: Identifier to use when the payload carries none

    Returns:
        CanonicalOrder. created_at falls back to the current time; paid_at and
        delivered_at stay None unless the payload has a usable timestamp.
    """
    raw = as_mapping(raw)

    items_raw = first_present(raw, ("orderItems", "items", "lineItems"))
    if not isinstance(items_raw, (list, tuple)):
        items_raw = []

    created_at = to_timestamp(first_present(raw, ("createdAt", "created_at", "date")))

    return CanonicalOrder(
        id=to_optional_str(first_present(raw, ORDER_ID_KEYS)) or default_id or "",
        created_at=created_at or datetime.now(timezone.utc),
        total_price=to_non_negative(first_present(raw, ("totalPrice", "total_price", "total"))),
        status=to_status(raw.get("status")),
        items=[normalize_order_item(item) for item in items_raw if isinstance(item, Mapping)],
        shipping_address=normalize_address(
            first_present(raw, ("shippingAddress", "shipping_address", "address"))
        ),
        payment_method=(
            to_optional_str(first_present(raw, ("paymentMethod", "payment_method")))
            or DEFAULT_PAYMENT_METHOD
        ),
        is_paid=bool(to_bool(first_present(raw, ("isPaid", "is_paid")))),
        paid_at=to_timestamp(first_present(raw, ("paidAt", "paid_at"))),
        delivered_at=to_timestamp(first_present(raw, ("deliveredAt", "delivered_at"))),
    )


def settle_order(order: CanonicalOrder) -> CanonicalOrder:
    """Mark a locally-created order as a confirmed, paid transaction.

    Local records are written at checkout, so they count as paid at creation
    time and not yet delivered.
    """
    return order.model_copy(
        update={"is_paid": True, "paid_at": order.created_at, "delivered_at": None}
    )
