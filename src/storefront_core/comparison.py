"""Product Comparison Module

Builds the feature-comparison matrix for a collection of canonical
products: the unified feature set, one value per (product, feature) cell,
and the "best value" / "highest rated" badges.

Badges are computed once over the whole collection, cells one pair at a
time; the two never depend on each other.
"""

import logging
from typing import List, Optional, Sequence

from .config import CoreConfig
from .models import (
    Badges,
    CanonicalProduct,
    CellValue,
    ComparisonMatrix,
    FeatureRow,
    ProductCard,
)
from .normalizers import normalize_product

logger = logging.getLogger(__name__)

PLACEHOLDER = "-"
CURRENCY_SYMBOL = "₹"
DISPLAY_NAME_LIMIT = 20

PRICE = "Price"
BRAND = "Brand"
RATING = "Rating"
IN_STOCK = "In Stock"

# Shown only as an empty-state illustration; never ranked.
DEMO_PRODUCTS = [
    {
        "_id": "demo1",
        "name": "NextTech X1 Pro Smartphone",
        "price": 29999,
        "originalPrice": 34999,
        "rating": 4.5,
        "numReviews": 1243,
        "stock": 25,
        "images": [{"url": "/Icon.png"}],
        "features": ["5G", "AMOLED Display", "Fast Charging", "Dual SIM"],
        "specifications": {
            "Display": '6.5" AMOLED 120Hz',
            "Processor": "Snapdragon 778G",
            "RAM": "8GB",
            "Storage": "128GB",
            "Battery": "5000mAh",
            "Camera": "64MP + 12MP + 5MP",
            "OS": "Android 14",
            "Weight": "180g",
        },
    },
    {
        "_id": "demo2",
        "name": "FusionBuds ANC Headphones",
        "price": 7999,
        "originalPrice": 9999,
        "rating": 4.2,
        "numReviews": 876,
        "stock": 40,
        "images": [{"url": "/Icon.png"}],
        "features": ["Active Noise Cancellation", "Bluetooth 5.3", "Fast Charging"],
        "specifications": {
            "Driver": "40mm Dynamic",
            "Battery": "35 hours",
            "Weight": "220g",
            "Charging": "USB-C, 10min=5h",
            "Latency": "Low-latency mode",
        },
    },
    {
        "_id": "demo3",
        "name": 'VisionMax 4K Smart TV 55"',
        "price": 44999,
        "originalPrice": 52999,
        "rating": 4.7,
        "numReviews": 432,
        "stock": 10,
        "images": [{"url": "/Icon.png"}],
        "features": ["4K HDR", "Dolby Vision", "Dolby Atmos", "Voice Assistant"],
        "specifications": {
            "Panel": "VA, 60Hz",
            "HDR": "HDR10+, Dolby Vision",
            "Speakers": "30W Dolby Atmos",
            "OS": "Google TV",
            "Ports": "3x HDMI, 2x USB",
        },
    },
]


def format_number(value: float) -> str:
    """Render whole numbers without a trailing .0 ("4" not "4.0")."""
    return str(int(value)) if float(value).is_integer() else str(value)


def format_price(amount: float) -> str:
    if float(amount).is_integer():
        return f"{CURRENCY_SYMBOL}{int(amount):,}"
    return f"{CURRENCY_SYMBOL}{amount:,.2f}"


def display_name(name: str, limit: int = DISPLAY_NAME_LIMIT) -> str:
    return f"{name[:limit]}..." if len(name) > limit else name


def compute_feature_set(
    products: Sequence[CanonicalProduct],
    base_features: Sequence[str],
) -> List[str]:
    """Base features followed by every feature label and spec key, first-seen order."""
    feature_set: List[str] = []
    seen = set()

    def add(label: str) -> None:
        if label not in seen:
            seen.add(label)
            feature_set.append(label)

    for label in base_features:
        add(label)
    for product in products:
        for label in product.features:
            add(label)
        for label in product.specifications:
            add(label)
    return feature_set


def cell_value(product: CanonicalProduct, feature: str) -> CellValue:
    """Value of one comparison cell.

    A feature the product neither lists nor specifies is False: absence is
    a negative signal, not "unknown". Specification values are returned
    verbatim, including False, 0 and "".
    """
    if feature == PRICE:
        return format_price(product.price)
    if feature == BRAND:
        return product.brand or PLACEHOLDER
    if feature == RATING:
        return f"{format_number(product.rating)}⭐" if product.rating is not None else PLACEHOLDER
    if feature == IN_STOCK:
        return product.in_stock

    if feature in product.features:
        return True
    if feature in product.specifications:
        return product.specifications[feature]
    return False


def render_cell(value: CellValue) -> str:
    """Classify a cell for display: "check", "cross", "empty" or "text"."""
    if isinstance(value, bool):
        return "check" if value else "cross"
    if value is None or value == "" or value == 0:
        return "empty"
    return "text"


def _best_by(products: Sequence[CanonicalProduct], score) -> Optional[int]:
    # left-to-right reduction; only a strictly greater score replaces the leader
    best = None
    best_score = None
    for position, product in enumerate(products):
        current = score(product)
        if current is None:
            continue
        if best is None or current > best_score:
            best, best_score = position, current
    return best


def compute_badges(products: Sequence[CanonicalProduct]) -> Badges:
    """Assign "best value" and "highest rated" for one comparison pass.

    Best value maximizes the discount fraction (0 without an original price).
    Highest rated maximizes rating among rated products and is withheld
    when it falls on the best-value position. Holders are tracked by
    position, so repeated or id-less products each count once.
    """
    if not products:
        return Badges()

    best_value = _best_by(products, lambda p: p.discount_fraction)
    highest_rated = _best_by(products, lambda p: p.rating)

    if highest_rated == best_value:
        highest_rated = None

    return Badges(
        best_value_index=best_value,
        highest_rated_index=highest_rated,
        best_value=products[best_value].id if best_value is not None else None,
        highest_rated=products[highest_rated].id if highest_rated is not None else None,
    )


def build_card(product: CanonicalProduct, badges: Badges, position: int) -> ProductCard:
    discounted = product.has_discount
    return ProductCard(
        product_id=product.id,
        display_name=display_name(product.name),
        price=format_price(product.price),
        original_price=format_price(product.original_price) if discounted else None,
        discount_percent=product.discount_percent if discounted else None,
        badge=badges.badge_for(position),
    )


class ComparisonMatrixBuilder:
    """Builds ComparisonMatrix view models.

    Args:
        config: Supplies the base comparison features (defaults apply when None)
    """

    def __init__(self, config: Optional[CoreConfig] = None):
        self.config = config or CoreConfig()

    def build(self, products: Sequence[CanonicalProduct]) -> ComparisonMatrix:
        is_demo = len(products) == 0
        if is_demo:
            logger.debug("No products to compare; using demo collection")
            display = [normalize_product(raw) for raw in DEMO_PRODUCTS]
            badges = Badges()
        else:
            display = list(products)
            badges = compute_badges(display)

        feature_set = compute_feature_set(display, self.config.base_comparison_features)
        rows = [
            FeatureRow(feature=feature, cells=[cell_value(p, feature) for p in display])
            for feature in feature_set
        ]

        return ComparisonMatrix(
            products=display,
            feature_set=feature_set,
            rows=rows,
            cards=[build_card(p, badges, i) for i, p in enumerate(display)],
            badges=badges,
            is_demo=is_demo,
        )
