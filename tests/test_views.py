import pytest

from src.storefront_core.config import CoreConfig
from src.storefront_core.models import NotFound, OrderView
from src.storefront_core.reconciler import FallbackReconciler
from src.storefront_core.sources import InMemoryRecordStore, OfflinePrimarySource, SourceUnavailable
from src.storefront_core.views import build_comparison_view, build_order_view


class DictPrimary:
    def __init__(self, records):
        self.records = records

    async def fetch(self, kind, entity_id):
        if entity_id not in self.records:
            raise SourceUnavailable("not found", status_code=404)
        return self.records[entity_id]


@pytest.mark.asyncio
async def test_order_view_from_fallback_store():
    store = InMemoryRecordStore([{
        "_id": "X",
        "totalPrice": 260.20,
        "orderItems": [
            {"product": {"name": "A"}, "price": 100, "quantity": 2},
            {"product": {"name": "B"}, "price": 50, "quantity": 1},
        ],
    }])
    reconciler = FallbackReconciler(OfflinePrimarySource(), store, kind="orders")

    view = await build_order_view("X", reconciler)

    assert isinstance(view, OrderView)
    assert view.source == "fallback"
    assert view.order.is_paid is True
    assert view.breakdown.subtotal == 250
    assert view.breakdown.shipping == pytest.approx(-9.80)


@pytest.mark.asyncio
async def test_order_view_uses_configured_tax_rate():
    primary = DictPrimary({"X": {"_id": "X", "totalPrice": 120, "items": [{"price": 100, "quantity": 1}]}})
    reconciler = FallbackReconciler(primary, InMemoryRecordStore(), kind="orders")

    view = await build_order_view("X", reconciler, CoreConfig(tax_rate=0.2))

    assert view.source == "primary"
    assert view.breakdown.tax == pytest.approx(20)
    assert view.breakdown.shipping == pytest.approx(0)


@pytest.mark.asyncio
async def test_order_view_not_found():
    reconciler = FallbackReconciler(OfflinePrimarySource(), InMemoryRecordStore(), kind="orders")

    assert await build_order_view("missing", reconciler) == NotFound(kind="orders", entity_id="missing")


@pytest.mark.asyncio
async def test_comparison_view_mixes_sources_and_skips_missing():
    primary = DictPrimary({
        "A": {"_id": "A", "price": 8000, "originalPrice": 10000, "rating": 4.0, "features": ["5G", "NFC"]},
    })
    store = InMemoryRecordStore([
        {"_id": "B", "price": 5000, "originalPrice": 5000, "rating": 4.9, "features": ["NFC", "OLED"]},
    ])
    reconciler = FallbackReconciler(primary, store, kind="products")

    matrix = await build_comparison_view(["A", "ghost", "B"], reconciler)

    assert [p.id for p in matrix.products] == ["A", "B"]
    assert matrix.feature_set == ["Price", "Brand", "Rating", "In Stock", "5G", "NFC", "OLED"]
    assert matrix.badges.best_value == "A"
    assert matrix.badges.highest_rated == "B"
    assert matrix.is_demo is False


@pytest.mark.asyncio
async def test_comparison_view_with_nothing_found_shows_demo():
    reconciler = FallbackReconciler(OfflinePrimarySource(), InMemoryRecordStore(), kind="products")

    matrix = await build_comparison_view(["ghost"], reconciler)

    assert matrix.is_demo is True
    assert matrix.badges.best_value is None
