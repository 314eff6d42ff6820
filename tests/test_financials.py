import logging

import pytest

from src.storefront_core.financials import decompose, format_currency
from src.storefront_core.normalizers import normalize_order


def make_order(total, items):
    return normalize_order({"_id": "ord-1", "totalPrice": total, "orderItems": items})


def test_negative_shipping_is_returned_unclamped(caplog):
    """
    Total 260.20 against 250 subtotal + 20 tax leaves -9.80 shipping.
    The inconsistency is surfaced as-is, not corrected.
    """
    order = make_order(260.20, [
        {"product": {"name": "A"}, "price": 100, "quantity": 2},
        {"product": {"name": "B"}, "price": 50, "quantity": 1},
    ])

    with caplog.at_level(logging.WARNING):
        breakdown = decompose(order, tax_rate=0.08)

    assert breakdown.subtotal == 250
    assert breakdown.tax == pytest.approx(20)
    assert breakdown.shipping == pytest.approx(-9.80)
    assert breakdown.shipping < 0
    assert breakdown.is_consistent is False
    assert breakdown.line_totals == [200, 50]
    assert "ord-1" in caplog.text


def test_positive_shipping():
    order = make_order(318.0, [{"price": 100, "quantity": 2}, {"price": 50, "quantity": 1}])

    breakdown = decompose(order)

    assert breakdown.tax_rate == 0.08
    assert breakdown.shipping == pytest.approx(48.0)
    assert breakdown.is_consistent is True
    assert breakdown.total == 318.0


def test_custom_tax_rate():
    order = make_order(110, [{"price": 100, "quantity": 1}])
    breakdown = decompose(order, tax_rate=0.1)

    assert breakdown.tax == pytest.approx(10)
    assert breakdown.shipping == pytest.approx(0)


def test_order_without_items_puts_whole_total_in_shipping():
    breakdown = decompose(make_order(40, []))

    assert breakdown.subtotal == 0
    assert breakdown.tax == 0
    assert breakdown.shipping == 40


def test_format_currency():
    assert format_currency(1234.5) == "₹1,234.50"
    assert format_currency(-9.8) == "-₹9.80"
    assert format_currency(3, "usd") == "$3.00"
    assert format_currency(3, "JPY") == "JPY 3.00"
