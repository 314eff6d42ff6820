"""Order Financials Module

Splits an order's authoritative total into subtotal, tax and shipping.

The order API only reports the grand total, so shipping is inferred as
whatever the total leaves after subtotal and tax. It is deliberately not
clamped: a negative value means the upstream total disagrees with the line
items (e.g. an order-level discount) and is surfaced for the renderer or a
monitoring collaborator to flag.
"""

import logging
from typing import Optional

from .config import DEFAULT_TAX_RATE
from .models import CanonicalOrder, FinancialBreakdown

logger = logging.getLogger(__name__)

CURRENCY_SYMBOLS = {"INR": "₹", "USD": "$", "EUR": "€", "GBP": "£"}


def decompose(order: CanonicalOrder, tax_rate: Optional[float] = None) -> FinancialBreakdown:
    """Compute subtotal, tax and inferred shipping for an order.

    Args:
        order: Canonical order
        tax_rate: Overrides the configured default (0.08)

    Returns:
        FinancialBreakdown; shipping may be negative
    """
    rate = DEFAULT_TAX_RATE if tax_rate is None else tax_rate

    line_totals = [item.price * item.quantity for item in order.items]
    subtotal = sum(line_totals)
    tax = subtotal * rate
    shipping = order.total_price - subtotal - tax

    if shipping < 0:
        logger.warning(
            "Order %s total %.2f is below subtotal+tax %.2f (shipping=%.2f)",
            order.id,
            order.total_price,
            subtotal + tax,
            shipping,
        )

    return FinancialBreakdown(
        subtotal=subtotal,
        tax=tax,
        shipping=shipping,
        total=order.total_price,
        tax_rate=rate,
        line_totals=line_totals,
    )


def format_currency(amount: float, currency: str = "INR") -> str:
    """Format an amount with its currency symbol and two decimals, e.g. "₹1,234.50"."""
    symbol = CURRENCY_SYMBOLS.get(currency.upper(), f"{currency.upper()} ")
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"
