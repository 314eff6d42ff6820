"""Order Audit Script

Checks a file of raw orders the way the order detail view would see them:
  - Each entry is normalized; records with no usable id are errors
  - Line items are present and the total is a finite positive number
  - The financial breakdown is computed; negative inferred shipping
    (total below subtotal + tax) is reported as a warning, not fixed

Usage:
    python -m src.storefront_core.scripts.audit_orders \\
        --path data/orders.json \\
        --tax-rate 0.08

Exits with code 0 on success, 1 on audit failure, 2 on argument error.
"""

#!/usr/bin/env python
import argparse
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..financials import decompose, format_currency
from ..loaders import load_raw_records
from ..config import load_config
from ..normalizers import ORDER_ID_KEYS, first_present, normalize_order, to_optional_str


def audit_order(
    raw: Dict[str, Any],
    idx: int,
    tax_rate: Optional[float] = None,
) -> Tuple[List[str], List[str]]:
    """Audit a single raw order.

    Returns:
        (errors, warnings)
    """
    errors: List[str] = []
    warnings: List[str] = []

    if to_optional_str(first_present(raw, ORDER_ID_KEYS)) is None:
        errors.append(f"[idx={idx}] missing order id")
        return errors, warnings

    order = normalize_order(raw)

    if not order.items:
        warnings.append(f"[idx={idx}] order {order.id} has no line items")
    if order.total_price <= 0:
        warnings.append(f"[idx={idx}] order {order.id} has no usable total")

    breakdown = decompose(order, tax_rate=tax_rate)
    if not breakdown.is_consistent:
        warnings.append(
            f"[idx={idx}] order {order.id} inferred shipping is negative "
            f"({format_currency(breakdown.shipping)}): total "
            f"{format_currency(breakdown.total)} < subtotal "
            f"{format_currency(breakdown.subtotal)} + tax {format_currency(breakdown.tax)}"
        )

    return errors, warnings


def main(argv: list[str] | None = None) -> None:
    """Audit a raw orders file.

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:]

    Raises:
        SystemExit: With code 0 on success, 1 on audit failure
    """
    parser = argparse.ArgumentParser(
        description="Audit raw orders for unusable records and inconsistent totals."
    )
    parser.add_argument(
        "--path",
        type=str,
        required=True,
        help="Path to a JSON array / JSON Lines file of raw orders",
    )
    parser.add_argument(
        "--tax-rate",
        type=float,
        default=None,
        help="Tax rate used for the breakdown (default: $STOREFRONT_TAX_RATE or 0.08).",
    )
    args = parser.parse_args(argv)
    tax_rate = args.tax_rate if args.tax_rate is not None else load_config().tax_rate

    try:
        orders = load_raw_records(Path(args.path))
    except Exception as e:
        print(f"FAILED TO LOAD FILE: {e}")
        raise SystemExit(1)

    all_errors: List[str] = []
    all_warnings: List[str] = []

    for idx, raw in enumerate(orders):
        errors, warnings = audit_order(raw, idx, tax_rate)
        all_errors.extend(errors)
        all_warnings.extend(warnings)

    if all_errors:
        print("AUDIT FAILED:\n")
        for err in all_errors:
            print(err)
        print(f"\nTotal errors: {len(all_errors)}")
        if all_warnings:
            print(f"Total warnings: {len(all_warnings)}")
        raise SystemExit(1)

    print("AUDIT PASSED")
    print(f"Total orders: {len(orders)}")
    if all_warnings:
        print("\nWarnings (non-fatal):")
        for w in all_warnings:
            print(w)
        print(f"\nTotal warnings: {len(all_warnings)}")

    raise SystemExit(0)


if __name__ == "__main__":
    main()
