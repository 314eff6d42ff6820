"""Storefront Views CLI Entry Point

Developer harness for the storefront core: resolves an order or a set of
products through the primary API / local store fallback and prints the
computed view model (order + financial breakdown, or comparison matrix)
as JSON.

Usage:
    python -m src.run_views order --id ORD-1 --store data/orders.json
    python -m src.run_views compare --id p1 --id p2 --store data/products.json
"""

# run_views.py
import argparse
import asyncio
import json
import logging
from pathlib import Path

from src.storefront_core.comparison import ComparisonMatrixBuilder
from src.storefront_core.config import ORDERS, PRODUCTS, load_api_settings, load_config
from src.storefront_core.models import NotFound
from src.storefront_core.reconciler import FallbackReconciler
from src.storefront_core.sources import (
    HttpPrimarySource,
    InMemoryRecordStore,
    JsonFileRecordStore,
    OfflinePrimarySource,
)
from src.storefront_core.views import build_comparison_view, build_order_view


def configure_logging() -> None:
    """Configure logging with both console and file output.

    Sets up:
      - Root logger at DEBUG level
      - Console handler at INFO level for user-facing messages
      - File handler at DEBUG level for detailed troubleshooting
      - Reduced verbosity for httpx/httpcore loggers
    """
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)
    log_file = log_dir / "storefront.log"

    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )

    # Console handler: high-level INFO+
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)

    # File handler: detailed DEBUG+
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    # Clear existing handlers to avoid duplicates if run multiple times
    logger.handlers.clear()
    logger.addHandler(console_handler)
    logger.addHandler(file_handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Resolve storefront records and print computed view models"
    )
    parser.add_argument(
        "view",
        choices=["order", "compare"],
        help="'order' for an order with its financial breakdown, "
             "'compare' for a product comparison matrix",
    )
    parser.add_argument(
        "--id",
        dest="ids",
        action="append",
        default=[],
        help="Record id to resolve (repeat for several products).",
    )
    parser.add_argument(
        "--store",
        type=Path,
        default=None,
        help="JSON file used as the local fallback store.",
    )
    parser.add_argument(
        "--api-url",
        default=None,
        help="Remote API base URL (default: $STOREFRONT_API_BASE_URL, offline if unset).",
    )
    parser.add_argument(
        "--tax-rate",
        type=float,
        default=None,
        help="Override the configured tax rate (default: $STOREFRONT_TAX_RATE or 0.08).",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the JSON view here instead of stdout.",
    )
    return parser


async def _resolve_view(args: argparse.Namespace):
    config = load_config()
    if args.tax_rate is not None:
        config = config.model_copy(update={"tax_rate": args.tax_rate})

    settings = load_api_settings()
    base_url = args.api_url or settings.base_url
    store = JsonFileRecordStore(args.store) if args.store else InMemoryRecordStore()

    if base_url:
        primary = HttpPrimarySource(base_url, token=settings.token, timeout=settings.timeout)
    else:
        primary = OfflinePrimarySource()

    try:
        if args.view == "order":
            reconciler = FallbackReconciler(primary, store, kind=ORDERS)
            return await build_order_view(args.ids[0], reconciler, config)
        reconciler = FallbackReconciler(primary, store, kind=PRODUCTS)
        return await build_comparison_view(args.ids, reconciler, ComparisonMatrixBuilder(config))
    finally:
        if isinstance(primary, HttpPrimarySource):
            await primary.aclose()


def main(argv=None) -> int:
    """
    CLI entrypoint for the storefront views harness.

    Returns a Unix-style exit code: 0 on success, 1 when the record is not
    found or anything fails, 2 on argument errors.
    """
    configure_logging()
    logger = logging.getLogger(__name__)

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.view == "order" and len(args.ids) != 1:
        parser.error("order view takes exactly one --id")

    logger.info("=== Building %s view ===", args.view)
    logger.info("Ids: %s", ", ".join(args.ids) or "(none)")
    logger.info("Local store: %s", args.store or "None")

    try:
        view = asyncio.run(_resolve_view(args))
    except Exception as e:
        logger.exception(f"View build failed with an unhandled exception: {e}")
        return 1

    if isinstance(view, NotFound):
        logger.error("%s %s not found in remote API or local store", view.kind, view.entity_id)
        return 1

    payload = json.dumps(view.model_dump(mode="json"), ensure_ascii=False, indent=2)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(payload, encoding="utf-8")
        logger.info("Wrote %s view to %s", args.view, args.output)
    else:
        print(payload)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
