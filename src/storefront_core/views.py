"""View Assembly Module

Glues resolution and the derived aggregates together: resolve records
through a FallbackReconciler, then hand the canonical records to the pure
builders. All I/O happens in the reconciler; the builders never suspend.
"""

import asyncio
import logging
from typing import Optional, Sequence, Union

from .comparison import ComparisonMatrixBuilder
from .config import CoreConfig
from .financials import decompose
from .models import CanonicalProduct, ComparisonMatrix, NotFound, OrderView
from .reconciler import FallbackReconciler

logger = logging.getLogger(__name__)


async def build_order_view(
    order_id: str,
    reconciler: FallbackReconciler,
    config: Optional[CoreConfig] = None,
) -> Union[OrderView, NotFound]:
    """Resolve an order and attach its financial breakdown."""
    config = config or CoreConfig()
    result = await reconciler.resolve_entity(order_id)
    if isinstance(result, NotFound):
        return result

    order = result.record
    breakdown = decompose(order, tax_rate=config.tax_rate)
    logger.debug(
        "Order %s: subtotal=%.2f tax=%.2f shipping=%.2f (source=%s)",
        order.id, breakdown.subtotal, breakdown.tax, breakdown.shipping, result.source,
    )
    return OrderView(order=order, breakdown=breakdown, source=result.source)


async def build_comparison_view(
    product_ids: Sequence[str],
    reconciler: FallbackReconciler,
    builder: Optional[ComparisonMatrixBuilder] = None,
) -> ComparisonMatrix:
    """Resolve every product id and build the comparison matrix.

    Ids that resolve to NotFound are left out. Each id gets its own
    independent resolution, repeated ids included.
    """
    builder = builder or ComparisonMatrixBuilder()
    results = await asyncio.gather(*(reconciler.resolve_entity(pid) for pid in product_ids))

    products: list[CanonicalProduct] = []
    for pid, result in zip(product_ids, results):
        if isinstance(result, NotFound):
            logger.warning("Product %r not found; leaving it out of the comparison", pid)
            continue
        products.append(result.record)

    return builder.build(products)
