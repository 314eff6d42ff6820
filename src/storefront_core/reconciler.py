"""Fallback Reconciliation Module

Resolves one entity by trying the primary remote source first and the
local fallback store second, normalizing whichever answers.

Resolution steps:
  1. Primary fetch. A mapping payload is normalized and returned.
  2. On SourceUnavailable or an unusable payload, fallback store lookup.
     Orders found locally are settled (locally-created records are
     confirmed transactions).
  3. Otherwise NotFound.

NotFound is the only failure a caller ever sees; nothing raised by either
collaborator escapes resolve_entity.
"""

import inspect
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Union

from .config import ORDERS, PRODUCTS
from .models import CanonicalRecord, NotFound, RawRecord, Resolved
from .normalizers import as_mapping, normalize_order, normalize_product, settle_order
from .sources import FallbackStore, PrimarySource, SourceUnavailable

logger = logging.getLogger(__name__)

Normalizer = Callable[[Any, Optional[str]], CanonicalRecord]

NORMALIZERS: Dict[str, Normalizer] = {
    PRODUCTS: normalize_product,
    ORDERS: normalize_order,
}

RECORD_TYPES = (Mapping, RawRecord)


class FallbackReconciler:
    """Two-step primary/fallback resolution for one kind of entity.

    Args:
        primary: Remote source with `async fetch(kind, id)`
        fallback: Local store with `get(id)` (plain or awaitable)
        kind: "products" or "orders"
    """

    def __init__(self, primary: PrimarySource, fallback: FallbackStore, kind: str = ORDERS):
        if kind not in NORMALIZERS:
            raise ValueError(f"Unsupported entity kind: {kind!r}")
        self.primary = primary
        self.fallback = fallback
        self.kind = kind
        self._normalize = NORMALIZERS[kind]

    async def resolve_entity(self, entity_id: str) -> Union[Resolved, NotFound]:
        if not entity_id:
            return NotFound(kind=self.kind, entity_id="")

        raw = await self._from_primary(entity_id)
        if raw is not None:
            return Resolved(record=self._normalize(raw, entity_id), source="primary")

        raw = await self._from_fallback(entity_id)
        if raw is not None:
            record = self._normalize(raw, entity_id)
            if self.kind == ORDERS:
                record = settle_order(record)
            logger.info("Resolved %s/%s from local fallback store", self.kind, entity_id)
            return Resolved(record=record, source="fallback")

        logger.info("%s/%s not found in either source", self.kind, entity_id)
        return NotFound(kind=self.kind, entity_id=entity_id)

    async def _from_primary(self, entity_id: str) -> Optional[Dict[str, Any]]:
        try:
            raw = await self.primary.fetch(self.kind, entity_id)
        except SourceUnavailable as e:
            logger.warning("Primary source unavailable for %s/%s: %s", self.kind, entity_id, e)
            return None
        except Exception:
            logger.exception("Primary source failed unexpectedly for %s/%s", self.kind, entity_id)
            return None

        if not isinstance(raw, RECORD_TYPES):
            logger.warning(
                "Primary source returned %s for %s/%s, trying fallback",
                type(raw).__name__, self.kind, entity_id,
            )
            return None
        return as_mapping(raw)

    async def _from_fallback(self, entity_id: str) -> Optional[Dict[str, Any]]:
        try:
            raw = self.fallback.get(entity_id)
            if inspect.isawaitable(raw):
                raw = await raw
        except Exception:
            logger.exception("Fallback store lookup failed for %s/%s", self.kind, entity_id)
            return None
        return as_mapping(raw) if isinstance(raw, RECORD_TYPES) else None
