"""Record Sources Module

Collaborator interfaces for the two places a record can come from, plus
the adapters used by the views and the CLI:

  - Primary source: the remote storefront API. Any failure (network, 404,
    401/403, 5xx) is raised as SourceUnavailable.
  - Fallback store: a local persisted collection keyed by record id. A
    missing key returns None, never raises.
"""

import logging
from pathlib import Path
from typing import Any, Awaitable, Dict, Iterable, Optional, Protocol, Union
from urllib.parse import quote

import httpx

from .loaders import load_raw_records
from .normalizers import ID_KEYS, first_present, to_optional_str

logger = logging.getLogger(__name__)

RawPayload = Dict[str, Any]


class SourceUnavailable(Exception):
    """Primary source could not deliver a record."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class PrimarySource(Protocol):
    async def fetch(self, kind: str, entity_id: str) -> Any:
        ...


class FallbackStore(Protocol):
    def get(self, entity_id: str) -> Union[Optional[RawPayload], Awaitable[Optional[RawPayload]]]:
        ...


class HttpPrimarySource:
    """Remote storefront API client: GET {base_url}/{kind}/{id}.

    Args:
        base_url: API root, e.g. "https://shop.example.com/api"
        token: Optional bearer token sent with every request
        timeout: Per-request timeout in seconds
        client: Pre-built httpx.AsyncClient (tests pass one with a mock transport)
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._base_url = base_url.rstrip("/")
        self._headers = headers

    async def fetch(self, kind: str, entity_id: str) -> Any:
        url = f"{self._base_url}/{kind}/{quote(entity_id, safe='')}"
        logger.debug("GET %s", url)
        try:
            response = await self._client.get(url, headers=self._headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SourceUnavailable(
                f"{kind}/{entity_id}: HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise SourceUnavailable(f"{kind}/{entity_id}: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise SourceUnavailable(f"{kind}/{entity_id}: invalid JSON body") from e

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpPrimarySource":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


class OfflinePrimarySource:
    """Stand-in when no API is configured; every lookup is unavailable."""

    async def fetch(self, kind: str, entity_id: str) -> Any:
        raise SourceUnavailable(f"{kind}/{entity_id}: no remote source configured")


def record_key(record: RawPayload) -> Optional[str]:
    return to_optional_str(first_present(record, ID_KEYS))


class InMemoryRecordStore:
    """Fallback store over an in-memory collection. First record wins per id."""

    def __init__(self, records: Iterable[RawPayload] = ()):
        self._records: Dict[str, RawPayload] = {}
        for record in records:
            key = record_key(record)
            if key is None:
                logger.warning("Skipping stored record without an id: %s", str(record)[:200])
                continue
            self._records.setdefault(key, record)

    def get(self, entity_id: str) -> Optional[RawPayload]:
        record = self._records.get(entity_id)
        # stored records stay untouched; callers get a copy
        return dict(record) if record is not None else None

    def __len__(self) -> int:
        return len(self._records)


class JsonFileRecordStore(InMemoryRecordStore):
    """Fallback store backed by a JSON / JSON Lines file read once at startup."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        super().__init__(load_raw_records(self.path))
        logger.info("Loaded %d local records from %s", len(self), self.path)
