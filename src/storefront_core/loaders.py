"""Data Loader Module

Loads raw storefront records from JSON files for the local fallback store
and the developer tools. Supports flexible container shapes (flat array,
"products"/"orders"/"results"/"data" key) and JSON Lines.
"""

import json
from pathlib import Path
from typing import Any, Dict, List

from .normalizers import ID_KEYS, first_present

CONTAINER_KEYS = ("products", "orders", "results", "data")


def load_raw_records(path: str | Path) -> List[Dict[str, Any]]:
    """Load raw records from a JSON or JSON Lines file.

    Supports flexible input formats:
      - Direct list of records: [{...}, {...}, ...]
      - Wrapped under a container key: {"orders": [...]}, {"products": [...]}
      - A single record object: {...}
      - JSON Lines, one object per line

    Non-object entries are dropped.

    Args:
        path: File path to the JSON file

    Returns:
        List of raw record dictionaries

    Raises:
        FileNotFoundError: If file does not exist
        ValueError: If the file is neither valid JSON nor valid JSON Lines
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        content = f.read().strip()

    if not content:
        return []

    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        data = _parse_json_lines(content)

    # a dict carrying its own id is one record, whatever lists it holds
    if isinstance(data, dict) and first_present(data, ID_KEYS) is None:
        for key in CONTAINER_KEYS:
            if isinstance(data.get(key), list):
                data = data[key]
                break

    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        return []
    return [record for record in data if isinstance(record, dict)]


def _parse_json_lines(content: str) -> List[Any]:
    records: List[Any] = []
    for line_no, line in enumerate(content.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            records.append(json.loads(line))
        except json.JSONDecodeError as e:
            raise ValueError(
                f"Failed to parse JSON on line {line_no}: {e}"
            ) from e
    return records
