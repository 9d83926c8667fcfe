"""
source.py

Fetches the raw transaction rows the dashboard is built from.

Accepted sources
----------------
- http(s) URL returning JSON (e.g. a Google Apps Script web app)
- local .json file
- local .csv file (read as text so amounts keep their original spelling)

Accepted JSON shapes
--------------------
- {"success": true, "data": [...]}   (envelope; success=false is an error)
- [...]                              (bare array)
- {"data": [...]}                    (wrapper)

Anything else raises SourceError. A partial dataset is never returned.
"""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from pathlib import Path
from typing import Any

import pandas as pd

from .errors import SourceError
from .logging_setup import get_logger
from .records import RecordStore

logger = get_logger("dashboard_core.source")

_PLACEHOLDER_SOURCES = {"URL_DE_TU_API_AQUÍ", "YOUR_API_URL_HERE"}


def is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def unwrap_payload(payload: Any) -> list[dict]:
    """Return the row list carried by any of the accepted response shapes."""
    if isinstance(payload, list):
        rows = payload
    elif isinstance(payload, dict) and "success" in payload:
        if not payload.get("success"):
            message = payload.get("message") or payload.get("error") or "source reported failure"
            raise SourceError(f"Transaction source returned an error: {message}")
        rows = payload.get("data")
        if not isinstance(rows, list):
            raise SourceError("Envelope response has success=true but 'data' is not an array")
    elif isinstance(payload, dict) and isinstance(payload.get("data"), list):
        rows = payload["data"]
    else:
        kind = type(payload).__name__
        keys = sorted(payload.keys()) if isinstance(payload, dict) else []
        raise SourceError(
            f"Unrecognized response shape ({kind}, keys={keys}); expected an array, "
            "{success, data} or {data: [...]}"
        )

    bad = [i for i, row in enumerate(rows) if not isinstance(row, dict)]
    if bad:
        raise SourceError(f"Rows must be objects; {len(bad)} row(s) are not (first at index {bad[0]})")
    return rows


def _fetch_url(url: str, timeout: float) -> Any:
    req = urllib.request.Request(url, headers={"Accept": "application/json"})
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            body = resp.read()
    except urllib.error.HTTPError as e:
        raise SourceError(f"Transaction source returned HTTP {e.code} {e.reason}") from e
    except (urllib.error.URLError, TimeoutError, OSError) as e:
        raise SourceError(f"Transaction source unreachable: {e}") from e

    try:
        return json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SourceError("Transaction source did not return valid JSON") from e


def _read_file(path: Path) -> Any:
    if not path.exists():
        raise SourceError(f"Transaction file not found: {path}")

    if path.suffix.lower() == ".csv":
        try:
            df = pd.read_csv(path, dtype=str, keep_default_na=False)
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            raise SourceError(f"Could not parse CSV {path}: {e}") from e
        return df.to_dict("records")

    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SourceError(f"Could not parse JSON {path}: {e}") from e


def fetch_rows(source: str, timeout: float = 20.0) -> list[dict]:
    """
    Fetch raw rows from ``source`` in a single attempt.

    Raises:
        SourceError: unreachable source, unparseable body or unknown shape
    """
    source = (source or "").strip()
    if not source or source in _PLACEHOLDER_SOURCES:
        raise SourceError("No transaction source configured; set DASHBOARD_SOURCE to your API URL or a data file")

    payload = _fetch_url(source, timeout) if is_url(source) else _read_file(Path(source))
    rows = unwrap_payload(payload)
    logger.info("Fetched %d rows from %s", len(rows), source)
    return rows


def load_store(source: str, timeout: float = 20.0) -> RecordStore:
    """Fetch and normalize the full dataset; the only entry point that can fail."""
    return RecordStore.from_rows(fetch_rows(source, timeout=timeout))
