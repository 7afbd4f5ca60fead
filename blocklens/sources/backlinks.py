"""
Constellation - backlink index
Answers "which records point at this subject" for a given collection/path.
No API key required
https://constellation.microcosm.blue/
"""

from __future__ import annotations

from typing import Any, Optional

from ..config import Settings
from ..errors import BlockListError, MalformedResponseError, UpstreamError
from ..http import build_url, get_json
from ..log import get_logger
from ..models import BlockListResult, BlockRecord

GET_BACKLINKS_METHOD = "blue.microcosm.links.getBacklinks"

# Block records reference the blocked account in their `subject` field.
BLOCK_SOURCE = "app.bsky.graph.block:subject"

logger = get_logger(__name__)


def _parse_record(item: Any) -> BlockRecord:
    if not isinstance(item, dict):
        raise MalformedResponseError(f"backlink record is not an object: {item!r}")
    fields = {}
    for key in ("did", "collection", "rkey"):
        value = item.get(key)
        if not isinstance(value, str) or not value:
            raise MalformedResponseError(f"backlink record missing {key!r}: {item!r}")
        fields[key] = value
    return BlockRecord(**fields)


def parse_backlinks(payload: dict[str, Any]) -> BlockListResult:
    """Decode a getBacklinks response. Source order is kept as-is."""
    records_raw = payload.get("records")
    if not isinstance(records_raw, list):
        raise MalformedResponseError("backlinks payload has no records list")
    records = tuple(_parse_record(item) for item in records_raw)

    total = payload.get("total")
    if isinstance(total, bool) or not isinstance(total, int) or total < 0:
        raise MalformedResponseError(f"backlinks payload has invalid total: {total!r}")

    cursor = payload.get("cursor")
    return BlockListResult(
        total=total,
        records=records,
        cursor=cursor if isinstance(cursor, str) and cursor else None,
    )


def fetch_blocks(did: str, *, settings: Optional[Settings] = None) -> BlockListResult:
    """Fetch the first page of block records targeting `did`.

    Raises BlockListError on any failure; there is no partial result.
    """
    settings = settings or Settings.from_env()
    url = build_url(
        settings.constellation_url,
        GET_BACKLINKS_METHOD,
        {"subject": did, "source": BLOCK_SOURCE, "limit": settings.page_limit},
    )
    try:
        result = parse_backlinks(get_json(url, timeout=settings.timeout))
    except UpstreamError as e:
        logger.warning("block_list_failed", did=did, error=str(e))
        raise BlockListError(did, str(e)) from e

    logger.debug(
        "block_list_fetched",
        did=did,
        total=result.total,
        returned=len(result.records),
        truncated=result.truncated,
    )
    return result
