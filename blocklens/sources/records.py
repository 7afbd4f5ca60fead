"""
Slingshot - record lookup
Returns the stored record at an at:// URI as {uri, cid, value}.
No API key required
https://slingshot.microcosm.blue/

Both lookups here are best-effort: any failure yields None.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Optional

from ..config import Settings
from ..errors import MalformedResponseError, UpstreamError
from ..http import build_url, get_json
from ..log import get_logger
from ..models import ImageRef, Profile

GET_RECORD_METHOD = "com.bad-example.repo.getUriRecord"
PROFILE_COLLECTION = "app.bsky.actor.profile"
PROFILE_RKEY = "self"

logger = get_logger(__name__)

# Python < 3.11 fromisoformat() wants exactly 3 or 6 fractional digits and no "Z".
_FRACTION_RE = re.compile(r"\.(\d+)")


def at_uri(did: str, collection: str, rkey: str) -> str:
    return f"at://{did}/{collection}/{rkey}"


def get_record(uri: str, *, settings: Settings) -> dict[str, Any]:
    """Fetch the record envelope at `uri`.

    Raises UpstreamError on failure, MalformedResponseError when the envelope
    carries no `value` object.
    """
    url = build_url(settings.slingshot_url, GET_RECORD_METHOD, {"at_uri": uri})
    envelope = get_json(url, timeout=settings.timeout)
    if not isinstance(envelope.get("value"), dict):
        raise MalformedResponseError(f"record envelope for {uri} has no value", url=url)
    return envelope


def _opt_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def parse_image_ref(blob: Any) -> Optional[ImageRef]:
    """Decode a blob reference: {"ref": {"$link": cid}, "mimeType": ...}."""
    if not isinstance(blob, dict):
        return None
    ref = blob.get("ref")
    cid = ref.get("$link") if isinstance(ref, dict) else None
    if not isinstance(cid, str) or not cid:
        # Legacy blobs carry the CID at the top level.
        cid = blob.get("cid")
    if not isinstance(cid, str) or not cid:
        return None
    return ImageRef(cid=cid, mime_type=_opt_str(blob.get("mimeType")) or "")


def parse_profile(envelope: dict[str, Any]) -> Profile:
    value = envelope.get("value") or {}
    return Profile(
        display_name=_opt_str(value.get("displayName")),
        description=_opt_str(value.get("description")),
        avatar=parse_image_ref(value.get("avatar")),
        banner=parse_image_ref(value.get("banner")),
        pronouns=_opt_str(value.get("pronouns")),
        website=_opt_str(value.get("website")),
        uri=_opt_str(envelope.get("uri")),
        cid=_opt_str(envelope.get("cid")),
    )


def fetch_profile(did: str, *, settings: Optional[Settings] = None) -> Optional[Profile]:
    """Fetch the actor's self profile. None when absent or unreachable."""
    settings = settings or Settings.from_env()
    uri = at_uri(did, PROFILE_COLLECTION, PROFILE_RKEY)
    try:
        envelope = get_record(uri, settings=settings)
    except UpstreamError as e:
        logger.debug("profile_absent", did=did, error=str(e))
        return None
    return parse_profile(envelope)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not isinstance(value, str) or not value.strip():
        return None
    s = value.strip()
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    s = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), s, count=1)
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def fetch_record_timestamp(
    did: str,
    collection: str,
    rkey: str,
    *,
    settings: Optional[Settings] = None,
) -> Optional[datetime]:
    """Return the record's `createdAt`, or None on any failure."""
    settings = settings or Settings.from_env()
    uri = at_uri(did, collection, rkey)
    try:
        envelope = get_record(uri, settings=settings)
    except UpstreamError as e:
        logger.debug("record_timestamp_absent", uri=uri, error=str(e))
        return None

    created_at = parse_datetime(envelope["value"].get("createdAt"))
    if created_at is None:
        logger.debug("record_timestamp_missing", uri=uri)
    return created_at
