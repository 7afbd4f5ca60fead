"""Output helpers (JSON payload, date display, exit codes)."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from .config import DEFAULT_CDN_TEMPLATE
from .links import display_label, handle_label, image_url, profile_url
from .models import Actor, PipelineResult

EXIT_OK = 0
EXIT_FATAL = 2


def format_created_at(dt: Optional[datetime]) -> str:
    """Short date for display; '-' when the timestamp is absent."""
    if dt is None:
        return "-"
    return dt.strftime("%Y-%m-%d")


def _actor_links(actor: Optional[Actor], did: str, template: str) -> dict[str, Any]:
    profile = actor.profile if actor else None
    return {
        "label": display_label(actor, did),
        "handle": handle_label(actor),
        "profile_url": profile_url(did),
        "avatar_url": image_url(did, profile.avatar if profile else None, "avatar", template=template),
        "banner_url": image_url(did, profile.banner if profile else None, "banner", template=template),
    }


def to_json(result: PipelineResult, *, cdn_template: str = DEFAULT_CDN_TEMPLATE) -> dict[str, Any]:
    """JSON-safe dict of a run, with derived links added alongside the data."""
    out = result.to_dict()
    target_did = result.target.identity.did
    out["target"]["links"] = _actor_links(result.target, target_did, cdn_template)
    for item, enriched in zip(out["enriched"], result.enriched):
        item["links"] = _actor_links(enriched.actor, enriched.did, cdn_template)
    out["summary"] = {
        "total": result.block_list.total,
        "returned": len(result.enriched),
        "truncated": result.block_list.truncated,
        "with_actor": sum(1 for e in result.enriched if e.actor is not None),
        "with_created_at": sum(1 for e in result.enriched if e.created_at is not None),
    }
    return out
