"""Derived URLs and display labels (pure functions, no network)."""

from __future__ import annotations

from typing import Optional, get_args
from urllib.parse import quote

from .config import DEFAULT_CDN_TEMPLATE
from .models import Actor, ImageKind, ImageRef

IMAGE_KINDS = get_args(ImageKind)
PROFILE_URL_TEMPLATE = "https://bsky.app/profile/{actor}"


def cdn_image_url(did: str, cid: str, kind: ImageKind, *, template: str = DEFAULT_CDN_TEMPLATE) -> str:
    """CDN URL for an avatar/banner blob owned by `did`."""
    if kind not in IMAGE_KINDS:
        raise ValueError(f"Unknown image kind: {kind}")
    return template.format(kind=kind, did=did, cid=cid)


def image_url(
    did: str, ref: Optional[ImageRef], kind: ImageKind, *, template: str = DEFAULT_CDN_TEMPLATE
) -> Optional[str]:
    if ref is None:
        return None
    return cdn_image_url(did, ref.cid, kind, template=template)


def profile_url(actor: str) -> str:
    """Web profile link for a DID or handle."""
    return PROFILE_URL_TEMPLATE.format(actor=quote(actor, safe=":."))


def display_label(actor: Optional[Actor], fallback_did: str) -> str:
    """Best human label: display name, then valid handle, then DID."""
    if actor is None:
        return fallback_did
    if actor.profile and actor.profile.display_name and actor.profile.display_name.strip():
        return actor.profile.display_name.strip()
    if actor.identity.has_valid_handle:
        return actor.identity.handle
    return actor.identity.did or fallback_did


def handle_label(actor: Optional[Actor]) -> Optional[str]:
    """`@handle`, or None when the handle is unknown."""
    if actor is None or not actor.identity.has_valid_handle:
        return None
    return f"@{actor.identity.handle}"
