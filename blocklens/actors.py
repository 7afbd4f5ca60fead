"""Resolve everything known about an actor: identity, then profile."""

from __future__ import annotations

from typing import Optional

from .config import Settings
from .models import Actor
from .sources.identity import resolve_identity
from .sources.records import fetch_profile


def resolve_actor(identifier: str, *, settings: Optional[Settings] = None) -> Actor:
    """Resolve `identifier` (handle or DID) to an Actor.

    Raises ResolutionError when the identity cannot be determined. A missing
    profile never fails; it leaves `Actor.profile` as None.
    """
    settings = settings or Settings.from_env()
    identity = resolve_identity(identifier, settings=settings)
    profile = fetch_profile(identity.did, settings=settings)
    return Actor(identity=identity, profile=profile)
