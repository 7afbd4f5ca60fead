"""Clients for the upstream services (Slingshot, Constellation)."""

from .backlinks import fetch_blocks
from .identity import resolve_identity, resolve_identity_result
from .records import fetch_profile, fetch_record_timestamp, get_record

__all__ = [
    "fetch_blocks",
    "fetch_profile",
    "fetch_record_timestamp",
    "get_record",
    "resolve_identity",
    "resolve_identity_result",
]
