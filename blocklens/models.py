"""Models for blocklens.

These frozen dataclasses define the output contract of a pipeline run.
Optional fields model *absence*: a missing profile, actor or timestamp is a
valid state and never an error.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Optional

# Handle reported when an identity's alias cannot be determined.
INVALID_HANDLE = "handle.invalid"

# Canonical identifiers are DIDs.
CANONICAL_PREFIX = "did:"

ResolutionStatus = Literal["ok", "degraded", "fatal"]
ImageKind = Literal["avatar", "banner"]


def is_canonical(identifier: str) -> bool:
    return identifier.startswith(CANONICAL_PREFIX)


@dataclass(frozen=True)
class Identity:
    did: str
    handle: str = INVALID_HANDLE
    pds: str = ""
    signing_key: str = ""

    @classmethod
    def degraded(cls, did: str) -> "Identity":
        """Placeholder identity for a DID whose resolution failed."""
        return cls(did=did, handle=INVALID_HANDLE, pds="", signing_key="")

    @property
    def has_valid_handle(self) -> bool:
        return bool(self.handle) and self.handle != INVALID_HANDLE

    def to_dict(self) -> dict[str, Any]:
        return {
            "did": self.did,
            "handle": self.handle,
            "pds": self.pds,
            "signing_key": self.signing_key,
        }


@dataclass(frozen=True)
class IdentityResolution:
    """Tagged outcome of an identity lookup.

    - ok: the service answered; `identity` is its payload.
    - degraded: the service failed but the input was a DID; `identity` is a
      placeholder.
    - fatal: the service failed and the input was a handle; `identity` is None.
    """

    status: ResolutionStatus
    identity: Optional[Identity] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class ImageRef:
    cid: str
    mime_type: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"cid": self.cid, "mime_type": self.mime_type}


@dataclass(frozen=True)
class Profile:
    display_name: Optional[str] = None
    description: Optional[str] = None
    avatar: Optional[ImageRef] = None
    banner: Optional[ImageRef] = None
    pronouns: Optional[str] = None
    website: Optional[str] = None

    # Location of the profile record itself.
    uri: Optional[str] = None
    cid: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "display_name": self.display_name,
            "description": self.description,
            "avatar": self.avatar.to_dict() if self.avatar else None,
            "banner": self.banner.to_dict() if self.banner else None,
            "pronouns": self.pronouns,
            "website": self.website,
            "uri": self.uri,
            "cid": self.cid,
        }


@dataclass(frozen=True)
class Actor:
    identity: Identity
    profile: Optional[Profile] = None

    @property
    def did(self) -> str:
        return self.identity.did

    def to_dict(self) -> dict[str, Any]:
        return {
            "identity": self.identity.to_dict(),
            "profile": self.profile.to_dict() if self.profile else None,
        }


@dataclass(frozen=True)
class BlockRecord:
    """`did` blocked the target via the record at `collection`/`rkey`."""

    did: str
    collection: str
    rkey: str

    @property
    def at_uri(self) -> str:
        return f"at://{self.did}/{self.collection}/{self.rkey}"

    def to_dict(self) -> dict[str, Any]:
        return {"did": self.did, "collection": self.collection, "rkey": self.rkey}


@dataclass(frozen=True)
class EnrichedBlockRecord:
    did: str
    collection: str
    rkey: str

    actor: Optional[Actor] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_record(
        cls,
        record: BlockRecord,
        *,
        actor: Optional[Actor] = None,
        created_at: Optional[datetime] = None,
    ) -> "EnrichedBlockRecord":
        return cls(
            did=record.did,
            collection=record.collection,
            rkey=record.rkey,
            actor=actor,
            created_at=created_at,
        )

    @property
    def record(self) -> BlockRecord:
        return BlockRecord(did=self.did, collection=self.collection, rkey=self.rkey)

    def to_dict(self) -> dict[str, Any]:
        return {
            "did": self.did,
            "collection": self.collection,
            "rkey": self.rkey,
            "actor": self.actor.to_dict() if self.actor else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class BlockListResult:
    total: int
    records: tuple[BlockRecord, ...] = field(default_factory=tuple)
    cursor: Optional[str] = None

    @property
    def truncated(self) -> bool:
        return self.total > len(self.records)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "records": [r.to_dict() for r in self.records],
            "truncated": self.truncated,
            "cursor": self.cursor,
        }


@dataclass(frozen=True)
class PipelineResult:
    target: Actor
    block_list: BlockListResult
    enriched: tuple[EnrichedBlockRecord, ...]
    checked_at: str  # ISO-8601 UTC

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target.to_dict(),
            "block_list": self.block_list.to_dict(),
            "enriched": [e.to_dict() for e in self.enriched],
            "checked_at": self.checked_at,
        }
