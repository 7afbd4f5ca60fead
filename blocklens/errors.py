"""Exception types.

Only `PipelineError` subclasses abort a run. `UpstreamError` subclasses are raised
by the HTTP layer and are handled by each source, which turns them into an
absent value, a degraded identity, or one of the pipeline errors.
"""

from __future__ import annotations

from typing import Any, Optional


class BlocklensError(Exception):
    pass


class UpstreamError(BlocklensError):
    def __init__(self, message: str, *, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class TransportError(UpstreamError):
    """Network-level failure (DNS, connection, timeout)."""


class HttpStatusError(UpstreamError):
    def __init__(
        self,
        status: int,
        message: str,
        *,
        url: Optional[str] = None,
        meta: Optional[dict[str, Any]] = None,
    ):
        super().__init__(f"HTTP {status}: {message}", url=url)
        self.status = status
        self.meta = meta or {}


class MalformedResponseError(UpstreamError):
    """Body was not a JSON object of the expected shape."""


class PipelineError(BlocklensError):
    pass


class ResolutionError(PipelineError):
    """The identifier cannot be mapped to a canonical identity."""

    def __init__(self, identifier: str, reason: str):
        super().__init__(f"Could not resolve {identifier!r}: {reason}")
        self.identifier = identifier
        self.reason = reason


class BlockListError(PipelineError):
    """The backlink index query for a DID failed."""

    def __init__(self, did: str, reason: str):
        super().__init__(f"Could not fetch blocks for {did}: {reason}")
        self.did = did
        self.reason = reason


FatalResolutionError = ResolutionError
FatalBlockListError = BlockListError
