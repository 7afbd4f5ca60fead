"""blocklens - who blocks an AT Protocol account, enriched with profiles."""

from ._version import __version__
from .actors import resolve_actor
from .errors import (
    BlockListError,
    FatalBlockListError,
    FatalResolutionError,
    PipelineError,
    ResolutionError,
)
from .pipeline import run
from .sources import fetch_blocks, fetch_profile, fetch_record_timestamp, resolve_identity

__all__ = [
    "__version__",
    "run",
    "resolve_actor",
    "resolve_identity",
    "fetch_profile",
    "fetch_blocks",
    "fetch_record_timestamp",
    "PipelineError",
    "ResolutionError",
    "BlockListError",
    "FatalResolutionError",
    "FatalBlockListError",
]
