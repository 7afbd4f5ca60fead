"""
Slingshot - identity resolution
Resolves a handle or DID to a "mini doc": did, handle, pds, signing_key.
No API key required
https://slingshot.microcosm.blue/
"""

from __future__ import annotations

from typing import Any, Optional

from ..config import Settings
from ..errors import MalformedResponseError, ResolutionError, UpstreamError
from ..http import build_url, get_json
from ..log import get_logger
from ..models import INVALID_HANDLE, Identity, IdentityResolution, is_canonical

RESOLVE_METHOD = "com.bad-example.identity.resolveMiniDoc"

logger = get_logger(__name__)


def _str_field(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    return value if isinstance(value, str) else ""


def parse_identity(payload: dict[str, Any]) -> Identity:
    """Build an Identity from a mini-doc payload.

    Raises MalformedResponseError when there is no usable DID.
    """
    did = payload.get("did")
    if not isinstance(did, str) or not did:
        err = payload.get("error") or payload.get("message")
        raise MalformedResponseError(f"missing did in identity payload ({err or 'no error given'})")

    return Identity(
        did=did,
        handle=_str_field(payload, "handle") or INVALID_HANDLE,
        pds=_str_field(payload, "pds"),
        signing_key=_str_field(payload, "signing_key"),
    )


def resolve_identity_result(
    identifier: str, *, settings: Optional[Settings] = None
) -> IdentityResolution:
    """Resolve `identifier` without raising.

    A failed lookup degrades to a placeholder when `identifier` is already a
    DID, and is fatal otherwise. No retries.
    """
    settings = settings or Settings.from_env()
    url = build_url(settings.slingshot_url, RESOLVE_METHOD, {"identifier": identifier})

    try:
        payload = get_json(url, timeout=settings.timeout)
        identity = parse_identity(payload)
    except UpstreamError as e:
        if is_canonical(identifier):
            logger.debug("identity_degraded", identifier=identifier, error=str(e))
            return IdentityResolution(
                status="degraded", identity=Identity.degraded(identifier), error=str(e)
            )
        logger.warning("identity_unresolvable", identifier=identifier, error=str(e))
        return IdentityResolution(status="fatal", error=str(e))

    return IdentityResolution(status="ok", identity=identity)


def resolve_identity(identifier: str, *, settings: Optional[Settings] = None) -> Identity:
    """Resolve `identifier` to an Identity or raise ResolutionError."""
    result = resolve_identity_result(identifier, settings=settings)
    if result.identity is None:
        raise ResolutionError(identifier, result.error or "identity resolution failed")
    return result.identity
