"""Block-list enrichment pipeline.

run(identifier):
1. resolve the target actor (identity, then profile);
2. fetch the first page of block records pointing at the target's DID;
3. for every record, concurrently resolve the blocker actor and fetch the
   block record's `createdAt`.

Only steps 1 and 2 can fail the run. A failure while enriching one record
leaves that record's `actor`/`created_at` as None and affects no other record.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Optional

from .actors import resolve_actor
from .config import Settings
from .errors import ResolutionError
from .log import get_logger
from .models import Actor, BlockRecord, EnrichedBlockRecord, PipelineResult
from .sources.backlinks import fetch_blocks
from .sources.records import fetch_record_timestamp

logger = get_logger(__name__)


def _actor_or_none(fut: Future[Actor], record: BlockRecord) -> Optional[Actor]:
    try:
        return fut.result()
    except Exception as e:
        logger.debug("blocker_actor_absent", did=record.did, error=str(e))
        return None


def _timestamp_or_none(fut: Future[Optional[datetime]], record: BlockRecord) -> Optional[datetime]:
    try:
        return fut.result()
    except Exception as e:
        logger.debug("block_timestamp_absent", uri=record.at_uri, error=str(e))
        return None


def enrich_records(
    records: tuple[BlockRecord, ...], *, settings: Settings
) -> tuple[EnrichedBlockRecord, ...]:
    """Enrich `records` concurrently; output is aligned with input by index."""
    if not records:
        return ()

    # Two independent units per record: blocker actor + block timestamp.
    workers = min(settings.max_workers, 2 * len(records))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        pending: list[tuple[Future[Actor], Future[Optional[datetime]]]] = []
        for record in records:
            actor_fut = executor.submit(resolve_actor, record.did, settings=settings)
            ts_fut = executor.submit(
                fetch_record_timestamp,
                record.did,
                record.collection,
                record.rkey,
                settings=settings,
            )
            pending.append((actor_fut, ts_fut))

        # Collected in submission order, not completion order.
        return tuple(
            EnrichedBlockRecord.from_record(
                record,
                actor=_actor_or_none(actor_fut, record),
                created_at=_timestamp_or_none(ts_fut, record),
            )
            for record, (actor_fut, ts_fut) in zip(records, pending)
        )


def run(identifier: str, *, settings: Optional[Settings] = None) -> PipelineResult:
    """Resolve `identifier`, list who blocks it, and enrich each block.

    Raises:
        ResolutionError: the target's identity cannot be determined.
        BlockListError: the backlink index query failed.
    """
    settings = settings or Settings.from_env()
    identifier = identifier.strip()
    if not identifier:
        raise ResolutionError(identifier, "empty identifier")

    logger.info("run_started", identifier=identifier)
    target = resolve_actor(identifier, settings=settings)
    block_list = fetch_blocks(target.identity.did, settings=settings)
    enriched = enrich_records(block_list.records, settings=settings)

    logger.info(
        "run_finished",
        identifier=identifier,
        did=target.identity.did,
        total=block_list.total,
        enriched=len(enriched),
        with_actor=sum(1 for e in enriched if e.actor is not None),
        with_created_at=sum(1 for e in enriched if e.created_at is not None),
    )
    return PipelineResult(
        target=target,
        block_list=block_list,
        enriched=enriched,
        checked_at=datetime.now(timezone.utc).isoformat(),
    )
