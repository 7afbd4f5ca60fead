"""
blocklens Web API
FastAPI backend for the block-list pipeline
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from blocklens import __version__, run
from blocklens.config import Settings
from blocklens.errors import BlockListError, ResolutionError
from blocklens.log import setup_logging
from blocklens.output import to_json


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging for servers started as `uvicorn web.api:app`."""
    setup_logging(Settings.from_env().log_level)
    yield


app = FastAPI(
    title="blocklens",
    description="Who blocks an AT Protocol account, with blocker profiles",
    version=__version__,
    lifespan=lifespan,
)


class BlocksRequest(BaseModel):
    identifier: str
    limit: Optional[int] = Field(default=None, ge=1, le=100)
    timeout: Optional[int] = Field(default=None, ge=1, le=120)


def _lookup(identifier: str, limit: Optional[int], timeout: Optional[int]) -> dict:
    if not identifier.strip():
        raise HTTPException(status_code=400, detail="identifier must not be empty")

    try:
        settings = Settings.from_env().replace(page_limit=limit, timeout=timeout)
    except ValueError as e:
        raise HTTPException(status_code=500, detail=f"Invalid server configuration: {e}") from e

    try:
        result = run(identifier, settings=settings)
    except ResolutionError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except BlockListError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    return to_json(result, cdn_template=settings.cdn_template)


@app.get("/api/health")
def health():
    """Health check endpoint"""
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


# Sync handlers: the pipeline blocks on urllib, so FastAPI runs these in its threadpool.
@app.get("/api/blocks")
def get_blocks(
    identifier: str = Query(..., description="Handle or DID"),
    limit: Optional[int] = Query(None, ge=1, le=100),
    timeout: Optional[int] = Query(None, ge=1, le=120),
):
    """List who blocks an account"""
    return _lookup(identifier, limit, timeout)


@app.post("/api/blocks")
def post_blocks(request: BlocksRequest):
    """List who blocks an account (JSON body)"""
    return _lookup(request.identifier, request.limit, request.timeout)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
