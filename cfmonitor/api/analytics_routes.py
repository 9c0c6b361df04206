"""CF Monitor — Analytics API Routes."""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlmodel import Session

from cfmonitor.analyzer.pipeline import RefreshOrchestrator, refresh_and_store
from cfmonitor.api.deps import get_accounts, get_orchestrator
from cfmonitor.core.errors import ConfigError
from cfmonitor.database import get_session
from cfmonitor.core.logging import get_logger
from cfmonitor.storage.snapshot_store import SnapshotStore

logger = get_logger("api.analytics")

router = APIRouter(tags=["Analytics"])

NO_STORE = {"Cache-Control": "no-store"}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/api/status")
async def get_status(session: Session = Depends(get_session)):
    """Snapshot count, latest snapshot time and whether any data exists."""
    store = SnapshotStore(session)
    latest = store.latest()
    try:
        account_count: Optional[int] = len(get_accounts())
    except ConfigError:
        account_count = None
    return {
        "status": "running",
        "snapshots": store.count(),
        "hasData": latest is not None,
        "lastUpdatedAt": latest.created_at.isoformat() if latest else None,
        "accounts": account_count,
        "timestamp": _now_iso(),
    }


@router.post("/api/refresh")
async def trigger_refresh(
    session: Session = Depends(get_session),
    runner: RefreshOrchestrator = Depends(get_orchestrator),
):
    """Refresh every zone now and store a new snapshot."""
    try:
        payload = await refresh_and_store(
            session, accounts=get_accounts(), runner=runner
        )
    except Exception as e:
        logger.error(f"Refresh failed: {e}")
        return JSONResponse(
            status_code=500, content={"status": "error", "message": str(e)}
        )
    return {"status": "ok", "accounts": len(payload.accounts)}


@router.get("/api/analytics")
@router.get("/data/analytics.json", include_in_schema=False)
async def get_analytics(
    refresh: Optional[str] = Query(None, description="Set to 1 to force a refresh"),
    session: Session = Depends(get_session),
    runner: RefreshOrchestrator = Depends(get_orchestrator),
):
    """Serve the latest snapshot, refreshing first when forced or when empty."""
    try:
        if refresh != "1":
            latest = SnapshotStore(session).latest()
            if latest is not None:
                return JSONResponse(
                    content=latest.payload.to_json_dict(), headers=NO_STORE
                )
            logger.info("No snapshot stored yet, refreshing synchronously")

        payload = await refresh_and_store(
            session, accounts=get_accounts(), runner=runner
        )
        return JSONResponse(content=payload.to_json_dict(), headers=NO_STORE)
    except Exception as e:
        logger.error(f"Analytics request failed: {e}")
        return JSONResponse(
            status_code=500,
            content={"accounts": [], "error": str(e)},
            headers=NO_STORE,
        )
