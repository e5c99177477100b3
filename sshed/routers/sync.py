from typing import Optional
from fastapi import APIRouter, Depends
from sshed.dependencies import get_sync_service
from sshed.schemas.sync import SyncReport
from sshed.services import SyncService

router = APIRouter(prefix="/api/sync")


@router.post("", response_model=SyncReport)
def run_sync(sync: SyncService = Depends(get_sync_service)) -> SyncReport:
    """Runs a reconciliation pass now and returns its report.

    Why: Lets a user force a pass after editing the file on a mount where
    filesystem events are not delivered. Runs in FastAPI's threadpool and
    waits behind any pass that is already in progress.
    """
    return sync.run("api")


@router.get("/status", response_model=Optional[SyncReport])
def sync_status(sync: SyncService = Depends(get_sync_service)) -> Optional[SyncReport]:
    """Report of the most recent pass, or null before the first one."""
    return sync.last_report
