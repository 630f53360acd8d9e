"""
Sync API endpoints.
"""

from fastapi import APIRouter, Depends

from pesaledger.container import AppContainer
from pesaledger.dependencies import get_container
from pesaledger.schemas.sync import (
    ConnectivityRequest,
    SignInRequest,
    SyncRunRequest,
    SyncRunResponse,
    SyncStatusResponse,
)
from pesaledger.services.sync_coordinator import SyncTrigger

router = APIRouter(prefix="/sync", tags=["sync"])


def _status(container: AppContainer) -> SyncStatusResponse:
    snapshot = container.tracker.snapshot()
    return SyncStatusResponse(
        **snapshot,
        user_id=container.settings.user_id,
        sync_enabled=container.settings.sync_enabled,
        can_sync=container.sync.can_sync(),
    )


def _run_response(container: AppContainer, report) -> SyncRunResponse:
    return SyncRunResponse(
        ran=report is not None,
        state=container.tracker.display_state.value,
        report=report.to_dict() if report else None,
    )


@router.get("/status", response_model=SyncStatusResponse)
def sync_status(container: AppContainer = Depends(get_container)):
    return _status(container)


@router.post("/run", response_model=SyncRunResponse)
def run_sync(request: SyncRunRequest, container: AppContainer = Depends(get_container)):
    """Run a sync pass; skipped passes report ran=false."""
    return _run_response(container, container.sync.run(request.trigger))


@router.post("/sign-in", response_model=SyncRunResponse)
def sign_in(request: SignInRequest, container: AppContainer = Depends(get_container)):
    """Bind the ledger to a cloud user and restore from the remote snapshot."""
    return _run_response(container, container.sync.sign_in(request.user_id))


@router.post("/sign-out", response_model=SyncStatusResponse)
def sign_out(container: AppContainer = Depends(get_container)):
    container.sync.sign_out()
    return _status(container)


@router.post("/connectivity", response_model=SyncRunResponse)
def connectivity(request: ConnectivityRequest, container: AppContainer = Depends(get_container)):
    """Report a connectivity change; regaining it triggers a sync."""
    return _run_response(container, container.sync.on_connectivity_changed(request.connected))


@router.post("/force", response_model=SyncRunResponse)
def force_sync(container: AppContainer = Depends(get_container)):
    return _run_response(container, container.sync.run(SyncTrigger.MANUAL))
