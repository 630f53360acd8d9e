"""
Sync schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional

from pesaledger.services.sync_coordinator import SyncTrigger


class SyncStatusResponse(BaseModel):
    state: str
    display_state: str
    connected: bool
    last_error: Optional[str]
    user_id: Optional[str]
    sync_enabled: bool
    can_sync: bool


class SyncRunRequest(BaseModel):
    trigger: SyncTrigger = SyncTrigger.MANUAL


class SignInRequest(BaseModel):
    user_id: str = Field(..., min_length=1)


class ConnectivityRequest(BaseModel):
    connected: bool


class SyncRunResponse(BaseModel):
    ran: bool
    state: str
    report: Optional[dict] = None
