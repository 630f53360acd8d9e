"""
Runtime settings schemas.
"""

from pydantic import BaseModel
from typing import Optional


class SettingsResponse(BaseModel):
    sync_enabled: bool
    auto_categorize_enabled: bool
    exclude_selected_from_weekly: bool
    provider_sender_pattern: str
    catchup_lookback_days: int


class SettingsUpdate(BaseModel):
    sync_enabled: Optional[bool] = None
    auto_categorize_enabled: Optional[bool] = None
    exclude_selected_from_weekly: Optional[bool] = None
