"""
Runtime settings endpoints.
"""

from fastapi import APIRouter, Depends

from pesaledger.container import AppContainer
from pesaledger.dependencies import get_container
from pesaledger.schemas.settings import SettingsResponse, SettingsUpdate

router = APIRouter(prefix="/settings", tags=["settings"])


def _response(container: AppContainer) -> SettingsResponse:
    settings = container.settings
    return SettingsResponse(
        sync_enabled=settings.sync_enabled,
        auto_categorize_enabled=settings.auto_categorize_enabled,
        exclude_selected_from_weekly=settings.exclude_selected_from_weekly,
        provider_sender_pattern=settings.provider_sender_pattern,
        catchup_lookback_days=settings.catchup_lookback_days,
    )


@router.get("", response_model=SettingsResponse)
def get_settings(container: AppContainer = Depends(get_container)):
    return _response(container)


@router.patch("", response_model=SettingsResponse)
def update_settings(update: SettingsUpdate, container: AppContainer = Depends(get_container)):
    settings = container.settings
    if update.sync_enabled is not None:
        settings.sync_enabled = update.sync_enabled
    if update.auto_categorize_enabled is not None:
        settings.auto_categorize_enabled = update.auto_categorize_enabled
    if update.exclude_selected_from_weekly is not None:
        settings.exclude_selected_from_weekly = update.exclude_selected_from_weekly
    return _response(container)
