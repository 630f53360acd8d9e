"""
Main API router.
"""

from fastapi import APIRouter
from pesaledger.api import (
    accounts, analytics, categories, multi_categorization, settings, sms, sync, transactions, weekly_limits
)

api_router = APIRouter()

api_router.include_router(accounts.router)
api_router.include_router(categories.router)
api_router.include_router(transactions.router)
api_router.include_router(sms.router)
api_router.include_router(analytics.router)
api_router.include_router(weekly_limits.router)
api_router.include_router(multi_categorization.router)
api_router.include_router(sync.router)
api_router.include_router(settings.router)
