"""API v1 router"""
from fastapi import APIRouter

from socdash.api.v1.endpoints import (
    alerts, incidents, threats, dashboard, assets, playbooks, compliance, users, live
)

api_router = APIRouter()
api_router.include_router(alerts.router, prefix="/alerts", tags=["alerts"])
api_router.include_router(incidents.router, prefix="/incidents", tags=["incidents"])
api_router.include_router(threats.router, prefix="/threats", tags=["threats"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(assets.router, prefix="/assets", tags=["assets"])
api_router.include_router(playbooks.router, prefix="/playbooks", tags=["playbooks"])
api_router.include_router(compliance.router, prefix="/compliance", tags=["compliance"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(live.router, tags=["live"])
