"""Central router that includes all sub-routers."""

from fastapi import APIRouter

from evdispatch.api.requests import router as requests_router
from evdispatch.api.reports import router as reports_router
from evdispatch.api.notifications import router as notifications_router

api_router = APIRouter()
api_router.include_router(requests_router)
api_router.include_router(reports_router)
api_router.include_router(notifications_router)
