from fastapi import APIRouter

from calshare.api.v1 import (
    auth,
    calendars,
    categories,
    events,
    health,
    invites,
    notifications,
)


api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(calendars.router, prefix="/calendars", tags=["calendars"])
api_router.include_router(events.router, prefix="/events", tags=["events"])
api_router.include_router(invites.router, prefix="", tags=["invites"])
api_router.include_router(categories.router, prefix="", tags=["categories"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
