"""
API Router — Mounts the explorer endpoint group.

  /api/v1/explorer/{sessions,health}
"""

from fastapi import APIRouter

from explorer.api.v1.explorer import router as explorer_router

api_router = APIRouter()

api_router.include_router(
    explorer_router,
    prefix="/explorer",
    tags=["Tabular Explorer"],
)
