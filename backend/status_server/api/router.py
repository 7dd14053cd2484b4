from __future__ import annotations

from fastapi import APIRouter

from .endpoints.status import router as status_router

router = APIRouter()

router.include_router(status_router)
