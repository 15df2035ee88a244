from fastapi import APIRouter

# Compose modular sub-routers
from api import (
    status_router,
    competitions_router,
    records_router,
    timelines_router,
    uploads_router,
    shorten_router,
)


router = APIRouter()

# main.py applies the `/api` prefix
router.include_router(status_router)
# Bulk routes live under /competitions and must not be shadowed by entity routes
router.include_router(competitions_router)
router.include_router(records_router)
router.include_router(timelines_router)
router.include_router(uploads_router)
router.include_router(shorten_router)
