from fastapi import APIRouter

# Subrouters are imported and re-exported for convenience
from .status import router as status_router  # noqa: F401
from .competitions import router as competitions_router  # noqa: F401
from .records import router as records_router  # noqa: F401
from .timelines import router as timelines_router  # noqa: F401
from .uploads import router as uploads_router  # noqa: F401
from .shorten import router as shorten_router  # noqa: F401

__all__ = [
    "APIRouter",
    "status_router",
    "competitions_router",
    "records_router",
    "timelines_router",
    "uploads_router",
    "shorten_router",
]
