from fastapi import APIRouter

import llm
from config import settings
from models import db


router = APIRouter()

# Home page navigation, in display order
MODULES = [
    {"name": "Universities", "path": "/universities", "description": "Add, edit and delete universities"},
    {"name": "Organizers", "path": "/organizers", "description": "Manage competition organizers"},
    {"name": "Competitions", "path": "/competitions/bulk", "description": "Bulk paste competitions from a spreadsheet"},
    {"name": "Timeline Events", "path": "/timeline-events", "description": "Manage competition timelines"},
    {"name": "History Entries", "path": "/history-entries", "description": "Manage competition histories"},
    {"name": "Gallery", "path": "/gallery-images", "description": "Upload competition gallery images"},
    {"name": "Resources", "path": "/resources", "description": "Manage learning resources"},
]


@router.get("/healthz")
def healthz():
    return {"ok": True}


@router.get("/status")
def status():
    connected = db.is_connected()
    out = {
        "ok": True,
        "store_connected": connected,
        "fallback": not connected,
        "ai_enabled": llm.is_ai_enabled(),
        "model": llm.get_current_model(),
    }
    if not connected:
        out["warning"] = settings.FALLBACK_WARNING
    return out


@router.get("/modules")
def modules():
    return {"modules": MODULES}
