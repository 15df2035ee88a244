from fastapi import APIRouter, Request
import json
import logging

import llm
from api.common import error_response

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/gpt-shorten")
async def gpt_shorten(request: Request):
    """Condense ``longDescription`` into a short description of at most 50 words."""
    if not llm.is_ai_enabled():
        return error_response(503, "OpenAI API is not configured")

    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return error_response(400, "Request body must be JSON")
    long_description = payload.get("longDescription") if isinstance(payload, dict) else None
    if not isinstance(long_description, str) or not long_description.strip():
        return error_response(400, "Long description is required")

    short = await llm.generate_short_description(long_description)
    if not short:
        return error_response(500, "Failed to generate short description")
    return {"shortDescription": short}
