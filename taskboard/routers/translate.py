"""Board translation endpoint."""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from taskboard.config import settings
from taskboard.errors import TranslationError
from taskboard.services.translator import TranslationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["translate"])


@router.post("/translate")
async def translate(request: Request):
    """Translate section titles and task texts; ids and shape are preserved."""
    body = await request.body()
    if len(body) > settings.max_body_bytes:
        return JSONResponse({"error": "Payload too large"}, status_code=413)
    try:
        payload = json.loads(body or b"null")
    except ValueError:
        return JSONResponse({"error": "Invalid translation payload"}, status_code=400)

    service: TranslationService = request.app.state.translator
    try:
        snapshot = await service.translate(payload)
    except TranslationError as e:
        if e.status_code >= 500:
            logger.warning("Translation failed (%s): %s", e.status_code, e)
        return JSONResponse({"error": e.public_message}, status_code=e.status_code)
    except Exception:
        logger.exception("Unexpected translation failure")
        return JSONResponse({"error": "Translation failed"}, status_code=500)

    return snapshot.model_dump()
