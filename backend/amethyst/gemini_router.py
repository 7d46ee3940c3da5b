import logging
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.concurrency import run_in_threadpool

from amethyst.router import read_json_body

router = APIRouter()

logger = logging.getLogger(__name__)


def _to_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def validate_settings(settings: dict) -> dict:
    """Clamp user-supplied Gemini settings to the supported ranges"""
    return {
        "isEnabled": bool(settings.get("isEnabled")),
        "model": settings.get("model") or "gemini-1.5-flash",
        "temperature": max(0.0, min(1.0, _to_float(settings.get("temperature"), 0.7) or 0.7)),
        "maxTokens": max(100, min(2000, _to_int(settings.get("maxTokens"), 500) or 500)),
        "fallbackEnabled": bool(settings.get("fallbackEnabled")),
    }


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/status")
async def gemini_status(request: Request):
    """Report whether Gemini is configured and the active settings"""
    state = request.app.state
    settings = state.settings
    is_connected = state.gemini.is_available()
    return {
        "isConnected": is_connected,
        "settings": {
            "isEnabled": is_connected,
            "model": settings.gemini_model,
            "temperature": settings.gemini_temperature,
            "maxTokens": settings.gemini_max_tokens,
            "fallbackEnabled": settings.gemini_fallback_enabled,
        },
        "timestamp": _now(),
    }


@router.post("/settings")
async def update_gemini_settings(request: Request):
    """Validate Gemini settings and echo them back; nothing is persisted"""
    data = await read_json_body(request)
    validated = validate_settings(data)
    logger.info(f"Updated Gemini settings: {validated}")
    return {
        "success": True,
        "settings": validated,
        "message": "Settings updated successfully",
        "timestamp": _now(),
    }


@router.post("/compare")
async def compare_responses(request: Request):
    """Answer the same message with Gemini and with the local pipeline"""
    data = await read_json_body(request)
    message = data.get("message")
    if not isinstance(message, str) or not message:
        raise HTTPException(status_code=400, detail="Invalid message")

    state = request.app.state
    try:
        gemini_response = ""
        gemini_time = 0
        gemini_confidence = 0.0

        if state.gemini.is_available():
            start = time.perf_counter()
            try:
                reply = await run_in_threadpool(state.gemini.generate_response, message)
                gemini_response = reply.text
                gemini_confidence = reply.confidence
            except Exception as e:
                logger.warning(f"Gemini comparison call failed: {e!r}")
                gemini_response = "Error: Failed to get Gemini response"
            gemini_time = round((time.perf_counter() - start) * 1000)
        else:
            gemini_response = "Error: Gemini AI not available (API key missing)"

        start = time.perf_counter()
        local_classification = state.engine.classifier_provider().classify(message)
        local_response = state.composer.compose(message, local_classification.intent)
        local_time = round((time.perf_counter() - start) * 1000)

        return {
            "input": message,
            "geminiResponse": gemini_response,
            "localResponse": local_response,
            "geminiTime": gemini_time,
            "localTime": local_time,
            "geminiConfidence": gemini_confidence,
            "localConfidence": local_classification.confidence,
            "timestamp": _now(),
        }

    except Exception as e:
        logger.error(f"Gemini comparison error: {e!r}")
        raise HTTPException(status_code=500, detail="Failed to compare responses")
