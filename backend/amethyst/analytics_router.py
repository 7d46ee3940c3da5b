import logging
import os
from datetime import datetime
from typing import Optional

import pytz
from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from amethyst.router import EndSessionInput, get_requester, read_json_body

router = APIRouter()

logger = logging.getLogger(__name__)

current_dir = os.path.dirname(os.path.abspath(__file__))
templates = Jinja2Templates(directory=os.path.join(current_dir, "templates"))

INVALID_TYPE = "Invalid type parameter"


class ConversationLogInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId", min_length=1)
    message: str
    response: str
    intent: str
    confidence: float = Field(ge=0, le=1)


def convert_utc_to_local(utc_dt: datetime, timezone: str = "Asia/Jakarta") -> str:
    """Render a UTC datetime in the given local timezone"""
    try:
        local_tz = pytz.timezone(timezone)
        return utc_dt.astimezone(local_tz).strftime("%Y-%m-%d %H:%M:%S")
    except pytz.UnknownTimeZoneError:
        logger.warning(f"Unknown timezone '{timezone}', showing UTC")
        return utc_dt.strftime("%Y-%m-%d %H:%M:%S")


@router.get("")
async def get_analytics(
    request: Request,
    analytics_type: Optional[str] = Query(None, alias="type"),
    limit: int = 100,
    offset: int = 0,
):
    """Aggregate stats, paginated sessions or paginated logs"""
    service = request.app.state.analytics
    try:
        if analytics_type == "analytics":
            return await run_in_threadpool(service.summary)
        if analytics_type == "sessions":
            return await run_in_threadpool(service.list_sessions, limit, offset)
        if analytics_type == "logs":
            return await run_in_threadpool(service.list_logs, limit, offset)
    except Exception as e:
        logger.error(f"Analytics API error: {e!r}")
        raise HTTPException(status_code=500, detail="Internal server error")

    raise HTTPException(status_code=400, detail=INVALID_TYPE)


@router.post("")
async def post_analytics(request: Request):
    """Record a conversation turn or close a session"""
    data = await read_json_body(request)
    service = request.app.state.analytics
    event_type = data.get("type")

    try:
        if event_type == "log_conversation":
            entry = ConversationLogInput.model_validate(data)
            log_id = await run_in_threadpool(
                service.log_conversation,
                entry.session_id,
                entry.message,
                entry.response,
                entry.intent,
                entry.confidence,
                get_requester(request),
            )
            return {"success": True, "logId": log_id}

        if event_type == "end_session":
            entry = EndSessionInput.model_validate(data)
            await run_in_threadpool(service.end_session, entry.session_id)
            return {"success": True}

    except ValidationError as e:
        logger.warning(f"Rejected analytics payload: {e.errors()}")
        raise HTTPException(status_code=400, detail="Invalid analytics payload")
    except Exception as e:
        logger.error(f"Analytics API error: {e!r}")
        raise HTTPException(status_code=500, detail="Internal server error")

    raise HTTPException(status_code=400, detail=INVALID_TYPE)


@router.get("/dashboard", response_class=HTMLResponse)
async def analytics_dashboard(request: Request, limit: int = 50):
    """HTML analytics dashboard"""
    state = request.app.state
    try:
        summary = await run_in_threadpool(state.analytics.summary)
        logs = await run_in_threadpool(state.analytics.store.list_logs, limit, 0)

        log_rows = [
            {
                "session_id": log.session_id,
                "message": log.message,
                "response": log.response,
                "intent": log.intent,
                "confidence": round(log.confidence, 2),
                "timestamp": convert_utc_to_local(log.timestamp, state.settings.local_timezone),
            }
            for log in logs
        ]

        return templates.TemplateResponse(
            request,
            "analytics_dashboard.html",
            {
                "summary": summary,
                "avg_confidence": round(summary["avgConfidence"], 2),
                "logs": log_rows,
                "timezone": state.settings.local_timezone,
            },
        )

    except Exception as e:
        logger.error(f"Error in analytics_dashboard: {e!r}")
        raise HTTPException(status_code=500, detail="Error loading analytics data")
