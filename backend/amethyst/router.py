import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ConfigDict, Field

from amethyst.analytics import RequesterInfo
from amethyst.recorder import record_conversation, record_session_end

router = APIRouter()

logger = logging.getLogger(__name__)

INVALID_MESSAGE = "Pesan tidak valid"
SERVER_ERROR = "Terjadi kesalahan pada server"


# ─────────────────────────────────────
# Pydantic Models
# ─────────────────────────────────────
class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    answer: str
    confidence: float
    intent: str
    session_id: str = Field(alias="sessionId")
    ai_provider: str = Field(alias="aiProvider")
    timestamp: str


class EndSessionInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId", min_length=1)


# ─────────────────────────────────────
# Helper Functions
# ─────────────────────────────────────
def new_session_id() -> str:
    return f"session_{uuid.uuid4().hex[:16]}"


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real = request.headers.get("x-real-ip")
    if real:
        return real.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def get_requester(request: Request) -> RequesterInfo:
    return RequesterInfo(user_agent=request.headers.get("user-agent"), ip_address=get_client_ip(request))


async def read_json_body(request: Request) -> dict:
    try:
        data = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(status_code=400, detail=INVALID_MESSAGE)
    if not isinstance(data, dict):
        raise HTTPException(status_code=400, detail=INVALID_MESSAGE)
    return data


# ─────────────────────────────────────
# API Endpoints
# ─────────────────────────────────────
@router.post("", response_model=ChatResponse)
async def chat(request: Request, background_tasks: BackgroundTasks):
    """Classify a message, answer it and queue the analytics record"""
    try:
        data = await read_json_body(request)
        message = data.get("message")
        session_id: Optional[str] = data.get("sessionId")

        if not isinstance(message, str) or not message:
            raise HTTPException(status_code=400, detail=INVALID_MESSAGE)

        if not isinstance(session_id, str) or not session_id:
            session_id = new_session_id()
            logger.info(f"Created new session for chat: {session_id}")

        state = request.app.state
        result = await run_in_threadpool(state.engine.generate_response, message)

        background_tasks.add_task(
            record_conversation,
            state.recorder,
            state.settings.analytics_timeout,
            session_id,
            message,
            result.response,
            result.classification.intent.value,
            result.classification.confidence,
            get_requester(request),
        )

        logger.info(
            f"Chat completed for session {session_id}: intent={result.classification.intent.value} "
            f"provider={result.ai_provider}"
        )
        return ChatResponse(
            answer=result.response,
            confidence=result.classification.confidence,
            intent=result.classification.intent.value,
            session_id=session_id,
            ai_provider=result.ai_provider,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Chatbot error: {e!r}")
        raise HTTPException(status_code=500, detail=SERVER_ERROR)


@router.post("/session/end")
async def end_chat_session(payload: EndSessionInput, request: Request, background_tasks: BackgroundTasks):
    """Signal the end of a chat session to analytics"""
    state = request.app.state
    background_tasks.add_task(
        record_session_end, state.recorder, state.settings.analytics_timeout, payload.session_id
    )
    return {"success": True, "sessionId": payload.session_id}
