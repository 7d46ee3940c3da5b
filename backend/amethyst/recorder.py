import asyncio
import logging
from typing import Optional, Protocol

import httpx
from fastapi.concurrency import run_in_threadpool

from amethyst.analytics import AnalyticsService, RequesterInfo

logger = logging.getLogger(__name__)


class AnalyticsRecorder(Protocol):
    async def log_conversation(
        self,
        session_id: str,
        message: str,
        response: str,
        intent: str,
        confidence: float,
        requester: Optional[RequesterInfo] = None,
    ) -> Optional[str]: ...

    async def end_session(self, session_id: str) -> None: ...


class LocalAnalyticsRecorder:
    """Records straight into the in-process analytics service"""

    def __init__(self, service: AnalyticsService):
        self.service = service

    async def log_conversation(
        self,
        session_id: str,
        message: str,
        response: str,
        intent: str,
        confidence: float,
        requester: Optional[RequesterInfo] = None,
    ) -> Optional[str]:
        return await run_in_threadpool(
            self.service.log_conversation, session_id, message, response, intent, confidence, requester
        )

    async def end_session(self, session_id: str) -> None:
        await run_in_threadpool(self.service.end_session, session_id)


class HttpAnalyticsRecorder:
    """Posts analytics events to a remote /chatbot/analytics endpoint"""

    def __init__(self, url: str, timeout: float = 2.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def _post(self, payload: dict, requester: Optional[RequesterInfo] = None) -> dict:
        headers = {}
        if requester is not None:
            if requester.user_agent:
                headers["user-agent"] = requester.user_agent
            if requester.ip_address:
                headers["x-forwarded-for"] = requester.ip_address
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(self.url, json=payload, headers=headers)
            response.raise_for_status()
            return response.json()

    async def log_conversation(
        self,
        session_id: str,
        message: str,
        response: str,
        intent: str,
        confidence: float,
        requester: Optional[RequesterInfo] = None,
    ) -> Optional[str]:
        data = await self._post(
            {
                "type": "log_conversation",
                "sessionId": session_id,
                "message": message,
                "response": response,
                "intent": intent,
                "confidence": confidence,
            },
            requester,
        )
        return data.get("logId")

    async def end_session(self, session_id: str) -> None:
        await self._post({"type": "end_session", "sessionId": session_id})


async def record_conversation(
    recorder: AnalyticsRecorder,
    timeout: float,
    session_id: str,
    message: str,
    response: str,
    intent: str,
    confidence: float,
    requester: Optional[RequesterInfo] = None,
) -> None:
    """Best-effort conversation logging: bounded by timeout, never raises"""
    try:
        await asyncio.wait_for(
            recorder.log_conversation(session_id, message, response, intent, confidence, requester),
            timeout=timeout,
        )
    except Exception as e:
        logger.error(f"Failed to log analytics: {e!r}")


async def record_session_end(recorder: AnalyticsRecorder, timeout: float, session_id: str) -> None:
    """Best-effort end-of-session signal: bounded by timeout, never raises"""
    try:
        await asyncio.wait_for(recorder.end_session(session_id), timeout=timeout)
    except Exception as e:
        logger.error(f"Failed to end analytics session {session_id}: {e!r}")
