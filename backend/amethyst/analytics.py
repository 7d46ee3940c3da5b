import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from amethyst.analytics_store import AnalyticsStore, ConversationLogRecord, SessionAggregate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequesterInfo:
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_id() -> str:
    return uuid.uuid4().hex


class AnalyticsService:
    """Conversation logging and per-session aggregates on top of an AnalyticsStore"""

    def __init__(self, store: AnalyticsStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock
        # serialises the read-modify-write of session aggregates
        self._session_lock = threading.Lock()

    def log_conversation(
        self,
        session_id: str,
        message: str,
        response: str,
        intent: str,
        confidence: float,
        requester: Optional[RequesterInfo] = None,
    ) -> str:
        requester = requester or RequesterInfo()
        now = self.clock()
        record = ConversationLogRecord(
            id=generate_id(),
            session_id=session_id,
            message=message,
            response=response,
            intent=intent,
            confidence=confidence,
            timestamp=now,
            user_agent=requester.user_agent,
            ip_address=requester.ip_address,
        )
        self.store.append_log(record)

        with self._session_lock:
            session = self.store.get_session(session_id)
            if session is None:
                session = SessionAggregate(
                    id=session_id,
                    start_time=now,
                    user_agent=requester.user_agent,
                    ip_address=requester.ip_address,
                )
                logger.info(f"Started analytics session {session_id}")
            session.message_count += 1
            session.avg_confidence = (
                session.avg_confidence * (session.message_count - 1) + confidence
            ) / session.message_count
            session.end_time = now
            self.store.save_session(session)

        return record.id

    def end_session(self, session_id: str) -> None:
        """Stamp the session end time; unknown sessions are ignored"""
        with self._session_lock:
            session = self.store.get_session(session_id)
            if session is None:
                logger.info(f"end_session for unknown session {session_id}")
                return
            session.end_time = self.clock()
            self.store.save_session(session)

    def list_sessions(self, limit: int = 100, offset: int = 0) -> Dict[str, Any]:
        sessions = self.store.list_sessions(limit, offset)
        total = self.store.count_sessions()
        return {
            "sessions": [session.to_dict() for session in sessions],
            "total": total,
            "hasMore": offset + limit < total,
        }

    def list_logs(self, limit: int = 100, offset: int = 0) -> Dict[str, Any]:
        logs = self.store.list_logs(limit, offset)
        total = self.store.count_logs()
        return {
            "logs": [record.to_dict() for record in logs],
            "total": total,
            "hasMore": offset + limit < total,
        }

    def summary(self) -> Dict[str, Any]:
        """Totals, intent distribution, last 7 days and most common questions"""
        logs = self.store.list_logs()
        sessions = self.store.list_sessions()
        today = self.clock().astimezone(timezone.utc).date()

        intent_counts: Dict[str, int] = {}
        question_confidences: Dict[str, List[float]] = {}
        # oldest first so ties keep first-seen order
        for log in reversed(logs):
            intent_counts[log.intent] = intent_counts.get(log.intent, 0) + 1
            question_confidences.setdefault(log.message.lower(), []).append(log.confidence)

        top_intents = sorted(
            ({"intent": intent, "count": count} for intent, count in intent_counts.items()),
            key=lambda item: item["count"],
            reverse=True,
        )[:10]

        daily_stats = []
        for days_ago in range(6, -1, -1):
            day = today - timedelta(days=days_ago)
            daily_stats.append({
                "date": day.isoformat(),
                "messages": sum(1 for log in logs if log.timestamp.astimezone(timezone.utc).date() == day),
                "sessions": sum(
                    1 for session in sessions if session.start_time.astimezone(timezone.utc).date() == day
                ),
            })

        common_questions = sorted(
            (
                {
                    "question": question,
                    "count": len(confidences),
                    "avgConfidence": sum(confidences) / len(confidences),
                }
                for question, confidences in question_confidences.items()
            ),
            key=lambda item: item["count"],
            reverse=True,
        )[:10]

        return {
            "totalMessages": len(logs),
            "totalSessions": len(sessions),
            "avgConfidence": sum(log.confidence for log in logs) / len(logs) if logs else 0,
            "topIntents": top_intents,
            "dailyStats": daily_stats,
            "commonQuestions": common_questions,
        }
