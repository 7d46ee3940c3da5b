import logging
import sqlite3
import threading
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversationLogRecord:
    id: str
    session_id: str
    message: str
    response: str
    intent: str
    confidence: float
    timestamp: datetime
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "sessionId": self.session_id,
            "message": self.message,
            "response": self.response,
            "intent": self.intent,
            "confidence": self.confidence,
            "timestamp": self.timestamp.isoformat(),
            "userAgent": self.user_agent,
            "ipAddress": self.ip_address,
        }


@dataclass
class SessionAggregate:
    id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    message_count: int = 0
    avg_confidence: float = 0.0
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None

    @property
    def duration_minutes(self) -> float:
        if self.end_time is None:
            return 0
        return (self.end_time - self.start_time).total_seconds() / 60

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "startTime": self.start_time.isoformat(),
            "endTime": self.end_time.isoformat() if self.end_time else None,
            "messageCount": self.message_count,
            "avgConfidence": self.avg_confidence,
            "userAgent": self.user_agent,
            "ipAddress": self.ip_address,
            "duration": self.duration_minutes,
        }


class AnalyticsStore(Protocol):
    """Storage used by the analytics service"""

    def append_log(self, record: ConversationLogRecord) -> None: ...

    def get_session(self, session_id: str) -> Optional[SessionAggregate]: ...

    def save_session(self, session: SessionAggregate) -> None: ...

    def list_logs(self, limit: Optional[int] = None, offset: int = 0) -> List[ConversationLogRecord]:
        """Logs newest first"""
        ...

    def list_sessions(self, limit: Optional[int] = None, offset: int = 0) -> List[SessionAggregate]:
        """Sessions in creation order"""
        ...

    def count_logs(self) -> int: ...

    def count_sessions(self) -> int: ...


def _page(items: list, limit: Optional[int], offset: int) -> list:
    offset = max(offset, 0)
    if limit is None:
        return items[offset:]
    return items[offset:offset + max(limit, 0)]


class InMemoryAnalyticsStore:
    """Process-local store, lost on restart"""

    def __init__(self):
        self._logs: List[ConversationLogRecord] = []
        self._sessions: Dict[str, SessionAggregate] = {}
        self._lock = threading.Lock()

    def append_log(self, record: ConversationLogRecord) -> None:
        with self._lock:
            self._logs.append(record)

    def get_session(self, session_id: str) -> Optional[SessionAggregate]:
        with self._lock:
            session = self._sessions.get(session_id)
            return replace(session) if session else None

    def save_session(self, session: SessionAggregate) -> None:
        with self._lock:
            # dict keeps first-insertion order on update
            self._sessions[session.id] = replace(session)

    def list_logs(self, limit: Optional[int] = None, offset: int = 0) -> List[ConversationLogRecord]:
        with self._lock:
            ordered = sorted(self._logs, key=lambda record: record.timestamp, reverse=True)
        return _page(ordered, limit, offset)

    def list_sessions(self, limit: Optional[int] = None, offset: int = 0) -> List[SessionAggregate]:
        with self._lock:
            sessions = [replace(session) for session in self._sessions.values()]
        return _page(sessions, limit, offset)

    def count_logs(self) -> int:
        with self._lock:
            return len(self._logs)

    def count_sessions(self) -> int:
        with self._lock:
            return len(self._sessions)


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class SQLiteAnalyticsStore:
    """Store backed by a SQLite file, one connection per operation"""

    def __init__(self, db_path: str = "chat_history.db"):
        self.db_path = db_path
        self.init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create the analytics tables and indexes"""
        conn = self._connect()
        cursor = conn.cursor()

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS chat_sessions (
                id TEXT PRIMARY KEY,
                start_time TIMESTAMP NOT NULL,
                end_time TIMESTAMP,
                message_count INTEGER NOT NULL DEFAULT 0,
                avg_confidence REAL NOT NULL DEFAULT 0,
                user_agent TEXT,
                ip_address TEXT
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS conversation_logs (
                id TEXT PRIMARY KEY,
                session_id TEXT NOT NULL,
                message TEXT NOT NULL,
                response TEXT NOT NULL,
                intent TEXT NOT NULL,
                confidence REAL NOT NULL,
                timestamp TIMESTAMP NOT NULL,
                user_agent TEXT,
                ip_address TEXT
            )
        ''')

        cursor.execute('''
            CREATE INDEX IF NOT EXISTS idx_logs_timestamp
            ON conversation_logs (timestamp)
        ''')

        conn.commit()
        conn.close()
        logger.info(f"Analytics database initialized at {self.db_path}")

    def append_log(self, record: ConversationLogRecord) -> None:
        conn = self._connect()
        try:
            conn.execute('''
                INSERT INTO conversation_logs
                    (id, session_id, message, response, intent, confidence, timestamp, user_agent, ip_address)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ''', (
                record.id, record.session_id, record.message, record.response, record.intent,
                record.confidence, record.timestamp.isoformat(), record.user_agent, record.ip_address,
            ))
            conn.commit()
        finally:
            conn.close()

    def get_session(self, session_id: str) -> Optional[SessionAggregate]:
        conn = self._connect()
        try:
            row = conn.execute('SELECT * FROM chat_sessions WHERE id = ?', (session_id,)).fetchone()
            return self._session_from_row(row) if row else None
        finally:
            conn.close()

    def save_session(self, session: SessionAggregate) -> None:
        conn = self._connect()
        try:
            conn.execute('''
                INSERT INTO chat_sessions
                    (id, start_time, end_time, message_count, avg_confidence, user_agent, ip_address)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    end_time = excluded.end_time,
                    message_count = excluded.message_count,
                    avg_confidence = excluded.avg_confidence
            ''', (
                session.id, session.start_time.isoformat(),
                session.end_time.isoformat() if session.end_time else None,
                session.message_count, session.avg_confidence, session.user_agent, session.ip_address,
            ))
            conn.commit()
        finally:
            conn.close()

    def list_logs(self, limit: Optional[int] = None, offset: int = 0) -> List[ConversationLogRecord]:
        conn = self._connect()
        try:
            rows = conn.execute(
                'SELECT * FROM conversation_logs ORDER BY timestamp DESC, rowid ASC LIMIT ? OFFSET ?',
                (-1 if limit is None else max(limit, 0), max(offset, 0)),
            ).fetchall()
        finally:
            conn.close()
        return [
            ConversationLogRecord(
                id=row["id"],
                session_id=row["session_id"],
                message=row["message"],
                response=row["response"],
                intent=row["intent"],
                confidence=row["confidence"],
                timestamp=_parse_dt(row["timestamp"]),
                user_agent=row["user_agent"],
                ip_address=row["ip_address"],
            )
            for row in rows
        ]

    def list_sessions(self, limit: Optional[int] = None, offset: int = 0) -> List[SessionAggregate]:
        conn = self._connect()
        try:
            rows = conn.execute(
                'SELECT * FROM chat_sessions ORDER BY rowid ASC LIMIT ? OFFSET ?',
                (-1 if limit is None else max(limit, 0), max(offset, 0)),
            ).fetchall()
        finally:
            conn.close()
        return [self._session_from_row(row) for row in rows]

    def count_logs(self) -> int:
        conn = self._connect()
        try:
            return conn.execute('SELECT COUNT(*) FROM conversation_logs').fetchone()[0]
        finally:
            conn.close()

    def count_sessions(self) -> int:
        conn = self._connect()
        try:
            return conn.execute('SELECT COUNT(*) FROM chat_sessions').fetchone()[0]
        finally:
            conn.close()

    @staticmethod
    def _session_from_row(row: sqlite3.Row) -> SessionAggregate:
        return SessionAggregate(
            id=row["id"],
            start_time=_parse_dt(row["start_time"]),
            end_time=_parse_dt(row["end_time"]),
            message_count=row["message_count"],
            avg_confidence=row["avg_confidence"],
            user_agent=row["user_agent"],
            ip_address=row["ip_address"],
        )


def create_store(backend: str, db_path: str = "chat_history.db") -> AnalyticsStore:
    if backend == "sqlite":
        return SQLiteAnalyticsStore(db_path)
    if backend != "memory":
        logger.warning(f"Unknown analytics backend '{backend}', using in-memory storage")
    return InMemoryAnalyticsStore()
