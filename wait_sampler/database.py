"""
Tick history - SQLite record of every sampling attempt
"""

import sqlite3
from datetime import datetime, timedelta
from typing import Optional, List
from pathlib import Path
from dataclasses import dataclass
import threading


@dataclass
class TickRecord:
    """Represents one sampling attempt"""
    tick_time: datetime
    status: str  # 'success', 'failed'
    duration: float  # seconds
    error_kind: Optional[str] = None
    error_message: Optional[str] = None
    patient_count: Optional[int] = None
    average_wait_minutes: Optional[float] = None
    longest_wait_minutes: Optional[float] = None


class DatabaseManager:
    """Manages SQLite database for tick history"""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        # Ensure database directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._init_database()

    def _init_database(self):
        """Initialize database tables"""
        with self._lock:
            conn = self._get_connection()
            try:
                conn.executescript("""
                    CREATE TABLE IF NOT EXISTS ticks (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        tick_time TIMESTAMP NOT NULL,
                        status TEXT NOT NULL,
                        duration REAL NOT NULL,
                        error_kind TEXT,
                        error_message TEXT,
                        patient_count INTEGER,
                        average_wait_minutes REAL,
                        longest_wait_minutes REAL,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    );

                    CREATE INDEX IF NOT EXISTS idx_ticks_time
                        ON ticks(tick_time);
                    CREATE INDEX IF NOT EXISTS idx_ticks_status
                        ON ticks(status);
                """)
                conn.commit()
            finally:
                conn.close()

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection with proper configuration"""
        conn = sqlite3.connect(
            self.db_path,
            timeout=30.0,
            check_same_thread=False
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        return conn

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> TickRecord:
        return TickRecord(
            tick_time=datetime.fromisoformat(row['tick_time']),
            status=row['status'],
            duration=row['duration'],
            error_kind=row['error_kind'],
            error_message=row['error_message'],
            patient_count=row['patient_count'],
            average_wait_minutes=row['average_wait_minutes'],
            longest_wait_minutes=row['longest_wait_minutes'],
        )

    def record_tick(self, record: TickRecord):
        """Record a sampling attempt"""
        with self._lock:
            conn = self._get_connection()
            try:
                conn.execute("""
                    INSERT INTO ticks
                    (tick_time, status, duration, error_kind, error_message,
                     patient_count, average_wait_minutes, longest_wait_minutes)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    record.tick_time.isoformat(),
                    record.status,
                    record.duration,
                    record.error_kind,
                    record.error_message,
                    record.patient_count,
                    record.average_wait_minutes,
                    record.longest_wait_minutes
                ))
                conn.commit()
            finally:
                conn.close()

    def get_last_tick(self) -> Optional[TickRecord]:
        """Get the most recent tick"""
        ticks = self.get_recent_ticks(limit=1)
        return ticks[0] if ticks else None

    def get_recent_ticks(self, limit: int = 10) -> List[TickRecord]:
        """Get the most recent ticks, newest first"""
        with self._lock:
            conn = self._get_connection()
            try:
                cursor = conn.execute("""
                    SELECT * FROM ticks
                    ORDER BY id DESC
                    LIMIT ?
                """, (limit,))
                return [self._row_to_record(row) for row in cursor.fetchall()]
            finally:
                conn.close()

    def count_ticks(self, status: Optional[str] = None) -> int:
        """Count recorded ticks, optionally filtered by status"""
        with self._lock:
            conn = self._get_connection()
            try:
                if status is None:
                    cursor = conn.execute("SELECT COUNT(*) FROM ticks")
                else:
                    cursor = conn.execute("SELECT COUNT(*) FROM ticks WHERE status = ?", (status,))
                return cursor.fetchone()[0]
            finally:
                conn.close()

    def cleanup_old_ticks(self, days_to_keep: int = 90, now: Optional[datetime] = None) -> int:
        """Delete tick records older than days_to_keep; returns rows removed"""
        now = now or datetime.now().astimezone()
        cutoff = now - timedelta(days=days_to_keep)
        with self._lock:
            conn = self._get_connection()
            try:
                # Compare as datetimes so mixed UTC offsets order correctly
                cursor = conn.execute("""
                    DELETE FROM ticks
                    WHERE datetime(tick_time) < datetime(?)
                """, (cutoff.isoformat(),))
                conn.commit()
                return cursor.rowcount
            finally:
                conn.close()
