# ============================================================================
# src/medication_identification/core/recorder.py
# ============================================================================
"""
Session / Extraction Recorder

Persists the only two things the pipeline writes:
- scan_sessions: one row per capture attempt, created before any AI call
- extractions: immutable snapshot of a resolved record + risk flags

Linking an extraction to a session is scoped to the owning user: the
update only matches rows with both the session id and the user id.

SQLiteSessionRecorder stores everything in a local SQLite database.
"""

import asyncio
import json
import logging
import sqlite3
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .config import get_session_db_path
from .context import ExtractionRecord, MedicationRecord, ScanSession
from ..utils.exceptions import RecorderError


class SessionRecorder(ABC):
    """Persistence collaborator used by the capture orchestrator."""

    @abstractmethod
    async def create_session(
        self,
        user_id: str,
        barcode: Optional[str],
        language: str,
        region: str,
    ) -> str:
        """Create a scan session and return its id."""
        pass

    @abstractmethod
    async def create_extraction(
        self,
        user_id: str,
        record: MedicationRecord,
        risk_flags: List[str],
        model_version: str = "catalog",
    ) -> str:
        """Store an extraction record and return its id."""
        pass

    @abstractmethod
    async def link_extraction_to_session(
        self,
        session_id: str,
        extraction_id: str,
        user_id: str,
    ) -> None:
        """Attach an extraction to a session owned by user_id."""
        pass


class SQLiteSessionRecorder(SessionRecorder):
    """
    SQLite-backed recorder.

    Each call opens its own connection and runs in the default executor,
    so concurrent capture attempts never share a connection.
    """

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path) if db_path else get_session_db_path()
        self.logger = logging.getLogger(__name__)

        self._init_database()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def _init_database(self):
        """Create schema if not exists"""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = self._connect()
        try:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS scan_sessions (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    barcode_value TEXT,
                    captured_at DATETIME NOT NULL,
                    language TEXT NOT NULL,
                    region TEXT NOT NULL,
                    extraction_id TEXT,
                    FOREIGN KEY (extraction_id) REFERENCES extractions (id)
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS extractions (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    created_at DATETIME NOT NULL,
                    brand_name TEXT NOT NULL,
                    generic_name TEXT,
                    source_kind TEXT NOT NULL,
                    quality_score REAL NOT NULL,
                    risk_flags TEXT,
                    model_version TEXT,
                    record TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_sessions_user
                ON scan_sessions (user_id, captured_at)
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_extractions_user
                ON extractions (user_id, created_at)
            """)

            conn.commit()
        finally:
            conn.close()

        self.logger.info(f"Session database initialized: {self.db_path}")

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, func, *args)
        except sqlite3.Error as e:
            raise RecorderError(f"{func.__name__} failed: {e}") from e

    # ---- writes -----------------------------------------------------------

    def _insert_session(self, session: ScanSession):
        conn = self._connect()
        try:
            conn.execute("""
                INSERT INTO scan_sessions (
                    id, user_id, barcode_value, captured_at, language, region
                ) VALUES (?, ?, ?, ?, ?, ?)
            """, (
                session.id,
                session.user_id,
                session.barcode_value,
                session.captured_at.isoformat(),
                session.language,
                session.region,
            ))
            conn.commit()
        finally:
            conn.close()

    async def create_session(
        self,
        user_id: str,
        barcode: Optional[str],
        language: str,
        region: str,
    ) -> str:
        session = ScanSession(
            id=str(uuid.uuid4()),
            user_id=user_id,
            barcode_value=barcode,
            language=language,
            region=region,
        )
        await self._run(self._insert_session, session)
        self.logger.debug(f"Created scan session {session.id} for user {user_id}")
        return session.id

    def _insert_extraction(self, extraction: ExtractionRecord):
        conn = self._connect()
        try:
            conn.execute("""
                INSERT INTO extractions (
                    id, user_id, created_at, brand_name, generic_name,
                    source_kind, quality_score, risk_flags, model_version, record
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                extraction.id,
                extraction.user_id,
                extraction.created_at.isoformat(),
                extraction.record.brand_name,
                extraction.record.generic_name,
                extraction.record.source_kind.value,
                extraction.quality_score,
                json.dumps(list(extraction.risk_flags)),
                extraction.model_version,
                json.dumps(extraction.record.to_dict()),
            ))
            conn.commit()
        finally:
            conn.close()

    async def create_extraction(
        self,
        user_id: str,
        record: MedicationRecord,
        risk_flags: List[str],
        model_version: str = "catalog",
    ) -> str:
        extraction = ExtractionRecord(
            id=str(uuid.uuid4()),
            user_id=user_id,
            record=record,
            quality_score=record.confidence_score,
            risk_flags=[str(getattr(flag, "value", flag)) for flag in risk_flags],
            model_version=model_version,
            created_at=datetime.now(),
        )
        await self._run(self._insert_extraction, extraction)
        self.logger.debug(f"Stored extraction {extraction.id} ({record.brand_name})")
        return extraction.id

    def _update_session_link(self, session_id: str, extraction_id: str, user_id: str) -> int:
        conn = self._connect()
        try:
            cursor = conn.execute("""
                UPDATE scan_sessions
                SET extraction_id = ?
                WHERE id = ? AND user_id = ?
            """, (extraction_id, session_id, user_id))
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()

    async def link_extraction_to_session(
        self,
        session_id: str,
        extraction_id: str,
        user_id: str,
    ) -> None:
        updated = await self._run(self._update_session_link, session_id, extraction_id, user_id)
        if updated == 0:
            raise RecorderError(
                f"Session {session_id} not found for user {user_id}"
            )

    # ---- reads ------------------------------------------------------------

    def _fetch_session(self, session_id: str, user_id: str) -> Optional[sqlite3.Row]:
        conn = self._connect()
        try:
            return conn.execute("""
                SELECT * FROM scan_sessions WHERE id = ? AND user_id = ?
            """, (session_id, user_id)).fetchone()
        finally:
            conn.close()

    async def get_session(self, session_id: str, user_id: str) -> Optional[ScanSession]:
        row = await self._run(self._fetch_session, session_id, user_id)
        if row is None:
            return None
        return ScanSession(
            id=row['id'],
            user_id=row['user_id'],
            barcode_value=row['barcode_value'],
            captured_at=datetime.fromisoformat(row['captured_at']),
            language=row['language'],
            region=row['region'],
            extraction_id=row['extraction_id'],
        )

    def _fetch_extraction(self, extraction_id: str, user_id: str) -> Optional[sqlite3.Row]:
        conn = self._connect()
        try:
            return conn.execute("""
                SELECT * FROM extractions WHERE id = ? AND user_id = ?
            """, (extraction_id, user_id)).fetchone()
        finally:
            conn.close()

    async def get_extraction(self, extraction_id: str, user_id: str) -> Optional[ExtractionRecord]:
        row = await self._run(self._fetch_extraction, extraction_id, user_id)
        if row is None:
            return None
        return ExtractionRecord(
            id=row['id'],
            user_id=row['user_id'],
            record=MedicationRecord.from_dict(json.loads(row['record'])),
            quality_score=row['quality_score'],
            risk_flags=json.loads(row['risk_flags']) if row['risk_flags'] else [],
            model_version=row['model_version'],
            created_at=datetime.fromisoformat(row['created_at']),
        )

    def _fetch_user_sessions(self, user_id: str, limit: int) -> List[sqlite3.Row]:
        conn = self._connect()
        try:
            return conn.execute("""
                SELECT * FROM scan_sessions
                WHERE user_id = ?
                ORDER BY captured_at DESC
                LIMIT ?
            """, (user_id, limit)).fetchall()
        finally:
            conn.close()

    async def get_user_history(self, user_id: str, limit: int = 50) -> List[dict]:
        """Recent sessions for a user, newest first."""
        rows = await self._run(self._fetch_user_sessions, user_id, limit)
        return [dict(row) for row in rows]
