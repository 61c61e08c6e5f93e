"""Durable list of resumable past sessions"""
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from sqlalchemy import delete
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, Session, create_engine, select

from ..exception import SessionStoreError
from ..model.saved_session import SavedSession
from ..schema.session import SavedSessionInfo

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Session list backed by the saved_sessions table.

    Append-only during normal operation: a row is written when a session
    ends and never modified. Reads return the latest row per session_id,
    most recent first.
    """

    def __init__(self, database_url: str, max_entries: int = 5, echo: bool = False):
        """
        Args:
            database_url: SQLAlchemy URL (sqlite:///path/to/chatrelay.db)
            max_entries: Maximum number of sessions returned by list_sessions
            echo: Log SQL statements
        """
        self.max_entries = max_entries

        url = make_url(database_url)
        is_sqlite = url.drivername.startswith("sqlite")
        if is_sqlite and url.database and url.database != ":memory:":
            Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)

        self._engine = create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False} if is_sqlite else {},
        )

        logger.debug(f"SessionStore created: url={url.render_as_string(hide_password=True)}")

    def create_tables(self) -> None:
        """Create the saved_sessions table if missing"""
        try:
            SQLModel.metadata.create_all(self._engine, tables=[SavedSession.__table__])
        except SQLAlchemyError as e:
            logger.error(f"Failed to create session list tables: {e}", exc_info=True)
            raise SessionStoreError(f"Failed to create session list tables: {e}") from e

    def append(
        self,
        session_id: str,
        title: str,
        saved_at: Optional[datetime] = None
    ) -> SavedSessionInfo:
        """
        Append a saved session entry.

        Args:
            session_id: Assistant session identifier
            title: Session title
            saved_at: Save timestamp (defaults to now)

        Returns:
            The written entry

        Raises:
            SessionStoreError: If the write fails
        """
        row = SavedSession(
            session_id=session_id,
            title=title,
            saved_at=saved_at or datetime.now(),
        )
        try:
            with Session(self._engine) as db_session:
                db_session.add(row)
                db_session.commit()
                db_session.refresh(row)
                info = SavedSessionInfo.model_validate(row)
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to save session: session_id={session_id}, error={e}",
                exc_info=True
            )
            raise SessionStoreError(f"Failed to save session {session_id}: {e}") from e

        logger.info(
            f"Session saved to list: session_id={session_id}, "
            f"saved_at={info.saved_at.isoformat()}"
        )
        return info

    def list_sessions(self, limit: Optional[int] = None) -> List[SavedSessionInfo]:
        """
        Snapshot of resumable sessions, most recent first.

        Args:
            limit: Maximum number of entries (defaults to max_entries)

        Returns:
            One entry per session_id (its latest save)
        """
        limit = self.max_entries if limit is None else limit

        entries: List[SavedSessionInfo] = []
        seen = set()
        for row in self._select_latest_first():
            if row.session_id in seen:
                continue
            seen.add(row.session_id)
            entries.append(SavedSessionInfo.model_validate(row))
            if len(entries) >= limit:
                break
        return entries

    def get(self, session_id: str) -> Optional[SavedSessionInfo]:
        """Latest entry for session_id, or None"""
        stmt = (
            select(SavedSession)
            .where(SavedSession.session_id == session_id)
            .order_by(SavedSession.saved_at.desc(), SavedSession.id.desc())
            .limit(1)
        )
        try:
            with Session(self._engine) as db_session:
                row = db_session.exec(stmt).first()
                return SavedSessionInfo.model_validate(row) if row else None
        except SQLAlchemyError as e:
            raise SessionStoreError(f"Failed to read session {session_id}: {e}") from e

    def prune(self, keep: Optional[int] = None) -> int:
        """
        Delete rows of sessions beyond the most recent `keep` ones.

        Args:
            keep: Number of distinct sessions to keep (defaults to max_entries)

        Returns:
            Number of rows deleted
        """
        keep = self.max_entries if keep is None else keep
        kept_ids = {entry.session_id for entry in self.list_sessions(limit=keep)}

        try:
            with Session(self._engine) as db_session:
                stmt = delete(SavedSession)
                if kept_ids:
                    stmt = stmt.where(SavedSession.session_id.not_in(kept_ids))
                result = db_session.execute(stmt)
                db_session.commit()
                deleted = result.rowcount or 0
        except SQLAlchemyError as e:
            raise SessionStoreError(f"Failed to prune session list: {e}") from e

        logger.info(f"Session list pruned: kept={len(kept_ids)}, deleted_rows={deleted}")
        return deleted

    def dispose(self) -> None:
        self._engine.dispose()

    def _select_latest_first(self) -> List[SavedSession]:
        stmt = select(SavedSession).order_by(
            SavedSession.saved_at.desc(),
            SavedSession.id.desc()
        )
        try:
            with Session(self._engine) as db_session:
                return list(db_session.exec(stmt).all())
        except SQLAlchemyError as e:
            raise SessionStoreError(f"Failed to read session list: {e}") from e
