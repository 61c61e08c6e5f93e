"""Saved session model for the resumable session list"""

from datetime import datetime
from sqlmodel import Field
from .base import BaseModel


class SavedSession(BaseModel, table=True):
    """
    SavedSession model - one resumable past session.

    Rows are appended when a session ends and never updated afterwards.
    The same session_id may appear several times (a resumed session that
    ended again); readers keep the latest row per session_id.
    """

    __tablename__ = "saved_sessions"

    session_id: str = Field(
        index=True,
        description="Assistant session identifier, passed back on resume"
    )
    saved_at: datetime = Field(
        default_factory=datetime.now,
        index=True,
        description="When the session ended"
    )
    title: str = Field(
        default="",
        description="Session title (first prompt, truncated)"
    )
