"""Database models"""
from .base import BaseModel
from .saved_session import SavedSession

__all__ = ["BaseModel", "SavedSession"]
