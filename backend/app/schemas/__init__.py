"""Pydantic schemas for API requests and responses."""

from app.schemas.common import ApiResponse, ErrorResponse
from app.schemas.note import Note, NoteCreate, NoteUpdate, NoteStats

__all__ = [
    "ApiResponse",
    "ErrorResponse",
    "Note",
    "NoteCreate",
    "NoteUpdate",
    "NoteStats",
]
