"""API v1 router - aggregates all route modules."""

from fastapi import APIRouter

from app.routes.v1 import notes

api_router = APIRouter()

api_router.include_router(notes.router, prefix="/notes", tags=["notes"])
