"""Dependency injection for FastAPI routes.

使用 ServiceRegistry 统一管理服务生命周期，替代分散的单例。
"""

from fastapi import Depends, HTTPException, Path

from domains.core import get_service_registry
from domains.note_hub import Note, NoteService


# ============================================================================
# Service getters - 使用 ServiceRegistry
# ============================================================================

def get_note_service() -> NoteService:
    """Get NoteService instance from the registry."""
    registry = get_service_registry()
    return registry.get("note_service")


# ============================================================================
# Resource existence validators
# ============================================================================

async def get_note_or_404(
    note_id: str = Path(..., description="笔记 ID"),
    service: NoteService = Depends(get_note_service),
) -> Note:
    """验证笔记存在并返回，不存在则抛出 404。"""
    note = await service.find_note(note_id)
    if note is None:
        raise HTTPException(status_code=404, detail=f"笔记不存在: {note_id}")
    return note
