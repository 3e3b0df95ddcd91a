"""Note API routes.

提供语音笔记的 CRUD 接口，对应前端的三个场景：
- 列表页：搜索 / 只看收藏 / 编辑标签 / 收藏切换 / 删除
- 录音页：保存转写结果
- 详情页：编辑 / 收藏 / 删除录音 / 分享 / 删除
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.schemas.common import ApiResponse, ErrorResponse
from app.schemas.note import (
    LikeUpdate,
    Note,
    NoteCreate,
    NoteShare,
    NoteStats,
    NoteUpdate,
    TagsUpdate,
)
from app.core.deps import get_note_or_404, get_note_service
from domains.note_hub import NoteDraft, NotePatch, NoteService
from domains.note_hub import Note as NoteEntity

logger = logging.getLogger(__name__)

router = APIRouter(responses={404: {"model": ErrorResponse}})


def _to_schema(note: NoteEntity) -> Note:
    return Note.model_validate(note, from_attributes=True)


@router.get("/", response_model=ApiResponse[List[Note]])
async def list_notes(
    search: Optional[str] = Query(None, description="搜索关键词（标题/内容/标签）"),
    liked_only: bool = Query(False, description="只看收藏（有搜索词时忽略）"),
    service: NoteService = Depends(get_note_service),
):
    """
    获取笔记列表

    有搜索词时返回搜索结果，此时不按收藏过滤。
    """
    notes = await service.list_notes(search=search or "", liked_only=liked_only)
    return ApiResponse(data=[_to_schema(n) for n in notes])


@router.get("/stats", response_model=ApiResponse[NoteStats])
async def get_stats(service: NoteService = Depends(get_note_service)):
    """获取笔记统计信息"""
    stats = await service.get_stats()
    return ApiResponse(data=NoteStats(**stats))


@router.get("/tags", response_model=ApiResponse[List[str]])
async def get_tags(service: NoteService = Depends(get_note_service)):
    """获取所有标签列表"""
    tags = await service.get_tags()
    return ApiResponse(data=tags)


@router.post("/", response_model=ApiResponse[Note], status_code=201)
async def create_note(
    request: NoteCreate,
    service: NoteService = Depends(get_note_service),
):
    """保存录音转写结果为新笔记"""
    fields = request.model_dump(exclude_none=True)
    if not fields.get("created_at"):
        fields.pop("created_at", None)
    draft = NoteDraft(**fields)

    note = await service.create_note(draft)
    return ApiResponse(data=_to_schema(note), message="创建成功")


@router.get("/{note_id}", response_model=ApiResponse[Note])
async def get_note(note: NoteEntity = Depends(get_note_or_404)):
    """获取笔记详情"""
    return ApiResponse(data=_to_schema(note))


@router.patch("/{note_id}", response_model=ApiResponse[Note])
async def update_note(
    update: NoteUpdate,
    note: NoteEntity = Depends(get_note_or_404),
    service: NoteService = Depends(get_note_service),
):
    """更新标题、内容、标签"""
    update_fields = update.model_dump(exclude_unset=True, exclude_none=True)
    patch = NotePatch(**update_fields)

    updated = await service.update_note(note.id, patch)
    return ApiResponse(data=_to_schema(updated), message="更新成功")


@router.put("/{note_id}/tags", response_model=ApiResponse[Note])
async def update_tags(
    request: TagsUpdate,
    note: NoteEntity = Depends(get_note_or_404),
    service: NoteService = Depends(get_note_service),
):
    """编辑标签"""
    updated = await service.update_tags(note.id, request.tags)
    return ApiResponse(data=_to_schema(updated), message="标签已更新")


@router.post("/{note_id}/like", response_model=ApiResponse[Note])
async def set_liked(
    request: LikeUpdate,
    note: NoteEntity = Depends(get_note_or_404),
    service: NoteService = Depends(get_note_service),
):
    """设置收藏状态"""
    updated = await service.set_liked(note.id, request.is_liked)
    message = "已收藏" if updated.is_liked else "已取消收藏"
    return ApiResponse(data=_to_schema(updated), message=message)


@router.post("/{note_id}/toggle-like", response_model=ApiResponse[Note])
async def toggle_like(
    note: NoteEntity = Depends(get_note_or_404),
    service: NoteService = Depends(get_note_service),
):
    """切换收藏状态"""
    updated = await service.toggle_like(note.id)
    message = "已收藏" if updated.is_liked else "已取消收藏"
    return ApiResponse(data=_to_schema(updated), message=message)


@router.delete("/{note_id}/recording", response_model=ApiResponse[Note])
async def delete_recording(
    note: NoteEntity = Depends(get_note_or_404),
    service: NoteService = Depends(get_note_service),
):
    """
    删除录音

    只移除录音文件引用，笔记保留。
    """
    updated = await service.delete_recording(note.id)
    return ApiResponse(data=_to_schema(updated), message="录音已删除")


@router.get("/{note_id}/share", response_model=ApiResponse[NoteShare])
async def share_note(
    note: NoteEntity = Depends(get_note_or_404),
    service: NoteService = Depends(get_note_service),
):
    """生成分享文本"""
    text = await service.share_text(note.id)
    return ApiResponse(data=NoteShare(id=note.id, text=text))


@router.delete("/{note_id}", response_model=ApiResponse[None])
async def delete_note(
    note: NoteEntity = Depends(get_note_or_404),
    service: NoteService = Depends(get_note_service),
):
    """删除笔记（不可撤销）"""
    await service.delete_note(note.id)
    logger.info(f"笔记已删除: {note.id}")
    return ApiResponse(message="删除成功")
