"""
笔记服务层

提供笔记的业务逻辑封装，对应前端的三个使用场景：
- 列表页：搜索 / 只看收藏 / 收藏切换 / 编辑标签 / 删除
- 录音页：保存转写结果为新笔记
- 详情页：编辑、收藏、删除录音、删除笔记、生成分享文本
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any

from domains.core.exceptions import NoteNotFoundError, ValidationError

from ..core.models import (
    NO_TAGS_PLACEHOLDER,
    TITLE_TIMESTAMP_FORMAT,
    Note,
    NoteDraft,
    NotePatch,
)
from ..core.store import NoteStore

logger = logging.getLogger(__name__)


def default_title(now: datetime | None = None) -> str:
    """未填写标题时的默认标题，例如 "Note 2025-12-04 14:30" """
    now = now or datetime.now()
    return f"Note {now.strftime(TITLE_TIMESTAMP_FORMAT)}"


def format_share_text(note: Note) -> str:
    """生成分享文本"""
    return (
        f"Title: {note.display_title}\n"
        f"Date: {note.created_at}\n"
        f"Tags: {note.tags if note.tags else NO_TAGS_PLACEHOLDER}\n"
        f"\n"
        f"Transcript:\n"
        f"{note.content}"
    )


class NoteService:
    """
    笔记服务层

    封装笔记相关的业务逻辑，代理存储层操作。
    存储层对不存在的 ID 静默忽略，服务层负责给出 NoteNotFoundError。
    """

    def __init__(self, store: NoteStore):
        """
        初始化服务

        Args:
            store: 已初始化的笔记存储层实例
        """
        self._store = store

    @property
    def store(self) -> NoteStore:
        return self._store

    # ==================== 查询 ====================

    async def list_notes(self, search: str = "", liked_only: bool = False) -> list[Note]:
        """
        查询笔记列表

        有搜索词时调用 search，并且忽略 liked_only（搜索结果不再按收藏过滤）；
        没有搜索词时调用 get_all(liked_only)。
        """
        if search:
            return await self._store.search(search)
        return await self._store.get_all(liked_only=liked_only)

    async def find_note(self, note_id: str) -> Note | None:
        """获取笔记，不存在时返回 None"""
        return await self._store.get(note_id)

    async def get_note(self, note_id: str) -> Note:
        """获取笔记详情"""
        note = await self._store.get(note_id)
        if note is None:
            raise NoteNotFoundError(note_id)
        return note

    async def get_tags(self) -> list[str]:
        """获取所有标签"""
        return await self._store.get_tags()

    async def get_stats(self) -> dict[str, Any]:
        """获取统计信息"""
        notes = await self._store.get_all()
        tags = await self._store.get_tags()
        return {
            "total": len(notes),
            "liked_count": sum(1 for n in notes if n.is_liked),
            "with_recording": sum(1 for n in notes if n.has_recording),
            "tags_count": len(tags),
            "tags": tags,
        }

    # ==================== 录音页 ====================

    async def create_note(self, draft: NoteDraft) -> Note:
        """
        保存录音转写结果

        Args:
            draft: 录音端生成的草稿

        Returns:
            新建的笔记

        Raises:
            ValidationError: 转写内容为空
        """
        if not draft.content:
            raise ValidationError("转写内容为空，无法保存", field="content")

        if not draft.title:
            draft = replace(draft, title=default_title())

        note_id = await self._store.insert(draft)
        logger.info(f"创建笔记成功: {draft.title} (ID: {note_id})")
        return await self.get_note(note_id)

    # ==================== 详情页 / 列表页 ====================

    async def update_note(self, note_id: str, patch: NotePatch) -> Note:
        """更新标题、内容、标签中给出的字段"""
        await self.get_note(note_id)
        await self._store.update(note_id, patch)
        return await self.get_note(note_id)

    async def update_tags(self, note_id: str, tags: str) -> Note:
        """只更新标签"""
        return await self.update_note(note_id, NotePatch(tags=tags))

    async def set_liked(self, note_id: str, is_liked: bool) -> Note:
        """设置收藏状态"""
        await self.get_note(note_id)
        await self._store.set_liked(note_id, is_liked)
        return await self.get_note(note_id)

    async def toggle_like(self, note_id: str) -> Note:
        """切换收藏状态"""
        note = await self.get_note(note_id)
        return await self.set_liked(note_id, not note.is_liked)

    async def delete_recording(self, note_id: str) -> Note:
        """移除录音文件引用，笔记本身保留"""
        note = await self.get_note(note_id)
        if not note.has_recording:
            return note
        await self._store.set_recording_path(note_id, "")
        logger.info(f"删除录音引用: {note_id}")
        return await self.get_note(note_id)

    async def delete_note(self, note_id: str) -> None:
        """删除笔记（不可撤销）"""
        await self.get_note(note_id)
        await self._store.delete(note_id)

    async def share_text(self, note_id: str) -> str:
        """生成分享文本"""
        note = await self.get_note(note_id)
        return format_share_text(note)
