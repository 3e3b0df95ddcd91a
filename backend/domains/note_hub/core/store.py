"""
笔记存储层 - 本地 JSON 存储盒

提供笔记的持久化存储和查询功能。
继承 BaseBoxStore，复用存储盒管理和初始化/损坏重建逻辑。

- 单表：以笔记 ID 为键
- ID 由持久化计数器生成，单调递增，删除后也不会复用
- 列表和搜索结果按创建时间降序排列
"""

import asyncio
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from domains.core.async_utils import run_sync
from domains.core.storage import BaseBoxStore

from .models import ID_PREFIX, Note, NoteDraft, NotePatch, parse_timestamp

logger = logging.getLogger(__name__)

COUNTER_META_KEY = "counter"

_ID_PATTERN = re.compile(rf"^{re.escape(ID_PREFIX)}(\d+)$")


def sort_notes(notes: List[Note]) -> List[Note]:
    """
    按创建时间降序排序

    无法解析的时间视为最早；时间相同的笔记保持存储顺序（排序稳定）。
    """
    return sorted(notes, key=lambda n: parse_timestamp(n.created_at), reverse=True)


class NoteStore(BaseBoxStore[Note]):
    """
    笔记存储层

    继承 BaseBoxStore，提供笔记的 CRUD 操作、查询等功能。
    所有写操作串行执行，每次写入整体替换一条记录。
    """

    box_name = "notes"

    def __init__(self, data_dir: Path | str, box_name: Optional[str] = None):
        super().__init__(data_dir=data_dir, box_name=box_name)
        self._counter = 0
        self._write_lock = asyncio.Lock()

    def _row_to_entity(self, key: str, row: Dict[str, Any]) -> Note:
        """将存储记录转换为 Note 对象"""
        return Note.from_dict({**row, 'id': key})

    def _on_initialized(self) -> None:
        """从持久化计数器、记录数和已有 ID 中取最大值，保证 ID 不复用"""
        persisted = self._box.get_meta(COUNTER_META_KEY, 0)
        try:
            persisted = int(persisted)
        except (TypeError, ValueError):
            logger.warning(f"invalid_note_counter: {persisted!r}")
            persisted = 0

        highest = 0
        for key in self._box.keys():
            match = _ID_PATTERN.match(key)
            if match:
                highest = max(highest, int(match.group(1)))

        self._counter = max(persisted, len(self._box), highest)
        logger.debug(f"note_counter_loaded: {self._counter}")

    @property
    def counter(self) -> int:
        return self._counter

    # ==================== 基本 CRUD ====================

    async def insert(self, draft: NoteDraft) -> str:
        """
        添加笔记，返回新笔记的 ID

        分配新 ID 并填充默认值（is_liked=False, tags="", recording_path=""），
        计数器与记录一起持久化。
        """
        self._ensure_initialized()

        async with self._write_lock:
            counter = self._counter + 1
            note_id = f"{ID_PREFIX}{counter}"
            note = draft.to_note(note_id)
            await run_sync(
                self._box.put,
                note_id,
                note.to_dict(),
                {COUNTER_META_KEY: counter},
            )
            self._counter = counter

        logger.debug(f"note_inserted: {note_id}")
        return note_id

    async def get(self, note_id: str) -> Optional[Note]:
        """获取单个笔记"""
        self._ensure_initialized()
        row = self._box.get(note_id)
        if row is None:
            return None
        return self._row_to_entity(note_id, row)

    async def get_all(self, liked_only: bool = False) -> List[Note]:
        """
        获取所有笔记

        Args:
            liked_only: 只返回收藏的笔记

        Returns:
            按创建时间降序排列的笔记列表
        """
        self._ensure_initialized()
        notes = self._all_entities()
        if liked_only:
            notes = [n for n in notes if n.is_liked]
        return sort_notes(notes)

    async def update(self, note_id: str, patch: NotePatch) -> bool:
        """
        更新笔记字段

        只修改 patch 中给出的字段。笔记不存在时为空操作。

        Returns:
            是否有记录被修改
        """
        self._ensure_initialized()

        fields = patch.to_fields()
        if not fields:
            return False

        async with self._write_lock:
            updated = await run_sync(self._box.patch, note_id, fields)

        if updated:
            logger.debug(f"note_updated: {note_id}, fields={sorted(fields)}")
        return updated

    async def set_liked(self, note_id: str, is_liked: bool) -> bool:
        """设置收藏状态，笔记不存在时为空操作"""
        self._ensure_initialized()
        async with self._write_lock:
            return await run_sync(self._box.patch, note_id, {'is_liked': bool(is_liked)})

    async def set_recording_path(self, note_id: str, recording_path: str) -> bool:
        """设置录音文件路径（空字符串表示移除录音），笔记不存在时为空操作"""
        self._ensure_initialized()
        async with self._write_lock:
            return await run_sync(self._box.patch, note_id, {'recording_path': recording_path})

    async def delete(self, note_id: str) -> bool:
        """删除笔记（永久删除，不影响计数器），笔记不存在时为空操作"""
        self._ensure_initialized()
        async with self._write_lock:
            deleted = await run_sync(self._box.delete, note_id)

        if deleted:
            logger.info(f"note_deleted: {note_id}")
        return deleted

    # ==================== 查询操作 ====================

    async def search(self, query: str) -> List[Note]:
        """
        搜索笔记

        在标题、内容、标签中做不区分大小写的子串匹配，任一字段命中即可。
        空关键词匹配全部笔记。排序与 get_all 相同。
        """
        self._ensure_initialized()
        notes = [n for n in self._all_entities() if n.matches(query)]
        return sort_notes(notes)

    async def get_tags(self) -> List[str]:
        """获取所有标签（去重、去空白、排序）"""
        self._ensure_initialized()
        tags = set()
        for note in self._all_entities():
            tags.update(note.tags_list)
        return sorted(tags)
