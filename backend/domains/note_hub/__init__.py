"""
语音笔记领域模块

Note Hub 存储由录音转写得到的语音笔记，支持：
- 本地持久化：单个 JSON 存储盒，进程重启后数据保留
- ID 单调递增，删除后不复用
- 收藏、标签、关键词搜索
- 按创建时间降序排列
- 生成分享文本
"""

from .core.models import Note, NoteDraft, NotePatch
from .core.store import NoteStore
from .services.note_service import NoteService, format_share_text

__all__ = [
    'Note',
    'NoteDraft',
    'NotePatch',
    'NoteStore',
    'NoteService',
    'format_share_text',
]
