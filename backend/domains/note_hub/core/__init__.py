"""
核心层：数据模型和存储

- Note / NoteDraft / NotePatch 数据模型
- NoteStore 本地 JSON 存储
"""

from .models import Note, NoteDraft, NotePatch
from .store import NoteStore, sort_notes

__all__ = ['Note', 'NoteDraft', 'NotePatch', 'NoteStore', 'sort_notes']
