"""笔记服务层"""

from .note_service import NoteService, default_title, format_share_text

__all__ = ['NoteService', 'default_title', 'format_share_text']
