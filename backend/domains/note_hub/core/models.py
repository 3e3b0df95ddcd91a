"""
语音笔记数据模型定义

Note Hub 存储由录音转写得到的语音笔记：
- 标题、转写内容、创建时间
- 标签（逗号分隔的字符串）
- 收藏（is_liked）
- 关联的录音文件路径（外部资源，不做校验）

NoteDraft 用于新建笔记，NotePatch 用于局部更新。
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

# 创建时间的固定格式（字典序即时间序）
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
# 默认标题使用的时间格式
TITLE_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"

ID_PREFIX = "note_"

UNTITLED_PLACEHOLDER = "Untitled Note"
NO_TAGS_PLACEHOLDER = "No tags"


def now_timestamp() -> str:
    """当前时间，固定格式"""
    return datetime.now().strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: Any) -> datetime:
    """
    解析创建时间

    支持 "YYYY-MM-DD HH:MM:SS"、"YYYY-MM-DD" 以及 ISO 8601 格式。
    无法解析时返回 datetime.min（排序时视为最早），不抛出异常。
    """
    if not isinstance(value, str) or not value.strip():
        return datetime.min
    try:
        return _to_naive_utc(datetime.fromisoformat(value.strip()))
    except (ValueError, OverflowError):
        # 带时区且换算到 UTC 后超出 datetime 范围的值同样视为无法解析
        return datetime.min


def _to_naive_utc(parsed: datetime) -> datetime:
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def normalize_timestamp(value: str) -> str:
    """
    将外部传入的创建时间规范为 YYYY-MM-DD HH:MM:SS

    带时区的时间换算为 UTC。

    Raises:
        ValueError: 无法解析，或换算后超出范围
    """
    try:
        parsed = _to_naive_utc(datetime.fromisoformat(value.strip()))
    except (ValueError, OverflowError) as e:
        raise ValueError(f"无效的创建时间: {value!r}") from e
    return parsed.isoformat(sep=" ", timespec="seconds")


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


@dataclass
class Note:
    """
    语音笔记数据类

    Attributes:
        id: 笔记 ID（由存储层分配，格式 note_<n>，不可变）
        title: 标题，可以为空（展示时使用占位符）
        content: 转写内容
        created_at: 创建时间（YYYY-MM-DD HH:MM:SS，创建后不再修改）
        tags: 标签（逗号分隔的字符串，存储层不做规范化）
        is_liked: 是否收藏
        recording_path: 录音文件路径，空字符串表示没有录音
    """
    id: str
    title: str = ""
    content: str = ""
    created_at: str = ""
    tags: str = ""
    is_liked: bool = False
    recording_path: str = ""

    def to_dict(self) -> dict[str, Any]:
        """转换为字典"""
        return {
            'id': self.id,
            'title': self.title,
            'content': self.content,
            'created_at': self.created_at,
            'tags': self.tags,
            'is_liked': self.is_liked,
            'recording_path': self.recording_path,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'Note':
        """从字典创建笔记实例，缺失字段使用默认值，未知字段忽略"""
        return cls(
            id=_as_str(data.get('id')),
            title=_as_str(data.get('title')),
            content=_as_str(data.get('content')),
            created_at=_as_str(data.get('created_at')),
            tags=_as_str(data.get('tags')),
            is_liked=_as_bool(data.get('is_liked', False)),
            recording_path=_as_str(data.get('recording_path')),
        )

    @property
    def display_title(self) -> str:
        """展示用标题"""
        return self.title if self.title else UNTITLED_PLACEHOLDER

    @property
    def tags_list(self) -> list[str]:
        """获取标签列表（仅在展示时去除空白）"""
        if not self.tags:
            return []
        return [t.strip() for t in self.tags.split(',') if t.strip()]

    @property
    def has_recording(self) -> bool:
        return bool(self.recording_path)

    @property
    def created_at_dt(self) -> datetime:
        return parse_timestamp(self.created_at)

    def matches(self, query: str) -> bool:
        """标题、内容、标签任一包含关键词（不区分大小写）"""
        needle = query.lower()
        return (
            needle in self.title.lower()
            or needle in self.content.lower()
            or needle in self.tags.lower()
        )


@dataclass
class NoteDraft:
    """
    新建笔记的输入

    由录音端生成（标题、转写内容、时间、标签），
    可选字段为 None 时由存储层填充默认值。
    """
    title: str = ""
    content: str = ""
    created_at: str = field(default_factory=now_timestamp)
    tags: str | None = None
    is_liked: bool | None = None
    recording_path: str | None = None

    def to_note(self, note_id: str) -> Note:
        """分配 ID 并填充默认值"""
        return Note(
            id=note_id,
            title=self.title or "",
            content=self.content or "",
            created_at=self.created_at or now_timestamp(),
            tags=self.tags if self.tags is not None else "",
            is_liked=self.is_liked if self.is_liked is not None else False,
            recording_path=self.recording_path if self.recording_path is not None else "",
        )


@dataclass
class NotePatch:
    """
    局部更新

    None 表示不修改该字段；空字符串是有效值（例如清空标签）。
    """
    title: str | None = None
    content: str | None = None
    tags: str | None = None

    def to_fields(self) -> dict[str, str]:
        """需要更新的字段"""
        fields = {
            'title': self.title,
            'content': self.content,
            'tags': self.tags,
        }
        return {k: v for k, v in fields.items() if v is not None}

    @property
    def is_empty(self) -> bool:
        return not self.to_fields()
