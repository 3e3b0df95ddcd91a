"""Note-related Pydantic schemas."""

from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from domains.note_hub.core.models import normalize_timestamp


class NoteBase(BaseModel):
    """Base note fields."""

    title: str = Field("", description="笔记标题，为空时自动生成")
    content: str = Field("", description="转写内容")
    tags: str = Field("", description="标签（逗号分隔）")


class NoteCreate(NoteBase):
    """Note create request (录音页保存)."""

    created_at: Optional[str] = Field(None, description="创建时间 YYYY-MM-DD HH:MM:SS，默认当前时间")
    is_liked: bool = Field(False, description="是否收藏")
    recording_path: str = Field("", description="录音文件路径")

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, value: Optional[str]) -> Optional[str]:
        """统一为 YYYY-MM-DD HH:MM:SS，无法解析时返回 422"""
        if value is None or not value.strip():
            return None
        return normalize_timestamp(value)


class NoteUpdate(BaseModel):
    """Note update request. 未提供的字段保持不变。"""

    title: Optional[str] = None
    content: Optional[str] = None
    tags: Optional[str] = None


class TagsUpdate(BaseModel):
    """Tags update request."""

    tags: str = Field(..., description="标签（逗号分隔）")


class LikeUpdate(BaseModel):
    """Like update request."""

    is_liked: bool = Field(..., description="是否收藏")


class Note(NoteBase):
    """Complete note model for API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="笔记 ID")
    created_at: str = Field("", description="创建时间")
    is_liked: bool = Field(False, description="是否收藏")
    recording_path: str = Field("", description="录音文件路径")
    display_title: str = Field("", description="展示用标题")
    tags_list: List[str] = Field(default_factory=list, description="标签列表")


class NoteShare(BaseModel):
    """Share text response."""

    id: str
    text: str


class NoteStats(BaseModel):
    """Note statistics."""

    total: int = Field(..., description="笔记总数")
    liked_count: int = Field(0, description="收藏笔记数")
    with_recording: int = Field(0, description="带录音的笔记数")
    tags_count: int = Field(0, description="标签数量")
    tags: List[str] = Field(default_factory=list, description="所有标签")
