"""
统一异常体系

领域层只抛出 ApplicationError 的子类，API 层按 category 映射 HTTP 状态码:
- VALIDATION -> 400（例如保存空的转写内容）
- NOT_FOUND -> 404（笔记不存在）
- INTERNAL -> 500（存储文件写入失败、存储层未初始化）

注意：存储层对不存在的笔记 ID 是静默的空操作，NoteNotFoundError 由服务层抛出。
"""

from enum import Enum
from typing import Any, Dict, Optional, List
from dataclasses import dataclass


class ErrorCategory(str, Enum):
    """错误分类"""
    VALIDATION = "validation"      # 参数验证错误
    NOT_FOUND = "not_found"        # 资源不存在
    INTERNAL = "internal"          # 内部错误


@dataclass
class ApplicationError(Exception):
    """
    应用层异常基类

    所有业务相关的异常都应继承此类。
    提供统一的错误结构，支持转换为 HTTP 响应。

    使用示例:
        raise NotFoundError("笔记", "note_3")
        raise ValidationError("转写内容为空", field="content")
        raise StorageError("notes", "写入失败", cause=exc)
    """
    code: str                                    # 错误码 (如 "NOT_FOUND", "VALIDATION_ERROR")
    message: str                                 # 用户可读的错误信息
    category: ErrorCategory = ErrorCategory.INTERNAL
    details: Optional[Dict[str, Any]] = None    # 附加详情
    cause: Optional[Exception] = None           # 原始异常

    def __post_init__(self):
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    @property
    def http_status_code(self) -> int:
        """映射到 HTTP 状态码"""
        mapping = {
            ErrorCategory.VALIDATION: 400,
            ErrorCategory.NOT_FOUND: 404,
            ErrorCategory.INTERNAL: 500,
        }
        return mapping.get(self.category, 500)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式（用于 API 响应）"""
        result = {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
        }
        if self.details:
            result["details"] = self.details
        return result


# ==================== 常用业务异常 ====================

class NotFoundError(ApplicationError):
    """资源不存在"""
    def __init__(
        self,
        resource_type: str,
        resource_id: Any,
        details: Optional[Dict] = None
    ):
        super().__init__(
            code="NOT_FOUND",
            message=f"{resource_type}不存在: {resource_id}",
            category=ErrorCategory.NOT_FOUND,
            details=details or {"resource_type": resource_type, "resource_id": str(resource_id)}
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class ValidationError(ApplicationError):
    """参数验证错误"""
    def __init__(
        self,
        message: str,
        errors: Optional[List[Dict[str, Any]]] = None,
        field: Optional[str] = None
    ):
        details = {}
        if errors:
            details["validation_errors"] = errors
        if field:
            details["field"] = field

        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            category=ErrorCategory.VALIDATION,
            details=details or None
        )
        self.errors = errors
        self.field = field


# ==================== 存储相关异常 ====================

class StorageError(ApplicationError):
    """存储读写错误"""
    def __init__(
        self,
        box_name: str,
        message: str,
        cause: Optional[Exception] = None,
        code: str = "STORAGE_ERROR",
    ):
        super().__init__(
            code=code,
            message=f"存储 {box_name}: {message}",
            category=ErrorCategory.INTERNAL,
            details={"box": box_name},
            cause=cause
        )
        self.box_name = box_name


class StorageCorruptedError(StorageError):
    """存储文件损坏或不可读"""
    def __init__(self, box_name: str, message: str, cause: Optional[Exception] = None):
        super().__init__(box_name, message, cause=cause, code="STORAGE_CORRUPTED")


class StoreNotInitializedError(ApplicationError):
    """存储层尚未初始化"""
    def __init__(self, store_name: str):
        super().__init__(
            code="STORE_NOT_INITIALIZED",
            message=f"{store_name} 尚未初始化，请先调用 initialize()",
            category=ErrorCategory.INTERNAL,
            details={"store": store_name}
        )


# ==================== 笔记相关异常 ====================

class NoteNotFoundError(NotFoundError):
    """笔记不存在"""
    def __init__(self, note_id: str):
        super().__init__("笔记", note_id)
        self.note_id = note_id


# ==================== 导出 ====================

__all__ = [
    # 基类
    "ErrorCategory",
    "ApplicationError",
    # 通用异常
    "NotFoundError",
    "ValidationError",
    # 存储异常
    "StorageError",
    "StorageCorruptedError",
    "StoreNotInitializedError",
    # 笔记异常
    "NoteNotFoundError",
]
