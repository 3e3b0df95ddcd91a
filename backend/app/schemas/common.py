"""Response envelopes shared by all routes."""

from datetime import datetime
from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

from domains.core import ApplicationError

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """成功响应，data 为具体的资源"""

    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.now)


class ErrorResponse(BaseModel):
    """错误响应，由异常处理器统一生成"""

    success: bool = False
    error: str
    code: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=datetime.now)

    @classmethod
    def from_application_error(cls, exc: ApplicationError) -> "ErrorResponse":
        return cls(error=exc.message, code=exc.code, details=exc.details)
