"""
统一响应模型
"""

from typing import Generic, TypeVar, Optional
from pydantic import BaseModel, Field


T = TypeVar('T')


class ApiResponse(BaseModel, Generic[T]):
    """统一API响应格式"""
    success: bool = Field(True, description="请求是否成功")
    data: Optional[T] = Field(None, description="响应数据")
    message: Optional[str] = Field(None, description="响应消息")
    error: Optional[dict] = Field(None, description="错误详情（code/kind/message 及上下文字段）")

    class Config:
        json_schema_extra = {
            "example": {
                "success": False,
                "message": "It is not your turn",
                "error": {
                    "code": "NOT_YOUR_TURN",
                    "kind": "authorization",
                    "message": "还没轮到你",
                    "current_user_id": "user_01HX...",
                    "current_turn": 4
                }
            }
        }
