"""
用户相关数据模型
"""

from typing import Optional
from pydantic import BaseModel, Field, EmailStr
from enum import Enum


class UserStatus(str, Enum):
    """用户状态"""
    ACTIVE = "active"
    DELETED = "deleted"


class UserCreate(BaseModel):
    """用户注册请求"""
    username: str = Field(..., min_length=3, max_length=30, description="用户名")
    email: EmailStr = Field(..., description="邮箱")
    password: str = Field(..., min_length=6, description="密码")
    first_name: Optional[str] = Field(None, max_length=64, description="名")
    last_name: Optional[str] = Field(None, max_length=64, description="姓")


class UserLogin(BaseModel):
    """用户登录请求"""
    email: EmailStr
    password: str = Field(..., min_length=1)
