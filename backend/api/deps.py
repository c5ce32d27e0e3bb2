"""
API 依赖注入 - 认证、数据库连接、失败响应转换
"""

from typing import AsyncIterator
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from backend.config import settings
from backend.db.base import get_db
from backend.db.dao import UserDAO
from backend.models import ApiResponse
from backend.services.errors import error_status

# JWT 认证
security = HTTPBearer()


async def get_db_session() -> AsyncIterator[AsyncSession]:
    """
    获取数据库会话（依赖注入用）

    Yields:
        AsyncSession: 数据库会话
    """
    if not settings.DATABASE_ENABLED:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database is not enabled"
        )

    async for session in get_db():
        yield session


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    session: AsyncSession = Depends(get_db_session)
) -> dict:
    """
    从 JWT Token 中解析当前用户

    token 在过期前始终可以解码，因此还要确认账号仍然存在且未注销

    Returns:
        用户信息字典 {"user_id": "...", "username": "..."}
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid authentication credentials"
    )

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        raise credentials_exception

    user_id = payload.get("sub")
    if not user_id:
        raise credentials_exception

    user = await UserDAO.get_by_id(session, user_id)
    if user is None:
        raise credentials_exception

    return {
        "user_id": user.id,
        "username": user.username
    }


def raise_for_failure(result: ApiResponse) -> ApiResponse:
    """
    失败响应转换为 HTTPException（按错误类别映射状态码），成功时原样返回

    抛出异常会让请求事务回滚
    """
    if not result.success:
        raise HTTPException(status_code=error_status(result), detail=result.error)
    return result
