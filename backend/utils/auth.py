"""
认证工具：密码哈希与登录 token 签发

token 的解码和账号校验在 API 依赖 get_current_user 中完成
"""

from datetime import datetime, timedelta
from jose import jwt
from passlib.context import CryptContext

from backend.config.settings import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def issue_user_token(user_id: str, username: str) -> str:
    """
    为登录用户签发 token

    Args:
        user_id: 用户ID，写入 sub
        username: 用户名

    Returns:
        JWT 字符串，JWT_EXPIRE_MINUTES 分钟后过期
    """
    claims = {
        "sub": user_id,
        "username": username,
        "exp": datetime.utcnow() + timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
    }
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
