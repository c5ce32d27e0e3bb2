"""
工具模块
"""

from .auth import issue_user_token, verify_password, get_password_hash
from .id_generator import generate_ulid, generate_user_id, generate_story_id
from .text import count_words, count_characters
from .background import spawn, run_sync, defer_after_commit

__all__ = [
    # 认证工具
    "issue_user_token",
    "verify_password",
    "get_password_hash",

    # ID 生成器
    "generate_ulid",
    "generate_user_id",
    "generate_story_id",

    # 文本统计
    "count_words",
    "count_characters",

    # 后台任务
    "spawn",
    "run_sync",
    "defer_after_commit",
]
