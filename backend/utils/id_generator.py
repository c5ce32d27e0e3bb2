"""
ID 生成器

提供各种实体的唯一 ID 生成功能
"""

import secrets
import ulid


def generate_ulid() -> str:
    """
    生成 ULID（Universally Unique Lexicographically Sortable Identifier）

    特点：
    - 128-bit 兼容性
    - 按时间排序
    - 规范化的字符串表示（26个字符）
    - 单调递增（相同毫秒内）

    Returns:
        ULID 字符串
    """
    return str(ulid.new())


def generate_user_id() -> str:
    """
    生成用户 ID

    格式：user_<ulid>
    示例：user_01ARZ3NDEKTSV4RRFFQ69G5FAV

    Returns:
        用户 ID
    """
    return f"user_{generate_ulid()}"


def generate_story_id() -> str:
    """
    生成故事 ID

    格式：story_<ulid>
    示例：story_01ARZ3NDEKTSV4RRFFQ69G5FAV

    Returns:
        故事 ID
    """
    return f"story_{generate_ulid()}"


def generate_segment_id() -> str:
    """
    生成段落 ID

    格式：seg_<ulid>

    Returns:
        段落 ID
    """
    return f"seg_{generate_ulid()}"


def generate_edit_request_id() -> str:
    """
    生成编辑请求 ID

    格式：edit_<ulid>

    Returns:
        编辑请求 ID
    """
    return f"edit_{generate_ulid()}"


def generate_invitation_id() -> str:
    """
    生成邀请 ID

    格式：inv_<ulid>

    Returns:
        邀请 ID
    """
    return f"inv_{generate_ulid()}"


def generate_join_request_id() -> str:
    """生成加入申请 ID（join_<ulid>）"""
    return f"join_{generate_ulid()}"


def generate_invitation_token() -> str:
    """生成邀请链接令牌（URL 安全）"""
    return secrets.token_urlsafe(32)
