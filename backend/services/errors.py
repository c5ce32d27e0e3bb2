"""
协作引擎错误定义

预期失败以 ApiResponse(success=False) 返回给调用方，包含错误码、错误类别和上下文字段；
只有检测到数据不变量被破坏时才抛出 InvariantViolation（由全局异常处理转成 500）。
"""

from enum import Enum

from fastapi import status

from backend.models import ApiResponse


class ErrorKind(str, Enum):
    """错误类别"""
    AUTHENTICATION = "authentication"      # 登录凭证无效
    AUTHORIZATION = "authorization"        # 调用者无权执行该操作
    STATE_CONFLICT = "state_conflict"      # 目标状态不允许该操作
    VALIDATION = "validation"              # 内容/参数不合法
    NOT_FOUND = "not_found"                # 目标不存在
    EXPIRED = "expired"                    # 邀请已过期


class ErrorCode(str, Enum):
    """错误码"""
    # 不存在
    STORY_NOT_FOUND = "STORY_NOT_FOUND"
    SEGMENT_NOT_FOUND = "SEGMENT_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    INVITATION_NOT_FOUND = "INVITATION_NOT_FOUND"
    EDIT_REQUEST_NOT_FOUND = "EDIT_REQUEST_NOT_FOUND"
    JOIN_REQUEST_NOT_FOUND = "JOIN_REQUEST_NOT_FOUND"

    # 权限
    NOT_A_PARTICIPANT = "NOT_A_PARTICIPANT"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    FORBIDDEN = "FORBIDDEN"
    NOT_YOURS = "NOT_YOURS"

    # 状态冲突
    ALREADY_PARTICIPANT = "ALREADY_PARTICIPANT"
    ALREADY_INVITED = "ALREADY_INVITED"
    ALREADY_REQUESTED = "ALREADY_REQUESTED"
    ALREADY_RESOLVED = "ALREADY_RESOLVED"
    ALREADY_COMPLETE = "ALREADY_COMPLETE"
    TURN_CONFLICT = "TURN_CONFLICT"
    STORY_CLOSED = "STORY_CLOSED"
    STORY_DELETED = "STORY_DELETED"

    # 校验
    WORD_LIMIT_EXCEEDED = "WORD_LIMIT_EXCEEDED"
    CHARACTER_LIMIT_EXCEEDED = "CHARACTER_LIMIT_EXCEEDED"
    INVALID_PAYLOAD = "INVALID_PAYLOAD"

    # 过期
    INVITATION_EXPIRED = "INVITATION_EXPIRED"

    # 账号
    EMAIL_EXISTS = "EMAIL_EXISTS"
    USERNAME_EXISTS = "USERNAME_EXISTS"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"


# 错误码 -> (类别, 默认提示)
_ERROR_TABLE = {
    ErrorCode.STORY_NOT_FOUND: (ErrorKind.NOT_FOUND, "故事不存在"),
    ErrorCode.SEGMENT_NOT_FOUND: (ErrorKind.NOT_FOUND, "段落不存在"),
    ErrorCode.USER_NOT_FOUND: (ErrorKind.NOT_FOUND, "用户不存在"),
    ErrorCode.INVITATION_NOT_FOUND: (ErrorKind.NOT_FOUND, "邀请不存在"),
    ErrorCode.EDIT_REQUEST_NOT_FOUND: (ErrorKind.NOT_FOUND, "编辑请求不存在"),
    ErrorCode.JOIN_REQUEST_NOT_FOUND: (ErrorKind.NOT_FOUND, "加入申请不存在"),
    ErrorCode.NOT_A_PARTICIPANT: (ErrorKind.AUTHORIZATION, "你不是该故事的参与者"),
    ErrorCode.NOT_YOUR_TURN: (ErrorKind.AUTHORIZATION, "还没轮到你"),
    ErrorCode.FORBIDDEN: (ErrorKind.AUTHORIZATION, "无权执行该操作"),
    ErrorCode.NOT_YOURS: (ErrorKind.AUTHORIZATION, "这不是发给你的邀请"),
    ErrorCode.ALREADY_PARTICIPANT: (ErrorKind.STATE_CONFLICT, "已经是参与者"),
    ErrorCode.ALREADY_INVITED: (ErrorKind.STATE_CONFLICT, "已有待处理的邀请"),
    ErrorCode.ALREADY_REQUESTED: (ErrorKind.STATE_CONFLICT, "已有待处理的加入申请"),
    ErrorCode.ALREADY_RESOLVED: (ErrorKind.STATE_CONFLICT, "该请求已处理"),
    ErrorCode.ALREADY_COMPLETE: (ErrorKind.STATE_CONFLICT, "故事已完结"),
    ErrorCode.TURN_CONFLICT: (ErrorKind.STATE_CONFLICT, "当前回合持有者不能离开故事"),
    ErrorCode.STORY_CLOSED: (ErrorKind.STATE_CONFLICT, "故事已完结，不能继续写作"),
    ErrorCode.STORY_DELETED: (ErrorKind.STATE_CONFLICT, "故事已被焚毁"),
    ErrorCode.WORD_LIMIT_EXCEEDED: (ErrorKind.VALIDATION, "字数不符合要求"),
    ErrorCode.CHARACTER_LIMIT_EXCEEDED: (ErrorKind.VALIDATION, "字符数不符合要求"),
    ErrorCode.INVALID_PAYLOAD: (ErrorKind.VALIDATION, "请求参数不合法"),
    ErrorCode.INVITATION_EXPIRED: (ErrorKind.EXPIRED, "邀请已过期"),
    ErrorCode.EMAIL_EXISTS: (ErrorKind.STATE_CONFLICT, "邮箱已被注册"),
    ErrorCode.USERNAME_EXISTS: (ErrorKind.STATE_CONFLICT, "用户名已被占用"),
    ErrorCode.INVALID_CREDENTIALS: (ErrorKind.AUTHENTICATION, "邮箱或密码错误"),
}

# 错误类别 -> HTTP 状态码
KIND_STATUS = {
    ErrorKind.AUTHENTICATION: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.AUTHORIZATION: status.HTTP_403_FORBIDDEN,
    ErrorKind.STATE_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.VALIDATION: 422,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.EXPIRED: status.HTTP_410_GONE,
}


class InvariantViolation(RuntimeError):
    """数据不变量被破坏（并发或事务缺陷），不是用户可处理的状态"""


def error_kind(code: ErrorCode) -> ErrorKind:
    return _ERROR_TABLE[code][0]


def error_response(code: ErrorCode, message: str, **details) -> ApiResponse:
    """
    构造预期失败的响应

    Args:
        code: 错误码
        message: 面向客户端的英文提示（包含具体数值，例如 "exceeded 100-word limit"）
        **details: 上下文字段（word_limit、current_user_id 等）

    Returns:
        ApiResponse(success=False)
    """
    kind, localized = _ERROR_TABLE[code]
    error = {"code": code.value, "kind": kind.value, "message": localized}
    error.update(details)
    return ApiResponse(success=False, message=message, error=error)


def error_status(result: ApiResponse) -> int:
    """
    失败响应对应的 HTTP 状态码

    未知类别按 400 处理
    """
    kind = (result.error or {}).get("kind")
    try:
        return KIND_STATUS[ErrorKind(kind)]
    except ValueError:
        return status.HTTP_400_BAD_REQUEST


def error_code(result: ApiResponse) -> str:
    """取出失败响应的错误码（成功时返回 None）"""
    if result.success or not result.error:
        return None
    return result.error.get("code")
