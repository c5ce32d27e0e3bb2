"""
日志配置模块

控制台 + 滚动文件日志；协作引擎的状态变更单独写入 engine.log
"""
import os
import sys
from loguru import logger

from backend.config.settings import settings

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} | {message}"
ENGINE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {extra[component]} | {extra} | {message}"

# 已安装的 sink ID，避免重复添加
_sink_ids = []


def setup_logging(log_dir: str = None, level: str = None):
    """
    初始化 loguru 日志 sink

    Args:
        log_dir: 日志目录（默认读取配置）
        level: 日志级别（默认读取配置）
    """
    global _sink_ids

    log_dir = log_dir or settings.LOG_DIR
    level = level or settings.LOG_LEVEL
    os.makedirs(log_dir, exist_ok=True)

    for sink_id in _sink_ids:
        logger.remove(sink_id)
    _sink_ids = []

    logger.remove()
    _sink_ids.append(logger.add(sys.stderr, level=level))

    # 全量日志
    _sink_ids.append(logger.add(
        f"{log_dir}/collab.log",
        rotation=settings.LOG_ROTATION,
        retention=settings.LOG_RETENTION,
        compression="zip",
        format=LOG_FORMAT,
        level=level,
    ))

    # 引擎状态变更日志（仅记录绑定了 component 的记录）
    _sink_ids.append(logger.add(
        f"{log_dir}/engine.log",
        rotation=settings.LOG_ROTATION,
        retention=settings.LOG_RETENTION,
        compression="zip",
        format=ENGINE_FORMAT,
        level="DEBUG",
        filter=lambda record: "component" in record["extra"],
    ))


def engine_logger(component: str, **context):
    """
    获取绑定了引擎组件上下文的 logger

    用法:
        log = engine_logger("turn_ledger", story_id=story_id)
        log.info("Turn advanced")
    """
    return logger.bind(component=component, **context)
