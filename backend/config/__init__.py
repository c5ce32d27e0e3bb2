"""
配置模块
"""

from .settings import settings, Settings
from .logging import setup_logging, engine_logger

__all__ = [
    "settings",
    "Settings",
    "setup_logging",
    "engine_logger",
]
