"""
应用全局配置

从 config.yaml 加载配置，支持环境变量覆盖
"""

import yaml
from pathlib import Path
from typing import Optional, List
import os


def _as_bool(value) -> bool:
    return str(value).lower() in ("true", "1", "yes")


class Settings:
    """应用全局配置（从 config.yaml 加载）"""

    def __init__(self, config_path: Optional[Path] = None):
        # 加载 config.yaml
        config_path = config_path or Path(
            os.getenv("CONFIG_PATH", Path(__file__).parent.parent.parent / "config.yaml")
        )
        with open(config_path, 'r', encoding='utf-8') as f:
            self._config = yaml.safe_load(f)

    def _section(self, name: str) -> dict:
        return self._config.get(name) or {}

    # ==================== 应用基础配置 ====================
    @property
    def APP_NAME(self) -> str:
        return os.getenv("APP_NAME", self._config["app"]["name"])

    @property
    def APP_VERSION(self) -> str:
        return os.getenv("APP_VERSION", self._config["app"]["version"])

    @property
    def API_V1_PREFIX(self) -> str:
        return os.getenv("API_V1_PREFIX", self._config["app"]["api_prefix"])

    @property
    def DEBUG(self) -> bool:
        return _as_bool(os.getenv("DEBUG", self._config["app"]["debug"]))

    # ==================== 数据库配置 ====================
    @property
    def DATABASE_ENABLED(self) -> bool:
        return _as_bool(os.getenv("DATABASE_ENABLED", self._config["database"]["enabled"]))

    @property
    def DATABASE_URL(self) -> Optional[str]:
        if not self.DATABASE_ENABLED:
            return None
        return os.getenv("DATABASE_URL", self._config["database"]["url"])

    @property
    def DATABASE_POOL_SIZE(self) -> int:
        return int(os.getenv("DATABASE_POOL_SIZE", self._config["database"]["pool_size"]))

    @property
    def DATABASE_MAX_OVERFLOW(self) -> int:
        return int(os.getenv("DATABASE_MAX_OVERFLOW", self._config["database"]["max_overflow"]))

    # ==================== Redis 配置 ====================
    @property
    def REDIS_HOST(self) -> str:
        return os.getenv("REDIS_HOST", self._config["redis"]["host"])

    @property
    def REDIS_PORT(self) -> int:
        return int(os.getenv("REDIS_PORT", self._config["redis"]["port"]))

    @property
    def REDIS_DB(self) -> int:
        return int(os.getenv("REDIS_DB", self._config["redis"]["database"]))

    @property
    def REDIS_PASSWORD(self) -> Optional[str]:
        return os.getenv("REDIS_PASSWORD", self._config["redis"]["password"])

    # ==================== JWT 认证配置 ====================
    @property
    def JWT_SECRET_KEY(self) -> str:
        return os.getenv("JWT_SECRET_KEY", self._config["jwt"]["secret_key"])

    @property
    def JWT_ALGORITHM(self) -> str:
        return os.getenv("JWT_ALGORITHM", self._config["jwt"]["algorithm"])

    @property
    def JWT_EXPIRE_MINUTES(self) -> int:
        return int(os.getenv("JWT_EXPIRE_MINUTES", self._config["jwt"]["expire_minutes"]))

    # ==================== CORS 配置 ====================
    @property
    def CORS_ORIGINS(self) -> List[str]:
        env_origins = os.getenv("CORS_ORIGINS")
        if env_origins:
            return [origin.strip() for origin in env_origins.split(",")]
        return self._config["cors"]["origins"]

    # ==================== 故事规则配置 ====================
    @property
    def WORD_LIMIT_MIN(self) -> int:
        return int(os.getenv("WORD_LIMIT_MIN", self._section("story").get("word_limit_min", 50)))

    @property
    def WORD_LIMIT_MAX(self) -> int:
        return int(os.getenv("WORD_LIMIT_MAX", self._section("story").get("word_limit_max", 500)))

    @property
    def CHARACTER_LIMIT_MAX(self) -> int:
        return int(os.getenv("CHARACTER_LIMIT_MAX", self._section("story").get("character_limit_max", 2000)))

    @property
    def MAX_SEGMENTS_MIN(self) -> int:
        return int(os.getenv("MAX_SEGMENTS_MIN", self._section("story").get("max_segments_min", 5)))

    @property
    def MAX_SEGMENTS_MAX(self) -> int:
        return int(os.getenv("MAX_SEGMENTS_MAX", self._section("story").get("max_segments_max", 100)))

    @property
    def DEFAULT_MAX_SEGMENTS(self) -> int:
        return int(os.getenv("DEFAULT_MAX_SEGMENTS", self._section("story").get("default_max_segments", 30)))

    @property
    def RECOMPUTE_SEGMENT_COUNTS(self) -> bool:
        return _as_bool(os.getenv("RECOMPUTE_SEGMENT_COUNTS", self._section("story").get("recompute_counts", True)))

    # ==================== 邀请配置 ====================
    @property
    def INVITATION_TTL_DAYS(self) -> int:
        return int(os.getenv("INVITATION_TTL_DAYS", self._section("invitation").get("ttl_days", 7)))

    @property
    def INVITATION_BASE_URL(self) -> str:
        base = os.getenv("INVITATION_BASE_URL", self._section("invitation").get("base_url", ""))
        return (base or "").rstrip("/")

    # ==================== 通知配置 ====================
    @property
    def NOTIFICATION_ENABLED(self) -> bool:
        return _as_bool(os.getenv("NOTIFICATION_ENABLED", self._section("notification").get("enabled", True)))

    @property
    def EMAIL_TRANSPORT(self) -> str:
        return os.getenv("EMAIL_TRANSPORT", self._section("notification").get("email_transport", "dummy"))

    @property
    def SMTP_HOST(self) -> str:
        return os.getenv("SMTP_HOST", self._section("notification").get("smtp_host", "localhost"))

    @property
    def SMTP_PORT(self) -> int:
        return int(os.getenv("SMTP_PORT", self._section("notification").get("smtp_port", 587)))

    @property
    def SMTP_USERNAME(self) -> Optional[str]:
        return os.getenv("SMTP_USERNAME", self._section("notification").get("smtp_username"))

    @property
    def SMTP_PASSWORD(self) -> Optional[str]:
        return os.getenv("SMTP_PASSWORD", self._section("notification").get("smtp_password"))

    @property
    def SMTP_FROM(self) -> Optional[str]:
        return os.getenv("SMTP_FROM", self._section("notification").get("smtp_from"))

    @property
    def SMTP_USE_TLS(self) -> bool:
        return _as_bool(os.getenv("SMTP_USE_TLS", self._section("notification").get("smtp_use_tls", True)))

    @property
    def PUSH_CHANNEL_PREFIX(self) -> str:
        return os.getenv(
            "PUSH_CHANNEL_PREFIX",
            self._section("notification").get("push_channel_prefix", "notifications:user")
        )

    # ==================== 日志配置 ====================
    @property
    def LOG_LEVEL(self) -> str:
        return os.getenv("LOG_LEVEL", self._section("logging").get("level", "INFO"))

    @property
    def LOG_DIR(self) -> str:
        return os.getenv("LOG_DIR", self._section("logging").get("dir", "logs"))

    @property
    def LOG_ROTATION(self) -> str:
        return os.getenv("LOG_ROTATION", self._section("logging").get("rotation", "10 MB"))

    @property
    def LOG_RETENTION(self) -> str:
        return os.getenv("LOG_RETENTION", self._section("logging").get("retention", "7 days"))

    # ==================== 分页配置 ====================
    @property
    def DEFAULT_PAGE_SIZE(self) -> int:
        return int(os.getenv("DEFAULT_PAGE_SIZE", self._section("business").get("default_page_size", 20)))

    @property
    def MAX_PAGE_SIZE(self) -> int:
        return int(os.getenv("MAX_PAGE_SIZE", self._section("business").get("max_page_size", 100)))


# 全局配置实例
settings = Settings()
