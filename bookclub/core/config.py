# 读取 .env 配置
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from bookclub.trending.config import TrendingConfig


class Settings(BaseSettings):
    # App
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    # Firestore
    FIRESTORE_PROJECT_ID: str = ""
    FIREBASE_CREDENTIALS_FILE: str = ""  # 为空时使用 ADC（Application Default Credentials）

    # Redis（任务锁）
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: Optional[str] = None
    REDIS_UNIX_SOCKET: str = ""
    TRENDING_KEY_PREFIX: str = "bookclub:"
    JOB_LOCK_ENABLED: bool = True
    JOB_LOCK_TTL_SECONDS: int = 600  # 略大于函数超时 540s

    # 热度流水线（默认值与 TrendingConfig 保持一致）
    WINDOW_HOURS: int = 24
    TRENDING_TOP_TERMS: int = 50
    SEARCH_EVENTS_RETENTION_DAYS: int = 7
    CLEANUP_BATCH_SIZE: int = 300
    CLEANUP_PAUSE_SECONDS: float = 0.05
    DECAY_BATCH_SIZE: int = 300
    DECAY_RATE: float = 0.9
    DECAY_MIN_THRESHOLD: float = 0.5
    TRENDING_POOL_SIZE: int = 10

    SEARCH_EVENTS_COLLECTION: str = "search_events"
    BOOKS_COLLECTION: str = "books"
    CLUBS_COLLECTION: str = "clubs"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore" # 忽略多余的环境变量
    )

    def trending_config(self) -> TrendingConfig:
        """把环境变量组装成注入各任务的 TrendingConfig"""
        return TrendingConfig(
            window_hours=self.WINDOW_HOURS,
            top_terms_limit=self.TRENDING_TOP_TERMS,
            retention_days=self.SEARCH_EVENTS_RETENTION_DAYS,
            cleanup_batch_size=self.CLEANUP_BATCH_SIZE,
            cleanup_pause_seconds=self.CLEANUP_PAUSE_SECONDS,
            decay_batch_size=self.DECAY_BATCH_SIZE,
            decay_rate=self.DECAY_RATE,
            decay_min_threshold=self.DECAY_MIN_THRESHOLD,
            pool_size=self.TRENDING_POOL_SIZE,
            search_events_collection=self.SEARCH_EVENTS_COLLECTION,
            books_collection=self.BOOKS_COLLECTION,
            clubs_collection=self.CLUBS_COLLECTION,
        )


settings = Settings()
