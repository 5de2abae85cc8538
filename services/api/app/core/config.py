# services/api/app/core/config.py

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    统一管理项目的所有配置。
    使用 pydantic-settings，这个类会自动从环境变量或 .env 文件中读取配置。
    """

    # -------------------------------------------------------------------------
    # App 基础配置 (Basic App Settings)
    # -------------------------------------------------------------------------
    APP_NAME: str = "Shot Tracker"
    APP_ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    # API服务的监听主机和端口 (主要用于Uvicorn命令行)
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    CORS_ORIGINS: str = "http://localhost:3000"
    API_PREFIX: str = "/api"

    # -------------------------------------------------------------------------
    # 存储 (JSON 文件)
    # -------------------------------------------------------------------------
    DATA_DIR: str = "data"
    SHOTS_FILE: str = "shots.json"

    # -------------------------------------------------------------------------
    # Gemini 提示词生成
    # -------------------------------------------------------------------------
    GEMINI_API_KEY: Optional[str] = None
    GOOGLE_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.5-flash"
    GEMINI_FALLBACK_MODELS: str = ""
    DRAFTING_TIMEOUT_S: float = 60.0
    DRAFTING_TEMPERATURE: float = 0.7
    DRAFTING_MAX_OUTPUT_TOKENS: int = 1024

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding='utf-8', extra='ignore')

    @property
    def shots_path(self) -> Path:
        return Path(self.DATA_DIR) / self.SHOTS_FILE

    @property
    def gemini_api_key(self) -> Optional[str]:
        return self.GEMINI_API_KEY or self.GOOGLE_API_KEY

    @property
    def gemini_models(self) -> List[str]:
        fallbacks = [m.strip() for m in self.GEMINI_FALLBACK_MODELS.split(",") if m.strip()]
        return [self.GEMINI_MODEL, *fallbacks]

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
