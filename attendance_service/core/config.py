from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict  # pydantic-settings에서 BaseSettings를 임포트


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")  # .env 파일을 통해 환경 변수 관리

    # MongoDB 연결 정보
    MONGODB_URI: str = "mongodb://mongodb:27017"
    MONGODB_DB_NAME: str = "attendance"
    MONGODB_MAX_POOL_SIZE: int = 10
    MONGODB_SERVER_SELECTION_TIMEOUT_MS: int = 5000
    MONGODB_SOCKET_TIMEOUT_MS: int = 45000

    # 인증 (x-auth-token 헤더로 JWT 전달)
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_HOURS: int = 24
    AUTH_HEADER: str = "x-auth-token"

    # 프로필 이미지 업로드
    UPLOAD_DIR: str = "uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024

    # 하루의 경계(자정)를 계산할 때 쓰는 타임존
    TIMEZONE: str = "UTC"

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]


@lru_cache
def get_settings() -> Settings:
    return Settings()
