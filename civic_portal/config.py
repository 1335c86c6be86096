"""애플리케이션 환경 설정 모듈.

Application configuration module using pydantic-settings.
All settings can be overridden via environment variables or a .env file.
"""

from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings

# .env 파일 절대 경로 — CWD와 무관하게 항상 프로젝트 루트의 .env를 참조
# Absolute path to .env file — ensures correct loading regardless of CWD
_ENV_FILE: Path = Path(__file__).resolve().parent.parent / ".env"


class Settings(BaseSettings):
    """애플리케이션 전역 설정 — 환경 변수 기반 구성.

    Global application settings loaded from environment variables.
    Uses pydantic-settings for automatic env var parsing and .env file support.

    Attributes:
        REMOTE_API_BASE_URL: 원격 이슈 저장소(포털 백엔드) 주소 (Portal REST backend base URL)
        REMOTE_API_TOKEN: 원격 저장소 호출용 서비스 토큰 (Service bearer token for the backend)
        REMOTE_TIMEOUT_SECONDS: 원격 호출 타임아웃(초) (Remote call timeout in seconds)
        JWT_SECRET_KEY: 신원 토큰 검증 비밀키 (Identity token verification secret)
        JWT_ALGORITHM: JWT 서명 알고리즘 (JWT signing algorithm)
        JWT_ACCESS_TOKEN_EXPIRE_MINUTES: 로컬 발급 토큰 만료 시간(분) (Locally issued token TTL)
        DEFAULT_PAGE_SIZE: 기본 페이지 크기 (Default items per page)
        MAX_PAGE_SIZE: 최대 페이지 크기 (Upper bound for per_page)
        CORS_ORIGINS: 허용된 CORS 출처 목록 (Allowed CORS origin URLs)
        APP_NAME: 애플리케이션 표시 이름 (Application display name)
        DEBUG: 디버그 모드 플래그 (Debug mode flag)
    """

    # 원격 이슈 저장소 — Portal REST backend (RemoteIssueStore)
    REMOTE_API_BASE_URL: str = "http://localhost:5000"
    REMOTE_API_TOKEN: str = ""  # 비어 있으면 인증 헤더 생략 (Empty: no Authorization header)
    REMOTE_TIMEOUT_SECONDS: float = 10.0

    # 신원 토큰 설정 — Identity token (JWT) settings
    JWT_SECRET_KEY: str = "change-this-secret-key-in-production"  # 운영 환경에서 반드시 변경 (MUST change in production)
    JWT_ALGORITHM: str = "HS256"  # HMAC-SHA256 대칭 서명 (Symmetric signing algorithm)
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # 목록 페이지네이션 — Listing pagination defaults
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # CORS 설정 — 프론트엔드 개발 서버 허용 (Frontend dev server origins)
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    # 앱 메타데이터 — Application metadata
    APP_NAME: str = "Civic Issue Sync API"
    DEBUG: bool = True

    # Axiom 로깅 설정 — Axiom observability platform settings
    AXIOM_API_TOKEN: str = ""  # Axiom API 토큰 (API token from Axiom dashboard)
    AXIOM_DATASET: str = ""  # Axiom 데이터셋 이름 (Dataset name for API and mutation logs)

    model_config = {"env_file": _ENV_FILE, "env_file_encoding": "utf-8"}


# 전역 설정 싱글턴 인스턴스 — Global settings singleton instance
settings: Settings = Settings()
