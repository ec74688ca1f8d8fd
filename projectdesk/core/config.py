from pydantic_settings import BaseSettings
from typing import List, Any
import json


def parse_cors_origins(v: Any) -> List[str]:
    """Parse CORS origins from string or list"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        # Try JSON parsing first
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        # Fall back to comma-separated
        return [origin.strip() for origin in v.split(',') if origin.strip()]
    return []


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "ProjectDesk"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    SECRET_KEY: str = "CHANGE_ME"
    API_VERSION: str = "v1"

    # ==========================================
    # Database
    # ==========================================
    DATABASE_URL: str = "sqlite+aiosqlite:///./projectdesk.db"
    DB_ECHO: bool = False

    # ==========================================
    # JWT / Security
    # ==========================================
    JWT_SECRET_KEY: str = "CHANGE_ME"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    BCRYPT_ROUNDS: int = 12

    # ==========================================
    # Google OAuth
    # ==========================================
    GOOGLE_CLIENT_ID: str = ""

    # ==========================================
    # Claude (documentation improvement)
    # ==========================================
    ANTHROPIC_API_KEY: str = ""
    ANTHROPIC_BASE_URL: str = ""
    CLAUDE_MODEL: str = "claude-3-5-haiku-20241022"
    CLAUDE_MAX_TOKENS: int = 8192
    CLAUDE_TEMPERATURE: float = 0.7
    CLAUDE_REQUEST_TIMEOUT: int = 120
    CLAUDE_CONNECT_TIMEOUT: int = 10

    # ==========================================
    # Storage (local | s3 | minio)
    # ==========================================
    STORAGE_MODE: str = "local"
    LOCAL_STORAGE_DIR: str = "storage"
    PUBLIC_BASE_URL: str = "http://localhost:8000/files"
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_REGION: str = "ap-south-1"
    S3_BUCKET_NAME: str = "projectdesk"
    MINIO_ENDPOINT: str = "localhost:9000"
    MINIO_SECURE: bool = False
    PRESIGNED_URL_EXPIRY: int = 604800  # 7 days

    # ==========================================
    # Quotation
    # ==========================================
    QUOTATION_COMPANY_NAME: str = "CEHPOINT"
    QUOTATION_COMPANY_TAGLINE: str = "Software Development & IT Services"
    QUOTATION_SENIOR_RATE: int = 75000
    QUOTATION_JUNIOR_RATE: int = 30000
    QUOTATION_DESIGNER_RATE: int = 8000
    QUOTATION_MANAGEMENT_FEE: int = 50000
    QUOTATION_USD_FACTOR: float = 0.04
    QUOTATION_VALIDITY_DAYS: int = 30

    # ==========================================
    # CORS (stored as comma-separated string, parsed to list)
    # ==========================================
    CORS_ORIGINS_STR: str = "http://localhost:3000,http://127.0.0.1:3000"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return parse_cors_origins(self.CORS_ORIGINS_STR)

    # ==========================================
    # Rate Limiting
    # ==========================================
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 60

    # ==========================================
    # File Upload
    # ==========================================
    MAX_UPLOAD_SIZE: int = 10485760  # 10MB

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""
    SLOW_REQUEST_MS: int = 1000

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    def is_dev_mode(self) -> bool:
        return self.ENVIRONMENT == "development"


settings = Settings()
