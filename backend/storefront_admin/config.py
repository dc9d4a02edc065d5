"""Application configuration"""
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = "sqlite:///./storefront_admin.db"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_POOL_TIMEOUT: int = 30
    DATABASE_POOL_RECYCLE: int = 3600  # Recycle connections after 1 hour

    # Session registry: "memory" (per process) or "database" (shared across workers and the CLI)
    SESSION_STORE: str = "memory"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 4000
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: str = "http://localhost:5173"

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_LOGIN: str = "10/minute"
    RATE_LIMIT_STORAGE_URI: str = "memory://"  # Use redis:// for production

    # Monitoring
    METRICS_ENABLED: bool = True
    METRICS_PATH: str = "/metrics"

    # Admin accounts
    BCRYPT_ROUNDS: int = 10
    ADMIN_ID_PREFIX: str = "adm_"

    # Admin session cookie
    ADMIN_COOKIE_NAME: str = "adminToken"
    COOKIE_SECURE: bool = False  # Set True when served over HTTPS

    # JWT Authentication
    JWT_PRIVATE_KEY: Optional[str] = None    # RSA-2048 PEM string; auto-generated on startup if absent
    JWT_ALGORITHM: str = "RS256"
    JWT_KEY_ID: Optional[str] = None         # kid claim for key rotation tracking
    ADMIN_TOKEN_EXPIRE_SECONDS: int = 86400  # 24 hours

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string into list"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]


settings = Settings()
