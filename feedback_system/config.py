import os
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()

_DEV_SECRET_KEY = "dev-only-secret-key-change-me-in-production"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class MailConfig:
    SMTP_HOST: str = os.getenv("SMTP_HOST", "").strip()
    SMTP_PORT: Optional[int] = int(os.getenv("SMTP_PORT")) if os.getenv("SMTP_PORT") else None
    SMTP_USER: str = os.getenv("SMTP_USER", "").strip()
    SMTP_PASS: str = os.getenv("SMTP_PASS", "").strip()
    EMAIL_FROM: str = os.getenv("EMAIL_FROM", "").strip()
    ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL", "").strip()
    APP_URL: str = os.getenv("APP_URL", "http://localhost:8000").strip()

    @property
    def configured(self) -> bool:
        return bool(self.SMTP_HOST and self.SMTP_USER and self.SMTP_PASS)


class AppConfig:
    SECRET_KEY: str = os.getenv("SECRET_KEY") or _DEV_SECRET_KEY
    ALGORITHM: str = os.getenv("JWT_ALGO", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("JWT_EXPIRE_MIN", 1440))
    TOKEN_ISSUER: str = os.getenv("JWT_ISSUER", "feedback-system")
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./feedback.db")
    BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", 12))
    ADMIN_USERNAME: str = os.getenv("ADMIN_USERNAME", "admin")
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "admin123")
    ALLOWED_ORIGINS: List[str] = [
        origin.strip()
        for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:8000").split(",")
        if origin.strip()
    ]
    RATE_LIMIT_ENABLED: bool = _env_bool("RATE_LIMIT_ENABLED", True)
    RATE_LIMIT_DEFAULT: str = os.getenv("RATE_LIMIT_DEFAULT", "100/15 minutes")
    RATE_LIMIT_LOGIN: str = os.getenv("RATE_LIMIT_LOGIN", "5/15 minutes")
    TASK_QUEUE_SIZE: int = int(os.getenv("TASK_QUEUE_SIZE", 100))
    TASK_WORKERS: int = int(os.getenv("TASK_WORKERS", 2))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FILE: Optional[str] = os.getenv("LOG_FILE") or None

    @property
    def using_dev_secret(self) -> bool:
        return self.SECRET_KEY == _DEV_SECRET_KEY


mail_conf = MailConfig()
app_conf = AppConfig()
