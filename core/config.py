from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    # -------------------------------------------------
    # General
    # -------------------------------------------------
    PROJECT_NAME: str = "FieldOps Pro API"
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # -------------------------------------------------
    # Frontend Domains
    # -------------------------------------------------
    FRONTEND_URL: Optional[str] = Field(None, description="Primary web client origin")

    FIELDOPS_DOMAINS: List[str] = [
        "https://fieldopspro.app",
        "https://www.fieldopspro.app",
    ]

    # -------------------------------------------------
    # CORS (auto-built below)
    # -------------------------------------------------
    BACKEND_CORS_ORIGINS: List[str] = []

    # -------------------------------------------------
    # Supabase (Primary DB & Auth)
    # -------------------------------------------------
    SUPABASE_URL: Optional[str] = None
    SUPABASE_ANON_KEY: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None

    # -------------------------------------------------
    # SMTP Email Notifications
    # -------------------------------------------------
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: Optional[int] = None
    SMTP_USER: Optional[str] = None
    SMTP_PASS: Optional[str] = None
    SMTP_TO: Optional[str] = None

    # Operations digest destination
    OPERATIONS_REPORT_EMAIL: Optional[str] = None

    # -------------------------------------------------
    # Webhooks (Slack, Discord, ...)
    # -------------------------------------------------
    OPS_WEBHOOK_URL: Optional[str] = None

    # -------------------------------------------------
    # Scheduler
    # -------------------------------------------------
    ENABLE_SCHEDULER: bool = Field(False, description="Run the daily operations digest in-process")
    DAILY_DIGEST_HOUR_UTC: int = Field(14, description="Hour (UTC) the daily digest is sent")

    # -------------------------------------------------
    # Permissions / Role Testing
    # -------------------------------------------------
    PERMISSION_CACHE_TTL_SECONDS: int = Field(300, description="How long RBAC decisions are cached")
    TEST_SERVICE_COMPANY_NAME: str = "Test Service Company"
    TEST_CLIENT_COMPANY_NAME: str = "Test Client Company"

    # -------------------------------------------------
    # Public endpoint rate limits
    # -------------------------------------------------
    ONBOARDING_RATE_LIMIT: int = Field(5, description="Onboarding submissions per window per IP")
    ONBOARDING_RATE_WINDOW_SECONDS: int = 3600

    # -------------------------------------------------
    # Model Config
    # -------------------------------------------------
    class Config:
        case_sensitive = True


# Instantiate settings
settings = Settings()

# -------------------------------------------------
# Build CORS list dynamically after loading settings
# -------------------------------------------------
cors_origins = []

# 1) add configured web client
if settings.FRONTEND_URL:
    domain = settings.FRONTEND_URL
    if not domain.startswith("http"):
        domain = f"https://{domain}"
    cors_origins.append(domain.rstrip("/"))

# 2) add FieldOps domains
cors_origins.extend([d.rstrip("/") for d in settings.FIELDOPS_DOMAINS])

# 3) local development
if settings.ENV == "development":
    cors_origins.append("http://localhost:5173")

# 4) remove duplicates
settings.BACKEND_CORS_ORIGINS = sorted(list(set(cors_origins)))
