# core/config_validator.py

import os
from typing import List
from core.config import settings
from core.logging_config import logger


def validate_required_config() -> List[str]:
    """
    Validate that all required environment variables are set.
    Returns list of missing required variables.
    """
    missing = []

    if not settings.SUPABASE_URL:
        missing.append("SUPABASE_URL")
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        missing.append("SUPABASE_SERVICE_ROLE_KEY")

    return missing


def validate_optional_config() -> List[str]:
    """
    Optional configuration: features degrade (no uploads, no email) but
    the API still serves requests.
    """
    warnings = []

    for var in ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY", "AWS_BUCKET_NAME"):
        if not os.getenv(var):
            warnings.append(f"{var} (document uploads disabled)")

    if not all([settings.SMTP_HOST, settings.SMTP_PORT, settings.SMTP_USER, settings.SMTP_PASS]):
        warnings.append("SMTP_* (email notifications disabled)")

    if settings.ENABLE_SCHEDULER and not settings.OPERATIONS_REPORT_EMAIL:
        warnings.append("OPERATIONS_REPORT_EMAIL (daily digest falls back to SMTP_TO)")

    return warnings


def validate_config_on_startup(strict: bool = False):
    """
    Validate configuration on application startup.

    Missing required variables are logged as errors, and raise
    RuntimeError when `strict` is set (production).
    """
    missing_required = validate_required_config()
    missing_optional = validate_optional_config()

    if missing_required:
        error_msg = f"Missing required environment variables: {', '.join(missing_required)}"
        logger.error(error_msg)
        if strict:
            raise RuntimeError(error_msg)

    for warning in missing_optional:
        logger.warning(f"Optional configuration missing: {warning}")

    if not missing_required:
        logger.info("Configuration validation passed")

    return {"missing_required": missing_required, "missing_optional": missing_optional}
