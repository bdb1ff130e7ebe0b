"""
Configuration module for the mandate intake service.

Centralizes all configuration with environment variable support
and validation. A `.env` file in the working directory is loaded first.
"""

import os
from pathlib import Path
from typing import Dict, List

from dotenv import load_dotenv

load_dotenv()

# ============================================================
# Environment Configuration
# ============================================================

ENV = os.getenv("INTAKE_ENV", "dev")  # dev|stage|prod

PORT = int(os.getenv("PORT", "3000"))

# Rate limits (requests per minute, per client)
SUBMIT_RPM = int(os.getenv("SUBMIT_RPM", "30"))
CONTACT_RPM = int(os.getenv("CONTACT_RPM", "30"))

# Request bodies carry base64 signatures
MAX_SIGNATURE_BYTES = int(os.getenv("MAX_SIGNATURE_BYTES", str(5 * 1024 * 1024)))

# Paths
DB_PATH = Path(os.getenv("MANDATE_DB_PATH", "data/mandates.db"))
PUBLIC_KEY_PATH = os.getenv("PUBLIC_KEY_PATH", "keys/public-key.asc")


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


ALLOWED_ORIGINS = _split_origins(
    os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
)

# ============================================================
# Mail
# ============================================================

MAIL_HOST = os.getenv("MAIL_HOST", "")
MAIL_PORT = int(os.getenv("MAIL_PORT", "465"))
MAIL_SECURE = os.getenv("MAIL_SECURE", "true").lower() in ("1", "true", "yes")
MAIL_USER = os.getenv("MAIL_USER", "")
MAIL_PASSWORD = os.getenv("MAIL_PASSWORD", "")
MAIL_TIMEOUT = float(os.getenv("MAIL_TIMEOUT", "10"))

MAIL_FROM = os.getenv("MAIL_FROM", "contact@orvanta.ca")
MAIL_TO = os.getenv("MAIL_TO", "samuel@orvanta.ca")
MANDATE_MAIL_FROM = os.getenv("MANDAT_MAIL_FROM", "manda@orvanta.ca")
MANDATE_MAIL_TO = os.getenv("MANDAT_MAIL_TO", MAIL_TO)

# ============================================================
# Logging
# ============================================================

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("LOG_JSON", "true").lower() in ("1", "true", "yes")
LOG_FILE = os.getenv("LOG_FILE") or None


# ============================================================
# Validation
# ============================================================

def mail_configured() -> bool:
    """Check if SMTP delivery is configured."""
    return bool(MAIL_HOST and MAIL_USER and MAIL_PASSWORD)


def validate_config() -> Dict[str, bool]:
    """
    Validate that required configuration is present.
    Returns dict of check name -> ok.
    """
    return {
        "public_key": Path(PUBLIC_KEY_PATH).exists(),
        "mail": mail_configured(),
        "db_dir": DB_PATH.parent.exists(),
    }


# ============================================================
# Feature Flags
# ============================================================

def is_production() -> bool:
    """Check if running in production mode."""
    return ENV == "prod"


def is_debug() -> bool:
    """Check if debug mode is enabled."""
    return os.getenv("INTAKE_DEBUG", "").lower() in ("1", "true", "yes")
