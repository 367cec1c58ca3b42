import logging
import os
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./backoffice.db")

# Connection pool (ignored for SQLite)
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "5"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "10"))
DB_POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "30"))
DB_POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "1800"))

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

JWT_ALGORITHM = "HS256"

# OAuth token encryption key: base64 of 32 random bytes
# generate with: python -c "import os, base64; print(base64.b64encode(os.urandom(32)).decode())"
OAUTH_TOKEN_ENCRYPTION_KEY = os.getenv("OAUTH_TOKEN_ENCRYPTION_KEY")
if not OAUTH_TOKEN_ENCRYPTION_KEY:
    logger.warning("⚠️ OAUTH_TOKEN_ENCRYPTION_KEY not set - Google Calendar connection is disabled")

# Frontend base URL for redirects
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Google Calendar OAuth Configuration
# OAuth flow: Google → Frontend → Frontend sends code to Backend API
GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")
GOOGLE_REDIRECT_URI = os.getenv("GOOGLE_REDIRECT_URI", f"{FRONTEND_URL}/auth/google-calendar")
GOOGLE_CALENDAR_WEBHOOK_URL = os.getenv("GOOGLE_CALENDAR_WEBHOOK_URL")
CALENDAR_TIME_ZONE = os.getenv("CALENDAR_TIME_ZONE", "Europe/Madrid")

# Billing
TAX_RATE = Decimal(os.getenv("TAX_RATE", "0.21"))  # IVA
QUOTE_VALIDITY_DAYS = int(os.getenv("QUOTE_VALIDITY_DAYS", "30"))
INVOICE_DUE_DAYS = int(os.getenv("INVOICE_DUE_DAYS", "30"))

# Issuer details printed on PDFs
BUSINESS_NAME = os.getenv("BUSINESS_NAME", "Limpiezas Roferlim")
BUSINESS_TAX_ID = os.getenv("BUSINESS_TAX_ID", "")
BUSINESS_ADDRESS = os.getenv("BUSINESS_ADDRESS", "")
BUSINESS_EMAIL = os.getenv("BUSINESS_EMAIL", "")
BUSINESS_PHONE = os.getenv("BUSINESS_PHONE", "")
