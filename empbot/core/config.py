"""
Environment-driven configuration for the webhook service.
All values are read once at import; accessor functions re-read the
environment where tests need to flip a flag at runtime.
"""

import os

# Database path configuration
DB_PATH = os.getenv("DB_PATH", "./data/empbot.db")

# Document store service account. The project id namespaces stored documents.
STORE_PROJECT_ID = os.getenv("STORE_PROJECT_ID", "default")
STORE_CLIENT_EMAIL = os.getenv("STORE_CLIENT_EMAIL", "")
STORE_PRIVATE_KEY = os.getenv("STORE_PRIVATE_KEY", "")

# LINE Messaging API channel
LINE_ACCESS_TOKEN = os.getenv("LINE_ACCESS_TOKEN", "")
LINE_CHANNEL_SECRET = os.getenv("LINE_CHANNEL_SECRET", "")
LINE_API_BASE = os.getenv("LINE_API_BASE", "https://api.line.me")
LINE_REPLY_TIMEOUT_SEC = float(os.getenv("LINE_REPLY_TIMEOUT_SEC", "15"))

# Source tag written on every note
NOTE_SOURCE_TAG = os.getenv("NOTE_SOURCE_TAG", "LINE_WEBHOOK")

# Version string
VERSION = "1.0.0"


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def signature_validation_enabled():
    """Check if webhook signatures must be validated."""
    return os.getenv("SIGNATURE_VALIDATION_STRICT", "false").lower() == "true"



def get_store_credentials():
    """Get the store service-account credentials.

    Hosting dashboards store the private key with escaped newlines, so
    literal backslash-n sequences are turned back into line breaks.
    """
    return {
        "project_id": STORE_PROJECT_ID,
        "client_email": STORE_CLIENT_EMAIL,
        "private_key": STORE_PRIVATE_KEY.replace("\\n", "\n"),
    }


def get_line_config():
    """Get LINE channel configuration."""
    return {
        "channel_access_token": LINE_ACCESS_TOKEN,
        "channel_secret": LINE_CHANNEL_SECRET,
        "api_base": LINE_API_BASE.rstrip("/"),
        "timeout": LINE_REPLY_TIMEOUT_SEC,
    }


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    if not LINE_ACCESS_TOKEN:
        issues.append("LINE_ACCESS_TOKEN is not set; replies will be rejected by the platform")

    if not LINE_CHANNEL_SECRET:
        issues.append("LINE_CHANNEL_SECRET is not set; signatures cannot be verified")

    if signature_validation_enabled() and not LINE_CHANNEL_SECRET:
        issues.append("SIGNATURE_VALIDATION_STRICT requires LINE_CHANNEL_SECRET")

    if LINE_REPLY_TIMEOUT_SEC <= 0:
        issues.append("LINE_REPLY_TIMEOUT_SEC must be positive")

    if STORE_PRIVATE_KEY and not STORE_CLIENT_EMAIL:
        issues.append("STORE_PRIVATE_KEY is set without STORE_CLIENT_EMAIL")

    return issues
