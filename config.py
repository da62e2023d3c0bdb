"""
Application Settings

Every environment variable the menu API reads lives here.
Values are loaded from a .env file when present.
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")

ADMIN_DEFAULT_USERNAME = os.getenv("ADMIN_DEFAULT_USERNAME", "Epiphany")
ADMIN_DEFAULT_PASSWORD = os.getenv("ADMIN_DEFAULT_PASSWORD", "epiphany@123")
# Verification compares against the default pair when the store cannot be read
ADMIN_VERIFY_FALLBACK = _flag("ADMIN_VERIFY_FALLBACK", True)

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 10))

DELETE_POLICIES = ("cascade", "restrict", "orphan")
CATEGORY_DELETE_POLICY = os.getenv("CATEGORY_DELETE_POLICY", "cascade").strip().lower()
if CATEGORY_DELETE_POLICY not in DELETE_POLICIES:
    raise ValueError(f"CATEGORY_DELETE_POLICY must be one of {', '.join(DELETE_POLICIES)}")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
PORT = int(os.getenv("PORT", 8000))
