"""
Admin credential store.

A single administrator row lives in `admin_settings` under a fixed id. It is
created on first contact (read or verify) with the default username and a
bcrypt hash of the default password, and replaced only by
update_admin_credentials. Plaintext passwords are never stored or returned.

Read paths tolerate storage failures: a failed bootstrap insert (for example
two first-time callers racing on the fixed id) still answers with the default
username, and verification can fall back to the default pair. The rotation
path propagates every storage failure.
"""

from typing import Optional

from loguru import logger
from passlib.context import CryptContext

import config
from database import create_document, get_documents, update_document
from errors import StorageError
from schemas import COLLECTIONS, AdminCredentialsInput, AdminCredentialsView, AdminSettings, parse_input

ADMIN_SETTINGS = COLLECTIONS[AdminSettings]
ADMIN_ROW_ID = "admin"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=config.BCRYPT_ROUNDS)


def _load_row() -> Optional[dict]:
    rows = get_documents(ADMIN_SETTINGS, limit=1)
    return rows[0] if rows else None


def _matches_default(username: str, password: str) -> bool:
    return username == config.ADMIN_DEFAULT_USERNAME and password == config.ADMIN_DEFAULT_PASSWORD


def _bootstrap() -> None:
    """Insert the default row. Failures are logged and left to the caller's read path."""
    settings = AdminSettings(
        username=config.ADMIN_DEFAULT_USERNAME,
        password_hash=pwd_context.hash(config.ADMIN_DEFAULT_PASSWORD),
    )
    try:
        create_document(ADMIN_SETTINGS, settings, _id=ADMIN_ROW_ID)
        logger.info("Bootstrapped default admin credentials for '{}'", settings.username)
    except StorageError as e:
        logger.warning("Default admin credentials were not stored: {}", e.detail or e.message)


def get_admin_credentials() -> AdminCredentialsView:
    try:
        row = _load_row()
    except StorageError as e:
        logger.warning("Admin credentials unreadable, reporting default username: {}", e.message)
        return AdminCredentialsView(username=config.ADMIN_DEFAULT_USERNAME)
    if row is None:
        _bootstrap()
        return AdminCredentialsView(username=config.ADMIN_DEFAULT_USERNAME)
    return AdminCredentialsView(username=row["username"])


def verify_admin_credentials(username: str, password: str) -> bool:
    try:
        row = _load_row()
    except StorageError as e:
        if not config.ADMIN_VERIFY_FALLBACK:
            logger.error("Admin credentials unreadable, rejecting login: {}", e.message)
            return False
        logger.warning("Admin credentials unreadable, comparing against the default pair: {}", e.message)
        return _matches_default(username, password)

    if row is None:
        if not _matches_default(username, password):
            return False
        _bootstrap()
        return True

    if username != row["username"]:
        return False
    try:
        return pwd_context.verify(password, row["password_hash"])
    except ValueError as e:
        logger.error("Stored admin password hash is unusable: {}", e)
        return False


def update_admin_credentials(username: str, password: str) -> AdminCredentialsView:
    fields = parse_input(AdminCredentialsInput, {"username": username, "password": password})
    settings = AdminSettings(username=fields.username, password_hash=pwd_context.hash(fields.password))
    row = _load_row()
    if row is None:
        create_document(ADMIN_SETTINGS, settings, _id=ADMIN_ROW_ID)
    elif update_document(ADMIN_SETTINGS, row["_id"], settings) is None:
        raise StorageError("Admin credentials disappeared during update")
    logger.info("Admin credentials rotated for '{}'", fields.username)
    return AdminCredentialsView(username=fields.username)
