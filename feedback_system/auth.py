"""
Credential verification: login, token minting and bearer-token verification.

Tokens are stateless HS256 JWTs carrying {adminId, username, role} with an
issuer tag and an audience equal to the admin id, so a token minted for one
admin cannot be replayed as another.
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from feedback_system.config import app_conf
from feedback_system.errors import (
    AdminNotFound,
    ConflictError,
    InvalidCredentials,
    InvalidToken,
    TokenExpired,
    Unauthenticated,
    ValidationError,
)
from feedback_system.models import ADMIN_ROLES, Admin
from feedback_system.schemas import AdminIdentity
from feedback_system.utils import dummy_verify, parse_positive_int

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")

if app_conf.using_dev_secret:
    logger.warning("SECRET_KEY is not set; using the development fallback key")


def sanitize_username(username: str) -> str:
    username = username.strip().lower()
    if len(username) < 3 or len(username) > 30:
        raise ValidationError("Username must be between 3 and 30 characters.")
    return username


def check_password_length(password: str) -> None:
    if len(password) < 6 or len(password) > 128:
        raise ValidationError("Password must be between 6 and 128 characters.")


def validate_admin_input(username: str, password: str, role: Optional[str] = None) -> Tuple[str, str]:
    """Validate registration input. Returns (username, role) normalised."""
    username = sanitize_username(username)
    if not USERNAME_PATTERN.match(username):
        raise ValidationError("Username can only contain letters, numbers, and underscores.")
    check_password_length(password)
    role = role or "admin"
    if role not in ADMIN_ROLES:
        raise ValidationError("Role must be either admin, moderator, or super_admin.")
    return username, role


def create_access_token(admin: Admin, expires_delta: Optional[timedelta] = None) -> str:
    """Mint a session token bound to the admin's id, username and role."""
    issued_at = datetime.now(timezone.utc)
    expire = issued_at + (expires_delta or timedelta(minutes=app_conf.ACCESS_TOKEN_EXPIRE_MINUTES))
    claims = {
        "adminId": admin.id,
        "username": admin.username,
        "role": admin.role,
        "iat": issued_at,
        "exp": expire,
        "iss": app_conf.TOKEN_ISSUER,
        "aud": str(admin.id),
    }
    return jwt.encode(claims, app_conf.SECRET_KEY, algorithm=app_conf.ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Check signature, expiry, issuer and audience. Returns the claims."""
    try:
        unverified = jwt.get_unverified_claims(token)
    except JWTError:
        raise InvalidToken()

    admin_id = parse_positive_int(unverified.get("adminId"))
    if admin_id is None:
        raise InvalidToken()

    try:
        return jwt.decode(
            token,
            app_conf.SECRET_KEY,
            algorithms=[app_conf.ALGORITHM],
            audience=str(admin_id),
            issuer=app_conf.TOKEN_ISSUER,
        )
    except ExpiredSignatureError:
        raise TokenExpired()
    except JWTError:
        raise InvalidToken()


async def get_admin_by_username(db: AsyncSession, username: str) -> Optional[Admin]:
    result = await db.execute(select(Admin).where(func.lower(Admin.username) == username.lower()))
    return result.scalar_one_or_none()


async def get_admin_by_id(db: AsyncSession, admin_id: int) -> Optional[Admin]:
    result = await db.execute(select(Admin).where(Admin.id == admin_id))
    return result.scalar_one_or_none()


async def authenticate(db: AsyncSession, username: str, password: str) -> Admin:
    """
    Return the admin for a username/password pair.

    Unknown usernames and wrong passwords raise the same InvalidCredentials,
    and an unknown username still pays for one bcrypt verify.
    """
    username = sanitize_username(username)
    check_password_length(password)

    admin = await get_admin_by_username(db, username)
    if admin is None:
        dummy_verify()
        logger.warning(f"Login failed: unknown username '{username}'")
        raise InvalidCredentials()

    if not admin.check_password(password):
        logger.warning(f"Login failed: bad password for admin {admin.id}")
        raise InvalidCredentials()

    return admin


async def login(db: AsyncSession, username: str, password: str) -> Tuple[str, Admin]:
    admin = await authenticate(db, username, password)
    token = create_access_token(admin)
    logger.info(f"Login successful for admin '{admin.username}' (ID: {admin.id})")
    return token, admin


async def verify(db: AsyncSession, token: Optional[str]) -> AdminIdentity:
    """Resolve a bearer token to the admin it was minted for."""
    if not token:
        raise Unauthenticated()

    payload = decode_access_token(token)
    admin = await get_admin_by_id(db, int(payload["adminId"]))
    if admin is None:
        logger.warning(f"Token for missing admin {payload['adminId']} rejected")
        raise AdminNotFound()

    return AdminIdentity(id=admin.id, username=admin.username, role=admin.role)


async def register_admin(db: AsyncSession, username: str, password: str, role: Optional[str] = None) -> Admin:
    username, role = validate_admin_input(username, password, role)

    if await get_admin_by_username(db, username) is not None:
        raise ConflictError("Admin with this username already exists.")

    admin = Admin.create(username=username, password=password, role=role)
    db.add(admin)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same name
        await db.rollback()
        raise ConflictError("Admin with this username already exists.")
    await db.refresh(admin)
    logger.info(f"Admin registered: {admin.id} ({admin.role})")
    return admin
