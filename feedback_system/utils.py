import re
from datetime import datetime, timezone
from typing import Optional

from passlib.context import CryptContext

from feedback_system.config import app_conf

_DIGITS = re.compile(r"^[0-9]+$")
# Largest value a 64-bit signed INTEGER column can bind
MAX_ID = 2 ** 63 - 1

# Password hashing with configurable bcrypt rounds
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=app_conf.BCRYPT_ROUNDS,
)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt (salt is generated per call)."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a bcrypt hash in constant time."""
    return pwd_context.verify(plain_password, hashed_password)


def dummy_verify() -> None:
    """Spend the same work as a real verify when there is no hash to check."""
    pwd_context.dummy_verify()


def utcnow() -> datetime:
    # Naive UTC; SQLite drops tzinfo on the way back anyway
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_datetime(dt: datetime) -> str:
    """
    Format datetime for display.
    """
    return dt.strftime("%Y-%m-%d %H:%M:%S")


def parse_positive_int(value) -> Optional[int]:
    """Return value as a positive int, or None when it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if 0 < value <= MAX_ID else None
    text = str(value).strip()
    if not _DIGITS.match(text):
        return None
    number = int(text)
    return number if 0 < number <= MAX_ID else None
