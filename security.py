import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from config import settings

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 200_000


# ---------- Passwords ----------

def hash_password(password: str, salt: Optional[str] = None) -> str:
    if salt is None:
        salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS).hex()
    return f"{salt}${digest}"


def verify_password(password: str, stored_hash: str) -> bool:
    try:
        salt, _ = stored_hash.split("$")
    except ValueError:
        return False
    return hmac.compare_digest(hash_password(password, salt), stored_hash)


def generate_verification_token() -> str:
    return secrets.token_hex(32)


# ---------- Session tokens ----------

@dataclass(frozen=True)
class SessionClaims:
    user_id: str


def create_session_token(user_id: str, email: str, is_verified: bool, expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign a stateless session token.

    The verification flag is informational for the client; authorization
    decisions re-read it from the user record.
    """
    if expires_delta is None:
        expires_delta = timedelta(days=settings.SESSION_TTL_DAYS)
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "sub": user_id,
        "email": email,
        "isVerified": is_verified,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_session_token(token: str) -> Optional[SessionClaims]:
    """Return the token's claims, or None when it is malformed, forged or expired."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.debug("Rejected session token: %s", e)
        return None
    user_id = payload.get("sub")
    if not user_id:
        return None
    return SessionClaims(user_id=user_id)


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    return authorization.split(" ", 1)[1].strip() or None
