import logging
from datetime import timedelta
from typing import Optional, Tuple

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from access import Viewer
from config import settings
from database import object_id
from errors import Conflict, InvalidCredentials, InvalidToken, NotFound, ValidationError
from schemas import User as UserSchema, as_utc, utcnow
from security import create_session_token, generate_verification_token, hash_password, verify_password
from validation import normalize_email, validate_profile_update, validate_registration

logger = logging.getLogger(__name__)

# Compared against when the email is unknown, so both login failures cost the same
_UNKNOWN_USER_HASH = hash_password("startupvault-unknown-user")


def public_user(user: dict) -> dict:
    return {
        "id": str(user.get("_id")),
        "email": user.get("email"),
        "name": user.get("name"),
        "isVerified": bool(user.get("is_verified", False)),
        "company": user.get("company"),
        "role": user.get("role", "founder"),
        "createdAt": as_utc(user.get("created_at")),
    }


def register(db, email: str, password: str, name: str) -> dict:
    """
    Create an unverified user and issue their email verification token.

    Emails are compared lowercased, so `Foo@x.com` and `foo@x.com` are the
    same account.
    """
    email, password, name = validate_registration(email, password, name)
    users = db["user"]
    if users.find_one({"email": email}):
        raise Conflict("Email already registered")

    now = utcnow()
    token = generate_verification_token()
    user_doc = UserSchema(
        email=email,
        password_hash=hash_password(password),
        name=name,
        verification_token=token,
        verification_token_expiry=now + timedelta(hours=settings.VERIFICATION_TTL_HOURS),
    ).model_dump()
    user_doc.update({"created_at": now, "updated_at": now})
    try:
        res = users.insert_one(user_doc)
    except DuplicateKeyError:
        # Lost a race with a concurrent registration for the same email
        raise Conflict("Email already registered")

    logger.info("Registered user %s", res.inserted_id)
    return {"id": str(res.inserted_id), "email": email, "verification_token": token}


def verify_email(db, token: Optional[str]) -> dict:
    """Redeem a verification token. Tokens work once and only before they expire."""
    if not token or not isinstance(token, str):
        raise ValidationError("Verification token required")
    now = utcnow()
    user = db["user"].find_one_and_update(
        {"verification_token": token, "verification_token_expiry": {"$gt": now}},
        {
            "$set": {"is_verified": True, "updated_at": now},
            "$unset": {"verification_token": "", "verification_token_expiry": ""},
        },
        return_document=ReturnDocument.AFTER,
    )
    if not user:
        raise InvalidToken()
    logger.info("Verified email for user %s", user["_id"])
    return user


def authenticate(db, email: str, password: str) -> Tuple[str, dict]:
    user = db["user"].find_one({"email": normalize_email(email)})
    if not user:
        verify_password(password or "", _UNKNOWN_USER_HASH)
        logger.warning("Failed login attempt")
        raise InvalidCredentials()
    if not verify_password(password or "", user.get("password_hash", "")):
        logger.warning("Failed login attempt for user %s", user["_id"])
        raise InvalidCredentials()

    token = create_session_token(str(user["_id"]), user["email"], bool(user.get("is_verified", False)))
    logger.info("User %s logged in", user["_id"])
    return token, user


def find_user(db, user_id: str) -> Optional[dict]:
    oid = object_id(user_id)
    if oid is None:
        return None
    return db["user"].find_one({"_id": oid})


def load_viewer(db, user_id: str) -> Optional[Viewer]:
    """Build the request's viewer from the current user record, not from token claims."""
    user = find_user(db, user_id)
    if not user:
        return None
    return Viewer(user_id=str(user["_id"]), email=user["email"], is_verified=bool(user.get("is_verified", False)))


def get_profile(db, user_id: str) -> dict:
    user = find_user(db, user_id)
    if not user:
        raise NotFound("User not found")
    return user


def update_profile(
    db,
    user_id: str,
    name: Optional[str] = None,
    company: Optional[str] = None,
    role: Optional[str] = None,
) -> dict:
    user = get_profile(db, user_id)
    changes = validate_profile_update(name=name, company=company, role=role)
    if not changes:
        return user
    changes["updated_at"] = utcnow()
    return db["user"].find_one_and_update(
        {"_id": user["_id"]},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )
