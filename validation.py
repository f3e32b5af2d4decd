"""
Input validation for users, deals and list queries.

These checks run before anything touches storage, so the rules hold no matter
what indexes or schema enforcement the database has. Each returns the cleaned
value or raises `errors.ValidationError`.
"""

from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from email_validator import EmailNotValidError, validate_email as _check_email

from errors import ValidationError
from schemas import ACCESS_LEVELS, CATEGORIES, CLAIM_STATUSES, DISCOUNT_TYPES, USER_ROLES

MIN_PASSWORD_LENGTH = 6
DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def validate_email(email: Optional[str]) -> str:
    value = normalize_email(email)
    if not value:
        raise ValidationError("Validation error: email is required")
    try:
        _check_email(value, check_deliverability=False)
    except EmailNotValidError:
        raise ValidationError("Validation error: invalid email address")
    return value


def validate_password(password: Optional[str]) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Validation error: password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    return password


def validate_name(name: Optional[str]) -> str:
    value = (name or "").strip()
    if not value:
        raise ValidationError("Validation error: name is required")
    return value


def validate_registration(email: Optional[str], password: Optional[str], name: Optional[str]) -> Tuple[str, str, str]:
    return validate_email(email), validate_password(password), validate_name(name)


def validate_profile_update(
    name: Optional[str] = None,
    company: Optional[str] = None,
    role: Optional[str] = None,
) -> Dict[str, Any]:
    """Return only the fields that were supplied, cleaned."""
    changes: Dict[str, Any] = {}
    if name is not None:
        changes["name"] = validate_name(name)
    # Blank company leaves the stored value alone
    if company is not None and company.strip():
        changes["company"] = company.strip()
    if role is not None:
        if role not in USER_ROLES:
            raise ValidationError(f"Validation error: role must be one of {', '.join(USER_ROLES)}")
        changes["role"] = role
    return changes


def validate_pagination(limit: Optional[int], skip: Optional[int]) -> Tuple[int, int]:
    limit = DEFAULT_LIMIT if limit is None else limit
    skip = 0 if skip is None else skip
    if not 1 <= limit <= MAX_LIMIT:
        raise ValidationError(f"Invalid query parameters: limit must be between 1 and {MAX_LIMIT}")
    if skip < 0:
        raise ValidationError("Invalid query parameters: skip must be non-negative")
    return limit, skip


def validate_access_filter(access_level: Optional[str]) -> str:
    value = access_level or "all"
    if value != "all" and value not in ACCESS_LEVELS:
        raise ValidationError("Invalid query parameters: accessLevel must be public, verified or all")
    return value


def validate_category_filter(category: Optional[str]) -> Optional[str]:
    value = (category or "").strip()
    if not value:
        return None
    if value not in CATEGORIES:
        raise ValidationError(f"Invalid query parameters: unknown category '{value}'")
    return value


def validate_claim_status(status: Optional[str]) -> Optional[str]:
    if status is None:
        return None
    if status not in CLAIM_STATUSES:
        raise ValidationError("Invalid query parameters: unknown claim status")
    return status


def validate_deal(data: Dict[str, Any]) -> Dict[str, Any]:
    cleaned = dict(data)
    for field in ("title", "description", "terms"):
        value = cleaned.get(field)
        if isinstance(value, str):
            value = value.strip()
        if not value:
            raise ValidationError(f"Validation error: {field} is required")
        cleaned[field] = value

    if cleaned.get("category") not in CATEGORIES:
        raise ValidationError("Validation error: unknown category")
    cleaned.setdefault("access_level", "public")
    if cleaned["access_level"] not in ACCESS_LEVELS:
        raise ValidationError("Validation error: access level must be public or verified")
    if cleaned.get("discount_type") not in DISCOUNT_TYPES:
        raise ValidationError("Validation error: discount type must be percentage or flat")

    discount = cleaned.get("discount")
    if not isinstance(discount, (int, float)) or isinstance(discount, bool) or discount < 1:
        raise ValidationError("Validation error: discount must be at least 1")
    if cleaned["discount_type"] == "percentage" and discount > 100:
        raise ValidationError("Validation error: percentage discount cannot exceed 100")

    max_claims = cleaned.get("max_claims")
    if not isinstance(max_claims, int) or isinstance(max_claims, bool) or max_claims < 1:
        raise ValidationError("Validation error: max claims must be a positive integer")
    current = cleaned.setdefault("current_claims", 0)
    if not isinstance(current, int) or isinstance(current, bool) or current < 0 or current > max_claims:
        raise ValidationError("Validation error: current claims must be between 0 and max claims")

    partner = cleaned.get("partner") or {}
    for field in ("name", "logo", "description", "website"):
        if not partner.get(field):
            raise ValidationError(f"Validation error: partner {field} is required")

    if not isinstance(cleaned.get("expires_at"), datetime):
        raise ValidationError("Validation error: expiry date is required")
    return cleaned
