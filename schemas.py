"""
Database Schemas for StartupVault

Each Pydantic model maps to a MongoDB collection with the model name lowercased.
- User -> user
- Deal -> deal
- Claim -> claim
"""

from pydantic import BaseModel, Field, EmailStr
from typing import Optional, Literal
from datetime import datetime, timezone

Category = Literal[
    "hosting",
    "analytics",
    "payment",
    "communication",
    "productivity",
    "design",
    "development",
    "marketing",
    "other",
]
AccessLevel = Literal["public", "verified"]
DiscountType = Literal["percentage", "flat"]
ClaimStatus = Literal["pending", "approved", "rejected", "expired"]
UserRole = Literal["founder", "cto", "team_member", "investor", "other"]

CATEGORIES = Category.__args__
ACCESS_LEVELS = AccessLevel.__args__
DISCOUNT_TYPES = DiscountType.__args__
CLAIM_STATUSES = ClaimStatus.__args__
USER_ROLES = UserRole.__args__


def utcnow() -> datetime:
    """Current time as naive UTC, the form stored documents use."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Mark a stored naive UTC time as UTC so responses carry an offset."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class User(BaseModel):
    email: EmailStr
    password_hash: str = Field(..., description="PBKDF2-SHA256 hash of password with salt")
    name: str
    is_verified: bool = False
    verification_token: Optional[str] = None
    verification_token_expiry: Optional[datetime] = None
    company: Optional[str] = None
    role: UserRole = "founder"


class Partner(BaseModel):
    name: str
    logo: str
    description: str
    website: str


class Deal(BaseModel):
    title: str
    description: str
    category: Category
    access_level: AccessLevel = "public"
    discount: float = Field(..., ge=1)
    discount_type: DiscountType
    max_claims: int = Field(..., ge=1)
    current_claims: int = Field(0, ge=0)
    partner: Partner
    terms: str
    expires_at: datetime


class Claim(BaseModel):
    user_id: str = Field(..., description="Owner user id as string")
    deal_id: str = Field(..., description="Claimed deal id as string")
    status: ClaimStatus = "pending"
    claimed_at: datetime
    approved_at: Optional[datetime] = None
    code: str
