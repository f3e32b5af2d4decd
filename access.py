"""
Deal access rules: who may see a deal and who may claim it.

Nothing here reads or writes storage. Callers pass in freshly loaded deal and
viewer state; a viewer of None is an anonymous caller.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from errors import DenialReason
from schemas import utcnow


@dataclass(frozen=True)
class Viewer:
    user_id: str
    email: str
    is_verified: bool


def _as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def is_verified(viewer: Optional[Viewer]) -> bool:
    return viewer is not None and viewer.is_verified


def visible_access_levels(viewer: Optional[Viewer]) -> List[str]:
    if is_verified(viewer):
        return ["public", "verified"]
    return ["public"]


def can_view(deal: dict, viewer: Optional[Viewer]) -> bool:
    return deal.get("access_level", "public") in visible_access_levels(viewer)


def is_locked(deal: dict, viewer: Optional[Viewer]) -> bool:
    return not can_view(deal, viewer)


def is_expired(deal: dict, now: Optional[datetime] = None) -> bool:
    now = _as_naive_utc(now or utcnow())
    return now >= _as_naive_utc(deal["expires_at"])


def has_capacity(deal: dict) -> bool:
    return deal.get("current_claims", 0) < deal["max_claims"]


def can_claim(
    deal: Optional[dict],
    viewer: Viewer,
    already_claimed: bool,
    now: Optional[datetime] = None,
) -> Optional[DenialReason]:
    """Return None if the viewer may claim the deal, otherwise the first reason they may not."""
    if deal is None:
        return DenialReason.DEAL_NOT_FOUND
    if not can_view(deal, viewer):
        return DenialReason.NOT_VERIFIED
    if already_claimed:
        return DenialReason.ALREADY_CLAIMED
    if is_expired(deal, now):
        return DenialReason.EXPIRED
    if not has_capacity(deal):
        return DenialReason.CAPACITY_REACHED
    return None
