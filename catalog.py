import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from access import Viewer, is_locked, visible_access_levels
from database import object_id
from errors import NotFound
from schemas import Deal as DealSchema, as_utc, utcnow
from validation import validate_access_filter, validate_category_filter, validate_deal, validate_pagination

logger = logging.getLogger(__name__)

ACTIVE_CLAIM_STATUSES = ["pending", "approved"]


@dataclass
class Page:
    items: List[dict] = field(default_factory=list)
    total: int = 0
    limit: int = 20
    skip: int = 0


def public_deal(deal: dict, viewer: Optional[Viewer], claimed: bool = False) -> dict:
    partner = deal.get("partner") or {}
    return {
        "id": str(deal.get("_id")),
        "title": deal.get("title"),
        "description": deal.get("description"),
        "category": deal.get("category"),
        "accessLevel": deal.get("access_level", "public"),
        "discount": deal.get("discount"),
        "discountType": deal.get("discount_type"),
        "maxClaims": deal.get("max_claims"),
        "currentClaims": deal.get("current_claims", 0),
        "partner": {
            "name": partner.get("name"),
            "logo": partner.get("logo"),
            "description": partner.get("description"),
            "website": partner.get("website"),
        },
        "terms": deal.get("terms"),
        "expiresAt": as_utc(deal.get("expires_at")),
        "createdAt": as_utc(deal.get("created_at")),
        "isClaimed": claimed,
        "isLocked": is_locked(deal, viewer),
    }


def create_deal(db, data: dict) -> dict:
    cleaned = validate_deal(data)
    doc = DealSchema(**cleaned).model_dump()
    now = utcnow()
    doc.update({"created_at": now, "updated_at": now})
    res = db["deal"].insert_one(doc)
    logger.info("Created deal %s (%s)", res.inserted_id, doc["title"])
    return doc


def find_deal(db, deal_id: str) -> Optional[dict]:
    oid = object_id(deal_id)
    if oid is None:
        return None
    return db["deal"].find_one({"_id": oid})


def _claimed_deal_ids(db, viewer: Optional[Viewer]) -> set:
    if viewer is None:
        return set()
    claims = db["claim"].find(
        {"user_id": viewer.user_id, "status": {"$in": ACTIVE_CLAIM_STATUSES}},
        {"deal_id": 1},
    )
    return {c["deal_id"] for c in claims}


def list_deals(
    db,
    viewer: Optional[Viewer],
    search: Optional[str] = None,
    category: Optional[str] = None,
    access_level: Optional[str] = "all",
    limit: Optional[int] = 20,
    skip: Optional[int] = 0,
) -> Page:
    """
    List unexpired deals, newest first.

    The requested access level only narrows what the viewer may already see;
    an unverified viewer asking for `verified` deals gets an empty page.
    """
    limit, skip = validate_pagination(limit, skip)
    access_level = validate_access_filter(access_level)
    category = validate_category_filter(category)

    tiers = visible_access_levels(viewer)
    if access_level != "all":
        tiers = [t for t in tiers if t == access_level]
    if not tiers:
        return Page(items=[], total=0, limit=limit, skip=skip)

    query = {"expires_at": {"$gt": utcnow()}, "access_level": {"$in": tiers}}
    if category:
        query["category"] = category
    search = (search or "").strip()
    if search:
        pattern = {"$regex": re.escape(search), "$options": "i"}
        query["$or"] = [{"title": pattern}, {"description": pattern}, {"partner.name": pattern}]

    deals = list(
        db["deal"].find(query).sort([("created_at", -1), ("_id", -1)]).skip(skip).limit(limit)
    )
    total = db["deal"].count_documents(query)
    claimed = _claimed_deal_ids(db, viewer)

    items = [public_deal(d, viewer, claimed=str(d["_id"]) in claimed) for d in deals]
    return Page(items=items, total=total, limit=limit, skip=skip)


def get_deal(db, deal_id: str, viewer: Optional[Viewer]) -> dict:
    deal = find_deal(db, deal_id)
    if not deal:
        raise NotFound("Deal not found")

    claim = None
    if viewer is not None:
        claim = db["claim"].find_one({"user_id": viewer.user_id, "deal_id": str(deal["_id"])})

    result = public_deal(
        deal,
        viewer,
        claimed=claim is not None and claim.get("status") in ACTIVE_CLAIM_STATUSES,
    )
    result["userClaim"] = {"status": claim["status"], "code": claim.get("code")} if claim else None
    return result
