"""
Claim workflow and the per-user claim ledger.

Submitting a claim reserves a slot on the deal with a conditional increment,
then writes the claim. The (user, deal) unique index decides concurrent
duplicates; when the claim write fails the slot is released again, so the
deal counter never falls behind the claims that exist and never passes
`max_claims`.
"""

import logging
import secrets
import time
from typing import Optional

from pymongo.errors import DuplicateKeyError, PyMongoError

from access import Viewer, can_claim
from catalog import Page, find_deal
from database import object_id
from errors import DenialReason, InternalFault, NotAuthorized, NotFound, denial_error
from schemas import CLAIM_STATUSES, Claim as ClaimSchema, as_utc, utcnow
from validation import validate_claim_status, validate_pagination

logger = logging.getLogger(__name__)

MAX_CODE_ATTEMPTS = 3
RELEASE_ATTEMPTS = 5

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _base36(number: int) -> str:
    if number == 0:
        return "0"
    out = []
    while number:
        number, rem = divmod(number, 36)
        out.append(_BASE36[rem])
    return "".join(reversed(out))


def generate_code(deal_id: str) -> str:
    """Redemption code: deal id tail, millisecond timestamp, random suffix."""
    millis = int(time.time() * 1000)
    return f"{deal_id[-6:].upper()}-{_base36(millis)}-{secrets.token_hex(3).upper()}"


def public_claim(claim: dict, deal: Optional[dict] = None) -> dict:
    out = {
        "id": str(claim.get("_id")),
        "dealId": claim.get("deal_id"),
        "status": claim.get("status"),
        "code": claim.get("code"),
        "claimedAt": as_utc(claim.get("claimed_at")),
        "approvedAt": as_utc(claim.get("approved_at")),
    }
    if deal is not None:
        out["dealTitle"] = deal.get("title")
        out["dealCategory"] = deal.get("category")
    return out


# ---------- Submitting ----------

def _reserve_slot(db, deal: dict, now) -> bool:
    res = db["deal"].update_one(
        {
            "_id": deal["_id"],
            "current_claims": {"$lt": deal["max_claims"]},
            "expires_at": {"$gt": now},
        },
        {"$inc": {"current_claims": 1}, "$set": {"updated_at": now}},
    )
    return res.modified_count == 1


def _release_slot(db, deal: dict) -> None:
    for attempt in range(1, RELEASE_ATTEMPTS + 1):
        try:
            db["deal"].update_one(
                {"_id": deal["_id"], "current_claims": {"$gt": 0}},
                {"$inc": {"current_claims": -1}},
            )
            return
        except PyMongoError:
            logger.exception("Releasing claim slot on deal %s failed (attempt %d)", deal["_id"], attempt)
    logger.error("Gave up releasing claim slot on deal %s; counter is overstated by one", deal["_id"])


def _insert_claim(db, deal: dict, viewer: Viewer, now) -> dict:
    deal_id = str(deal["_id"])
    for _ in range(MAX_CODE_ATTEMPTS):
        doc = ClaimSchema(
            user_id=viewer.user_id,
            deal_id=deal_id,
            claimed_at=now,
            code=generate_code(deal_id),
        ).model_dump()
        doc.update({"created_at": now, "updated_at": now})
        try:
            db["claim"].insert_one(doc)
            return doc
        except DuplicateKeyError:
            if db["claim"].find_one({"user_id": viewer.user_id, "deal_id": deal_id}):
                raise
            logger.warning("Redemption code collision on deal %s, retrying", deal_id)
    raise InternalFault("Could not allocate a redemption code")


def submit_claim(db, deal_id: str, viewer: Viewer) -> dict:
    deal = find_deal(db, deal_id)
    existing = None
    if deal is not None:
        existing = db["claim"].find_one({"user_id": viewer.user_id, "deal_id": str(deal["_id"])})

    now = utcnow()
    reason = can_claim(deal, viewer, already_claimed=existing is not None, now=now)
    if reason is not None:
        logger.warning("Claim on deal %s by user %s denied: %s", deal_id, viewer.user_id, reason.value)
        raise denial_error(reason)

    if not _reserve_slot(db, deal, now):
        # Deal changed since it was read; report what stopped us now
        reason = can_claim(find_deal(db, deal_id), viewer, already_claimed=False, now=now)
        reason = reason or DenialReason.CAPACITY_REACHED
        logger.warning("Claim on deal %s by user %s lost the slot: %s", deal_id, viewer.user_id, reason.value)
        raise denial_error(reason)

    try:
        claim = _insert_claim(db, deal, viewer, now)
    except DuplicateKeyError:
        _release_slot(db, deal)
        logger.warning("Duplicate claim on deal %s by user %s", deal_id, viewer.user_id)
        raise denial_error(DenialReason.DUPLICATE_CLAIM)
    except Exception:
        _release_slot(db, deal)
        raise

    logger.info("User %s claimed deal %s", viewer.user_id, deal_id)
    return claim


# ---------- Ledger reads ----------

def list_claims(
    db,
    viewer: Viewer,
    status: Optional[str] = None,
    limit: Optional[int] = 20,
    skip: Optional[int] = 0,
) -> Page:
    limit, skip = validate_pagination(limit, skip)
    status = validate_claim_status(status)

    query = {"user_id": viewer.user_id}
    if status:
        query["status"] = status

    claims = list(db["claim"].find(query).sort([("claimed_at", -1), ("_id", -1)]).skip(skip).limit(limit))
    total = db["claim"].count_documents(query)

    deal_ids = [oid for oid in (object_id(c["deal_id"]) for c in claims) if oid is not None]
    deals = {str(d["_id"]): d for d in db["deal"].find({"_id": {"$in": deal_ids}})} if deal_ids else {}

    items = [public_claim(c, deals.get(c["deal_id"], {})) for c in claims]
    return Page(items=items, total=total, limit=limit, skip=skip)


def get_claim(db, claim_id: str, viewer: Viewer) -> dict:
    oid = object_id(claim_id)
    claim = db["claim"].find_one({"_id": oid}) if oid is not None else None
    if not claim:
        raise NotFound("Claim not found")
    if claim["user_id"] != viewer.user_id:
        raise NotAuthorized("Not authorized to view this claim")
    return public_claim(claim, find_deal(db, claim["deal_id"]) or {})


def claim_stats(db, viewer: Viewer) -> dict:
    claims = db["claim"]
    stats = {status: claims.count_documents({"user_id": viewer.user_id, "status": status}) for status in CLAIM_STATUSES}
    stats["total"] = claims.count_documents({"user_id": viewer.user_id})
    return stats
