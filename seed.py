"""
Load the sample deal catalog.

    python seed.py           # insert deals whose titles are not present yet
    python seed.py --reset   # drop every deal first
"""

import argparse
import logging
from datetime import timedelta

from catalog import create_deal
from database import ensure_indexes, get_db
from schemas import utcnow

logger = logging.getLogger(__name__)


def _placeholder_logo(name: str) -> str:
    return f"https://via.placeholder.com/100?text={name}"


def sample_deals():
    now = utcnow()
    return [
        {
            "title": "Vercel Pro - 50% Off Annual",
            "description": "Deploy your Next.js apps with edge functions and a global CDN. 50% off the Pro tier for 1 year.",
            "category": "hosting",
            "access_level": "public",
            "discount": 50,
            "discount_type": "percentage",
            "max_claims": 150,
            "partner": {
                "name": "Vercel",
                "logo": _placeholder_logo("Vercel"),
                "description": "The platform for frontend developers",
                "website": "https://vercel.com",
            },
            "terms": "Valid for 12 months. Apply code at checkout. Not combinable with other offers.",
            "expires_at": now + timedelta(days=180),
        },
        {
            "title": "Stripe - $500 Credit",
            "description": "Accept payments globally. New businesses get $500 in processing credits.",
            "category": "payment",
            "access_level": "verified",
            "discount": 500,
            "discount_type": "flat",
            "max_claims": 50,
            "partner": {
                "name": "Stripe",
                "logo": _placeholder_logo("Stripe"),
                "description": "Payment processing for internet businesses",
                "website": "https://stripe.com",
            },
            "terms": "Valid for 12 months. Credits applied automatically. New Stripe accounts only.",
            "expires_at": now + timedelta(days=365),
        },
        {
            "title": "Mixpanel - 3 Months Free",
            "description": "Product analytics for user behavior. 3 months free of the Plus tier.",
            "category": "analytics",
            "access_level": "verified",
            "discount": 3,
            "discount_type": "flat",
            "max_claims": 100,
            "partner": {
                "name": "Mixpanel",
                "logo": _placeholder_logo("Mixpanel"),
                "description": "Advanced product analytics",
                "website": "https://mixpanel.com",
            },
            "terms": "3 free months of Plus tier. Converts to paid after the trial period.",
            "expires_at": now + timedelta(days=90),
        },
        {
            "title": "Slack Pro - 40% Off Annual",
            "description": "Team communication with unlimited message history, advanced security and integrations.",
            "category": "communication",
            "access_level": "public",
            "discount": 40,
            "discount_type": "percentage",
            "max_claims": 200,
            "partner": {
                "name": "Slack",
                "logo": _placeholder_logo("Slack"),
                "description": "Where work happens",
                "website": "https://slack.com",
            },
            "terms": "40% off the annual Pro plan. New workspaces only.",
            "expires_at": now + timedelta(days=120),
        },
        {
            "title": "Notion Plus - 6 Months Free",
            "description": "All-in-one workspace for docs, wikis and projects. 6 months of Plus for your team.",
            "category": "productivity",
            "access_level": "public",
            "discount": 100,
            "discount_type": "percentage",
            "max_claims": 300,
            "partner": {
                "name": "Notion",
                "logo": _placeholder_logo("Notion"),
                "description": "The connected workspace",
                "website": "https://notion.so",
            },
            "terms": "Up to 6 months free on the Plus plan for new workspaces.",
            "expires_at": now + timedelta(days=150),
        },
        {
            "title": "Figma Professional - 30% Off",
            "description": "Collaborative interface design. 30% off Professional seats for your first year.",
            "category": "design",
            "access_level": "verified",
            "discount": 30,
            "discount_type": "percentage",
            "max_claims": 80,
            "partner": {
                "name": "Figma",
                "logo": _placeholder_logo("Figma"),
                "description": "Design and prototype together",
                "website": "https://figma.com",
            },
            "terms": "Applies to annual Professional plans. Verified founders only.",
            "expires_at": now + timedelta(days=200),
        },
    ]


def seed_deals(db, reset: bool = False) -> int:
    """Insert sample deals that are not already present; returns how many were added."""
    if reset:
        removed = db["deal"].delete_many({}).deleted_count
        logger.info("Removed %d existing deals", removed)
    added = 0
    for deal in sample_deals():
        if db["deal"].find_one({"title": deal["title"]}):
            continue
        create_deal(db, deal)
        added += 1
    logger.info("Seeded %d deals", added)
    return added


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Seed the StartupVault deal catalog")
    parser.add_argument("--reset", action="store_true", help="delete existing deals first")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    db = get_db()
    ensure_indexes(db)
    seed_deals(db, reset=args.reset)


if __name__ == "__main__":
    main()
