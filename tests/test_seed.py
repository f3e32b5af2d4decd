from catalog import list_deals
from seed import sample_deals, seed_deals


def test_seed_is_idempotent(db):
    expected = len(sample_deals())
    assert seed_deals(db) == expected
    assert seed_deals(db) == 0
    assert db["deal"].count_documents({}) == expected


def test_reset_reloads_catalog(db):
    seed_deals(db)
    db["deal"].update_many({}, {"$set": {"current_claims": 1}})
    assert seed_deals(db, reset=True) == len(sample_deals())
    assert db["deal"].count_documents({"current_claims": 0}) == len(sample_deals())


def test_seeded_catalog_has_both_tiers(db):
    seed_deals(db)
    public_only = list_deals(db, None)
    tiers = {d["access_level"] for d in db["deal"].find({})}
    assert tiers == {"public", "verified"}
    assert all(d["accessLevel"] == "public" for d in public_only.items)
