from datetime import datetime

import pytest

from errors import ValidationError
from validation import (
    validate_access_filter,
    validate_category_filter,
    validate_claim_status,
    validate_deal,
    validate_email,
    validate_pagination,
    validate_profile_update,
    validate_registration,
)


def _deal(**overrides):
    data = {
        "title": "Slack Pro",
        "description": "Team chat",
        "category": "communication",
        "discount": 40,
        "discount_type": "percentage",
        "max_claims": 5,
        "partner": {"name": "Slack", "logo": "logo.png", "description": "Chat", "website": "https://slack.com"},
        "terms": "New workspaces only",
        "expires_at": datetime(2030, 1, 1),
    }
    data.update(overrides)
    return data


def test_email_is_trimmed_and_lowercased():
    assert validate_email("  Foo@X.com ") == "foo@x.com"


@pytest.mark.parametrize("email", ["", None, "not-an-email", "a@", "@startup.io"])
def test_invalid_emails_rejected(email):
    with pytest.raises(ValidationError):
        validate_email(email)


def test_registration_rules():
    assert validate_registration("A@startup.io", "123456", "  Ada ") == ("a@startup.io", "123456", "Ada")
    with pytest.raises(ValidationError):
        validate_registration("a@startup.io", "12345", "Ada")
    with pytest.raises(ValidationError):
        validate_registration("a@startup.io", "123456", "   ")


def test_profile_update_keeps_only_supplied_fields():
    assert validate_profile_update(company=" Acme ") == {"company": "Acme"}
    assert validate_profile_update(role="cto", name="Grace") == {"role": "cto", "name": "Grace"}
    assert validate_profile_update() == {}


def test_blank_company_is_ignored():
    assert validate_profile_update(company="") == {}
    assert validate_profile_update(company="   ", role="cto") == {"role": "cto"}


def test_profile_update_rejects_unknown_role_and_blank_name():
    with pytest.raises(ValidationError):
        validate_profile_update(role="ceo")
    with pytest.raises(ValidationError):
        validate_profile_update(name="")


def test_pagination_defaults_and_bounds():
    assert validate_pagination(None, None) == (20, 0)
    assert validate_pagination(100, 40) == (100, 40)
    for limit, skip in [(0, 0), (101, 0), (10, -1)]:
        with pytest.raises(ValidationError):
            validate_pagination(limit, skip)


def test_list_filters():
    assert validate_access_filter(None) == "all"
    assert validate_access_filter("verified") == "verified"
    with pytest.raises(ValidationError):
        validate_access_filter("both")
    assert validate_category_filter("  ") is None
    assert validate_category_filter("design") == "design"
    with pytest.raises(ValidationError):
        validate_category_filter("crypto")
    assert validate_claim_status(None) is None
    with pytest.raises(ValidationError):
        validate_claim_status("done")


def test_valid_deal_gets_defaults():
    cleaned = validate_deal(_deal())
    assert cleaned["access_level"] == "public"
    assert cleaned["current_claims"] == 0


@pytest.mark.parametrize(
    "overrides",
    [
        {"title": "  "},
        {"category": "crypto"},
        {"access_level": "vip"},
        {"discount_type": "bogo"},
        {"discount": 0},
        {"discount": 150},
        {"max_claims": 0},
        {"max_claims": True},
        {"current_claims": 6},
        {"current_claims": True},
        {"partner": {"name": "Slack"}},
        {"expires_at": "2030-01-01"},
    ],
)
def test_invalid_deals_rejected(overrides):
    with pytest.raises(ValidationError):
        validate_deal(_deal(**overrides))


def test_flat_discount_may_exceed_one_hundred():
    assert validate_deal(_deal(discount=500, discount_type="flat"))["discount"] == 500
