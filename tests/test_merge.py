from residuals_engine.merge import truthy_wins, merge_merchant_fields, MERCHANT_MERGE_POLICY
from residuals_engine.canonical_fields import MERCHANT_PROFILE_FIELDS


def test_truthy_wins():
    assert truthy_wins("New", "Old") == "New"
    assert truthy_wins("", "Old") == "Old"
    assert truthy_wins(None, "Old") == "Old"
    assert truthy_wins(None, None) is None


def test_policy_covers_every_profile_field():
    assert set(MERCHANT_MERGE_POLICY) == set(MERCHANT_PROFILE_FIELDS)


def test_blank_incoming_cannot_clear_existing():
    existing = {"id": 1, "mid": "12345678", "dba": "Joe's", "status": "Pending", "legal_name": None}
    incoming = {"mid": "12345678", "dba": None, "status": "Active", "legal_name": "Joe LLC"}

    merged = merge_merchant_fields(incoming, existing)

    assert merged["dba"] == "Joe's"
    assert merged["status"] == "Active"
    assert merged["legal_name"] == "Joe LLC"
    assert "id" not in merged
    assert "mid" not in merged
