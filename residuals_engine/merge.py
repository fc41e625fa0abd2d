"""
Field merge policy for lead-sheet updates to the merchant registry.

Each merchant profile field is merged with a named policy. The only policy in
use is truthy_wins: the incoming value replaces the stored one only when it is
non-empty. A lead row therefore cannot blank out a field that already has a
value; an empty cell means "no information", not "clear".
"""
from typing import Any, Callable, Dict, Mapping

from .canonical_fields import CanonicalField, MERCHANT_PROFILE_FIELDS

MergePolicy = Callable[[Any, Any], Any]


def truthy_wins(incoming: Any, existing: Any) -> Any:
    """Return incoming if it is truthy, otherwise keep existing."""
    return incoming if incoming else existing


MERCHANT_MERGE_POLICY: Dict[CanonicalField, MergePolicy] = {
    field: truthy_wins for field in MERCHANT_PROFILE_FIELDS
}


def merge_merchant_fields(
    incoming: Mapping[str, Any],
    existing: Mapping[str, Any],
    policy: Dict[CanonicalField, MergePolicy] = None
) -> Dict[str, Any]:
    """
    Merge incoming profile fields over an existing merchant.

    Only fields named in the policy are returned; identity fields (id, mid)
    are never touched.

    Example:
        >>> merge_merchant_fields({"dba": "", "status": "Active"},
        ...                       {"dba": "Joe's", "status": "Pending"})["dba"]
        "Joe's"
    """
    policy = policy or MERCHANT_MERGE_POLICY
    return {
        field.value: merge(incoming.get(field.value), existing.get(field.value))
        for field, merge in policy.items()
    }
