"""
Audit issue generation and persistence.
"""
from typing import List, Dict, Any

from config import config as app_config
from .schemas import AuditIssue, Priority


def generate_issues(issue_dicts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Complete rule output into AuditIssue payloads.

    Adds the configured priority for the issue type and the default status.

    Args:
        issue_dicts: Issue dicts from rule evaluation

    Returns:
        Payloads ready for storage.create_audit_issue
    """
    return [
        {
            "merchant_id": issue["merchant_id"],
            "month": issue["month"],
            "issue_type": issue["issue_type"],
            "description": issue["description"],
            "priority": Priority(app_config.audit.get_priority(issue["issue_type"])).value,
            "status": app_config.audit.default_status,
        }
        for issue in issue_dicts
    ]


def record_issues(storage, payloads: List[Dict[str, Any]]) -> List[AuditIssue]:
    """Persist issue payloads, one create call each."""
    return [storage.create_audit_issue(payload) for payload in payloads]
