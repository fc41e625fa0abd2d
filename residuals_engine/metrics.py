"""
Monthly dashboard statistics.
"""
import pandas as pd
from typing import Dict, Any

from .schemas import IssueStatus


def calculate_monthly_stats(storage, month: str) -> Dict[str, Any]:
    """
    Calculate headline numbers for one month.

    Args:
        storage: MerchantStore
        month: Month key, e.g. "2024-03"

    Returns:
        Dictionary with totalMids, totalRevenue, pendingAssignments, auditIssues
    """
    monthly = pd.DataFrame([entry.to_dict() for entry in storage.get_monthly_data(month)])
    if monthly.empty:
        return {
            "totalMids": 0,
            "totalRevenue": 0.0,
            "pendingAssignments": 0,
            "auditIssues": len(storage.get_audit_issues(month, status=IssueStatus.OPEN.value)),
        }

    # Net is stored as normalized text; anything unparseable counts as zero
    net = pd.to_numeric(monthly["net"], errors="coerce").fillna(0)
    merchant_ids = monthly["merchant_id"].unique()

    pending = sum(
        1 for merchant_id in merchant_ids
        if not storage.get_assignments(int(merchant_id), month)
    )

    return {
        "totalMids": int(len(merchant_ids)),
        "totalRevenue": round(float(net.sum()), 2),
        "pendingAssignments": pending,
        "auditIssues": len(storage.get_audit_issues(month, status=IssueStatus.OPEN.value)),
    }
