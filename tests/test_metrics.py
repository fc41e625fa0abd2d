from residuals_engine.metrics import calculate_monthly_stats


def test_empty_month(storage):
    assert calculate_monthly_stats(storage, "2024-03") == {
        "totalMids": 0,
        "totalRevenue": 0.0,
        "pendingAssignments": 0,
        "auditIssues": 0,
    }


def test_monthly_stats(storage):
    a = storage.create_merchant({"mid": "11111111"})
    b = storage.create_merchant({"mid": "22222222"})
    storage.create_monthly_data({"merchant_id": a.id, "processor_id": 1, "month": "2024-03", "net": "100.50"})
    storage.create_monthly_data({"merchant_id": a.id, "processor_id": 2, "month": "2024-03", "net": "-20.25"})
    storage.create_monthly_data({"merchant_id": b.id, "processor_id": 1, "month": "2024-03", "net": "10"})
    storage.create_monthly_data({"merchant_id": b.id, "processor_id": 1, "month": "2024-04", "net": "999"})
    storage.create_assignment({"merchant_id": a.id, "month": "2024-03", "role_id": 1, "percentage": "100"})
    issue = storage.create_audit_issue({
        "merchant_id": b.id, "month": "2024-03", "issue_type": "missing_assignment",
        "description": "No role assignments configured", "priority": "medium",
    })
    storage.create_audit_issue({
        "merchant_id": b.id, "month": "2024-03", "issue_type": "unmatched_mid",
        "description": "x", "priority": "low",
    })
    storage.update_audit_issue(issue.id, {"status": "ignored"})

    stats = calculate_monthly_stats(storage, "2024-03")

    assert stats["totalMids"] == 2
    assert stats["totalRevenue"] == 90.25
    assert stats["pendingAssignments"] == 1
    assert stats["auditIssues"] == 1
