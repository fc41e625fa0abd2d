import io

from conftest import PROCESSOR_CSV

MONTH = "2024-03"


def _upload(client, text, upload_type="processor", processor_id="1", filename="extract.csv"):
    data = {
        "type": upload_type,
        "file": (io.BytesIO(text.encode("utf-8")), filename),
    }
    if processor_id is not None:
        data["processorId"] = processor_id
    return client.post(f"/api/upload/{MONTH}", data=data, content_type="multipart/form-data")


def test_processor_upload(client, storage):
    response = _upload(client, PROCESSOR_CSV)

    assert response.status_code == 200
    body = response.get_json()
    assert body["success"] is True
    assert body["result"] == {"matched": 1, "created": 1, "updated": 0, "errors": []}

    [upload] = storage.get_file_uploads(MONTH)
    assert upload.id == body["fileUploadId"]
    assert upload.status == "completed"
    assert upload.records_processed == 2
    assert upload.processor_id == 1


def test_lead_sheet_upload(client, storage):
    text = "Existing MID,Legal Name\n12345678,Acme LLC\n"
    response = _upload(client, text, upload_type="lead_sheet", processor_id=None)

    assert response.status_code == 200
    assert response.get_json()["result"]["created"] == 1
    assert storage.get_merchant_by_mid("12345678").legal_name == "Acme LLC"


def test_upload_without_header_is_rejected(client, storage):
    response = _upload(client, "Name,Amount\nFoo,1\n")

    assert response.status_code == 400
    assert "Could not find header row" in response.get_json()["error"]
    [upload] = storage.get_file_uploads(MONTH)
    assert upload.status == "failed"
    assert "Could not find header row" in upload.error_message


def test_upload_parameter_validation(client):
    assert _upload(client, PROCESSOR_CSV, upload_type="bogus").status_code == 400
    assert _upload(client, PROCESSOR_CSV, processor_id=None).status_code == 400
    assert _upload(client, PROCESSOR_CSV, processor_id="abc").status_code == 400
    assert client.post(f"/api/upload/{MONTH}", data={"type": "processor"}).status_code == 400


def test_file_upload_history(client):
    _upload(client, PROCESSOR_CSV)
    _upload(client, PROCESSOR_CSV)

    uploads = client.get(f"/api/file-uploads/{MONTH}").get_json()
    assert [u["status"] for u in uploads] == ["completed", "completed"]
    assert client.get("/api/file-uploads/2024-04").get_json() == []


def test_audit_issue_listing_and_update(client):
    _upload(client, PROCESSOR_CSV)

    issues = client.get(f"/api/audit-issues/{MONTH}").get_json()
    assert [i["issue_type"] for i in issues] == ["missing_assignment"]

    response = client.put(f"/api/audit-issues/{issues[0]['id']}", json={"status": "resolved"})
    assert response.status_code == 200
    assert response.get_json()["status"] == "resolved"

    assert client.get(f"/api/audit-issues/{MONTH}?status=open").get_json() == []
    assert len(client.get(f"/api/audit-issues/{MONTH}?status=resolved").get_json()) == 1
    assert client.get(f"/api/audit-issues/{MONTH}?status=bogus").status_code == 400


def test_audit_issue_update_errors(client):
    assert client.put("/api/audit-issues/99", json={"status": "resolved"}).status_code == 404
    assert client.put("/api/audit-issues/99", json={"status": "closed"}).status_code == 400


def test_run_audit_and_stats(client, storage):
    _upload(client, PROCESSOR_CSV)
    storage.create_merchant({"mid": "99999999"})

    summary = client.post(f"/api/audit/run/{MONTH}").get_json()
    assert summary == {"splitErrors": 0, "missingAssignments": 1, "unmatchedMids": 1}

    stats = client.get(f"/api/stats/{MONTH}").get_json()
    assert stats["totalMids"] == 1
    assert stats["totalRevenue"] == -200.0
    assert stats["pendingAssignments"] == 1
    assert stats["auditIssues"] == 1
