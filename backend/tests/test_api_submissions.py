# tests/test_api_submissions.py
# Write endpoints: create-or-replace documents keyed by (assembly, period).
import pytest


def _sunday_rows():
    return [
        {"week": "Week 1", "tithes": 1000, "offerings": 500, "attendance": 80, "sbsAttendance": 40},
        {"week": "Week 2", "tithes": 2000, "offerings": 1500, "attendance": 90, "visitors": 5},
    ]


def test_sunday_report_saves_with_derived_totals(client, post_report):
    r = post_report("Emmanuel", "November-2025", _sunday_rows())
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["success"] is True
    assert body["created"] is True
    assert [row["total"] for row in body["data"]["records"]] == [1500, 3500]

    r = client.get("/api/sunday-service-reports", params={"assembly": "emmanuel", "month": "November-2025"})
    assert r.status_code == 200
    doc = r.json()
    assert doc["assembly"] == "EMMANUEL"
    assert doc["serviceType"] == "sunday"
    assert sum(row["total"] for row in doc["records"]) == 5000
    assert doc["records"][0]["date"] == "2025-11-02"


def test_resubmission_replaces_instead_of_duplicating(client, post_report):
    assert post_report("ZION", "November-2025", _sunday_rows()).json()["created"] is True

    r = post_report("  zion ", "november-2025", [{"week": "Week 1", "tithes": 700}], submitted_by="Pastor")
    assert r.status_code == 200, r.text
    assert r.json()["created"] is False
    assert "updated" in r.json()["message"]

    r = client.get("/api/admin/reports/detailed", params={"assembly": "ZION"})
    reports = r.json()["data"]["reports"]
    assert len(reports) == 1
    assert reports[0]["submittedBy"] == "Pastor"
    assert reports[0]["totalIncome"] == 700


def test_empty_rows_are_rejected(post_report):
    r = post_report("ZION", "November-2025", [])
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "No valid records to save"}

    r = post_report("ZION", "November-2025", [{"week": "Week 1", "tithes": 0, "offerings": "0"}])
    assert r.status_code == 400


def test_missing_fields_are_reported(client):
    r = client.post("/api/sunday-service-reports", json={"assembly": "ZION", "records": []})
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["error"].startswith("Missing required fields:")
    assert "submittedBy" in body["error"]
    assert "month" in body["error"]


def test_midweek_and_special_are_stored_separately(client, post_report):
    post_report("ZION", "November-2025", _sunday_rows())
    r = post_report(
        "ZION", "November-2025", [{"day": "tuesday", "attendance": 30, "offering": 120}], service_type="midweek"
    )
    assert r.status_code == 200, r.text
    assert r.json()["created"] is True

    r = client.get(
        "/api/sunday-service-reports",
        params={"assembly": "ZION", "month": "November-2025", "serviceType": "midweek"},
    )
    assert r.json()["records"][0]["offering"] == 120

    r = client.get(
        "/api/sunday-service-reports",
        params={"assembly": "ZION", "month": "November-2025", "serviceType": "special"},
    )
    assert r.json()["id"] is None
    assert r.json()["records"] == []


def test_absent_report_reads_as_empty_document(client):
    r = client.get("/api/sunday-service-reports", params={"assembly": "victory", "month": "March-2024"})
    assert r.status_code == 200
    doc = r.json()
    assert doc["assembly"] == "VICTORY"
    assert doc["month"] == "March-2024"
    assert doc["records"] == []


# ---------- tithes ----------
def _tithe_payload(assembly="ZION", month="November-2025"):
    return {
        "assembly": assembly,
        "submittedBy": "Secretary",
        "month": month,
        "records": [
            {"name": "Ada", "titheNumber": "Z1", "week1": 500, "week2": 500},
            {"name": "Bola", "titheNumber": "Z2"},
            {"name": "", "titheNumber": ""},
        ],
    }


def test_tithes_save_list_and_assembly_view(client):
    r = client.post("/api/tithes", json=_tithe_payload())
    assert r.status_code == 200, r.text
    assert len(r.json()["data"]["records"]) == 2

    r = client.get("/api/tithes", params={"assembly": "zion"})
    assert r.json()["count"] == 1

    r = client.get("/api/tithes/zion", params={"month": "Nov", "year": "2025"})
    body = r.json()
    assert body["tithe"]["month"] == "November-2025"
    assert [m["name"] for m in body["tithers"]] == ["Ada", "Bola"]
    assert body["summary"]["totalTithe"] == 1000


def test_tithes_reject_blank_sheet(client):
    payload = _tithe_payload()
    payload["records"] = [{"name": "", "week1": 0}]
    r = client.post("/api/tithes", json=payload)
    assert r.status_code == 400
    assert r.json()["error"] == "No valid records to save"


def test_admin_tithe_summary_and_delete(client):
    saved = client.post("/api/tithes", json=_tithe_payload()).json()["data"]

    r = client.get("/api/admin/tithes/summary")
    data = r.json()["data"]
    zion = next(a for a in data["byAssembly"] if a["assembly"] == "ZION")
    assert zion["stats"]["paidMembers"] == 1
    assert zion["stats"]["unpaidMembers"] == 1

    r = client.get("/api/admin/tithes", params={"page": 1, "limit": 10})
    assert r.json()["data"]["pagination"]["totalCount"] == 1
    assert r.json()["data"]["summary"]["totalTitheAmount"] == 1000

    r = client.delete(f"/api/admin/tithes/{saved['id']}")
    assert r.status_code == 200
    assert r.json()["deletedId"] == saved["id"]

    r = client.delete(f"/api/admin/tithes/{saved['id']}")
    assert r.status_code == 404
    assert r.json()["error"] == "Record not found"


@pytest.mark.filterwarnings("error::sqlalchemy.exc.SAWarning")
def test_admin_tithe_filter_options_are_distinct(client):
    client.post("/api/tithes", json=_tithe_payload(month="November-2025"))
    client.post("/api/tithes", json=_tithe_payload(month="October-2025"))
    client.post("/api/tithes", json=_tithe_payload(assembly="EMMANUEL", month="November-2025"))

    r = client.get("/api/admin/tithes")
    assert r.status_code == 200, r.text
    filters = r.json()["data"]["filters"]
    assert filters["assemblies"] == ["EMMANUEL", "ZION"]
    assert filters["months"] == ["October-2025", "November-2025"]


# ---------- offerings / financial records ----------
def test_offerings_by_type(client):
    r = client.get("/api/offerings", params={"assembly": "ZION", "type": "Thanksgiving", "month": "November-2025"})
    assert r.status_code == 200
    assert len(r.json()["records"]) == 5

    payload = {
        "assembly": "ZION",
        "submittedBy": "Secretary",
        "month": "November-2025",
        "type": "Thanksgiving",
        "records": [{"week1": 100, "tuesdayWeek1": 50}],
    }
    r = client.post("/api/offerings", json=payload)
    assert r.status_code == 200, r.text

    r = client.get("/api/offerings", params={"assembly": "zion", "type": "Thanksgiving", "month": "November-2025"})
    records = r.json()["records"]
    assert len(records) == 1
    assert records[0]["total"] == 150

    r = client.get("/api/offerings", params={"assembly": "ZION", "type": "Harvest", "month": "November-2025"})
    assert len(r.json()["records"]) == 5


def test_financial_records_totals(client):
    r = client.get("/api/financial-records", params={"assembly": "ZION", "month": "November-2025"})
    assert r.json()["totals"] == {"income": 0.0, "expense": 0.0, "net": 0.0}

    payload = {
        "assembly": "ZION",
        "submittedBy": "Treasurer",
        "month": "November-2025",
        "records": [
            {"description": "Sunday offering", "type": "income", "amount": 5000},
            {"description": "Generator fuel", "type": "expense", "amount": 1200},
        ],
    }
    r = client.post("/api/financial-records", json=payload)
    assert r.status_code == 200, r.text

    r = client.get("/api/financial-records", params={"assembly": "ZION", "month": "November-2025"})
    assert r.json()["totals"] == {"income": 5000, "expense": 1200, "net": 3800}


# ---------- weekly submissions ----------
def test_submissions_date_range(client):
    payload = {
        "assembly": "Zion",
        "month": 11,
        "year": 2025,
        "entries": [
            {"week": "Week 1", "date": "2025-11-02", "tithe": 1000, "offeringGeneral": 200},
            {"week": "Week 3", "date": "2025-11-16", "tithe": 500, "welfare": "50"},
        ],
    }
    r = client.post("/api/submissions", json=payload)
    assert r.status_code == 201, r.text
    assert r.json()["data"]["entries"][0]["total"] == 1200

    r = client.get("/api/submissions", params={"assembly": "ZION"})
    assert len(r.json()) == 2

    r = client.get("/api/submissions", params={"assembly": "ZION", "start": "2025-11-10", "end": "2025-11-30"})
    entries = r.json()
    assert len(entries) == 1
    assert entries[0]["week"] == "Week 3"
    assert entries[0]["total"] == 550


def test_submission_rejects_out_of_range_month(client):
    r = client.post("/api/submissions", json={"assembly": "ZION", "month": 13, "year": 2025, "entries": []})
    assert r.status_code == 400
    assert r.json()["error"].startswith("Invalid request:")
