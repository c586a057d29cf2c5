# tests/test_reports.py
# Read-side report endpoints over a small seeded district.
from datetime import datetime, timedelta, timezone

import pytest


@pytest.fixture()
def seeded(post_report):
    post_report(
        "EMMANUEL",
        "November-2025",
        [
            {"week": "Week 1", "tithes": 1000, "offerings": 500, "attendance": 100, "sbsAttendance": 40},
            {"week": "Week 2", "tithes": 2000, "offerings": 1500, "attendance": 80, "visitors": 4},
        ],
    )
    post_report("ZION", "November-2025", [{"week": "Week 1", "tithes": 300, "attendance": 20}])
    post_report("ZION", "October-2025", [{"week": "Week 1", "tithes": 200, "attendance": 18}])
    post_report(
        "EMMANUEL", "November-2025", [{"day": "tuesday", "attendance": 30, "offering": 120}], service_type="midweek"
    )


def test_detailed_reports_are_stable_across_reads(client, seeded):
    first = client.get("/api/admin/reports/detailed").json()
    second = client.get("/api/admin/reports/detailed").json()
    assert first == second

    data = first["data"]
    assert data["pagination"]["total"] == 4
    assert data["attendanceOverlapRatio"] == 0.75
    summary = data["summary"]
    assert summary["totalIncome"] == 1500 + 3500 + 300 + 200 + 120
    assert summary["sundayTithes"] == 3500
    assert summary["midweekReports"] == 1


def test_filters_only_narrow(client, seeded):
    everything = client.get("/api/admin/reports/detailed").json()["data"]["summary"]
    zion = client.get("/api/admin/reports/detailed", params={"assembly": "zion"}).json()["data"]["summary"]
    november = client.get(
        "/api/admin/reports/detailed", params={"month": "November", "year": "2025", "serviceType": "sunday"}
    ).json()["data"]["summary"]
    assert zion["totalIncome"] == 500
    assert november["totalIncome"] == 5300
    for s in (zion, november):
        assert s["totalIncome"] <= everything["totalIncome"]
        assert s["totalReports"] <= everything["totalReports"]

    # "all" is the same as no filter
    all_filter = client.get("/api/admin/reports/detailed", params={"assembly": "all", "serviceType": "all"})
    assert all_filter.json()["data"]["summary"] == everything


def _detailed_months(client, **params):
    r = client.get("/api/admin/reports/detailed", params=params)
    assert r.status_code == 200, r.text
    return sorted((d["assembly"], d["month"], d["serviceType"]) for d in r.json()["data"]["reports"])


def test_month_without_year_matches_every_year(client, seeded, post_report):
    post_report("ZION", "November-2024", [{"week": "Week 1", "tithes": 50}])
    rows = _detailed_months(client, month="nov")
    assert rows == [
        ("EMMANUEL", "November-2025", "midweek"),
        ("EMMANUEL", "November-2025", "sunday"),
        ("ZION", "November-2024", "sunday"),
        ("ZION", "November-2025", "sunday"),
    ]


def test_year_without_month_matches_every_month(client, seeded, post_report):
    post_report("ZION", "December-2024", [{"week": "Week 1", "tithes": 50}])
    assert len(_detailed_months(client, year="2025")) == 4
    assert _detailed_months(client, year="2024") == [("ZION", "December-2024", "sunday")]
    assert _detailed_months(client, year="2023") == []


@pytest.mark.parametrize("params", [{"year": "%"}, {"year": "_025"}, {"month": "%"}, {"month": "N_vember"}])
def test_like_wildcards_are_matched_literally(client, seeded, params):
    assert _detailed_months(client, **params) == []


def test_created_date_window(client, seeded):
    today = datetime.now(timezone.utc).date()

    def income(**params):
        r = client.get("/api/admin/financial-reports", params=params)
        assert r.status_code == 200, r.text
        return r.json()["summary"]["totalIncome"]

    # a date-only end date covers the whole of that day
    assert income(startDate=today.isoformat(), endDate=today.isoformat()) == 5500
    assert income(endDate=(today - timedelta(days=1)).isoformat()) == 0
    assert income(startDate=(today + timedelta(days=1)).isoformat()) == 0
    assert income(startDate=(today - timedelta(days=7)).isoformat()) == 5500


def test_detailed_pagination(client, seeded):
    r = client.get("/api/admin/reports/detailed", params={"page": 2, "limit": 3})
    data = r.json()["data"]
    assert len(data["reports"]) == 1
    assert data["pagination"]["pages"] == 2
    # the summary covers every match, not only the page
    assert data["summary"]["totalReports"] == 4


def test_detailed_csv(client, seeded):
    r = client.get("/api/admin/reports/detailed.csv", params={"assembly": "EMMANUEL"})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    lines = r.text.strip().splitlines()
    assert lines[0].startswith("report_id,service_type,assembly,month")
    # two Sunday rows and one midweek row
    assert len(lines) == 4
    assert lines[0].endswith("raw_attendance,corrected_attendance,attendance_with_visitors")


def test_detailed_rows_keep_visitors_out_of_corrected_attendance(client, seeded):
    r = client.get("/api/admin/reports/detailed", params={"assembly": "EMMANUEL", "serviceType": "sunday"})
    data = r.json()["data"]
    rows = data["reports"][0]["records"]
    assert [row["correctedAttendance"] for row in rows] == [110, 80]
    assert [row["attendanceWithVisitors"] for row in rows] == [110, 84]
    assert data["summary"]["correctedAttendance"] == sum(row["correctedAttendance"] for row in rows)


def test_financial_reports(client, seeded):
    r = client.get("/api/financial-reports", params={"assembly": "EMMANUEL", "month": "November", "year": "2025"})
    assert r.status_code == 200
    body = r.json()
    sunday = body["data"]["sundayServiceSummary"]
    assert sunday["totalIncome"] == 5000
    assert sunday["tithes"] == 3000
    assert sunday["correctedAttendance"] == 110 + 80
    assert sunday["attendanceWithVisitors"] == 110 + 80 + 4
    assert body["filters"]["assembly"] == "EMMANUEL"
    assert body["filters"]["month"] == "November"


def test_admin_financial_reports(client, seeded):
    r = client.get("/api/admin/financial-reports")
    assert r.status_code == 200
    body = r.json()
    assert body["summary"]["totalIncome"] == 5500
    assert body["summary"]["totalTithe"] == 3500
    assert body["summary"]["topPerformingAssembly"] == "EMMANUEL"
    assert body["summary"]["incomeGrowth"] is None
    assert [p["month"] for p in body["data"]["monthlyTrends"]] == ["October-2025", "November-2025"]
    assert body["data"]["titheSummary"]["week1"] == 1500
    assert set(body["perAssembly"]) >= {"EMMANUEL", "ZION", "VICTORY"}
    assert body["perAssembly"]["VICTORY"]["status"] == "pending"


def test_dashboard(client, seeded):
    data = client.get("/api/admin/dashboard").json()["data"]
    assert data["totalAssemblies"] == 2
    assert data["reportsGenerated"] == 4
    assert data["monthlyIncome"] == 5620
    assert len(data["recentActivities"]) == 4


def test_assemblies_listing(client, seeded):
    data = client.get("/api/admin/assemblies").json()["data"]
    names = [a["name"] for a in data]
    assert "VICTORY" in names
    zion = next(a for a in data if a["name"] == "ZION")
    assert zion["reportsCount"] == 2
    assert zion["status"] == "active"

    inactive = client.get("/api/admin/assemblies", params={"status": "inactive"}).json()["data"]
    assert all(a["status"] == "inactive" for a in inactive)
    assert "ZION" not in [a["name"] for a in inactive]


def test_assembly_details(client, seeded):
    r = client.get("/api/admin/assembly-details")
    assert r.status_code == 400
    assert r.json()["error"] == "Assembly name required"

    r = client.get("/api/admin/assembly-details", params={"assembly": "VICTORY"})
    assert r.status_code == 404
    assert r.json()["error"] == "No data found for this assembly"

    r = client.get("/api/admin/assembly-details", params={"assembly": "zion"})
    data = r.json()["data"]
    assert data["assembly"] == "ZION"
    assert data["income"] == 500
    assert [m["month"] for m in data["monthlyData"]] == ["October-2025", "November-2025"]


def test_health_and_version(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["db"]["status"] == "ok"
    assert r.json()["narratives"] == "fallback-only"

    r = client.get("/version")
    assert r.json()["app"] == "District Returns Backend"
