"""
API tests through FastAPI's TestClient.

The backend is the in-memory FakeBackend and today is pinned to
Wednesday 2026-10-14 (see conftest.py).
"""

import csv
import io

import pytest
from openpyxl import Workbook

from config.settings import Settings
from web.dependencies import bearer_token, get_app_settings

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _xlsx(rows):
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(list(row))
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


VALID_RULES = {
    "role": "Sales",
    "selected_metrics": ["premium", "items"],
    "n_required": 1,
    "weights": {"premium": 60, "items": 40},
    "counted_days": {"monday": True, "tuesday": True},
}


class TestHealthAndErrors:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})

        assert response.headers["x-request-id"] == "req-123"

    def test_validation_error_envelope(self, client):
        response = client.post("/api/v1/goals/progress", json={"target": -1})

        body = response.json()
        assert response.status_code == 422
        assert body["error"] is True
        assert body["code"] == "VALIDATION_ERROR"
        assert body["field_errors"][0]["field"] == "target"

    def test_module_app_serves_api_routes(self):
        from web.app import app

        paths = {route.path for route in app.routes}
        assert "/health" in paths
        assert "/api/v1/agencies/{agency_id}/cancel-audit/export.csv" in paths

    def test_unknown_route(self, client):
        response = client.get("/api/v1/nope")

        assert response.status_code == 404
        assert response.json()["code"] == "RESOURCE_NOT_FOUND"

    def test_backend_failure_is_502(self, client, fake_backend):
        fake_backend.fail_with(503, {"message": "database is starting up"})

        response = client.get("/api/v1/agencies/a1/cancel-audit/hero-stats")

        assert response.status_code == 502
        assert response.json()["code"] == "SERVER_BACKEND_ERROR"
        assert response.json()["details"] == {"backend_status": 503}

    @pytest.mark.parametrize("header,expected", [
        (None, None),
        ("Bearer abc.def", "abc.def"),
        ("Basic xyz", None),
        ("Bearer", None),
    ])
    def test_bearer_token(self, header, expected):
        assert bearer_token(header) == expected


class TestGoalsApi:

    def test_progress(self, client):
        response = client.post("/api/v1/goals/progress", json={"target": 100, "actual": 40})

        body = response.json()
        assert response.status_code == 200
        assert body["business_days_left"] == 13
        assert body["on_pace"] is False
        assert body["period_start"] == "2026-10-01"

    def test_promo_status(self, client):
        response = client.post("/api/v1/goals/promo-status", json={
            "start_date": "2026-10-20", "end_date": "2026-10-31", "progress": 12, "target": 10,
        })

        assert response.json() == {"status": "upcoming", "days_remaining": 6, "achieved": True}

    def test_promo_dates_reversed(self, client):
        response = client.post("/api/v1/goals/promo-status", json={
            "start_date": "2026-10-31", "end_date": "2026-10-20",
        })

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_agency_progress(self, client, fake_backend):
        fake_backend.tables["sales_goals"] = [
            {"id": "g1", "goal_name": "Premium", "measurement": "premium", "target_value": 1000,
             "time_period": "monthly"},
        ]
        fake_backend.tables["sales"] = [{"id": "s1", "total_premium": 250, "total_items": 1, "sale_policies": []}]

        response = client.get("/api/v1/agencies/a1/goals/progress")

        body = response.json()
        assert body["as_of"] == "2026-10-14"
        assert body["goals"][0]["current"] == 250

    def test_staff_promo_goals(self, client, fake_backend):
        fake_backend.functions["get_staff_promo_goals"] = {"promos": [
            {"id": "p1", "goal_name": "Auto blitz", "measurement": "items", "target_value": 5,
             "start_date": "2026-10-01", "end_date": "2026-10-31", "progress": 6, "isAgencyWide": True},
        ]}

        response = client.get("/api/v1/staff/promo-goals", headers={"X-Staff-Session": "sess-1"})

        body = response.json()
        assert response.status_code == 200
        assert body["promos"][0]["status"] == "active"
        assert body["promos"][0]["achieved"] is True
        request = fake_backend.requests[-1]
        assert request.url.path == "/functions/v1/get_staff_promo_goals"
        assert request.headers["x-staff-session"] == "sess-1"

    def test_staff_promo_goals_requires_session(self, client, fake_backend):
        response = client.get("/api/v1/staff/promo-goals")

        assert response.status_code == 401
        assert response.json()["code"] == "AUTH_REQUIRED"
        assert fake_backend.requests == []


class TestRoiApi:

    VENDOR = {
        "vendor_name": "Acme",
        "amount_spent": 1000,
        "closed_hh": 5,
        "policies_sold": 8,
        "premium_sold": 12000,
        "commission_pct": 10,
    }

    def test_vendor(self, client):
        body = client.post("/api/v1/roi/vendor", json=self.VENDOR).json()

        assert body["derived"]["roi"] == pytest.approx(20)
        assert body["derived"]["verdict"] == "PROFITABLE"
        assert body["report"].startswith("VENDOR PERFORMANCE REPORT")

    def test_vendor_csv(self, client):
        response = client.post("/api/v1/roi/vendor/report.csv", json=self.VENDOR)

        assert response.headers["content-type"].startswith("text/csv")
        assert response.headers["content-disposition"] == 'attachment; filename="vendor-report-acme.csv"'
        rows = list(csv.reader(io.StringIO(response.text, newline="")))
        assert rows[0] == ["Metric", "Value"]

    def test_marketing(self, client):
        body = client.post("/api/v1/roi/marketing", json={
            "spend": 1000, "cpl": 25, "quote_rate_pct": 50, "close_rate_pct": 25,
            "avg_item_value": 800, "avg_items_per_hh": 1.5, "commission_pct": 10,
        }).json()

        assert body["total_leads"] == 40
        assert body["sold_items"] == 8
        assert body["roi"] == pytest.approx(-36)


class TestCallScoringApi:

    def test_canonicalize(self, client):
        body = client.post("/api/v1/call-scoring/canonicalize", json={
            "labels": ["ask_about_work", "Ask About Work", "Ask about work!", "Ask About Work"],
        }).json()

        assert body["keys"] == ["ask about work"]
        assert {item["display_label"] for item in body["items"]} == {"Ask About Work"}

    def test_summary(self, client):
        body = client.post("/api/v1/call-scoring/summary", json={
            "calls": [
                {"id": "c1", "team_member_id": "m1", "overall_score": 81, "potential_rank": "HIGH",
                 "analyzed_at": "2026-10-13T15:00:00Z"},
            ],
            "team_members": [{"id": "m1", "name": "Alice"}],
        }).json()

        assert body["summary"]["total"] == 1
        assert body["summary"]["member_stats"][0]["avg_score"] == 81

    def test_empty_summary(self, client):
        assert client.post("/api/v1/call-scoring/summary", json={}).json() == {"summary": None}


class TestCancelAuditApi:

    @pytest.fixture(autouse=True)
    def tables(self, fake_backend):
        fake_backend.tables["cancel_audit_records"] = [
            {"id": "r1", "household_key": "hh1", "policy_number": "P-1", "insured_first_name": "Jane",
             "insured_last_name": "Doe", "report_type": "pending_cancel", "status": "new",
             "premium_cents": 12345, "is_active": True, "created_at": "2026-10-13T09:00:00Z"},
        ]
        fake_backend.tables["cancel_audit_activities"] = [
            {"id": "a1", "activity_type": "spoke_with_client", "record_id": "r1", "household_key": "hh1",
             "user_id": "u1", "user_display_name": "Alice", "created_at": "2026-10-13T10:00:00Z"},
        ]

    def test_hero_stats(self, client):
        body = client.get("/api/v1/agencies/a1/cancel-audit/hero-stats").json()

        assert body["working_list_count"] == 1
        assert body["at_risk_premium"] == 12345

    def test_weekly_stats(self, client):
        body = client.get("/api/v1/agencies/a1/cancel-audit/weekly-stats").json()

        assert body["week_start"] == "2026-10-12"
        assert body["coverage_percent"] == 100

    def test_activity_summary(self, client):
        response = client.get(
            "/api/v1/agencies/a1/cancel-audit/activity-summary",
            params={"start": "2026-10-01", "end": "2026-10-31"},
        )

        assert response.json()["users"][0]["counts"]["spoke_with_client"] == 1

    def test_reversed_range(self, client):
        response = client.get(
            "/api/v1/agencies/a1/cancel-audit/activity-summary",
            params={"start": "2026-10-31", "end": "2026-10-01"},
        )

        assert response.status_code == 400

    def test_export(self, client):
        response = client.get(
            "/api/v1/agencies/a1/cancel-audit/export.csv",
            params={"start": "2026-10-01", "end": "2026-10-31", "status": ["new", "in_progress"]},
        )

        assert response.status_code == 200
        assert response.headers["x-row-count"] == "1"
        assert 'filename="cancel-audit-2026-10-01-to-2026-10-31.csv"' in response.headers["content-disposition"]
        assert "Jane Doe" in response.text
        assert "123.45" in response.text

    def test_export_unknown_status(self, client):
        response = client.get(
            "/api/v1/agencies/a1/cancel-audit/export.csv",
            params={"start": "2026-10-01", "end": "2026-10-31", "status": "archived"},
        )

        assert response.status_code == 400
        assert "archived" in response.json()["message"]


class TestOnboardingApi:

    def test_schedule_with_calendar(self, client):
        body = client.post("/api/v1/onboarding/schedule", json={
            "start_date": "2026-10-09",
            "steps": [
                {"day_number": 0, "title": "Welcome call", "action_type": "call"},
                {"day_number": 1, "title": "Text", "action_type": "text"},
                {"day_number": 5, "title": "Review", "action_type": "email"},
            ],
            "calendar_month": 10,
            "calendar_year": 2026,
        }).json()

        assert [t["due_date"] for t in body["tasks"]] == ["2026-10-09", "2026-10-12", "2026-10-16"]
        assert [t["status"] for t in body["tasks"]] == ["overdue", "overdue", "pending"]
        assert body["calendar"]["missed_count"] == 2

    def test_negative_day_rejected(self, client):
        response = client.post("/api/v1/onboarding/schedule", json={
            "start_date": "2026-10-09", "steps": [{"day_number": -1, "title": "x"}],
        })

        assert response.status_code == 422

    def test_preview(self, client, fake_backend):
        fake_backend.tables["onboarding_sequence_steps"] = [
            {"id": "st1", "day_number": 1, "action_type": "call", "title": "Call"},
        ]

        response = client.get("/api/v1/onboarding/sequences/seq-1/preview", params={"start_date": "2026-10-16"})

        assert response.json()["tasks"][0]["due_date"] == "2026-10-19"

    def test_calendar(self, client, fake_backend):
        fake_backend.tables["onboarding_tasks"] = [
            {"id": "t1", "action_type": "call", "title": "Call", "due_date": "2026-10-20", "status": "pending"},
        ]

        body = client.get("/api/v1/agencies/a1/onboarding/calendar", params={"year": 2026, "month": 10}).json()

        assert body["total_count"] == 1
        assert body["missed_count"] == 0


class TestScorecardApi:

    def test_validate(self, client):
        body = client.post("/api/v1/scorecards/validate", json={**VALID_RULES, "weights": {"premium": 60}}).json()

        assert body["valid"] is False
        assert body["messages"][0]["message"] == "Weights must total exactly 100 (currently 60)"

    def test_save(self, client, fake_backend):
        response = client.put("/api/v1/agencies/a1/scorecard-rules", json=VALID_RULES)

        body = response.json()
        assert response.status_code == 200
        assert body["rules"]["ring_metrics"] == ["premium", "items"]
        assert len(fake_backend.requests_for("scorecard_rules", "POST")) == 1

    def test_save_rejects_invalid(self, client, fake_backend):
        response = client.put(
            "/api/v1/agencies/a1/scorecard-rules",
            json={**VALID_RULES, "n_required": 5},
        )

        body = response.json()
        assert response.status_code == 400
        assert body["field_errors"][0]["field"] == "n_required"
        assert fake_backend.requests == []


class TestWinbackApi:

    ROWS = [
        ("Termination Report",),
        ("Insured First Name", "Insured Last Name", "Zip Code", "Policy Number", "Product Name",
         "Termination Effective Date"),
        ("jane", "doe", "12345", "P-1", "Auto", "09/15/2026"),
        ("jane", "doe", "12345", "P-2", "Homeowners", "09/15/2026"),
    ]

    def test_parse(self, client):
        response = client.post(
            "/api/v1/winback/parse",
            files={"file": ("terms.xlsx", _xlsx(self.ROWS), XLSX)},
            data={"contact_days_before": "45"},
        )

        body = response.json()
        assert response.status_code == 200
        assert body["households"] == 1
        assert [r["winback_date"] for r in body["records"]] == ["2027-01-29", "2027-08-01"]
        assert body["records"][0]["household_key"] == "jane|doe|12345"

    def test_default_lead_time(self, client):
        body = client.post(
            "/api/v1/winback/parse",
            files={"file": ("terms.xlsx", _xlsx(self.ROWS), XLSX)},
        ).json()

        assert body["contact_days_before"] == 45

    def test_rejects_other_files(self, client):
        response = client.post(
            "/api/v1/winback/parse",
            files={"file": ("terms.csv", b"a,b\n1,2", "text/csv")},
        )

        assert response.status_code == 415
        assert response.json()["code"] == "VALIDATION_FILE_TYPE_NOT_ALLOWED"

    def test_rejects_large_files(self, app, client):
        app.dependency_overrides[get_app_settings] = lambda: Settings(max_upload_bytes=10)

        response = client.post(
            "/api/v1/winback/parse",
            files={"file": ("terms.xlsx", _xlsx(self.ROWS), XLSX)},
        )

        assert response.status_code == 413

    def test_unreadable_workbook(self, client):
        body = client.post(
            "/api/v1/winback/parse",
            files={"file": ("terms.xlsx", b"not really a workbook", XLSX)},
        ).json()

        assert body["records"] == []
        assert body["errors"][0].startswith("Failed to parse Excel file")
