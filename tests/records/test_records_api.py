from __future__ import annotations

from datetime import date, datetime

import pytest

from src.hr_admin.hr_admin.common.rate_limit import AttemptThrottle
from src.hr_admin.hr_admin.container import wire
from src.hr_admin.hr_admin.core.enums import LeaveStatus, LeaveType, PaymentStatus, RecordKind
from src.hr_admin.hr_admin.main import create_app
from src.hr_admin.hr_admin.records.model import LeaveRequest


@pytest.fixture
def container(records, directory, departments, payroll_settings):
    return wire(
        directory=directory,
        departments_repo=departments,
        records_repo=records,
        payroll_settings_repo=payroll_settings,
        upload_throttle=AttemptThrottle(max_attempts=2, window_seconds=60),
    )


@pytest.fixture
def client(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container)
    return app.test_client()


def _login(client, principal):
    with client.session_transaction() as sess:
        sess["user_id"] = principal.user_id


@pytest.fixture
def leave(records, people):
    return records.seed(
        RecordKind.LEAVE,
        LeaveRequest(
            record_id=0,
            user_id=people["alice"].user_id,
            leave_type=LeaveType.ANNUAL,
            start_date=date(2026, 3, 16),
            end_date=date(2026, 3, 18),
            reason="family",
            status=LeaveStatus.REQUESTED,
            created_at=datetime(2026, 3, 1),
            total_days=3,
        ),
    )


def test_anonymous_request_is_401(client):
    resp = client.get("/api/leaves")
    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Unauthenticated"}


def test_list_is_scoped(client, people, leave):
    _login(client, people["bob"])
    assert client.get("/api/leaves").get_json() == {"leaves": []}

    _login(client, people["alice"])
    data = client.get("/api/leaves").get_json()
    assert [r["record_id"] for r in data["leaves"]] == [leave.record_id]
    assert data["leaves"][0]["status"] == "requested"


def test_unknown_resource_is_404(client, people):
    _login(client, people["hr"])
    assert client.get("/api/salaries").status_code == 404


def test_approve_leave_echoes_record(client, people, leave):
    _login(client, people["manager"])
    resp = client.patch(f"/api/leaves/{leave.record_id}/status", json={"status": "approved"})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "approved"
    assert body["processed_by"] == people["manager"].user_id

    # terminal now
    resp = client.patch(f"/api/leaves/{leave.record_id}/status", json={"status": "cancelled"})
    assert resp.status_code == 403
    assert "approved" in resp.get_json()["error"]


def test_bad_status_is_400(client, people, leave):
    _login(client, people["hr"])
    resp = client.patch(f"/api/leaves/{leave.record_id}/status", json={"status": "archived"})
    assert resp.status_code == 400
    assert "requested, approved, rejected, cancelled" in resp.get_json()["error"]


def test_missing_record_is_404(client, people):
    _login(client, people["hr"])
    assert client.patch("/api/payroll/42/status", json={"status": "paid"}).status_code == 404
    assert client.delete("/api/additional-payments/42").status_code == 404


def test_out_of_scope_is_403(client, people, leave):
    _login(client, people["bob"])
    assert client.get(f"/api/leaves/{leave.record_id}").status_code == 403


def test_conflict_is_409(client, people, leave, records, monkeypatch):
    monkeypatch.setattr(records, "update_status", lambda *a, **kw: False)
    _login(client, people["hr"])
    resp = client.patch(f"/api/leaves/{leave.record_id}/status", json={"status": "approved"})
    assert resp.status_code == 409


def test_unexpected_error_is_500(client, people, records, monkeypatch):
    def boom(*a, **kw):
        raise RuntimeError("db down")

    monkeypatch.setattr(records, "list", boom)
    _login(client, people["hr"])
    resp = client.get("/api/payroll")
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Internal server error"}


def test_create_is_throttled_per_user(client, people):
    _login(client, people["alice"])
    body = {"leave_type": "annual", "start_date": "2026-04-01", "end_date": "2026-04-02", "reason": "rest"}
    assert client.post("/api/leaves", json=body).status_code == 201
    assert client.post("/api/leaves", json=body).status_code == 201
    resp = client.post("/api/leaves", json=body)
    assert resp.status_code == 429
    assert "Too many attempts" in resp.get_json()["error"]


def test_edit_and_delete_paid_payment_are_403(client, people, records):
    _login(client, people["hr"])
    created = client.post(
        "/api/additional-payments",
        json={"employee_id": 5, "category": "bonus", "description": "Referral", "amount": "75", "month": "03", "year": 2026},
    ).get_json()
    pid = created["record_id"]
    assert client.patch(f"/api/additional-payments/{pid}/status", json={"status": "paid"}).status_code == 200

    assert client.patch(f"/api/additional-payments/{pid}", json={"amount": "1"}).status_code == 403
    assert client.delete(f"/api/additional-payments/{pid}").status_code == 403
    assert records.get(RecordKind.ADDITIONAL_PAYMENT, pid).status == PaymentStatus.PAID


def test_body_must_be_json_object(client, people, leave):
    _login(client, people["hr"])
    resp = client.patch(f"/api/leaves/{leave.record_id}/status", data="approved", content_type="text/plain")
    assert resp.status_code == 400


def test_list_limit_below_one_is_400(client, people):
    _login(client, people["hr"])
    for raw in ("-1", "0", "ten"):
        resp = client.get(f"/api/payroll?limit={raw}")
        assert resp.status_code == 400
    assert client.get("/api/payroll?limit=5").status_code == 200


def test_department_crud_over_http(client, people, departments):
    _login(client, people["manager"])
    assert client.post("/api/departments", json={"name": "Finance"}).status_code == 403

    _login(client, people["hr"])
    resp = client.post("/api/departments", json={"name": "Finance", "description": "Money"})
    assert resp.status_code == 201
    dept_id = resp.get_json()["dept_id"]
    assert client.post("/api/departments", json={"name": "Finance"}).status_code == 400

    resp = client.patch(f"/api/departments/{dept_id}", json={"name": "Treasury"})
    assert resp.status_code == 200
    assert resp.get_json()["dept_name"] == "Treasury"

    assert client.delete("/api/departments/30").status_code == 400
    assert client.delete(f"/api/departments/{dept_id}").status_code == 200
    assert departments.get(dept_id) is None


def test_payroll_settings_over_http(client, people, payroll_settings):
    _login(client, people["hr"])
    resp = client.post("/api/payroll-settings", json={"employee_id": 4, "amount": "2300"})
    assert resp.status_code == 201
    setting_id = resp.get_json()["setting_id"]

    resp = client.patch(f"/api/payroll-settings/{setting_id}", json={"amount": "2400"})
    assert resp.get_json()["amount"] == "2400"

    _login(client, people["alice"])
    assert [s["setting_id"] for s in client.get("/api/payroll-settings").get_json()["payroll-settings"]] == [setting_id]
    assert client.delete(f"/api/payroll-settings/{setting_id}").status_code == 403

    _login(client, people["hr"])
    assert client.delete(f"/api/payroll-settings/{setting_id}").status_code == 200
    assert client.get(f"/api/payroll-settings/{setting_id}").status_code == 404
    assert payroll_settings.get(setting_id) is None
