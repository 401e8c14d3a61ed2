from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from src.worklog_ledger.worklog_ledger.container import wire_container
from src.worklog_ledger.worklog_ledger.core.policy import LedgerPolicy
from src.worklog_ledger.worklog_ledger.main import create_app

from tests.fakes import DAY_SHIFT, FixedClock, InMemoryLeaves, InMemoryLedger, InMemoryStaff, office_week, staff_member

MONDAY = date(2026, 2, 2)


def make_env(monkeypatch, *, policy=None, leaves=None):
    monkeypatch.setenv("APP_ENV", "testing")
    clock = FixedClock(datetime(2026, 2, 2, 9, 15))
    ledger = InMemoryLedger()
    working_days = office_week()
    members = {1: staff_member(1), 2: staff_member(2), 3: staff_member(3, company_id=2)}
    container = wire_container(
        ledger_repo=ledger,
        staff_registry=InMemoryStaff(members=members, shifts={i: DAY_SHIFT for i in members}),
        leave_directory=leaves or InMemoryLeaves(),
        working_days_repo=working_days,
        policy=policy or LedgerPolicy(),
        clock=clock,
    )
    app = create_app(container)
    return app, clock, ledger, working_days


@pytest.fixture
def env(monkeypatch):
    return make_env(monkeypatch)


def login(client, *, user_id=1, role="staff", organization_id=1, company_id=None):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["role"] = role
        sess["organization_id"] = organization_id
        if company_id is not None:
            sess["company_id"] = company_id


def test_punch_requires_session(env):
    app, _, _, _ = env
    resp = app.test_client().post("/attendance/clock-in", json={})

    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_clock_in_and_out_round(env):
    app, clock, ledger, _ = env
    client = app.test_client()
    login(client)

    resp = client.post("/attendance/clock-in", json={"latitude": 10.77, "longitude": 106.69, "accuracy": 20})
    body = resp.get_json()
    assert resp.status_code == 200
    assert body["success"] is True
    assert body["data"]["status"] == "present"
    assert body["data"]["clock_in"] == "2026-02-02T09:15:00"
    assert body["data"]["total_hours"] is None
    assert ledger.get_for_staff_and_date(1, MONDAY).clock_in_ip == "127.0.0.1"

    again = client.post("/attendance/clock-in", json={})
    assert again.status_code == 409
    assert again.get_json()["error"] == "already_clocked_in"

    clock.now = datetime(2026, 2, 2, 17, 30)
    resp = client.post("/attendance/clock-out")
    assert resp.status_code == 200
    assert resp.get_json()["data"]["total_hours"] == "8.25"

    status = client.get("/attendance/status").get_json()["data"]
    assert status["state"] == "clocked_out"
    assert status["late_minutes"] == 15
    assert status["overtime_minutes"] == 30


def test_clock_out_without_clock_in(env):
    app, _, _, _ = env
    client = app.test_client()
    login(client)

    resp = client.post("/attendance/clock-out", json={})

    assert resp.status_code == 409
    assert resp.get_json()["error"] == "not_clocked_in"


def test_invalid_location_is_422_when_required(monkeypatch):
    app, _, ledger, _ = make_env(monkeypatch, policy=LedgerPolicy(require_location=True))
    client = app.test_client()
    login(client)

    resp = client.post("/attendance/clock-in", json={"latitude": 123, "longitude": 0})

    assert resp.status_code == 422
    assert resp.get_json()["error"] == "invalid_location"
    assert ledger.all_rows() == []


def test_status_placeholder(env):
    app, _, _, _ = env
    client = app.test_client()
    login(client)

    data = client.get("/attendance/status").get_json()["data"]

    assert data["status"] == "not_clocked_in"
    assert data["log_date"] == "2026-02-02"


def test_admin_endpoints_reject_staff(env):
    app, _, _, _ = env
    client = app.test_client()
    login(client)

    assert client.get("/attendance/logs?start=2026-02-01&end=2026-02-28").status_code == 403
    assert client.post("/settings/holidays", json={}).status_code == 403


def test_admin_lists_corrects_and_deletes(env):
    app, clock, ledger, _ = env
    staff_client = app.test_client()
    login(staff_client, user_id=2)
    staff_client.post("/attendance/clock-in", json={})
    entry_id = ledger.get_for_staff_and_date(2, MONDAY).entry_id

    admin = app.test_client()
    login(admin, user_id=900, role="admin")

    logs = admin.get("/attendance/logs?start=2026-02-01&end=2026-02-28").get_json()["data"]
    assert [row["staff_member_id"] for row in logs] == [2]

    clock.now = datetime(2026, 2, 3, 8, 0)
    resp = admin.put(
        f"/attendance/logs/{entry_id}",
        json={"clock_in": "2026-02-02T09:00", "clock_out": "2026-02-02T17:00", "note": "Forgot to clock out"},
    )
    body = resp.get_json()
    assert resp.status_code == 200
    assert body["data"]["status"] == "present"
    assert body["data"]["total_hours"] == "8.00"
    assert body["data"]["updated_by"] == 900

    bad = admin.put(f"/attendance/logs/{entry_id}", json={"clock_in": "not a time"})
    assert bad.status_code == 422

    summary = admin.get("/attendance/summary?start=2026-02-01&end=2026-02-28&staff_member_id=2").get_json()["data"]
    assert summary["present_days"] == 1
    assert summary["total_hours"] == "8.00"

    assert admin.delete(f"/attendance/logs/{entry_id}").status_code == 200
    assert admin.delete(f"/attendance/logs/{entry_id}").status_code == 404
    assert ledger.get_for_staff_and_date(2, MONDAY) is None


def test_admin_cannot_touch_other_organization(env):
    app, _, ledger, _ = env
    staff_client = app.test_client()
    login(staff_client)
    staff_client.post("/attendance/clock-in", json={})
    entry_id = ledger.get_for_staff_and_date(1, MONDAY).entry_id

    admin = app.test_client()
    login(admin, user_id=900, role="admin", organization_id=2)

    assert admin.delete(f"/attendance/logs/{entry_id}").status_code == 404
    assert ledger.get_for_staff_and_date(1, MONDAY) is not None


def test_summary_requires_one_scope(env):
    app, _, _, _ = env
    admin = app.test_client()
    login(admin, user_id=900, role="admin")

    resp = admin.get("/attendance/summary?start=2026-02-01&end=2026-02-28")

    assert resp.status_code == 422
    assert resp.get_json()["error"] == "validation_error"


def test_summary_csv_export(env):
    app, clock, _, _ = env
    staff_client = app.test_client()
    login(staff_client)
    staff_client.post("/attendance/clock-in", json={})
    clock.now = datetime(2026, 2, 2, 17, 30)
    staff_client.post("/attendance/clock-out", json={})

    admin = app.test_client()
    login(admin, user_id=900, role="admin")
    resp = admin.get("/attendance/reports/summary.csv?start=2026-02-02&end=2026-02-06&company_id=1")

    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    text = resp.data.decode("utf-8-sig")
    header, first, second = text.strip().splitlines()
    assert header.startswith("staff_member_id,full_name,company_id,expected_working_days")
    assert first.startswith("1,Staff 1,1,5,1,")
    assert first.endswith(",08:15")
    assert second.startswith("2,Staff 2,1,5,0,")


def test_working_days_settings(env):
    app, _, _, working_days = env
    admin = app.test_client()
    login(admin, user_id=900, role="admin")

    resp = admin.post("/settings/working-days", json={"company_id": 1, "saturday": True})
    assert resp.status_code == 201

    dup = admin.post("/settings/working-days", json={"company_id": 1})
    assert dup.status_code == 422

    configs = admin.get("/settings/working-days?company_id=1").get_json()["data"]
    assert {c["company_id"] for c in configs} == {None, 1}

    resp = admin.post("/settings/holidays", json={"holiday_date": "2026-02-16", "name": "Founders Day"})
    assert resp.status_code == 201
    assert working_days.holidays[0].holiday_date == date(2026, 2, 16)

    bad = admin.post("/settings/holidays", json={"holiday_date": "16/02/2026", "name": "x"})
    assert bad.status_code == 422


def test_company_admin_is_scoped(env):
    app, _, _, _ = env
    admin = app.test_client()
    login(admin, user_id=900, role="admin", company_id=1)

    resp = admin.get("/attendance/logs?start=2026-02-01&end=2026-02-28&company_id=2")

    assert resp.status_code == 403


def test_optional_invalid_location_is_dropped(env):
    app, _, ledger, _ = env
    client = app.test_client()
    login(client)

    resp = client.post("/attendance/clock-in", json={"latitude": 123, "longitude": 0})

    assert resp.status_code == 200
    entry = ledger.get_for_staff_and_date(1, MONDAY)
    assert entry.clock_in is not None
    assert entry.clock_in_location is None


def test_company_admin_cannot_summarize_other_company_staff(env):
    app, _, _, _ = env
    admin = app.test_client()
    login(admin, user_id=900, role="admin", company_id=1)

    other = admin.get("/attendance/summary?start=2026-02-01&end=2026-02-28&staff_member_id=3")
    own = admin.get("/attendance/summary?start=2026-02-01&end=2026-02-28&staff_member_id=1")
    logs = admin.get("/attendance/logs?start=2026-02-01&end=2026-02-28&staff_member_id=3")

    assert other.status_code == 403
    assert other.get_json()["error"] == "forbidden"
    assert own.status_code == 200
    assert logs.status_code == 403


def test_admin_punches_on_behalf_of_staff(env):
    app, clock, ledger, _ = env
    admin = app.test_client()
    login(admin, user_id=900, role="admin", company_id=1)

    resp = admin.post("/attendance/staff/2/clock-in", json={})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["status"] == "present"
    entry = ledger.get_for_staff_and_date(2, MONDAY)
    assert entry.created_by == 900

    clock.now = datetime(2026, 2, 2, 17, 0)
    resp = admin.post("/attendance/staff/2/clock-out", json={})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["total_hours"] == "7.75"
    assert ledger.get_for_staff_and_date(2, MONDAY).updated_by == 900

    assert admin.post("/attendance/staff/3/clock-in", json={}).status_code == 403
    assert admin.post("/attendance/staff/99/clock-in", json={}).status_code == 404
    assert ledger.get_for_staff_and_date(3, MONDAY) is None

    staff_client = app.test_client()
    login(staff_client, user_id=1)
    assert staff_client.post("/attendance/staff/2/clock-in", json={}).status_code == 403


def test_admin_records_a_missed_day(env):
    app, clock, ledger, _ = env
    staff_client = app.test_client()
    login(staff_client, user_id=1)
    staff_client.post("/attendance/clock-in", json={})

    clock.now = datetime(2026, 2, 3, 8, 0)
    admin = app.test_client()
    login(admin, user_id=900, role="admin")

    resp = admin.post(
        "/attendance/logs",
        json={
            "staff_member_id": 2,
            "log_date": "2026-02-02",
            "clock_in": "2026-02-02T09:30",
            "clock_out": "2026-02-02T18:00",
            "note": "Badge reader down",
        },
    )
    body = resp.get_json()
    assert resp.status_code == 201
    assert body["data"]["status"] == "present"
    assert body["data"]["total_hours"] == "8.50"
    assert body["data"]["late_minutes"] == 30
    assert body["data"]["overtime_minutes"] == 60
    assert body["data"]["created_by"] == 900
    assert body["data"]["finalized"] is True
    assert body["data"]["note"] == "Badge reader down"

    taken = admin.post(
        "/attendance/logs",
        json={"staff_member_id": 1, "log_date": "2026-02-02", "clock_in": "2026-02-02T08:00", "clock_out": "2026-02-02T16:00"},
    )
    assert taken.status_code == 409
    assert taken.get_json()["error"] == "work_log_exists"
    assert ledger.get_for_staff_and_date(1, MONDAY).clock_out is None

    missing = admin.post("/attendance/logs", json={"log_date": "2026-02-02"})
    assert missing.status_code == 422


def test_bulk_record_reports_each_failure(env):
    app, clock, ledger, _ = env
    clock.now = datetime(2026, 2, 3, 8, 0)
    admin = app.test_client()
    login(admin, user_id=900, role="admin")

    resp = admin.post(
        "/attendance/logs/bulk",
        json={
            "records": [
                {"staff_member_id": 1, "log_date": "2026-02-02", "clock_in": "2026-02-02T09:00", "clock_out": "2026-02-02T17:00"},
                {"staff_member_id": 2, "log_date": "2026-02-02", "clock_in": "2026-02-02T17:00", "clock_out": "2026-02-02T09:00"},
                {"staff_member_id": 2, "log_date": "2026-02-10", "clock_in": "2026-02-10T09:00"},
            ]
        },
    )
    data = resp.get_json()["data"]

    assert resp.status_code == 200
    assert data["recorded"] == 1
    assert [f["error"] for f in data["failed"]] == ["invalid_clock_out_time", "validation_error"]
    assert ledger.get_for_staff_and_date(1, MONDAY).total_hours == Decimal("8.00")
    assert ledger.get_for_staff_and_date(2, MONDAY) is None

    assert admin.post("/attendance/logs/bulk", json={"records": []}).status_code == 422


def test_bulk_record_is_refused_whole_when_a_staff_member_is_out_of_scope(env):
    app, clock, ledger, _ = env
    clock.now = datetime(2026, 2, 3, 8, 0)
    admin = app.test_client()
    login(admin, user_id=900, role="admin", company_id=1)

    resp = admin.post(
        "/attendance/logs/bulk",
        json={
            "records": [
                {"staff_member_id": 1, "log_date": "2026-02-02", "clock_in": "2026-02-02T09:00", "clock_out": "2026-02-02T17:00"},
                {"staff_member_id": 3, "log_date": "2026-02-02", "clock_in": "2026-02-02T09:00", "clock_out": "2026-02-02T17:00"},
            ]
        },
    )

    assert resp.status_code == 403
    assert ledger.all_rows() == []


def test_today_summary(env):
    app, _, _, _ = env
    staff_client = app.test_client()
    login(staff_client, user_id=1)
    staff_client.post("/attendance/clock-in", json={})

    admin = app.test_client()
    login(admin, user_id=900, role="admin")

    data = admin.get("/attendance/today").get_json()["data"]
    assert data["date"] == "2026-02-02"
    assert data["total_staff"] == 3
    assert data["not_marked"] == 2
    assert data["clocked_in"] == 1
    assert data["still_clocked_in"] == 1
    assert data["late"] == 1
    assert data["attendance_percentage"] == "33.3"

    scoped = admin.get("/attendance/today?company_id=1").get_json()["data"]
    assert scoped["total_staff"] == 2
    assert scoped["attendance_percentage"] == "50.0"

    company_admin = app.test_client()
    login(company_admin, user_id=901, role="admin", company_id=1)
    assert company_admin.get("/attendance/today?company_id=2").status_code == 403


def test_self_service_logs_summary_and_month(env):
    app, clock, _, _ = env
    client = app.test_client()
    login(client, user_id=1)
    client.post("/attendance/clock-in", json={})
    clock.now = datetime(2026, 2, 2, 17, 30)
    client.post("/attendance/clock-out", json={})

    other = app.test_client()
    login(other, user_id=2)
    other.post("/attendance/clock-in", json={})

    logs = client.get("/attendance/my/logs?start=2026-02-01&end=2026-02-28").get_json()["data"]
    assert [row["log_date"] for row in logs] == ["2026-02-02"]
    assert logs[0]["total_hours"] == "8.25"

    summary = client.get("/attendance/my/summary?start=2026-02-01&end=2026-02-28").get_json()["data"]
    assert summary["present_days"] == 1
    assert summary["total_hours"] == "8.25"
    assert summary["start"] == "2026-02-01"

    month = client.get("/attendance/my/monthly").get_json()["data"]
    assert (month["year"], month["month"]) == (2026, 2)
    assert month["staff_member_id"] == 1
    assert month["expected_working_days"] == 20
    assert month["worked_hours"] == "08:15"
    assert len(month["records"]) == 1

    assert client.get("/attendance/my/monthly?year=2026&month=13").status_code == 422
    assert app.test_client().get("/attendance/my/logs").status_code == 401
