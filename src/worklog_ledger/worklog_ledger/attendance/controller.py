from __future__ import annotations

import csv
import io
from datetime import date
from typing import Optional

from flask import Flask, request, session

from ..common.http import admin_required, json_errors, login_required, ok, session_organization_id, session_staff_id
from ..common.validators import optional_datetime, optional_int, optional_minutes, require_date, require_date_range
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..geolocation.model import LocationReading
from ..reports.service import REPORT_FIELDS
from ..staff.model import StaffMember
from ..container import Container
from .model import ManualRecord


def register(app: Flask, container: Container) -> None:
    def _period() -> tuple[date, date]:
        today = container.punch_processor.today()
        start_s = request.args.get("start") or today.replace(day=1).isoformat()
        end_s = request.args.get("end") or today.isoformat()
        start = require_date(start_s, "start")
        end = require_date(end_s, "end")
        require_date_range(start, end)
        return start, end

    def _admin_company(requested: Optional[int]) -> Optional[int]:
        # A company-level admin only ever sees its own company.
        bound = optional_int(session.get("company_id"), "company_id")
        if bound is None:
            return requested
        if requested is not None and requested != bound:
            raise AuthorizationError("Company is outside this session's scope")
        return bound

    def _scoped_staff(staff_member_id: int) -> StaffMember:
        # Staff outside the session organization do not exist for this admin.
        staff = container.punch_processor.get_staff_member(staff_member_id)
        if staff.organization_id != session_organization_id():
            raise NotFoundError("Staff member not found")
        bound = optional_int(session.get("company_id"), "company_id")
        if bound is not None and staff.company_id != bound:
            raise AuthorizationError("Staff member is outside this session's scope")
        return staff

    def _punch_summary(entry) -> dict:
        return {
            "status": entry.status.value if entry.status else None,
            "clock_in": entry.clock_in.isoformat() if entry.clock_in else None,
            "clock_out": entry.clock_out.isoformat() if entry.clock_out else None,
            "total_hours": str(entry.total_hours) if entry.total_hours is not None else None,
        }

    def _location_from_body() -> Optional[LocationReading]:
        payload = request.get_json(silent=True)
        if payload is not None and not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        return LocationReading.from_payload(payload)

    @app.route("/attendance/clock-in", methods=["POST"], endpoint="attendance_clock_in")
    @login_required
    @json_errors
    def clock_in():
        entry = container.punch_processor.clock_in(
            session_staff_id(),
            location=_location_from_body(),
            source_ip=request.remote_addr,
        )
        return ok(_punch_summary(entry), message="Clocked in")

    @app.route("/attendance/clock-out", methods=["POST"], endpoint="attendance_clock_out")
    @login_required
    @json_errors
    def clock_out():
        entry = container.punch_processor.clock_out(
            session_staff_id(),
            location=_location_from_body(),
            source_ip=request.remote_addr,
        )
        return ok(_punch_summary(entry), message="Clocked out")

    @app.route("/attendance/status", methods=["GET"], endpoint="attendance_status")
    @login_required
    @json_errors
    def status():
        return ok(container.punch_processor.current_status(session_staff_id()))

    @app.route("/attendance/my/logs", methods=["GET"], endpoint="attendance_my_logs")
    @login_required
    @json_errors
    def my_logs():
        start, end = _period()
        staff = container.punch_processor.get_staff_member(session_staff_id())
        entries = container.punch_processor.list_entries(
            staff.organization_id, start=start, end=end, staff_member_id=staff.staff_member_id
        )
        return ok([e.summary() for e in entries])

    @app.route("/attendance/my/summary", methods=["GET"], endpoint="attendance_my_summary")
    @login_required
    @json_errors
    def my_summary():
        start, end = _period()
        staff = container.punch_processor.get_staff_member(session_staff_id())
        result = container.ledger_aggregator.summarize(
            staff.organization_id, start=start, end=end, staff_member_id=staff.staff_member_id
        )
        data = result.as_dict()
        data.update({"start": start.isoformat(), "end": end.isoformat()})
        return ok(data)

    @app.route("/attendance/my/monthly", methods=["GET"], endpoint="attendance_my_monthly")
    @login_required
    @json_errors
    def my_monthly():
        today = container.punch_processor.today()
        year = optional_int(request.args.get("year"), "year") or today.year
        month = optional_int(request.args.get("month"), "month") or today.month
        return ok(container.report_service.monthly_attendance(session_staff_id(), year=year, month=month))

    @app.route("/attendance/staff/<int:staff_member_id>/clock-in", methods=["POST"], endpoint="attendance_admin_clock_in")
    @admin_required
    @json_errors
    def admin_clock_in(staff_member_id: int):
        staff = _scoped_staff(staff_member_id)
        entry = container.punch_processor.clock_in(
            staff.staff_member_id,
            location=_location_from_body(),
            source_ip=request.remote_addr,
            actor_id=session_staff_id(),
        )
        return ok(_punch_summary(entry), message="Clocked in")

    @app.route("/attendance/staff/<int:staff_member_id>/clock-out", methods=["POST"], endpoint="attendance_admin_clock_out")
    @admin_required
    @json_errors
    def admin_clock_out(staff_member_id: int):
        staff = _scoped_staff(staff_member_id)
        entry = container.punch_processor.clock_out(
            staff.staff_member_id,
            location=_location_from_body(),
            source_ip=request.remote_addr,
            actor_id=session_staff_id(),
        )
        return ok(_punch_summary(entry), message="Clocked out")

    @app.route("/attendance/today", methods=["GET"], endpoint="attendance_today")
    @admin_required
    @json_errors
    def today_summary():
        company_id = _admin_company(optional_int(request.args.get("company_id"), "company_id"))
        return ok(container.punch_processor.today_summary(session_organization_id(), company_id=company_id))

    @app.route("/attendance/logs", methods=["GET"], endpoint="attendance_logs")
    @admin_required
    @json_errors
    def list_logs():
        start, end = _period()
        staff_member_id = optional_int(request.args.get("staff_member_id"), "staff_member_id")
        if staff_member_id is not None:
            _scoped_staff(staff_member_id)
        entries = container.punch_processor.list_entries(
            session_organization_id(),
            start=start,
            end=end,
            staff_member_id=staff_member_id,
            company_id=_admin_company(optional_int(request.args.get("company_id"), "company_id")),
        )
        return ok([e.as_dict() for e in entries])

    @app.route("/attendance/logs", methods=["POST"], endpoint="attendance_log_record")
    @admin_required
    @json_errors
    def record_log():
        record = ManualRecord.from_payload(request.get_json(silent=True) or {})
        _scoped_staff(record.staff_member_id)
        entry = container.punch_processor.record_entry(record, actor_id=session_staff_id())
        return ok(entry.as_dict(), message="Attendance recorded", status=201)

    @app.route("/attendance/logs/bulk", methods=["POST"], endpoint="attendance_log_bulk")
    @admin_required
    @json_errors
    def bulk_record_logs():
        payload = request.get_json(silent=True) or {}
        items = payload.get("records") if isinstance(payload, dict) else None
        if not isinstance(items, list) or not items:
            raise ValidationError("records must be a non-empty list")

        records = [ManualRecord.from_payload(item) for item in items]
        for record in records:
            _scoped_staff(record.staff_member_id)

        report = container.punch_processor.record_entries(records, actor_id=session_staff_id())
        return ok(report.as_dict(), message="Bulk attendance processed")

    @app.route("/attendance/logs/<int:entry_id>", methods=["PUT"], endpoint="attendance_log_correct")
    @admin_required
    @json_errors
    def correct_log(entry_id: int):
        payload = request.get_json(silent=True) or {}
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")

        entry = container.punch_processor.get_entry(entry_id, organization_id=session_organization_id())
        _admin_company(entry.company_id)

        clock_in_at = optional_datetime(payload.get("clock_in"), "clock_in")
        if clock_in_at is None:
            raise ValidationError("clock_in is required")
        break_minutes = optional_minutes(payload.get("break_minutes"), "break_minutes")

        corrected = container.punch_processor.correct_entry(
            entry.entry_id,
            clock_in=clock_in_at,
            clock_out=optional_datetime(payload.get("clock_out"), "clock_out"),
            break_minutes=break_minutes,
            note=payload.get("note"),
            actor_id=session_staff_id(),
        )
        return ok(corrected.as_dict(), message="Work log corrected")

    @app.route("/attendance/logs/<int:entry_id>", methods=["DELETE"], endpoint="attendance_log_delete")
    @admin_required
    @json_errors
    def delete_log(entry_id: int):
        entry = container.punch_processor.get_entry(entry_id, organization_id=session_organization_id())
        _admin_company(entry.company_id)
        container.punch_processor.soft_delete(entry.entry_id, actor_id=session_staff_id())
        return ok(message="Work log deleted")

    @app.route("/attendance/summary", methods=["GET"], endpoint="attendance_summary")
    @admin_required
    @json_errors
    def summary():
        start, end = _period()
        staff_member_id = optional_int(request.args.get("staff_member_id"), "staff_member_id")
        company_id = optional_int(request.args.get("company_id"), "company_id")
        if staff_member_id is None:
            company_id = _admin_company(company_id)
        else:
            _scoped_staff(staff_member_id)

        result = container.ledger_aggregator.summarize(
            session_organization_id(),
            start=start,
            end=end,
            staff_member_id=staff_member_id,
            company_id=company_id,
        )
        data = result.as_dict()
        data.update({"start": start.isoformat(), "end": end.isoformat()})
        return ok(data)

    @app.route("/attendance/reports/summary.csv", methods=["GET"], endpoint="attendance_report_csv")
    @admin_required
    @json_errors
    def report_csv():
        start, end = _period()
        data = container.report_service.build_period_report(
            session_organization_id(),
            start=start,
            end=end,
            company_id=_admin_company(optional_int(request.args.get("company_id"), "company_id")),
        )

        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=REPORT_FIELDS)
        writer.writeheader()
        for row in data.rows:
            writer.writerow(row)

        filename = f"attendance_summary_{start.strftime('%Y%m%d')}_{end.strftime('%Y%m%d')}.csv"
        return app.response_class(
            out.getvalue().encode("utf-8-sig"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
