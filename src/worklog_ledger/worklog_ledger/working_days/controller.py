from __future__ import annotations

from datetime import date
from typing import Optional

from flask import Flask, request, session

from ..common.http import admin_required, json_errors, ok, session_organization_id
from ..common.validators import optional_int, require_date, require_non_empty
from ..core.exceptions import AuthorizationError, ValidationError
from ..container import Container
from .model import WEEKDAY_FIELDS


def register(app: Flask, container: Container) -> None:
    def _json_body() -> dict:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        return payload

    def _scope(requested: Optional[int]) -> Optional[int]:
        bound = optional_int(session.get("company_id"), "company_id")
        if bound is None:
            return requested
        if requested is not None and requested != bound:
            raise AuthorizationError("Company is outside this session's scope")
        return bound

    def _optional_date(value, field_name: str) -> Optional[date]:
        if value is None or value == "":
            return None
        return require_date(value, field_name)

    @app.route("/settings/working-days", methods=["GET", "POST"], endpoint="settings_working_days")
    @admin_required
    @json_errors
    def working_days():
        organization_id = session_organization_id()

        if request.method == "POST":
            payload = _json_body()
            pattern = {k: v for k, v in payload.items() if k not in ("company_id", "from_date", "to_date")}
            for name, value in pattern.items():
                if name in WEEKDAY_FIELDS and not isinstance(value, bool):
                    raise ValidationError(f"{name} must be true or false")

            config_id = container.working_days_service.create_config(
                organization_id=organization_id,
                company_id=_scope(optional_int(payload.get("company_id"), "company_id")),
                pattern=pattern,
                from_date=_optional_date(payload.get("from_date"), "from_date"),
                to_date=_optional_date(payload.get("to_date"), "to_date"),
            )
            return ok({"config_id": config_id}, message="Working days saved", status=201)

        configs = container.working_days_service.list_configs(
            organization_id=organization_id,
            company_id=_scope(optional_int(request.args.get("company_id"), "company_id")),
        )
        return ok(
            [
                {
                    "config_id": c.config_id,
                    "company_id": c.company_id,
                    "from_date": c.from_date.isoformat() if c.from_date else None,
                    "to_date": c.to_date.isoformat() if c.to_date else None,
                    **c.pattern(),
                }
                for c in configs
            ]
        )

    @app.route("/settings/holidays", methods=["POST"], endpoint="settings_holidays")
    @admin_required
    @json_errors
    def holidays():
        payload = _json_body()
        holiday_id = container.working_days_service.add_holiday(
            organization_id=session_organization_id(),
            company_id=_scope(optional_int(payload.get("company_id"), "company_id")),
            holiday_date=require_date(payload.get("holiday_date"), "holiday_date"),
            name=require_non_empty(str(payload.get("name") or ""), "name"),
        )
        return ok({"holiday_id": holiday_id}, message="Holiday saved", status=201)
