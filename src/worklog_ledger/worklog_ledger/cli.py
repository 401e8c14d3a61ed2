from __future__ import annotations

from datetime import timedelta

import click
from flask import Flask

from .common.datetime_utils import now_local, parse_iso_date
from .container import Container


def register(app: Flask, container: Container) -> None:
    @app.cli.group("ledger")
    def ledger():
        """Work log maintenance commands."""

    @ledger.command("sweep")
    @click.option("--org", "organization_id", type=int, required=True, help="Organization to reconcile.")
    @click.option("--company", "company_id", type=int, default=None, help="Limit the sweep to one company.")
    @click.option("--date", "work_date", default=None, help="Day to close (YYYY-MM-DD), defaults to yesterday.")
    def sweep(organization_id: int, company_id: int | None, work_date: str | None):
        """Close a day: mark absences, holidays and leave, finalize open entries."""

        try:
            day = parse_iso_date(work_date) if work_date else now_local().date() - timedelta(days=1)
        except ValueError:
            raise click.BadParameter("must be YYYY-MM-DD", param_hint="--date")

        report = container.sweep.run(organization_id, day, company_id=company_id)
        click.echo(
            f"Sweep {day.isoformat()} org={organization_id}: "
            f"created={report.created} finalized={report.finalized} "
            f"unchanged={report.unchanged} failed={report.failed}"
        )
        if report.failed:
            raise SystemExit(1)
