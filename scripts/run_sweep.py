"""Close a working day from cron: python scripts/run_sweep.py --org 1 [--company 2] [--date 2024-05-31]"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from datetime import timedelta
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.worklog_ledger.worklog_ledger.common.datetime_utils import now_local, parse_iso_date
from src.worklog_ledger.worklog_ledger.container import build_container
from src.worklog_ledger.worklog_ledger.core.policy import LedgerPolicy


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the end-of-day ledger sweep.")
    parser.add_argument("--org", type=int, required=True)
    parser.add_argument("--company", type=int, default=None)
    parser.add_argument("--date", default=None, help="YYYY-MM-DD, defaults to yesterday")
    args = parser.parse_args(argv)

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(level=str(getattr(settings, "LOG_LEVEL", "INFO")).upper())

    day = parse_iso_date(args.date) if args.date else now_local().date() - timedelta(days=1)
    container = build_container(db_config=dict(settings.DB_CONFIG), policy=LedgerPolicy.from_settings(settings))
    report = container.sweep.run(args.org, day, company_id=args.company)

    print(report.as_dict())
    return 1 if report.failed else 0


if __name__ == "__main__":
    sys.exit(main())
