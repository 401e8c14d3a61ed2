"""Work-time ledger package.

Organized by feature modules (attendance, working_days, metrics, ...) with a
thin Flask controller layer over service/repository layers. The ledger turns
raw clock-in/clock-out punches into one canonical work record per staff member
and day.
"""
