"""
Labor Administration - Routers Package

FastAPI route handlers.

Routers:
- auth: Authentication (register, login, current user)
- workers: Worker registration and maintenance
- employment_records: Employment records, labor changes, contract PDF
- employment_history: Employment history ledger
- leave_requests: Leave/permission requests and the expiry sweep
- bonuses: Bonus catalog and assignments
- trainings: Worker trainings and certificates
"""

from app.routers import (
    auth,
    workers,
    employment_records,
    employment_history,
    leave_requests,
    bonuses,
    trainings,
)

__all__ = [
    "auth",
    "workers",
    "employment_records",
    "employment_history",
    "leave_requests",
    "bonuses",
    "trainings",
]
