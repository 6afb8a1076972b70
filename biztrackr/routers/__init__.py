"""API routers for all endpoints."""

from biztrackr.routers import (
    auth,
    dashboard,
    employees,
    expenses,
    export,
    insights,
    inventory,
    sales,
    system,
    voice,
)

__all__ = [
    "auth",
    "sales",
    "expenses",
    "employees",
    "inventory",
    "dashboard",
    "insights",
    "export",
    "system",
    "voice",
]
