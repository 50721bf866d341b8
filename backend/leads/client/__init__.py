"""
Dashboard client for the lead desk API.

Usable without Django settings: it only depends on httpx and the pure
lead-state helpers.
"""
from leads.client.api_client import LeadDeskClient
from leads.client.errors import (
    AccessDenied,
    Conflict,
    DashboardApiError,
    NotFound,
    StorageFailure,
    TransportError,
    ValidationFailed,
)
from leads.client.records import EventRecord
from leads.client.refresher import AutoRefresher
from leads.client.session import DashboardSession, RefreshTicket

__all__ = [
    "AccessDenied",
    "AutoRefresher",
    "Conflict",
    "DashboardApiError",
    "DashboardSession",
    "EventRecord",
    "LeadDeskClient",
    "NotFound",
    "RefreshTicket",
    "StorageFailure",
    "TransportError",
    "ValidationFailed",
]
