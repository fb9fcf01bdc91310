"""Audit trail for logins and attendance events."""

from .events import AuditEvents
from .services import AuditService, log_event

__all__ = ["AuditEvents", "AuditService", "log_event"]
