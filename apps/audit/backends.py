from __future__ import annotations

import logging
from typing import Protocol

from .contracts import AuditEvent


logger = logging.getLogger("apps.audit")


class AuditBackend(Protocol):
    def write(self, event: AuditEvent) -> None:
        ...


class DatabaseAuditBackend:
    """
    Primary backend.
    Writes to accounts.AuditLog.
    """

    def write(self, event: AuditEvent) -> None:
        from accounts.models import AuditLog

        AuditLog.log(
            action=event.action,
            user=event.actor,
            object_type=event.object_type,
            object_id=event.object_id,
            level=event.level,
            category=event.category,
            ip_address=event.ip_address,
            metadata=event.metadata,
        )


class LoggingAuditBackend:
    """Mirrors audit events into the application log."""

    LEVELS = {
        "info": logging.INFO,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }

    def write(self, event: AuditEvent) -> None:
        logger.log(
            self.LEVELS.get(event.level, logging.INFO),
            "%s actor=%s object=%s metadata=%s",
            event.action,
            event.actor_id,
            event.target,
            event.metadata or {},
        )


class NoopAuditBackend:
    def write(self, event: AuditEvent) -> None:  # pragma: no cover
        return None
