from __future__ import annotations

from typing import Optional

from apps.audit import AuditEvents, log_event


class AttendanceAuditService:
    @staticmethod
    def _ip(request) -> Optional[str]:
        xff = request.META.get("HTTP_X_FORWARDED_FOR")
        if xff:
            return xff.split(",")[0].strip()
        return request.META.get("REMOTE_ADDR")

    @classmethod
    def log_checked_in(cls, request, result) -> None:
        record = result.record
        log_event(
            action=AuditEvents.ATTENDANCE_CHECKED_IN,
            actor=request.user,
            object_type="attendance_record",
            object_id=str(record.id),
            level="info",
            category="attendance",
            ip_address=cls._ip(request),
            metadata={
                "date": record.date.isoformat(),
                "status": record.status,
                "distance_m": result.distance_m,
                "late_minutes": result.late_minutes,
            },
        )

    @classmethod
    def log_checked_out(cls, request, result) -> None:
        record = result.record
        log_event(
            action=AuditEvents.ATTENDANCE_CHECKED_OUT,
            actor=request.user,
            object_type="attendance_record",
            object_id=str(record.id),
            level="info",
            category="attendance",
            ip_address=cls._ip(request),
            metadata={
                "date": record.date.isoformat(),
                "status": record.status,
                "duration_minutes": result.duration_minutes,
                "early_minutes": result.early_minutes,
            },
        )

    @classmethod
    def log_rejected(cls, request, *, action: str, error) -> None:
        log_event(
            action=action,
            actor=request.user,
            object_type="attendance_record",
            object_id="",
            level="warning",
            category="attendance",
            ip_address=cls._ip(request),
            metadata={"code": error.code, "message": error.message},
        )

    @classmethod
    def log_history_viewed(cls, request, filters: dict) -> None:
        log_event(
            action=AuditEvents.ATTENDANCE_HISTORY_VIEWED_ADMIN,
            actor=request.user,
            object_type="attendance_record",
            level="info",
            category="attendance",
            ip_address=cls._ip(request),
            metadata={key: str(value) for key, value in filters.items()},
        )
