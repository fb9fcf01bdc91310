from __future__ import annotations

from datetime import date
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.utils import timezone

from .exceptions import Conflict, EmployeeNotFound
from .models import AttendanceRecord


User = get_user_model()

DEFAULT_LIST_LIMIT = 100


class AttendanceRepository:
    """
    ORM adapter for the attendance engine.

    The one-record-per-day rule is enforced by the database constraint on
    (user, date); check-out uses a conditional update so concurrent
    submissions cannot both succeed. Both races surface as ``Conflict``.
    """

    def get_employee(self, employee_id):
        employee = (
            User.objects.select_related("role")
            .filter(pk=employee_id, is_active=True)
            .first()
        )
        if employee is None:
            raise EmployeeNotFound()
        return employee

    def get_today_record(self, employee_id, reference_date: date) -> Optional[AttendanceRecord]:
        return AttendanceRecord.objects.filter(user_id=employee_id, date=reference_date).first()

    def insert_check_in(self, record: AttendanceRecord) -> AttendanceRecord:
        try:
            with transaction.atomic():
                record.save(force_insert=True)
        except IntegrityError as exc:
            raise Conflict(f"attendance for user {record.user_id} on {record.date} already exists") from exc
        return record

    def update_check_out(self, record_id, fields: dict) -> AttendanceRecord:
        with transaction.atomic():
            updated = AttendanceRecord.objects.filter(
                pk=record_id,
                check_out_time__isnull=True,
            ).update(updated_at=timezone.now(), **fields)
            if not updated:
                raise Conflict(f"attendance {record_id} is already checked out")
            return AttendanceRecord.objects.select_related("user").get(pk=record_id)

    def list_attendance(
        self,
        *,
        employee_id=None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[str] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[AttendanceRecord]:
        qs = AttendanceRecord.objects.select_related("user", "user__role")
        if employee_id is not None:
            qs = qs.filter(user_id=employee_id)
        if start_date:
            qs = qs.filter(date__gte=start_date)
        if end_date:
            qs = qs.filter(date__lte=end_date)
        if status:
            qs = qs.filter(status=status)
        return list(qs.order_by("-check_in_time", "-id")[:limit])
