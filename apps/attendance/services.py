from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from django.conf import settings
from django.utils import timezone

from . import geo, shift_policy
from .exceptions import (
    Conflict,
    DuplicateSubmission,
    GeofenceNotConfigured,
    InvalidPhoto,
    LowAccuracy,
    MissingPrerequisite,
    OutOfGeofence,
)
from .models import AttendanceRecord
from .repository import AttendanceRepository


logger = logging.getLogger(__name__)

Status = AttendanceRecord.Status


@dataclass(frozen=True)
class OfficePolicy:
    """
    Fallback office geofence and GPS accuracy ceiling.

    Per-employee office fields override the matching default field.
    """

    latitude: Optional[float]
    longitude: Optional[float]
    radius_m: float
    max_accuracy_m: float = 50

    @classmethod
    def from_settings(cls) -> "OfficePolicy":
        return cls(
            latitude=getattr(settings, "OFFICE_LATITUDE", None),
            longitude=getattr(settings, "OFFICE_LONGITUDE", None),
            radius_m=getattr(settings, "OFFICE_RADIUS_M", 100),
            max_accuracy_m=getattr(settings, "MAX_GPS_ACCURACY_M", 50),
        )

    def geofence_for(self, employee) -> tuple[geo.Coordinates, float]:
        latitude = employee.office_latitude if employee.office_latitude is not None else self.latitude
        longitude = employee.office_longitude if employee.office_longitude is not None else self.longitude
        radius = employee.office_radius_m if employee.office_radius_m is not None else self.radius_m
        if latitude is None or longitude is None or radius is None:
            raise GeofenceNotConfigured()
        return geo.Coordinates(float(latitude), float(longitude)), float(radius)


@dataclass(frozen=True)
class CheckInResult:
    record: AttendanceRecord
    distance_m: float
    is_late: bool
    late_minutes: int

    @property
    def record_id(self):
        return self.record.pk

    @property
    def check_in_time(self) -> datetime:
        return self.record.check_in_time

    @property
    def status(self) -> str:
        return self.record.status

    @property
    def message(self) -> str:
        if self.is_late:
            return f"Anda terlambat {self.late_minutes} menit"
        return "Absen masuk berhasil"


@dataclass(frozen=True)
class CheckOutResult:
    record: AttendanceRecord
    distance_m: float
    duration_minutes: int
    is_early: bool
    early_minutes: int

    @property
    def record_id(self):
        return self.record.pk

    @property
    def check_in_time(self) -> datetime:
        return self.record.check_in_time

    @property
    def check_out_time(self) -> datetime:
        return self.record.check_out_time

    @property
    def status(self) -> str:
        return self.record.status

    @property
    def duration_formatted(self) -> str:
        return shift_policy.format_duration(self.duration_minutes)

    @property
    def message(self) -> str:
        if self.is_early:
            return f"Anda pulang {self.early_minutes} menit lebih awal"
        return "Absen pulang berhasil"


def resolve_check_in_status(is_late: bool) -> str:
    return Status.TERLAMBAT if is_late else Status.HADIR


def resolve_check_out_status(check_in_status: str, is_early: bool) -> str:
    """Lateness recorded at check-in outranks an early departure."""
    if check_in_status == Status.TERLAMBAT:
        return Status.TERLAMBAT
    if is_early:
        return Status.PULANG_CEPAT
    return Status.HADIR


def local_event_time(timestamp: Optional[datetime] = None) -> datetime:
    timestamp = timestamp or timezone.now()
    if timezone.is_naive(timestamp):
        timestamp = timezone.make_aware(timestamp)
    return timezone.localtime(timestamp)


class AttendanceStateMachine:
    """
    Daily attendance lifecycle for one employee:
    no record -> checked in -> checked out.

    Every rejection is raised as an ``AttendanceError`` subclass before any
    write happens; each successful transition is a single repository call.
    """

    def __init__(self, repository: Optional[AttendanceRepository] = None, office: Optional[OfficePolicy] = None):
        self.repository = repository or AttendanceRepository()
        self.office = office or OfficePolicy.from_settings()

    def _check_location(self, employee, coordinates: geo.Coordinates, accuracy_m: float) -> geo.GeofenceCheck:
        if not geo.is_accuracy_acceptable(accuracy_m, self.office.max_accuracy_m):
            raise LowAccuracy(accuracy_m, self.office.max_accuracy_m)

        center, radius_m = self.office.geofence_for(employee)
        check = geo.classify(coordinates, center, radius_m)
        if not check.within_radius:
            raise OutOfGeofence(check.distance_m, radius_m)
        return check

    def check_in(
        self,
        employee_id,
        coordinates: geo.Coordinates,
        accuracy_m: float,
        photo_ref: str,
        *,
        timestamp: Optional[datetime] = None,
        device_info: str = "",
    ) -> CheckInResult:
        now = local_event_time(timestamp)
        employee = self.repository.get_employee(employee_id)

        if self.repository.get_today_record(employee.pk, now.date()) is not None:
            raise DuplicateSubmission("Anda sudah absen masuk hari ini")

        location = self._check_location(employee, coordinates, accuracy_m)
        if not photo_ref:
            raise InvalidPhoto()

        late = shift_policy.lateness(now, employee.shift_start)

        record = AttendanceRecord(
            user=employee,
            date=now.date(),
            check_in_time=now,
            check_in_latitude=round(coordinates.latitude, 6),
            check_in_longitude=round(coordinates.longitude, 6),
            check_in_accuracy_m=accuracy_m,
            check_in_photo=photo_ref,
            distance_m=location.distance_m,
            status=resolve_check_in_status(late.is_late),
            late_minutes=late.late_minutes,
            device_info=device_info or "",
        )
        try:
            record = self.repository.insert_check_in(record)
        except Conflict as exc:
            raise DuplicateSubmission("Anda sudah absen masuk hari ini") from exc

        logger.info(
            "Check-in user=%s record=%s status=%s distance=%.2fm late=%s",
            employee.pk,
            record.pk,
            record.status,
            location.distance_m,
            late.late_minutes,
        )
        return CheckInResult(
            record=record,
            distance_m=location.distance_m,
            is_late=late.is_late,
            late_minutes=late.late_minutes,
        )

    def check_out(
        self,
        employee_id,
        coordinates: geo.Coordinates,
        accuracy_m: float,
        photo_ref: str,
        *,
        timestamp: Optional[datetime] = None,
    ) -> CheckOutResult:
        now = local_event_time(timestamp)
        employee = self.repository.get_employee(employee_id)

        record = self.repository.get_today_record(employee.pk, now.date())
        if record is None:
            raise MissingPrerequisite("Anda belum absen masuk hari ini")
        if record.check_out_time is not None:
            raise DuplicateSubmission("Anda sudah absen pulang hari ini")

        location = self._check_location(employee, coordinates, accuracy_m)
        if not photo_ref:
            raise InvalidPhoto()

        early = shift_policy.earliness(now, employee.shift_end)
        duration = shift_policy.duration_minutes(record.check_in_time, now)

        fields = {
            "check_out_time": now,
            "check_out_latitude": round(coordinates.latitude, 6),
            "check_out_longitude": round(coordinates.longitude, 6),
            "check_out_accuracy_m": accuracy_m,
            "check_out_photo": photo_ref,
            "duration_minutes": duration,
            "early_minutes": early.early_minutes,
            "status": resolve_check_out_status(record.status, early.is_early),
        }
        try:
            record = self.repository.update_check_out(record.pk, fields)
        except Conflict as exc:
            raise DuplicateSubmission("Anda sudah absen pulang hari ini") from exc

        logger.info(
            "Check-out user=%s record=%s status=%s duration=%smin early=%s",
            employee.pk,
            record.pk,
            record.status,
            duration,
            early.early_minutes,
        )
        return CheckOutResult(
            record=record,
            distance_m=location.distance_m,
            duration_minutes=duration,
            is_early=early.is_early,
            early_minutes=early.early_minutes,
        )
