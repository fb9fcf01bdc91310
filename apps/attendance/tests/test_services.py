from datetime import datetime, time

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone

from accounts.models import Role
from apps.attendance.exceptions import (
    DuplicateSubmission,
    EmployeeNotFound,
    GeofenceNotConfigured,
    InvalidPhoto,
    InvariantViolation,
    LowAccuracy,
    MissingPrerequisite,
    OutOfGeofence,
)
from apps.attendance.geo import Coordinates
from apps.attendance.models import AttendanceRecord
from apps.attendance.repository import AttendanceRepository
from apps.attendance.services import (
    AttendanceStateMachine,
    OfficePolicy,
    resolve_check_out_status,
)


User = get_user_model()

OFFICE = Coordinates(-6.200000, 106.816666)
FAR_AWAY = Coordinates(-6.209000, 106.816666)
POLICY = OfficePolicy(latitude=OFFICE.latitude, longitude=OFFICE.longitude, radius_m=100, max_accuracy_m=50)


def local(hour, minute, second=0, day=2):
    return timezone.make_aware(datetime(2026, 3, day, hour, minute, second))


def create_employee(username="karyawan", **extra):
    role, _ = Role.objects.get_or_create(
        name=Role.Name.EMPLOYEE,
        defaults={"level": Role.Level.EMPLOYEE},
    )
    extra.setdefault("shift_start", time(8, 0))
    extra.setdefault("shift_end", time(17, 0))
    return User.objects.create_user(username=username, password="StrongPass123!", role=role, **extra)


@pytest.fixture
def employee(db):
    return create_employee()


@pytest.fixture
def machine():
    return AttendanceStateMachine(repository=AttendanceRepository(), office=POLICY)


@pytest.mark.django_db
def test_on_time_check_in_creates_hadir_record(machine, employee):
    result = machine.check_in(employee.id, OFFICE, 10, "in.jpg", timestamp=local(7, 55), device_info="pytest")

    record = AttendanceRecord.objects.get(pk=result.record_id)
    assert result.status == AttendanceRecord.Status.HADIR
    assert result.is_late is False
    assert result.late_minutes == 0
    assert result.distance_m == 0
    assert record.date == local(7, 55).date()
    assert record.check_in_photo == "in.jpg"
    assert record.device_info == "pytest"
    assert record.check_out_time is None
    assert record.duration_minutes is None


@pytest.mark.django_db
def test_late_check_in_is_terlambat(machine, employee):
    result = machine.check_in(employee.id, OFFICE, 10, "in.jpg", timestamp=local(8, 5, 30))

    assert result.status == AttendanceRecord.Status.TERLAMBAT
    assert result.is_late is True
    assert result.late_minutes == 5
    assert result.message == "Anda terlambat 5 menit"


@pytest.mark.django_db
def test_second_check_in_same_day_is_rejected(machine, employee):
    machine.check_in(employee.id, OFFICE, 10, "in.jpg", timestamp=local(7, 55))

    with pytest.raises(DuplicateSubmission):
        machine.check_in(employee.id, OFFICE, 10, "again.jpg", timestamp=local(9, 0))

    assert AttendanceRecord.objects.filter(user=employee).count() == 1


@pytest.mark.django_db
def test_check_in_next_day_creates_new_record(machine, employee):
    machine.check_in(employee.id, OFFICE, 10, "in.jpg", timestamp=local(7, 55, day=2))
    machine.check_in(employee.id, OFFICE, 10, "in.jpg", timestamp=local(7, 55, day=3))

    assert AttendanceRecord.objects.filter(user=employee).count() == 2


@pytest.mark.django_db
def test_low_accuracy_rejected_even_inside_radius(machine, employee):
    with pytest.raises(LowAccuracy) as excinfo:
        machine.check_in(employee.id, OFFICE, 50.1, "in.jpg", timestamp=local(7, 55))

    assert "50.1" in excinfo.value.message
    assert not AttendanceRecord.objects.exists()


@pytest.mark.django_db
def test_out_of_geofence_message_has_distance_and_radius(machine, employee):
    with pytest.raises(OutOfGeofence) as excinfo:
        machine.check_in(employee.id, FAR_AWAY, 10, "in.jpg", timestamp=local(7, 55))

    error = excinfo.value
    assert error.radius_m == 100
    assert error.distance_m == pytest.approx(1000, rel=0.01)
    assert "1001m" in error.message
    assert "max: 100m" in error.message
    assert not AttendanceRecord.objects.exists()


@pytest.mark.django_db
def test_employee_office_override_wins_over_default(machine):
    employee = create_employee(
        office_latitude=FAR_AWAY.latitude,
        office_longitude=FAR_AWAY.longitude,
        office_radius_m=50,
    )

    result = machine.check_in(employee.id, FAR_AWAY, 10, "in.jpg", timestamp=local(7, 55))
    assert result.distance_m == 0

    with pytest.raises(OutOfGeofence):
        machine.check_out(employee.id, OFFICE, 10, "out.jpg", timestamp=local(17, 0))


@pytest.mark.django_db
def test_missing_office_configuration(employee):
    machine = AttendanceStateMachine(office=OfficePolicy(latitude=None, longitude=None, radius_m=100))

    with pytest.raises(GeofenceNotConfigured):
        machine.check_in(employee.id, OFFICE, 10, "in.jpg", timestamp=local(7, 55))


@pytest.mark.django_db
def test_unknown_or_inactive_employee(machine, employee):
    with pytest.raises(EmployeeNotFound):
        machine.check_in(999999, OFFICE, 10, "in.jpg", timestamp=local(7, 55))

    employee.is_active = False
    employee.save(update_fields=["is_active"])
    with pytest.raises(EmployeeNotFound):
        machine.check_in(employee.id, OFFICE, 10, "in.jpg", timestamp=local(7, 55))


@pytest.mark.django_db
def test_empty_photo_reference_is_rejected(machine, employee):
    with pytest.raises(InvalidPhoto):
        machine.check_in(employee.id, OFFICE, 10, "", timestamp=local(7, 55))

    assert not AttendanceRecord.objects.exists()


@pytest.mark.django_db
def test_photo_is_checked_after_location(machine, employee):
    with pytest.raises(EmployeeNotFound):
        machine.check_in(employee.id + 1000, OFFICE, 10, "", timestamp=local(7, 55))
    with pytest.raises(LowAccuracy):
        machine.check_in(employee.id, OFFICE, 80, "", timestamp=local(7, 55))
    with pytest.raises(OutOfGeofence):
        machine.check_in(employee.id, FAR_AWAY, 10, "", timestamp=local(7, 55))


@pytest.mark.django_db
def test_check_out_with_empty_photo_keeps_record_open(machine, employee):
    machine.check_in(employee.id, OFFICE, 10, "in.jpg", timestamp=local(7, 55))

    with pytest.raises(OutOfGeofence):
        machine.check_out(employee.id, FAR_AWAY, 10, "", timestamp=local(17, 0))
    with pytest.raises(InvalidPhoto):
        machine.check_out(employee.id, OFFICE, 10, "", timestamp=local(17, 0))

    assert AttendanceRecord.objects.get(user=employee).check_out_time is None


@pytest.mark.django_db
def test_check_out_without_check_in_mutates_nothing(machine, employee):
    with pytest.raises(MissingPrerequisite):
        machine.check_out(employee.id, OFFICE, 10, "out.jpg", timestamp=local(17, 0))

    assert not AttendanceRecord.objects.exists()


@pytest.mark.django_db
def test_full_day_sets_duration_and_keeps_hadir(machine, employee):
    check_in = machine.check_in(employee.id, OFFICE, 10, "in.jpg", timestamp=local(7, 50))
    result = machine.check_out(employee.id, OFFICE, 12, "out.jpg", timestamp=local(17, 5))

    record = AttendanceRecord.objects.get(pk=check_in.record_id)
    assert result.record_id == check_in.record_id
    assert result.status == AttendanceRecord.Status.HADIR
    assert result.is_early is False
    assert result.duration_minutes == 555
    assert result.duration_formatted == "9 jam 15 menit"
    assert record.duration_minutes == 555
    assert record.check_out_photo == "out.jpg"
    assert record.check_out_accuracy_m == 12
    assert record.early_minutes == 0


@pytest.mark.django_db
def test_duration_from_stored_check_in(machine, employee):
    machine.check_in(employee.id, OFFICE, 10, "in.jpg", timestamp=local(8, 10))
    result = machine.check_out(employee.id, OFFICE, 10, "out.jpg", timestamp=local(17, 5))

    assert result.duration_minutes == 535


@pytest.mark.django_db
def test_on_time_employee_leaving_early_is_pulang_cepat(machine, employee):
    machine.check_in(employee.id, OFFICE, 10, "in.jpg", timestamp=local(7, 55))
    result = machine.check_out(employee.id, OFFICE, 10, "out.jpg", timestamp=local(16, 45))

    assert result.status == AttendanceRecord.Status.PULANG_CEPAT
    assert result.is_early is True
    assert result.early_minutes == 15
    assert result.message == "Anda pulang 15 menit lebih awal"


@pytest.mark.django_db
def test_late_employee_leaving_early_stays_terlambat(machine, employee):
    machine.check_in(employee.id, OFFICE, 10, "in.jpg", timestamp=local(8, 30))
    result = machine.check_out(employee.id, OFFICE, 10, "out.jpg", timestamp=local(16, 0))

    record = AttendanceRecord.objects.get(pk=result.record_id)
    assert result.status == AttendanceRecord.Status.TERLAMBAT
    assert result.is_early is True
    assert record.status == AttendanceRecord.Status.TERLAMBAT
    assert record.late_minutes == 30
    assert record.early_minutes == 60


@pytest.mark.django_db
def test_second_check_out_is_rejected(machine, employee):
    machine.check_in(employee.id, OFFICE, 10, "in.jpg", timestamp=local(7, 55))
    machine.check_out(employee.id, OFFICE, 10, "out.jpg", timestamp=local(17, 0))

    with pytest.raises(DuplicateSubmission):
        machine.check_out(employee.id, OFFICE, 10, "out2.jpg", timestamp=local(17, 30))

    assert AttendanceRecord.objects.get(user=employee).check_out_photo == "out.jpg"


@pytest.mark.django_db
def test_check_out_location_is_validated_again(machine, employee):
    machine.check_in(employee.id, OFFICE, 10, "in.jpg", timestamp=local(7, 55))

    with pytest.raises(LowAccuracy):
        machine.check_out(employee.id, OFFICE, 80, "out.jpg", timestamp=local(17, 0))
    with pytest.raises(OutOfGeofence):
        machine.check_out(employee.id, FAR_AWAY, 10, "out.jpg", timestamp=local(17, 0))

    assert AttendanceRecord.objects.get(user=employee).check_out_time is None


@pytest.mark.django_db
def test_check_out_before_check_in_time_is_invariant_violation(machine, employee):
    machine.check_in(employee.id, OFFICE, 10, "in.jpg", timestamp=local(9, 0))

    with pytest.raises(InvariantViolation):
        machine.check_out(employee.id, OFFICE, 10, "out.jpg", timestamp=local(8, 0))

    assert AttendanceRecord.objects.get(user=employee).check_out_time is None


class StaleReadRepository(AttendanceRepository):
    """Answers reads as if a concurrent request had not committed yet."""

    def __init__(self, stale_record=None):
        self.stale_record = stale_record

    def get_today_record(self, employee_id, reference_date):
        return self.stale_record


@pytest.mark.django_db
def test_concurrent_check_in_unique_violation_is_duplicate(employee):
    AttendanceStateMachine(office=POLICY).check_in(employee.id, OFFICE, 10, "in.jpg", timestamp=local(7, 55))
    racing = AttendanceStateMachine(repository=StaleReadRepository(), office=POLICY)

    with pytest.raises(DuplicateSubmission):
        racing.check_in(employee.id, OFFICE, 10, "in2.jpg", timestamp=local(7, 56))

    assert AttendanceRecord.objects.filter(user=employee).count() == 1


@pytest.mark.django_db
def test_concurrent_check_out_zero_rows_is_duplicate(employee):
    machine = AttendanceStateMachine(office=POLICY)
    machine.check_in(employee.id, OFFICE, 10, "in.jpg", timestamp=local(7, 55))
    stale = AttendanceRecord.objects.get(user=employee)
    machine.check_out(employee.id, OFFICE, 10, "out.jpg", timestamp=local(17, 0))
    racing = AttendanceStateMachine(repository=StaleReadRepository(stale), office=POLICY)

    with pytest.raises(DuplicateSubmission):
        racing.check_out(employee.id, OFFICE, 10, "out2.jpg", timestamp=local(17, 1))

    assert AttendanceRecord.objects.get(user=employee).check_out_photo == "out.jpg"


@pytest.mark.parametrize(
    "check_in_status, is_early, expected",
    [
        (AttendanceRecord.Status.HADIR, False, AttendanceRecord.Status.HADIR),
        (AttendanceRecord.Status.HADIR, True, AttendanceRecord.Status.PULANG_CEPAT),
        (AttendanceRecord.Status.TERLAMBAT, False, AttendanceRecord.Status.TERLAMBAT),
        (AttendanceRecord.Status.TERLAMBAT, True, AttendanceRecord.Status.TERLAMBAT),
    ],
)
def test_check_out_status_precedence(check_in_status, is_early, expected):
    assert resolve_check_out_status(check_in_status, is_early) == expected


@pytest.mark.django_db
def test_list_attendance_filters_and_orders_newest_first(machine, employee):
    other = create_employee(username="lain")
    machine.check_in(employee.id, OFFICE, 10, "a.jpg", timestamp=local(7, 55, day=2))
    machine.check_in(employee.id, OFFICE, 10, "b.jpg", timestamp=local(8, 20, day=3))
    machine.check_in(employee.id, OFFICE, 10, "c.jpg", timestamp=local(7, 50, day=4))
    machine.check_in(other.id, OFFICE, 10, "d.jpg", timestamp=local(7, 50, day=4))
    repository = AttendanceRepository()

    mine = repository.list_attendance(employee_id=employee.id)
    assert [record.check_in_photo for record in mine] == ["c.jpg", "b.jpg", "a.jpg"]

    late = repository.list_attendance(status=AttendanceRecord.Status.TERLAMBAT)
    assert [record.check_in_photo for record in late] == ["b.jpg"]

    ranged = repository.list_attendance(
        employee_id=employee.id,
        start_date=local(0, 0, day=3).date(),
        end_date=local(0, 0, day=3).date(),
    )
    assert [record.check_in_photo for record in ranged] == ["b.jpg"]

    assert len(repository.list_attendance(limit=2)) == 2
