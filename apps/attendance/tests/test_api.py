import os
import shutil
import tempfile
from datetime import datetime, time
from io import BytesIO
from unittest.mock import patch

from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError
from django.test import TestCase, override_settings
from django.utils import timezone
from PIL import Image
from rest_framework.test import APIClient

from accounts.models import AuditLog, Role, User
from apps.attendance.models import AttendanceRecord


MEDIA_ROOT = tempfile.mkdtemp(prefix="absensi-test-media-")


def make_selfie(name="selfie.png", size=(1600, 1200)):
    buffer = BytesIO()
    Image.new("RGB", size, color=(200, 120, 80)).save(buffer, format="PNG")
    return SimpleUploadedFile(name, buffer.getvalue(), content_type="image/png")


def stored_selfies():
    directory = os.path.join(MEDIA_ROOT, "attendance", "selfie")
    if not os.path.isdir(directory):
        return set()
    return set(os.listdir(directory))


def jakarta(hour, minute, second=0, day=2):
    return timezone.make_aware(datetime(2026, 3, day, hour, minute, second))


@override_settings(
    OFFICE_LATITUDE=-6.200000,
    OFFICE_LONGITUDE=106.816666,
    OFFICE_RADIUS_M=100,
    MAX_GPS_ACCURACY_M=50,
    MEDIA_ROOT=MEDIA_ROOT,
    AUDIT_WRITE_MODE="primary_only",
)
class AttendanceApiTests(TestCase):
    @classmethod
    def tearDownClass(cls):
        super().tearDownClass()
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)

    def setUp(self):
        self.client = APIClient()

        self.employee_role, _ = Role.objects.get_or_create(
            name=Role.Name.EMPLOYEE,
            defaults={"level": Role.Level.EMPLOYEE},
        )
        self.hrd_role, _ = Role.objects.get_or_create(
            name=Role.Name.HRD,
            defaults={"level": Role.Level.HRD},
        )

        self.employee = User.objects.create_user(
            username="karyawan",
            password="StrongPass123!",
            role=self.employee_role,
            shift_start=time(8, 0),
            shift_end=time(17, 0),
        )
        self.other_employee = User.objects.create_user(
            username="karyawan2",
            password="StrongPass123!",
            role=self.employee_role,
        )
        self.hrd = User.objects.create_user(
            username="hrd",
            password="StrongPass123!",
            role=self.hrd_role,
        )

    def post_event(self, url, latitude=-6.200000, longitude=106.816666, accuracy=10, photo=True):
        payload = {"latitude": latitude, "longitude": longitude, "accuracy": accuracy}
        if photo:
            payload["photo"] = make_selfie()
        return self.client.post(url, payload, format="multipart", HTTP_USER_AGENT="pytest-agent")

    def check_in(self, **kwargs):
        return self.post_event("/api/v1/attendance/check-in/", **kwargs)

    def check_out(self, **kwargs):
        return self.post_event("/api/v1/attendance/check-out/", **kwargs)

    @patch("apps.attendance.services.timezone.now", return_value=jakarta(7, 55))
    @patch("apps.attendance.views.AttendanceAuditService.log_checked_in")
    def test_check_in_creates_record(self, log_checked_in, _now):
        self.client.force_authenticate(user=self.employee)

        response = self.check_in()

        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.data["success"])
        data = response.data["data"]
        self.assertEqual(data["status"], "Hadir")
        self.assertFalse(data["late"])
        self.assertEqual(data["late_minutes"], 0)
        self.assertEqual(data["distance_m"], 0)
        self.assertTrue(data["photo"].startswith("/uploads/attendance/selfie/selfie_"))

        record = AttendanceRecord.objects.get(user=self.employee)
        self.assertEqual(record.device_info, "pytest-agent")
        self.assertTrue(record.check_in_photo.endswith(".jpg"))
        log_checked_in.assert_called_once()

    @patch("apps.attendance.services.timezone.now", return_value=jakarta(7, 55))
    def test_stored_selfie_is_downscaled_jpeg(self, _now):
        self.client.force_authenticate(user=self.employee)

        self.check_in()

        record = AttendanceRecord.objects.get(user=self.employee)
        with Image.open(f"{MEDIA_ROOT}/attendance/selfie/{record.check_in_photo}") as image:
            self.assertEqual(image.format, "JPEG")
            self.assertLessEqual(max(image.size), 800)

    @patch("apps.attendance.services.timezone.now", return_value=jakarta(8, 20))
    def test_late_check_in(self, _now):
        self.client.force_authenticate(user=self.employee)

        response = self.check_in()

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["data"]["status"], "Terlambat")
        self.assertTrue(response.data["data"]["late"])
        self.assertEqual(response.data["data"]["late_minutes"], 20)
        self.assertEqual(response.data["data"]["message"], "Anda terlambat 20 menit")

    @patch("apps.attendance.services.timezone.now", return_value=jakarta(7, 55))
    @patch("apps.attendance.views.AttendanceAuditService.log_rejected")
    def test_duplicate_check_in_rejected(self, log_rejected, _now):
        self.client.force_authenticate(user=self.employee)
        self.check_in()

        response = self.check_in()

        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.data["success"])
        self.assertEqual(response.data["code"], "duplicate_submission")
        self.assertEqual(response.data["message"], "Anda sudah absen masuk hari ini")
        self.assertEqual(AttendanceRecord.objects.filter(user=self.employee).count(), 1)
        log_rejected.assert_called_once()

    @patch("apps.attendance.services.timezone.now", return_value=jakarta(7, 55))
    def test_out_of_geofence_rejected(self, _now):
        self.client.force_authenticate(user=self.employee)

        response = self.check_in(latitude=-6.209000)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "out_of_geofence")
        self.assertIn("max: 100m", response.data["message"])
        self.assertFalse(AttendanceRecord.objects.exists())

    @patch("apps.attendance.services.timezone.now", return_value=jakarta(7, 55))
    def test_low_accuracy_rejected(self, _now):
        self.client.force_authenticate(user=self.employee)

        response = self.check_in(accuracy=120)

        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.data["code"], "low_accuracy")
        self.assertFalse(AttendanceRecord.objects.exists())

    def test_missing_photo_is_validation_error(self):
        self.client.force_authenticate(user=self.employee)

        response = self.check_in(photo=False)

        self.assertEqual(response.status_code, 400)
        self.assertIn("photo", response.data)

    def test_invalid_coordinates_are_validation_errors(self):
        self.client.force_authenticate(user=self.employee)

        response = self.check_in(latitude=91, longitude=-181, accuracy=-1)

        self.assertEqual(response.status_code, 400)
        self.assertIn("latitude", response.data)
        self.assertIn("longitude", response.data)
        self.assertIn("accuracy", response.data)

    def test_anonymous_cannot_check_in(self):
        response = self.check_in()

        self.assertEqual(response.status_code, 401)

    def test_anonymous_cannot_read_history(self):
        for url in ("/api/v1/attendance/my/", "/api/v1/attendance/today/", "/api/v1/attendance/all/"):
            with self.subTest(url=url):
                self.assertEqual(self.client.get(url).status_code, 401)

    @patch("apps.attendance.services.timezone.now", return_value=jakarta(7, 55))
    @patch("apps.attendance.repository.AttendanceRepository.insert_check_in")
    def test_database_failure_is_opaque_and_removes_selfie(self, insert_check_in, _now):
        insert_check_in.side_effect = DatabaseError("connection lost")
        self.client.force_authenticate(user=self.employee)
        before = stored_selfies()

        response = self.check_in()

        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.data,
            {"success": False, "message": "Terjadi kesalahan saat absen masuk"},
        )
        insert_check_in.assert_called_once()
        self.assertEqual(stored_selfies(), before)
        self.assertFalse(AttendanceRecord.objects.exists())

    @patch("apps.attendance.services.timezone.now", return_value=jakarta(7, 55))
    @patch("apps.attendance.photos.default_storage.save", side_effect=OSError("disk full"))
    def test_photo_storage_failure_returns_json_error(self, _save, _now):
        self.client.force_authenticate(user=self.employee)

        response = self.check_in()

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response["Content-Type"], "application/json")
        self.assertFalse(response.data["success"])
        self.assertEqual(response.data["message"], "Terjadi kesalahan saat absen masuk")
        self.assertFalse(AttendanceRecord.objects.exists())

    @override_settings(OFFICE_LATITUDE=None, OFFICE_LONGITUDE=None)
    def test_check_in_returns_503_when_office_not_configured(self):
        self.client.force_authenticate(user=self.employee)

        response = self.check_in()

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.data["code"], "geofence_not_configured")

    @patch("apps.attendance.services.timezone.now", return_value=jakarta(17, 0))
    def test_check_out_without_check_in(self, _now):
        self.client.force_authenticate(user=self.employee)

        response = self.check_out()

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "missing_prerequisite")
        self.assertFalse(AttendanceRecord.objects.exists())

    @patch("apps.attendance.views.AttendanceAuditService.log_checked_out")
    def test_check_in_then_check_out_early(self, log_checked_out):
        self.client.force_authenticate(user=self.employee)
        with patch("apps.attendance.services.timezone.now", return_value=jakarta(7, 58)):
            self.check_in()
        with patch("apps.attendance.services.timezone.now", return_value=jakarta(16, 45)):
            response = self.check_out()

        self.assertEqual(response.status_code, 200)
        data = response.data["data"]
        self.assertEqual(data["status"], "Pulang Cepat")
        self.assertTrue(data["early"])
        self.assertEqual(data["early_minutes"], 15)
        self.assertEqual(data["duration_minutes"], 527)
        self.assertEqual(data["duration"], "8 jam 47 menit")
        log_checked_out.assert_called_once()

    def test_late_employee_leaving_early_stays_terlambat(self):
        self.client.force_authenticate(user=self.employee)
        with patch("apps.attendance.services.timezone.now", return_value=jakarta(8, 10)):
            self.check_in()
        with patch("apps.attendance.services.timezone.now", return_value=jakarta(16, 0)):
            response = self.check_out()

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["data"]["status"], "Terlambat")
        self.assertEqual(AttendanceRecord.objects.get(user=self.employee).status, "Terlambat")

    def test_second_check_out_rejected(self):
        self.client.force_authenticate(user=self.employee)
        with patch("apps.attendance.services.timezone.now", return_value=jakarta(7, 55)):
            self.check_in()
        with patch("apps.attendance.services.timezone.now", return_value=jakarta(17, 5)):
            self.check_out()
            response = self.check_out()

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "duplicate_submission")
        self.assertEqual(response.data["message"], "Anda sudah absen pulang hari ini")

    @patch("apps.attendance.services.shift_policy.duration_minutes")
    def test_invariant_violation_is_opaque_failure(self, duration_minutes):
        from apps.attendance.exceptions import InvariantViolation

        duration_minutes.side_effect = InvariantViolation("clock went backwards")
        self.client.force_authenticate(user=self.employee)
        with patch("apps.attendance.services.timezone.now", return_value=jakarta(7, 55)):
            self.check_in()
        with patch("apps.attendance.services.timezone.now", return_value=jakarta(17, 0)):
            response = self.check_out()

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data["message"], "Terjadi kesalahan saat absen pulang")
        self.assertNotIn("clock", response.data["message"])
        self.assertIsNone(AttendanceRecord.objects.get(user=self.employee).check_out_time)

    @patch("apps.attendance.services.timezone.now", return_value=jakarta(7, 55))
    def test_successful_check_in_writes_audit_log(self, _now):
        self.client.force_authenticate(user=self.employee)

        self.check_in()

        entry = AuditLog.objects.get(action="attendance_checked_in")
        self.assertEqual(entry.user, self.employee)
        self.assertEqual(entry.category, "attendance")
        self.assertEqual(entry.metadata["status"], "Hadir")

    def test_today_endpoint(self):
        self.client.force_authenticate(user=self.employee)
        with patch("apps.attendance.services.timezone.now", return_value=jakarta(9, 0)):
            empty = self.client.get("/api/v1/attendance/today/")
            self.check_in()
            filled = self.client.get("/api/v1/attendance/today/")

        self.assertEqual(empty.status_code, 200)
        self.assertFalse(empty.data["data"]["has_checked_in"])
        self.assertTrue(filled.data["data"]["has_checked_in"])
        self.assertFalse(filled.data["data"]["has_checked_out"])
        self.assertEqual(filled.data["data"]["attendance"]["status"], "Terlambat")

    def _seed_history(self):
        for day in (2, 3, 4):
            AttendanceRecord.objects.create(
                user=self.employee,
                date=jakarta(8, 0, day=day).date(),
                check_in_time=jakarta(8, 0, day=day),
                check_in_latitude=-6.2,
                check_in_longitude=106.816666,
                check_in_accuracy_m=5,
                check_in_photo=f"in_{day}.jpg",
                check_out_time=jakarta(17, 0, day=day),
                duration_minutes=540,
                distance_m=1.5,
                status=AttendanceRecord.Status.HADIR if day != 3 else AttendanceRecord.Status.TERLAMBAT,
            )
        AttendanceRecord.objects.create(
            user=self.other_employee,
            date=jakarta(8, 0, day=4).date(),
            check_in_time=jakarta(8, 0, day=4),
            check_in_latitude=-6.2,
            check_in_longitude=106.816666,
            check_in_accuracy_m=5,
            check_in_photo="other.jpg",
            distance_m=2,
            status=AttendanceRecord.Status.HADIR,
        )

    def test_my_history_returns_only_own_records_newest_first(self):
        self._seed_history()
        self.client.force_authenticate(user=self.employee)

        response = self.client.get("/api/v1/attendance/my/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["data"]["total"], 3)
        rows = response.data["data"]["attendance"]
        self.assertEqual([row["date"] for row in rows], ["2026-03-04", "2026-03-03", "2026-03-02"])
        self.assertEqual(rows[0]["duration_formatted"], "9 jam 0 menit")
        self.assertTrue(rows[0]["check_in_photo"].endswith("/attendance/selfie/in_4.jpg"))
        self.assertIsNone(rows[0]["check_out_photo"])

    def test_my_history_date_range_and_limit(self):
        self._seed_history()
        self.client.force_authenticate(user=self.employee)

        ranged = self.client.get(
            "/api/v1/attendance/my/",
            {"start_date": "2026-03-03", "end_date": "2026-03-04"},
        )
        limited = self.client.get("/api/v1/attendance/my/", {"limit": 1})
        invalid = self.client.get(
            "/api/v1/attendance/my/",
            {"start_date": "2026-03-05", "end_date": "2026-03-01"},
        )

        self.assertEqual(ranged.data["data"]["total"], 2)
        self.assertEqual(limited.data["data"]["total"], 1)
        self.assertEqual(invalid.status_code, 400)

    def test_employee_cannot_list_all(self):
        self.client.force_authenticate(user=self.employee)

        response = self.client.get("/api/v1/attendance/all/")

        self.assertEqual(response.status_code, 403)

    @patch("apps.attendance.views.AttendanceAuditService.log_history_viewed")
    def test_hrd_lists_all_with_filters(self, log_history_viewed):
        self._seed_history()
        self.client.force_authenticate(user=self.hrd)

        everything = self.client.get("/api/v1/attendance/all/")
        late = self.client.get("/api/v1/attendance/all/", {"status": "Terlambat"})
        other = self.client.get("/api/v1/attendance/all/", {"user_id": self.other_employee.id})

        self.assertEqual(everything.status_code, 200)
        self.assertEqual(everything.data["data"]["total"], 4)
        self.assertEqual(late.data["data"]["total"], 1)
        self.assertEqual(late.data["data"]["attendance"][0]["username"], "karyawan")
        self.assertEqual(other.data["data"]["total"], 1)
        self.assertEqual(other.data["data"]["attendance"][0]["role"], Role.Name.EMPLOYEE)
        self.assertEqual(log_history_viewed.call_count, 3)
