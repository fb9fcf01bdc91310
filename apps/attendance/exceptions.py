from __future__ import annotations


class AttendanceError(Exception):
    """Base class for rejections raised by the attendance engine."""

    code = "attendance_error"
    status_code = 400
    default_message = "Absensi ditolak"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class EmployeeNotFound(AttendanceError):
    code = "not_found"
    status_code = 404
    default_message = "User tidak ditemukan"


class DuplicateSubmission(AttendanceError):
    code = "duplicate_submission"
    default_message = "Anda sudah absen masuk hari ini"


class MissingPrerequisite(AttendanceError):
    code = "missing_prerequisite"
    default_message = "Anda belum absen masuk hari ini"


class LowAccuracy(AttendanceError):
    code = "low_accuracy"
    status_code = 422

    def __init__(self, accuracy_m: float, max_accuracy_m: float):
        self.accuracy_m = accuracy_m
        self.max_accuracy_m = max_accuracy_m
        super().__init__(
            f"GPS accuracy terlalu buruk ({accuracy_m:g}m). Maksimal {max_accuracy_m:g}m"
        )


class OutOfGeofence(AttendanceError):
    code = "out_of_geofence"

    def __init__(self, distance_m: float, radius_m: float):
        self.distance_m = distance_m
        self.radius_m = radius_m
        super().__init__(
            f"Anda berada di luar radius kantor. Jarak Anda: {distance_m:.0f}m (max: {radius_m:g}m)"
        )


class InvalidPhoto(AttendanceError):
    code = "invalid_photo"
    status_code = 422
    default_message = "Foto selfie wajib diupload"


class InvariantViolation(Exception):
    """Internal inconsistency; never shown to the user as-is."""


class Conflict(Exception):
    """Raised by the repository when a conditional write loses a race."""


class GeofenceNotConfigured(AttendanceError):
    code = "geofence_not_configured"
    status_code = 503
    default_message = "Lokasi kantor belum dikonfigurasi"
