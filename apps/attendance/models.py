from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class AttendanceRecord(models.Model):
    class Status(models.TextChoices):
        HADIR = "Hadir", "Hadir"
        TERLAMBAT = "Terlambat", "Terlambat"
        PULANG_CEPAT = "Pulang Cepat", "Pulang Cepat"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="attendance_records",
        verbose_name="Karyawan",
    )
    date = models.DateField("Tanggal")

    check_in_time = models.DateTimeField("Jam masuk")
    check_in_latitude = models.DecimalField(
        max_digits=9,
        decimal_places=6,
        validators=[MinValueValidator(-90), MaxValueValidator(90)],
    )
    check_in_longitude = models.DecimalField(
        max_digits=9,
        decimal_places=6,
        validators=[MinValueValidator(-180), MaxValueValidator(180)],
    )
    check_in_accuracy_m = models.FloatField(validators=[MinValueValidator(0)])
    check_in_photo = models.CharField(max_length=255)

    check_out_time = models.DateTimeField("Jam pulang", null=True, blank=True)
    check_out_latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    check_out_longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    check_out_accuracy_m = models.FloatField(null=True, blank=True)
    check_out_photo = models.CharField(max_length=255, blank=True)

    distance_m = models.FloatField("Jarak dari kantor (m)", validators=[MinValueValidator(0)])
    duration_minutes = models.PositiveIntegerField("Durasi (menit)", null=True, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices)
    late_minutes = models.PositiveIntegerField(default=0)
    early_minutes = models.PositiveIntegerField(default=0)
    device_info = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Absensi"
        verbose_name_plural = "Absensi"
        ordering = ["-check_in_time"]
        constraints = [
            models.UniqueConstraint(fields=["user", "date"], name="attendance_one_record_per_day"),
        ]
        indexes = [
            models.Index(fields=["user", "date"], name="attendance__user_id_3c5a1e_idx"),
            models.Index(fields=["date"], name="attendance__date_9b2f4d_idx"),
            models.Index(fields=["status"], name="attendance__status_7e1c0a_idx"),
        ]

    @property
    def has_checked_out(self) -> bool:
        return self.check_out_time is not None

    def __str__(self):
        return f"{self.user_id} {self.date} {self.status}"
