from datetime import time

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from .managers import UserManager


# ================= RBAC =================
class Role(models.Model):
    class Name(models.TextChoices):
        ADMIN = "ADMIN", "Admin"
        HRD = "HRD", "HRD"
        EMPLOYEE = "EMPLOYEE", "Karyawan"

    class Level(models.IntegerChoices):
        EMPLOYEE = 10, "Karyawan"
        HRD = 20, "HRD"
        ADMIN = 30, "Admin"

    name = models.CharField("Nama", max_length=50, unique=True, choices=Name.choices)
    level = models.PositiveSmallIntegerField(
        "Level",
        choices=Level.choices,
        default=Level.EMPLOYEE,
    )
    description = models.TextField("Deskripsi", blank=True)

    class Meta:
        verbose_name = "Peran"
        verbose_name_plural = "Peran"

    def __str__(self):
        return self.name


# ================= User =================
class User(AbstractUser):
    """
    Employee account.

    Office location and radius are optional per-employee overrides; when any
    of them is empty the global office policy from settings applies.
    """

    role = models.ForeignKey(Role, on_delete=models.PROTECT, verbose_name="Peran sistem")

    phone = models.CharField("Telepon", max_length=50, blank=True)

    office_latitude = models.DecimalField(
        "Latitude kantor",
        max_digits=9,
        decimal_places=6,
        null=True,
        blank=True,
        validators=[MinValueValidator(-90), MaxValueValidator(90)],
    )
    office_longitude = models.DecimalField(
        "Longitude kantor",
        max_digits=9,
        decimal_places=6,
        null=True,
        blank=True,
        validators=[MinValueValidator(-180), MaxValueValidator(180)],
    )
    office_radius_m = models.PositiveIntegerField("Radius kantor (m)", null=True, blank=True)

    shift_start = models.TimeField("Jam masuk", default=time(8, 0))
    shift_end = models.TimeField("Jam pulang", default=time(17, 0))

    objects = UserManager()

    class Meta:
        verbose_name = "Karyawan"
        verbose_name_plural = "Karyawan"

    def clean(self):
        super().clean()
        has_lat = self.office_latitude is not None
        has_lon = self.office_longitude is not None
        if has_lat != has_lon:
            raise ValidationError("Latitude dan longitude kantor harus diisi bersamaan.")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.username

    @property
    def has_office_override(self) -> bool:
        return (
            self.office_latitude is not None
            and self.office_longitude is not None
            and self.office_radius_m is not None
        )


# ================= Audit =================
class AuditLog(models.Model):
    """
    Primary audit storage backend.
    Use apps.audit.log_event as unified entrypoint for new writes.
    """

    class Level(models.TextChoices):
        INFO = "info", "Info"
        WARNING = "warning", "Warning"
        ERROR = "error", "Error"

    class Category(models.TextChoices):
        AUTH = "auth", "Authentication"
        USER = "user", "User"
        ATTENDANCE = "attendance", "Attendance"
        SYSTEM = "system", "System"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        verbose_name="Pengguna",
    )

    action = models.CharField("Aksi", max_length=255)
    object_type = models.CharField("Tipe objek", max_length=100, blank=True)
    object_id = models.CharField("ID objek", max_length=100, blank=True)

    level = models.CharField(
        "Level",
        max_length=20,
        choices=Level.choices,
        default=Level.INFO,
    )

    category = models.CharField(
        "Kategori",
        max_length=50,
        choices=Category.choices,
        default=Category.SYSTEM,
    )

    ip_address = models.GenericIPAddressField("Alamat IP", null=True, blank=True)
    metadata = models.JSONField("Metadata", default=dict, blank=True)
    created_at = models.DateTimeField("Dibuat", auto_now_add=True)

    class Meta:
        verbose_name = "Log audit"
        verbose_name_plural = "Log audit"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["level"], name="accounts_au_level_6f1a3b_idx"),
            models.Index(fields=["category"], name="accounts_au_categor_8d2e4c_idx"),
            models.Index(fields=["created_at"], name="accounts_au_created_1b9c7e_idx"),
            models.Index(fields=["user"], name="accounts_au_user_id_4a7f2d_idx"),
        ]

    @classmethod
    def log(
        cls,
        action,
        user=None,
        object_type="",
        object_id="",
        level=Level.INFO,
        category=Category.SYSTEM,
        ip_address=None,
        metadata=None,
    ):
        return cls.objects.create(
            user=user,
            action=action,
            object_type=object_type,
            object_id=object_id,
            level=level,
            category=category,
            ip_address=ip_address,
            metadata=metadata or {},
        )

    def __str__(self):
        return f"[{self.level.upper()}] {self.action}"
