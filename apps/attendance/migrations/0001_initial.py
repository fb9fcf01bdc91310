import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="AttendanceRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField(verbose_name="Tanggal")),
                ("check_in_time", models.DateTimeField(verbose_name="Jam masuk")),
                (
                    "check_in_latitude",
                    models.DecimalField(
                        decimal_places=6,
                        max_digits=9,
                        validators=[
                            django.core.validators.MinValueValidator(-90),
                            django.core.validators.MaxValueValidator(90),
                        ],
                    ),
                ),
                (
                    "check_in_longitude",
                    models.DecimalField(
                        decimal_places=6,
                        max_digits=9,
                        validators=[
                            django.core.validators.MinValueValidator(-180),
                            django.core.validators.MaxValueValidator(180),
                        ],
                    ),
                ),
                ("check_in_accuracy_m", models.FloatField(validators=[django.core.validators.MinValueValidator(0)])),
                ("check_in_photo", models.CharField(max_length=255)),
                ("check_out_time", models.DateTimeField(blank=True, null=True, verbose_name="Jam pulang")),
                ("check_out_latitude", models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ("check_out_longitude", models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ("check_out_accuracy_m", models.FloatField(blank=True, null=True)),
                ("check_out_photo", models.CharField(blank=True, max_length=255)),
                (
                    "distance_m",
                    models.FloatField(
                        validators=[django.core.validators.MinValueValidator(0)],
                        verbose_name="Jarak dari kantor (m)",
                    ),
                ),
                ("duration_minutes", models.PositiveIntegerField(blank=True, null=True, verbose_name="Durasi (menit)")),
                (
                    "status",
                    models.CharField(
                        choices=[("Hadir", "Hadir"), ("Terlambat", "Terlambat"), ("Pulang Cepat", "Pulang Cepat")],
                        max_length=20,
                    ),
                ),
                ("late_minutes", models.PositiveIntegerField(default=0)),
                ("early_minutes", models.PositiveIntegerField(default=0)),
                ("device_info", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="attendance_records",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Karyawan",
                    ),
                ),
            ],
            options={
                "verbose_name": "Absensi",
                "verbose_name_plural": "Absensi",
                "ordering": ["-check_in_time"],
                "indexes": [
                    models.Index(fields=["user", "date"], name="attendance__user_id_3c5a1e_idx"),
                    models.Index(fields=["date"], name="attendance__date_9b2f4d_idx"),
                    models.Index(fields=["status"], name="attendance__status_7e1c0a_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("user", "date"), name="attendance_one_record_per_day"),
                ],
            },
        ),
    ]
