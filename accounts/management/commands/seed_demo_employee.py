from datetime import time

from django.core.management.base import BaseCommand
from django.db import transaction

from accounts.models import Role, User

from .init_roles import ensure_roles


class Command(BaseCommand):
    help = "Creates demo admin, HRD and employee accounts for attendance testing."

    def add_arguments(self, parser):
        parser.add_argument("--office-lat", type=float, default=-6.200000)
        parser.add_argument("--office-lon", type=float, default=106.816666)
        parser.add_argument("--radius", type=int, default=100)

    @transaction.atomic
    def handle(self, *args, **options):
        roles = ensure_roles()

        accounts = [
            ("demo_admin", "DemoAdmin123!", Role.Name.ADMIN, "Demo", "Admin", True),
            ("demo_hrd", "DemoHrd123!", Role.Name.HRD, "Demo", "HRD", True),
            ("demo_karyawan", "DemoEmp123!", Role.Name.EMPLOYEE, "Demo", "Karyawan", False),
        ]
        for username, password, role_name, first_name, last_name, is_staff in accounts:
            user, _ = User.objects.update_or_create(
                username=username,
                defaults={
                    "role": roles[role_name],
                    "is_active": True,
                    "is_staff": is_staff,
                    "first_name": first_name,
                    "last_name": last_name,
                    "email": f"{username}@example.com",
                    "office_latitude": options["office_lat"],
                    "office_longitude": options["office_lon"],
                    "office_radius_m": options["radius"],
                    "shift_start": time(8, 0),
                    "shift_end": time(17, 0),
                },
            )
            user.set_password(password)
            user.save(update_fields=["password"])

        self.stdout.write(self.style.SUCCESS("Demo data prepared."))
        self.stdout.write("Karyawan: demo_karyawan / DemoEmp123!")
        self.stdout.write("HRD: demo_hrd / DemoHrd123!")
        self.stdout.write("Admin: demo_admin / DemoAdmin123!")
