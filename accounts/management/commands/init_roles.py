from django.core.management.base import BaseCommand

from accounts.models import Role


ROLES = {
    Role.Name.EMPLOYEE: (Role.Level.EMPLOYEE, "Karyawan: absen masuk/pulang dan melihat riwayat sendiri"),
    Role.Name.HRD: (Role.Level.HRD, "HRD: melihat seluruh data absensi"),
    Role.Name.ADMIN: (Role.Level.ADMIN, "Administrator sistem"),
}


def ensure_roles() -> dict:
    roles = {}
    for name, (level, description) in ROLES.items():
        role, _ = Role.objects.update_or_create(
            name=name,
            defaults={"level": level, "description": description},
        )
        roles[name] = role
    return roles


class Command(BaseCommand):
    help = "Create or update the built-in roles."

    def handle(self, *args, **options):
        roles = ensure_roles()
        self.stdout.write(self.style.SUCCESS(f"Roles ready: {', '.join(roles)}"))
