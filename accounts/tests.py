from datetime import time
from io import StringIO

from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken, RefreshToken

from .access_policy import AccessPolicy
from .models import AuditLog, Role, User


class LoginApiTests(TestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.role, _ = Role.objects.get_or_create(
            name=Role.Name.EMPLOYEE,
            defaults={"level": Role.Level.EMPLOYEE},
        )
        self.user = User.objects.create_user(
            username="employee1",
            email="employee1@example.com",
            password="StrongPass123!",
            role=self.role,
            first_name="Budi",
            last_name="Santoso",
        )

    def test_login_with_username_returns_tokens(self):
        response = self.client.post(
            "/api/v1/auth/login/",
            {"username": "employee1", "password": "StrongPass123!"},
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["success"])
        data = response.data["data"]
        self.assertEqual(data["user"]["username"], "employee1")
        self.assertEqual(data["user"]["full_name"], "Budi Santoso")
        self.assertEqual(data["user"]["shift_start"], "08:00")
        self.assertEqual(AccessToken(data["access"])["role"], Role.Name.EMPLOYEE)
        self.assertTrue(AuditLog.objects.filter(action="login_success", user=self.user).exists())

    def test_login_with_email(self):
        response = self.client.post(
            "/api/v1/auth/login/",
            {"username": "EMPLOYEE1@example.com", "password": "StrongPass123!"},
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["data"]["user"]["id"], self.user.id)

    def test_login_with_wrong_password(self):
        response = self.client.post(
            "/api/v1/auth/login/",
            {"username": "employee1", "password": "wrong"},
            format="json",
        )

        self.assertEqual(response.status_code, 401)
        self.assertFalse(response.data["success"])
        entry = AuditLog.objects.get(action="login_failed")
        self.assertEqual(entry.user, self.user)
        self.assertEqual(entry.level, AuditLog.Level.WARNING)

    def test_inactive_user_cannot_login(self):
        self.user.is_active = False
        self.user.save(update_fields=["is_active"])

        response = self.client.post(
            "/api/v1/auth/login/",
            {"username": "employee1", "password": "StrongPass123!"},
            format="json",
        )

        self.assertEqual(response.status_code, 401)

    def test_refresh_issues_new_access_token(self):
        login = self.client.post(
            "/api/v1/auth/login/",
            {"username": "employee1", "password": "StrongPass123!"},
            format="json",
        )

        response = self.client.post(
            "/api/v1/auth/refresh/",
            {"refresh": login.data["data"]["refresh"]},
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        self.assertIn("access", response.data)

    def test_me_requires_authentication(self):
        response = self.client.get("/api/v1/me/")

        self.assertEqual(response.status_code, 401)

    def test_me_with_bearer_token(self):
        login = self.client.post(
            "/api/v1/auth/login/",
            {"username": "employee1", "password": "StrongPass123!"},
            format="json",
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {login.data['data']['access']}")

        response = self.client.get("/api/v1/me/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["role"], Role.Name.EMPLOYEE)
        self.assertIsNone(response.data["office"])

    def test_me_exposes_office_override(self):
        self.user.office_latitude = "-6.175392"
        self.user.office_longitude = "106.827153"
        self.user.office_radius_m = 75
        self.user.save()
        self.client.force_authenticate(user=self.user)

        response = self.client.get("/api/v1/me/")

        self.assertEqual(
            response.data["office"],
            {"latitude": -6.175392, "longitude": 106.827153, "radius_m": 75},
        )


class AccessPolicyTests(TestCase):
    def setUp(self):
        call_command("init_roles", stdout=StringIO())
        self.roles = {role.name: role for role in Role.objects.all()}

    def make_user(self, username, role_name):
        return User.objects.create_user(
            username=username,
            password="StrongPass123!",
            role=self.roles[role_name],
        )

    def test_role_checks(self):
        admin = self.make_user("admin", Role.Name.ADMIN)
        hrd = self.make_user("hrd", Role.Name.HRD)
        employee = self.make_user("employee", Role.Name.EMPLOYEE)

        self.assertTrue(AccessPolicy.is_admin(admin))
        self.assertTrue(AccessPolicy.is_admin_like(hrd))
        self.assertFalse(AccessPolicy.is_admin_like(employee))
        self.assertTrue(AccessPolicy.is_hrd(hrd))
        self.assertFalse(AccessPolicy.is_admin(hrd))
        self.assertFalse(AccessPolicy.is_admin_like(None))

    def test_admin_panel_access(self):
        employee = self.make_user("employee", Role.Name.EMPLOYEE)
        superuser = User.objects.create_superuser("root", "root@example.com", "StrongPass123!")

        self.assertFalse(AccessPolicy.can_access_admin_panel(employee))
        self.assertTrue(AccessPolicy.can_access_admin_panel(superuser))
        self.assertEqual(superuser.role.name, Role.Name.ADMIN)


class ManagementCommandTests(TestCase):
    def test_init_roles_is_idempotent(self):
        call_command("init_roles", stdout=StringIO())
        call_command("init_roles", stdout=StringIO())

        self.assertEqual(Role.objects.count(), 3)
        self.assertEqual(Role.objects.get(name=Role.Name.HRD).level, Role.Level.HRD)

    def test_seed_demo_employee(self):
        out = StringIO()

        call_command("seed_demo_employee", office_lat=-6.175392, radius=150, stdout=out)

        employee = User.objects.get(username="demo_karyawan")
        self.assertEqual(employee.role.name, Role.Name.EMPLOYEE)
        self.assertTrue(employee.check_password("DemoEmp123!"))
        self.assertEqual(float(employee.office_latitude), -6.175392)
        self.assertEqual(employee.office_radius_m, 150)
        self.assertTrue(AccessPolicy.is_admin_like(User.objects.get(username="demo_hrd")))
        self.assertIn("demo_karyawan", out.getvalue())


class LogoutAndProfileApiTests(TestCase):
    def setUp(self):
        cache.clear()
        call_command("init_roles", stdout=StringIO())
        self.client = APIClient()
        role = Role.objects.get(name=Role.Name.EMPLOYEE)
        self.user = User.objects.create_user(
            username="employee1",
            email="employee1@example.com",
            password="StrongPass123!",
            role=role,
        )
        self.other = User.objects.create_user(
            username="employee2",
            email="employee2@example.com",
            password="StrongPass123!",
            role=role,
        )

    def test_logout_blacklists_refresh_token(self):
        refresh = str(RefreshToken.for_user(self.user))
        self.client.force_authenticate(user=self.user)

        response = self.client.post("/api/v1/auth/logout/", {"refresh": refresh}, format="json")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["message"], "Logout berhasil")
        self.assertTrue(AuditLog.objects.filter(action="logout", user=self.user).exists())

        reuse = APIClient().post("/api/v1/auth/refresh/", {"refresh": refresh}, format="json")
        self.assertEqual(reuse.status_code, 401)

    def test_logout_rejects_foreign_or_invalid_token(self):
        self.client.force_authenticate(user=self.user)

        for refresh in (str(RefreshToken.for_user(self.other)), "not-a-token"):
            with self.subTest(refresh=refresh[:12]):
                response = self.client.post("/api/v1/auth/logout/", {"refresh": refresh}, format="json")
                self.assertEqual(response.status_code, 400)
                self.assertFalse(response.data["success"])

        self.assertEqual(self.client.post("/api/v1/auth/logout/", {}, format="json").status_code, 400)
        self.assertFalse(AuditLog.objects.filter(action="logout").exists())

    def test_logout_requires_authentication(self):
        refresh = str(RefreshToken.for_user(self.user))

        response = self.client.post("/api/v1/auth/logout/", {"refresh": refresh}, format="json")

        self.assertEqual(response.status_code, 401)

    def test_profile_update(self):
        self.client.force_authenticate(user=self.user)

        response = self.client.patch(
            "/api/v1/auth/profile/",
            {"first_name": "Budi", "phone": "081234567890"},
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["full_name"], "Budi")
        self.assertEqual(response.data["phone"], "081234567890")
        entry = AuditLog.objects.get(action="profile_updated")
        self.assertEqual(entry.category, AuditLog.Category.USER)
        self.assertEqual(entry.metadata["changed_fields"], ["first_name", "phone"])

    def test_profile_update_rejects_taken_email(self):
        self.client.force_authenticate(user=self.user)

        response = self.client.patch(
            "/api/v1/auth/profile/",
            {"email": "EMPLOYEE2@example.com"},
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn("email", response.data)
        self.user.refresh_from_db()
        self.assertEqual(self.user.email, "employee1@example.com")


class EmployeeManagementApiTests(TestCase):
    def setUp(self):
        cache.clear()
        call_command("init_roles", stdout=StringIO())
        self.client = APIClient()
        roles = {role.name: role for role in Role.objects.all()}
        self.admin = User.objects.create_user(
            username="admin", email="admin@example.com", password="StrongPass123!", role=roles[Role.Name.ADMIN]
        )
        self.hrd = User.objects.create_user(
            username="hrd", email="hrd@example.com", password="StrongPass123!", role=roles[Role.Name.HRD]
        )
        self.employee = User.objects.create_user(
            username="karyawan",
            email="karyawan@example.com",
            password="StrongPass123!",
            role=roles[Role.Name.EMPLOYEE],
            first_name="Andi",
        )

    def test_list_is_admin_like_only(self):
        self.client.force_authenticate(user=self.employee)
        self.assertEqual(self.client.get("/api/v1/users/").status_code, 403)

        self.client.force_authenticate(user=self.hrd)
        response = self.client.get("/api/v1/users/", {"role": Role.Name.EMPLOYEE})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["data"]["total"], 1)
        self.assertEqual(response.data["data"]["users"][0]["username"], "karyawan")

    def test_list_search_and_active_filter(self):
        self.employee.is_active = False
        self.employee.save(update_fields=["is_active"])
        self.client.force_authenticate(user=self.admin)

        response = self.client.get("/api/v1/users/", {"search": "andi"})
        self.assertEqual([u["username"] for u in response.data["data"]["users"]], ["karyawan"])

        response = self.client.get("/api/v1/users/", {"is_active": "true"})
        self.assertNotIn("karyawan", [u["username"] for u in response.data["data"]["users"]])

        response = self.client.get("/api/v1/users/", {"role": "MANAGER"})
        self.assertEqual(response.status_code, 400)

    def test_admin_creates_employee(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(
            "/api/v1/users/",
            {
                "username": "baru",
                "email": "baru@example.com",
                "password": "Rahasia123",
                "role": Role.Name.EMPLOYEE,
                "shift_start": "09:00",
                "shift_end": "18:00",
            },
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["message"], "User berhasil dibuat")
        self.assertNotIn("password", response.data["data"])
        self.assertEqual(response.data["data"]["shift_start"], "09:00")
        created = User.objects.get(username="baru")
        self.assertTrue(created.check_password("Rahasia123"))
        self.assertEqual(created.shift_end, time(18, 0))
        self.assertTrue(AuditLog.objects.filter(action="employee_created", object_id=str(created.id)).exists())

    def test_create_validation(self):
        self.client.force_authenticate(user=self.admin)
        base = {"username": "baru", "role": Role.Name.EMPLOYEE, "password": "Rahasia123"}

        cases = {
            "password": {**base, "password": ""},
            "email": {**base, "email": "KARYAWAN@example.com"},
            "shift_end": {**base, "shift_start": "17:00", "shift_end": "08:00"},
            "office_latitude": {**base, "office_latitude": "-6.2"},
        }
        for field, payload in cases.items():
            with self.subTest(field=field):
                response = self.client.post("/api/v1/users/", payload, format="json")
                self.assertEqual(response.status_code, 400)
                self.assertIn(field, response.data)

        self.assertFalse(User.objects.filter(username="baru").exists())

    def test_hrd_cannot_create_update_or_delete(self):
        self.client.force_authenticate(user=self.hrd)
        url = f"/api/v1/users/{self.employee.id}/"

        create = self.client.post(
            "/api/v1/users/",
            {"username": "baru", "password": "Rahasia123", "role": Role.Name.EMPLOYEE},
            format="json",
        )
        update = self.client.patch(url, {"first_name": "X"}, format="json")
        delete = self.client.delete(url)

        self.assertEqual([create.status_code, update.status_code, delete.status_code], [403, 403, 403])
        self.assertTrue(User.objects.filter(pk=self.employee.pk, first_name="Andi").exists())
        self.assertEqual(self.client.get(url).status_code, 200)

    def test_admin_updates_employee(self):
        self.client.force_authenticate(user=self.admin)
        url = f"/api/v1/users/{self.employee.id}/"

        response = self.client.patch(url, {"first_name": "Siti", "is_active": False}, format="json")

        self.assertEqual(response.status_code, 200)
        self.employee.refresh_from_db()
        self.assertEqual(self.employee.first_name, "Siti")
        self.assertFalse(self.employee.is_active)
        entry = AuditLog.objects.get(action="employee_updated")
        self.assertEqual(entry.metadata["changed_fields"], ["first_name", "is_active"])

        duplicate = self.client.patch(url, {"email": "hrd@example.com"}, format="json")
        self.assertEqual(duplicate.status_code, 400)
        password = self.client.patch(url, {"password": "Baru12345"}, format="json")
        self.assertEqual(password.status_code, 400)
        self.employee.refresh_from_db()
        self.assertTrue(self.employee.check_password("StrongPass123!"))

    def test_admin_deletes_employee(self):
        self.client.force_authenticate(user=self.admin)

        self_delete = self.client.delete(f"/api/v1/users/{self.admin.id}/")
        missing = self.client.delete("/api/v1/users/999999/")
        response = self.client.delete(f"/api/v1/users/{self.employee.id}/")

        self.assertEqual(self_delete.status_code, 400)
        self.assertEqual(self_delete.data["message"], "Tidak dapat menghapus akun sendiri")
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["data"]["username"], "karyawan")
        self.assertFalse(User.objects.filter(username="karyawan").exists())
        self.assertTrue(User.objects.filter(pk=self.admin.pk).exists())
        self.assertTrue(AuditLog.objects.filter(action="employee_deleted", user=self.admin).exists())

    def test_office_settings(self):
        url = f"/api/v1/users/{self.employee.id}/office-settings/"
        payload = {"office_latitude": "-6.175392", "office_longitude": "106.827153", "office_radius_m": 75}

        self.client.force_authenticate(user=self.employee)
        self.assertEqual(self.client.put(url, payload, format="json").status_code, 403)

        self.client.force_authenticate(user=self.hrd)
        response = self.client.put(url, payload, format="json")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["data"]["office_latitude"], -6.175392)
        self.employee.refresh_from_db()
        self.assertTrue(self.employee.has_office_override)
        self.assertEqual(self.employee.office_radius_m, 75)
        self.assertTrue(AuditLog.objects.filter(action="employee_office_updated").exists())

        missing = self.client.put(url, {"office_latitude": "-6.175392"}, format="json")
        self.assertEqual(missing.status_code, 400)
        out_of_range = self.client.put(url, {**payload, "office_latitude": "91"}, format="json")
        self.assertEqual(out_of_range.status_code, 400)
        unknown = self.client.put("/api/v1/users/999999/office-settings/", payload, format="json")
        self.assertEqual(unknown.status_code, 404)

    def test_office_settings_default_radius(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.put(
            f"/api/v1/users/{self.employee.id}/office-settings/",
            {"office_latitude": "-6.2", "office_longitude": "106.8"},
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["data"]["office_radius_m"], 100)

    def test_shift_settings(self):
        self.client.force_authenticate(user=self.hrd)
        url = f"/api/v1/users/{self.employee.id}/shift-settings/"

        inverted = self.client.put(url, {"shift_start": "17:00", "shift_end": "08:00"}, format="json")
        missing = self.client.put(url, {"shift_start": "07:30"}, format="json")
        response = self.client.put(url, {"shift_start": "07:30", "shift_end": "16:30"}, format="json")

        self.assertEqual(inverted.status_code, 400)
        self.assertIn("shift_end", inverted.data)
        self.assertEqual(missing.status_code, 400)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["data"]["shift_start"], "07:30")
        self.employee.refresh_from_db()
        self.assertEqual(self.employee.shift_start, time(7, 30))
        self.assertEqual(self.employee.shift_end, time(16, 30))
