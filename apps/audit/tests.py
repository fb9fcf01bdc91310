from unittest.mock import patch

from django.test import TestCase, override_settings

from accounts.models import AuditLog, Role, User

from .contracts import AuditEvent
from .events import AuditEvents
from .services import log_event


class AuditServiceTests(TestCase):
    def setUp(self):
        role, _ = Role.objects.get_or_create(
            name=Role.Name.EMPLOYEE,
            defaults={"level": Role.Level.EMPLOYEE},
        )
        self.user = User.objects.create_user(username="auditee", password="StrongPass123!", role=role)

    def test_primary_only_writes_database_row(self):
        log_event(
            action=AuditEvents.ATTENDANCE_CHECKED_IN,
            actor=self.user,
            object_type="attendance_record",
            object_id="7",
            category="attendance",
            metadata={"status": "Hadir"},
        )

        entry = AuditLog.objects.get()
        self.assertEqual(entry.user, self.user)
        self.assertEqual(entry.object_id, "7")
        self.assertEqual(entry.metadata, {"status": "Hadir"})

    @override_settings(AUDIT_WRITE_MODE="log_only")
    @patch("apps.audit.services.LoggingAuditBackend.write")
    def test_log_only_skips_database(self, mirror_write):
        log_event(action=AuditEvents.LOGIN_SUCCESS, actor=self.user, category="auth")

        self.assertFalse(AuditLog.objects.exists())
        mirror_write.assert_called_once()

    @override_settings(AUDIT_WRITE_MODE="dual_write")
    @patch("apps.audit.services.LoggingAuditBackend.write")
    def test_dual_write_hits_both_backends(self, mirror_write):
        log_event(action=AuditEvents.LOGIN_FAILED, actor=self.user, level="warning", category="auth")

        self.assertEqual(AuditLog.objects.count(), 1)
        event = mirror_write.call_args.args[0]
        self.assertEqual(event.action, AuditEvents.LOGIN_FAILED)
        self.assertEqual(event.actor_id, self.user.pk)

    @patch("apps.audit.services.DatabaseAuditBackend.write", side_effect=RuntimeError("db down"))
    def test_backend_failure_does_not_propagate(self, _write):
        log_event(action=AuditEvents.LOGIN_SUCCESS, actor=self.user)

        self.assertFalse(AuditLog.objects.exists())


class AuditEventTests(TestCase):
    def test_target_formatting(self):
        self.assertEqual(AuditEvent(action="x").target, "-")
        self.assertEqual(AuditEvent(action="x", object_type="user").target, "user:-")
        self.assertEqual(AuditEvent(action="x", object_type="user", object_id="3").target, "user:3")
        self.assertIsNone(AuditEvent(action="x").actor_id)
