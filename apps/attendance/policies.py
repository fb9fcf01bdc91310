from __future__ import annotations

from accounts.access_policy import AccessPolicy


class AttendancePolicy:
    @staticmethod
    def can_record(user) -> bool:
        return bool(user and user.is_authenticated and user.is_active and getattr(user, "role_id", None))

    @classmethod
    def can_view_all(cls, actor) -> bool:
        if not actor or not actor.is_authenticated:
            return False
        return AccessPolicy.is_admin_like(actor)
