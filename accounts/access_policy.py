from __future__ import annotations

from .models import Role


class AccessPolicy:
    """Centralized role checks."""

    @staticmethod
    def _has_role(user) -> bool:
        return bool(user and user.is_authenticated and getattr(user, "role", None))

    @classmethod
    def is_admin(cls, user) -> bool:
        return cls._has_role(user) and user.role.name == Role.Name.ADMIN

    @classmethod
    def is_hrd(cls, user) -> bool:
        return cls._has_role(user) and user.role.name == Role.Name.HRD

    @classmethod
    def is_admin_like(cls, user) -> bool:
        return cls.is_admin(user) or cls.is_hrd(user)

    @classmethod
    def can_access_admin_panel(cls, user) -> bool:
        return bool(user and user.is_authenticated and (user.is_superuser or cls.is_admin_like(user)))
