from django.contrib import admin, messages
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin
from django.utils.html import format_html

from .access_policy import AccessPolicy
from .models import AuditLog, Role, User


ROLE_BADGE_COLORS = {
    Role.Name.ADMIN: "#2563eb",
    Role.Name.HRD: "#0ea5e9",
    Role.Name.EMPLOYEE: "#059669",
}


def can_manage_users(user):
    return AccessPolicy.can_access_admin_panel(user)


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ("name", "level", "description")
    ordering = ("level",)
    search_fields = ("name",)

    def has_module_permission(self, request):
        return bool(request.user.is_authenticated and request.user.is_superuser)


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    list_display = (
        "username",
        "full_name_display",
        "role_badge",
        "shift_display",
        "office_display",
        "status_badge",
    )
    list_filter = (
        "role",
        "is_active",
        "is_staff",
    )
    search_fields = (
        "username",
        "first_name",
        "last_name",
        "email",
        "phone",
    )
    ordering = ("id",)
    list_select_related = ("role",)
    readonly_fields = ("last_login", "date_joined")
    filter_horizontal = ()

    fieldsets = (
        ("Akun", {"fields": ("username", "password")}),
        (
            "Data pribadi",
            {
                "fields": (
                    "first_name",
                    "last_name",
                    "email",
                    "phone",
                )
            },
        ),
        ("Peran", {"fields": ("role",)}),
        (
            "Jam kerja",
            {"fields": ("shift_start", "shift_end")},
        ),
        (
            "Lokasi kantor",
            {
                "fields": ("office_latitude", "office_longitude", "office_radius_m"),
                "description": "Kosongkan untuk memakai lokasi kantor default.",
            },
        ),
        (
            "Akses",
            {
                "fields": (
                    "is_active",
                    "is_staff",
                )
            },
        ),
        (
            "Field sistem",
            {
                "fields": (
                    "last_login",
                    "date_joined",
                ),
                "classes": ("collapse",),
            },
        ),
    )

    add_fieldsets = (
        (
            "Buat karyawan",
            {
                "classes": ("wide",),
                "fields": (
                    "username",
                    "password1",
                    "password2",
                    "first_name",
                    "last_name",
                    "email",
                    "role",
                    "shift_start",
                    "shift_end",
                    "is_active",
                ),
            },
        ),
    )

    exclude = ("groups", "user_permissions", "is_superuser")
    actions = ("set_active", "set_inactive")

    @admin.display(description="Nama")
    def full_name_display(self, obj):
        full_name = f"{obj.first_name or ''} {obj.last_name or ''}".strip()
        return full_name or "-"

    @admin.display(description="Peran")
    def role_badge(self, obj):
        role_name = obj.role.name if obj.role_id else "-"
        color = ROLE_BADGE_COLORS.get(role_name, "#64748b")
        return format_html(
            '<span style="padding:4px 10px;border-radius:999px;background:{}22;color:{};font-weight:600;">{}</span>',
            color,
            color,
            role_name,
        )

    @admin.display(description="Shift")
    def shift_display(self, obj):
        return f"{obj.shift_start:%H:%M} - {obj.shift_end:%H:%M}"

    @admin.display(description="Kantor")
    def office_display(self, obj):
        if not obj.has_office_override:
            return "default"
        return f"{obj.office_latitude}, {obj.office_longitude} ({obj.office_radius_m} m)"

    @admin.display(description="Status")
    def status_badge(self, obj):
        if obj.is_active:
            return format_html('<span style="color:#16a34a;font-weight:600;">● Aktif</span>')
        return format_html('<span style="color:#64748b;font-weight:600;">● Nonaktif</span>')

    @admin.action(description="Aktifkan")
    def set_active(self, request, queryset):
        updated = queryset.update(is_active=True)
        self.message_user(request, f"Karyawan diaktifkan: {updated}")

    @admin.action(description="Nonaktifkan")
    def set_inactive(self, request, queryset):
        updated = queryset.update(is_active=False)
        self.message_user(request, f"Karyawan dinonaktifkan: {updated}", level=messages.WARNING)

    def has_module_permission(self, request):
        return can_manage_users(request.user)

    def has_view_permission(self, request, obj=None):
        return can_manage_users(request.user)

    def has_add_permission(self, request):
        return can_manage_users(request.user)

    def has_change_permission(self, request, obj=None):
        return can_manage_users(request.user)

    def has_delete_permission(self, request, obj=None):
        return bool(request.user.is_authenticated and request.user.is_superuser)


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("created_at", "user", "action", "category", "level", "object_type", "object_id")
    list_filter = ("level", "category", "created_at")
    search_fields = ("action", "object_type", "object_id", "user__username")
    readonly_fields = (
        "user",
        "action",
        "category",
        "level",
        "object_type",
        "object_id",
        "ip_address",
        "metadata",
        "created_at",
    )

    def has_module_permission(self, request):
        return can_manage_users(request.user)

    def has_view_permission(self, request, obj=None):
        return can_manage_users(request.user)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
