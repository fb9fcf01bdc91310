from django.contrib import admin
from django.utils.html import format_html

from accounts.access_policy import AccessPolicy
from .models import AttendanceRecord
from .photos import selfie_url
from .shift_policy import format_duration


STATUS_COLORS = {
    AttendanceRecord.Status.HADIR: "#16a34a",
    AttendanceRecord.Status.TERLAMBAT: "#dc2626",
    AttendanceRecord.Status.PULANG_CEPAT: "#d97706",
}


@admin.register(AttendanceRecord)
class AttendanceRecordAdmin(admin.ModelAdmin):
    list_display = (
        "user",
        "date",
        "check_in_time",
        "check_out_time",
        "status_badge",
        "late_minutes",
        "early_minutes",
        "duration_display",
        "distance_m",
    )
    list_filter = ("status", "date")
    search_fields = ("user__username", "user__first_name", "user__last_name")
    ordering = ("-date", "-check_in_time")
    date_hierarchy = "date"
    list_select_related = ("user",)
    readonly_fields = [field.name for field in AttendanceRecord._meta.fields] + [
        "check_in_photo_preview",
        "check_out_photo_preview",
    ]

    @admin.display(description="Status")
    def status_badge(self, obj):
        color = STATUS_COLORS.get(obj.status, "#64748b")
        return format_html('<span style="color:{};font-weight:600;">● {}</span>', color, obj.status)

    @admin.display(description="Durasi")
    def duration_display(self, obj):
        return format_duration(obj.duration_minutes) or "-"

    def _photo_preview(self, filename):
        url = selfie_url(filename)
        if not url:
            return "-"
        return format_html('<img src="{}" style="max-height:160px;border-radius:8px;" />', url)

    @admin.display(description="Foto masuk")
    def check_in_photo_preview(self, obj):
        return self._photo_preview(obj.check_in_photo)

    @admin.display(description="Foto pulang")
    def check_out_photo_preview(self, obj):
        return self._photo_preview(obj.check_out_photo)

    def has_module_permission(self, request):
        return AccessPolicy.can_access_admin_panel(request.user)

    def has_view_permission(self, request, obj=None):
        return AccessPolicy.can_access_admin_panel(request.user)

    # Records are written only through the check-in/check-out flow.
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return bool(request.user.is_authenticated and request.user.is_superuser)
