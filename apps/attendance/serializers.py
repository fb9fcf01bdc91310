from rest_framework import serializers

from .models import AttendanceRecord
from .photos import selfie_url
from .shift_policy import format_duration


class AttendanceEventSerializer(serializers.Serializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    accuracy = serializers.FloatField(min_value=0)
    photo = serializers.ImageField(
        error_messages={"required": "Foto selfie wajib diupload"},
    )


class HistoryQuerySerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=500, default=30)

    def validate(self, attrs):
        start = attrs.get("start_date")
        end = attrs.get("end_date")
        if start and end and start > end:
            raise serializers.ValidationError({"end_date": "end_date harus setelah start_date."})
        return attrs


class AllAttendanceQuerySerializer(HistoryQuerySerializer):
    user_id = serializers.IntegerField(required=False)
    status = serializers.ChoiceField(choices=AttendanceRecord.Status.choices, required=False)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=1000, default=100)


class AttendanceRecordSerializer(serializers.ModelSerializer):
    check_in_photo = serializers.SerializerMethodField()
    check_out_photo = serializers.SerializerMethodField()
    duration_formatted = serializers.SerializerMethodField()

    class Meta:
        model = AttendanceRecord
        fields = (
            "id",
            "user",
            "date",
            "check_in_time",
            "check_in_latitude",
            "check_in_longitude",
            "check_in_accuracy_m",
            "check_in_photo",
            "check_out_time",
            "check_out_latitude",
            "check_out_longitude",
            "check_out_accuracy_m",
            "check_out_photo",
            "distance_m",
            "duration_minutes",
            "duration_formatted",
            "status",
            "late_minutes",
            "early_minutes",
            "created_at",
        )
        read_only_fields = fields

    def get_check_in_photo(self, obj):
        return selfie_url(obj.check_in_photo)

    def get_check_out_photo(self, obj):
        return selfie_url(obj.check_out_photo)

    def get_duration_formatted(self, obj):
        return format_duration(obj.duration_minutes)


class AttendanceAdminRecordSerializer(AttendanceRecordSerializer):
    user_name = serializers.CharField(source="user.full_name", read_only=True)
    username = serializers.CharField(source="user.username", read_only=True)
    email = serializers.CharField(source="user.email", read_only=True)
    role = serializers.CharField(source="user.role.name", read_only=True)

    class Meta(AttendanceRecordSerializer.Meta):
        fields = AttendanceRecordSerializer.Meta.fields + (
            "user_name",
            "username",
            "email",
            "role",
            "device_info",
        )
        read_only_fields = fields
