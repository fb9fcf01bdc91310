from rest_framework import serializers

from .models import Role, User


class UserSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)
    role = serializers.CharField(source="role.name", read_only=True)
    shift_start = serializers.TimeField(format="%H:%M", read_only=True)
    shift_end = serializers.TimeField(format="%H:%M", read_only=True)
    office = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = (
            "id",
            "username",
            "email",
            "first_name",
            "last_name",
            "full_name",
            "role",
            "phone",
            "shift_start",
            "shift_end",
            "office",
        )

    def get_office(self, obj):
        if not obj.has_office_override:
            return None
        return {
            "latitude": float(obj.office_latitude),
            "longitude": float(obj.office_longitude),
            "radius_m": obj.office_radius_m,
        }


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField()


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField(error_messages={"required": "Refresh token harus diisi"})


def _validate_unique_email(value, instance=None):
    if not value:
        return value
    qs = User.objects.filter(email__iexact=value)
    if instance is not None:
        qs = qs.exclude(pk=instance.pk)
    if qs.exists():
        raise serializers.ValidationError("Email sudah digunakan user lain")
    return value


def _validate_shift(shift_start, shift_end):
    # Shifts crossing midnight are not supported.
    if shift_start and shift_end and shift_start >= shift_end:
        raise serializers.ValidationError({"shift_end": "Jam pulang harus setelah jam masuk."})


class ProfileUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ("first_name", "last_name", "email", "phone")

    def validate_email(self, value):
        return _validate_unique_email(value, self.instance)


class EmployeeSerializer(serializers.ModelSerializer):
    """Admin/HRD view of an employee, including office and shift settings."""

    role = serializers.SlugRelatedField(slug_field="name", queryset=Role.objects.all())
    password = serializers.CharField(write_only=True, required=False, min_length=6)
    full_name = serializers.CharField(read_only=True)
    shift_start = serializers.TimeField(format="%H:%M", required=False)
    shift_end = serializers.TimeField(format="%H:%M", required=False)

    class Meta:
        model = User
        fields = (
            "id",
            "username",
            "email",
            "password",
            "first_name",
            "last_name",
            "full_name",
            "role",
            "phone",
            "office_latitude",
            "office_longitude",
            "office_radius_m",
            "shift_start",
            "shift_end",
            "is_active",
            "date_joined",
        )
        read_only_fields = ("id", "date_joined")

    def validate_email(self, value):
        return _validate_unique_email(value, self.instance)

    def _current(self, attrs, field):
        if field in attrs:
            return attrs[field]
        return getattr(self.instance, field, None)

    def validate(self, attrs):
        if self.instance is None and not attrs.get("password"):
            raise serializers.ValidationError({"password": "Password wajib diisi"})
        if self.instance is not None and "password" in attrs:
            raise serializers.ValidationError({"password": "Password tidak dapat diubah di sini"})

        latitude = self._current(attrs, "office_latitude")
        longitude = self._current(attrs, "office_longitude")
        if (latitude is None) != (longitude is None):
            raise serializers.ValidationError(
                {"office_latitude": "Latitude dan longitude kantor harus diisi bersamaan."}
            )

        _validate_shift(self._current(attrs, "shift_start"), self._current(attrs, "shift_end"))
        return attrs

    def create(self, validated_data):
        password = validated_data.pop("password")
        username = validated_data.pop("username")
        return User.objects.create_user(username, password=password, **validated_data)


class EmployeeQuerySerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=Role.Name.choices, required=False)
    is_active = serializers.BooleanField(required=False, allow_null=True, default=None)
    search = serializers.CharField(required=False, allow_blank=True)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=1000, default=100)


class OfficeSettingsSerializer(serializers.Serializer):
    office_latitude = serializers.DecimalField(
        max_digits=9,
        decimal_places=6,
        min_value=-90,
        max_value=90,
        error_messages={"required": "Latitude dan longitude wajib diisi"},
    )
    office_longitude = serializers.DecimalField(
        max_digits=9,
        decimal_places=6,
        min_value=-180,
        max_value=180,
        error_messages={"required": "Latitude dan longitude wajib diisi"},
    )
    office_radius_m = serializers.IntegerField(min_value=1, required=False, default=100)


class ShiftSettingsSerializer(serializers.Serializer):
    shift_start = serializers.TimeField(error_messages={"required": "Jam mulai dan jam selesai wajib diisi"})
    shift_end = serializers.TimeField(error_messages={"required": "Jam mulai dan jam selesai wajib diisi"})

    def validate(self, attrs):
        _validate_shift(attrs["shift_start"], attrs["shift_end"])
        return attrs
