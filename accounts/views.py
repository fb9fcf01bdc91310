from django.contrib.auth import authenticate
from django.db.models import Q
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.generics import ListCreateAPIView, RetrieveUpdateDestroyAPIView
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings as jwt_settings
from rest_framework_simplejwt.tokens import RefreshToken

from apps.audit import AuditEvents, log_event

from .access_policy import AccessPolicy
from .models import User
from .serializers import (
    EmployeeQuerySerializer,
    EmployeeSerializer,
    LoginSerializer,
    LogoutSerializer,
    OfficeSettingsSerializer,
    ProfileUpdateSerializer,
    ShiftSettingsSerializer,
    UserSerializer,
)
from .throttles import LoginRateThrottle


def envelope(data=None, message="Success", status_code=status.HTTP_200_OK):
    return Response({"success": True, "message": message, "data": data}, status=status_code)


class LoginView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [LoginRateThrottle]

    @staticmethod
    def _get_ip(request):
        xff = request.META.get("HTTP_X_FORWARDED_FOR")
        if xff:
            return xff.split(",")[0].strip()
        return request.META.get("REMOTE_ADDR")

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        username = serializer.validated_data["username"].strip()
        password = serializer.validated_data["password"]

        existing_user = User.objects.filter(username=username).first()
        if not existing_user:
            existing_user = User.objects.filter(email__iexact=username).first()

        auth_username = existing_user.username if existing_user else username
        user = authenticate(username=auth_username, password=password)

        if not user:
            log_event(
                action=AuditEvents.LOGIN_FAILED,
                actor=existing_user,
                object_type="user",
                object_id=str(existing_user.id) if existing_user else "",
                level="warning",
                category="auth",
                ip_address=self._get_ip(request),
                metadata={"username": username},
            )
            return Response({"success": False, "message": "Username atau password salah"}, status=401)

        refresh = RefreshToken.for_user(user)
        refresh["role"] = user.role.name

        log_event(
            action=AuditEvents.LOGIN_SUCCESS,
            actor=user,
            object_type="user",
            object_id=str(user.id),
            level="info",
            category="auth",
            ip_address=self._get_ip(request),
        )

        return envelope(
            {
                "access": str(refresh.access_token),
                "refresh": str(refresh),
                "user": UserSerializer(user).data,
            },
            message="Login berhasil",
        )


class LogoutView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = LogoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            token = RefreshToken(serializer.validated_data["refresh"])
            if str(token.get(jwt_settings.USER_ID_CLAIM)) != str(request.user.pk):
                raise TokenError("token belongs to another user")
            token.blacklist()
        except TokenError:
            return Response(
                {"success": False, "message": "Refresh token tidak valid"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        log_event(
            action=AuditEvents.LOGOUT,
            actor=request.user,
            object_type="user",
            object_id=str(request.user.id),
            category="auth",
            ip_address=LoginView._get_ip(request),
        )
        return envelope(None, message="Logout berhasil")


class MyProfileAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user).data)

    def patch(self, request):
        serializer = ProfileUpdateSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        log_event(
            action=AuditEvents.PROFILE_UPDATED,
            actor=request.user,
            object_type="user",
            object_id=str(request.user.id),
            category="user",
            ip_address=LoginView._get_ip(request),
            metadata={"changed_fields": sorted(serializer.validated_data.keys())},
        )
        return Response(UserSerializer(request.user).data)

    put = patch


# ================= EMPLOYEES =================

class _EmployeeAdminMixin:
    """
    Employee management for the back office.

    Admin and HRD may read employees and set their office and shift;
    only Admin may create, edit or delete accounts.
    """

    permission_classes = [IsAuthenticated]

    @staticmethod
    def _ensure(allowed: bool):
        if not allowed:
            raise PermissionDenied("Akses ditolak.")

    @staticmethod
    def _load(pk) -> User:
        employee = User.objects.select_related("role").filter(pk=pk).first()
        if employee is None:
            raise NotFound("User tidak ditemukan")
        return employee

    @staticmethod
    def _audit(request, action, employee_id, metadata=None):
        log_event(
            action=action,
            actor=request.user,
            object_type="user",
            object_id=str(employee_id),
            category="user",
            ip_address=LoginView._get_ip(request),
            metadata=metadata,
        )


class EmployeeListCreateAPIView(_EmployeeAdminMixin, ListCreateAPIView):
    queryset = User.objects.select_related("role")
    serializer_class = EmployeeSerializer

    def list(self, request, *args, **kwargs):
        self._ensure(AccessPolicy.is_admin_like(request.user))
        query = EmployeeQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        filters = query.validated_data

        qs = self.get_queryset()
        if filters.get("role"):
            qs = qs.filter(role__name=filters["role"])
        if filters.get("is_active") is not None:
            qs = qs.filter(is_active=filters["is_active"])
        search = (filters.get("search") or "").strip()
        if search:
            qs = qs.filter(
                Q(username__icontains=search)
                | Q(first_name__icontains=search)
                | Q(last_name__icontains=search)
                | Q(email__icontains=search)
            )
        employees = list(qs.order_by("-date_joined", "-id")[: filters["limit"]])

        return envelope(
            {
                "total": len(employees),
                "users": self.get_serializer(employees, many=True).data,
            },
            message="Berhasil mengambil data user",
        )

    def create(self, request, *args, **kwargs):
        self._ensure(AccessPolicy.is_admin(request.user))
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        employee = serializer.save()
        self._audit(request, AuditEvents.EMPLOYEE_CREATED, employee.id, {"role": employee.role.name})
        return envelope(serializer.data, message="User berhasil dibuat", status_code=status.HTTP_201_CREATED)


class EmployeeDetailAPIView(_EmployeeAdminMixin, RetrieveUpdateDestroyAPIView):
    queryset = User.objects.select_related("role")
    serializer_class = EmployeeSerializer

    def get_object(self):
        try:
            return super().get_object()
        except Http404:
            raise NotFound("User tidak ditemukan")

    def retrieve(self, request, *args, **kwargs):
        self._ensure(AccessPolicy.is_admin_like(request.user))
        return envelope(self.get_serializer(self.get_object()).data, message="Berhasil mengambil data user")

    def update(self, request, *args, **kwargs):
        self._ensure(AccessPolicy.is_admin(request.user))
        instance = self.get_object()
        # PUT and PATCH both only touch the fields that are sent.
        serializer = self.get_serializer(instance, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        changed_fields = {
            field
            for field, value in serializer.validated_data.items()
            if getattr(instance, field) != value
        }
        self.perform_update(serializer)
        if changed_fields:
            self._audit(
                request,
                AuditEvents.EMPLOYEE_UPDATED,
                instance.id,
                {"changed_fields": sorted(changed_fields)},
            )
        return envelope(serializer.data, message="User berhasil diupdate")

    def destroy(self, request, *args, **kwargs):
        self._ensure(AccessPolicy.is_admin(request.user))
        instance = self.get_object()
        if instance.pk == request.user.pk:
            return Response(
                {"success": False, "message": "Tidak dapat menghapus akun sendiri"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        data = {"id": instance.id, "username": instance.username, "email": instance.email}
        self.perform_destroy(instance)
        self._audit(request, AuditEvents.EMPLOYEE_DELETED, data["id"], {"username": data["username"]})
        return envelope(data, message="User berhasil dihapus")


class EmployeeOfficeSettingsAPIView(_EmployeeAdminMixin, APIView):
    def put(self, request, pk):
        self._ensure(AccessPolicy.is_admin_like(request.user))
        employee = self._load(pk)
        serializer = OfficeSettingsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        for field, value in serializer.validated_data.items():
            setattr(employee, field, value)
        employee.save(update_fields=["office_latitude", "office_longitude", "office_radius_m"])

        self._audit(
            request,
            AuditEvents.EMPLOYEE_OFFICE_UPDATED,
            employee.id,
            {key: str(value) for key, value in serializer.validated_data.items()},
        )
        return envelope(
            {
                "id": employee.id,
                "username": employee.username,
                "office_latitude": float(employee.office_latitude),
                "office_longitude": float(employee.office_longitude),
                "office_radius_m": employee.office_radius_m,
            },
            message="Pengaturan lokasi kantor berhasil diupdate",
        )


class EmployeeShiftSettingsAPIView(_EmployeeAdminMixin, APIView):
    def put(self, request, pk):
        self._ensure(AccessPolicy.is_admin_like(request.user))
        employee = self._load(pk)
        serializer = ShiftSettingsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        employee.shift_start = serializer.validated_data["shift_start"]
        employee.shift_end = serializer.validated_data["shift_end"]
        employee.save(update_fields=["shift_start", "shift_end"])

        shift = {
            "shift_start": employee.shift_start.strftime("%H:%M"),
            "shift_end": employee.shift_end.strftime("%H:%M"),
        }
        self._audit(request, AuditEvents.EMPLOYEE_SHIFT_UPDATED, employee.id, shift)
        return envelope(
            {"id": employee.id, "username": employee.username, **shift},
            message="Pengaturan jam kerja berhasil diupdate",
        )
