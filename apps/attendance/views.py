import logging

from django.db import DatabaseError
from rest_framework import status
from rest_framework.authentication import SessionAuthentication
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.authentication import JWTAuthentication

from apps.audit import AuditEvents

from .audit import AttendanceAuditService
from .exceptions import AttendanceError, InvariantViolation
from .geo import Coordinates
from .photos import delete_selfie, selfie_url, store_selfie
from .policies import AttendancePolicy
from .repository import AttendanceRepository
from .serializers import (
    AllAttendanceQuerySerializer,
    AttendanceAdminRecordSerializer,
    AttendanceEventSerializer,
    AttendanceRecordSerializer,
    HistoryQuerySerializer,
)
from .services import AttendanceStateMachine, local_event_time


logger = logging.getLogger(__name__)


def success_response(data=None, message="Success", status_code=status.HTTP_200_OK):
    return Response({"success": True, "message": message, "data": data}, status=status_code)


def rejection_response(error: AttendanceError):
    return Response(
        {"success": False, "message": error.message, "code": error.code},
        status=error.status_code,
    )


def failure_response(message):
    return Response(
        {"success": False, "message": message},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


class AttendanceEventAPIView(APIView):
    """Shared flow for check-in and check-out submissions."""

    permission_classes = [IsAuthenticated]
    authentication_classes = [JWTAuthentication, SessionAuthentication]

    kind = ""
    rejected_action = ""
    failure_message = ""

    def perform(self, machine, request, coordinates, accuracy, photo_ref):
        raise NotImplementedError

    def render(self, result, photo_ref):
        raise NotImplementedError

    def audit_success(self, request, result):
        raise NotImplementedError

    def post(self, request):
        if not AttendancePolicy.can_record(request.user):
            raise PermissionDenied("Akses ditolak.")

        serializer = AttendanceEventSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        coordinates = Coordinates(data["latitude"], data["longitude"])

        photo_ref = None
        try:
            photo_ref = store_selfie(data["photo"], request.user.id, self.kind)
            result = self.perform(
                AttendanceStateMachine(),
                request,
                coordinates,
                data["accuracy"],
                photo_ref,
            )
        except AttendanceError as exc:
            delete_selfie(photo_ref)
            logger.info("%s rejected for user=%s: %s", self.kind, request.user.id, exc.code)
            AttendanceAuditService.log_rejected(request, action=self.rejected_action, error=exc)
            return rejection_response(exc)
        except (InvariantViolation, DatabaseError, OSError):
            delete_selfie(photo_ref)
            logger.exception("%s failed for user=%s", self.kind, request.user.id)
            return failure_response(self.failure_message)

        self.audit_success(request, result)
        return self.render(result, photo_ref)


class CheckInAPIView(AttendanceEventAPIView):
    kind = "check_in"
    rejected_action = AuditEvents.ATTENDANCE_CHECK_IN_REJECTED
    failure_message = "Terjadi kesalahan saat absen masuk"

    def perform(self, machine, request, coordinates, accuracy, photo_ref):
        return machine.check_in(
            request.user.id,
            coordinates,
            accuracy,
            photo_ref,
            device_info=request.META.get("HTTP_USER_AGENT", ""),
        )

    def audit_success(self, request, result):
        AttendanceAuditService.log_checked_in(request, result)

    def render(self, result, photo_ref):
        return success_response(
            {
                "id": result.record_id,
                "check_in_time": result.check_in_time,
                "photo": selfie_url(photo_ref),
                "distance_m": result.distance_m,
                "status": result.status,
                "late": result.is_late,
                "late_minutes": result.late_minutes,
                "message": result.message,
            },
            message="Check-in berhasil",
            status_code=status.HTTP_201_CREATED,
        )


class CheckOutAPIView(AttendanceEventAPIView):
    kind = "check_out"
    rejected_action = AuditEvents.ATTENDANCE_CHECK_OUT_REJECTED
    failure_message = "Terjadi kesalahan saat absen pulang"

    def perform(self, machine, request, coordinates, accuracy, photo_ref):
        return machine.check_out(request.user.id, coordinates, accuracy, photo_ref)

    def audit_success(self, request, result):
        AttendanceAuditService.log_checked_out(request, result)

    def render(self, result, photo_ref):
        return success_response(
            {
                "id": result.record_id,
                "check_in_time": result.check_in_time,
                "check_out_time": result.check_out_time,
                "check_out_photo": selfie_url(photo_ref),
                "distance_m": result.distance_m,
                "duration_minutes": result.duration_minutes,
                "duration": result.duration_formatted,
                "status": result.status,
                "early": result.is_early,
                "early_minutes": result.early_minutes,
                "message": result.message,
            },
            message="Check-out berhasil",
        )


class MyAttendanceAPIView(APIView):
    permission_classes = [IsAuthenticated]
    authentication_classes = [JWTAuthentication, SessionAuthentication]

    def get(self, request):
        query = HistoryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        records = AttendanceRepository().list_attendance(
            employee_id=request.user.id,
            start_date=query.validated_data.get("start_date"),
            end_date=query.validated_data.get("end_date"),
            limit=query.validated_data["limit"],
        )
        return success_response(
            {
                "total": len(records),
                "attendance": AttendanceRecordSerializer(records, many=True).data,
            },
            message="Berhasil mengambil riwayat absensi",
        )


class TodayAttendanceAPIView(APIView):
    permission_classes = [IsAuthenticated]
    authentication_classes = [JWTAuthentication, SessionAuthentication]

    def get(self, request):
        today = local_event_time().date()
        record = AttendanceRepository().get_today_record(request.user.id, today)
        if record is None:
            return success_response(
                {
                    "has_checked_in": False,
                    "has_checked_out": False,
                    "attendance": None,
                },
                message="Anda belum absen hari ini",
            )
        return success_response(
            {
                "has_checked_in": True,
                "has_checked_out": record.has_checked_out,
                "attendance": AttendanceRecordSerializer(record).data,
            },
            message="Data absensi hari ini",
        )


class AllAttendanceAPIView(APIView):
    permission_classes = [IsAuthenticated]
    authentication_classes = [JWTAuthentication, SessionAuthentication]

    def get(self, request):
        if not AttendancePolicy.can_view_all(request.user):
            raise PermissionDenied("Akses ditolak.")

        query = AllAttendanceQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        filters = query.validated_data
        records = AttendanceRepository().list_attendance(
            employee_id=filters.get("user_id"),
            start_date=filters.get("start_date"),
            end_date=filters.get("end_date"),
            status=filters.get("status"),
            limit=filters["limit"],
        )
        AttendanceAuditService.log_history_viewed(request, filters)
        return success_response(
            {
                "total": len(records),
                "attendance": AttendanceAdminRecordSerializer(records, many=True).data,
            },
            message="Berhasil mengambil data absensi",
        )
