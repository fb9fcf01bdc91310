from django.urls import path

from .views import (
    AllAttendanceAPIView,
    CheckInAPIView,
    CheckOutAPIView,
    MyAttendanceAPIView,
    TodayAttendanceAPIView,
)


urlpatterns = [
    path("check-in/", CheckInAPIView.as_view(), name="attendance-check-in"),
    path("check-out/", CheckOutAPIView.as_view(), name="attendance-check-out"),
    path("my/", MyAttendanceAPIView.as_view(), name="attendance-my"),
    path("today/", TodayAttendanceAPIView.as_view(), name="attendance-today"),
    path("all/", AllAttendanceAPIView.as_view(), name="attendance-all"),
]
