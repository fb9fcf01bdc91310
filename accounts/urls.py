from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from .views import (
    EmployeeDetailAPIView,
    EmployeeListCreateAPIView,
    EmployeeOfficeSettingsAPIView,
    EmployeeShiftSettingsAPIView,
    LoginView,
    LogoutView,
    MyProfileAPIView,
)


urlpatterns = [
    path("auth/login/", LoginView.as_view(), name="auth-login"),
    path("auth/refresh/", TokenRefreshView.as_view(), name="auth-refresh"),
    path("auth/logout/", LogoutView.as_view(), name="auth-logout"),
    path("auth/profile/", MyProfileAPIView.as_view(), name="auth-profile"),
    path("me/", MyProfileAPIView.as_view(), name="accounts-me"),

    path("users/", EmployeeListCreateAPIView.as_view(), name="employee-list"),
    path("users/<int:pk>/", EmployeeDetailAPIView.as_view(), name="employee-detail"),
    path(
        "users/<int:pk>/office-settings/",
        EmployeeOfficeSettingsAPIView.as_view(),
        name="employee-office-settings",
    ),
    path(
        "users/<int:pk>/shift-settings/",
        EmployeeShiftSettingsAPIView.as_view(),
        name="employee-shift-settings",
    ),
]
