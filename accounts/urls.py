# accounts/urls.py
"""
URL configuration for accounts/auth API.

Endpoints:
- /auth/ - Authentication (login, register, refresh, logout, me, switch-company)
- /memberships/ - Membership, role and permission management
- /permissions/ - Available permissions list
"""

from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from .views import (
    RegisterView,
    LoginView,
    LogoutView,
    MeView,
    SwitchCompanyView,
    MembershipListCreateView,
    MembershipRoleView,
    MembershipDeactivateView,
    MembershipPermissionsView,
    PermissionListView,
)

app_name = "accounts"

urlpatterns = [
    # ==========================================================================
    # Authentication
    # ==========================================================================
    path("auth/register/", RegisterView.as_view(), name="register"),
    path("auth/login/", LoginView.as_view(), name="login"),
    path("auth/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
    path("auth/logout/", LogoutView.as_view(), name="logout"),
    path("auth/me/", MeView.as_view(), name="me"),
    path("auth/switch-company/", SwitchCompanyView.as_view(), name="switch-company"),

    # ==========================================================================
    # Memberships
    # ==========================================================================
    path("memberships/", MembershipListCreateView.as_view(), name="membership-list"),
    path("memberships/<int:pk>/role/", MembershipRoleView.as_view(), name="membership-role"),
    path("memberships/<int:pk>/deactivate/", MembershipDeactivateView.as_view(), name="membership-deactivate"),
    path("memberships/<int:pk>/permissions/", MembershipPermissionsView.as_view(), name="membership-permissions"),

    # ==========================================================================
    # Permissions
    # ==========================================================================
    path("permissions/", PermissionListView.as_view(), name="permission-list"),
]
