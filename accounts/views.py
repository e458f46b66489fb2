from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from .authz import resolve_actor, require
from .commands import (
    register_signup,
    switch_active_company,
    create_user_with_membership,
    update_membership_role,
    deactivate_membership,
    grant_permission,
    revoke_permission,
)
from .models import CompanyMembership, AccessPermission
from .serializers import (
    CompanySerializer,
    EmailTokenObtainPairSerializer,
    MembershipRoleSerializer,
    MembershipSerializer,
    PermissionCodesSerializer,
    PermissionSerializer,
    RegistrationSerializer,
    SwitchCompanySerializer,
    UserCreateSerializer,
    UserSerializer,
    tokens_for,
)
from .throttles import LoginThrottle, RegistrationThrottle


class RegisterView(APIView):
    """POST /api/auth/register/ -> create user + company, return tokens."""
    permission_classes = [permissions.AllowAny]
    throttle_classes = [RegistrationThrottle]

    def post(self, request):
        serializer = RegistrationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = register_signup(**serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)

        return Response(
            {
                "user": UserSerializer(result.data["user"]).data,
                "company": CompanySerializer(result.data["company"]).data,
                **tokens_for(result.data["user"]),
            },
            status=status.HTTP_201_CREATED,
        )


class LoginView(generics.GenericAPIView):
    serializer_class = EmailTokenObtainPairSerializer
    permission_classes = [permissions.AllowAny]
    throttle_classes = [LoginThrottle]

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return Response(serializer.validated_data, status=status.HTTP_200_OK)


class LogoutView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request, *args, **kwargs):
        refresh_token = request.data.get("refresh")
        if not refresh_token:
            return Response({"detail": "Refresh token required"}, status=status.HTTP_400_BAD_REQUEST)
        try:
            token = RefreshToken(refresh_token)
            token.blacklist()
        except TokenError:
            return Response({"detail": "Invalid token"}, status=status.HTTP_400_BAD_REQUEST)
        return Response(status=status.HTTP_204_NO_CONTENT)


class MeView(APIView):
    """GET /api/auth/me/ -> current user, active company, role and permissions."""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        user = request.user
        data = {"user": UserSerializer(user).data, "company": None, "role": None, "permissions": []}
        if user.active_company_id:
            actor = resolve_actor(request)
            data["company"] = CompanySerializer(actor.company).data
            data["role"] = actor.role
            data["permissions"] = sorted(actor.perms)
        return Response(data)


class SwitchCompanyView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = SwitchCompanySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = switch_active_company(request.user, serializer.validated_data["company_id"])
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(result.data)


class MembershipListCreateView(APIView):
    """
    GET /api/memberships/ -> memberships of the active company
    POST /api/memberships/ -> create user + membership
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "company.view")

        memberships = CompanyMembership.objects.filter(
            company=actor.company,
        ).select_related("user").order_by("id")
        return Response(MembershipSerializer(memberships, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)

        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = create_user_with_membership(actor, **serializer.validated_data)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(MembershipSerializer(result.data["membership"]).data, status=status.HTTP_201_CREATED)


class MembershipRoleView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, pk):
        actor = resolve_actor(request)

        serializer = MembershipRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = update_membership_role(actor, pk, serializer.validated_data["role"])
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(MembershipSerializer(result.data).data)


class MembershipDeactivateView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)

        result = deactivate_membership(actor, pk)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(result.data)


class MembershipPermissionsView(APIView):
    """
    POST /api/memberships/<pk>/permissions/ -> grant codes
    DELETE /api/memberships/<pk>/permissions/ -> revoke codes
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)
        serializer = PermissionCodesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = grant_permission(actor, pk, serializer.validated_data["codes"])
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(result.data)

    def delete(self, request, pk):
        actor = resolve_actor(request)
        serializer = PermissionCodesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = revoke_permission(actor, pk, serializer.validated_data["codes"])
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(result.data)


class PermissionListView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "company.view")
        return Response(PermissionSerializer(AccessPermission.objects.all(), many=True).data)
