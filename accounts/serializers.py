from django.conf import settings
from django.contrib.auth import authenticate
from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework_simplejwt.tokens import RefreshToken

from .models import Company, CompanyMembership, AccessPermission, User


class CompanySerializer(serializers.ModelSerializer):
    class Meta:
        model = Company
        fields = ("id", "public_id", "name", "slug", "default_currency", "is_active")


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ("id", "public_id", "email", "name")


class MembershipSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)
    permissions = serializers.SerializerMethodField()

    class Meta:
        model = CompanyMembership
        fields = ("id", "public_id", "user", "role", "is_active", "permissions", "joined_at")

    def get_permissions(self, obj):
        return sorted(obj.permissions.values_list("code", flat=True))


class PermissionSerializer(serializers.ModelSerializer):
    class Meta:
        model = AccessPermission
        fields = ("code", "name", "module", "description")


class RegistrationSerializer(serializers.Serializer):
    email = serializers.EmailField()
    name = serializers.CharField(max_length=150)
    password = serializers.CharField(min_length=8, write_only=True)
    company_name = serializers.CharField(max_length=255)
    default_currency = serializers.ChoiceField(choices=settings.SUPPORTED_CURRENCIES, default="EUR")

    def validate_email(self, value: str):
        value = value.lower()
        if User.objects.filter(email=value).exists():
            raise serializers.ValidationError("A user with this email already exists.")
        return value


class UserCreateSerializer(serializers.Serializer):
    email = serializers.EmailField()
    name = serializers.CharField(max_length=150)
    password = serializers.CharField(min_length=8, write_only=True)
    role = serializers.ChoiceField(choices=CompanyMembership.Role.choices, default=CompanyMembership.Role.USER)


class MembershipRoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=CompanyMembership.Role.choices)


class PermissionCodesSerializer(serializers.Serializer):
    codes = serializers.ListField(child=serializers.CharField(max_length=100), allow_empty=False)


class SwitchCompanySerializer(serializers.Serializer):
    company_id = serializers.IntegerField()


class EmailTokenObtainPairSerializer(TokenObtainPairSerializer):
    username_field = User.EMAIL_FIELD

    def validate(self, attrs):
        authenticate_kwargs = {
            self.username_field: attrs.get("email"),
            "password": attrs.get("password"),
        }
        user = authenticate(request=self.context.get("request"), **authenticate_kwargs)
        if not user:
            raise AuthenticationFailed("Invalid credentials")
        refresh = RefreshToken.for_user(user)
        return {"access": str(refresh.access_token), "refresh": str(refresh)}


def tokens_for(user) -> dict:
    refresh = RefreshToken.for_user(user)
    return {"access": str(refresh.access_token), "refresh": str(refresh)}
