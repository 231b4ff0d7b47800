from django.contrib.auth import get_user_model
from djoser.serializers import UserCreateSerializer
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from core.uniqueness import assert_available
from .models import Role, Vendor
from .roles import RoleLevel

User = get_user_model()


class RoleSerializer(serializers.ModelSerializer):
    class Meta:
        model = Role
        fields = ('level', 'name')


class RegisterSerializer(UserCreateSerializer):
    """
    Registration body for djoser's users endpoint. New accounts always get the
    customer role (see CustomUserManager.create_user).
    """
    first_name = serializers.CharField(min_length=2, max_length=40)
    last_name = serializers.CharField(min_length=2, max_length=40)
    phone = serializers.CharField(min_length=11, max_length=15, required=False, allow_null=True)
    address = serializers.CharField(min_length=3, required=False, allow_blank=True)

    class Meta(UserCreateSerializer.Meta):
        model = User
        fields = ('id', 'email', 'password', 'first_name', 'last_name', 'phone', 'address')
        extra_kwargs = {'email': {'validators': []}}

    def validate_email(self, value):
        assert_available(User, message="Email already exists", email__iexact=value)
        return value

    def validate_phone(self, value):
        if value:
            assert_available(User, message="Phone number already exists", phone=value)
        return value


class CustomUserSerializer(serializers.ModelSerializer):
    role = RoleSerializer(read_only=True)
    phone = serializers.CharField(
        min_length=11, max_length=15, required=False, allow_null=True, validators=[]
    )

    class Meta:
        model = User
        fields = (
            'id', 'email', 'first_name', 'last_name', 'name', 'phone', 'address',
            'profile_pic', 'role', 'is_active', 'date_joined', 'updated_at',
        )
        read_only_fields = ('id', 'email', 'name', 'role', 'is_active', 'date_joined', 'updated_at')

    def validate_phone(self, value):
        if value:
            exclude_id = self.instance.pk if self.instance else None
            assert_available(User, exclude_id=exclude_id, message="Phone number already exists", phone=value)
        return value


class RoleTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Adds display claims to the token; authorization still reads the role from the database."""

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['email'] = user.email
        token['name'] = user.name
        token['role'] = user.role.name if user.role_id else None
        return token


class AdminUserSerializer(serializers.ModelSerializer):
    role = RoleSerializer(read_only=True)

    class Meta:
        model = User
        fields = (
            'id', 'email', 'first_name', 'last_name', 'phone', 'address',
            'role', 'is_active', 'date_joined',
        )
        read_only_fields = fields


class RoleAssignSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=[level.role_name for level in RoleLevel])


class VendorSerializer(serializers.ModelSerializer):
    user = serializers.PrimaryKeyRelatedField(queryset=User.objects.all(), required=False)
    user_email = serializers.CharField(source='user.email', read_only=True)
    shop_name = serializers.CharField(min_length=2, max_length=200)
    description = serializers.CharField(max_length=1000, required=False, allow_blank=True)

    class Meta:
        model = Vendor
        fields = (
            'id', 'user', 'user_email', 'shop_name', 'description',
            'is_active', 'created_at', 'updated_at',
        )
        read_only_fields = ('id', 'created_at', 'updated_at')

    def validate_user(self, value):
        if self.instance is not None and value != self.instance.user:
            raise serializers.ValidationError("A vendor profile cannot be moved to another user.")
        return value
