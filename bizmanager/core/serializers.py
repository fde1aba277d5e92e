from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from .models import User, UserSession

NAME_MIN_LENGTH = 6
PRIVILEGE_FIELDS = ('is_staff', 'is_superuser')


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'email', 'name', 'image', 'is_active', 'is_staff', 'created_at', 'updated_at']
        read_only_fields = ['email', 'is_active', 'is_staff', 'created_at', 'updated_at']


class UserUpdateSerializer(serializers.ModelSerializer):
    """Fields a user may change on their own account"""
    name = serializers.CharField(min_length=NAME_MIN_LENGTH, max_length=150, trim_whitespace=True)
    image = serializers.URLField(required=False, allow_blank=True)

    class Meta:
        model = User
        fields = ['name', 'image']


class AdminUserSerializer(serializers.ModelSerializer):
    """
    User management by staff.

    is_staff and is_superuser are only writable when the request comes from
    a superuser; for everybody else they are read-only.
    """
    class Meta:
        model = User
        fields = ['id', 'email', 'name', 'image', 'is_active', 'is_staff', 'is_superuser', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def get_extra_kwargs(self):
        extra_kwargs = super().get_extra_kwargs()
        request = self.context.get('request')
        if request is None or not request.user.is_superuser:
            for field_name in PRIVILEGE_FIELDS:
                kwargs = dict(extra_kwargs.get(field_name, {}))
                kwargs['read_only'] = True
                extra_kwargs[field_name] = kwargs
        return extra_kwargs


class UserCreateSerializer(serializers.ModelSerializer):
    name = serializers.CharField(min_length=NAME_MIN_LENGTH, max_length=150, trim_whitespace=True)
    password = serializers.CharField(write_only=True)

    class Meta:
        model = User
        fields = ['email', 'name', 'password']

    def validate_email(self, value):
        email = User.objects.normalize_email(value).strip()
        if User.objects.filter(email__iexact=email).exists():
            raise serializers.ValidationError('A user with this email already exists.')
        return email

    def validate(self, attrs):
        user = User(email=attrs.get('email'), name=attrs.get('name'))
        try:
            validate_password(attrs['password'], user=user)
        except DjangoValidationError as e:
            raise serializers.ValidationError({'password': list(e.messages)})
        return attrs

    def create(self, validated_data):
        return User.objects.create_user(
            email=validated_data['email'],
            password=validated_data['password'],
            name=validated_data['name'],
            is_active=True,
        )


class PasswordChangeSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True)
    new_password_confirm = serializers.CharField(write_only=True)

    def validate_current_password(self, value):
        user = self.context['request'].user
        if not user.check_password(value):
            raise serializers.ValidationError('Current password is incorrect.')
        return value

    def validate(self, attrs):
        if attrs['new_password'] != attrs['new_password_confirm']:
            raise serializers.ValidationError({'new_password_confirm': "Passwords don't match"})
        try:
            validate_password(attrs['new_password'], user=self.context['request'].user)
        except DjangoValidationError as e:
            raise serializers.ValidationError({'new_password': list(e.messages)})
        return attrs

    def save(self, **kwargs):
        user = self.context['request'].user
        user.set_password(self.validated_data['new_password'])
        user.save(update_fields=['password'])
        return user


class AccountDeleteSerializer(serializers.Serializer):
    password = serializers.CharField(write_only=True)

    def validate_password(self, value):
        if not self.context['request'].user.check_password(value):
            raise serializers.ValidationError('Password is incorrect.')
        return value


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField()


class UserSessionSerializer(serializers.ModelSerializer):
    is_current = serializers.SerializerMethodField()

    class Meta:
        model = UserSession
        fields = ['id', 'user_agent', 'ip_address', 'created_at', 'expires_at', 'is_current']

    def get_is_current(self, obj):
        return obj.jti == self.context.get('current_jti')
