"""
Serializers for authentication models.

This module provides DRF serializers for:
- User model (read operations, also embedded as message sender / room member)
- Registration (create user)

Related files:
    - models.py: User model
    - views.py: Views that use these serializers

Security:
    - Password fields are write-only
    - Presence fields are read-only; only the connection lifecycle writes them
"""

from rest_framework import serializers

from authentication.models import User, validate_username_format


class UserSerializer(serializers.ModelSerializer):
    """
    Serializer for User model (read operations).

    Used for /api/v1/auth/me/, the user directory and wherever a user is
    embedded in chat payloads.
    """

    initials = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "username",
            "full_name",
            "initials",
            "is_online",
            "last_seen",
        ]
        read_only_fields = fields


class RegisterSerializer(serializers.Serializer):
    """
    Serializer for user registration.

    Uniqueness is checked here for field-level errors; the repository
    re-checks under the database constraint.
    """

    email = serializers.EmailField(required=True)
    username = serializers.CharField(max_length=30, validators=[validate_username_format])
    full_name = serializers.CharField(max_length=150, required=False, allow_blank=True, default="")
    password1 = serializers.CharField(
        write_only=True,
        min_length=8,
        style={"input_type": "password"},
        help_text="Password must be at least 8 characters.",
    )
    password2 = serializers.CharField(
        write_only=True,
        style={"input_type": "password"},
        help_text="Confirm your password.",
    )

    def validate_email(self, value):
        """Validate that email is not already in use."""
        email = value.lower().strip()
        if User.objects.filter(email__iexact=email).exists():
            raise serializers.ValidationError("A user with this email already exists.")
        return email

    def validate_username(self, value):
        if User.objects.filter(username__iexact=value).exists():
            raise serializers.ValidationError("This username is already taken.")
        return value

    def validate(self, attrs):
        """Validate that passwords match."""
        if attrs["password1"] != attrs["password2"]:
            raise serializers.ValidationError({"password2": "Passwords do not match."})
        return attrs
