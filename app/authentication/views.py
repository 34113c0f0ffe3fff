"""
Authentication views.

This module provides API views for:
- Registration
- The current user
- The user directory (everyone except the caller), used to start chats

Related files:
    - serializers.py: Request/response serialization
    - repositories.py: UserRepository persistence gateway
    - urls.py: URL routing

Note:
    Login and refresh are SimpleJWT views wired in urls.py:
    - Login: /api/v1/auth/token/
    - Refresh: /api/v1/auth/token/refresh/
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from core.exceptions import BaseApplicationError, http_status_for
from authentication.repositories import UserRepository
from authentication.serializers import RegisterSerializer, UserSerializer


class RegisterView(APIView):
    """
    Create an account and return a JWT pair.

    URL: /api/v1/auth/register/
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Register",
        tags=["Auth"],
        request=RegisterSerializer,
        responses={201: UserSerializer},
    )
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            user = UserRepository.create_user(
                email=data["email"],
                username=data["username"],
                full_name=data.get("full_name", ""),
                password=data["password1"],
            )
        except BaseApplicationError as e:
            return Response(e.to_dict(), status=http_status_for(e.error_code))

        refresh = RefreshToken.for_user(user)
        return Response(
            {
                "user": UserSerializer(user).data,
                "access": str(refresh.access_token),
                "refresh": str(refresh),
            },
            status=status.HTTP_201_CREATED,
        )


class MeView(APIView):
    """
    The authenticated user.

    URL: /api/v1/auth/me/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Current user", tags=["Auth"], responses={200: UserSerializer})
    def get(self, request):
        return Response(UserSerializer(request.user).data)


class UserListView(APIView):
    """
    Every active user except the caller.

    URL: /api/v1/auth/users/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(summary="List users", tags=["Auth"], responses={200: UserSerializer(many=True)})
    def get(self, request):
        try:
            users = UserRepository.list_users(exclude_user_id=request.user.id)
        except BaseApplicationError as e:
            return Response(e.to_dict(), status=http_status_for(e.error_code))
        return Response(UserSerializer(users, many=True).data)
