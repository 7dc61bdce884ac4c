import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from authentication.api.serializers import UserRegistrationSerializer, UserSerializer


logger = logging.getLogger(__name__)


@extend_schema(
    operation_id="auth_register",
    summary="Register a new account",
    description="Creates a buyer account. Log in through `/api/auth/token/` afterwards.",
    request=UserRegistrationSerializer,
    responses={
        201: OpenApiResponse(response=UserSerializer, description="Account created"),
        400: OpenApiResponse(description="Validation error"),
    },
    tags=["Authentication"],
)
@api_view(["POST"])
@permission_classes([permissions.AllowAny])
def register(request):
    serializer = UserRegistrationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = serializer.save()
    logger.info(f"New user registered: {user.id}")
    return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


@extend_schema(
    operation_id="auth_me",
    summary="Current user profile",
    description="GET returns the authenticated user. PATCH updates profile fields.",
    request=UserSerializer,
    responses={200: OpenApiResponse(response=UserSerializer)},
    tags=["Authentication"],
)
@api_view(["GET", "PATCH"])
@permission_classes([permissions.IsAuthenticated])
def me(request):
    if request.method == "PATCH":
        serializer = UserSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)
    return Response(UserSerializer(request.user).data)
