from .auth_serializers import UserRegistrationSerializer, UserSerializer


__all__ = [
    "UserSerializer",
    "UserRegistrationSerializer",
]
