from django.urls import path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from authentication.api.views import auth_views


app_name = "authentication"

urlpatterns = [
    path("register/", auth_views.register, name="register"),
    path("me/", auth_views.me, name="me"),
    path("token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
]
