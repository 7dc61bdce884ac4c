from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .api.views import prometheus_metrics
from .cart.api.views.cart_views import CartViewSet
from .catalog.api.views.book_views import BookViewSet
from .delivery.api.views.delivery_views import DeliveryViewSet
from .notifications.api.views.notification_views import NotificationViewSet
from .ordering.api.views.order_views import OrderViewSet

# Create the main router
router = DefaultRouter()
router.register(r"books", BookViewSet, basename="book")
router.register(r"cart", CartViewSet, basename="cart")
router.register(r"orders", OrderViewSet, basename="order")
router.register(r"notifications", NotificationViewSet, basename="notification")
router.register(r"delivery", DeliveryViewSet, basename="delivery")

app_name = "marketplace"

urlpatterns = [
    path("", include(router.urls)),
    # Prometheus metrics endpoint
    path("metrics/", prometheus_metrics.prometheus_metrics, name="metrics"),
]
