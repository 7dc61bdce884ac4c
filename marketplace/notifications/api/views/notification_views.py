from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from infrastructure.container import container
from marketplace.api.errors import error_response, int_param
from marketplace.api.serializers import CountResponseSerializer, ErrorResponseSerializer, PaginatedResponseSerializer
from marketplace.notifications.api.serializers.notification_serializers import NotificationSerializer


class NotificationViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]

    def get_service(self):
        return container.notification_service()

    @extend_schema(
        operation_id="notifications_list",
        summary="List my notifications",
        parameters=[
            OpenApiParameter(name="unread", type=bool, description="Only unread notifications"),
            OpenApiParameter(name="page", type=int),
            OpenApiParameter(name="page_size", type=int),
        ],
        responses={200: OpenApiResponse(response=PaginatedResponseSerializer)},
        tags=["Marketplace - Notifications"],
    )
    def list(self, request):
        unread_only = request.query_params.get("unread", "").lower() in ("1", "true", "yes")
        result = self.get_service().list_notifications(
            request.user,
            unread_only=unread_only,
            page=int_param(request, "page", 1, maximum=10000),
            page_size=int_param(request, "page_size", 20),
        )
        if not result.ok:
            return error_response(result)

        data = dict(result.value)
        data["results"] = NotificationSerializer(result.value["results"], many=True).data
        return Response(data)

    @extend_schema(
        operation_id="notifications_mark_read",
        summary="Mark a notification read",
        request=None,
        responses={
            200: OpenApiResponse(response=NotificationSerializer),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Notification not found"),
        },
        tags=["Marketplace - Notifications"],
    )
    @action(detail=True, methods=["post"])
    def read(self, request, pk=None):
        result = self.get_service().mark_read(request.user, pk)
        if not result.ok:
            return error_response(result)
        return Response(NotificationSerializer(result.value).data)

    @extend_schema(
        operation_id="notifications_mark_all_read",
        summary="Mark all notifications read",
        request=None,
        responses={200: OpenApiResponse(response=CountResponseSerializer)},
        tags=["Marketplace - Notifications"],
    )
    @action(detail=False, methods=["post"])
    def read_all(self, request):
        return Response({"count": self.get_service().mark_all_read(request.user).value})

    @extend_schema(
        operation_id="notifications_unread_count",
        summary="Unread notification count",
        responses={200: OpenApiResponse(response=CountResponseSerializer)},
        tags=["Marketplace - Notifications"],
    )
    @action(detail=False, methods=["get"])
    def unread_count(self, request):
        return Response({"count": self.get_service().unread_count(request.user).value})
