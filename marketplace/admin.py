from django.contrib import admin
from django.utils.html import format_html

from .models import Book, Cart, CartItem, Notification, Order, OrderAuditLog, OrderItem


STATUS_COLORS = {
    "pending": "#6c757d",
    "paid": "#0d6efd",
    "committed": "#6610f2",
    "collected": "#fd7e14",
    "completed": "#198754",
    "cancelled": "#dc3545",
    "refunded": "#20c997",
}


@admin.register(Book)
class BookAdmin(admin.ModelAdmin):
    list_display = ("title", "author", "seller", "price", "condition", "category", "province", "status", "created_at")
    list_filter = ("status", "condition", "category", "province")
    search_fields = ("title", "author", "isbn", "seller__email")
    readonly_fields = ("id", "created_at", "updated_at")
    raw_id_fields = ("seller",)


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0
    raw_id_fields = ("book",)


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ("user", "item_count", "updated_at")
    search_fields = ("user__email",)
    inlines = [CartItemInline]

    def item_count(self, obj):
        return obj.items.count()

    item_count.short_description = "Items"


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ("book", "title", "author", "isbn", "condition", "price")
    can_delete = False


class OrderAuditLogInline(admin.TabularInline):
    model = OrderAuditLog
    extra = 0
    readonly_fields = ("created_at", "actor", "action", "old_status", "new_status", "details")
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "id_short",
        "buyer",
        "seller",
        "status_badge",
        "payment_status",
        "payout_status",
        "total_amount",
        "commit_deadline",
        "created_at",
    )
    list_filter = ("status", "payment_status", "payout_status", "refund_status", "courier")
    search_fields = ("id", "buyer__email", "seller__email", "payment_reference", "tracking_number")
    readonly_fields = ("id", "created_at", "updated_at", "payment_reference", "paid_at")
    raw_id_fields = ("buyer", "seller", "cancelled_by")
    inlines = [OrderItemInline, OrderAuditLogInline]

    fieldsets = (
        ("Parties", {"fields": ("id", "buyer", "seller")}),
        ("Status", {"fields": ("status", "payment_status", "payout_status", "refund_status")}),
        ("Amounts", {"fields": ("subtotal", "delivery_fee", "platform_fee", "seller_amount", "total_amount")}),
        (
            "Delivery",
            {
                "fields": (
                    "shipping_address",
                    "pickup_address",
                    "courier",
                    "service_level",
                    "tracking_number",
                    "waybill_url",
                    "shipment_status",
                )
            },
        ),
        ("Payment", {"fields": ("payment_reference", "paid_at")}),
        (
            "Commit workflow",
            {"fields": ("commit_deadline", "committed_at", "collection_deadline", "collected_at", "completed_at")},
        ),
        (
            "Cancellation",
            {
                "fields": (
                    "cancelled_at",
                    "cancelled_by",
                    "cancellation_reason",
                    "refund_amount",
                    "refund_reference",
                    "refunded_at",
                )
            },
        ),
        ("Timestamps", {"fields": ("created_at", "updated_at")}),
    )

    def id_short(self, obj):
        return str(obj.id)[:8]

    id_short.short_description = "ID"

    def status_badge(self, obj):
        return format_html(
            '<span style="color: white; background-color: {}; padding: 2px 6px; border-radius: 3px;">{}</span>',
            STATUS_COLORS.get(obj.status, "#6c757d"),
            obj.get_status_display(),
        )

    status_badge.short_description = "Status"


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("user", "type", "title", "priority", "read", "created_at")
    list_filter = ("type", "priority", "read")
    search_fields = ("user__email", "title", "message")
    raw_id_fields = ("user", "order")
