from django.contrib import admin
from django.utils.html import format_html

from .models import BankingDetails, Payment, Refund, SellerPayout, WebhookLog


STATUS_COLORS = {
    "pending": "#6c757d",
    "processing": "#0d6efd",
    "active": "#198754",
    "completed": "#198754",
    "processed": "#198754",
    "failed": "#dc3545",
    "abandoned": "#adb5bd",
    "refunded": "#20c997",
    "reversed": "#fd7e14",
}


def status_badge(obj):
    return format_html(
        '<span style="color: white; background-color: {}; padding: 2px 6px; border-radius: 3px;">{}</span>',
        STATUS_COLORS.get(obj.status, "#6c757d"),
        obj.get_status_display(),
    )


status_badge.short_description = "Status"


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("reference", "order_short", "buyer", "amount", "currency", status_badge, "channel", "paid_at")
    list_filter = ("status", "currency", "channel")
    search_fields = ("reference", "order__id", "buyer__email")
    readonly_fields = ("id", "gateway_response", "created_at", "updated_at", "verified_at")
    raw_id_fields = ("order", "buyer")

    def order_short(self, obj):
        return str(obj.order_id)[:8]

    order_short.short_description = "Order"


@admin.register(SellerPayout)
class SellerPayoutAdmin(admin.ModelAdmin):
    list_display = ("reference", "seller", "gross_amount", "platform_fee", "net_amount", status_badge, "retry_count")
    list_filter = ("status",)
    search_fields = ("reference", "transfer_code", "seller__email", "order__id")
    readonly_fields = ("id", "created_at", "updated_at", "completed_at")
    raw_id_fields = ("order", "seller")


@admin.register(Refund)
class RefundAdmin(admin.ModelAdmin):
    list_display = ("order", "amount", "reason", status_badge, "attempts", "requires_manual_processing", "created_at")
    list_filter = ("status", "requires_manual_processing")
    search_fields = ("order__id", "payment__reference", "gateway_refund_id")
    readonly_fields = ("id", "created_at", "updated_at", "processed_at")
    raw_id_fields = ("order", "payment", "initiated_by")


@admin.register(BankingDetails)
class BankingDetailsAdmin(admin.ModelAdmin):
    list_display = ("seller", "bank_name", "masked_account_number", "account_holder", status_badge, "updated_at")
    list_filter = ("status", "bank_name")
    search_fields = ("seller__email", "account_holder", "business_name", "subaccount_code")
    exclude = ("account_number",)
    readonly_fields = ("id", "masked_account_number", "subaccount_code", "recipient_code", "created_at", "updated_at")
    raw_id_fields = ("seller",)


@admin.register(WebhookLog)
class WebhookLogAdmin(admin.ModelAdmin):
    list_display = ("event_type", "reference", "processed", "received_at", "processed_at")
    list_filter = ("event_type", "processed")
    search_fields = ("reference",)
    readonly_fields = ("payload", "received_at", "processed_at", "processing_error")
