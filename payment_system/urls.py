from django.urls import path

from payment_system.api.views import admin_views, payment_views, payout_views


app_name = "payment_system"

urlpatterns = [
    # Buyer payments
    path("initialize/", payment_views.initialize_payment, name="initialize_payment"),
    path("verify/<str:reference>/", payment_views.verify_payment, name="verify_payment"),
    path("webhook/", payment_views.paystack_webhook, name="paystack_webhook"),
    # Seller banking and payouts
    path("banking/", payout_views.banking_details, name="banking_details"),
    path("payouts/", payout_views.my_payouts, name="my_payouts"),
    # Admin
    path("admin/payouts/", admin_views.admin_list_payouts, name="admin_list_payouts"),
    path("admin/refunds/", admin_views.admin_list_refunds, name="admin_list_refunds"),
    path("admin/orders/<uuid:order_id>/refund/", admin_views.admin_refund_order, name="admin_refund_order"),
]
