"""
PATH: payments/urls.py

PAYMENT URLS (mounted at /api/payments/)
"""

from django.urls import path

from payments.views.api import CreateGatewayOrderView, VerifyPaymentView

app_name = "payments"

urlpatterns = [
    path("create-order/", CreateGatewayOrderView.as_view(), name="create-order"),
    path("verify-payment/", VerifyPaymentView.as_view(), name="verify-payment"),
]
