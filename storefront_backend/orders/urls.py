"""
PATH: orders/urls.py

ORDER URLS (mounted at /api/orders/)

Router provides list/create, retrieve and the @action routes
(all/, <id>/status/, <id>/cancel/, <id>/exchange/, <id>/exchange/approve/,
<id>/update/).
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from orders.views.orders import OrderViewSet

router = DefaultRouter()
router.register(r"", OrderViewSet, basename="orders")

urlpatterns = [
    path("", include(router.urls)),
]
