"""
PATH: coupons/urls.py

COUPON URLS (mounted at /api/coupons/)

- POST /api/coupons/validate/   (router @action, detail=False)
- CRUD /api/coupons/ , /api/coupons/<uuid>/
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from coupons.views.coupons import CouponViewSet

router = DefaultRouter()
router.register(r"", CouponViewSet, basename="coupons")

urlpatterns = [
    path("", include(router.urls)),
]
