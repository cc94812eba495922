from .coupon import CouponSerializer, CouponValidateInputSerializer

__all__ = [
    "CouponSerializer",
    "CouponValidateInputSerializer",
]
