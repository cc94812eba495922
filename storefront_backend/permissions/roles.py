# permissions/roles.py

from __future__ import annotations

from typing import Optional

from rest_framework.permissions import BasePermission


# =========================================================
# ROLE CONSTANTS
# =========================================================
ROLE_ADMIN = "admin"
ROLE_CUSTOMER = "customer"

ALL_ROLES = {
    ROLE_ADMIN,
    ROLE_CUSTOMER,
}


# =========================================================
# CAPABILITIES (THE REAL PERMISSION LANGUAGE)
# =========================================================
# Views should protect capabilities, not raw roles.
CAP_ORDERS_PLACE = "orders.place"
CAP_ORDERS_VIEW_ALL = "orders.view_all"
CAP_ORDERS_MANAGE = "orders.manage"       # status changes, exchange review, admin edits

CAP_COUPONS_VALIDATE = "coupons.validate"
CAP_COUPONS_MANAGE = "coupons.manage"

CAP_CART_USE = "cart.use"

ALL_CAPABILITIES = {
    CAP_ORDERS_PLACE,
    CAP_ORDERS_VIEW_ALL,
    CAP_ORDERS_MANAGE,
    CAP_COUPONS_VALIDATE,
    CAP_COUPONS_MANAGE,
    CAP_CART_USE,
}


# =========================================================
# ROLE → CAPABILITY MAP (DEFAULT)
# =========================================================
ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_ADMIN: {
        # admin can do everything
        *ALL_CAPABILITIES,
    },
    ROLE_CUSTOMER: {
        CAP_ORDERS_PLACE,
        CAP_COUPONS_VALIDATE,
        CAP_CART_USE,
    },
}


# =========================================================
# Helpers
# =========================================================
def get_user_role(user) -> Optional[str]:
    return getattr(user, "role", None)


def is_admin(user) -> bool:
    if not user or not getattr(user, "is_authenticated", False):
        return False
    return get_user_role(user) == ROLE_ADMIN


def capabilities_for(user) -> set[str]:
    return set(ROLE_CAPABILITIES.get(get_user_role(user), set()))


def is_owner_or_admin(user, obj) -> bool:
    """
    Ownership rule for orders (and anything else carrying user_id):
    only the owning user or an admin may read/mutate it.
    """
    if not user or not getattr(user, "is_authenticated", False):
        return False
    if is_admin(user):
        return True
    return getattr(obj, "user_id", None) == getattr(user, "id", None)


# =========================================================
# Base Role Permission (Internal Use)
# =========================================================
class BaseRolePermission(BasePermission):
    """
    Base permission for role-based access control.

    Subclasses must define:
    - allowed_roles (set)
    """

    allowed_roles: set[str] = set()

    def has_permission(self, request, view):
        user = request.user

        if not user or not user.is_authenticated:
            return False

        user_role = get_user_role(user)
        if not user_role:
            return False

        return user_role in self.allowed_roles


# =========================================================
# Capability Permissions
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability.

    Usage:
        permission_classes = [IsAuthenticated, HasCapability]
        view.required_capability = CAP_ORDERS_MANAGE
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_capability", None)
        if not required:
            # If not set, deny-by-default to avoid accidental open endpoints
            return False

        return required in capabilities_for(user)


class IsOwnerOrAdmin(BasePermission):
    """
    Object-level ownership check (owner or admin).
    """

    def has_object_permission(self, request, view, obj):
        return is_owner_or_admin(request.user, obj)


# =========================================================
# Role Permissions
# =========================================================
class IsAdmin(BaseRolePermission):
    allowed_roles = {ROLE_ADMIN}


class IsCustomer(BaseRolePermission):
    allowed_roles = {ROLE_CUSTOMER}
