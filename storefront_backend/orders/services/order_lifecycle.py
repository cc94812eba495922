"""
ORDER LIFECYCLE DOMAIN RULES

This module defines the ONLY allowed lifecycle transitions
for Order entities.

DESIGN PRINCIPLES:
- No database writes
- No stock mutation
- No side effects
- Single source of truth: (from_status, event) -> allowed targets

Fulfilment is forward-only and may skip states
(pending -> shipped is allowed, shipped -> processing is not).
"""

from __future__ import annotations

from orders.models import Order
from orders.services.exceptions import (
    OrderValidationError,
    StateConflictError,
    UnauthorizedError,
)

# ============================================================
# EVENTS + ACTORS
# ============================================================

EVENT_ADVANCE = "advance"
EVENT_CANCEL = "cancel"
EVENT_REQUEST_EXCHANGE = "request_exchange"
EVENT_APPROVE_EXCHANGE = "approve_exchange"
EVENT_REJECT_EXCHANGE = "reject_exchange"
EVENT_COMPLETE_EXCHANGE = "complete_exchange"

ACTOR_ADMIN = "admin"
ACTOR_OWNER = "owner"

EVENT_ACTORS = {
    EVENT_ADVANCE: {ACTOR_ADMIN},
    EVENT_CANCEL: {ACTOR_OWNER, ACTOR_ADMIN},
    EVENT_REQUEST_EXCHANGE: {ACTOR_OWNER},
    EVENT_APPROVE_EXCHANGE: {ACTOR_ADMIN},
    EVENT_REJECT_EXCHANGE: {ACTOR_ADMIN},
    EVENT_COMPLETE_EXCHANGE: {ACTOR_ADMIN},
}


# ============================================================
# STATE DEFINITIONS
# ============================================================

ALL_STATES = {value for value, _ in Order.STATUS_CHOICES}

TERMINAL_STATES = {
    Order.STATUS_CANCELLED,
    Order.STATUS_EXCHANGED,
}

FULFILMENT_PATH = (
    Order.STATUS_PENDING,
    Order.STATUS_PROCESSING,
    Order.STATUS_SHIPPED,
    Order.STATUS_DELIVERED,
)


def _forward_of(status: str) -> tuple[str, ...]:
    idx = FULFILMENT_PATH.index(status)
    return FULFILMENT_PATH[idx + 1:]


TRANSITIONS: dict[tuple[str, str], tuple[str, ...]] = {
    (Order.STATUS_PENDING, EVENT_ADVANCE): _forward_of(Order.STATUS_PENDING),
    (Order.STATUS_PROCESSING, EVENT_ADVANCE): _forward_of(Order.STATUS_PROCESSING),
    (Order.STATUS_SHIPPED, EVENT_ADVANCE): _forward_of(Order.STATUS_SHIPPED),

    (Order.STATUS_PENDING, EVENT_CANCEL): (Order.STATUS_CANCELLED,),
    (Order.STATUS_PROCESSING, EVENT_CANCEL): (Order.STATUS_CANCELLED,),

    (Order.STATUS_DELIVERED, EVENT_REQUEST_EXCHANGE): (Order.STATUS_EXCHANGE_REQUESTED,),
    (Order.STATUS_EXCHANGE_REQUESTED, EVENT_APPROVE_EXCHANGE): (Order.STATUS_EXCHANGE_APPROVED,),
    (Order.STATUS_EXCHANGE_REQUESTED, EVENT_REJECT_EXCHANGE): (Order.STATUS_DELIVERED,),
    (Order.STATUS_EXCHANGE_APPROVED, EVENT_COMPLETE_EXCHANGE): (Order.STATUS_EXCHANGED,),
}


def _conflict_message(event: str, from_status: str) -> str:
    if event == EVENT_CANCEL:
        if from_status == Order.STATUS_CANCELLED:
            return "Order is already cancelled"
        if from_status in (Order.STATUS_SHIPPED, Order.STATUS_DELIVERED):
            return (
                "Cannot cancel order after it has been shipped. "
                "Please use exchange option if delivered."
            )
        return f"Cannot cancel an order in status '{from_status}'"

    if event == EVENT_REQUEST_EXCHANGE:
        return "Can only exchange delivered orders"

    if event in (EVENT_APPROVE_EXCHANGE, EVENT_REJECT_EXCHANGE):
        return "No exchange request found for this order"

    if event == EVENT_COMPLETE_EXCHANGE:
        return "No approved exchange found for this order"

    return f"Order cannot move forward from '{from_status}'"


# ============================================================
# DOMAIN RULES
# ============================================================

def actors_for(*, user, order) -> set[str]:
    """
    Roles the caller plays for this order (may be both owner and admin).
    """
    actors = set()
    if user is None or not getattr(user, "is_authenticated", False):
        return actors

    if getattr(user, "role", None) == ACTOR_ADMIN:
        actors.add(ACTOR_ADMIN)
    if order.user_id == getattr(user, "pk", None):
        actors.add(ACTOR_OWNER)
    return actors


def can_transition(*, from_status: str, event: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False
    return to_status in TRANSITIONS.get((from_status, event), ())


def resolve_transition(*, from_status: str, event: str, actors: set[str], target: str | None = None) -> str:
    """
    Central transition check. Returns the resulting status or raises:
    - OrderValidationError: unknown event / unknown target state
    - UnauthorizedError:    caller does not play a role allowed for the event
    - StateConflictError:   event/target not allowed from the current status
    """
    allowed_actors = EVENT_ACTORS.get(event)
    if allowed_actors is None:
        raise OrderValidationError(f"Unknown order event: {event}")

    if target is not None and target not in ALL_STATES:
        raise OrderValidationError(f"Unknown order status: {target}")

    if not (set(actors) & allowed_actors):
        raise UnauthorizedError()

    targets = TRANSITIONS.get((from_status, event), ())
    if not targets:
        raise StateConflictError(_conflict_message(event, from_status))

    if target is None:
        return targets[0]

    if target not in targets:
        raise StateConflictError(
            f"Order cannot transition from '{from_status}' to '{target}'"
        )
    return target


def event_for_target(*, from_status: str, target: str) -> str:
    """
    Map an admin status change request onto an FSM event.
    Only fulfilment moves and exchange completion are allowed this way;
    cancel / exchange review have dedicated operations.
    """
    if target not in ALL_STATES:
        raise OrderValidationError(f"Unknown order status: {target}")

    if target == Order.STATUS_EXCHANGED:
        return EVENT_COMPLETE_EXCHANGE

    if target in FULFILMENT_PATH:
        return EVENT_ADVANCE

    raise StateConflictError(
        f"Status '{target}' cannot be set directly; use the dedicated order action"
    )
