"""
Order status state machine.

Every status change on an order goes through :func:`apply` with one of the
named transitions below. Route handlers never assign ``order.status`` directly.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, FrozenSet

from core.errors import PreconditionFailed
from models.order import Order
from models.user import ROLE_CUSTOMER, ROLE_VENDOR, ROLE_DELIVERY


PENDING = "pending"
AWAITING_DETAILS = "awaiting_details"
PERSONALIZING = "personalizing"
MOCKUP_READY = "mockup_ready"
APPROVED = "approved"
CRAFTING = "crafting"
READY_FOR_PICKUP = "ready_for_pickup"
OUT_FOR_DELIVERY = "out_for_delivery"
DELIVERED = "delivered"
CANCELLED = "cancelled"

STATUSES = (
    PENDING,
    AWAITING_DETAILS,
    PERSONALIZING,
    MOCKUP_READY,
    APPROVED,
    CRAFTING,
    READY_FOR_PICKUP,
    OUT_FOR_DELIVERY,
    DELIVERED,
    CANCELLED,
)
INITIAL = PENDING
TERMINAL = frozenset({DELIVERED, CANCELLED})


@dataclass(frozen=True)
class Transition:
    name: str
    sources: FrozenSet[str]
    target: str
    actors: FrozenSet[str]
    # Message used when the order is not in one of ``sources``
    error: str = "Order already processed"


def _t(name, sources, target, actors, error="Order already processed") -> Transition:
    return Transition(name, frozenset(sources), target, frozenset(actors), error)


ACCEPT = _t("accept", {PENDING}, PERSONALIZING, {ROLE_VENDOR})
REQUEST_DETAILS = _t(
    "request_details", {PENDING, PERSONALIZING}, AWAITING_DETAILS, {ROLE_VENDOR},
    "Details can only be requested before mockups are uploaded",
)
CUSTOMIZE = _t(
    "customize", {AWAITING_DETAILS, PERSONALIZING}, PERSONALIZING, {ROLE_CUSTOMER},
    "Order can no longer be customized",
)
UPLOAD_MOCKUP = _t(
    "upload_mockup", {PERSONALIZING, MOCKUP_READY}, MOCKUP_READY, {ROLE_VENDOR},
    "Order must be accepted before uploading mockups",
)
APPROVE_MOCKUP = _t("approve_mockup", {MOCKUP_READY}, APPROVED, {ROLE_CUSTOMER}, "No mockups awaiting approval")
REQUEST_REVISION = _t(
    "request_revision", {MOCKUP_READY}, PERSONALIZING, {ROLE_CUSTOMER}, "No mockups awaiting approval"
)
START_CRAFTING = _t(
    "start_crafting", {APPROVED}, CRAFTING, {ROLE_VENDOR}, "Order must be approved before crafting"
)
MARK_READY = _t(
    "mark_ready", {APPROVED, CRAFTING}, READY_FOR_PICKUP, {ROLE_VENDOR},
    "Order must be approved before marking as ready",
)
DISPATCH = _t(
    "dispatch", {READY_FOR_PICKUP}, OUT_FOR_DELIVERY, {ROLE_DELIVERY}, "Order is not ready for pickup"
)
MARK_DELIVERED = _t(
    "mark_delivered", {READY_FOR_PICKUP, OUT_FOR_DELIVERY}, DELIVERED, {ROLE_DELIVERY},
    "Order is not out for delivery",
)
CANCEL = _t(
    "cancel", set(STATUSES) - TERMINAL, CANCELLED, {ROLE_CUSTOMER}, "Order can no longer be cancelled"
)

TRANSITIONS: Dict[str, Transition] = {
    t.name: t
    for t in (
        ACCEPT,
        REQUEST_DETAILS,
        CUSTOMIZE,
        UPLOAD_MOCKUP,
        APPROVE_MOCKUP,
        REQUEST_REVISION,
        START_CRAFTING,
        MARK_READY,
        DISPATCH,
        MARK_DELIVERED,
        CANCEL,
    )
}


def can_transition(current: str, requested: str) -> bool:
    """True when some transition moves an order from ``current`` to ``requested``."""
    return any(current in t.sources and t.target == requested for t in TRANSITIONS.values())


def apply(order: Order, transition: Transition) -> Order:
    """
    Move ``order`` along ``transition``.

    Raises PreconditionFailed and leaves the order untouched when its current
    status is not one of the transition's sources. Does not commit.
    """
    if order.status not in transition.sources:
        raise PreconditionFailed(
            transition.error,
            details={"status": order.status, "transition": transition.name},
        )
    order.status = transition.target
    order.updated_at = datetime.utcnow()
    return order
