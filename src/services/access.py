"""
Access control gate: one policy table for every catalog, order and profile
operation, plus the ownership rules that depend on the resource.

    authorize(actor, Operation.VIEW_ORDER, order)   # raises or returns None
    is_allowed(actor, Operation.MANAGE_PRODUCTS)    # bool
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional

from db.models import Order, OrderStatus, Role, User
from services.errors import Forbidden, Unauthenticated


@dataclass(frozen=True)
class Actor:
    """The authenticated caller, as yielded by the authentication provider."""

    uid: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMINISTRATOR

    @classmethod
    def of(cls, user: User) -> "Actor":
        return cls(uid=user.uid, role=user.role)


class Operation(str, Enum):
    BROWSE_PRODUCTS = "browse_products"
    MANAGE_PRODUCTS = "manage_products"
    LIST_ALL_ORDERS = "list_all_orders"
    LIST_OWN_ORDERS = "list_own_orders"
    VIEW_ORDER = "view_order"
    CREATE_ORDER = "create_order"
    SET_ORDER_STATUS = "set_order_status"
    VIEW_PROFILE = "view_profile"
    UPDATE_PROFILE = "update_profile"


_BOTH = frozenset({Role.CUSTOMER, Role.ADMINISTRATOR})
_ADMIN = frozenset({Role.ADMINISTRATOR})

POLICY: Dict[Operation, FrozenSet[Role]] = {
    Operation.BROWSE_PRODUCTS: _BOTH,
    Operation.MANAGE_PRODUCTS: _ADMIN,
    Operation.LIST_ALL_ORDERS: _ADMIN,
    Operation.LIST_OWN_ORDERS: _BOTH,
    Operation.VIEW_ORDER: _BOTH,
    Operation.CREATE_ORDER: _BOTH,
    Operation.SET_ORDER_STATUS: _BOTH,
    Operation.VIEW_PROFILE: _BOTH,
    Operation.UPDATE_PROFILE: _BOTH,
}

# operations an anonymous caller may perform
PUBLIC: FrozenSet[Operation] = frozenset({Operation.BROWSE_PRODUCTS})

# the one status change a customer may make on their own order; setting the
# order's current status again is always allowed (a no-op)
CUSTOMER_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED}),
}


def authorize(
    actor: Optional[Actor],
    operation: Operation,
    resource: Optional[Order] = None,
    target_status: Optional[OrderStatus] = None,
) -> None:
    """Raise Unauthenticated/Forbidden unless ``actor`` may perform ``operation``.

    ``resource`` is the order being read or changed (ownership checks) and
    ``target_status`` the requested status for SET_ORDER_STATUS.
    """
    if actor is None:
        if operation in PUBLIC:
            return
        raise Unauthenticated(operation=operation.value)

    if actor.role not in POLICY[operation]:
        raise Forbidden(operation=operation.value, role=actor.role.value)

    if actor.is_admin:
        return

    if operation == Operation.VIEW_ORDER:
        if resource is None or resource.uid != actor.uid:
            raise Forbidden(operation=operation.value)
    elif operation == Operation.SET_ORDER_STATUS:
        if resource is None or resource.uid != actor.uid:
            raise Forbidden(operation=operation.value)
        if target_status == resource.status:
            return
        allowed = CUSTOMER_TRANSITIONS.get(resource.status, frozenset())
        if target_status not in allowed:
            raise Forbidden(
                operation=operation.value,
                current=resource.status.value,
                requested=getattr(target_status, "value", target_status),
            )


def is_allowed(
    actor: Optional[Actor],
    operation: Operation,
    resource: Optional[Order] = None,
    target_status: Optional[OrderStatus] = None,
) -> bool:
    try:
        authorize(actor, operation, resource, target_status)
    except (Unauthenticated, Forbidden):
        return False
    return True


def storefront_redirect(actor: Optional[Actor]) -> Optional[str]:
    """Where a client should send this actor instead of the storefront checkout.

    Administrators are steered to the back office; this is a UI policy, the
    CREATE_ORDER permission above still lets them check out.
    """
    if actor is not None and actor.is_admin:
        return "admin"
    return None
