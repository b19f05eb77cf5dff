"""
Order Status Machine

Governs which status changes an existing order may undergo, and who may
make them.

    PENDING ──► PROCESSING ──► COMPLETED
       │             │
       └─────────────┴──────► CANCELLED

COMPLETED and CANCELLED are terminal: nothing leaves them, whatever the
policy. How broad the moves between open states are is a policy choice:

    - permissive: any open order may jump to PROCESSING, COMPLETED or
      CANCELLED (administrative override, the default)
    - strict: PENDING -> PROCESSING | CANCELLED,
      PROCESSING -> COMPLETED | CANCELLED

Checks run in a fixed order so that nothing is read for an unauthorized
caller and nothing is written for an invalid request:

    role -> status value -> order lookup -> transition -> write
"""

import logging
from typing import Mapping, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import TransitionMode, get_settings
from storefront.models import TERMINAL_STATUSES, Order, OrderStatus, Role
from storefront.services.ordering.errors import InvalidTransition, PersistenceFailure
from storefront.services.ordering.queries import load_order, parse_status, require_admin

logger = logging.getLogger(__name__)


class TransitionPolicy:
    """
    Allowed status moves, keyed by current status.

    Terminal statuses never get outgoing moves, even if ``allowed`` lists some.
    """

    def __init__(self, name: str, allowed: Mapping[OrderStatus, frozenset]):
        self.name = name
        self.allowed = {
            status: frozenset(targets)
            for status, targets in allowed.items()
            if status not in TERMINAL_STATUSES
        }

    def can_transition(self, current: OrderStatus, requested: OrderStatus) -> bool:
        if current in TERMINAL_STATUSES:
            return False
        return requested in self.allowed.get(current, frozenset())

    def targets(self, current: OrderStatus) -> frozenset:
        if current in TERMINAL_STATUSES:
            return frozenset()
        return self.allowed.get(current, frozenset())

    def __repr__(self):
        return f"<TransitionPolicy {self.name}>"


_ADVANCE = frozenset({OrderStatus.PROCESSING, OrderStatus.COMPLETED, OrderStatus.CANCELLED})

PERMISSIVE_POLICY = TransitionPolicy(
    "permissive",
    {
        OrderStatus.PENDING: _ADVANCE,
        OrderStatus.PROCESSING: _ADVANCE,
    },
)

STRICT_POLICY = TransitionPolicy(
    "strict",
    {
        OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
        OrderStatus.PROCESSING: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    },
)

POLICIES = {
    TransitionMode.PERMISSIVE: PERMISSIVE_POLICY,
    TransitionMode.STRICT: STRICT_POLICY,
}


def get_transition_policy() -> TransitionPolicy:
    """Policy selected by ``status_transition_mode``."""
    return POLICIES[get_settings().status_transition_mode]


async def set_status(
    db: AsyncSession,
    order_id: int,
    requested_status: Union[OrderStatus, str],
    caller_role: Role,
    policy: Optional[TransitionPolicy] = None,
) -> Order:
    """
    Move an order to ``requested_status``.

    Args:
        db: Session owned by the caller; committed here on success
        order_id: Order to update
        requested_status: Target status (enum member or its name)
        caller_role: Role resolved by the access gate
        policy: Transition policy (defaults to the configured one)

    Returns:
        The updated order with items and owner loaded

    Raises:
        Forbidden: Caller is not an administrator
        InvalidStatus: Unknown status value
        OrderNotFound: No such order
        InvalidTransition: Current status is terminal, or the policy forbids the move
        PersistenceFailure: The store failed; the old status is kept
    """
    require_admin(caller_role, "update orders")
    target = parse_status(requested_status)
    policy = policy or get_transition_policy()

    order = await load_order(db, order_id)
    current = order.status

    if not policy.can_transition(current, target):
        logger.warning(
            f"Rejected transition for order #{order_id}: "
            f"{current.value} -> {target.value} ({policy.name})"
        )
        raise InvalidTransition(order_id, current, target)

    try:
        order.status = target
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception(f"Failed to update status of order #{order_id}: {e}")
        raise PersistenceFailure("status update", e) from e

    logger.info(f"Order #{order_id} status: {current.value} -> {target.value}")

    return await load_order(db, order_id)
