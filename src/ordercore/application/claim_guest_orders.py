"""Application service: Claim Guest Orders use case.

After a guest signs up, every order they placed as a guest with the same
email moves to their new account, so it shows up in their order history
and can be cancelled like any other.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

import structlog

from ordercore.domain.exceptions import EntityNotFoundError
from ordercore.domain.repository.unit_of_work import UnitOfWork

logger = structlog.get_logger(__name__)


class ClaimGuestOrdersHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self, user_id: int) -> int:
        """Claim the guest orders matching the account's email; return how many."""
        with self._uow_factory() as uow:
            customer = uow.customers.get_by_id(user_id)
            if customer is None:
                raise EntityNotFoundError("User not found")
            claimed = uow.orders.claim_guest_orders(
                customer.email, user_id, datetime.now(timezone.utc)
            )
            uow.commit()

        if claimed:
            logger.info("Guest orders claimed", user_id=user_id, claimed=claimed)
        return claimed
