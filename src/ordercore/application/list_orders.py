"""Application service: List Orders use case (query).

Customers list their own orders; admins list everyone's.  Both support
the same filters and paging.
"""

from __future__ import annotations

from typing import Callable

from ordercore.application.dto import OrderPageDTO, order_to_summary, pagination
from ordercore.domain.exceptions import ValidationError
from ordercore.domain.repository.order_repository import OrderSearch
from ordercore.domain.repository.unit_of_work import UnitOfWork

MAX_PAGE_SIZE = 100


class ListOrdersHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def list_for_user(self, user_id: int, criteria: OrderSearch) -> OrderPageDTO:
        return self.handle(criteria, user_id=user_id)

    def list_all(self, criteria: OrderSearch) -> OrderPageDTO:
        return self.handle(criteria)

    def handle(self, criteria: OrderSearch, user_id: int | None = None) -> OrderPageDTO:
        if criteria.page < 1:
            raise ValidationError("Page must be 1 or greater")
        if not 1 <= criteria.limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")
        if (
            criteria.start_date is not None
            and criteria.end_date is not None
            and criteria.start_date > criteria.end_date
        ):
            raise ValidationError("Start date must not be after end date")

        with self._uow_factory() as uow:
            orders, total = uow.orders.search(criteria, user_id=user_id)
            summaries = [
                order_to_summary(order, uow.orders.count_items(order.id))
                for order in orders
            ]

        return OrderPageDTO(
            orders=summaries,
            pagination=pagination(criteria.page, criteria.limit, total),
        )
