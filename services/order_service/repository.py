from collections import defaultdict
from decimal import Decimal
from typing import List, Optional, Sequence

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .errors import NotFoundAfterCommit, PersistenceError
from .models import Order, OrderItem

logger = structlog.get_logger(__name__)

NEWEST_FIRST = (Order.order_date.desc(), Order.id.desc())


class OrderRepository:
    @staticmethod
    async def create_with_items(
        db: AsyncSession, user_id: int, total_amount: Decimal, product_ids: Sequence[int]
    ) -> Order:
        """
        Insert the order and one item row per product id in a single
        transaction, then re-read what was committed. Any failure before the
        commit rolls back both tables.
        """
        try:
            async with db.begin():
                order = Order(user_id=user_id, total_amount=total_amount)
                db.add(order)
                await db.flush()

                db.add_all(OrderItem(order_id=order.id, product_id=pid) for pid in product_ids)
                await db.flush()
        except SQLAlchemyError as e:
            logger.error("order_insert_failed", user_id=user_id, error=str(e))
            raise PersistenceError("Failed to create order") from e

        order_id = order.id
        logger.info("order_committed", order_id=order_id, item_count=len(product_ids))

        try:
            created = await OrderRepository.get_order_with_items(db, order_id)
        except SQLAlchemyError as e:
            logger.error("order_reread_failed", order_id=order_id, error=str(e))
            raise NotFoundAfterCommit("Failed to fetch created order details") from e
        if created is None:
            raise NotFoundAfterCommit("Failed to fetch created order details")
        return created

    @staticmethod
    async def get_order_with_items(db: AsyncSession, order_id: int) -> Optional[Order]:
        result = await db.execute(
            select(Order)
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        order = result.scalars().first()
        if order is None:
            return None

        items = await db.execute(
            select(OrderItem).where(OrderItem.order_id == order_id).order_by(OrderItem.id)
        )
        order.order_items = list(items.scalars().all())
        return order

    @staticmethod
    async def list_all(db: AsyncSession) -> List[Order]:
        try:
            result = await db.execute(select(Order).order_by(*NEWEST_FIRST))
            orders = list(result.scalars().all())
            if not orders:
                return []
            items = await OrderRepository._fetch_items(db, [o.id for o in orders])
        except SQLAlchemyError as e:
            logger.error("order_list_failed", error=str(e))
            raise PersistenceError("Failed to query all orders") from e

        return _attach_items(orders, items)

    @staticmethod
    async def list_by_user(db: AsyncSession, user_id: int) -> List[Order]:
        try:
            result = await db.execute(
                select(Order).where(Order.user_id == user_id).order_by(*NEWEST_FIRST)
            )
            orders = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("user_order_list_failed", user_id=user_id, error=str(e))
            raise PersistenceError("Failed to process user orders") from e

        if not orders:
            return []

        order_ids = [o.id for o in orders]
        try:
            items = await OrderRepository._fetch_items(db, order_ids)
        except SQLAlchemyError as e:
            # Orders are still useful without their items
            logger.warning(
                "order_items_unavailable",
                user_id=user_id,
                order_ids=order_ids,
                error=str(e),
            )
            items = []

        return _attach_items(orders, items)

    @staticmethod
    async def _fetch_items(db: AsyncSession, order_ids: List[int]) -> List[OrderItem]:
        result = await db.execute(
            select(OrderItem).where(OrderItem.order_id.in_(order_ids)).order_by(OrderItem.id)
        )
        return list(result.scalars().all())


def _attach_items(orders: List[Order], items: List[OrderItem]) -> List[Order]:
    by_order = defaultdict(list)
    for item in items:
        by_order[item.order_id].append(item)
    for order in orders:
        order.order_items = by_order.get(order.id, [])
    return orders
