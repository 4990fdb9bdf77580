import time

import httpx
import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.observability import order_creation_duration_seconds, orders_created_total

from .create_flow import build_order_workflow
from .errors import OrderNotFound, PersistenceError
from .repository import OrderRepository
from .schemas import OrderCreate

logger = structlog.get_logger(__name__)

class OrderService:
    @staticmethod
    async def create_order(db: AsyncSession, client: httpx.AsyncClient, data: OrderCreate):
        workflow = build_order_workflow()
        ctx = {
            "db": db,
            "client": client,
            "user_id": data.user_id,
            "product_ids": list(data.product_ids),
        }
        started = time.perf_counter()
        try:
            await workflow.execute(ctx)
        except Exception as e:
            orders_created_total.labels(outcome=getattr(e, "reason", "internal")).inc()
            raise
        finally:
            order_creation_duration_seconds.observe(time.perf_counter() - started)

        order = ctx["order"]
        orders_created_total.labels(outcome=workflow.state.value).inc()
        logger.info(
            "order_created",
            order_id=order.id,
            user_id=order.user_id,
            total_amount=str(order.total_amount),
            item_count=len(order.order_items),
        )
        return order

    @staticmethod
    async def list_orders(db: AsyncSession):
        return await OrderRepository.list_all(db)

    @staticmethod
    async def list_user_orders(db: AsyncSession, user_id: int):
        return await OrderRepository.list_by_user(db, user_id)

    @staticmethod
    async def get_order(db: AsyncSession, order_id: int):
        try:
            order = await OrderRepository.get_order_with_items(db, order_id)
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to query order") from e
        if order is None:
            raise OrderNotFound(f"Order with ID {order_id} not found")
        return order
