from decimal import Decimal

import pytest
from sqlalchemy import func, select, text

from services.order_service.errors import PersistenceError
from services.order_service.models import Order, OrderItem
from services.order_service.repository import OrderRepository


async def create(session_factory, user_id, total, product_ids):
    async with session_factory() as session:
        return await OrderRepository.create_with_items(session, user_id, Decimal(total), product_ids)


async def test_create_with_items_returns_persisted_order(session_factory):
    order = await create(session_factory, 7, "14.99", [101, 102])

    assert order.id is not None
    assert order.user_id == 7
    assert order.total_amount == Decimal("14.99")
    assert order.order_date is not None
    assert [i.product_id for i in order.order_items] == [101, 102]
    assert {i.order_id for i in order.order_items} == {order.id}


async def test_create_with_items_is_atomic(engine, session_factory):
    async with engine.begin() as conn:
        await conn.execute(text(
            "CREATE TRIGGER reject_product_666 BEFORE INSERT ON orderitems "
            "WHEN NEW.productid = 666 "
            "BEGIN SELECT RAISE(ABORT, 'product rejected'); END"
        ))

    with pytest.raises(PersistenceError):
        await create(session_factory, 7, "50.00", [1, 2, 666, 4, 5])

    async with session_factory() as session:
        assert await session.scalar(select(func.count()).select_from(Order)) == 0
        assert await session.scalar(select(func.count()).select_from(OrderItem)) == 0
        assert await OrderRepository.get_order_with_items(session, 1) is None


async def test_get_order_with_items_missing(session_factory):
    async with session_factory() as session:
        assert await OrderRepository.get_order_with_items(session, 123) is None


async def test_list_all_empty(session_factory):
    async with session_factory() as session:
        assert await OrderRepository.list_all(session) == []


async def test_list_all_merges_items_by_order(session_factory):
    a = await create(session_factory, 7, "1.00", [1, 1])
    b = await create(session_factory, 8, "2.00", [2])
    c = await create(session_factory, 7, "3.00", [3, 4, 5])

    async with session_factory() as session:
        orders = await OrderRepository.list_all(session)

    assert [o.id for o in orders] == [c.id, b.id, a.id]
    items = {o.id: [i.product_id for i in o.order_items] for o in orders}
    assert items == {a.id: [1, 1], b.id: [2], c.id: [3, 4, 5]}


async def test_list_by_user_only_returns_that_users_orders(session_factory):
    a = await create(session_factory, 7, "1.00", [1])
    await create(session_factory, 8, "2.00", [2])
    c = await create(session_factory, 7, "3.00", [3])

    async with session_factory() as session:
        orders = await OrderRepository.list_by_user(session, 7)

    assert [o.id for o in orders] == [c.id, a.id]
    assert all(o.user_id == 7 for o in orders)
    assert [i.product_id for o in orders for i in o.order_items] == [3, 1]


async def test_list_by_user_empty(session_factory):
    await create(session_factory, 8, "2.00", [2])

    async with session_factory() as session:
        assert await OrderRepository.list_by_user(session, 7) == []


async def test_item_query_failure_degrades_list_by_user(engine, session_factory):
    order = await create(session_factory, 7, "1.00", [1, 2])
    async with engine.begin() as conn:
        await conn.execute(text("DROP TABLE orderitems"))

    async with session_factory() as session:
        orders = await OrderRepository.list_by_user(session, 7)

    assert [o.id for o in orders] == [order.id]
    assert orders[0].order_items == []


async def test_item_query_failure_is_fatal_for_list_all(engine, session_factory):
    await create(session_factory, 7, "1.00", [1])
    async with engine.begin() as conn:
        await conn.execute(text("DROP TABLE orderitems"))

    async with session_factory() as session:
        with pytest.raises(PersistenceError):
            await OrderRepository.list_all(session)
