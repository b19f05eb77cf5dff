from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models import MAX_MONEY, MAX_QUANTITY, MenuItem, Order, OrderItem, OrderStatus
from storefront.schemas import LineRequest, MenuItemUpdate, OrderResponse
from storefront.services import catalog
from storefront.services.ordering import (
    EmptyOrder,
    InvalidQuantity,
    LineItemNotFound,
    OrderTotalOutOfRange,
    PersistenceFailure,
    build_order,
    compute_lines,
    load_order,
)

from tests.conftest import CUSTOMER_ID


async def count_rows(session_maker, model) -> int:
    async with session_maker() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar()


async def test_total_is_sum_of_price_times_quantity(db):
    order = await build_order(db, CUSTOMER_ID, [
        LineRequest(menu_item_id=1, quantity=2),
        LineRequest(menu_item_id=2, quantity=3),
    ])

    assert order.total_price == Decimal("15.0")
    assert order.status == OrderStatus.PENDING
    assert [(i.menu_item_id, i.quantity, i.unit_price) for i in order.items] == [
        (1, 2, Decimal("4.5")),
        (2, 3, Decimal("2.0")),
    ]


async def test_result_carries_owner_summary(db):
    order = await build_order(db, CUSTOMER_ID, [LineRequest(menu_item_id=3)])

    assert order.user.id == CUSTOMER_ID
    assert order.user.name == "Linh"
    assert order.user.email == "linh@example.com"


async def test_omitted_quantity_defaults_to_one(db):
    order = await build_order(db, CUSTOMER_ID, [LineRequest(menu_item_id=3)])

    assert order.items[0].quantity == 1
    assert order.total_price == Decimal("1.25")


async def test_items_keep_submission_order_and_duplicates(db):
    order = await build_order(db, CUSTOMER_ID, [
        LineRequest(menu_item_id=2, quantity=1),
        LineRequest(menu_item_id=1, quantity=1),
        LineRequest(menu_item_id=2, quantity=4),
    ])

    assert [i.menu_item_id for i in order.items] == [2, 1, 2]
    assert order.total_price == Decimal("2.0") + Decimal("4.5") + Decimal("8.0")


async def test_many_lines_do_not_drift(db):
    lines = [LineRequest(menu_item_id=3, quantity=1) for _ in range(40)]
    order = await build_order(db, CUSTOMER_ID, lines)

    assert order.total_price == Decimal("50.00")


async def test_empty_order_rejected_without_write(db, session_maker):
    with pytest.raises(EmptyOrder):
        await build_order(db, CUSTOMER_ID, [])

    assert await count_rows(session_maker, Order) == 0


async def test_unknown_menu_item_leaves_nothing_behind(db, session_maker):
    with pytest.raises(LineItemNotFound) as exc_info:
        await build_order(db, CUSTOMER_ID, [
            LineRequest(menu_item_id=1, quantity=1),
            LineRequest(menu_item_id=999, quantity=1),
        ])

    assert exc_info.value.menu_item_id == 999
    assert await count_rows(session_maker, Order) == 0
    assert await count_rows(session_maker, OrderItem) == 0


async def test_invalid_quantity_rejected(db):
    line = LineRequest.model_construct(menu_item_id=1, quantity=0)

    with pytest.raises(InvalidQuantity):
        await build_order(db, CUSTOMER_ID, [line])


@pytest.mark.parametrize("quantity", [MAX_QUANTITY + 1, 10**20])
async def test_oversized_quantity_rejected_before_write(db, session_maker, quantity):
    line = LineRequest.model_construct(menu_item_id=1, quantity=quantity)

    with pytest.raises(InvalidQuantity) as exc_info:
        await build_order(db, CUSTOMER_ID, [line])

    assert exc_info.value.quantity == quantity
    assert await count_rows(session_maker, Order) == 0


async def test_largest_quantity_accepted(db):
    order = await build_order(db, CUSTOMER_ID, [LineRequest(menu_item_id=3, quantity=MAX_QUANTITY)])

    assert order.items[0].quantity == MAX_QUANTITY
    assert order.total_price == Decimal("1.25") * MAX_QUANTITY


async def test_total_beyond_money_range_rejected(db, session_maker):
    await catalog.update_menu_item(db, 1, MenuItemUpdate(price=MAX_MONEY))

    with pytest.raises(OrderTotalOutOfRange):
        await build_order(db, CUSTOMER_ID, [LineRequest(menu_item_id=1, quantity=2)])

    assert await count_rows(session_maker, Order) == 0


async def test_price_change_does_not_touch_existing_order(db, session_maker):
    order = await build_order(db, CUSTOMER_ID, [LineRequest(menu_item_id=1, quantity=2)])

    async with session_maker() as other:
        await catalog.update_menu_item(other, 1, MenuItemUpdate(price=Decimal("9.99")))

    async with session_maker() as fresh:
        reloaded = await load_order(fresh, order.id)
        menu_item = await fresh.get(MenuItem, 1)

    assert menu_item.price == Decimal("9.99")
    assert reloaded.total_price == Decimal("9.0")
    assert reloaded.items[0].unit_price == Decimal("4.5")


async def test_store_failure_surfaces_and_rolls_back(db, session_maker, monkeypatch):
    async def broken_commit(self):
        raise SQLAlchemyError("connection lost")

    monkeypatch.setattr(AsyncSession, "commit", broken_commit)

    with pytest.raises(PersistenceFailure) as exc_info:
        await build_order(db, CUSTOMER_ID, [LineRequest(menu_item_id=1)])

    assert isinstance(exc_info.value.cause, SQLAlchemyError)
    assert await count_rows(session_maker, Order) == 0
    assert await count_rows(session_maker, OrderItem) == 0


async def test_metadata_is_stored_verbatim(db):
    order = await build_order(
        db,
        CUSTOMER_ID,
        [LineRequest(menu_item_id=1)],
        metadata={"delivery_address": "12 Le Loi", "payment_method": "cash"},
    )

    assert order.delivery_address == "12 Le Loi"
    assert order.payment_method == "cash"
    assert order.contact_number is None


def test_compute_lines_reports_first_missing_id():
    prices = {1: Decimal("4.5")}
    lines = [
        LineRequest(menu_item_id=1, quantity=1),
        LineRequest(menu_item_id=5, quantity=1),
        LineRequest(menu_item_id=6, quantity=1),
    ]

    with pytest.raises(LineItemNotFound) as exc_info:
        compute_lines(lines, prices)

    assert exc_info.value.menu_item_id == 5


def test_compute_lines_total():
    items, total = compute_lines(
        [LineRequest(menu_item_id=1, quantity=3), LineRequest(menu_item_id=2)],
        {1: Decimal("0.1"), 2: Decimal("0.2")},
    )

    assert total == Decimal("0.5")
    assert [item.unit_price for item in items] == [Decimal("0.1"), Decimal("0.2")]


def test_compute_lines_total_at_money_limit():
    _, total = compute_lines([LineRequest(menu_item_id=1)], {1: MAX_MONEY})

    assert total == MAX_MONEY

    with pytest.raises(OrderTotalOutOfRange):
        compute_lines([LineRequest(menu_item_id=1, quantity=2)], {1: MAX_MONEY})


async def test_reload_failure_after_commit_returns_saved_order(db, session_maker, monkeypatch):
    async def broken_reload(session, order_id):
        raise PersistenceFailure("order lookup", SQLAlchemyError("connection lost"))

    monkeypatch.setattr("storefront.services.ordering.builder.load_order", broken_reload)

    order = await build_order(db, CUSTOMER_ID, [LineRequest(menu_item_id=1, quantity=2)])

    assert order.id is not None
    assert order.user.name == "Linh"
    assert [i.menu_item.name for i in order.items] == ["Banh Mi"]

    response = OrderResponse.model_validate(order)
    assert response.total_price == Decimal("9.0")
    assert response.status == OrderStatus.PENDING
    assert await count_rows(session_maker, Order) == 1


async def test_order_survives_menu_item_deletion(db, session_maker):
    order = await build_order(db, CUSTOMER_ID, [
        LineRequest(menu_item_id=1, quantity=2),
        LineRequest(menu_item_id=2, quantity=1),
    ])

    async with session_maker() as other:
        await catalog.delete_menu_item(other, 1)

    async with session_maker() as fresh:
        reloaded = await load_order(fresh, order.id)

    assert [i.menu_item_id for i in reloaded.items] == [None, 2]
    assert reloaded.items[0].menu_item is None
    assert reloaded.items[0].unit_price == Decimal("4.5")
    assert reloaded.total_price == Decimal("11.0")
