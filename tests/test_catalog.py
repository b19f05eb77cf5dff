from decimal import Decimal

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.services import catalog
from storefront.services.ordering import PersistenceFailure

from tests.conftest import ADMIN_ID, CUSTOMER_ID, as_user


async def test_menu_lists_available_items(client):
    response = await client.get("/api/menu")

    assert response.status_code == 200
    names = {item["name"] for item in response.json()}
    assert names == {"Banh Mi", "Iced Tea", "Flan"}


async def test_menu_filters(client):
    drinks = (await client.get("/api/menu?category=DRINK")).json()
    assert [item["name"] for item in drinks] == ["Iced Tea"]

    everything = (await client.get("/api/menu?include_unavailable=true")).json()
    assert len(everything) == 4


async def test_get_menu_item(client):
    response = await client.get("/api/menu/1")
    assert response.status_code == 200
    assert Decimal(response.json()["price"]) == Decimal("4.5")

    response = await client.get("/api/menu/99")
    assert response.status_code == 404
    assert response.json()["error"] == "menu_item_not_found"


async def test_admin_creates_updates_deletes(client):
    admin = as_user(ADMIN_ID)

    created = await client.post(
        "/api/menu",
        json={"name": "Che", "price": "3.5", "category": "DESSERT"},
        headers=admin,
    )
    assert created.status_code == 201
    item_id = created.json()["id"]
    assert created.json()["is_available"] is True

    updated = await client.put(
        f"/api/menu/{item_id}",
        json={"is_available": False, "description": "Sweet soup", "price": None},
        headers=admin,
    )
    assert updated.status_code == 200
    assert updated.json()["is_available"] is False
    assert updated.json()["description"] == "Sweet soup"
    assert Decimal(updated.json()["price"]) == Decimal("3.5")

    deleted = await client.delete(f"/api/menu/{item_id}", headers=admin)
    assert deleted.status_code == 200
    assert (await client.get(f"/api/menu/{item_id}")).status_code == 404


async def test_customers_cannot_manage_menu(client):
    response = await client.post(
        "/api/menu",
        json={"name": "Che", "price": "3.5", "category": "DESSERT"},
        headers=as_user(CUSTOMER_ID),
    )
    assert response.status_code == 403

    response = await client.delete("/api/menu/1", headers=as_user(CUSTOMER_ID))
    assert response.status_code == 403


async def test_negative_price_rejected(client):
    response = await client.post(
        "/api/menu",
        json={"name": "Bad", "price": "-1", "category": "FOOD"},
        headers=as_user(ADMIN_ID),
    )
    assert response.status_code == 422


@pytest.fixture
def broken_store(monkeypatch):
    async def fail(self, *args, **kwargs):
        raise SQLAlchemyError("connection lost")

    monkeypatch.setattr(AsyncSession, "execute", fail)
    monkeypatch.setattr(AsyncSession, "get", fail)


async def test_lookup_failures_are_persistence_failures(db, broken_store):
    with pytest.raises(PersistenceFailure) as exc_info:
        await catalog.list_menu_items(db)
    assert exc_info.value.operation == "menu listing"

    with pytest.raises(PersistenceFailure) as exc_info:
        await catalog.get_menu_item(db, 1)
    assert isinstance(exc_info.value.cause, SQLAlchemyError)


async def test_menu_store_failure_maps_to_500(client, broken_store):
    response = await client.get("/api/menu")

    assert response.status_code == 500
    assert response.json()["error"] == "persistence_failure"
