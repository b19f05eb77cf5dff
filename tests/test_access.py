import pytest
from starlette.requests import Request

from storefront.core.config import AccessGateMode, get_settings
from storefront.models import Role
from storefront.services.access import (
    CookieAccessGate,
    HeaderAccessGate,
    Unauthenticated,
    get_access_gate,
    reset_access_gate,
)

from tests.conftest import ADMIN_ID, CUSTOMER_ID


def make_request(headers: dict[str, str]) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in headers.items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw})


async def test_header_gate_resolves_admin(db):
    caller = await HeaderAccessGate().resolve(make_request({"X-User-Id": str(ADMIN_ID)}), db)

    assert caller.user_id == ADMIN_ID
    assert caller.role == Role.ADMIN
    assert caller.is_admin


async def test_cookie_gate_resolves_customer(db):
    request = make_request({"Cookie": f"userId={CUSTOMER_ID}"})
    caller = await CookieAccessGate().resolve(request, db)

    assert caller.user_id == CUSTOMER_ID
    assert caller.email == "linh@example.com"
    assert not caller.is_admin


@pytest.mark.parametrize("headers", [{}, {"X-User-Id": ""}, {"X-User-Id": "x1"}, {"X-User-Id": "4040"}])
async def test_header_gate_rejects(db, headers):
    with pytest.raises(Unauthenticated):
        await HeaderAccessGate().resolve(make_request(headers), db)


def test_factory_follows_settings(monkeypatch):
    assert isinstance(get_access_gate(), HeaderAccessGate)

    monkeypatch.setenv("ACCESS_GATE_MODE", "COOKIE")
    get_settings.cache_clear()
    reset_access_gate()

    assert get_settings().access_gate_mode == AccessGateMode.COOKIE
    assert isinstance(get_access_gate(), CookieAccessGate)
