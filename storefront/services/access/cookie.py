"""
Cookie Access Gate

Reads the caller's user id from the http-only session cookie set by the
login service.
"""

import logging
from typing import Optional

from starlette.requests import Request

from storefront.services.access.base import BaseAccessGate

logger = logging.getLogger(__name__)


class CookieAccessGate(BaseAccessGate):
    """Caller identity from a cookie (``userId`` by default)."""

    def __init__(self, cookie_name: str = "userId"):
        self.cookie_name = cookie_name
        logger.info(f"CookieAccessGate initialized (cookie={cookie_name})")

    @property
    def provider_name(self) -> str:
        return "cookie"

    def extract_user_id(self, request: Request) -> Optional[str]:
        return request.cookies.get(self.cookie_name)
