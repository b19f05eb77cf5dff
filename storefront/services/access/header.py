"""
Header Access Gate

Reads the caller's user id from a request header set by an upstream
gateway. Default in development; anything that can reach the API directly
can forge the header, so production deployments should sit behind a proxy
that strips and re-sets it.
"""

import logging
from typing import Optional

from starlette.requests import Request

from storefront.services.access.base import BaseAccessGate

logger = logging.getLogger(__name__)


class HeaderAccessGate(BaseAccessGate):
    """Caller identity from a header (``X-User-Id`` by default)."""

    def __init__(self, header_name: str = "X-User-Id"):
        self.header_name = header_name
        logger.info(f"HeaderAccessGate initialized (header={header_name})")

    @property
    def provider_name(self) -> str:
        return "header"

    def extract_user_id(self, request: Request) -> Optional[str]:
        value = request.headers.get(self.header_name)
        return value.strip() if value else None
