"""
Access Gate Factory

Provides a single entry point for obtaining the configured access gate.

Usage:
    from storefront.services.access import get_access_gate

    gate = get_access_gate()
    caller = await gate.resolve(request, db)

Switching:
    - ACCESS_GATE_MODE=header → HeaderAccessGate (X-User-Id)
    - ACCESS_GATE_MODE=cookie → CookieAccessGate (userId cookie)
"""

import logging
from functools import lru_cache

from storefront.core.config import AccessGateMode, get_settings
from storefront.services.access.base import BaseAccessGate, Caller, Unauthenticated
from storefront.services.access.cookie import CookieAccessGate
from storefront.services.access.header import HeaderAccessGate

logger = logging.getLogger(__name__)


@lru_cache()
def get_access_gate() -> BaseAccessGate:
    """
    Get the configured access gate instance.

    The instance is cached; call ``reset_access_gate()`` after changing
    settings.

    Returns:
        BaseAccessGate: Header or cookie gate
    """
    settings = get_settings()

    if settings.access_gate_mode == AccessGateMode.COOKIE:
        logger.info("Access Gate: Using CookieAccessGate")
        return CookieAccessGate(cookie_name=settings.user_id_cookie)

    logger.info("Access Gate: Using HeaderAccessGate")
    return HeaderAccessGate(header_name=settings.user_id_header)


def reset_access_gate() -> None:
    """
    Clear the cached access gate instance.

    Useful for testing or when configuration changes at runtime.
    """
    get_access_gate.cache_clear()
    logger.debug("Access gate cache cleared")


__all__ = [
    "get_access_gate",
    "reset_access_gate",
    "BaseAccessGate",
    "Caller",
    "Unauthenticated",
    "HeaderAccessGate",
    "CookieAccessGate",
]
