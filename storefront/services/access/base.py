"""
Access Gate Abstract Base Class

The access gate answers one question for every request: who is calling,
and with which role. Identity issuing (login, sessions, passwords) lives
outside this service; a gate only reads an identifier that an upstream
component already vouched for and resolves it to a known user.

The resolved ``Caller`` is passed explicitly into every ordering operation.

Design Pattern: Strategy Pattern
    - HeaderAccessGate: identifier in a request header (gateway/proxy setups)
    - CookieAccessGate: identifier in the session cookie

Version: 1.0.0
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from storefront.models import Role, User

logger = logging.getLogger(__name__)


class Unauthenticated(Exception):
    """No usable caller identity on the request."""

    error_code = "unauthenticated"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)
        self.message = message


@dataclass(frozen=True)
class Caller:
    """
    Identity and role of the caller.

    Attributes:
        user_id: Id of the authenticated user
        role: USER or ADMIN
        name: Display name
        email: Contact email
    """
    user_id: int
    role: Role
    name: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @classmethod
    def from_user(cls, user: User) -> "Caller":
        return cls(user_id=user.id, role=user.role, name=user.name, email=user.email)


class BaseAccessGate(ABC):
    """
    Abstract base class for access gates.

    Subclasses only decide where the raw user id comes from; resolving it
    against the users table is shared.

    Example:
        >>> gate = get_access_gate()
        >>> caller = await gate.resolve(request, db)
        >>> caller.is_admin
        False
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the gate.

        Returns:
            str: Gate name (e.g., "header", "cookie")
        """
        pass

    @abstractmethod
    def extract_user_id(self, request: Request) -> Optional[str]:
        """
        Pull the raw user identifier off the request.

        Returns:
            The identifier as sent, or None when absent
        """
        pass

    async def resolve(self, request: Request, db: AsyncSession) -> Caller:
        """
        Resolve the request's caller.

        Raises:
            Unauthenticated: Missing, malformed or unknown user id
        """
        raw = self.extract_user_id(request)
        if not raw:
            raise Unauthenticated()

        try:
            user_id = int(raw)
        except (TypeError, ValueError):
            logger.warning(f"{self.provider_name} gate: malformed user id {raw!r}")
            raise Unauthenticated("Malformed user identity")

        user = await db.get(User, user_id)
        if user is None:
            logger.warning(f"{self.provider_name} gate: unknown user {user_id}")
            raise Unauthenticated("Unknown user")

        return Caller.from_user(user)
