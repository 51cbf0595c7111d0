from __future__ import annotations

from dataclasses import dataclass

from learnhub.models.ids import UserId


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated identity extracted from a validated JWT.

    Endpoints receive this instead of a raw user id string.  user_id is
    the token subject and keys every per-user record in the stores.
    """

    user_id: UserId
    roles: frozenset[str]

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def is_admin(self) -> bool:
        return "admin" in self.roles
