"""Caller session contract and the capability check gating every mutation.

Credential lifecycle (login, refresh, expiry) belongs to an external
collaborator; the engine only reads the current token and roles.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from .config import DEFAULT_ROLE, PRIVILEGED_ROLES, ROLE_ALIASES


def normalize_role(role: str | None) -> str:
    """Map role spelling variants to canonical role names.

    Examples
    --------
    >>> normalize_role("Jefe")
    'jefe_departamento'
    >>> normalize_role("técnico")
    'tecnico'
    >>> normalize_role("visitante")
    'usuario'
    """
    if not role:
        return DEFAULT_ROLE
    return ROLE_ALIASES.get(str(role).strip().lower(), DEFAULT_ROLE)


@dataclass(slots=True)
class Session:
    token: str | None = None
    roles: list[str] = field(default_factory=list)
    user: str | None = None

    @classmethod
    def for_role(cls, role: str, token: str | None = None, user: str | None = None) -> Session:
        return cls(token=token, roles=[role], user=user)

    def normalized_roles(self) -> set[str]:
        return {normalize_role(r) for r in self.roles}

    def auth_headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}


def has_any_role(session: Session | None, allowed: Iterable[str] = PRIVILEGED_ROLES) -> bool:
    if session is None:
        return False
    return bool(session.normalized_roles() & set(allowed))


def can_mutate(session: Session | None) -> bool:
    """True when the caller holds one of the privileged roles."""
    return has_any_role(session, PRIVILEGED_ROLES)
