"""Authenticated principal and authentication results.

Both credential strategies produce the same :class:`Principal`, so
authorization code never needs to know how the caller signed in, except
where it deliberately checks ``authentication_type``.
"""

from dataclasses import dataclass, field
from enum import StrEnum


class Role(StrEnum):
    """Role names carried in the ``roles`` claim."""

    SUPER_ADMIN = "SuperAdmin"
    TENANT_ADMIN = "TenantAdmin"
    TENANT_USER = "TenantUser"


class AuthenticationType(StrEnum):
    """How the principal proved its identity."""

    BEARER = "Bearer"
    API_KEY = "ApiKey"


@dataclass(frozen=True)
class Principal:
    """Identity claims for the current request.

    Attributes:
        subject: User id, or tenant id for API-key callers
        tenant_id: Raw tenant claim; absent for super-admins
        roles: Role names
        authentication_type: Strategy that produced this principal
        name: Display name (user full name or tenant name)
        email: User email for bearer principals
        tenant_domain: Tenant domain slug for API-key principals
    """

    subject: str
    authentication_type: AuthenticationType
    tenant_id: str | None = None
    roles: tuple[str, ...] = field(default_factory=tuple)
    name: str | None = None
    email: str | None = None
    tenant_domain: str | None = None

    def has_role(self, role: str) -> bool:
        return role in self.roles

    @property
    def is_api_key(self) -> bool:
        return self.authentication_type == AuthenticationType.API_KEY


class AuthOutcome(StrEnum):
    NO_RESULT = "no_result"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class AuthResult:
    """Outcome of one credential strategy.

    ``NO_RESULT`` means the strategy found no credential of its kind and
    the next strategy may try. ``FAILURE`` is final.
    """

    outcome: AuthOutcome
    principal: Principal | None = None
    reason: str | None = None
    error_code: str | None = None

    @classmethod
    def no_result(cls) -> "AuthResult":
        return cls(outcome=AuthOutcome.NO_RESULT)

    @classmethod
    def success(cls, principal: Principal) -> "AuthResult":
        return cls(outcome=AuthOutcome.SUCCESS, principal=principal)

    @classmethod
    def failure(cls, reason: str, error_code: str) -> "AuthResult":
        return cls(outcome=AuthOutcome.FAILURE, reason=reason, error_code=error_code)

    @property
    def succeeded(self) -> bool:
        return self.outcome == AuthOutcome.SUCCESS

    @property
    def failed(self) -> bool:
        return self.outcome == AuthOutcome.FAILURE
