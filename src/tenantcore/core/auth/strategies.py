"""Credential strategies and the dispatcher that chains them.

Each strategy inspects the request for its own kind of credential and
answers with an :class:`AuthResult`:

- ``NO_RESULT``: no credential of this kind, let the next strategy try
- ``SUCCESS``: a principal was established
- ``FAILURE``: a credential was presented and rejected; this is final

The chain tries the session/bearer strategy first and falls through to
the API-key strategy only when the former found nothing.
"""

from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime
from typing import Protocol
from uuid import UUID

import structlog
from starlette.requests import HTTPConnection

from tenantcore.config import settings
from tenantcore.core.auth.api_keys import ApiKeyCodec
from tenantcore.core.auth.backend import decode_token
from tenantcore.core.auth.principal import AuthenticationType, AuthOutcome, AuthResult, Principal
from tenantcore.core.database.base import utcnow


logger = structlog.get_logger()


class CredentialStrategy(Protocol):
    """A single way of authenticating a request."""

    async def authenticate(self, request: HTTPConnection) -> AuthResult: ...


class ApiKeyHolder(Protocol):
    """Tenant fields the API-key strategy needs."""

    id: UUID
    name: str
    domain: str
    api_key_hash: str | None
    is_api_key_revoked: bool
    api_key_expires_at: datetime | None


ApiKeyLookup = Callable[[str], Awaitable[ApiKeyHolder | None]]


AccountCheck = Callable[[str, str | None], Awaitable[bool]]


class UsageRecorder(Protocol):
    """Records key usage without blocking the request."""

    def record(self, tenant_id: UUID) -> None: ...


class BearerTokenStrategy:
    """Session JWT from ``Authorization: Bearer`` or the session cookie.

    With an ``account_check``, the token's user and tenant are re-checked on
    every request, so deactivation or deletion takes effect before the
    token expires.
    """

    def __init__(
        self,
        cookie_name: str | None = None,
        account_check: AccountCheck | None = None,
    ) -> None:
        self.cookie_name = cookie_name or settings.session_cookie_name
        self.account_check = account_check

    def _extract_token(self, request: HTTPConnection) -> str | None:
        header = request.headers.get("Authorization")
        if header:
            scheme, _, credentials = header.partition(" ")
            if scheme.lower() == "bearer" and credentials.strip():
                return credentials.strip()
        return request.cookies.get(self.cookie_name) or None

    async def authenticate(self, request: HTTPConnection) -> AuthResult:
        token = self._extract_token(request)
        if token is None:
            return AuthResult.no_result()

        token_data = decode_token(token)
        if token_data is None or token_data.type != "access":
            return AuthResult.failure("Invalid or expired token", "invalid_token")

        if self.account_check is not None and not await self.account_check(
            token_data.subject, token_data.tenant_id
        ):
            logger.warning("bearer_account_inactive", user_id=token_data.subject)
            return AuthResult.failure("Account is no longer active", "account_inactive")

        return AuthResult.success(
            Principal(
                subject=token_data.subject,
                authentication_type=AuthenticationType.BEARER,
                tenant_id=token_data.tenant_id,
                roles=tuple(token_data.roles),
                name=token_data.name,
                email=token_data.email,
            )
        )


class ApiKeyStrategy:
    """Tenant API key from the configured header (``X-API-Key``)."""

    def __init__(
        self,
        lookup: ApiKeyLookup,
        usage_recorder: UsageRecorder | None = None,
        header_name: str | None = None,
    ) -> None:
        self.lookup = lookup
        self.usage_recorder = usage_recorder
        self.header_name = header_name or settings.api_key_header

    async def authenticate(self, request: HTTPConnection) -> AuthResult:
        api_key = request.headers.get(self.header_name)
        if api_key is None:
            return AuthResult.no_result()

        try:
            return await self._authenticate_key(api_key)
        except Exception:
            logger.exception("api_key_authentication_error")
            return AuthResult.failure(
                "An error occurred during authentication", "authentication_error"
            )

    async def _authenticate_key(self, api_key: str) -> AuthResult:
        prefix = ApiKeyCodec.extract_prefix(api_key) or None

        if not api_key.strip() or not ApiKeyCodec.is_valid_format(api_key):
            logger.warning("api_key_invalid_format", prefix=prefix)
            return AuthResult.failure("Invalid API key format", "invalid_api_key_format")

        tenant = await self.lookup(ApiKeyCodec.hash(api_key))
        if tenant is None or not ApiKeyCodec.validate(api_key, tenant.api_key_hash):
            logger.warning("api_key_unknown", prefix=prefix)
            return AuthResult.failure("Invalid API key", "invalid_api_key")

        if tenant.is_api_key_revoked:
            logger.warning("api_key_revoked", tenant_id=str(tenant.id))
            return AuthResult.failure("API key has been revoked", "api_key_revoked")

        if tenant.api_key_expires_at is not None and tenant.api_key_expires_at < utcnow():
            logger.warning("api_key_expired", tenant_id=str(tenant.id))
            return AuthResult.failure("API key has expired", "api_key_expired")

        if self.usage_recorder is not None:
            self.usage_recorder.record(tenant.id)

        logger.info("api_key_authenticated", tenant_id=str(tenant.id), prefix=prefix)
        return AuthResult.success(
            Principal(
                subject=str(tenant.id),
                authentication_type=AuthenticationType.API_KEY,
                tenant_id=str(tenant.id),
                name=tenant.name,
                tenant_domain=tenant.domain,
            )
        )


class AuthenticationChain:
    """Try strategies in order until one has an opinion."""

    def __init__(self, strategies: Sequence[CredentialStrategy]) -> None:
        self.strategies = list(strategies)

    async def authenticate(self, request: HTTPConnection) -> AuthResult:
        for strategy in self.strategies:
            result = await strategy.authenticate(request)
            if result.outcome != AuthOutcome.NO_RESULT:
                return result
        return AuthResult.no_result()
