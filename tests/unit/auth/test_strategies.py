"""Unit tests for credential strategies and the authentication chain."""

from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from starlette.requests import Request

from tenantcore.core.auth.api_keys import ApiKeyCodec
from tenantcore.core.auth.backend import create_access_token
from tenantcore.core.auth.principal import AuthenticationType, AuthOutcome, AuthResult
from tenantcore.core.auth.strategies import (
    ApiKeyStrategy,
    AuthenticationChain,
    BearerTokenStrategy,
)
from tenantcore.core.database import utcnow


def make_request(headers: dict[str, str] | None = None) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw})


def make_tenant(key: str, **overrides):
    fields = {
        "id": uuid4(),
        "name": "Acme",
        "domain": "acme",
        "api_key_hash": ApiKeyCodec.hash(key),
        "is_api_key_revoked": False,
        "api_key_expires_at": None,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


class TestBearerTokenStrategy:
    """Tests for the session token strategy."""

    async def test_no_credentials_is_no_result(self):
        result = await BearerTokenStrategy().authenticate(make_request())

        assert result.outcome == AuthOutcome.NO_RESULT

    async def test_valid_bearer_token(self):
        user_id, tenant_id = uuid4(), uuid4()
        token = create_access_token(user_id, tenant_id, roles=["TenantUser"], email="a@b.com")

        result = await BearerTokenStrategy().authenticate(
            make_request({"Authorization": f"Bearer {token}"})
        )

        assert result.succeeded
        assert result.principal.subject == str(user_id)
        assert result.principal.tenant_id == str(tenant_id)
        assert result.principal.roles == ("TenantUser",)
        assert result.principal.authentication_type == AuthenticationType.BEARER

    async def test_cookie_token(self):
        token = create_access_token(uuid4(), None, roles=["SuperAdmin"])
        strategy = BearerTokenStrategy(cookie_name="session")

        result = await strategy.authenticate(make_request({"Cookie": f"session={token}"}))

        assert result.succeeded
        assert result.principal.tenant_id is None

    async def test_invalid_token_is_failure(self):
        result = await BearerTokenStrategy().authenticate(
            make_request({"Authorization": "Bearer not-a-jwt"})
        )

        assert result.failed
        assert result.error_code == "invalid_token"

    async def test_expired_token_is_failure(self):
        token = create_access_token(
            uuid4(), uuid4(), roles=[], expires_delta=timedelta(seconds=-1)
        )

        result = await BearerTokenStrategy().authenticate(
            make_request({"Authorization": f"Bearer {token}"})
        )

        assert result.failed

    async def test_account_check_rejects_inactive_account(self):
        user_id, tenant_id = uuid4(), uuid4()
        token = create_access_token(user_id, tenant_id, roles=["TenantUser"])
        check = AsyncMock(return_value=False)

        result = await BearerTokenStrategy(account_check=check).authenticate(
            make_request({"Authorization": f"Bearer {token}"})
        )

        assert result.failed
        assert result.error_code == "account_inactive"
        check.assert_awaited_once_with(str(user_id), str(tenant_id))

    async def test_account_check_passes_active_account(self):
        token = create_access_token(uuid4(), None, roles=["SuperAdmin"])

        result = await BearerTokenStrategy(
            account_check=AsyncMock(return_value=True)
        ).authenticate(make_request({"Authorization": f"Bearer {token}"}))

        assert result.succeeded


class TestApiKeyStrategy:
    """Tests for the tenant API key strategy."""

    @pytest.fixture
    def api_key(self) -> str:
        return ApiKeyCodec.generate(is_production=False).plaintext

    @pytest.fixture
    def recorder(self) -> MagicMock:
        return MagicMock()

    async def _authenticate(self, key: str, tenant, recorder=None) -> AuthResult:
        strategy = ApiKeyStrategy(lookup=AsyncMock(return_value=tenant), usage_recorder=recorder)
        return await strategy.authenticate(make_request({"X-API-Key": key}))

    async def test_missing_header_is_no_result(self):
        strategy = ApiKeyStrategy(lookup=AsyncMock())

        result = await strategy.authenticate(make_request())

        assert result.outcome == AuthOutcome.NO_RESULT

    async def test_valid_key(self, api_key: str, recorder: MagicMock):
        tenant = make_tenant(api_key)

        result = await self._authenticate(api_key, tenant, recorder)

        assert result.succeeded
        assert result.principal.subject == str(tenant.id)
        assert result.principal.tenant_id == str(tenant.id)
        assert result.principal.tenant_domain == "acme"
        assert result.principal.roles == ()
        assert result.principal.is_api_key
        recorder.record.assert_called_once_with(tenant.id)

    @pytest.mark.parametrize("key", ["", "   ", "garbage", "tc_live_short"])
    async def test_bad_format_rejected_before_lookup(self, key: str):
        lookup = AsyncMock()
        strategy = ApiKeyStrategy(lookup=lookup)

        result = await strategy.authenticate(make_request({"X-API-Key": key}))

        assert result.failed
        assert result.error_code == "invalid_api_key_format"
        lookup.assert_not_awaited()

    async def test_unknown_key(self, api_key: str):
        result = await self._authenticate(api_key, None)

        assert result.error_code == "invalid_api_key"

    async def test_revoked_key(self, api_key: str, recorder: MagicMock):
        result = await self._authenticate(
            api_key, make_tenant(api_key, is_api_key_revoked=True), recorder
        )

        assert result.error_code == "api_key_revoked"
        recorder.record.assert_not_called()

    async def test_revoked_reported_before_expired(self, api_key: str):
        tenant = make_tenant(
            api_key,
            is_api_key_revoked=True,
            api_key_expires_at=utcnow() - timedelta(days=1),
        )

        result = await self._authenticate(api_key, tenant)

        assert result.error_code == "api_key_revoked"

    async def test_expired_key(self, api_key: str):
        tenant = make_tenant(api_key, api_key_expires_at=utcnow() - timedelta(minutes=1))

        result = await self._authenticate(api_key, tenant)

        assert result.error_code == "api_key_expired"

    async def test_future_expiry_accepted(self, api_key: str):
        tenant = make_tenant(api_key, api_key_expires_at=utcnow() + timedelta(days=1))

        result = await self._authenticate(api_key, tenant)

        assert result.succeeded

    async def test_lookup_error_is_generic_failure(self, api_key: str):
        strategy = ApiKeyStrategy(lookup=AsyncMock(side_effect=RuntimeError("db down")))

        result = await strategy.authenticate(make_request({"X-API-Key": api_key}))

        assert result.failed
        assert result.error_code == "authentication_error"
        assert "db down" not in (result.reason or "")


class TestAuthenticationChain:
    """Tests for strategy ordering."""

    @staticmethod
    def _strategy(result: AuthResult) -> MagicMock:
        strategy = MagicMock()
        strategy.authenticate = AsyncMock(return_value=result)
        return strategy

    async def test_falls_through_no_result(self):
        principal = MagicMock()
        second = self._strategy(AuthResult.success(principal))
        chain = AuthenticationChain([self._strategy(AuthResult.no_result()), second])

        result = await chain.authenticate(make_request())

        assert result.principal is principal
        second.authenticate.assert_awaited_once()

    async def test_failure_is_final(self):
        second = self._strategy(AuthResult.success(MagicMock()))
        chain = AuthenticationChain(
            [self._strategy(AuthResult.failure("bad", "invalid_token")), second]
        )

        result = await chain.authenticate(make_request())

        assert result.failed
        second.authenticate.assert_not_awaited()

    async def test_nothing_found(self):
        chain = AuthenticationChain([self._strategy(AuthResult.no_result())])

        result = await chain.authenticate(make_request())

        assert result.outcome == AuthOutcome.NO_RESULT
