"""Authentication service for email and password login."""

from typing import Annotated

import structlog
from fastapi import Depends

from tenantcore.api.dependencies import DBSession
from tenantcore.config import settings
from tenantcore.core.auth.backend import create_access_token, verify_password
from tenantcore.core.auth.schemas import TokenResponse
from tenantcore.core.database import TenantContext, TenantScopedSession
from tenantcore.core.errors import UnauthorizedError
from tenantcore.modules.tenants.repos import TenantRepository
from tenantcore.modules.users.repos import UserRepository


logger = structlog.get_logger()

INVALID_LOGIN = "Invalid email or password"


class AuthService:
    """Service for session logins.

    Email lookup is global by nature, so it runs under the system
    context rather than the (still anonymous) caller's.
    """

    def __init__(self, db: DBSession) -> None:
        scoped = TenantScopedSession(db, TenantContext.system())
        self.user_repo = UserRepository(scoped)
        self.tenant_repo = TenantRepository(scoped)

    async def login(self, email: str, password: str) -> TokenResponse:
        """Authenticate with email and password.

        Every failure raises the same message so callers cannot tell an
        unknown email from a wrong password.

        Raises:
            UnauthorizedError: If the credentials are invalid, the user is
                inactive, or the user's tenant is unavailable
        """
        user = await self.user_repo.get_by_email_for_login(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("login_failed", reason="invalid_credentials")
            raise UnauthorizedError(INVALID_LOGIN, error_code="invalid_credentials")

        if not user.is_active:
            logger.warning("login_failed", reason="user_inactive", user_id=str(user.id))
            raise UnauthorizedError(INVALID_LOGIN, error_code="invalid_credentials")

        if user.tenant_id is not None:
            tenant = await self.tenant_repo.get_by_id(user.tenant_id)
            if tenant is None or not tenant.is_active:
                logger.warning(
                    "login_failed",
                    reason="tenant_unavailable",
                    user_id=str(user.id),
                    tenant_id=str(user.tenant_id),
                )
                raise UnauthorizedError(INVALID_LOGIN, error_code="invalid_credentials")

        token = create_access_token(
            user_id=user.id,
            tenant_id=user.tenant_id,
            roles=user.roles,
            email=user.email,
            name=user.full_name,
        )
        logger.info(
            "login_succeeded",
            user_id=str(user.id),
            tenant_id=str(user.tenant_id) if user.tenant_id else None,
        )
        return TokenResponse(
            access_token=token,
            expires_in=settings.access_token_expire_minutes * 60,
        )


# Type alias for dependency injection
AuthSvc = Annotated[AuthService, Depends(AuthService)]
