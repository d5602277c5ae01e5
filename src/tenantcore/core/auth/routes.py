"""Authentication API routes.

Provides endpoints for:
- Login (bearer token plus HttpOnly session cookie)
- Logout
- The resolved principal
"""

from fastapi import APIRouter, Response, status

from tenantcore.config import settings
from tenantcore.core.auth.context import current_tenant_id, is_super_admin
from tenantcore.core.auth.dependencies import CurrentPrincipal
from tenantcore.core.auth.schemas import LoginRequest, PrincipalResponse, TokenResponse
from tenantcore.core.auth.service import AuthSvc


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login with email and password",
    description="Returns a bearer token and sets the same JWT as an HttpOnly cookie.",
)
async def login(
    data: LoginRequest,
    service: AuthSvc,
    response: Response,
) -> TokenResponse:
    tokens = await service.login(email=data.email, password=data.password)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=tokens.access_token,
        max_age=tokens.expires_in,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    return tokens


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Logout",
    description="Clears the session cookie. Bearer tokens expire on their own.",
)
async def logout(response: Response) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


@router.get(
    "/me",
    response_model=PrincipalResponse,
    summary="Get the current principal",
)
async def get_me(principal: CurrentPrincipal) -> PrincipalResponse:
    return PrincipalResponse(
        subject=principal.subject,
        authentication_type=str(principal.authentication_type),
        name=principal.name,
        email=principal.email,
        roles=list(principal.roles),
        tenant_id=current_tenant_id(principal),
        tenant_domain=principal.tenant_domain,
        is_super_admin=is_super_admin(principal),
    )
