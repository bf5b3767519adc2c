from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from feedback_system import auth
from feedback_system.database import get_async_session
from feedback_system.errors import Forbidden
from feedback_system.schemas import AdminIdentity

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class RequestContext:
    """Per-request actor info, passed explicitly down to services."""
    admin: AdminIdentity
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


def client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


async def get_request_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_async_session),
) -> RequestContext:
    token = None
    if credentials and credentials.scheme.lower() == "bearer" and credentials.credentials:
        token = credentials.credentials

    admin = await auth.verify(db, token)
    return RequestContext(
        admin=admin,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )


def require_roles(*roles: str):
    """Role-based check layered on top of token verification."""
    async def dependency(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
        if ctx.admin.role not in roles:
            raise Forbidden()
        return ctx
    return dependency
