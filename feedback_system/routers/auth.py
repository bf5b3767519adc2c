import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from feedback_system import auth
from feedback_system.audit import AuditRecorder, get_audit_recorder
from feedback_system.auth_deps import RequestContext, client_ip, get_request_context, require_roles
from feedback_system.config import app_conf
from feedback_system.database import get_async_session
from feedback_system.limiter import limiter
from feedback_system.schemas import AdminIdentity, AdminRead, LoginRequest, RegisterRequest

logger = logging.getLogger(__name__)

auth_router = APIRouter(prefix="/auth", tags=["auth"])


@auth_router.post("/login")
@limiter.limit(app_conf.RATE_LIMIT_LOGIN)
async def login(
    request: Request,
    payload: LoginRequest,
    db: AsyncSession = Depends(get_async_session),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Authenticate an admin and return a session token.
    """
    token, admin = await auth.login(db, payload.username, payload.password)

    await audit.record_safely(
        "login",
        "admin",
        AdminIdentity(id=admin.id, username=admin.username, role=admin.role),
        entity_id=admin.id,
        details={"role": admin.role},
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )

    return {
        "success": True,
        "message": "Login successful.",
        "token": token,
        "admin": AdminRead.model_validate(admin).to_json(),
    }


@auth_router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    ctx: RequestContext = Depends(require_roles("admin", "super_admin")),
    db: AsyncSession = Depends(get_async_session),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Create another admin account. Only admins and super admins may do this.
    """
    admin = await auth.register_admin(db, payload.username, payload.password, payload.role)
    token = auth.create_access_token(admin)

    await audit.record_safely(
        "create",
        "admin",
        ctx.admin,
        entity_id=admin.id,
        details={"username": admin.username, "role": admin.role},
        ip_address=ctx.ip_address,
        user_agent=ctx.user_agent,
    )

    return {
        "success": True,
        "message": "Admin registered successfully.",
        "token": token,
        "admin": AdminRead.model_validate(admin).to_json(),
    }


@auth_router.get("/verify")
async def verify_token(ctx: RequestContext = Depends(get_request_context)):
    return {"success": True, "message": "Token is valid.", "admin": ctx.admin.to_json()}


@auth_router.post("/logout")
async def logout(
    ctx: RequestContext = Depends(get_request_context),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    """Tokens are stateless; logout is recorded and the client drops its token."""
    await audit.record_safely(
        "logout",
        "admin",
        ctx.admin,
        entity_id=ctx.admin.id,
        ip_address=ctx.ip_address,
        user_agent=ctx.user_agent,
    )
    return {"success": True, "message": "Logged out successfully."}
