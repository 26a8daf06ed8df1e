"""Authorization guard: the only place that knows ADMIN overrides every role."""
from __future__ import annotations

import hmac
import logging
from typing import Optional

from ..core.enums import Role
from ..core.exceptions import SecurityTokenMismatch, Unauthenticated, Unauthorized
from .session import RequestContext

logger = logging.getLogger(__name__)


def has_role(ctx: RequestContext, role: Role) -> bool:
    if not ctx.is_authenticated:
        return False
    return ctx.role == role or ctx.role == Role.ADMIN


def is_admin(ctx: RequestContext) -> bool:
    return has_role(ctx, Role.ADMIN)


def require_authenticated(ctx: RequestContext) -> None:
    if not ctx.is_authenticated:
        raise Unauthenticated()


def require_role(ctx: RequestContext, role: Role) -> None:
    require_authenticated(ctx)
    if not has_role(ctx, role):
        logger.info("User %s (%s) denied: %s required", ctx.user_id, ctx.role, role.value)
        raise Unauthorized("Access denied")


def require_any_role(ctx: RequestContext, *roles: Role) -> None:
    require_authenticated(ctx)
    if not any(has_role(ctx, role) for role in roles):
        logger.info("User %s (%s) denied: one of %s required", ctx.user_id, ctx.role, [r.value for r in roles])
        raise Unauthorized("Access denied")


def verify_csrf(ctx: RequestContext, supplied: Optional[str]) -> None:
    expected = ctx.csrf_token or ""
    if not expected or not supplied or not hmac.compare_digest(expected.encode(), str(supplied).encode()):
        logger.warning("CSRF token mismatch for user %s", ctx.user_id)
        raise SecurityTokenMismatch("Invalid security token")
