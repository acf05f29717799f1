"""FastAPI dependencies for identity, authorization context, and database access."""

import logging
import re
from dataclasses import dataclass
from typing import Generator
from uuid import UUID

import jwt
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.errors import (
    AppError,
    ErrorCode,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
)
from app.core.permissions import has_role, is_super_admin
from app.core.security import decode_session_token
from app.db.enums import WorkspaceRole
from app.db.session import SessionLocal
from app.schemas.auth import CallerSession
from app.schemas.common import PUBKEY_PATTERN

logger = logging.getLogger(__name__)

# Identity header set by the upstream auth middleware
PUBKEY_HEADER = "x-user-pubkey"
AUTHORIZATION_HEADER = "authorization"

_PUBKEY_RE = re.compile(PUBKEY_PATTERN)


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.
    
    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _valid_pubkey(value: str | None) -> bool:
    return bool(value) and _PUBKEY_RE.fullmatch(value) is not None


def resolve_pubkey(request: Request) -> str | None:
    """
    Extract the caller's pubkey from the request.
    
    The x-user-pubkey header wins; otherwise a Bearer session token is
    verified and its subject used. Returns None when neither is present.
    
    Raises:
        UnauthorizedError: Malformed pubkey or invalid token
        AppError(SESSION_EXPIRED): Token past its expiry
    """
    header = request.headers.get(PUBKEY_HEADER)
    if header is not None:
        pubkey = header.strip()
        if not _valid_pubkey(pubkey):
            raise UnauthorizedError("Invalid pubkey header")
        return pubkey

    authorization = request.headers.get(AUTHORIZATION_HEADER, "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None

    try:
        payload = decode_session_token(token.strip())
    except jwt.ExpiredSignatureError:
        raise AppError(code=ErrorCode.SESSION_EXPIRED)
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid session token", code=ErrorCode.INVALID_CREDENTIALS)

    subject = payload.get("sub")
    if not _valid_pubkey(subject):
        raise UnauthorizedError("Invalid session token", code=ErrorCode.INVALID_CREDENTIALS)
    return subject


def get_caller(request: Request, db: Session = Depends(get_db)) -> CallerSession:
    """
    Resolve the authenticated caller.
    
    This is the PRIMARY auth dependency. First sight of a pubkey
    provisions its user row.
    
    Raises:
        UnauthorizedError 401: No identity, or the account is deleted
    """
    from app.services import user_service

    pubkey = resolve_pubkey(request)
    if not pubkey:
        raise UnauthorizedError()

    user = user_service.get_or_provision_user(db, pubkey)
    if user.deleted_at is not None:
        raise UnauthorizedError("Account has been deleted")

    return CallerSession(
        pubkey=user.pubkey,
        user_id=user.id,
        username=user.username,
        is_super_admin=is_super_admin(user.pubkey),
    )


def get_optional_caller(
    request: Request, db: Session = Depends(get_db)
) -> CallerSession | None:
    """Caller for public endpoints; None when the request is anonymous."""
    if resolve_pubkey(request) is None:
        return None
    return get_caller(request, db)


def require_super_admin(caller: CallerSession = Depends(get_caller)) -> CallerSession:
    if not caller.is_super_admin:
        raise ForbiddenError("Super admin access required")
    return caller


# =============================================================================
# Workspace / bounty authorization context
# =============================================================================

@dataclass
class WorkspaceContext:
    """Workspace resolved for a caller, with the caller's role (None = not a member)."""
    workspace: object
    role: WorkspaceRole | None
    caller: CallerSession


@dataclass
class BountyContext:
    bounty: object
    role: WorkspaceRole | None
    caller: CallerSession | None


def require_workspace_role(minimum: WorkspaceRole = WorkspaceRole.VIEWER):
    """
    Dependency factory for workspace-scoped role checks.
    
    Non-members get 404 so workspace existence is not leaked;
    members below the threshold get 403.
    
    Usage:
        @router.patch("/{workspace_id}")
        def update(ctx: WorkspaceContext = Depends(require_workspace_role(WorkspaceRole.ADMIN))):
            ...
    """
    def dependency(
        workspace_id: UUID,
        caller: CallerSession = Depends(get_caller),
        db: Session = Depends(get_db),
    ) -> WorkspaceContext:
        from app.services import membership_service, workspace_service

        workspace = workspace_service.get_workspace(db, workspace_id)
        if not workspace:
            raise NotFoundError("Workspace not found")
        role = membership_service.get_role(db, workspace.id, caller.pubkey)
        if role is None:
            raise NotFoundError("Workspace not found")
        if not has_role(role, minimum):
            raise ForbiddenError(
                f"{minimum.value} role or higher required for this action"
            )
        return WorkspaceContext(workspace=workspace, role=role, caller=caller)
    return dependency


def _bounty_context(db: Session, bounty, caller: CallerSession) -> BountyContext:
    from app.services import membership_service

    role = membership_service.get_role(db, bounty.workspace_id, caller.pubkey)
    return BountyContext(bounty=bounty, role=role, caller=caller)


def get_bounty_context(
    bounty_id: UUID,
    caller: CallerSession = Depends(get_caller),
    db: Session = Depends(get_db),
) -> BountyContext:
    """Load a live bounty (404 if missing) plus the caller's role in its workspace."""
    from app.services import bounty_service

    bounty = bounty_service.get_bounty(db, bounty_id)
    if not bounty:
        raise NotFoundError("Bounty not found")
    return _bounty_context(db, bounty, caller)


def get_workspace_bounty_context(
    bounty_id: UUID,
    ctx: WorkspaceContext = Depends(require_workspace_role()),
    db: Session = Depends(get_db),
) -> BountyContext:
    """Bounty under /workspaces/{workspace_id}; non-members already got 404."""
    from app.services import bounty_service

    bounty = bounty_service.get_bounty(db, bounty_id)
    if not bounty or bounty.workspace_id != ctx.workspace.id:
        raise NotFoundError("Bounty not found")
    return BountyContext(bounty=bounty, role=ctx.role, caller=ctx.caller)


def get_public_bounty_context(
    bounty_id: UUID,
    caller: CallerSession | None = Depends(get_optional_caller),
    db: Session = Depends(get_db),
) -> BountyContext:
    """Bounty for anonymous-friendly reads; caller and role may be None."""
    from app.services import bounty_service, membership_service

    bounty = bounty_service.get_bounty(db, bounty_id)
    if not bounty:
        raise NotFoundError("Bounty not found")
    pubkey = caller.pubkey if caller else None
    role = membership_service.get_role(db, bounty.workspace_id, pubkey)
    return BountyContext(bounty=bounty, role=role, caller=caller)
