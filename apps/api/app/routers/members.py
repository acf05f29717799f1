"""
Members Router - /api/workspaces/{workspace_id}/members endpoints.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.deps import WorkspaceContext, get_db, require_workspace_role
from app.core.rate_limit import limiter, write_limit
from app.core.responses import Envelope, api_created, api_success
from app.db.enums import WorkspaceRole
from app.schemas.workspace import MemberAdd, MemberRead, MemberRoleUpdate
from app.services import membership_service

router = APIRouter()


@router.get("/{workspace_id}/members", response_model=Envelope[list[MemberRead]])
def list_members(
    ctx: WorkspaceContext = Depends(require_workspace_role()),
    db: Session = Depends(get_db),
):
    members = membership_service.list_members(db, ctx.workspace.id)
    return api_success([MemberRead.model_validate(m) for m in members])


@router.post("/{workspace_id}/members", status_code=201, response_model=Envelope[MemberRead])
@limiter.limit(write_limit)
def add_member(
    request: Request,
    data: MemberAdd,
    ctx: WorkspaceContext = Depends(require_workspace_role(WorkspaceRole.ADMIN)),
    db: Session = Depends(get_db),
):
    member = membership_service.add_member(
        db, ctx.workspace, ctx.caller.pubkey, data.user_pubkey, data.role
    )
    db.commit()
    db.refresh(member)
    return api_created(MemberRead.model_validate(member))


@router.patch("/{workspace_id}/members/{pubkey}", response_model=Envelope[MemberRead])
def change_member_role(
    pubkey: str,
    data: MemberRoleUpdate,
    ctx: WorkspaceContext = Depends(require_workspace_role(WorkspaceRole.ADMIN)),
    db: Session = Depends(get_db),
):
    member = membership_service.change_role(
        db, ctx.workspace, ctx.caller.pubkey, pubkey, data.role
    )
    db.commit()
    db.refresh(member)
    return api_success(MemberRead.model_validate(member))


@router.delete("/{workspace_id}/members/{pubkey}", response_model=Envelope[dict])
def remove_member(
    pubkey: str,
    ctx: WorkspaceContext = Depends(require_workspace_role(WorkspaceRole.ADMIN)),
    db: Session = Depends(get_db),
):
    membership_service.remove_member(db, ctx.workspace, ctx.caller.pubkey, pubkey)
    db.commit()
    return api_success({"userPubkey": pubkey, "removed": True})
