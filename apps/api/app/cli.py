"""CLI tools for bounty platform administration."""

import csv
import re
import sys
import uuid

import click
from sqlalchemy import select

from app.core.security import create_session_token
from app.db.enums import WorkspaceRole
from app.db.models import Bounty
from app.db.session import SessionLocal
from app.schemas.workspace import WorkspaceCreate
from app.services import membership_service, user_service, workspace_service

PUBKEY_RE = re.compile(r"^[0-9a-f]{66}$")

EXPORT_COLUMNS = [
    "id",
    "workspace_id",
    "title",
    "status",
    "amount",
    "creator_pubkey",
    "assignee_pubkey",
    "tags",
    "created_at",
    "assigned_at",
    "paid_at",
    "completed_at",
]


def _validate_pubkey(ctx, param, value):
    if value is not None and not PUBKEY_RE.match(value):
        raise click.BadParameter("must be 66 lowercase hex characters")
    return value


@click.group()
def cli():
    """Bounty platform CLI tools."""
    pass


@cli.command()
@click.option("--name", required=True, help="Workspace name (unique, max 50 chars)")
@click.option("--owner-pubkey", required=True, callback=_validate_pubkey, help="Owner pubkey")
def create_workspace(name: str, owner_pubkey: str):
    """
    Create a workspace with an initial OWNER.

    The owner's user row is provisioned if it does not exist yet.

    Example:
        python -m app.cli create-workspace --name "Acme" --owner-pubkey 02ab...
    """
    db = SessionLocal()
    try:
        user_service.get_or_provision_user(db, owner_pubkey)
        workspace = workspace_service.create_workspace(
            db, owner_pubkey, WorkspaceCreate(name=name)
        )
        db.commit()
        click.echo(f"✓ Created workspace: {workspace.name}")
        click.echo(f"  ID: {workspace.id}")
        click.echo(f"  Owner: {owner_pubkey}")
    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
        sys.exit(1)
    finally:
        db.close()


@cli.command()
@click.option("--workspace-id", required=True, type=click.UUID, help="Workspace ID")
@click.option("--pubkey", required=True, callback=_validate_pubkey, help="Member pubkey")
@click.option(
    "--role",
    required=True,
    type=click.Choice([r.value for r in WorkspaceRole]),
    help="Role to grant",
)
def grant_role(workspace_id: uuid.UUID, pubkey: str, role: str):
    """Add a user to a workspace, or change the role of an existing member."""
    db = SessionLocal()
    try:
        workspace = workspace_service.get_workspace(db, workspace_id)
        if not workspace:
            click.echo(f"❌ Workspace not found: {workspace_id}")
            sys.exit(1)

        user_service.get_or_provision_user(db, pubkey)
        new_role = WorkspaceRole(role)
        if membership_service.get_member(db, workspace.id, pubkey):
            membership_service.change_role(db, workspace, workspace.owner_pubkey, pubkey, new_role)
            action = "Changed role"
        else:
            membership_service.add_member(db, workspace, workspace.owner_pubkey, pubkey, new_role)
            action = "Added member"
        db.commit()
        click.echo(f"✓ {action}: {pubkey[:12]}… is now {role} in {workspace.name}")
    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
        sys.exit(1)
    finally:
        db.close()


@cli.command()
@click.option("--pubkey", required=True, callback=_validate_pubkey, help="Subject pubkey")
@click.option("--expires-hours", default=None, type=int, help="Override JWT_EXPIRES_HOURS")
def mint_token(pubkey: str, expires_hours: int | None):
    """Print a bearer session token for a pubkey (local testing and scripts)."""
    click.echo(create_session_token(pubkey, expires_hours=expires_hours))


@cli.command()
@click.option("--workspace-id", default=None, type=click.UUID, help="Limit to one workspace")
@click.option("--include-deleted", is_flag=True, help="Include soft-deleted bounties")
def export_bounties(workspace_id: uuid.UUID | None, include_deleted: bool):
    """Write bounties as CSV to stdout."""
    db = SessionLocal()
    try:
        stmt = select(Bounty) if include_deleted else Bounty.live()
        if workspace_id:
            stmt = stmt.where(Bounty.workspace_id == workspace_id)
        stmt = stmt.order_by(Bounty.created_at.asc())

        writer = csv.writer(sys.stdout)
        writer.writerow(EXPORT_COLUMNS)
        count = 0
        for bounty in db.execute(stmt).scalars():
            row = []
            for column in EXPORT_COLUMNS:
                value = getattr(bounty, column)
                if column == "tags":
                    value = ";".join(value or [])
                elif hasattr(value, "isoformat"):
                    value = value.isoformat()
                row.append("" if value is None else value)
            writer.writerow(row)
            count += 1
        click.echo(f"Exported {count} bounties", err=True)
    finally:
        db.close()


if __name__ == "__main__":
    cli()
