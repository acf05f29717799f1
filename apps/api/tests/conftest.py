"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database, schema created per test
- User / workspace / membership factories
- HTTPX AsyncClient wired to the test session
- Identity headers (x-user-pubkey) per user
"""
import os
from dataclasses import dataclass
from typing import AsyncGenerator, Callable, Generator

from tests.helpers import SUPER_ADMIN_PUBKEY, auth_headers, make_pubkey

# Settings are read at import time
os.environ["TESTING"] = "1"
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret-for-bounty-api-tests-0123456789"
os.environ["SUPER_ADMINS"] = SUPER_ADMIN_PUBKEY

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.deps import get_db
from app.core.status_rules import RESERVED_STATUSES
from app.db.base import Base, utc_now
from app.db.enums import BountyStatus, WorkspaceRole
from app.db.models import Bounty, User, Workspace, WorkspaceBudget, WorkspaceMember
from app.db.session import SessionLocal, engine
from app.main import app


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Fresh schema per test on the shared in-memory engine.

    App code commits for real; tables are dropped afterwards.
    """
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    counter = {"n": 0}

    def factory(pubkey: str | None = None, username: str | None = None) -> User:
        counter["n"] += 1
        user = User(
            pubkey=pubkey or make_pubkey(),
            username=username or f"tester_{counter['n']}",
        )
        db.add(user)
        db.commit()
        return user

    return factory


@pytest.fixture
def owner(make_user) -> User:
    return make_user(username="owner")


@pytest.fixture
def add_member(db: Session) -> Callable[..., WorkspaceMember]:
    def factory(workspace: Workspace, user: User, role: WorkspaceRole) -> WorkspaceMember:
        member = WorkspaceMember(
            workspace_id=workspace.id, user_pubkey=user.pubkey, role=role.value
        )
        db.add(member)
        db.commit()
        return member

    return factory


@pytest.fixture
def make_workspace(db: Session, add_member) -> Callable[..., Workspace]:
    counter = {"n": 0}

    def factory(owner_user: User, name: str | None = None, funds: int = 0) -> Workspace:
        counter["n"] += 1
        workspace = Workspace(name=name or f"Workspace {counter['n']}", owner_pubkey=owner_user.pubkey)
        db.add(workspace)
        db.flush()
        db.add(
            WorkspaceBudget(
                workspace_id=workspace.id,
                total_budget=funds,
                available_budget=funds,
                reserved_budget=0,
                paid_budget=0,
            )
        )
        db.commit()
        add_member(workspace, owner_user, WorkspaceRole.OWNER)
        return workspace

    return factory


@pytest.fixture
def workspace(make_workspace, owner) -> Workspace:
    """Workspace owned by `owner` with 100k sats available."""
    return make_workspace(owner, name="Test Workspace", funds=100_000)


# =============================================================================
# Client Fixtures
# =============================================================================

@dataclass
class Actor:
    """A user plus the headers that authenticate as them."""
    user: User
    headers: dict[str, str]


@pytest.fixture
def as_actor() -> Callable[[User], Actor]:
    def factory(user: User) -> Actor:
        return Actor(user=user, headers=auth_headers(user.pubkey))

    return factory


@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """
    AsyncClient sharing the test session with the app.

    Identity is per request via headers, so one client serves every actor.
    """
    def override_get_db():
        try:
            yield db
        except Exception:
            db.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def make_bounty(db: Session) -> Callable[..., Bounty]:
    """Insert a bounty directly; reserved statuses hold funds like the real flow."""
    counter = {"n": 0}

    def factory(
        workspace: Workspace,
        creator: User,
        status: BountyStatus = BountyStatus.OPEN,
        assignee: User | None = None,
        amount: int = 1_000,
        **fields,
    ) -> Bounty:
        counter["n"] += 1
        bounty = Bounty(
            workspace_id=workspace.id,
            creator_pubkey=creator.pubkey,
            assignee_pubkey=assignee.pubkey if assignee else None,
            assigned_at=utc_now() if assignee else None,
            title=fields.pop("title", f"Bounty number {counter['n']}"),
            description="Implement the thing described in the linked issue",
            deliverables="A merged pull request",
            amount=amount,
            status=status.value,
            **fields,
        )
        db.add(bounty)
        if status in RESERVED_STATUSES:
            budget = db.execute(
                select(WorkspaceBudget).where(WorkspaceBudget.workspace_id == workspace.id)
            ).scalar_one()
            budget.available_budget -= amount
            budget.reserved_budget += amount
        db.commit()
        return bounty

    return factory
