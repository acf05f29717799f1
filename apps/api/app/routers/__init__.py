"""API routers."""

from app.routers.admin import router as admin_router
from app.routers.bounties import router as bounties_router
from app.routers.bounties import workspace_router as workspace_bounties_router
from app.routers.bounty_requests import router as bounty_requests_router
from app.routers.budget import router as budget_router
from app.routers.comments import router as comments_router
from app.routers.leaderboard import router as leaderboard_router
from app.routers.members import router as members_router
from app.routers.notifications import router as notifications_router
from app.routers.proofs import router as proofs_router
from app.routers.users import router as users_router
from app.routers.workspaces import router as workspaces_router

__all__ = [
    "admin_router",
    "bounties_router",
    "workspace_bounties_router",
    "bounty_requests_router",
    "budget_router",
    "comments_router",
    "leaderboard_router",
    "members_router",
    "notifications_router",
    "proofs_router",
    "users_router",
    "workspaces_router",
]
