"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from app.core.config import settings
from app.core.errors import install_exception_handlers
from app.core.rate_limit import limiter
from app.core.request_context import (
    REQUEST_ID_HEADER,
    reset_request_context,
    start_request_context,
)
from app.core.responses import api_success
from app.core.structured_logging import configure_logging
from app.db.session import engine

configure_logging(settings.LOG_LEVEL)

# ============================================================================
# Sentry Integration (optional, for production error tracking)
# ============================================================================

if settings.SENTRY_DSN and settings.ENV != "dev":
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENV,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,  # 10% of requests for performance monitoring
        send_default_pii=False,
    )
    logging.info("Sentry initialized for error tracking")


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Bounty API",
    description="Workspace-scoped bounty management API",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

app.state.limiter = limiter
install_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With", "x-user-pubkey"],
    expose_headers=[REQUEST_ID_HEADER],
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Tag every request with an id (client-supplied or generated) for log correlation."""
    request_id, token = start_request_context(request.headers.get(REQUEST_ID_HEADER))
    try:
        response = await call_next(request)
    finally:
        reset_request_context(token)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


# ============================================================================
# Routers
# ============================================================================

from app.routers import (  # noqa: E402
    admin,
    bounties,
    bounty_requests,
    budget,
    comments,
    leaderboard,
    members,
    notifications,
    proofs,
    users,
    workspaces,
)

API_PREFIX = "/api"

# Workspaces and their children (members, budget/ledger, scoped bounties)
app.include_router(workspaces.router, prefix=f"{API_PREFIX}/workspaces", tags=["workspaces"])
app.include_router(members.router, prefix=f"{API_PREFIX}/workspaces", tags=["members"])
app.include_router(budget.router, prefix=f"{API_PREFIX}/workspaces", tags=["budget"])
app.include_router(
    bounties.workspace_router, prefix=f"{API_PREFIX}/workspaces", tags=["bounties"]
)

# Bounties and their children (proofs, requests, comments)
app.include_router(bounties.router, prefix=f"{API_PREFIX}/bounties", tags=["bounties"])
app.include_router(proofs.router, prefix=f"{API_PREFIX}/bounties", tags=["proofs"])
app.include_router(bounty_requests.router, prefix=f"{API_PREFIX}/bounties", tags=["requests"])
app.include_router(comments.router, prefix=f"{API_PREFIX}/bounties", tags=["comments"])

app.include_router(users.router, prefix=f"{API_PREFIX}/users", tags=["users"])
app.include_router(leaderboard.router, prefix=f"{API_PREFIX}/leaderboard", tags=["leaderboard"])
app.include_router(
    notifications.router, prefix=f"{API_PREFIX}/notifications", tags=["notifications"]
)

# Super admins (SUPER_ADMINS)
app.include_router(admin.router, prefix=f"{API_PREFIX}/admin", tags=["admin"])


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health():
    """
    Health check endpoint.
    
    Verifies database connectivity and returns environment info.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return api_success({"status": "ok", "env": settings.ENV, "version": settings.VERSION})
