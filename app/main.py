"""
Identity API application.

Built at import time, in this order:
  1. Logging — root level from settings.LOG_LEVEL
  2. Lifespan manager — creates tables and provisions roles at startup
  3. Middleware — CORS and the signed session cookie used by form login
  4. Exception handlers — maps domain errors to HTTP responses
  5. Router registration — mounts all API endpoint groups

Serve with:
    uvicorn app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from app.config import settings
from app.database import AsyncSessionLocal, engine, init_models
from app.exceptions import register_exception_handlers
from app.routers import auth, roles, users
from app.services import role_service

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
      Creates all database tables if they don't exist, then provisions
      every role. Registration cannot succeed until the default role
      exists, so seeding it here is what makes /registro usable on a
      fresh database.

    Shutdown:
      Disposes of the engine so pooled connections close.
    """
    # --- Startup ---
    await init_models(engine)

    if settings.SEED_ROLES_ON_STARTUP:
        async with AsyncSessionLocal() as session:
            provisioned = await role_service.ensure_roles(session)
            await session.commit()
        logger.info("Roles provisioned: %s", ", ".join(r.name.value for r in provisioned))
    yield
    # --- Shutdown ---
    await engine.dispose()


configure_logging()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="User and role management with role-based authorization",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Signed cookie session: form login stores the username here
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SECRET_KEY,
    session_cookie=settings.SESSION_COOKIE_NAME,
    max_age=settings.SESSION_MAX_AGE_SECONDS,
    same_site="lax",
)

# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(auth.router, prefix="/api", tags=["Authentication"])
app.include_router(users.router, prefix="/api/usuarios", tags=["Users"])
app.include_router(roles.router, prefix="/api/papeis", tags=["Roles"])


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for deployment probes."""
    return {"status": "ok", "version": settings.APP_VERSION}
