"""
Persistence wiring for the identity store.

One async engine per process, built from settings.DATABASE_URL. Every
request borrows a session from AsyncSessionLocal through get_db(), and
that session is the request's only transaction: a user row and its
user_roles rows land together or not at all.

Tables are created by init_models() at startup (app.main) and by the staff
provisioning script. There are no migrations; the schema is small and
create_all is idempotent.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import settings


# With DEBUG on, SQL is echoed to the log. Statements carry the Argon2
# hash at most, never a plaintext password.
engine = create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG)

# Objects stay readable after commit; an expired attribute would need a
# lazy load, which AsyncSession cannot do implicitly.
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base shared by Role and User."""


async def init_models(bind: AsyncEngine) -> None:
    """Create every table registered on Base.metadata that does not exist yet."""
    # Importing the models package registers roles, users and user_roles
    import app.models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db():
    """
    Request-scoped session dependency.

    Commits once the endpoint returns; on any exception, including the
    domain errors the handlers turn into 4xx responses, rolls back and
    re-raises.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
