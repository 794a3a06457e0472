"""
Test fixtures for the Identity API test suite.

This module provides shared fixtures used across all test files:

  - db_engine / db_session: Fresh in-memory SQLite database for each test
  - seeded_roles: Every RoleName provisioned in the registry
  - client_factory: Builds HTTP test clients, optionally with Basic auth
  - client: Unauthenticated client (roles seeded)
  - admin_client / instructor_client / student_client: Authenticated clients

Key design decisions:
  - In-memory SQLite (sqlite+aiosqlite://) on a StaticPool, so every
    session in a test sees the same database and no state leaks between
    tests.
  - FastAPI's get_db dependency is overridden to use the test engine, so
    the application code runs exactly as it does in production.
  - ASGITransport does not run the lifespan, so roles are seeded by a
    fixture. Tests that need an empty registry use bare_client.
  - Each principal gets its own AsyncClient, so cookies and Basic
    credentials never bleed from one role into another.
  - The administrator is provisioned directly in the database (the same
    path as app.scripts.create_staff); students register through the
    public endpoint.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db, init_models
from app.main import app
from app.schemas.user import UserCreateRequest
from app.services import role_service, staff_service


# In-memory SQLite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite://"

ADMIN_CREDENTIALS = ("admin", "AdminPass123!")
INSTRUCTOR_CREDENTIALS = ("ivy", "IvyPass123!")
STUDENT_CREDENTIALS = ("aluno1", "StudentPass123!")


@pytest_asyncio.fixture
async def db_engine():
    """One in-memory database per test, schema created the way startup does it."""
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    await init_models(engine)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Provide an async session bound to the test engine."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded_roles(session_factory):
    """Provision every role, as the application lifespan does at startup."""
    async with session_factory() as session:
        roles = await role_service.ensure_roles(session)
        await session.commit()
    return {role.name: role.id for role in roles}


@pytest_asyncio.fixture
async def client_factory(session_factory):
    """
    Build async HTTP test clients with the test database injected.

    Call with auth=(username, password) for a client that sends HTTP Basic
    credentials on every request.
    """

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    clients = []

    def factory(auth: tuple[str, str] | None = None) -> AsyncClient:
        ac = AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            auth=auth,
        )
        clients.append(ac)
        return ac

    yield factory

    for ac in clients:
        await ac.aclose()
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def bare_client(client_factory):
    """Unauthenticated client against a database with no roles."""
    return client_factory()


@pytest_asyncio.fixture
async def client(client_factory, seeded_roles):
    """Unauthenticated client against a database with every role seeded."""
    return client_factory()


@pytest_asyncio.fixture
async def admin_user(session_factory, seeded_roles):
    """An administrator (ADMIN + INSTRUCTOR) provisioned directly in the database."""
    username, password = ADMIN_CREDENTIALS
    async with session_factory() as session:
        user = await staff_service.create_administrator(
            session,
            UserCreateRequest(
                full_name="Admin User",
                username=username,
                email="admin@example.com",
                password=password,
                department="Operations",
            ),
        )
        await session.commit()
    return user


@pytest_asyncio.fixture
async def admin_client(client_factory, admin_user):
    return client_factory(auth=ADMIN_CREDENTIALS)


@pytest_asyncio.fixture
async def instructor_user(session_factory, seeded_roles):
    username, password = INSTRUCTOR_CREDENTIALS
    async with session_factory() as session:
        user = await staff_service.create_instructor(
            session,
            UserCreateRequest(
                full_name="Ivy Instructor",
                username=username,
                email="ivy@example.com",
                password=password,
                specialty="Mathematics",
            ),
        )
        await session.commit()
    return user


@pytest_asyncio.fixture
async def instructor_client(client_factory, instructor_user):
    return client_factory(auth=INSTRUCTOR_CREDENTIALS)


@pytest_asyncio.fixture
async def student_user(client):
    """A student who signed up through the public registration endpoint."""
    username, password = STUDENT_CREDENTIALS
    response = await client.post(
        "/api/usuarios/registro",
        json={
            "full_name": "Ana Aluna",
            "username": username,
            "email": "aluno1@example.com",
            "password": password,
        },
    )
    assert response.status_code == 201, f"Registration failed: {response.text}"
    return response.json()


@pytest_asyncio.fixture
async def student_client(client_factory, student_user):
    return client_factory(auth=STUDENT_CREDENTIALS)
