"""Shared fixtures: in-memory database, users and an API client."""
import pytest
from httpx import ASGITransport, AsyncClient

from contentflow.api import create_app
from contentflow.core.config.settings import init_config
from contentflow.core.models import User, UserRole
from contentflow.core.storage.database import Database, init_db


@pytest.fixture
async def db():
    """Create test database."""
    config = init_config()
    config.db_path = ":memory:"
    db = init_db(config.get_database_url())
    await db.create_tables()
    yield db
    await db.close()


@pytest.fixture
async def session(db: Database):
    """Create test session."""
    async with db.session() as session:
        yield session


@pytest.fixture
def make_user(db: Database):
    """Factory that persists a user with the given role."""
    counter = {"n": 0}

    async def _make(role: UserRole = UserRole.CONTRIBUTOR, name: str = None) -> User:
        counter["n"] += 1
        async with db.session() as s:
            user = User(
                email=f"{role.value}{counter['n']}@example.com",
                name=name or f"{role.value.title()} {counter['n']}",
                role=role.value,
            )
            s.add(user)
            await s.commit()
            await s.refresh(user)
            return user

    return _make


@pytest.fixture
async def admin(make_user):
    return await make_user(UserRole.ADMIN)


@pytest.fixture
async def moderator(make_user):
    return await make_user(UserRole.MODERATOR)


@pytest.fixture
async def moderator2(make_user):
    return await make_user(UserRole.MODERATOR)


@pytest.fixture
async def contributor(make_user):
    return await make_user(UserRole.CONTRIBUTOR)


@pytest.fixture
async def viewer(make_user):
    return await make_user(UserRole.VIEWER)


@pytest.fixture
async def client(db: Database):
    """API client bound to the in-memory database."""
    app = create_app()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def as_user(user: User) -> dict:
    """Request headers identifying ``user``."""
    return {"X-User-Id": str(user.id)}
