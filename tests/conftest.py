import pytest
import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from app.database import Base, get_db
from app.dependencies import get_change_feed, get_goal_cache
from app.main import app
from app.services.change_feed import ChangeFeed
from app.services.goal_cache import GoalCache
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for the whole test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture(scope="function")
def db_session():
    """Get a clean database session for each test function with rollback safety."""
    connection = engine.connect()
    transaction = connection.begin()
    # Use sessionmaker with the active connection
    session = TestingSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()

@pytest.fixture(scope="function")
def change_feed():
    return ChangeFeed()

@pytest.fixture(scope="function")
def goal_cache(change_feed):
    """A fresh cache per test; ids are reused once a test's transaction rolls back."""
    cache = GoalCache()
    cache.attach(change_feed)
    yield cache
    cache.detach()

def _create_profile(db_session, email, full_name, role):
    from app.models.profile import Profile

    profile = Profile(email=email, full_name=full_name, role=role, is_active=True)
    db_session.add(profile)
    db_session.commit()
    return profile

@pytest.fixture(scope="function")
def employee(db_session):
    from app.models.profile import ProfileRole
    return _create_profile(db_session, "dev@example.com", "Dana Developer", ProfileRole.EMPLOYEE)

@pytest.fixture(scope="function")
def approver(db_session):
    from app.models.profile import ProfileRole
    return _create_profile(db_session, "lead@example.com", "Lee Lead", ProfileRole.TECH_LEAD)

@pytest.fixture(scope="function")
def admin_user(db_session):
    from app.models.profile import ProfileRole
    return _create_profile(db_session, "admin@example.com", "System Admin", ProfileRole.ADMIN)

@pytest.fixture(scope="function")
def catalog(db_session):
    """One category with a plain skill and a skill split into two subskills."""
    from app.models.skill import Skill, SkillCategory, Subskill

    category = SkillCategory(name="Backend", description="Server-side work")
    db_session.add(category)
    db_session.flush()
    python = Skill(category_id=category.id, name="Python")
    databases = Skill(category_id=category.id, name="Databases")
    db_session.add_all([python, databases])
    db_session.flush()
    sql = Subskill(skill_id=databases.id, name="SQL")
    modeling = Subskill(skill_id=databases.id, name="Data Modeling")
    db_session.add_all([sql, modeling])
    db_session.commit()
    return {
        "category": category,
        "python": python,
        "databases": databases,
        "sql": sql,
        "modeling": modeling,
    }

@pytest.fixture(scope="function")
def auth_headers():
    """Helper fixture building the identity header the upstream provider forwards."""
    from app.core.config import settings

    def _auth_headers(profile):
        return {settings.user_id_header: str(profile.id)}
    return _auth_headers

@pytest.fixture(scope="function")
def client(db_session, change_feed, goal_cache):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_change_feed] = lambda: change_feed
    app.dependency_overrides[get_goal_cache] = lambda: goal_cache
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
