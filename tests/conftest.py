import os

# Must be set before app.database.engine is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from app.main import app
from app.database.engine import get_db
from app.core.cache import InMemoryCache, NullCache
from app.models.volunteer import Skill
from app.schemas.volunteer import VolunteerCreate
from app.services.volunteer_service import VolunteerService, get_volunteer_service
from app.services.skill_service import SkillService, get_skill_service

# Test database setup
@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)

@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session

@pytest.fixture(name="cache")
def cache_fixture():
    return InMemoryCache()

@pytest.fixture(name="service")
def service_fixture(cache):
    return VolunteerService(cache=cache)

@pytest.fixture(name="uncached_service")
def uncached_service_fixture():
    return VolunteerService(cache=NullCache())

@pytest.fixture(name="skill_service")
def skill_service_fixture():
    return SkillService()

@pytest.fixture(name="client")
def client_fixture(session: Session, service: VolunteerService, skill_service: SkillService):
    def get_session_override():
        return session

    app.dependency_overrides[get_db] = get_session_override
    app.dependency_overrides[get_volunteer_service] = lambda: service
    app.dependency_overrides[get_skill_service] = lambda: skill_service
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()

@pytest.fixture(name="volunteer")
def volunteer_fixture(session: Session, service: VolunteerService):
    return service.create_volunteer(
        session,
        VolunteerCreate(
            name="Alice Walker",
            email="alice@example.com",
            phone_number="555-0100",
            location="Philadelphia, PA",
            latitude=39.9526,
            longitude=-75.1652,
            skills=["first-aid", "driving"],
            interests=["food-bank"],
            drives_applied=["drive-1", "drive-2"],
            drives_completed=["drive-0"],
        )
    )

@pytest.fixture(name="skills")
def skills_fixture(session: Session):
    first_aid = Skill(name="First Aid", description="Basic emergency care", category="Medical")
    driving = Skill(name="Driving", description="Delivery driving", category="Logistics")
    cooking = Skill(name="Cooking", description="Meal preparation for shelters", category="Food")

    session.add(first_aid)
    session.add(driving)
    session.add(cooking)
    session.commit()
    session.refresh(first_aid)
    session.refresh(driving)
    session.refresh(cooking)

    return {
        "first_aid": first_aid,
        "driving": driving,
        "cooking": cooking
    }
