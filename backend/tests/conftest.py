import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from slotcraft.api.deps import get_db, get_generator
from slotcraft.db.base import Base
from slotcraft.main import app
from slotcraft.schemas.timetable import GenerationResult


class FakeGenerator:
    """Stands in for the external generator: records requests and replays a canned outcome."""

    def __init__(self):
        self.requests = []
        self.result = GenerationResult()
        self.error = None

    def generate(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture()
def fake_generator():
    return FakeGenerator()


@pytest.fixture()
def client(fake_generator):
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_generator] = lambda: fake_generator

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def entities():
    return {
        "classes": [
            {"id": "c-1", "name": "CSE-2A", "branch": "CSE", "year": 2, "section": "A", "studentCount": 60},
            {"id": "c-2", "name": "CSE-2B", "branch": "CSE", "year": 2, "section": "B", "studentCount": 55},
        ],
        "faculty": [
            {"id": "f-1", "name": "Dr. Rao", "department": "CSE", "maxWorkload": 4},
            {"id": "f-2", "name": "Dr. Iyer", "department": "CSE", "maxWorkload": 0},
        ],
        "subjects": [
            {
                "id": "s-1",
                "name": "Data Structures",
                "code": "cs201",
                "department": "CSE",
                "type": "theory",
                "hoursPerWeek": 3,
                "assignedFacultyId": "f-1",
                "semester": 3,
            },
            {
                "id": "s-2",
                "name": "DS Lab",
                "code": "CS201L",
                "department": "CSE",
                "type": "LAB",
                "hoursPerWeek": 2,
                "assignedFacultyId": "f-2",
            },
        ],
        "rooms": [
            {
                "id": "r-1",
                "number": "A101",
                "building": "Main",
                "capacity": 70,
                "equipment": {"projector": True, "computerSystems": {"available": False, "count": 40}},
            },
            {
                "id": "r-2",
                "number": "L201",
                "building": "Main",
                "type": "Lab",
                "capacity": 60,
                "equipment": {"projector": False, "computerSystems": {"available": True, "count": 60}},
            },
        ],
    }
