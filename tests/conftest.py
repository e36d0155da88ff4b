"""
Shared fixtures: the FastAPI app backed by an in-memory mongomock
client, plus helpers that insert universities and staff users directly.
"""

import mongomock
import pytest
from fastapi.testclient import TestClient

from app.core.auth import hash_password
from app.core.config import Settings
from app.main import create_app
from app.services.mongo_service import utcnow

PASSWORD = "password123"


@pytest.fixture
def settings():
    return Settings(mongodb_db="university_platform_test")


@pytest.fixture
def mongo_client():
    return mongomock.MongoClient()


@pytest.fixture
def db(mongo_client, settings):
    return mongo_client[settings.mongodb_db]


@pytest.fixture
def client(settings, mongo_client):
    app = create_app(settings=settings, mongo_client=mongo_client)
    with TestClient(app) as test_client:
        yield test_client


def insert_user(db, email, role="reviewer", name="Staff Member", is_active=True):
    now = utcnow()
    doc = {
        "name": name,
        "email": email,
        "password": hash_password(PASSWORD),
        "role": role,
        "isActive": is_active,
        "createdAt": now,
        "updatedAt": now
    }
    doc["_id"] = db.users.insert_one(doc).inserted_id
    return doc


def login(client, email, password=PASSWORD):
    response = client.post("/api/users/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.json()
    return {"Authorization": f"Bearer {response.json()['data']['token']}"}


@pytest.fixture
def admin(db):
    return insert_user(db, "admin@example.com", role="admin", name="Admin")


@pytest.fixture
def admin_headers(client, admin):
    return login(client, admin["email"])


@pytest.fixture
def reviewer(db):
    return insert_user(db, "reviewer@example.com", role="reviewer", name="Reviewer")


@pytest.fixture
def reviewer_headers(client, reviewer):
    return login(client, reviewer["email"])


@pytest.fixture
def make_university(db):
    """Insert an active university; keyword arguments override the defaults."""
    def factory(**overrides):
        now = utcnow()
        doc = {
            "name": "Test University",
            "country": "Canada",
            "city": "Toronto",
            "description": "A research university",
            "degreeLevel": "Masters",
            "programs": ["Computer Science", "Engineering"],
            "minGPA": 3.0,
            "minIELTS": 6.5,
            "tuitionFee": 30000,
            "scholarshipsAvailable": False,
            "intakeSeasons": ["Fall"],
            "isActive": True,
            "createdAt": now,
            "updatedAt": now
        }
        doc.update(overrides)
        doc["_id"] = db.universities.insert_one(doc).inserted_id
        return doc

    return factory


@pytest.fixture
def application_payload():
    def factory(university_id, **overrides):
        payload = {
            "studentName": "Jane Doe",
            "email": "jane@example.com",
            "phone": "+1 555 0100",
            "gpa": 3.6,
            "ielts": 7.0,
            "universityId": str(university_id),
            "programApplied": "Computer Science",
            "applicationFee": 100
        }
        payload.update(overrides)
        return payload

    return factory
