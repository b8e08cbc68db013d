import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from studydesk.db import Base, create_schema, get_db
from studydesk.main import app
from studydesk.routers.auth import pwd_context

# Cheap hashes keep the suite fast
pwd_context.update(bcrypt__rounds=4)


@pytest.fixture
def engine():
	engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
	create_schema(bind=engine)
	yield engine
	Base.metadata.drop_all(bind=engine)
	engine.dispose()


@pytest.fixture
def session_factory(engine):
	return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
	session = session_factory()
	yield session
	session.close()


@pytest.fixture
def client(session_factory):
	def _get_db():
		session = session_factory()
		try:
			yield session
		finally:
			session.close()

	app.dependency_overrides[get_db] = _get_db
	yield TestClient(app)
	app.dependency_overrides.clear()


def register(client, email, role="STUDENT", name=None, password="secret-pass"):
	resp = client.post(
		"/auth/register",
		json={"email": email, "password": password, "name": name or email.split("@")[0], "role": role},
	)
	assert resp.status_code == 201, resp.text
	body = resp.json()
	return body["user"], {"Authorization": f"Bearer {body['token']}"}


@pytest.fixture
def instructor(client):
	return register(client, "teacher@example.com", role="INSTRUCTOR", name="Ms Teacher")


@pytest.fixture
def student(client):
	return register(client, "alice@example.com", name="Alice")


@pytest.fixture
def other_student(client):
	return register(client, "bob@example.com", name="Bob")


SAMPLE_TEST = {
	"title": "Geography basics",
	"description": "Capitals and letters",
	"showAnswersAfterAttempt": True,
	"questions": [
		{"type": "MCQ", "questionText": "Pick B", "options": ["A", "B", "C"], "correctAnswer": "B", "points": 2},
		{"type": "SHORT_ANSWER", "questionText": "Capital of France?", "correctAnswer": "Paris", "points": 3},
	],
}


@pytest.fixture
def sample_test(client, instructor):
	_, headers = instructor
	resp = client.post("/tests", json=SAMPLE_TEST, headers=headers)
	assert resp.status_code == 201, resp.text
	return resp.json()
