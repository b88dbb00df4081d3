import pytest
from fastapi.testclient import TestClient

from healthbot.main import app
from healthbot.core.database import get_db, get_redis, Base
from healthbot.core.email import get_email_sender

from .utils import engine, TestingSessionLocal

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db

@pytest.fixture(scope="function")
def test_db():
    # Create tables
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def db_session(test_db):
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def client(test_db):
    # Startup seeds the administrator into the fresh tables
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client

@pytest.fixture(autouse=True)
def reset_side_effects():
    get_redis().flushall()
    get_email_sender().clear()
    yield
    get_email_sender().clear()

@pytest.fixture
def outbox():
    return get_email_sender().sent
