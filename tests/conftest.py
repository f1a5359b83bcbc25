import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from videoshare.config import Settings, get_settings
from videoshare.database import Datastore
from videoshare.main import create_app

TEST_PRIVATE_KEY = "private_test_key"


@pytest.fixture
def datastore():
    store = Datastore("sqlite://", poolclass=StaticPool)
    store.create_all()
    yield store
    store.dispose()


@pytest.fixture
def broken_datastore(tmp_path):
    """Points at a directory that does not exist, so every connection attempt fails."""
    return Datastore(f"sqlite:///{tmp_path / 'missing' / 'nested' / 'app.db'}")


@pytest.fixture
def app(datastore):
    app = create_app(datastore=datastore)
    app.dependency_overrides[get_settings] = lambda: Settings(imagekit_private_key=TEST_PRIVATE_KEY)
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers(client):
    res = client.post("/api/auth/register", json={"email": "uploader@example.com", "password": "secret123"})
    assert res.status_code == 201
    res = client.post("/api/auth/login", json={"email": "uploader@example.com", "password": "secret123"})
    assert res.status_code == 200
    return {"Authorization": f"Bearer {res.json()['access_token']}"}
