import os

# precisa vir antes de importar o painel
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["MOCK_EMAIL"] = "admin@orla33.com"
os.environ["MOCK_PASSWORD"] = "orla33admin"
os.environ["MOCK_AUTH_DELAY_MS"] = "0"

import pytest
from fastapi.testclient import TestClient

from painel.database import Base, SessionLocal, engine
from painel.gateway import Gateway
from painel.main import app

MOCK_LOGIN = {"email": "admin@orla33.com", "password": "orla33admin"}


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def gw(db):
    return Gateway(db)


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_client(client):
    r = client.post("/api/auth/login", json=MOCK_LOGIN)
    assert r.status_code == 200, r.text
    return client
