import os
import pytest

# precisa vir antes de importar o app: config lê o ambiente na importação
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["NOTIFY_DELAY_MS"] = "0"
os.environ["DEMO_PASSWORD"] = "senha123"
os.environ["SEED_DEMO"] = "1"

from fastapi.testclient import TestClient

from helpdesk.main import app
from helpdesk.database import Base, engine
from helpdesk.seed import seed_data
from helpdesk.security import create_access_token, clear_revoked
from helpdesk.chat import room

DEMO_PASSWORD = "senha123"


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    seed_data()
    clear_revoked()
    room.clear()
    yield


@pytest.fixture()
def client():
    return TestClient(app)


def auth_headers(user_id: str, role: str) -> dict:
    token = create_access_token({"uid": user_id, "role": role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_headers():
    return auth_headers("u1", "ADMIN")


@pytest.fixture()
def joao_headers():
    return auth_headers("u2", "USER")


@pytest.fixture()
def maria_headers():
    return auth_headers("u3", "USER")
