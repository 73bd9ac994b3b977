import os
import tempfile

# The engine is built from DATABASE_URL at import: point it at a scratch
# SQLite file before anything under ``app`` is imported.
_DB_DIR = tempfile.mkdtemp(prefix="retail_ops_test_")
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR}/test.db"
os.environ["AUTO_CREATE_TABLES"] = "true"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

import app.models  # noqa: E402,F401
from app.core.database import engine  # noqa: E402
from app.main import app as fastapi_app  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def create_test_db():
    SQLModel.metadata.create_all(engine)
    yield
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(autouse=True)
def clean_tables():
    yield
    with engine.begin() as conn:
        for table in reversed(SQLModel.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def session():
    with Session(engine) as ses:
        yield ses


@pytest.fixture
def client():
    with TestClient(fastapi_app) as c:
        yield c


@pytest.fixture
def directory(client):
    """Two districts, three stores (one unassigned), two products."""
    north = client.post("/api/districts", json={"name": "North"}).json()
    south = client.post("/api/districts", json={"name": "South"}).json()
    alpha = client.post("/api/stores", json={"name": "Alpha", "districtId": north["id"]}).json()
    beta = client.post("/api/stores", json={"name": "Beta", "districtId": south["id"]}).json()
    loose = client.post("/api/stores", json={"name": "Loose"}).json()
    bread = client.post("/api/products", json={"name": "Bread", "costPrice": 40, "salePrice": 100}).json()
    milk = client.post("/api/products", json={"name": "Milk", "costPrice": 50, "salePrice": 200}).json()
    return {
        "north": north,
        "south": south,
        "alpha": alpha,
        "beta": beta,
        "loose": loose,
        "bread": bread,
        "milk": milk,
    }
