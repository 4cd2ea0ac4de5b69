import os
import sys
from pathlib import Path

# Agregar directorio raíz al PYTHONPATH para imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Base en memoria para toda la corrida de tests
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("RATE_LIMIT_VISITS", "10000/minute")
os.environ.setdefault("JWT_SECRET_KEY", "clave-de-tests")

import pytest
from fastapi.testclient import TestClient

from database import conexion
from database.conexion import Base, SessionLocal
from main import app


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(table.delete())
        session.commit()
        session.close()


@pytest.fixture
def client(db):
    """TestClient que usa la misma sesión que el test"""
    def override_get_db():
        yield db

    app.dependency_overrides[conexion.get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(conexion.get_db, None)
