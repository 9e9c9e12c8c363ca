from __future__ import annotations

import base64
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTO_CREATE_TABLES"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app import models  # noqa: E402,F401
from app.database import Base, activar_claves_foraneas, get_db  # noqa: E402
from app.main import app as fastapi_app  # noqa: E402
from app.schemas.contrato import ContratoCreate  # noqa: E402
from app.services import contrato_service  # noqa: E402
from app.utils.cache import cache  # noqa: E402


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", activar_claves_foraneas)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    fastapi_app.dependency_overrides[get_db] = _get_db
    yield TestClient(fastapi_app)
    fastapi_app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def contrato_payload():
    def _build(**overrides) -> dict:
        payload = {
            "proveedor": "Distribuidora Médica S.A.",
            "concurso": "2026LN-000012",
            "contratoLegal": "CL-0045-2026",
            "items": [
                {
                    "codigo": "MED-001",
                    "nombre": "Paracetamol 500mg",
                    "moneda": "USD",
                    "precioUnitario": "2.50",
                },
            ],
            "periodoInicial": {
                "fechaInicio": "2026-01-01",
                "presupuestoInicial": "1,000",
            },
        }
        payload.update(overrides)
        return payload

    return _build


@pytest.fixture
def crear_contrato(db, contrato_payload):
    def _crear(**overrides):
        data = ContratoCreate.model_validate(contrato_payload(**overrides))
        return contrato_service.create_contrato(db, data)

    return _crear


@pytest.fixture
def pdf_documento():
    def _build(size: int = 64) -> str:
        contenido = b"%PDF-1.4\n" + b"0" * size
        return "data:application/pdf;base64," + base64.b64encode(contenido).decode("ascii")

    return _build
