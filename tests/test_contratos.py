from __future__ import annotations

import datetime

import pytest
from fastapi import HTTPException
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from app.models import Contrato, ContratoItem, Periodo
from app.schemas.contrato import ContratoCreate, ContratoUpdate
from app.schemas.pedido import PedidoCreate, PedidoUpdate
from app.services import contrato_service, pedido_service


def test_create_contract_with_items_and_active_initial_period(crear_contrato, db):
    contrato = crear_contrato(
        items=[
            {"codigo": "MED-010", "nombre": "Ibuprofeno", "moneda": "colones", "precioUnitario": "1,500"},
            {"codigo": "MED-011", "nombre": "Amoxicilina", "precioUnitario": 3},
        ],
        periodoInicial={"fechaInicio": "2026-02-01", "presupuestoInicial": 5000, "duracionAnios": 2},
    )

    assert contrato.codigo == "MED-010"
    assert contrato.nombre == "Ibuprofeno"
    assert contrato.moneda == "CRC"
    assert [i.codigo for i in contrato.items] == ["MED-010", "MED-011"]

    (periodo,) = contrato.periodos
    assert periodo.nombre == "Periodo 1"
    assert periodo.estado == "ACTIVO"
    assert periodo.fecha_inicio == datetime.date(2026, 2, 1)
    assert periodo.fecha_fin == datetime.date(2028, 2, 1)
    assert float(periodo.presupuesto_asignado) == 5000
    assert float(periodo.presupuesto_inicial) == 5000
    assert periodo.moneda == "CRC"


def test_create_is_atomic_on_store_failure(db, contrato_payload, monkeypatch):
    def _commit_falla():
        db.flush()
        raise OperationalError("INSERT", {}, Exception("conexión perdida"))

    monkeypatch.setattr(db, "commit", _commit_falla)

    with pytest.raises(OperationalError):
        contrato_service.create_contrato(db, ContratoCreate.model_validate(contrato_payload()))

    assert db.query(Contrato).count() == 0
    assert db.query(ContratoItem).count() == 0
    assert db.query(Periodo).count() == 0


def test_list_sorted_by_first_item_name_and_searchable(crear_contrato, db):
    from app.schemas.common import FilterParams

    crear_contrato(proveedor="Zeta", items=[{"codigo": "Z1", "nombre": "zinc", "precioUnitario": 1}])
    crear_contrato(
        proveedor="Alfa",
        items=[
            {"codigo": "B1", "nombre": "Omeprazol", "precioUnitario": 1},
            {"codigo": "B2", "nombre": "acetaminofén", "precioUnitario": 1},
        ],
    )

    contratos = contrato_service.list_contratos(db, FilterParams())
    assert [c.proveedor for c in contratos] == ["Alfa", "Zeta"]
    assert contratos[0].periodos == ["Periodo 1"]

    encontrados = contrato_service.list_contratos(db, FilterParams(q="OMEPRA"))
    assert [c.proveedor for c in encontrados] == ["Alfa"]


def test_update_replaces_items_and_copies_header(crear_contrato, db):
    contrato = crear_contrato()
    data = ContratoUpdate.model_validate(
        {"concurso": "2026LN-999", "items": [{"codigo": "N-1", "nombre": "Nuevo", "precioUnitario": 9}]}
    )
    contrato_service.update_contrato(db, contrato.id, data)

    detalle = contrato_service.get_detalle(db, contrato.id)
    assert detalle.concurso == "2026LN-999"
    assert detalle.proveedor == "Distribuidora Médica S.A."
    assert [i.codigo for i in detalle.items] == ["N-1"]
    assert detalle.codigo == "N-1"
    assert db.query(ContratoItem).count() == 1


def test_replacing_items_detaches_existing_orders(crear_contrato, db):
    contrato = crear_contrato(
        items=[{"codigo": "MED-B", "nombre": "Barato", "precioUnitario": 1}],
    )
    item_viejo = contrato.items[0]
    pedido = pedido_service.create_pedido(
        db,
        contrato.periodos[0].id,
        PedidoCreate.model_validate(
            {"fechaPedido": "2026-03-01", "itemId": item_viejo.id, "cantidadMedicamento": 10}
        ),
    )
    assert float(pedido.monto) == 10.0

    contrato_service.update_contrato(
        db,
        contrato.id,
        ContratoUpdate.model_validate(
            {"items": [{"codigo": "MED-C", "nombre": "Caro", "precioUnitario": 50}]}
        ),
    )

    db.refresh(pedido)
    assert pedido.item_id is None
    assert pedido.medicamento_nombre == "Barato"
    assert pedido.medicamento_codigo == "MED-B"

    with pytest.raises(HTTPException) as exc:
        pedido_service.update_pedido(db, pedido.id, PedidoUpdate(cantidad_medicamento=2))
    assert exc.value.status_code == 422
    assert "MED-B" in exc.value.detail

    actualizado = pedido_service.update_pedido(
        db, pedido.id, PedidoUpdate(cantidad_medicamento=2, monto=2)
    )
    assert float(actualizado.monto) == 2.0
    assert actualizado.medicamento_nombre == "Barato"


def test_sqlite_connections_enforce_foreign_keys(db):
    assert db.execute(text("PRAGMA foreign_keys")).scalar() == 1


def test_delete_cascades(crear_contrato, db):
    contrato = crear_contrato()
    contrato_service.delete_contrato(db, contrato.id)
    assert db.query(Contrato).count() == 0
    assert db.query(Periodo).count() == 0
    assert db.query(ContratoItem).count() == 0


# ---------------------------------------------------------------------------
# HTTP surface
# ---------------------------------------------------------------------------


def test_api_create_and_read_camel_case(client, contrato_payload):
    response = client.post("/api/contratos/", json=contrato_payload())
    assert response.status_code == 201
    body = response.json()
    assert body["contratoLegal"] == "CL-0045-2026"
    assert body["items"][0]["precioUnitario"] == 2.5
    assert body["periodos"] == ["Periodo 1"]

    detalle = client.get(f"/api/contratos/{body['id']}")
    assert detalle.status_code == 200
    assert detalle.json()["proveedor"] == "Distribuidora Médica S.A."


def test_api_rejects_missing_provider_and_too_many_items(client, contrato_payload):
    assert client.post("/api/contratos/", json=contrato_payload(proveedor="  ")).status_code == 422

    items = [{"codigo": f"M{i}", "nombre": f"Med {i}", "precioUnitario": 1} for i in range(4)]
    assert client.post("/api/contratos/", json=contrato_payload(items=items)).status_code == 422
    assert client.post("/api/contratos/", json=contrato_payload(items=[])).status_code == 422


def test_api_unknown_contract_is_404(client):
    response = client.get("/api/contratos/999")
    assert response.status_code == 404
    assert "no encontrado" in response.json()["detail"]


def test_api_store_errors_become_503(client, contrato_payload, monkeypatch):
    def _falla(db, data):
        raise OperationalError("INSERT", {}, Exception("base caída"))

    monkeypatch.setattr(contrato_service, "create_contrato", _falla)
    response = client.post("/api/contratos/", json=contrato_payload())
    assert response.status_code == 503
    assert "base de datos" in response.json()["detail"]


def test_api_list_reflects_writes_despite_cache(client, contrato_payload):
    assert client.get("/api/contratos/").json() == []
    creado = client.post("/api/contratos/", json=contrato_payload()).json()
    assert [c["id"] for c in client.get("/api/contratos/").json()] == [creado["id"]]

    client.delete(f"/api/contratos/{creado['id']}")
    assert client.get("/api/contratos/").json() == []
