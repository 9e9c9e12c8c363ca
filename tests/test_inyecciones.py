from __future__ import annotations

import base64
import datetime

import pytest
from fastapi import HTTPException

from app.config import get_settings
from app.models import Contrato, Periodo
from app.schemas.common import FilterParams
from app.schemas.inyeccion import InyeccionCreate, InyeccionUpdate
from app.services import inyeccion_service, periodo_service


def _payload(documento: str, **campos) -> InyeccionCreate:
    return InyeccionCreate.model_validate({"monto": 250, "documento": documento, **campos})


def test_pdf_data_url_is_decoded(pdf_documento):
    contenido = inyeccion_service.decodificar_documento(pdf_documento(size=10))
    assert contenido.startswith(b"%PDF-1.4")


@pytest.mark.parametrize(
    "documento",
    [
        "data:image/png;base64,iVBORw0KGgo=",
        "JVBERi0xLjQ=",
        "data:application/pdf;base64,@@no-es-base64@@",
    ],
)
def test_invalid_documents_are_rejected(documento):
    with pytest.raises(HTTPException) as exc:
        inyeccion_service.decodificar_documento(documento)
    assert exc.value.status_code == 422


def test_document_size_limit(pdf_documento):
    limite = 500 * 1024
    inyeccion_service.decodificar_documento(pdf_documento(size=limite - 9))
    with pytest.raises(HTTPException) as exc:
        inyeccion_service.decodificar_documento(pdf_documento(size=limite))
    assert "500 KB" in exc.value.detail


def test_injection_to_explicit_period(crear_contrato, db, pdf_documento):
    contrato = crear_contrato()
    periodo = contrato.periodos[0]

    inyeccion = inyeccion_service.create_inyeccion(
        db, _payload(pdf_documento(), periodId=periodo.id, fecha="2026-04-01", oficio="OF-123")
    )

    assert inyeccion.period_id == periodo.id
    assert inyeccion.moneda == "USD"
    assert inyeccion.tiene_documento is True
    assert inyeccion.descripcion == "Inyección Presupuestaria"
    assert periodo_service.get_balance(db, periodo.id).presupuesto_actual == 1250


def test_injection_defaults_to_today(crear_contrato, db, pdf_documento):
    contrato = crear_contrato()
    inyeccion = inyeccion_service.create_inyeccion(
        db, _payload(pdf_documento(), periodId=contrato.periodos[0].id)
    )
    assert inyeccion.fecha == datetime.date.today()


def test_injection_by_contract_goes_to_active_period(crear_contrato, db, pdf_documento):
    contrato = crear_contrato()
    activo = contrato.periodos[0]
    db.add(
        Periodo(
            contract_id=contrato.id,
            nombre="Periodo 0",
            fecha_inicio=datetime.date(2025, 1, 1),
            fecha_fin=datetime.date(2025, 12, 31),
            presupuesto_asignado=10,
            estado="CERRADO",
        )
    )
    db.commit()

    inyeccion = inyeccion_service.create_inyeccion(
        db, _payload(pdf_documento(), contratoId=contrato.id)
    )
    assert inyeccion.period_id == activo.id


def test_contract_without_active_period_uses_first(db, pdf_documento):
    contrato = Contrato(codigo="MED-010", nombre="Heparina", moneda="CRC")
    contrato.periodos = [
        Periodo(nombre="B", fecha_inicio=datetime.date(2026, 6, 1), presupuesto_asignado=5, estado="Pendiente"),
        Periodo(nombre="A", fecha_inicio=datetime.date(2026, 1, 1), presupuesto_asignado=5, estado="Pendiente"),
    ]
    db.add(contrato)
    db.commit()

    inyeccion = inyeccion_service.create_inyeccion(
        db, _payload(pdf_documento(), contratoId=contrato.id)
    )
    periodo = db.get(Periodo, inyeccion.period_id)
    assert periodo.nombre == "A"
    assert inyeccion.moneda == "CRC"


def test_contract_without_periods_is_rejected(db, pdf_documento):
    contrato = Contrato(codigo="MED-011", nombre="Sin periodos", moneda="USD")
    db.add(contrato)
    db.commit()

    with pytest.raises(HTTPException) as exc:
        inyeccion_service.create_inyeccion(db, _payload(pdf_documento(), contratoId=contrato.id))
    assert exc.value.status_code == 422
    assert "no tiene periodos" in exc.value.detail


def test_period_from_another_contract_is_rejected(crear_contrato, db, pdf_documento):
    contrato = crear_contrato()
    otro = crear_contrato()
    with pytest.raises(HTTPException) as exc:
        inyeccion_service.create_inyeccion(
            db,
            _payload(pdf_documento(), periodId=otro.periodos[0].id, contratoId=contrato.id),
        )
    assert exc.value.status_code == 422


def test_target_is_required(pdf_documento):
    with pytest.raises(ValueError):
        InyeccionCreate.model_validate({"monto": 10, "documento": pdf_documento()})


def test_non_positive_amount_is_rejected(pdf_documento):
    with pytest.raises(ValueError):
        InyeccionCreate.model_validate({"monto": 0, "documento": pdf_documento(), "periodId": 1})


def test_update_keeps_stored_document(crear_contrato, db, pdf_documento):
    contrato = crear_contrato()
    original = pdf_documento(size=32)
    creada = inyeccion_service.create_inyeccion(
        db,
        _payload(original, periodId=contrato.periodos[0].id, documentoNombre="oficio.pdf"),
    )

    actualizada = inyeccion_service.update_inyeccion(
        db, creada.id, InyeccionUpdate(monto=400, oficio="OF-999")
    )
    assert actualizada.monto == 400
    assert actualizada.oficio == "OF-999"

    contenido, nombre = inyeccion_service.get_documento(db, creada.id)
    assert nombre == "oficio.pdf"
    assert contenido == base64.b64decode(original.split(",", 1)[1])


def test_stored_document_is_served_after_limit_is_lowered(crear_contrato, db, pdf_documento, monkeypatch):
    contrato = crear_contrato()
    documento = pdf_documento(size=2048)
    creada = inyeccion_service.create_inyeccion(
        db, _payload(documento, periodId=contrato.periodos[0].id)
    )
    monkeypatch.setattr(get_settings(), "MAX_DOCUMENTO_BYTES", 1024)

    contenido, nombre = inyeccion_service.get_documento(db, creada.id)
    assert len(contenido) == 2048 + len(b"%PDF-1.4\n")
    assert nombre == f"inyeccion_{creada.id}.pdf"

    with pytest.raises(HTTPException):
        inyeccion_service.decodificar_documento(documento)


def test_history_search_by_letter(crear_contrato, db, pdf_documento):
    contrato = crear_contrato()
    periodo_id = contrato.periodos[0].id
    inyeccion_service.create_inyeccion(
        db, _payload(pdf_documento(), periodId=periodo_id, oficio="DG-2026-001", fecha="2026-02-01")
    )
    inyeccion_service.create_inyeccion(
        db, _payload(pdf_documento(), periodId=periodo_id, oficio="DG-2026-044", fecha="2026-03-01")
    )

    todas = inyeccion_service.list_historial(db, FilterParams())
    assert [i.oficio for i in todas] == ["DG-2026-044", "DG-2026-001"]
    assert todas[0].proveedor == "Distribuidora Médica S.A."

    filtradas = inyeccion_service.list_historial(db, FilterParams(q="044"))
    assert [i.oficio for i in filtradas] == ["DG-2026-044"]


# ---------------------------------------------------------------------------
# HTTP surface
# ---------------------------------------------------------------------------


def test_api_injection_flow(client, contrato_payload, pdf_documento):
    contrato = client.post("/api/contratos/", json=contrato_payload()).json()

    creada = client.post(
        "/api/inyecciones/",
        json={
            "contratoId": contrato["id"],
            "monto": "1,500",
            "documento": pdf_documento(),
            "documentoNombre": "respaldo.pdf",
        },
    )
    assert creada.status_code == 201
    cuerpo = creada.json()
    assert cuerpo["tieneDocumento"] is True
    assert "documento" not in cuerpo

    documento = client.get(f"/api/inyecciones/{cuerpo['id']}/documento")
    assert documento.status_code == 200
    assert documento.headers["content-type"] == "application/pdf"
    assert documento.content.startswith(b"%PDF")

    saldo = client.get(f"/api/periodos/{cuerpo['periodId']}/saldo").json()
    assert saldo["presupuestoActual"] == 2500
    assert saldo["totalInyectado"] == 1500

    assert len(client.get(f"/api/periodos/{cuerpo['periodId']}/inyecciones").json()) == 1
    assert client.delete(f"/api/inyecciones/{cuerpo['id']}").status_code == 200
    assert client.get(f"/api/inyecciones/{cuerpo['id']}").status_code == 404


def test_api_rejects_non_pdf(client, contrato_payload):
    contrato = client.post("/api/contratos/", json=contrato_payload()).json()
    respuesta = client.post(
        "/api/inyecciones/",
        json={
            "contratoId": contrato["id"],
            "monto": 10,
            "documento": "data:text/plain;base64,aG9sYQ==",
        },
    )
    assert respuesta.status_code == 422
