from __future__ import annotations

import datetime

import pytest

from app.exporters.csv_exporter import to_csv
from app.models import Contrato, Pedido
from app.schemas.common import FilterParams
from app.services import exportacion_service


def test_csv_quotes_only_when_needed():
    texto = to_csv(
        ["Proveedor", "Monto", "Nota"],
        [['Acme, Inc. "Best"', "10.00", None], ["Simple", "1.50", "linea\nnueva"]],
    )
    assert texto.splitlines()[0] == "Proveedor,Monto,Nota"
    assert texto.split("\n")[1] == '"Acme, Inc. ""Best""",10.00,'
    assert '"linea\nnueva"' in texto
    assert texto.endswith("\n")


def test_filenames_are_date_stamped():
    hoy = datetime.date(2026, 3, 1)
    assert exportacion_service.make_filename("contratos", "csv", hoy) == "contratos_export_2026-03-01.csv"
    assert exportacion_service.make_filename("pedidos", "xlsx", hoy) == "historial_pedidos_2026-03-01.xlsx"
    assert (
        exportacion_service.make_filename("inyecciones", "csv", hoy)
        == "inyecciones_presupuesto_2026-03-01.csv"
    )


def test_unknown_module_raises(db):
    with pytest.raises(ValueError):
        exportacion_service.get_dataset(db, "usuarios", FilterParams())


def test_contracts_export_one_row_per_item(crear_contrato, db):
    crear_contrato(
        proveedor='Acme, Inc. "Best"',
        items=[
            {"codigo": "MED-001", "nombre": "Paracetamol 500mg", "precioUnitario": "2.5"},
            {"codigo": "MED-002", "nombre": "Ibuprofeno 400mg", "moneda": "colones", "precioUnitario": 75},
        ],
    )
    dataset = exportacion_service.get_dataset(db, "contratos", FilterParams())

    assert len(dataset.rows) == 2
    assert [r[6] for r in dataset.rows] == ["MED-001", "MED-002"]
    assert dataset.rows[0][4] == "Periodo 1"
    assert dataset.rows[1][9] == "CRC"
    assert dataset.rows[0][10] == "ACTIVO"

    lineas = exportacion_service.export_csv(db, "contratos", FilterParams()).decode("utf-8").split("\n")
    assert lineas[0].startswith("ID,Código Contrato,Referencia Legal")
    assert '"Acme, Inc. ""Best"""' in lineas[1]
    assert lineas[1].endswith(",Paracetamol 500mg,2.50,USD,ACTIVO")


def test_contract_without_items_or_periods_still_exported(db):
    db.add(Contrato(codigo="N/A", nombre="Contrato General", proveedor="Proveedor X", moneda="USD"))
    db.commit()

    fila = exportacion_service.get_dataset(db, "contratos", FilterParams()).rows[0]
    assert fila[4] == "N/A"
    assert fila[6] == ""
    assert fila[7] == "Contrato General"
    assert fila[10] == ""


def test_orders_export_follows_history_search(crear_contrato, db):
    contrato = crear_contrato()
    periodo_id = contrato.periodos[0].id
    db.add(Pedido(period_id=periodo_id, monto=12.5, cantidad_medicamento=5,
                  fecha_pedido=datetime.date(2026, 2, 3), numero_pedido_sap="SAP-77",
                  medicamento_nombre="Paracetamol 500mg"))
    db.add(Pedido(period_id=periodo_id, monto=40, cantidad_medicamento=16,
                  fecha_pedido=datetime.date(2026, 2, 4), numero_pedido_sap="SAP-88"))
    db.commit()

    texto = exportacion_service.export_csv(db, "pedidos", FilterParams(q="sap-77")).decode("utf-8")
    lineas = texto.strip().split("\n")
    assert len(lineas) == 2
    assert lineas[1] == (
        "2026-02-03,2026LN-000012,CL-0045-2026,Periodo 1,MED-001,Paracetamol 500mg,"
        "Paracetamol 500mg,Distribuidora Médica S.A.,SAP-77,-,-,-,12.50,USD"
    )


def test_excel_export_is_a_workbook(crear_contrato, db):
    crear_contrato()
    contenido = exportacion_service.export_excel(db, "contratos", FilterParams())
    assert contenido[:2] == b"PK"


# ---------------------------------------------------------------------------
# HTTP surface
# ---------------------------------------------------------------------------


def test_api_csv_download(client, contrato_payload):
    client.post("/api/contratos/", json=contrato_payload())

    respuesta = client.get("/api/exportar/csv", params={"modulo": "contratos"})
    assert respuesta.status_code == 200
    assert respuesta.headers["content-type"].startswith("text/csv")
    disposicion = respuesta.headers["content-disposition"]
    assert disposicion.startswith('attachment; filename="contratos_export_')
    assert "Paracetamol 500mg" in respuesta.text


def test_api_excel_download(client, contrato_payload):
    client.post("/api/contratos/", json=contrato_payload())
    respuesta = client.get("/api/exportar/excel", params={"modulo": "pedidos"})
    assert respuesta.status_code == 200
    assert respuesta.content[:2] == b"PK"
    assert "historial_pedidos_" in respuesta.headers["content-disposition"]


def test_api_invalid_module_is_400(client):
    respuesta = client.get("/api/exportar/csv", params={"modulo": "usuarios"})
    assert respuesta.status_code == 400
