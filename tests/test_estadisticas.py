from __future__ import annotations

import datetime

from app.models import Pedido
from app.services import estadistica_service

HOY = datetime.date(2026, 11, 15)


def _pedido(db, periodo_id, monto, fecha, nombre=None):
    db.add(
        Pedido(
            period_id=periodo_id,
            monto=monto,
            cantidad_medicamento=1,
            fecha_pedido=fecha,
            medicamento_nombre=nombre,
        )
    )


def test_last_months_cross_year_boundary():
    meses = estadistica_service.ultimos_meses(datetime.date(2026, 2, 10))
    assert meses == [(2025, 9), (2025, 10), (2025, 11), (2025, 12), (2026, 1), (2026, 2)]


def test_crc_amounts_are_converted():
    assert estadistica_service.a_usd(5000, "CRC", 500) == 10
    assert estadistica_service.a_usd(5000, "USD", 500) == 5000


def test_execution_by_currency_and_top_contracts(crear_contrato, db):
    usd = crear_contrato()
    crc = crear_contrato(
        items=[{"codigo": "MED-300", "nombre": "Insulina", "moneda": "CRC", "precioUnitario": 1000}],
        periodoInicial={"fechaInicio": "2026-01-01", "presupuestoInicial": 100000},
    )
    _pedido(db, usd.periodos[0].id, 250, datetime.date(2026, 10, 3))
    _pedido(db, crc.periodos[0].id, 80000, datetime.date(2026, 11, 2))
    db.commit()

    stats = estadistica_service.get_estadisticas(db, hoy=HOY)

    assert stats.ejecucion_usd.presupuesto == 1000
    assert stats.ejecucion_usd.porcentaje == 25.0
    assert stats.ejecucion_crc.ejecutado == 80000
    assert stats.ejecucion_crc.porcentaje == 80.0
    assert [c.codigo for c in stats.top_contratos] == ["MED-300", "MED-001"]


def test_top_contracts_keep_highest_per_code(crear_contrato, db):
    bajo = crear_contrato()
    alto = crear_contrato()
    _pedido(db, bajo.periodos[0].id, 100, datetime.date(2026, 10, 1))
    _pedido(db, alto.periodos[0].id, 700, datetime.date(2026, 10, 1))
    db.commit()

    top = estadistica_service.get_estadisticas(db, hoy=HOY).top_contratos
    assert len(top) == 1
    assert top[0].contrato_id == alto.id
    assert top[0].porcentaje_ejecucion == 70.0


def test_expiring_contracts_sorted_by_end_date(crear_contrato, db):
    crear_contrato(periodoInicial={"fechaInicio": "2026-01-20", "presupuestoInicial": 10})
    crear_contrato(periodoInicial={"fechaInicio": "2026-01-05", "presupuestoInicial": 10})
    crear_contrato(periodoInicial={"fechaInicio": "2026-06-01", "presupuestoInicial": 10})

    vencen = estadistica_service.get_estadisticas(db, hoy=HOY).por_vencer
    assert [v.fecha_fin for v in vencen] == [datetime.date(2027, 1, 5), datetime.date(2027, 1, 20)]
    assert vencen[0].dias_restantes == 51


def test_top_medications_normalised_to_usd(crear_contrato, db):
    usd = crear_contrato()
    crc = crear_contrato(
        items=[{"codigo": "MED-300", "nombre": "Insulina", "moneda": "colones", "precioUnitario": 1}],
        periodoInicial={"fechaInicio": "2026-01-01", "presupuestoInicial": 1000000},
    )
    _pedido(db, usd.periodos[0].id, 300, datetime.date(2026, 9, 1), nombre="Paracetamol 500mg")
    _pedido(db, usd.periodos[0].id, 50, datetime.date(2026, 9, 2), nombre="Paracetamol 500mg")
    _pedido(db, crc.periodos[0].id, 250000, datetime.date(2026, 9, 3), nombre="Insulina")
    _pedido(db, usd.periodos[0].id, 5, datetime.date(2026, 9, 4))
    db.commit()

    top = estadistica_service.get_estadisticas(db, hoy=HOY).top_medicamentos
    assert [(m.nombre, m.total_usd, m.pedidos) for m in top] == [
        ("Insulina", 500.0, 1),
        ("Paracetamol 500mg", 355.0, 3),
    ]


def test_monthly_trend_covers_six_months(crear_contrato, db):
    contrato = crear_contrato()
    periodo_id = contrato.periodos[0].id
    _pedido(db, periodo_id, 100, datetime.date(2026, 6, 30))
    _pedido(db, periodo_id, 200, datetime.date(2026, 11, 1))
    _pedido(db, periodo_id, 50, datetime.date(2026, 11, 9))
    _pedido(db, periodo_id, 400, datetime.date(2026, 5, 31))
    db.commit()

    tendencia = estadistica_service.get_estadisticas(db, hoy=HOY).tendencia_mensual

    assert [t.label for t in tendencia] == ["Jun", "Jul", "Ago", "Sep", "Oct", "Nov"]
    assert tendencia[0].total_usd == 100
    assert tendencia[-1].total_usd == 250
    assert tendencia[-1].porcentaje == 100.0
    assert tendencia[0].porcentaje == 40.0
    assert tendencia[1].porcentaje == 0.0


def test_empty_database(db):
    stats = estadistica_service.get_estadisticas(db, hoy=HOY)
    assert stats.top_contratos == []
    assert stats.ejecucion_usd.porcentaje == 0.0
    assert all(t.porcentaje == 0.0 for t in stats.tendencia_mensual)


def test_api_statistics(client, contrato_payload):
    client.post("/api/contratos/", json=contrato_payload())
    cuerpo = client.get("/api/estadisticas/").json()
    assert cuerpo["ejecucionUsd"]["presupuesto"] == 1000
    assert len(cuerpo["tendenciaMensual"]) == 6
