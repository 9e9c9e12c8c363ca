from __future__ import annotations

import datetime
from types import SimpleNamespace

import pytest

from app.utils.presupuesto import (
    bucket_moneda,
    calcular_balance,
    normalizar_estado,
    por_vencer,
    seleccionar_periodo_activo,
    sumar_anios,
)


def _periodo(presupuesto, estado="PENDIENTE", nombre="P"):
    return SimpleNamespace(presupuesto_asignado=presupuesto, estado=estado, nombre=nombre)


def _montos(*valores):
    return [SimpleNamespace(monto=v) for v in valores]


def test_balance_with_injection_and_two_orders():
    balance = calcular_balance(_periodo(1000), _montos(200), _montos(300, 150))
    assert balance.presupuesto_actual == 1200
    assert balance.monto_ejecutado == 450
    assert balance.saldo == 750
    assert balance.porcentaje_ejecucion == pytest.approx(37.5)


def test_zero_budget_guards_percentage_and_allows_negative_balance():
    balance = calcular_balance(_periodo(0), [], _montos(50))
    assert balance.presupuesto_actual == 0
    assert balance.porcentaje_ejecucion == 0
    assert balance.saldo == -50


@pytest.mark.parametrize(
    ("asignado", "inyectado", "ejecutado"),
    [(0, 0, 0), (500, 0, 125), (1000, 250, 1250), (10, 5, 0), (100, 0, 300)],
)
def test_balance_identity(asignado, inyectado, ejecutado):
    balance = calcular_balance(_periodo(asignado), _montos(inyectado), _montos(ejecutado))
    assert balance.saldo == pytest.approx(asignado + inyectado - ejecutado)
    if asignado + inyectado > 0:
        assert balance.porcentaje_ejecucion == pytest.approx(100 * ejecutado / (asignado + inyectado))


def test_percentage_is_unclamped_but_visible_value_is_clamped():
    balance = calcular_balance(_periodo(100), [], _montos(300))
    assert balance.porcentaje_ejecucion == pytest.approx(300)
    assert balance.porcentaje_visible == 100
    assert balance.es_critico(90)


def test_critical_threshold_is_strict():
    assert not calcular_balance(_periodo(100), [], _montos(90)).es_critico(90)
    assert calcular_balance(_periodo(100), [], _montos(90.5)).es_critico(90)


def test_missing_period_yields_zeros():
    balance = calcular_balance(None, _montos(10), _montos(5))
    assert balance.presupuesto_actual == 0
    assert balance.saldo == 0
    assert balance.porcentaje_ejecucion == 0


def test_active_period_prefers_active_state():
    periodos = [_periodo(1, nombre="P1"), _periodo(2, estado="ACTIVO", nombre="P2")]
    assert seleccionar_periodo_activo(periodos).nombre == "P2"


def test_active_period_accepts_legacy_labels():
    periodos = [_periodo(1, nombre="P1"), _periodo(2, estado="Activo", nombre="P2")]
    assert seleccionar_periodo_activo(periodos).nombre == "P2"


def test_active_period_falls_back_to_first():
    periodos = [_periodo(1, nombre="P1"), _periodo(2, estado="CERRADO", nombre="P2")]
    assert seleccionar_periodo_activo(periodos).nombre == "P1"
    assert seleccionar_periodo_activo([]) is None


def test_normalizar_estado():
    assert normalizar_estado("Pendiente") == "PENDIENTE"
    assert normalizar_estado(" active ") == "ACTIVO"
    assert normalizar_estado("en revisión") == "EN REVISIÓN"
    assert normalizar_estado(None) is None


def test_expiring_window_boundaries():
    hoy = datetime.date(2026, 3, 1)
    assert por_vencer(hoy, hoy)
    assert por_vencer(hoy + datetime.timedelta(days=90), hoy)
    assert not por_vencer(hoy + datetime.timedelta(days=91), hoy)
    assert not por_vencer(hoy - datetime.timedelta(days=1), hoy)
    assert not por_vencer(None, hoy)


def test_expiring_accepts_datetimes():
    hoy = datetime.date(2026, 3, 1)
    assert por_vencer(datetime.datetime(2026, 3, 1, 23, 59), hoy)


@pytest.mark.parametrize("moneda", ["CRC", "Colones", "colones crc", "crc"])
def test_crc_bucket(moneda):
    assert bucket_moneda(moneda) == "CRC"


@pytest.mark.parametrize("moneda", ["USD", "Dollars", "", None])
def test_usd_bucket(moneda):
    assert bucket_moneda(moneda) == "USD"


def test_sumar_anios_handles_leap_day():
    assert sumar_anios(datetime.date(2026, 1, 1), 1) == datetime.date(2027, 1, 1)
    assert sumar_anios(datetime.date(2028, 2, 29), 1) == datetime.date(2029, 2, 28)
