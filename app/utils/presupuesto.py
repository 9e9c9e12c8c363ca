"""
Budget arithmetic shared by every screen that shows a period balance.

All functions here are pure: they take already-loaded periods, injections
and orders (ORM rows or any object exposing the same attribute names) and
return plain values.  The dashboard, the injections screen, the contract
detail and the statistics module all call ``calcular_balance`` instead of
summing amounts on their own.

Formulae
--------
- presupuesto_actual   = presupuesto_asignado + Σ inyecciones.monto
- monto_ejecutado      = Σ pedidos.monto
- saldo                = presupuesto_actual − monto_ejecutado
- porcentaje_ejecucion = monto_ejecutado / presupuesto_actual × 100
  (0 when presupuesto_actual <= 0; never clamped here)
"""

from __future__ import annotations

import calendar
import datetime
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from app.utils.constants import (
    ALIAS_ESTADOS_PERIODO,
    ESTADO_ACTIVO,
    MARCADORES_CRC,
    MONEDA_CRC,
    MONEDA_USD,
)


@dataclass(frozen=True)
class BalancePeriodo:
    """Aggregated figures for one contract period.

    Attributes:
        presupuesto_asignado: Budget assigned when the period was created.
        total_inyectado: Sum of all injections recorded for the period.
        presupuesto_actual: Assigned budget plus injections.
        monto_ejecutado: Sum of all order amounts drawn against the period.
        saldo: Remaining balance; negative when orders exceed the budget.
        porcentaje_ejecucion: Unclamped execution percentage.
    """

    presupuesto_asignado: float = 0.0
    total_inyectado: float = 0.0
    presupuesto_actual: float = 0.0
    monto_ejecutado: float = 0.0
    saldo: float = 0.0
    porcentaje_ejecucion: float = 0.0

    @property
    def porcentaje_visible(self) -> float:
        """Execution percentage clamped to [0, 100] for display."""
        return max(0.0, min(self.porcentaje_ejecucion, 100.0))

    def es_critico(self, umbral: float) -> bool:
        return self.porcentaje_ejecucion > umbral


def _monto(value: Any) -> float:
    if value is None:
        return 0.0
    return float(value)


def normalizar_estado(estado: str | None) -> str | None:
    """Map a stored period state (legacy free text included) to its code.

    Unknown labels are returned stripped and upper-cased so callers can
    still display them.
    """
    if estado is None:
        return None
    key = estado.strip().upper()
    return ALIAS_ESTADOS_PERIODO.get(key, key)


def seleccionar_periodo_activo(periodos: Sequence[Any]) -> Any | None:
    """Return the period used for dashboard figures.

    The first period in ``ACTIVO`` state wins; otherwise the first period of
    the caller-ordered list (start date ascending).  ``None`` for an empty
    list; callers treat that as a zero budget.
    """
    for periodo in periodos:
        if normalizar_estado(periodo.estado) == ESTADO_ACTIVO:
            return periodo
    return periodos[0] if periodos else None


def calcular_balance(
    periodo: Any | None,
    inyecciones: Iterable[Any],
    pedidos: Iterable[Any],
) -> BalancePeriodo:
    """Compute budget, execution and balance for a single period.

    Args:
        periodo: Object with ``presupuesto_asignado``; ``None`` yields zeros.
        inyecciones: Objects with a ``monto`` attribute.
        pedidos: Objects with a ``monto`` attribute.

    Returns:
        A ``BalancePeriodo`` with unclamped ``porcentaje_ejecucion``.
    """
    if periodo is None:
        return BalancePeriodo()

    asignado = _monto(periodo.presupuesto_asignado)
    inyectado = sum(_monto(i.monto) for i in inyecciones)
    actual = asignado + inyectado
    ejecutado = sum(_monto(p.monto) for p in pedidos)
    porcentaje = (ejecutado / actual) * 100 if actual > 0 else 0.0

    return BalancePeriodo(
        presupuesto_asignado=asignado,
        total_inyectado=inyectado,
        presupuesto_actual=actual,
        monto_ejecutado=ejecutado,
        saldo=actual - ejecutado,
        porcentaje_ejecucion=porcentaje,
    )


def _as_date(value: datetime.date | datetime.datetime) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    return value


def por_vencer(
    fecha_fin: datetime.date | datetime.datetime | None,
    hoy: datetime.date | None = None,
    dias: int = 90,
) -> bool:
    """True when ``fecha_fin`` falls in ``[hoy, hoy + dias]``.

    Already-expired periods are not flagged.
    """
    if fecha_fin is None:
        return False
    hoy = _as_date(hoy or datetime.date.today())
    fin = _as_date(fecha_fin)
    return hoy <= fin <= hoy + datetime.timedelta(days=dias)


def bucket_moneda(moneda: str | None) -> str:
    """Classify a free-text currency label as ``"CRC"`` or ``"USD"``."""
    etiqueta = (moneda or "").upper()
    if any(marcador in etiqueta for marcador in MARCADORES_CRC):
        return MONEDA_CRC
    return MONEDA_USD


def sumar_anios(fecha: datetime.date, anios: int) -> datetime.date:
    """Shift ``fecha`` by whole years; Feb 29 falls back to Feb 28."""
    anio = fecha.year + anios
    dia = min(fecha.day, calendar.monthrange(anio, fecha.month)[1])
    return fecha.replace(year=anio, day=dia)
