"""
Pydantic v2 schemas for the dashboard endpoints (``/api/dashboard``).
"""

from __future__ import annotations

import datetime

from pydantic import Field

from app.schemas.common import CamelModel


class ContratoResumen(CamelModel):
    """One dashboard card: a contract with its active period figures.

    ``porcentaje_ejecucion`` is clamped to 0–100 for display while
    ``critico`` is evaluated on the unclamped value.
    """

    contrato_id: int
    codigo: str | None = None
    nombre: str | None = None
    proveedor: str | None = None
    contrato_legal: str | None = None
    concurso: str | None = None
    periodos: list[str] = Field(default_factory=list)
    periodo_activo_id: int | None = None
    periodo_activo_nombre: str | None = None
    presupuesto_actual: float = 0.0
    monto_ejecutado: float = 0.0
    saldo: float = 0.0
    porcentaje_ejecucion: float = Field(default=0.0, ge=0.0, le=100.0)
    critico: bool = False
    fecha_fin: datetime.date | None = None
    por_vencer: bool = False
    moneda: str


class DashboardStats(CamelModel):
    """Summary counters shown above the dashboard cards."""

    total_contratos: int = 0
    contratos_activos: int = 0
    contratos_criticos: int = 0
    contratos_por_vencer: int = 0
    presupuesto_usd: float = 0.0
    ejecutado_usd: float = 0.0
    presupuesto_crc: float = 0.0
    ejecutado_crc: float = 0.0


class DashboardResponse(CamelModel):
    stats: DashboardStats
    contratos: list[ContratoResumen] = Field(default_factory=list)


class SaldoContrato(CamelModel):
    """Available balance of a contract's active period."""

    contrato_id: int
    codigo: str | None = None
    nombre: str | None = None
    proveedor: str | None = None
    periodo_id: int | None = None
    periodo_nombre: str | None = None
    presupuesto_actual: float = 0.0
    saldo: float = 0.0
    moneda: str
