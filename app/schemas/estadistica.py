"""
Pydantic v2 schemas for the statistics endpoint (``/api/estadisticas``).
"""

from __future__ import annotations

import datetime

from pydantic import Field

from app.schemas.common import CamelModel


class EjecucionMoneda(CamelModel):
    """Budget and execution of all active periods in one currency bucket."""

    moneda: str
    presupuesto: float = 0.0
    ejecutado: float = 0.0
    porcentaje: float = 0.0


class ContratoEjecucion(CamelModel):
    contrato_id: int
    codigo: str | None = None
    nombre: str | None = None
    proveedor: str | None = None
    presupuesto_actual: float = 0.0
    monto_ejecutado: float = 0.0
    porcentaje_ejecucion: float = Field(default=0.0, description="Sin límite superior.")
    moneda: str


class ContratoPorVencer(CamelModel):
    contrato_id: int
    codigo: str | None = None
    nombre: str | None = None
    proveedor: str | None = None
    fecha_fin: datetime.date
    dias_restantes: int


class MedicamentoTop(CamelModel):
    """Medication ranked by ordered amount converted to USD."""

    nombre: str
    total_usd: float = 0.0
    pedidos: int = 0


class TendenciaMes(CamelModel):
    anio: int
    mes: int
    label: str
    total_usd: float = 0.0
    porcentaje: float = 0.0


class EstadisticasResponse(CamelModel):
    ejecucion_usd: EjecucionMoneda
    ejecucion_crc: EjecucionMoneda
    top_contratos: list[ContratoEjecucion] = Field(default_factory=list)
    por_vencer: list[ContratoPorVencer] = Field(default_factory=list)
    top_medicamentos: list[MedicamentoTop] = Field(default_factory=list)
    tendencia_mensual: list[TendenciaMes] = Field(default_factory=list)
