"""
Pydantic v2 schemas for contract periods and their balance.
"""

from __future__ import annotations

import datetime

from pydantic import Field, field_validator, model_validator

from app.schemas.common import CamelModel, blank_to_none, parse_monto
from app.utils.constants import ESTADO_PENDIENTE, ESTADOS_PERIODO
from app.utils.presupuesto import normalizar_estado


def _validar_estado(value):
    value = blank_to_none(value)
    if value is None:
        return None
    estado = normalizar_estado(value)
    if estado not in ESTADOS_PERIODO:
        raise ValueError(
            f"Estado '{value}' no válido. Valores permitidos: {ESTADOS_PERIODO}."
        )
    return estado


class PeriodoCreate(CamelModel):
    """Payload for adding a period to a contract.

    Dates are optional: when omitted the period starts the day after the
    latest existing period ends and lasts ``duracion_anios`` years.
    """

    nombre: str | None = Field(default=None, max_length=100)
    fecha_inicio: datetime.date | None = None
    fecha_fin: datetime.date | None = None
    duracion_anios: int = Field(default=1, ge=1, le=10)
    presupuesto_asignado: float = Field(..., ge=0, description="Presupuesto del periodo.")
    estado: str = Field(default=ESTADO_PENDIENTE, description="PENDIENTE, ACTIVO o CERRADO.")

    @field_validator("nombre", mode="before")
    @classmethod
    def _nombre(cls, value):
        return blank_to_none(value)

    @field_validator("presupuesto_asignado", mode="before")
    @classmethod
    def _presupuesto(cls, value):
        return parse_monto(value)

    @field_validator("estado", mode="before")
    @classmethod
    def _estado(cls, value):
        return _validar_estado(value) or ESTADO_PENDIENTE

    @model_validator(mode="after")
    def _fechas(self):
        if self.fecha_inicio and self.fecha_fin and self.fecha_fin < self.fecha_inicio:
            raise ValueError("La fecha de fin no puede ser anterior a la fecha de inicio.")
        return self


class PeriodoUpdate(CamelModel):
    """Partial update of a period; state changes follow the transition rules."""

    nombre: str | None = Field(default=None, max_length=100)
    fecha_inicio: datetime.date | None = None
    fecha_fin: datetime.date | None = None
    presupuesto_asignado: float | None = Field(default=None, ge=0)
    estado: str | None = None

    @field_validator("presupuesto_asignado", mode="before")
    @classmethod
    def _presupuesto(cls, value):
        return parse_monto(value)

    @field_validator("estado", mode="before")
    @classmethod
    def _estado(cls, value):
        return _validar_estado(value)


class PeriodoResponse(CamelModel):
    id: int
    contract_id: int
    nombre: str | None = None
    fecha_inicio: datetime.date | None = None
    fecha_fin: datetime.date | None = None
    presupuesto_asignado: float
    presupuesto_inicial: float | None = None
    estado: str | None = None
    moneda: str | None = None


class BalanceResponse(CamelModel):
    """Budget figures for one period.

    ``porcentaje_ejecucion`` is unclamped; ``porcentaje_visible`` is the
    value shown in progress bars (0–100).
    """

    periodo_id: int | None = None
    presupuesto_asignado: float = 0.0
    total_inyectado: float = 0.0
    presupuesto_actual: float = 0.0
    monto_ejecutado: float = 0.0
    saldo: float = 0.0
    porcentaje_ejecucion: float = 0.0
    porcentaje_visible: float = Field(default=0.0, ge=0.0, le=100.0)
    critico: bool = False
    moneda: str | None = None
