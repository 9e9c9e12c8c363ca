"""
Pydantic v2 schemas for the Contratos module.

These models define the JSON shapes consumed and returned by
``app/routers/contratos.py``.  A contract is created together with its line
items (1 to 3 medications) and its initial budget period in a single request.
"""

from __future__ import annotations

import datetime

from pydantic import Field, field_validator

from app.schemas.common import CamelModel, blank_to_none, parse_monto
from app.utils.constants import (
    MAX_ITEMS_CONTRATO,
    MIN_ITEMS_CONTRATO,
    MONEDA_USD,
    NOMBRE_PERIODO_INICIAL,
)
from app.utils.presupuesto import bucket_moneda


# ---------------------------------------------------------------------------
# Line items
# ---------------------------------------------------------------------------


class ContratoItemCreate(CamelModel):
    """Medication line item submitted with a contract.

    Attributes:
        codigo: Medication code (required).
        nombre: Medication description (required).
        moneda: Currency label; stored as ``"USD"`` or ``"CRC"``.
        precio_unitario: Unit price, thousands separators accepted.
    """

    codigo: str = Field(..., min_length=1, max_length=100, description="Código del medicamento.")
    nombre: str = Field(..., min_length=1, max_length=300, description="Descripción del medicamento.")
    moneda: str = Field(default=MONEDA_USD, description="Moneda del precio: USD o CRC.")
    precio_unitario: float = Field(..., ge=0, description="Precio unitario.")

    @field_validator("codigo", "nombre", mode="before")
    @classmethod
    def _strip(cls, value):
        return blank_to_none(value)

    @field_validator("moneda", mode="before")
    @classmethod
    def _moneda(cls, value):
        return bucket_moneda(blank_to_none(value) or MONEDA_USD)

    @field_validator("precio_unitario", mode="before")
    @classmethod
    def _precio(cls, value):
        return parse_monto(value)


class ContratoItemResponse(CamelModel):
    """Line item as returned inside a contract."""

    id: int
    codigo: str
    nombre: str
    moneda: str | None = None
    precio_unitario: float


# ---------------------------------------------------------------------------
# Initial period submitted with the contract
# ---------------------------------------------------------------------------


class PeriodoInicialCreate(CamelModel):
    """First budget period created together with the contract.

    The end date is ``fecha_inicio`` plus ``duracion_anios`` years and the
    period starts in ``ACTIVO`` state.
    """

    nombre: str = Field(default=NOMBRE_PERIODO_INICIAL, max_length=100)
    fecha_inicio: datetime.date = Field(..., description="Fecha de inicio del periodo.")
    presupuesto_inicial: float = Field(..., ge=0, description="Presupuesto asignado al periodo.")
    duracion_anios: int = Field(default=1, ge=1, le=10, description="Duración en años.")

    @field_validator("nombre", mode="before")
    @classmethod
    def _nombre(cls, value):
        return blank_to_none(value) or NOMBRE_PERIODO_INICIAL

    @field_validator("presupuesto_inicial", mode="before")
    @classmethod
    def _presupuesto(cls, value):
        return parse_monto(value)


# ---------------------------------------------------------------------------
# Contract input schemas
# ---------------------------------------------------------------------------


class ContratoCreate(CamelModel):
    """Payload for creating a contract (POST /api/contratos).

    Attributes:
        proveedor: Supplier name (required).
        concurso: Tender reference.
        contrato_legal: Legal contract reference.
        items: Between 1 and 3 medication line items.
        periodo_inicial: Initial budget period.
    """

    proveedor: str = Field(..., min_length=1, max_length=300, description="Proveedor adjudicado.")
    concurso: str | None = Field(default=None, max_length=200, description="Número de concurso.")
    contrato_legal: str | None = Field(default=None, max_length=200, description="Número de contrato legal.")
    items: list[ContratoItemCreate] = Field(
        ...,
        min_length=MIN_ITEMS_CONTRATO,
        max_length=MAX_ITEMS_CONTRATO,
        description="Medicamentos del contrato (1 a 3).",
    )
    periodo_inicial: PeriodoInicialCreate

    @field_validator("proveedor", "concurso", "contrato_legal", mode="before")
    @classmethod
    def _blank(cls, value):
        return blank_to_none(value)


class ContratoUpdate(CamelModel):
    """Payload for updating a contract (PUT /api/contratos/{id}).

    When ``items`` is supplied the existing line items are replaced.
    """

    proveedor: str | None = Field(default=None, min_length=1, max_length=300)
    concurso: str | None = Field(default=None, max_length=200)
    contrato_legal: str | None = Field(default=None, max_length=200)
    items: list[ContratoItemCreate] | None = Field(
        default=None,
        min_length=MIN_ITEMS_CONTRATO,
        max_length=MAX_ITEMS_CONTRATO,
    )

    @field_validator("proveedor", "concurso", "contrato_legal", mode="before")
    @classmethod
    def _blank(cls, value):
        return blank_to_none(value)


# ---------------------------------------------------------------------------
# Contract output schema
# ---------------------------------------------------------------------------


class ContratoResponse(CamelModel):
    """Contract with its line items and the names of its periods."""

    id: int
    codigo: str | None = None
    nombre: str | None = None
    concurso: str | None = None
    contrato_legal: str | None = None
    proveedor: str | None = None
    precio_unitario: float | None = None
    fecha_inicio: datetime.date | None = None
    moneda: str | None = None
    items: list[ContratoItemResponse] = Field(default_factory=list)
    periodos: list[str] = Field(default_factory=list, description="Nombres de los periodos.")
