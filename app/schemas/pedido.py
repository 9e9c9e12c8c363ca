"""
Pydantic v2 schemas for purchase orders (``/api/pedidos``).
"""

from __future__ import annotations

import datetime

from pydantic import Field, field_validator

from app.schemas.common import CamelModel, blank_to_none, parse_monto


class _PedidoCampos(CamelModel):
    """Fields shared by create and update payloads."""

    numero_pedido_sap: str | None = Field(default=None, max_length=50, description="N° de pedido SAP.")
    numero_pedido_sicop: str | None = Field(default=None, max_length=50, description="N° de pedido SICOP.")
    pur: str | None = Field(default=None, max_length=50)
    numero_reserva: str | None = Field(default=None, max_length=50)
    descripcion: str | None = Field(default=None, max_length=500)
    item_id: int | None = Field(default=None, ge=1, description="Medicamento del contrato.")

    @field_validator(
        "numero_pedido_sap",
        "numero_pedido_sicop",
        "pur",
        "numero_reserva",
        "descripcion",
        "item_id",
        mode="before",
    )
    @classmethod
    def _blank(cls, value):
        return blank_to_none(value)


class PedidoCreate(_PedidoCampos):
    """Payload for registering an order against a period.

    When ``monto`` is omitted it is computed as ``cantidad_medicamento`` times
    the unit price of the referenced item.
    """

    fecha_pedido: datetime.date = Field(..., description="Fecha del pedido.")
    cantidad_medicamento: int = Field(default=0, ge=0)
    monto: float | None = Field(default=None, gt=0, description="Monto del pedido.")

    @field_validator("monto", mode="before")
    @classmethod
    def _monto(cls, value):
        return parse_monto(value)


class PedidoUpdate(_PedidoCampos):
    """Partial update of an order; the period association never changes."""

    fecha_pedido: datetime.date | None = None
    cantidad_medicamento: int | None = Field(default=None, ge=0)
    monto: float | None = Field(default=None, gt=0)

    @field_validator("monto", mode="before")
    @classmethod
    def _monto(cls, value):
        return parse_monto(value)


class PedidoResponse(CamelModel):
    id: int
    period_id: int
    fecha_pedido: datetime.date | None = None
    numero_pedido_sap: str | None = None
    numero_pedido_sicop: str | None = None
    pur: str | None = None
    numero_reserva: str | None = None
    cantidad_medicamento: int = 0
    monto: float
    descripcion: str | None = None
    item_id: int | None = None
    medicamento_nombre: str | None = None
    medicamento_codigo: str | None = None


class PedidoHistorialResponse(PedidoResponse):
    """Order flattened with its period and contract for the history screen."""

    periodo_nombre: str | None = None
    contrato_id: int | None = None
    contrato_codigo: str | None = None
    contrato_nombre: str | None = None
    contrato_legal: str | None = None
    concurso: str | None = None
    proveedor: str | None = None
    moneda: str | None = None
