"""
Pydantic v2 schemas for budget injections (``/api/inyecciones``).

The supporting document travels as a ``data:application/pdf;base64,...``
string; size and content type are checked in the service layer.
"""

from __future__ import annotations

import datetime

from pydantic import Field, field_validator, model_validator

from app.schemas.common import CamelModel, blank_to_none, parse_monto


class InyeccionCreate(CamelModel):
    """Payload for recording an injection.

    Either ``period_id`` or ``contrato_id`` must be given.  With only a
    contract the injection goes to the contract's active period.

    Attributes:
        period_id: Target period.
        contrato_id: Contract whose active period receives the injection.
        monto: Injected amount, strictly positive.
        fecha: Injection date; today when omitted.
        oficio: Official letter number.
        descripcion: Justification text.
        documento: Supporting PDF as a data URL.
        documento_nombre: Original file name of the PDF.
    """

    period_id: int | None = Field(default=None, ge=1)
    contrato_id: int | None = Field(default=None, ge=1)
    monto: float = Field(..., gt=0, description="Monto de la inyección.")
    fecha: datetime.date | None = None
    oficio: str | None = Field(default=None, max_length=100, description="N° de oficio.")
    descripcion: str | None = Field(default=None, max_length=1000)
    documento: str = Field(..., min_length=1, description="PDF de respaldo como data URL.")
    documento_nombre: str | None = Field(default=None, max_length=300)

    @field_validator("oficio", "descripcion", "documento_nombre", mode="before")
    @classmethod
    def _blank(cls, value):
        return blank_to_none(value)

    @field_validator("monto", mode="before")
    @classmethod
    def _monto(cls, value):
        return parse_monto(value)

    @model_validator(mode="after")
    def _destino(self):
        if self.period_id is None and self.contrato_id is None:
            raise ValueError("Debe indicar el periodo o el contrato de la inyección.")
        return self


class InyeccionUpdate(CamelModel):
    """Partial update; an omitted ``documento`` keeps the stored one."""

    monto: float | None = Field(default=None, gt=0)
    fecha: datetime.date | None = None
    oficio: str | None = Field(default=None, max_length=100)
    descripcion: str | None = Field(default=None, max_length=1000)
    documento: str | None = None
    documento_nombre: str | None = Field(default=None, max_length=300)

    @field_validator("documento", "documento_nombre", mode="before")
    @classmethod
    def _blank(cls, value):
        return blank_to_none(value)

    @field_validator("monto", mode="before")
    @classmethod
    def _monto(cls, value):
        return parse_monto(value)


class InyeccionResponse(CamelModel):
    id: int
    period_id: int
    monto: float
    moneda: str | None = None
    fecha: datetime.date | None = None
    oficio: str | None = None
    descripcion: str | None = None
    documento_nombre: str | None = None
    tiene_documento: bool = False


class InyeccionHistorialResponse(InyeccionResponse):
    """Injection flattened with its contract for the history screen."""

    periodo_nombre: str | None = None
    contrato_id: int | None = None
    contrato_codigo: str | None = None
    contrato_nombre: str | None = None
    contrato_legal: str | None = None
    concurso: str | None = None
    proveedor: str | None = None
