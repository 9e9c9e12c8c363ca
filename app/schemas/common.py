"""
Shared Pydantic v2 schemas reused across multiple modules.

Provides the camelCase base model that maps stored snake_case field names to
the JSON names used by the client, plus generic filter and message response
models so that each domain module can compose them without duplicating field
definitions.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model exposing camelCase aliases.

    Accepts both ``presupuesto_asignado`` and ``presupuestoAsignado`` on input
    and serialises with the camelCase alias.  ``from_attributes`` lets
    responses be built straight from ORM rows.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def blank_to_none(value: Any) -> Any:
    """Turn empty or whitespace-only strings into ``None``."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def parse_monto(value: Any) -> Any:
    """Accept amounts typed with thousands separators, e.g. ``"1,250.50"``."""
    value = blank_to_none(value)
    if isinstance(value, str):
        return value.replace(",", "").strip()
    return value


class FilterParams(BaseModel):
    """Query-level filters shared across list and export endpoints.

    All fields are optional; omitting one means "no restriction on that axis".

    Attributes:
        q: Case-insensitive free-text search term.
        contrato_id: Restrict to a single contract.
    """

    q: str | None = Field(
        default=None,
        max_length=200,
        description="Texto de búsqueda (contrato, proveedor, medicamento...).",
    )
    contrato_id: int | None = Field(
        default=None,
        ge=1,
        description="ID del contrato. None = todos los contratos.",
    )

    @property
    def termino(self) -> str:
        """Lower-cased search term, empty when no search was requested."""
        return (self.q or "").strip().lower()


class MessageResponse(BaseModel):
    """Generic message envelope for operations that do not return a resource.

    Returned by DELETE endpoints when the caller only needs a confirmation.

    Attributes:
        message: Short human-readable result summary.
        detail: Optional extended information.
    """

    message: str = Field(..., description="Resumen del resultado de la operación.")
    detail: str | None = Field(
        default=None,
        description="Información adicional.",
    )
