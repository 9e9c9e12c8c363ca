"""
Contratos router.

Mounts under ``/api/contratos`` (prefix set in ``main.py``).

Endpoints
---------
GET    /                      — Contract list with items and period names (search ``q``).
GET    /{id}                  — Contract detail.
POST   /                      — Create contract + items + initial period atomically.
PUT    /{id}                  — Update header fields and replace items.
DELETE /{id}                  — Hard delete (cascades to periods, orders, injections).
GET    /{id}/periodos         — Periods of the contract, start date ascending.
POST   /{id}/periodos         — Add a period (dates derived when omitted).
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.common import FilterParams, MessageResponse
from app.schemas.contrato import ContratoCreate, ContratoResponse, ContratoUpdate
from app.schemas.periodo import PeriodoCreate, PeriodoResponse
from app.services import contrato_service, periodo_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Contratos"])


# ---------------------------------------------------------------------------
# Shared dependency: search params
# ---------------------------------------------------------------------------


def _filter_params(
    q: Annotated[
        str | None,
        Query(
            description="Texto a buscar en nombre, código, proveedor, referencias o medicamentos.",
            max_length=200,
        ),
    ] = None,
) -> FilterParams:
    return FilterParams(q=q)


# ---------------------------------------------------------------------------
# GET /
# ---------------------------------------------------------------------------


@router.get(
    "/",
    response_model=list[ContratoResponse],
    summary="Lista de contratos",
    description=(
        "Retorna los contratos con sus medicamentos y los nombres de sus periodos, "
        "ordenados alfabéticamente por el primer medicamento."
    ),
)
def list_contratos(
    filters: Annotated[FilterParams, Depends(_filter_params)],
    db: Annotated[Session, Depends(get_db)],
) -> list[ContratoResponse]:
    logger.debug("GET /contratos q=%r", filters.q)
    return contrato_service.list_contratos(db, filters)


# ---------------------------------------------------------------------------
# GET /{id}
# ---------------------------------------------------------------------------


@router.get(
    "/{contrato_id}",
    response_model=ContratoResponse,
    summary="Detalle de un contrato",
    responses={404: {"description": "Contrato no encontrado."}},
)
def get_detalle(
    contrato_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> ContratoResponse:
    return contrato_service.get_detalle(db, contrato_id)


# ---------------------------------------------------------------------------
# POST /
# ---------------------------------------------------------------------------


@router.post(
    "/",
    response_model=ContratoResponse,
    status_code=201,
    summary="Crear contrato",
    description=(
        "Registra el contrato, sus medicamentos (1 a 3) y el periodo inicial en una "
        "sola transacción. El periodo inicial queda en estado ACTIVO."
    ),
    responses={
        201: {"description": "Contrato creado exitosamente."},
        422: {"description": "Datos de entrada inválidos."},
        503: {"description": "Error de base de datos; no se guardó nada."},
    },
)
def create_contrato(
    data: ContratoCreate,
    db: Annotated[Session, Depends(get_db)],
) -> ContratoResponse:
    """Create a contract with its items and initial period.

    Args:
        data: Validated creation payload from the request body.
        db: Database session.

    Returns:
        The created contract (HTTP 201).
    """
    logger.info(
        "POST /contratos proveedor=%r items=%d", data.proveedor, len(data.items)
    )
    contrato = contrato_service.create_contrato(db, data)
    return contrato_service.get_detalle(db, contrato.id)


# ---------------------------------------------------------------------------
# PUT /{id}
# ---------------------------------------------------------------------------


@router.put(
    "/{contrato_id}",
    response_model=ContratoResponse,
    summary="Actualizar contrato",
    description=(
        "Actualiza proveedor, concurso y contrato legal. Si se envían medicamentos, "
        "reemplazan a los existentes."
    ),
    responses={
        404: {"description": "Contrato no encontrado."},
        422: {"description": "Datos de entrada inválidos."},
    },
)
def update_contrato(
    contrato_id: int,
    data: ContratoUpdate,
    db: Annotated[Session, Depends(get_db)],
) -> ContratoResponse:
    logger.info("PUT /contratos/%d", contrato_id)
    contrato_service.update_contrato(db, contrato_id, data)
    return contrato_service.get_detalle(db, contrato_id)


# ---------------------------------------------------------------------------
# DELETE /{id}
# ---------------------------------------------------------------------------


@router.delete(
    "/{contrato_id}",
    response_model=MessageResponse,
    summary="Eliminar contrato",
    description="Elimina el contrato con sus medicamentos, periodos, pedidos e inyecciones.",
    responses={404: {"description": "Contrato no encontrado."}},
)
def delete_contrato(
    contrato_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    logger.info("DELETE /contratos/%d", contrato_id)
    contrato_service.delete_contrato(db, contrato_id)
    return MessageResponse(message="Contrato eliminado.", detail=f"ID {contrato_id}")


# ---------------------------------------------------------------------------
# Periods of a contract
# ---------------------------------------------------------------------------


@router.get(
    "/{contrato_id}/periodos",
    response_model=list[PeriodoResponse],
    summary="Periodos del contrato",
    responses={404: {"description": "Contrato no encontrado."}},
)
def list_periodos(
    contrato_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> list[PeriodoResponse]:
    return periodo_service.list_periodos(db, contrato_id)


@router.post(
    "/{contrato_id}/periodos",
    response_model=PeriodoResponse,
    status_code=201,
    summary="Agregar periodo",
    description=(
        "Crea un periodo nuevo. Sin fechas explícitas inicia el día siguiente al "
        "fin del último periodo y dura ``duracionAnios`` años. Estado por defecto "
        "PENDIENTE; solo puede haber un periodo ACTIVO por contrato."
    ),
    responses={
        404: {"description": "Contrato no encontrado."},
        409: {"description": "El contrato ya tiene un periodo activo."},
        422: {"description": "Datos de entrada inválidos."},
    },
)
def create_periodo(
    contrato_id: int,
    data: PeriodoCreate,
    db: Annotated[Session, Depends(get_db)],
) -> PeriodoResponse:
    logger.info("POST /contratos/%d/periodos estado=%s", contrato_id, data.estado)
    return periodo_service.create_periodo(db, contrato_id, data)
