"""
Inyecciones router.

Mounts under ``/api/inyecciones`` (prefix set in ``main.py``).

Endpoints
---------
GET    /                 — Global injection history (search ``q``, ``contratoId``).
GET    /{id}             — Injection detail.
GET    /{id}/documento   — Supporting PDF, served inline.
POST   /                 — Record an injection (period or contract's active period).
PUT    /{id}             — Partial update (period fixed).
DELETE /{id}             — Hard delete.
"""

from __future__ import annotations

import io
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.common import FilterParams, MessageResponse
from app.schemas.inyeccion import (
    InyeccionCreate,
    InyeccionHistorialResponse,
    InyeccionResponse,
    InyeccionUpdate,
)
from app.services import inyeccion_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Inyecciones"])


def _filter_params(
    q: Annotated[
        str | None,
        Query(description="Contrato, proveedor o número de oficio.", max_length=200),
    ] = None,
    contrato_id: Annotated[
        int | None,
        Query(alias="contratoId", description="ID del contrato.", ge=1),
    ] = None,
) -> FilterParams:
    return FilterParams(q=q, contrato_id=contrato_id)


@router.get(
    "/",
    response_model=list[InyeccionHistorialResponse],
    summary="Historial de inyecciones",
)
def list_historial(
    filters: Annotated[FilterParams, Depends(_filter_params)],
    db: Annotated[Session, Depends(get_db)],
) -> list[InyeccionHistorialResponse]:
    return inyeccion_service.list_historial(db, filters)


@router.get(
    "/{inyeccion_id}",
    response_model=InyeccionResponse,
    summary="Detalle de una inyección",
    responses={404: {"description": "Inyección no encontrada."}},
)
def get_detalle(
    inyeccion_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> InyeccionResponse:
    return inyeccion_service.get_detalle(db, inyeccion_id)


@router.get(
    "/{inyeccion_id}/documento",
    summary="Documento de respaldo (PDF)",
    response_class=StreamingResponse,
    responses={
        200: {"description": "PDF de respaldo.", "content": {"application/pdf": {}}},
        404: {"description": "Inyección o documento no encontrado."},
    },
)
def get_documento(
    inyeccion_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> StreamingResponse:
    contenido, nombre = inyeccion_service.get_documento(db, inyeccion_id)
    headers = {
        "Content-Disposition": f'inline; filename="{nombre}"',
        "Content-Length": str(len(contenido)),
    }
    return StreamingResponse(io.BytesIO(contenido), media_type="application/pdf", headers=headers)


@router.post(
    "/",
    response_model=InyeccionResponse,
    status_code=201,
    summary="Registrar inyección",
    description=(
        "Registra una inyección presupuestaria. Con ``periodId`` se aplica a ese periodo; "
        "con solo ``contratoId`` se aplica al periodo activo del contrato. "
        "El documento de respaldo es obligatorio: PDF como data URL, máximo 500 KB."
    ),
    responses={
        404: {"description": "Periodo o contrato no encontrado."},
        422: {"description": "Contrato sin periodos o documento inválido."},
    },
)
def create_inyeccion(
    data: InyeccionCreate,
    db: Annotated[Session, Depends(get_db)],
) -> InyeccionResponse:
    logger.info(
        "POST /inyecciones period_id=%s contrato_id=%s monto=%.2f",
        data.period_id, data.contrato_id, data.monto,
    )
    return inyeccion_service.create_inyeccion(db, data)


@router.put(
    "/{inyeccion_id}",
    response_model=InyeccionResponse,
    summary="Actualizar inyección",
    responses={
        404: {"description": "Inyección no encontrada."},
        422: {"description": "Documento inválido."},
    },
)
def update_inyeccion(
    inyeccion_id: int,
    data: InyeccionUpdate,
    db: Annotated[Session, Depends(get_db)],
) -> InyeccionResponse:
    logger.info("PUT /inyecciones/%d", inyeccion_id)
    return inyeccion_service.update_inyeccion(db, inyeccion_id, data)


@router.delete(
    "/{inyeccion_id}",
    response_model=MessageResponse,
    summary="Eliminar inyección",
    responses={404: {"description": "Inyección no encontrada."}},
)
def delete_inyeccion(
    inyeccion_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    logger.info("DELETE /inyecciones/%d", inyeccion_id)
    inyeccion_service.delete_inyeccion(db, inyeccion_id)
    return MessageResponse(message="Inyección eliminada.", detail=f"ID {inyeccion_id}")
