"""
Periodos router.

Mounts under ``/api/periodos`` (prefix set in ``main.py``).

Endpoints
---------
PUT    /{id}              — Partial update; state changes follow the transition rules.
DELETE /{id}              — Hard delete with the period's orders and injections.
GET    /{id}/saldo        — Budget, execution and balance of the period.
GET    /{id}/pedidos      — Orders of the period, newest first.
POST   /{id}/pedidos      — Register an order (balance-checked).
GET    /{id}/inyecciones  — Injections of the period, newest first.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.common import MessageResponse
from app.schemas.inyeccion import InyeccionResponse
from app.schemas.pedido import PedidoCreate, PedidoResponse
from app.schemas.periodo import BalanceResponse, PeriodoResponse, PeriodoUpdate
from app.services import inyeccion_service, pedido_service, periodo_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Periodos"])


@router.put(
    "/{periodo_id}",
    response_model=PeriodoResponse,
    summary="Actualizar periodo",
    description=(
        "Actualiza nombre, fechas, presupuesto asignado o estado. Transiciones válidas: "
        "PENDIENTE → ACTIVO | CERRADO, ACTIVO → CERRADO."
    ),
    responses={
        404: {"description": "Periodo no encontrado."},
        409: {"description": "Transición no permitida o ya existe un periodo activo."},
    },
)
def update_periodo(
    periodo_id: int,
    data: PeriodoUpdate,
    db: Annotated[Session, Depends(get_db)],
) -> PeriodoResponse:
    logger.info("PUT /periodos/%d", periodo_id)
    return periodo_service.update_periodo(db, periodo_id, data)


@router.delete(
    "/{periodo_id}",
    response_model=MessageResponse,
    summary="Eliminar periodo",
    responses={404: {"description": "Periodo no encontrado."}},
)
def delete_periodo(
    periodo_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    logger.info("DELETE /periodos/%d", periodo_id)
    periodo_service.delete_periodo(db, periodo_id)
    return MessageResponse(message="Periodo eliminado.", detail=f"ID {periodo_id}")


@router.get(
    "/{periodo_id}/saldo",
    response_model=BalanceResponse,
    summary="Saldo del periodo",
    description=(
        "Presupuesto actual (asignado + inyecciones), monto ejecutado, saldo y "
        "porcentaje de ejecución del periodo."
    ),
    responses={404: {"description": "Periodo no encontrado."}},
)
def get_saldo(
    periodo_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> BalanceResponse:
    return periodo_service.get_balance(db, periodo_id)


@router.get(
    "/{periodo_id}/pedidos",
    response_model=list[PedidoResponse],
    summary="Pedidos del periodo",
    responses={404: {"description": "Periodo no encontrado."}},
)
def list_pedidos(
    periodo_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> list[PedidoResponse]:
    return pedido_service.list_pedidos(db, periodo_id)


@router.post(
    "/{periodo_id}/pedidos",
    response_model=PedidoResponse,
    status_code=201,
    summary="Registrar pedido",
    description=(
        "Registra un pedido contra el periodo. Si no se envía ``monto`` se calcula "
        "como cantidad × precio unitario del medicamento. El monto no puede superar "
        "el saldo disponible."
    ),
    responses={
        404: {"description": "Periodo no encontrado."},
        422: {"description": "Monto inválido, saldo insuficiente o medicamento ajeno al contrato."},
    },
)
def create_pedido(
    periodo_id: int,
    data: PedidoCreate,
    db: Annotated[Session, Depends(get_db)],
) -> PedidoResponse:
    logger.info("POST /periodos/%d/pedidos item_id=%s", periodo_id, data.item_id)
    return pedido_service.create_pedido(db, periodo_id, data)


@router.get(
    "/{periodo_id}/inyecciones",
    response_model=list[InyeccionResponse],
    summary="Inyecciones del periodo",
    responses={404: {"description": "Periodo no encontrado."}},
)
def list_inyecciones(
    periodo_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> list[InyeccionResponse]:
    return inyeccion_service.list_inyecciones(db, periodo_id)
