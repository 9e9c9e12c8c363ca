"""
Pedidos router.

Mounts under ``/api/pedidos`` (prefix set in ``main.py``).  Orders are
created through ``POST /api/periodos/{id}/pedidos``.

Endpoints
---------
GET    /      — Global order history flattened with period and contract.
PUT    /{id}  — Partial update (balance-checked, period fixed).
DELETE /{id}  — Hard delete.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.common import FilterParams, MessageResponse
from app.schemas.pedido import PedidoHistorialResponse, PedidoResponse, PedidoUpdate
from app.services import pedido_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Pedidos"])


def _filter_params(
    q: Annotated[
        str | None,
        Query(
            description="Contrato, medicamento, proveedor o número de pedido SAP/SICOP.",
            max_length=200,
        ),
    ] = None,
    contrato_id: Annotated[
        int | None,
        Query(alias="contratoId", description="ID del contrato.", ge=1),
    ] = None,
) -> FilterParams:
    return FilterParams(q=q, contrato_id=contrato_id)


@router.get(
    "/",
    response_model=list[PedidoHistorialResponse],
    summary="Historial global de pedidos",
    description="Todos los pedidos con los datos de su periodo y contrato, del más reciente al más antiguo.",
)
def list_historial(
    filters: Annotated[FilterParams, Depends(_filter_params)],
    db: Annotated[Session, Depends(get_db)],
) -> list[PedidoHistorialResponse]:
    return pedido_service.list_historial(db, filters)


@router.put(
    "/{pedido_id}",
    response_model=PedidoResponse,
    summary="Actualizar pedido",
    description=(
        "Actualiza un pedido sin cambiar su periodo. El nuevo monto se valida contra "
        "el saldo disponible más el monto anterior del propio pedido."
    ),
    responses={
        404: {"description": "Pedido no encontrado."},
        422: {"description": "Monto inválido o saldo insuficiente."},
    },
)
def update_pedido(
    pedido_id: int,
    data: PedidoUpdate,
    db: Annotated[Session, Depends(get_db)],
) -> PedidoResponse:
    logger.info("PUT /pedidos/%d", pedido_id)
    return pedido_service.update_pedido(db, pedido_id, data)


@router.delete(
    "/{pedido_id}",
    response_model=MessageResponse,
    summary="Eliminar pedido",
    responses={404: {"description": "Pedido no encontrado."}},
)
def delete_pedido(
    pedido_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    logger.info("DELETE /pedidos/%d", pedido_id)
    pedido_service.delete_pedido(db, pedido_id)
    return MessageResponse(message="Pedido eliminado.", detail=f"ID {pedido_id}")
