"""
Dashboard router.

Mounts under ``/api/dashboard`` (prefix set in ``main.py``).

Endpoints
---------
GET /         — Summary counters plus one card per contract.
GET /saldos   — Available balance of each contract's active period.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.dashboard import DashboardResponse, SaldoContrato
from app.services import dashboard_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Dashboard"])


@router.get(
    "/",
    response_model=DashboardResponse,
    summary="Resumen del dashboard",
    description=(
        "Totales por moneda, contratos críticos (ejecución > 90 %) y por vencer "
        "(fin del periodo activo dentro de 90 días), y una tarjeta por contrato."
    ),
)
def get_dashboard(
    db: Annotated[Session, Depends(get_db)],
) -> DashboardResponse:
    return dashboard_service.get_dashboard(db)


@router.get(
    "/saldos",
    response_model=list[SaldoContrato],
    summary="Saldos disponibles por contrato",
)
def get_saldos(
    db: Annotated[Session, Depends(get_db)],
) -> list[SaldoContrato]:
    return dashboard_service.get_saldos(db)
