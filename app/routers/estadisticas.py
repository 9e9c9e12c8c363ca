"""
Estadísticas router.

Mounts under ``/api/estadisticas`` (prefix set in ``main.py``).
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.estadistica import EstadisticasResponse
from app.services import estadistica_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Estadísticas"])


@router.get(
    "/",
    response_model=EstadisticasResponse,
    summary="Estadísticas globales",
    description=(
        "Ejecución global por moneda, top 10 contratos por porcentaje de ejecución, "
        "contratos por vencer, top 5 medicamentos y tendencia de los últimos 6 meses "
        "(montos en CRC convertidos a USD)."
    ),
)
def get_estadisticas(
    db: Annotated[Session, Depends(get_db)],
) -> EstadisticasResponse:
    return estadistica_service.get_estadisticas(db)
