"""
Exportación router.

Mounts under ``/api/exportar`` (prefix set in ``main.py``).

Both endpoints stream their response using FastAPI's ``StreamingResponse``
and set ``Content-Disposition: attachment; filename=...`` so that browsers
prompt a download with a date-stamped name.

Endpoints
---------
GET /csv    — Export to .csv  (query params: modulo, q)
GET /excel  — Export to .xlsx (query params: modulo, q)

Supported module values for ``?modulo=``
-----------------------------------------
- ``contratos``
- ``pedidos``
- ``inyecciones``
"""

from __future__ import annotations

import io
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.common import FilterParams
from app.services import exportacion_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Exportación"])

_MODULO_DESCRIPTION = "Módulo a exportar: contratos, pedidos, inyecciones."


def _filter_params(
    q: Annotated[
        str | None,
        Query(description="Mismo término de búsqueda que la pantalla de origen.", max_length=200),
    ] = None,
    contrato_id: Annotated[
        int | None,
        Query(alias="contratoId", description="ID del contrato.", ge=1),
    ] = None,
) -> FilterParams:
    return FilterParams(q=q, contrato_id=contrato_id)


def _validate_module(modulo: str) -> str:
    """Validate that the requested module is supported.

    Raises:
        HTTPException 400: If the module is not in the supported set.
    """
    modulo_lower = modulo.lower()
    if modulo_lower not in exportacion_service.MODULOS_EXPORTACION:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"Módulo '{modulo}' no soportado. "
                f"Valores válidos: {sorted(exportacion_service.MODULOS_EXPORTACION)}."
            ),
        )
    return modulo_lower


def _stream(file_bytes: bytes, filename: str, media_type: str) -> StreamingResponse:
    headers = {
        "Content-Disposition": f'attachment; filename="{filename}"',
        "Content-Length": str(len(file_bytes)),
    }
    return StreamingResponse(io.BytesIO(file_bytes), media_type=media_type, headers=headers)


# ---------------------------------------------------------------------------
# GET /csv
# ---------------------------------------------------------------------------


@router.get(
    "/csv",
    summary="Exportar datos a CSV",
    description=(
        "Descarga un CSV con los registros filtrados del módulo indicado. "
        "Nombre de archivo: contratos_export_, historial_pedidos_ o "
        "inyecciones_presupuesto_ seguido de la fecha."
    ),
    response_class=StreamingResponse,
    responses={
        200: {"description": "Archivo CSV generado.", "content": {"text/csv": {}}},
        400: {"description": "Módulo no válido."},
    },
)
def export_csv(
    modulo: Annotated[str, Query(description=_MODULO_DESCRIPTION)],
    filters: Annotated[FilterParams, Depends(_filter_params)],
    db: Annotated[Session, Depends(get_db)],
) -> StreamingResponse:
    modulo_key = _validate_module(modulo)
    logger.info("GET /exportar/csv modulo=%s q=%r", modulo_key, filters.q)
    file_bytes = exportacion_service.export_csv(db, modulo_key, filters)
    return _stream(
        file_bytes,
        exportacion_service.make_filename(modulo_key, "csv"),
        "text/csv; charset=utf-8",
    )


# ---------------------------------------------------------------------------
# GET /excel
# ---------------------------------------------------------------------------


@router.get(
    "/excel",
    summary="Exportar datos a Excel (.xlsx)",
    description="Genera y descarga un libro Excel con los registros filtrados del módulo indicado.",
    response_class=StreamingResponse,
    responses={
        200: {
            "description": "Archivo Excel generado.",
            "content": {
                "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": {}
            },
        },
        400: {"description": "Módulo no válido."},
        500: {"description": "Error generando el archivo."},
    },
)
def export_excel(
    modulo: Annotated[str, Query(description=_MODULO_DESCRIPTION)],
    filters: Annotated[FilterParams, Depends(_filter_params)],
    db: Annotated[Session, Depends(get_db)],
) -> StreamingResponse:
    """Generate and stream an Excel file for the specified module.

    Raises:
        HTTPException 400: If the module name is invalid.
        HTTPException 500: If workbook generation fails.
    """
    modulo_key = _validate_module(modulo)
    logger.info("GET /exportar/excel modulo=%s q=%r", modulo_key, filters.q)

    try:
        file_bytes = exportacion_service.export_excel(db, modulo_key, filters)
    except (ValueError, TypeError) as exc:
        logger.exception("export_excel failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error generando el archivo Excel: {exc}",
        ) from exc

    return _stream(
        file_bytes,
        exportacion_service.make_filename(modulo_key, "xlsx"),
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
