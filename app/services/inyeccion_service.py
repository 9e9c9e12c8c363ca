"""
Inyecciones service layer.

Injections credit a period's budget.  They are recorded against an explicit
period or, given only a contract, against the contract's active period as
chosen by ``seleccionar_periodo_activo``.

The supporting PDF arrives as a ``data:application/pdf;base64,...`` string and
is stored untouched; only its media type and decoded size are checked.
"""

from __future__ import annotations

import base64
import binascii
import datetime
import logging
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.contrato import Contrato
from app.models.inyeccion import Inyeccion
from app.models.periodo import Periodo
from app.schemas.common import FilterParams
from app.schemas.inyeccion import (
    InyeccionCreate,
    InyeccionHistorialResponse,
    InyeccionResponse,
    InyeccionUpdate,
)
from app.services.periodo_service import get_periodo
from app.utils.cache import cache
from app.utils.constants import DESCRIPCION_INYECCION_DEFAULT, SCOPE_DASHBOARD
from app.utils.presupuesto import seleccionar_periodo_activo

logger = logging.getLogger(__name__)

_PREFIJO_PDF = "data:application/pdf;base64,"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _decodificar(documento: str) -> bytes:
    """Decode a PDF data URL without the size limit; used for stored documents."""
    if documento[:len(_PREFIJO_PDF)].lower() != _PREFIJO_PDF:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="El documento de respaldo debe ser un archivo PDF.",
        )
    try:
        contenido = base64.b64decode(documento[len(_PREFIJO_PDF):], validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="El documento de respaldo no es un PDF codificado válido.",
        ) from exc
    return contenido


def decodificar_documento(documento: str) -> bytes:
    """Validate a PDF data URL and return its decoded bytes.

    Args:
        documento: ``data:application/pdf;base64,<payload>`` string.

    Returns:
        The decoded file content.

    Raises:
        HTTPException 422: If the string is not a base64 PDF data URL or the
                           decoded file exceeds ``MAX_DOCUMENTO_BYTES``.
    """
    contenido = _decodificar(documento)
    limite = get_settings().MAX_DOCUMENTO_BYTES
    if len(contenido) > limite:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"El archivo PDF no debe superar los {limite // 1024} KB.",
        )
    return contenido


def _get_inyeccion(db: Session, inyeccion_id: int) -> Inyeccion:
    inyeccion = db.query(Inyeccion).filter(Inyeccion.id == inyeccion_id).first()
    if inyeccion is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Inyección con ID {inyeccion_id} no encontrada.",
        )
    return inyeccion


def _resolver_periodo(db: Session, data: InyeccionCreate) -> Periodo:
    """Pick the target period from the payload.

    Raises:
        HTTPException 404: If the period or contract does not exist.
        HTTPException 422: If the contract has no periods or the period
                           belongs to another contract.
    """
    if data.period_id is not None:
        periodo = get_periodo(db, data.period_id)
        if data.contrato_id is not None and periodo.contract_id != data.contrato_id:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"El periodo {periodo.id} no pertenece al contrato {data.contrato_id}.",
            )
        return periodo

    contrato = db.query(Contrato).filter(Contrato.id == data.contrato_id).first()
    if contrato is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Contrato con ID {data.contrato_id} no encontrado.",
        )
    periodo = seleccionar_periodo_activo(contrato.periodos)
    if periodo is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="El contrato seleccionado no tiene periodos registrados.",
        )
    return periodo


def _build_response(row: Inyeccion) -> InyeccionResponse:
    return InyeccionResponse(
        id=row.id,
        period_id=row.period_id,
        monto=float(row.monto),
        moneda=row.moneda,
        fecha=row.fecha,
        oficio=row.oficio,
        descripcion=row.descripcion,
        documento_nombre=row.documento_nombre,
        tiene_documento=bool(row.documento),
    )


def _historial_query(db: Session, filters: FilterParams) -> Any:
    query = (
        db.query(Inyeccion, Periodo, Contrato)
        .join(Periodo, Inyeccion.period_id == Periodo.id)
        .join(Contrato, Periodo.contract_id == Contrato.id)
    )
    if filters.contrato_id is not None:
        query = query.filter(Contrato.id == filters.contrato_id)
    if filters.termino:
        patron = f"%{filters.termino}%"
        query = query.filter(
            or_(
                Contrato.nombre.ilike(patron),
                Contrato.codigo.ilike(patron),
                Contrato.contrato_legal.ilike(patron),
                Contrato.proveedor.ilike(patron),
                Inyeccion.oficio.ilike(patron),
            )
        )
    return query.order_by(Inyeccion.fecha.desc(), Inyeccion.id.desc())


def _commit(db: Session, operacion: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("%s: commit failed", operacion)
        raise
    cache.invalidate(SCOPE_DASHBOARD)


# ---------------------------------------------------------------------------
# Public service functions: reads
# ---------------------------------------------------------------------------


def list_inyecciones(db: Session, periodo_id: int) -> list[InyeccionResponse]:
    """Return the injections of a period, newest first.

    Raises:
        HTTPException 404: If the period does not exist.
    """
    get_periodo(db, periodo_id)
    rows = (
        db.query(Inyeccion)
        .filter(Inyeccion.period_id == periodo_id)
        .order_by(Inyeccion.fecha.desc(), Inyeccion.id.desc())
        .all()
    )
    return [_build_response(r) for r in rows]


def list_historial(db: Session, filters: FilterParams) -> list[InyeccionHistorialResponse]:
    """Return every injection flattened with its period and contract."""
    historial: list[InyeccionHistorialResponse] = []
    for inyeccion, periodo, contrato in _historial_query(db, filters).all():
        historial.append(
            InyeccionHistorialResponse(
                **_build_response(inyeccion).model_dump(),
                periodo_nombre=periodo.nombre,
                contrato_id=contrato.id,
                contrato_codigo=contrato.codigo,
                contrato_nombre=contrato.nombre,
                contrato_legal=contrato.contrato_legal,
                concurso=contrato.concurso,
                proveedor=contrato.proveedor,
            )
        )
    logger.debug("list_historial: q=%r total=%d", filters.termino, len(historial))
    return historial


def get_detalle(db: Session, inyeccion_id: int) -> InyeccionResponse:
    return _build_response(_get_inyeccion(db, inyeccion_id))


def get_documento(db: Session, inyeccion_id: int) -> tuple[bytes, str]:
    """Return the decoded supporting PDF and its file name.

    Stored documents are served even when they exceed the current size limit.

    Raises:
        HTTPException 404: If the injection or its document does not exist.
    """
    inyeccion = _get_inyeccion(db, inyeccion_id)
    if not inyeccion.documento:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"La inyección {inyeccion_id} no tiene documento de respaldo.",
        )
    nombre = inyeccion.documento_nombre or f"inyeccion_{inyeccion_id}.pdf"
    return _decodificar(inyeccion.documento), nombre


# ---------------------------------------------------------------------------
# Public service functions: writes
# ---------------------------------------------------------------------------


def create_inyeccion(db: Session, data: InyeccionCreate) -> InyeccionResponse:
    """Record an injection with its supporting PDF.

    Args:
        db: Active SQLAlchemy session.
        data: Validated payload with a period or a contract.

    Returns:
        The persisted injection.

    Raises:
        HTTPException 404: If the period or contract does not exist.
        HTTPException 422: If the contract has no periods or the PDF is invalid.
    """
    decodificar_documento(data.documento)
    periodo = _resolver_periodo(db, data)

    inyeccion = Inyeccion(
        period_id=periodo.id,
        monto=data.monto,
        moneda=periodo.moneda or periodo.contrato.moneda,
        fecha=data.fecha or datetime.date.today(),
        oficio=data.oficio,
        descripcion=data.descripcion or DESCRIPCION_INYECCION_DEFAULT,
        documento_nombre=data.documento_nombre,
        documento=data.documento,
    )
    db.add(inyeccion)
    _commit(db, "create_inyeccion")
    db.refresh(inyeccion)

    logger.info(
        "create_inyeccion: id=%d periodo_id=%d monto=%.2f",
        inyeccion.id, periodo.id, data.monto,
    )
    return _build_response(inyeccion)


def update_inyeccion(db: Session, inyeccion_id: int, data: InyeccionUpdate) -> InyeccionResponse:
    """Apply a partial update; the period never changes.

    Raises:
        HTTPException 404: If the injection does not exist.
        HTTPException 422: If a new document is not a valid PDF.
    """
    inyeccion = _get_inyeccion(db, inyeccion_id)
    update_data = data.model_dump(exclude_unset=True)

    if update_data.get("documento") is None:
        update_data.pop("documento", None)
        update_data.pop("documento_nombre", None)
    else:
        decodificar_documento(update_data["documento"])
    if update_data.get("monto") is None:
        update_data.pop("monto", None)

    for field, value in update_data.items():
        setattr(inyeccion, field, value)

    _commit(db, "update_inyeccion")
    db.refresh(inyeccion)

    logger.info("update_inyeccion: id=%d fields=%s", inyeccion_id, list(update_data.keys()))
    return _build_response(inyeccion)


def delete_inyeccion(db: Session, inyeccion_id: int) -> None:
    inyeccion = _get_inyeccion(db, inyeccion_id)
    db.delete(inyeccion)
    _commit(db, "delete_inyeccion")
    logger.info("delete_inyeccion: id=%d", inyeccion_id)
