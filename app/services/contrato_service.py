"""
Contratos service layer.

All database access for the ``/api/contratos`` endpoints lives here.
Functions receive a SQLAlchemy ``Session`` and return schema instances or ORM
objects ready for serialisation by FastAPI.

Design notes
------------
- A contract, its line items and its initial period are written in a single
  transaction; any store error rolls the whole composite back.
- The header ``codigo``, ``nombre`` and ``moneda`` are copied from the first
  line item so legacy screens that read the header keep working.
- The list is cached under the ``contracts`` scope and dropped on every
  contract or period write.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.models.contrato import Contrato
from app.models.contrato_item import ContratoItem
from app.models.pedido import Pedido
from app.models.periodo import Periodo
from app.schemas.common import FilterParams
from app.schemas.contrato import (
    ContratoCreate,
    ContratoItemCreate,
    ContratoItemResponse,
    ContratoResponse,
    ContratoUpdate,
)
from app.utils.cache import cache
from app.utils.constants import (
    CODIGO_CONTRATO_DEFAULT,
    ESTADO_ACTIVO,
    MONEDA_USD,
    NOMBRE_CONTRATO_DEFAULT,
    SCOPE_CONTRATOS,
    SCOPE_DASHBOARD,
    SCOPE_PERIODOS,
)
from app.utils.presupuesto import sumar_anios

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_response(row: Contrato) -> ContratoResponse:
    """Construct a ``ContratoResponse`` with items and period names."""
    return ContratoResponse(
        id=row.id,
        codigo=row.codigo,
        nombre=row.nombre,
        concurso=row.concurso,
        contrato_legal=row.contrato_legal,
        proveedor=row.proveedor,
        precio_unitario=float(row.precio_unitario) if row.precio_unitario is not None else None,
        fecha_inicio=row.fecha_inicio,
        moneda=row.moneda,
        items=[ContratoItemResponse.model_validate(i) for i in (row.items or [])],
        periodos=[p.nombre for p in (row.periodos or []) if p.nombre],
    )


def _clave_orden(contrato: ContratoResponse) -> str:
    """Sort key: alphabetically first item name, else the contract name."""
    nombres = sorted((i.nombre or "").lower() for i in contrato.items)
    if nombres:
        return nombres[0]
    return (contrato.nombre or "").lower()


def _build_items(items: list[ContratoItemCreate]) -> list[ContratoItem]:
    return [
        ContratoItem(
            codigo=item.codigo,
            nombre=item.nombre,
            moneda=item.moneda,
            precio_unitario=item.precio_unitario,
        )
        for item in items
    ]


def _copiar_cabecera(contrato: Contrato, items: list[ContratoItemCreate]) -> None:
    """Copy the first item's code, name, currency and price to the header."""
    primero = items[0] if items else None
    contrato.codigo = primero.codigo if primero else CODIGO_CONTRATO_DEFAULT
    contrato.nombre = primero.nombre if primero else NOMBRE_CONTRATO_DEFAULT
    contrato.moneda = primero.moneda if primero else MONEDA_USD
    contrato.precio_unitario = primero.precio_unitario if primero else 0


def _desvincular_pedidos(db: Session, contrato: Contrato) -> None:
    """Detach the contract's orders from the items about to be replaced.

    Orders keep their copied medication name and code.
    """
    item_ids = [item.id for item in contrato.items]
    if not item_ids:
        return
    periodo_ids = select(Periodo.id).where(Periodo.contract_id == contrato.id)
    desvinculados = (
        db.query(Pedido)
        .filter(Pedido.period_id.in_(periodo_ids), Pedido.item_id.in_(item_ids))
        .update({Pedido.item_id: None}, synchronize_session="fetch")
    )
    logger.debug(
        "_desvincular_pedidos: contrato_id=%d pedidos=%d", contrato.id, desvinculados
    )


def _invalidar() -> None:
    cache.invalidate(SCOPE_CONTRATOS, SCOPE_DASHBOARD, SCOPE_PERIODOS)


def get_contrato(db: Session, contrato_id: int) -> Contrato:
    """Load a contract or raise 404.

    Raises:
        HTTPException 404: If no contract with the given ID exists.
    """
    contrato = db.query(Contrato).filter(Contrato.id == contrato_id).first()
    if contrato is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Contrato con ID {contrato_id} no encontrado.",
        )
    return contrato


# ---------------------------------------------------------------------------
# Public service functions: reads
# ---------------------------------------------------------------------------


def list_contratos(db: Session, filters: FilterParams) -> list[ContratoResponse]:
    """Return contracts with items and period names, filtered and sorted.

    The search term matches contract name, code, provider, legal and tender
    references, and item names and codes (case-insensitive).  Results are
    ordered by the alphabetically first item name.

    Args:
        db: Active SQLAlchemy session.
        filters: Free-text term and optional contract ID.

    Returns:
        List of ``ContratoResponse``.
    """
    termino = filters.termino

    def _build() -> list[ContratoResponse]:
        query = db.query(Contrato).options(
            selectinload(Contrato.items),
            selectinload(Contrato.periodos),
        )
        if filters.contrato_id is not None:
            query = query.filter(Contrato.id == filters.contrato_id)
        if termino:
            patron = f"%{termino}%"
            con_item = select(ContratoItem.contract_id).where(
                or_(ContratoItem.nombre.ilike(patron), ContratoItem.codigo.ilike(patron))
            )
            query = query.filter(
                or_(
                    Contrato.nombre.ilike(patron),
                    Contrato.codigo.ilike(patron),
                    Contrato.proveedor.ilike(patron),
                    Contrato.contrato_legal.ilike(patron),
                    Contrato.concurso.ilike(patron),
                    Contrato.id.in_(con_item),
                )
            )
        contratos = [_build_response(row) for row in query.all()]
        contratos.sort(key=_clave_orden)
        return contratos

    contratos = cache.get_or_set(
        SCOPE_CONTRATOS, ("list", termino, filters.contrato_id), _build
    )
    logger.debug("list_contratos: q=%r total=%d", termino, len(contratos))
    return contratos


def get_detalle(db: Session, contrato_id: int) -> ContratoResponse:
    """Return a single contract with its items and period names.

    Raises:
        HTTPException 404: If no contract with the given ID exists.
    """
    row = get_contrato(db, contrato_id)
    logger.debug("get_detalle: contrato_id=%d codigo=%s", contrato_id, row.codigo)
    return _build_response(row)


# ---------------------------------------------------------------------------
# Public service functions: writes
# ---------------------------------------------------------------------------


def create_contrato(db: Session, data: ContratoCreate) -> Contrato:
    """Create a contract with its line items and initial period atomically.

    The initial period is ACTIVO, starts on ``periodo_inicial.fecha_inicio``,
    ends ``duracion_anios`` years later and carries ``presupuesto_inicial`` as
    both assigned and initial budget.

    Args:
        db: Active SQLAlchemy session.
        data: Validated creation payload.

    Returns:
        The persisted ``Contrato`` (with ``id`` set).

    Raises:
        SQLAlchemyError: Re-raised after rollback; nothing is left behind.
    """
    inicial = data.periodo_inicial

    contrato = Contrato(
        concurso=data.concurso,
        contrato_legal=data.contrato_legal,
        proveedor=data.proveedor,
        fecha_inicio=inicial.fecha_inicio,
    )
    _copiar_cabecera(contrato, data.items)
    contrato.items = _build_items(data.items)
    contrato.periodos = [
        Periodo(
            nombre=inicial.nombre,
            fecha_inicio=inicial.fecha_inicio,
            fecha_fin=sumar_anios(inicial.fecha_inicio, inicial.duracion_anios),
            presupuesto_asignado=inicial.presupuesto_inicial,
            presupuesto_inicial=inicial.presupuesto_inicial,
            estado=ESTADO_ACTIVO,
            moneda=contrato.moneda,
        )
    ]

    try:
        db.add(contrato)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("create_contrato: commit failed, composite rolled back")
        raise
    db.refresh(contrato)
    _invalidar()

    logger.info(
        "create_contrato: id=%d codigo=%s items=%d",
        contrato.id, contrato.codigo, len(data.items),
    )
    return contrato


def update_contrato(db: Session, contrato_id: int, data: ContratoUpdate) -> Contrato:
    """Update header fields and, when given, replace the line items.

    Item replacement and header changes share one transaction.

    Raises:
        HTTPException 404: If no contract with the given ID exists.
    """
    contrato = get_contrato(db, contrato_id)
    update_data = data.model_dump(exclude_unset=True, exclude={"items"})

    for field, value in update_data.items():
        if field == "proveedor" and value is None:
            continue
        setattr(contrato, field, value)

    if data.items is not None:
        _desvincular_pedidos(db, contrato)
        _copiar_cabecera(contrato, data.items)
        contrato.items = _build_items(data.items)

    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("update_contrato: commit failed for id=%d", contrato_id)
        raise
    db.refresh(contrato)
    _invalidar()

    logger.info(
        "update_contrato: id=%d fields=%s items_reemplazados=%s",
        contrato_id, list(update_data.keys()), data.items is not None,
    )
    return contrato


def delete_contrato(db: Session, contrato_id: int) -> None:
    """Hard-delete a contract with its items, periods, orders and injections."""
    contrato = get_contrato(db, contrato_id)
    try:
        db.delete(contrato)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("delete_contrato: commit failed for id=%d", contrato_id)
        raise
    _invalidar()
    logger.info("delete_contrato: id=%d", contrato_id)
