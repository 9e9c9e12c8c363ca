"""
Pedidos service layer.

Orders debit a period's balance.  Every write validates that the amount does
not exceed the available balance computed by ``balance_de_periodo``; when an
existing order is edited its own previous amount is added back first.

The global history flattens order → period → contract into one record per
order so the client needs no extra lookups.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.contrato import Contrato
from app.models.contrato_item import ContratoItem
from app.models.pedido import Pedido
from app.models.periodo import Periodo
from app.schemas.common import FilterParams
from app.schemas.pedido import PedidoCreate, PedidoHistorialResponse, PedidoResponse, PedidoUpdate
from app.services.periodo_service import balance_de_periodo, get_periodo
from app.utils.cache import cache
from app.utils.constants import SCOPE_DASHBOARD

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _get_pedido(db: Session, pedido_id: int) -> Pedido:
    pedido = db.query(Pedido).filter(Pedido.id == pedido_id).first()
    if pedido is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Pedido con ID {pedido_id} no encontrado.",
        )
    return pedido


def _resolver_item(db: Session, periodo: Periodo, item_id: int | None) -> ContratoItem | None:
    """Return the referenced item, checking it belongs to the period's contract.

    Raises:
        HTTPException 422: If the item does not exist or belongs elsewhere.
    """
    if item_id is None:
        return None
    item = db.query(ContratoItem).filter(ContratoItem.id == item_id).first()
    if item is None or item.contract_id != periodo.contract_id:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"El medicamento con ID {item_id} no pertenece al contrato del periodo.",
        )
    return item


def _monto_calculado(periodo: Periodo, item: ContratoItem | None, cantidad: int) -> float:
    """Quantity times the item unit price (contract unit price without item)."""
    if item is not None:
        precio = item.precio_unitario
    else:
        precio = periodo.contrato.precio_unitario
    return round(float(precio or 0) * cantidad, 2)


def _validar_monto(monto: float, disponible: float) -> None:
    """Reject non-positive amounts and amounts above the available balance.

    Raises:
        HTTPException 422: With a human-readable reason.
    """
    if monto <= 0:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="El monto del pedido debe ser mayor a cero.",
        )
    if round(monto, 2) > round(disponible, 2):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=(
                f"El monto del pedido ({monto:,.2f}) excede el saldo disponible "
                f"({disponible:,.2f})."
            ),
        )


def _commit(db: Session, operacion: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("%s: commit failed", operacion)
        raise
    cache.invalidate(SCOPE_DASHBOARD)


def _historial_query(db: Session, filters: FilterParams) -> Any:
    query = (
        db.query(Pedido, Periodo, Contrato)
        .join(Periodo, Pedido.period_id == Periodo.id)
        .join(Contrato, Periodo.contract_id == Contrato.id)
    )
    if filters.contrato_id is not None:
        query = query.filter(Contrato.id == filters.contrato_id)
    if filters.termino:
        patron = f"%{filters.termino}%"
        query = query.filter(
            or_(
                Contrato.codigo.ilike(patron),
                Contrato.nombre.ilike(patron),
                Contrato.proveedor.ilike(patron),
                Pedido.medicamento_nombre.ilike(patron),
                Pedido.numero_pedido_sap.ilike(patron),
                Pedido.numero_pedido_sicop.ilike(patron),
            )
        )
    return query.order_by(Pedido.fecha_pedido.desc(), Pedido.id.desc())


# ---------------------------------------------------------------------------
# Public service functions: reads
# ---------------------------------------------------------------------------


def list_pedidos(db: Session, periodo_id: int) -> list[Pedido]:
    """Return the orders of a period, newest order date first.

    Raises:
        HTTPException 404: If the period does not exist.
    """
    get_periodo(db, periodo_id)
    rows = (
        db.query(Pedido)
        .filter(Pedido.period_id == periodo_id)
        .order_by(Pedido.fecha_pedido.desc(), Pedido.id.desc())
        .all()
    )
    logger.debug("list_pedidos: periodo_id=%d total=%d", periodo_id, len(rows))
    return rows


def list_historial(db: Session, filters: FilterParams) -> list[PedidoHistorialResponse]:
    """Return every order flattened with its period and contract.

    Args:
        db: Active SQLAlchemy session.
        filters: Search term over contract code/name, provider, medication
            and SAP/SICOP numbers; optional contract ID.

    Returns:
        Orders sorted by order date descending.
    """
    historial: list[PedidoHistorialResponse] = []
    for pedido, periodo, contrato in _historial_query(db, filters).all():
        base = PedidoResponse.model_validate(pedido).model_dump()
        historial.append(
            PedidoHistorialResponse(
                **base,
                periodo_nombre=periodo.nombre,
                contrato_id=contrato.id,
                contrato_codigo=contrato.codigo,
                contrato_nombre=contrato.nombre,
                contrato_legal=contrato.contrato_legal,
                concurso=contrato.concurso,
                proveedor=contrato.proveedor,
                moneda=periodo.moneda or contrato.moneda,
            )
        )
    logger.debug("list_historial: q=%r total=%d", filters.termino, len(historial))
    return historial


# ---------------------------------------------------------------------------
# Public service functions: writes
# ---------------------------------------------------------------------------


def create_pedido(db: Session, periodo_id: int, data: PedidoCreate) -> Pedido:
    """Register an order against a period.

    Args:
        db: Active SQLAlchemy session.
        periodo_id: Period the order debits.
        data: Validated creation payload.

    Returns:
        The persisted ``Pedido``.

    Raises:
        HTTPException 404: If the period does not exist.
        HTTPException 422: If the item is foreign to the contract or the
                           amount is not positive or exceeds the balance.
    """
    periodo = get_periodo(db, periodo_id)
    item = _resolver_item(db, periodo, data.item_id)

    monto = data.monto
    if monto is None:
        monto = _monto_calculado(periodo, item, data.cantidad_medicamento)
    _validar_monto(monto, balance_de_periodo(periodo).saldo)

    pedido = Pedido(
        period_id=periodo.id,
        fecha_pedido=data.fecha_pedido,
        numero_pedido_sap=data.numero_pedido_sap,
        numero_pedido_sicop=data.numero_pedido_sicop,
        pur=data.pur,
        numero_reserva=data.numero_reserva,
        cantidad_medicamento=data.cantidad_medicamento,
        monto=monto,
        descripcion=data.descripcion,
        item_id=item.id if item else None,
        medicamento_nombre=item.nombre if item else None,
        medicamento_codigo=item.codigo if item else None,
    )
    db.add(pedido)
    _commit(db, "create_pedido")
    db.refresh(pedido)

    logger.info(
        "create_pedido: id=%d periodo_id=%d monto=%.2f", pedido.id, periodo_id, monto
    )
    return pedido


def update_pedido(db: Session, pedido_id: int, data: PedidoUpdate) -> Pedido:
    """Apply a partial update to an order.

    The period never changes.  When quantity or item change and no explicit
    amount is sent the amount is recomputed from the unit price.
    An order whose medication was removed from the contract needs an
    explicit amount for that.

    Raises:
        HTTPException 404: If the order does not exist.
        HTTPException 422: If the item or the amount is invalid.
    """
    pedido = _get_pedido(db, pedido_id)
    periodo = pedido.periodo
    update_data = data.model_dump(exclude_unset=True)

    if "item_id" in update_data:
        item = _resolver_item(db, periodo, update_data["item_id"])
        update_data["medicamento_nombre"] = item.nombre if item else None
        update_data["medicamento_codigo"] = item.codigo if item else None
    elif pedido.item_id is not None:
        item = db.query(ContratoItem).filter(ContratoItem.id == pedido.item_id).first()
    else:
        item = None

    if update_data.get("cantidad_medicamento") is None:
        update_data.pop("cantidad_medicamento", None)
    if update_data.get("monto") is None:
        update_data.pop("monto", None)
        if "cantidad_medicamento" in update_data or "item_id" in update_data:
            if item is None and "item_id" not in update_data and pedido.medicamento_codigo:
                raise HTTPException(
                    status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                    detail=(
                        f"El medicamento {pedido.medicamento_codigo} ya no pertenece al "
                        "contrato; indique el monto del pedido."
                    ),
                )
            cantidad = update_data.get("cantidad_medicamento", pedido.cantidad_medicamento)
            update_data["monto"] = _monto_calculado(periodo, item, cantidad)

    if "monto" in update_data:
        disponible = balance_de_periodo(periodo).saldo + float(pedido.monto or 0)
        _validar_monto(update_data["monto"], disponible)

    for field, value in update_data.items():
        setattr(pedido, field, value)

    _commit(db, "update_pedido")
    db.refresh(pedido)

    logger.info("update_pedido: id=%d fields=%s", pedido_id, list(update_data.keys()))
    return pedido


def delete_pedido(db: Session, pedido_id: int) -> None:
    """Hard-delete an order, returning its amount to the period balance."""
    pedido = _get_pedido(db, pedido_id)
    db.delete(pedido)
    _commit(db, "delete_pedido")
    logger.info("delete_pedido: id=%d", pedido_id)
