"""
Periodos service layer.

All database access for contract periods lives here, together with the
state-machine rules enforced on every write:

- PENDIENTE → ACTIVO | CERRADO
- ACTIVO    → CERRADO
- CERRADO is terminal
- at most one ACTIVO period per contract

Legacy free-text states ("Activo", "Pendiente") are normalised through
``normalizar_estado`` before any comparison.

``balance_de_periodo`` is the single entry point every other service uses to
obtain a period's budget figures.
"""

from __future__ import annotations

import datetime
import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.contrato import Contrato
from app.models.periodo import Periodo
from app.schemas.periodo import BalanceResponse, PeriodoCreate, PeriodoResponse, PeriodoUpdate
from app.utils.cache import cache
from app.utils.constants import (
    ESTADO_ACTIVO,
    ESTADO_PENDIENTE,
    SCOPE_CONTRATOS,
    SCOPE_DASHBOARD,
    SCOPE_PERIODOS,
    TRANSICIONES_PERIODO,
)
from app.utils.presupuesto import BalancePeriodo, calcular_balance, normalizar_estado, sumar_anios

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _get_contrato(db: Session, contrato_id: int) -> Contrato:
    contrato = db.query(Contrato).filter(Contrato.id == contrato_id).first()
    if contrato is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Contrato con ID {contrato_id} no encontrado.",
        )
    return contrato


def get_periodo(db: Session, periodo_id: int) -> Periodo:
    """Load a period or raise 404.

    Raises:
        HTTPException 404: If no period with the given ID exists.
    """
    periodo = db.query(Periodo).filter(Periodo.id == periodo_id).first()
    if periodo is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Periodo con ID {periodo_id} no encontrado.",
        )
    return periodo


def _periodos_de(db: Session, contrato_id: int) -> list[Periodo]:
    return (
        db.query(Periodo)
        .filter(Periodo.contract_id == contrato_id)
        .order_by(Periodo.fecha_inicio.asc(), Periodo.id.asc())
        .all()
    )


def _verificar_activo_unico(
    periodos: list[Periodo],
    excluir_id: int | None = None,
) -> None:
    """Raise 409 when another period of the contract is already ACTIVO."""
    for periodo in periodos:
        if periodo.id == excluir_id:
            continue
        if normalizar_estado(periodo.estado) == ESTADO_ACTIVO:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=(
                    f"El contrato ya tiene un periodo activo ({periodo.nombre}). "
                    "Cierre ese periodo antes de activar otro."
                ),
            )


def _verificar_transicion(actual: str | None, nuevo: str) -> None:
    """Raise 409 when ``actual`` → ``nuevo`` is not an allowed transition.

    Unknown legacy states behave as PENDIENTE.
    """
    actual_norm = normalizar_estado(actual) or ESTADO_PENDIENTE
    if actual_norm == nuevo:
        return
    permitidos = TRANSICIONES_PERIODO.get(actual_norm, TRANSICIONES_PERIODO[ESTADO_PENDIENTE])
    if nuevo not in permitidos:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Transición de estado no permitida: {actual_norm} → {nuevo}.",
        )


def _invalidar() -> None:
    cache.invalidate(SCOPE_PERIODOS, SCOPE_DASHBOARD, SCOPE_CONTRATOS)


def balance_de_periodo(periodo: Periodo | None) -> BalancePeriodo:
    """Aggregate the injections and orders loaded through the relationships."""
    if periodo is None:
        return calcular_balance(None, [], [])
    return calcular_balance(periodo, periodo.inyecciones, periodo.pedidos)


# ---------------------------------------------------------------------------
# Public service functions: reads
# ---------------------------------------------------------------------------


def list_periodos(db: Session, contrato_id: int) -> list[PeriodoResponse]:
    """Return the periods of a contract ordered by start date ascending.

    Raises:
        HTTPException 404: If the contract does not exist.
    """
    _get_contrato(db, contrato_id)

    def _build() -> list[PeriodoResponse]:
        return [PeriodoResponse.model_validate(p) for p in _periodos_de(db, contrato_id)]

    periodos = cache.get_or_set(SCOPE_PERIODOS, ("contrato", contrato_id), _build)
    logger.debug("list_periodos: contrato_id=%d total=%d", contrato_id, len(periodos))
    return periodos


def get_balance(db: Session, periodo_id: int) -> BalanceResponse:
    """Return budget, execution and balance of a single period.

    Raises:
        HTTPException 404: If the period does not exist.
    """
    periodo = get_periodo(db, periodo_id)
    balance = balance_de_periodo(periodo)
    umbral = get_settings().UMBRAL_EJECUCION_CRITICA

    return BalanceResponse(
        periodo_id=periodo.id,
        presupuesto_asignado=balance.presupuesto_asignado,
        total_inyectado=balance.total_inyectado,
        presupuesto_actual=balance.presupuesto_actual,
        monto_ejecutado=balance.monto_ejecutado,
        saldo=balance.saldo,
        porcentaje_ejecucion=round(balance.porcentaje_ejecucion, 2),
        porcentaje_visible=round(balance.porcentaje_visible, 2),
        critico=balance.es_critico(umbral),
        moneda=periodo.moneda or periodo.contrato.moneda,
    )


# ---------------------------------------------------------------------------
# Public service functions: writes
# ---------------------------------------------------------------------------


def create_periodo(db: Session, contrato_id: int, data: PeriodoCreate) -> Periodo:
    """Add a period to a contract.

    Missing dates are derived: the period starts the day after the latest
    existing end date (the contract start date, or today, when there are no
    periods) and ends ``duracion_anios`` years later.  The default name is
    ``"Periodo {n+1}"``.

    Args:
        db: Active SQLAlchemy session.
        contrato_id: Owning contract.
        data: Validated creation payload.

    Returns:
        The persisted ``Periodo``.

    Raises:
        HTTPException 404: If the contract does not exist.
        HTTPException 409: If the new period is ACTIVO and another one already is.
        HTTPException 422: If the derived end date precedes the start date.
    """
    contrato = _get_contrato(db, contrato_id)
    existentes = _periodos_de(db, contrato_id)

    if data.estado == ESTADO_ACTIVO:
        _verificar_activo_unico(existentes)

    fecha_inicio = data.fecha_inicio
    if fecha_inicio is None:
        fines = [p.fecha_fin for p in existentes if p.fecha_fin is not None]
        if fines:
            fecha_inicio = max(fines) + datetime.timedelta(days=1)
        else:
            fecha_inicio = contrato.fecha_inicio or datetime.date.today()
    fecha_fin = data.fecha_fin or sumar_anios(fecha_inicio, data.duracion_anios)

    if fecha_fin < fecha_inicio:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="La fecha de fin no puede ser anterior a la fecha de inicio.",
        )

    periodo = Periodo(
        contract_id=contrato.id,
        nombre=data.nombre or f"Periodo {len(existentes) + 1}",
        fecha_inicio=fecha_inicio,
        fecha_fin=fecha_fin,
        presupuesto_asignado=data.presupuesto_asignado,
        presupuesto_inicial=data.presupuesto_asignado,
        estado=data.estado,
        moneda=contrato.moneda,
    )

    try:
        db.add(periodo)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("create_periodo: commit failed for contrato_id=%d", contrato_id)
        raise
    db.refresh(periodo)
    _invalidar()

    logger.info(
        "create_periodo: id=%d contrato_id=%d %s..%s estado=%s",
        periodo.id, contrato_id, fecha_inicio, fecha_fin, periodo.estado,
    )
    return periodo


def update_periodo(db: Session, periodo_id: int, data: PeriodoUpdate) -> Periodo:
    """Apply a partial update to a period, enforcing the state rules.

    Raises:
        HTTPException 404: If the period does not exist.
        HTTPException 409: On a forbidden transition or a second ACTIVO period.
        HTTPException 422: If the resulting dates are inverted.
    """
    periodo = get_periodo(db, periodo_id)
    update_data = data.model_dump(exclude_unset=True, exclude_none=True)

    nuevo_estado = update_data.get("estado")
    if nuevo_estado is not None:
        _verificar_transicion(periodo.estado, nuevo_estado)
        if nuevo_estado == ESTADO_ACTIVO:
            _verificar_activo_unico(_periodos_de(db, periodo.contract_id), excluir_id=periodo.id)

    inicio = update_data.get("fecha_inicio", periodo.fecha_inicio)
    fin = update_data.get("fecha_fin", periodo.fecha_fin)
    if inicio is not None and fin is not None and fin < inicio:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="La fecha de fin no puede ser anterior a la fecha de inicio.",
        )

    for field, value in update_data.items():
        setattr(periodo, field, value)

    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("update_periodo: commit failed for id=%d", periodo_id)
        raise
    db.refresh(periodo)
    _invalidar()

    logger.info("update_periodo: id=%d fields=%s", periodo_id, list(update_data.keys()))
    return periodo


def delete_periodo(db: Session, periodo_id: int) -> None:
    """Hard-delete a period together with its orders and injections."""
    periodo = get_periodo(db, periodo_id)
    try:
        db.delete(periodo)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("delete_periodo: commit failed for id=%d", periodo_id)
        raise
    _invalidar()
    logger.info("delete_periodo: id=%d", periodo_id)
