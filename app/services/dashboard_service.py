"""
Dashboard service layer.

Builds one summary card per contract from its active period plus the
counters shown above the cards.  Every figure comes from
``calcular_balance``; contracts without periods report a zero budget.

Results are cached under the ``dashboard`` scope, keyed by the current date
so the expiring flags roll over at midnight.
"""

from __future__ import annotations

import datetime
import logging

from sqlalchemy.orm import Session, selectinload

from app.config import get_settings
from app.models.contrato import Contrato
from app.models.periodo import Periodo
from app.schemas.dashboard import (
    ContratoResumen,
    DashboardResponse,
    DashboardStats,
    SaldoContrato,
)
from app.services.periodo_service import balance_de_periodo
from app.utils.cache import cache
from app.utils.constants import MONEDA_CRC, SCOPE_DASHBOARD
from app.utils.presupuesto import bucket_moneda, por_vencer, seleccionar_periodo_activo

logger = logging.getLogger(__name__)


def cargar_contratos(db: Session) -> list[Contrato]:
    """Load every contract with periods, orders and injections eagerly."""
    return (
        db.query(Contrato)
        .options(
            selectinload(Contrato.items),
            selectinload(Contrato.periodos).selectinload(Periodo.pedidos),
            selectinload(Contrato.periodos).selectinload(Periodo.inyecciones),
        )
        .order_by(Contrato.id.asc())
        .all()
    )


def moneda_de(contrato: Contrato, periodo: Periodo | None) -> str:
    """Currency bucket of the active period, falling back to the contract."""
    etiqueta = periodo.moneda if periodo is not None and periodo.moneda else contrato.moneda
    return bucket_moneda(etiqueta)


def resumir_contrato(contrato: Contrato, hoy: datetime.date) -> ContratoResumen:
    """Build the dashboard card of one contract."""
    settings = get_settings()
    periodo = seleccionar_periodo_activo(contrato.periodos)
    balance = balance_de_periodo(periodo)
    fecha_fin = periodo.fecha_fin if periodo is not None else None

    return ContratoResumen(
        contrato_id=contrato.id,
        codigo=contrato.codigo,
        nombre=contrato.nombre,
        proveedor=contrato.proveedor,
        contrato_legal=contrato.contrato_legal,
        concurso=contrato.concurso,
        periodos=[p.nombre for p in contrato.periodos if p.nombre],
        periodo_activo_id=periodo.id if periodo is not None else None,
        periodo_activo_nombre=periodo.nombre if periodo is not None else None,
        presupuesto_actual=balance.presupuesto_actual,
        monto_ejecutado=balance.monto_ejecutado,
        saldo=balance.saldo,
        porcentaje_ejecucion=round(balance.porcentaje_visible, 2),
        critico=balance.es_critico(settings.UMBRAL_EJECUCION_CRITICA),
        fecha_fin=fecha_fin,
        por_vencer=por_vencer(fecha_fin, hoy, settings.DIAS_ALERTA_VENCIMIENTO),
        moneda=moneda_de(contrato, periodo),
    )


def _calcular_stats(resumenes: list[ContratoResumen]) -> DashboardStats:
    stats = DashboardStats(
        total_contratos=len(resumenes),
        # Every registered contract counts as active
        contratos_activos=len(resumenes),
        contratos_criticos=sum(1 for r in resumenes if r.critico),
        contratos_por_vencer=sum(1 for r in resumenes if r.por_vencer),
    )
    for r in resumenes:
        if r.moneda == MONEDA_CRC:
            stats.presupuesto_crc += r.presupuesto_actual
            stats.ejecutado_crc += r.monto_ejecutado
        else:
            stats.presupuesto_usd += r.presupuesto_actual
            stats.ejecutado_usd += r.monto_ejecutado
    return stats


def get_dashboard(db: Session, hoy: datetime.date | None = None) -> DashboardResponse:
    """Return the dashboard cards and counters.

    Args:
        db: Active SQLAlchemy session.
        hoy: Reference date for the expiring window; today by default.

    Returns:
        ``DashboardResponse`` with one card per contract.
    """
    hoy = hoy or datetime.date.today()

    def _build() -> DashboardResponse:
        resumenes = [resumir_contrato(c, hoy) for c in cargar_contratos(db)]
        return DashboardResponse(stats=_calcular_stats(resumenes), contratos=resumenes)

    resultado = cache.get_or_set(SCOPE_DASHBOARD, ("resumen", hoy.isoformat()), _build)
    logger.debug(
        "get_dashboard: contratos=%d criticos=%d por_vencer=%d",
        resultado.stats.total_contratos,
        resultado.stats.contratos_criticos,
        resultado.stats.contratos_por_vencer,
    )
    return resultado


def get_saldos(db: Session) -> list[SaldoContrato]:
    """Return the available balance of each contract's active period."""

    def _build() -> list[SaldoContrato]:
        saldos: list[SaldoContrato] = []
        for contrato in cargar_contratos(db):
            periodo = seleccionar_periodo_activo(contrato.periodos)
            balance = balance_de_periodo(periodo)
            saldos.append(
                SaldoContrato(
                    contrato_id=contrato.id,
                    codigo=contrato.codigo,
                    nombre=contrato.nombre,
                    proveedor=contrato.proveedor,
                    periodo_id=periodo.id if periodo is not None else None,
                    periodo_nombre=periodo.nombre if periodo is not None else None,
                    presupuesto_actual=balance.presupuesto_actual,
                    saldo=balance.saldo,
                    moneda=moneda_de(contrato, periodo),
                )
            )
        return saldos

    return cache.get_or_set(SCOPE_DASHBOARD, ("saldos",), _build)
