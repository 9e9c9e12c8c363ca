"""
Estadísticas service layer.

Global figures for the statistics screen:

- execution per currency bucket over each contract's active period
- top contracts by unclamped execution percentage, deduplicated by code
- contracts whose active period ends within the alert window
- top medications by ordered amount normalised to USD
- monthly order trend for the last months, normalised to USD

CRC amounts are converted with the fixed ``TIPO_CAMBIO_CRC_USD`` rate.
"""

from __future__ import annotations

import datetime
import logging
from collections import defaultdict

from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.contrato import Contrato
from app.models.pedido import Pedido
from app.models.periodo import Periodo
from app.schemas.estadistica import (
    ContratoEjecucion,
    ContratoPorVencer,
    EjecucionMoneda,
    EstadisticasResponse,
    MedicamentoTop,
    TendenciaMes,
)
from app.services.dashboard_service import cargar_contratos, moneda_de
from app.services.periodo_service import balance_de_periodo
from app.utils.cache import cache
from app.utils.constants import (
    MES_LABELS,
    MESES_TENDENCIA,
    MONEDA_CRC,
    MONEDA_USD,
    SCOPE_DASHBOARD,
    TOP_CONTRATOS,
    TOP_MEDICAMENTOS,
)
from app.utils.presupuesto import bucket_moneda, por_vencer, seleccionar_periodo_activo

logger = logging.getLogger(__name__)


def _safe_pct(numerator: float, denominator: float) -> float:
    if denominator <= 0:
        return 0.0
    return round((numerator / denominator) * 100, 2)


def a_usd(monto: float, moneda: str, tipo_cambio: float) -> float:
    """Convert ``monto`` to USD when its bucket is CRC."""
    if moneda == MONEDA_CRC and tipo_cambio > 0:
        return monto / tipo_cambio
    return monto


def ultimos_meses(hoy: datetime.date, cantidad: int = MESES_TENDENCIA) -> list[tuple[int, int]]:
    """Return ``(anio, mes)`` pairs for the last ``cantidad`` months, oldest first."""
    meses: list[tuple[int, int]] = []
    anio, mes = hoy.year, hoy.month
    for _ in range(cantidad):
        meses.append((anio, mes))
        mes -= 1
        if mes == 0:
            anio, mes = anio - 1, 12
    return list(reversed(meses))


def _tendencia(
    pedidos: list[tuple[Pedido, str]],
    hoy: datetime.date,
    tipo_cambio: float,
) -> list[TendenciaMes]:
    totales: dict[tuple[int, int], float] = {clave: 0.0 for clave in ultimos_meses(hoy)}
    for pedido, moneda in pedidos:
        if pedido.fecha_pedido is None:
            continue
        clave = (pedido.fecha_pedido.year, pedido.fecha_pedido.month)
        if clave in totales:
            totales[clave] += a_usd(float(pedido.monto or 0), moneda, tipo_cambio)

    maximo = max(totales.values()) or 1.0
    return [
        TendenciaMes(
            anio=anio,
            mes=mes,
            label=MES_LABELS[mes],
            total_usd=round(total, 2),
            porcentaje=round(total / maximo * 100, 2),
        )
        for (anio, mes), total in totales.items()
    ]


def _top_medicamentos(
    pedidos: list[tuple[Pedido, str, str | None]],
    tipo_cambio: float,
) -> list[MedicamentoTop]:
    acumulado: dict[str, dict[str, float]] = defaultdict(lambda: {"total": 0.0, "pedidos": 0})
    for pedido, moneda, nombre_contrato in pedidos:
        nombre = pedido.medicamento_nombre or nombre_contrato or "Desconocido"
        acumulado[nombre]["total"] += a_usd(float(pedido.monto or 0), moneda, tipo_cambio)
        acumulado[nombre]["pedidos"] += 1

    ranking = sorted(acumulado.items(), key=lambda kv: kv[1]["total"], reverse=True)
    return [
        MedicamentoTop(nombre=nombre, total_usd=round(datos["total"], 2), pedidos=int(datos["pedidos"]))
        for nombre, datos in ranking[:TOP_MEDICAMENTOS]
    ]


def get_estadisticas(db: Session, hoy: datetime.date | None = None) -> EstadisticasResponse:
    """Compute the global statistics.

    Args:
        db: Active SQLAlchemy session.
        hoy: Reference date for the expiring window and the trend.

    Returns:
        ``EstadisticasResponse``.
    """
    hoy = hoy or datetime.date.today()
    settings = get_settings()

    def _build() -> EstadisticasResponse:
        tipo_cambio = settings.TIPO_CAMBIO_CRC_USD
        ejecucion = {
            MONEDA_USD: EjecucionMoneda(moneda=MONEDA_USD),
            MONEDA_CRC: EjecucionMoneda(moneda=MONEDA_CRC),
        }
        por_codigo: dict[str, ContratoEjecucion] = {}
        vencimientos: list[ContratoPorVencer] = []

        for contrato in cargar_contratos(db):
            periodo = seleccionar_periodo_activo(contrato.periodos)
            if periodo is None:
                continue
            balance = balance_de_periodo(periodo)
            moneda = moneda_de(contrato, periodo)

            ejecucion[moneda].presupuesto += balance.presupuesto_actual
            ejecucion[moneda].ejecutado += balance.monto_ejecutado

            fila = ContratoEjecucion(
                contrato_id=contrato.id,
                codigo=contrato.codigo,
                nombre=contrato.nombre,
                proveedor=contrato.proveedor,
                presupuesto_actual=balance.presupuesto_actual,
                monto_ejecutado=balance.monto_ejecutado,
                porcentaje_ejecucion=round(balance.porcentaje_ejecucion, 2),
                moneda=moneda,
            )
            clave = contrato.codigo or contrato.nombre or str(contrato.id)
            previo = por_codigo.get(clave)
            if previo is None or previo.porcentaje_ejecucion < fila.porcentaje_ejecucion:
                por_codigo[clave] = fila

            if por_vencer(periodo.fecha_fin, hoy, settings.DIAS_ALERTA_VENCIMIENTO):
                vencimientos.append(
                    ContratoPorVencer(
                        contrato_id=contrato.id,
                        codigo=contrato.codigo,
                        nombre=contrato.nombre,
                        proveedor=contrato.proveedor,
                        fecha_fin=periodo.fecha_fin,
                        dias_restantes=(periodo.fecha_fin - hoy).days,
                    )
                )

        for fila in ejecucion.values():
            fila.porcentaje = _safe_pct(fila.ejecutado, fila.presupuesto)

        top = sorted(por_codigo.values(), key=lambda c: c.porcentaje_ejecucion, reverse=True)
        vencimientos.sort(key=lambda v: v.fecha_fin)

        filas = (
            db.query(Pedido, Periodo.moneda, Contrato.moneda, Contrato.nombre)
            .join(Periodo, Pedido.period_id == Periodo.id)
            .join(Contrato, Periodo.contract_id == Contrato.id)
            .all()
        )
        pedidos = [
            (pedido, bucket_moneda(moneda_periodo or moneda_contrato), nombre)
            for pedido, moneda_periodo, moneda_contrato, nombre in filas
        ]

        return EstadisticasResponse(
            ejecucion_usd=ejecucion[MONEDA_USD],
            ejecucion_crc=ejecucion[MONEDA_CRC],
            top_contratos=top[:TOP_CONTRATOS],
            por_vencer=vencimientos,
            top_medicamentos=_top_medicamentos(pedidos, tipo_cambio),
            tendencia_mensual=_tendencia([(p, m) for p, m, _ in pedidos], hoy, tipo_cambio),
        )

    resultado = cache.get_or_set(SCOPE_DASHBOARD, ("estadisticas", hoy.isoformat()), _build)
    logger.debug(
        "get_estadisticas: top=%d por_vencer=%d",
        len(resultado.top_contratos), len(resultado.por_vencer),
    )
    return resultado
