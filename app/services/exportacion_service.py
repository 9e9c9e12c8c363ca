"""
Export service layer.

Coordinates data retrieval and format conversion for the export endpoints.
Reuses the list functions of the domain services so an export always
contains exactly what the matching screen shows for the same search term,
then hands the rows to ``to_csv`` or ``ExcelExporter``.

Supported modules
-----------------
- ``"contratos"``    — one row per line item, contract columns repeated.
- ``"pedidos"``      — global order history.
- ``"inyecciones"``  — global injection history.
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session

from app.exporters.csv_exporter import to_csv
from app.exporters.excel_exporter import ExcelExporter
from app.models.periodo import Periodo
from app.schemas.common import FilterParams
from app.services import contrato_service, inyeccion_service, pedido_service
from app.utils.constants import MONEDA_USD
from app.utils.presupuesto import normalizar_estado, seleccionar_periodo_activo

logger = logging.getLogger(__name__)

MODULOS_EXPORTACION: frozenset[str] = frozenset({"contratos", "pedidos", "inyecciones"})

_PREFIJOS: dict[str, str] = {
    "contratos": "contratos_export",
    "pedidos": "historial_pedidos",
    "inyecciones": "inyecciones_presupuesto",
}

_HEADERS_CONTRATOS = [
    "ID", "Código Contrato", "Referencia Legal", "Concurso", "Periodos", "Proveedor",
    "Item Código", "Item Descripción", "Precio Unitario", "Moneda", "Estado",
]
_HEADERS_PEDIDOS = [
    "Fecha", "Concurso", "N° Contrato", "Periodo", "Código Contrato", "Nombre Contrato",
    "Medicamento", "Proveedor", "Referencia SAP", "Referencia SICOP", "PUR", "N° Reserva",
    "Monto", "Moneda",
]
_HEADERS_INYECCIONES = [
    "Fecha", "Inyección ID", "Contrato", "Proveedor", "Oficio", "Monto", "Moneda", "Descripción",
]


@dataclass
class Dataset:
    """Rows ready for any export format."""

    titulo: str
    headers: list[str]
    rows: list[list[Any]]
    numeric_cols: set[int] = field(default_factory=set)
    resumen: dict[str, Any] = field(default_factory=dict)


def make_filename(modulo: str, ext: str, hoy: datetime.date | None = None) -> str:
    """Build the date-stamped download name, e.g. ``historial_pedidos_2026-03-01.csv``."""
    hoy = hoy or datetime.date.today()
    return f"{_PREFIJOS[modulo]}_{hoy.isoformat()}.{ext}"


# ---------------------------------------------------------------------------
# Dataset builders
# ---------------------------------------------------------------------------


def _estados_activos(db: Session, contrato_ids: list[int]) -> dict[int, str | None]:
    """State of the active period of each contract."""
    if not contrato_ids:
        return {}
    periodos = (
        db.query(Periodo)
        .filter(Periodo.contract_id.in_(contrato_ids))
        .order_by(Periodo.fecha_inicio.asc(), Periodo.id.asc())
        .all()
    )
    por_contrato: dict[int, list[Periodo]] = {}
    for periodo in periodos:
        por_contrato.setdefault(periodo.contract_id, []).append(periodo)
    estados: dict[int, str | None] = {}
    for contrato_id, lista in por_contrato.items():
        activo = seleccionar_periodo_activo(lista)
        estados[contrato_id] = normalizar_estado(activo.estado) if activo else None
    return estados


def _data_contratos(db: Session, filters: FilterParams) -> Dataset:
    contratos = contrato_service.list_contratos(db, filters)
    estados = _estados_activos(db, [c.id for c in contratos])

    rows: list[list[Any]] = []
    for c in contratos:
        base = [
            c.id,
            c.codigo,
            c.contrato_legal,
            c.concurso,
            ", ".join(c.periodos) or "N/A",
            c.proveedor,
        ]
        estado = estados.get(c.id) or ""
        if c.items:
            for item in c.items:
                rows.append(base + [
                    item.codigo,
                    item.nombre,
                    item.precio_unitario,
                    item.moneda or c.moneda or MONEDA_USD,
                    estado,
                ])
        else:
            rows.append(base + [
                "",
                c.nombre,
                c.precio_unitario,
                c.moneda or MONEDA_USD,
                estado,
            ])

    return Dataset(
        titulo="Contratos de medicamentos",
        headers=_HEADERS_CONTRATOS,
        rows=rows,
        numeric_cols={8},
        resumen={"Contratos": len(contratos), "Medicamentos": len(rows)},
    )


def _data_pedidos(db: Session, filters: FilterParams) -> Dataset:
    historial = pedido_service.list_historial(db, filters)
    rows = [
        [
            p.fecha_pedido.isoformat() if p.fecha_pedido else "",
            p.concurso or "-",
            p.contrato_legal or "-",
            p.periodo_nombre or "-",
            p.contrato_codigo,
            p.contrato_nombre,
            p.medicamento_nombre or "-",
            p.proveedor,
            p.numero_pedido_sap or "-",
            p.numero_pedido_sicop or "-",
            p.pur or "-",
            p.numero_reserva or "-",
            p.monto,
            p.moneda or MONEDA_USD,
        ]
        for p in historial
    ]
    return Dataset(
        titulo="Historial de pedidos",
        headers=_HEADERS_PEDIDOS,
        rows=rows,
        numeric_cols={12},
        resumen={"Pedidos": len(rows)},
    )


def _data_inyecciones(db: Session, filters: FilterParams) -> Dataset:
    historial = inyeccion_service.list_historial(db, filters)
    rows = [
        [
            i.fecha.isoformat() if i.fecha else "",
            i.id,
            i.contrato_legal or i.contrato_codigo or i.contrato_id,
            i.proveedor or "-",
            i.oficio or "-",
            i.monto,
            i.moneda or MONEDA_USD,
            i.descripcion or "",
        ]
        for i in historial
    ]
    return Dataset(
        titulo="Inyecciones de presupuesto",
        headers=_HEADERS_INYECCIONES,
        rows=rows,
        numeric_cols={5},
        resumen={"Inyecciones": len(rows)},
    )


_BUILDERS = {
    "contratos": _data_contratos,
    "pedidos": _data_pedidos,
    "inyecciones": _data_inyecciones,
}


def get_dataset(db: Session, modulo: str, filters: FilterParams) -> Dataset:
    """Return the rows of ``modulo``.

    Raises:
        ValueError: If ``modulo`` is not one of ``MODULOS_EXPORTACION``.
    """
    builder = _BUILDERS.get(modulo)
    if builder is None:
        raise ValueError(
            f"Módulo de exportación no reconocido: '{modulo}'. "
            f"Valores válidos: {sorted(MODULOS_EXPORTACION)}."
        )
    return builder(db, filters)


# ---------------------------------------------------------------------------
# Format converters
# ---------------------------------------------------------------------------


def _celda_csv(value: Any) -> Any:
    if isinstance(value, float):
        return f"{value:.2f}"
    return value


def export_csv(db: Session, modulo: str, filters: FilterParams) -> bytes:
    """Render ``modulo`` as UTF-8 CSV bytes."""
    dataset = get_dataset(db, modulo, filters)
    texto = to_csv(dataset.headers, ([_celda_csv(v) for v in row] for row in dataset.rows))
    logger.info("export_csv: modulo=%s filas=%d", modulo, len(dataset.rows))
    return texto.encode("utf-8")


def export_excel(db: Session, modulo: str, filters: FilterParams) -> bytes:
    """Render ``modulo`` as an ``.xlsx`` workbook."""
    dataset = get_dataset(db, modulo, filters)
    exporter = ExcelExporter(title=dataset.titulo, sheet_name=modulo.capitalize())
    exporter.add_header(num_cols=len(dataset.headers))
    exporter.add_summary(dataset.resumen)
    exporter.add_data_table(dataset.headers, dataset.rows, numeric_cols=dataset.numeric_cols)
    file_bytes = exporter.finalize()
    logger.info("export_excel: modulo=%s filas=%d bytes=%d", modulo, len(dataset.rows), len(file_bytes))
    return file_bytes
