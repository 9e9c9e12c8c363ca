"""
Excel export helper wrapping xlsxwriter.

Provides ``ExcelExporter`` — a builder that writes a titled worksheet with
an optional summary block and a styled data table into an in-memory
workbook, returning its bytes for streaming via ``StreamingResponse``.

Usage example::

    exporter = ExcelExporter(title="Historial de pedidos")
    exporter.add_header()
    exporter.add_summary({"Pedidos": 12, "Monto total": 45_000.0})
    exporter.add_data_table(headers, rows, numeric_cols={12})
    file_bytes = exporter.finalize()
"""

from __future__ import annotations

import io
from datetime import datetime
from typing import Any, Sequence

import xlsxwriter

_COLOR_PRIMARY = "#2563EB"
_COLOR_HEADER_BG = "#1E3A5F"
_COLOR_WHITE = "#FFFFFF"
_COLOR_ALT_ROW = "#F3F4F6"
_COLOR_BORDER = "#E5E7EB"

_MONEY_FORMAT = "#,##0.00"
_MAX_COL_WIDTH = 60
_MIN_COL_WIDTH = 8


class ExcelExporter:
    """Single-sheet workbook builder.

    Args:
        title: Report title written in the merged header row.
        sheet_name: Worksheet tab name (Excel limits it to 31 characters).
    """

    def __init__(self, title: str, sheet_name: str = "Datos") -> None:
        self._title = title
        self._buffer = io.BytesIO()
        self._workbook = xlsxwriter.Workbook(self._buffer, {"in_memory": True})
        self._worksheet = self._workbook.add_worksheet(sheet_name[:31])
        self._row = 0
        self._formats = self._build_formats()

    def _build_formats(self) -> dict[str, Any]:
        wb = self._workbook
        cell = {"font_size": 9, "valign": "vcenter", "border": 1, "border_color": _COLOR_BORDER}
        return {
            "title": wb.add_format({
                "bold": True,
                "font_size": 14,
                "font_color": _COLOR_WHITE,
                "bg_color": _COLOR_PRIMARY,
                "align": "center",
                "valign": "vcenter",
            }),
            "subtitle": wb.add_format({
                "font_size": 9,
                "font_color": _COLOR_WHITE,
                "bg_color": _COLOR_HEADER_BG,
                "align": "center",
            }),
            "summary_label": wb.add_format({"bold": True, "font_size": 9, "bg_color": "#EFF6FF"}),
            "summary_value": wb.add_format({
                "bold": True,
                "font_size": 10,
                "font_color": _COLOR_PRIMARY,
                "num_format": _MONEY_FORMAT,
            }),
            "col_header": wb.add_format({
                "bold": True,
                "font_size": 10,
                "font_color": _COLOR_WHITE,
                "bg_color": _COLOR_HEADER_BG,
                "align": "center",
                "valign": "vcenter",
                "border": 1,
                "text_wrap": True,
            }),
            "text": wb.add_format(cell),
            "text_alt": wb.add_format({**cell, "bg_color": _COLOR_ALT_ROW}),
            "number": wb.add_format({**cell, "align": "right", "num_format": _MONEY_FORMAT}),
            "number_alt": wb.add_format({
                **cell,
                "align": "right",
                "num_format": _MONEY_FORMAT,
                "bg_color": _COLOR_ALT_ROW,
            }),
        }

    def add_header(self, num_cols: int = 6) -> "ExcelExporter":
        """Write the merged title row and the generation timestamp."""
        ws = self._worksheet
        ws.set_row(self._row, 28)
        ws.merge_range(self._row, 0, self._row, num_cols - 1, self._title, self._formats["title"])
        self._row += 1
        generado = datetime.now().strftime("%d/%m/%Y %H:%M")
        ws.merge_range(
            self._row, 0, self._row, num_cols - 1,
            f"Generado: {generado}",
            self._formats["subtitle"],
        )
        self._row += 2
        return self

    def add_summary(self, values: dict[str, Any]) -> "ExcelExporter":
        """Write one ``label | value`` line per summary entry."""
        for label, value in values.items():
            self._worksheet.write(self._row, 0, label, self._formats["summary_label"])
            self._worksheet.write(self._row, 1, value, self._formats["summary_value"])
            self._row += 1
        self._row += 1
        return self

    def add_data_table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[Any]],
        numeric_cols: set[int] | None = None,
    ) -> "ExcelExporter":
        """Write the column headers and the rows with alternating shading.

        Args:
            headers: Column titles.
            rows: Data rows matching ``headers`` in length.
            numeric_cols: Zero-based indices written with the money format.
        """
        ws = self._worksheet
        numeric_cols = numeric_cols or set()
        widths = [len(str(h)) for h in headers]

        for ci, header in enumerate(headers):
            ws.write(self._row, ci, header, self._formats["col_header"])
        self._row += 1

        for ri, row in enumerate(rows):
            alt = "_alt" if ri % 2 == 1 else ""
            for ci, value in enumerate(row):
                numeric = ci in numeric_cols and isinstance(value, (int, float))
                fmt = self._formats[("number" if numeric else "text") + alt]
                ws.write(self._row, ci, "" if value is None else value, fmt)
                widths[ci] = min(_MAX_COL_WIDTH, max(widths[ci], len(str(value or ""))))
            self._row += 1

        for ci, width in enumerate(widths):
            ws.set_column(ci, ci, max(width + 2, _MIN_COL_WIDTH))
        return self

    def finalize(self) -> bytes:
        """Close the workbook and return the ``.xlsx`` bytes."""
        self._workbook.close()
        self._buffer.seek(0)
        return self._buffer.read()
