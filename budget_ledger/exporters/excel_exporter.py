"""
Excel export helper wrapping xlsxwriter.

Provides ``LedgerWorkbook``, a builder that lays out one styled worksheet
in memory and returns its bytes for streaming via FastAPI's
``StreamingResponse``.

Usage example::

    workbook = LedgerWorkbook(title="Allocations 2024-25", filters={"Financial year": "2024-25"})
    workbook.add_header()
    workbook.add_totals_row(totals)
    workbook.add_data_table(headers, rows, numeric_cols={4, 5}, flag_cols={9})
    file_bytes = workbook.finalize()

Design notes
------------
- Column widths follow the longest cell in each column, capped at 50.
- Money cells use ``#,##0.00``; released-flag columns render ``Yes``/``No``.
- Negative money (net withdrawals) is shown in red.
"""

from __future__ import annotations

import io
from datetime import datetime, timezone
from typing import Any, Sequence

import xlsxwriter
from xlsxwriter.workbook import Workbook
from xlsxwriter.worksheet import Worksheet

_COLOR_PRIMARY = "#1F4E79"
_COLOR_HEADER_BG = "#2E75B6"
_COLOR_BAND = "#F2F2F2"
_COLOR_WHITE = "#FFFFFF"
_COLOR_BORDER = "#D9D9D9"

_MONEY = "#,##0.00;[Red]-#,##0.00"

_MAX_COL_WIDTH = 50
_MIN_COL_WIDTH = 8


class LedgerWorkbook:
    """Single-sheet workbook builder for ledger reports.

    Args:
        title: Report title shown in the banner row.
        filters: Applied filters rendered under the banner.
        sheet_name: Worksheet tab name.
    """

    def __init__(
        self,
        title: str,
        filters: dict[str, str] | None = None,
        sheet_name: str = "Allocations",
    ) -> None:
        self._title = title
        self._filters = filters or {}

        self._buffer = io.BytesIO()
        self._workbook: Workbook = xlsxwriter.Workbook(self._buffer, {"in_memory": True})
        self._worksheet: Worksheet = self._workbook.add_worksheet(sheet_name)

        self._current_row: int = 0
        self._num_cols: int = 6
        self._formats: dict[str, Any] = self._build_formats()

    # -----------------------------------------------------------------------
    # Format factory
    # -----------------------------------------------------------------------

    def _build_formats(self) -> dict[str, Any]:
        wb = self._workbook
        cell = {"font_size": 9, "valign": "vcenter", "border": 1, "border_color": _COLOR_BORDER}
        return {
            "banner": wb.add_format({
                "bold": True, "font_size": 14, "font_color": _COLOR_WHITE,
                "bg_color": _COLOR_PRIMARY, "align": "center", "valign": "vcenter",
            }),
            "stamp": wb.add_format({
                "font_size": 9, "font_color": _COLOR_WHITE,
                "bg_color": _COLOR_HEADER_BG, "align": "center",
            }),
            "filter_key": wb.add_format({"bold": True, "font_size": 9, "align": "right"}),
            "filter_value": wb.add_format({"font_size": 9}),
            "total_label": wb.add_format({**cell, "bold": True, "bg_color": "#DDEBF7"}),
            "total_value": wb.add_format({
                **cell, "bold": True, "bg_color": "#DDEBF7", "num_format": _MONEY,
            }),
            "col_header": wb.add_format({
                **cell, "bold": True, "font_color": _COLOR_WHITE,
                "bg_color": _COLOR_HEADER_BG, "align": "center", "text_wrap": True,
            }),
            "text": wb.add_format({**cell}),
            "text_alt": wb.add_format({**cell, "bg_color": _COLOR_BAND}),
            "money": wb.add_format({**cell, "align": "right", "num_format": _MONEY}),
            "money_alt": wb.add_format({
                **cell, "align": "right", "num_format": _MONEY, "bg_color": _COLOR_BAND,
            }),
            "flag": wb.add_format({**cell, "align": "center"}),
            "flag_alt": wb.add_format({**cell, "align": "center", "bg_color": _COLOR_BAND}),
        }

    # -----------------------------------------------------------------------
    # Public builder methods
    # -----------------------------------------------------------------------

    def set_column_count(self, num_cols: int) -> "LedgerWorkbook":
        """Set how many columns the banner rows span."""
        self._num_cols = max(num_cols, 1)
        return self

    def add_header(self) -> "LedgerWorkbook":
        """Write the banner, the generation timestamp and one row per filter.

        Returns:
            ``self`` for method chaining.
        """
        ws = self._worksheet
        last_col = self._num_cols - 1

        ws.set_row(self._current_row, 26)
        ws.merge_range(self._current_row, 0, self._current_row, last_col,
                       self._title, self._formats["banner"])
        self._current_row += 1

        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
        ws.merge_range(self._current_row, 0, self._current_row, last_col,
                       f"Generated {stamp}", self._formats["stamp"])
        self._current_row += 1

        for key, value in self._filters.items():
            ws.write(self._current_row, 0, key, self._formats["filter_key"])
            ws.write(self._current_row, 1, value, self._formats["filter_value"])
            self._current_row += 1

        self._current_row += 1
        return self

    def add_totals_row(self, totals: dict[str, Any]) -> "LedgerWorkbook":
        """Write labelled totals as a label row over a value row.

        Args:
            totals: Ordered ``{label: amount}`` pairs.

        Returns:
            ``self`` for method chaining.
        """
        ws = self._worksheet
        for col, (label, value) in enumerate(totals.items()):
            ws.write(self._current_row, col, label, self._formats["total_label"])
            ws.write_number(self._current_row + 1, col, float(value), self._formats["total_value"])
        self._current_row += 3
        return self

    def add_data_table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[Any]],
        numeric_cols: set[int] | None = None,
        flag_cols: set[int] | None = None,
    ) -> "LedgerWorkbook":
        """Write a banded data table and size the columns to fit.

        Args:
            headers: Column header strings.
            rows: Data rows, each as long as ``headers``.
            numeric_cols: Zero-based indices of money columns.
            flag_cols: Zero-based indices of boolean columns.

        Returns:
            ``self`` for method chaining.
        """
        ws = self._worksheet
        numeric_cols = numeric_cols or set()
        flag_cols = flag_cols or set()
        widths = [len(str(h)) for h in headers]

        ws.set_row(self._current_row, 30)
        for ci, header in enumerate(headers):
            ws.write(self._current_row, ci, header, self._formats["col_header"])
        self._current_row += 1
        ws.freeze_panes(self._current_row, 0)

        for ri, data_row in enumerate(rows):
            suffix = "_alt" if ri % 2 == 1 else ""
            for ci, value in enumerate(data_row):
                if ci in numeric_cols:
                    ws.write_number(self._current_row, ci, float(value or 0),
                                    self._formats["money" + suffix])
                    shown = f"{float(value or 0):,.2f}"
                elif ci in flag_cols:
                    shown = "Yes" if value else "No"
                    ws.write_string(self._current_row, ci, shown, self._formats["flag" + suffix])
                else:
                    shown = "" if value is None else str(value)
                    ws.write(self._current_row, ci, shown, self._formats["text" + suffix])
                widths[ci] = min(_MAX_COL_WIDTH, max(widths[ci], len(shown)))
            self._current_row += 1

        for ci, width in enumerate(widths):
            ws.set_column(ci, ci, max(width + 2, _MIN_COL_WIDTH))
        return self

    def finalize(self) -> bytes:
        """Close the workbook and return the ``.xlsx`` bytes.

        The builder cannot be reused afterwards.
        """
        self._workbook.close()
        self._buffer.seek(0)
        return self._buffer.read()
