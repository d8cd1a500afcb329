"""Adapter around openpyxl for the backup workbook files."""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

logger = logging.getLogger(__name__)

HEADER_FILL = "4167B8"
HEADER_FONT_COLOR = "FFFFFF"


@dataclass
class WorkbookGateway:
    """Reads and writes ``.xlsx`` files; writes go through a temp file + rename."""

    creator: str = "Backup System"

    def new_workbook(self) -> Workbook:
        workbook = Workbook()
        # drop the default empty "Sheet"
        workbook.remove(workbook.active)
        workbook.properties.creator = self.creator
        workbook.properties.lastModifiedBy = "Backup System"
        return workbook

    def load(self, path: str | os.PathLike) -> Workbook:
        return load_workbook(filename=str(path))

    def save(self, workbook: Workbook, path: str | os.PathLike) -> Path:
        """Write ``workbook`` to ``path`` atomically."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=".tmp_", suffix=".xlsx", dir=str(target.parent)
        )
        os.close(fd)
        try:
            workbook.save(tmp_name)
            os.replace(tmp_name, target)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                logger.debug("Temp file %s already gone", tmp_name)
            raise
        return target

    def add_sheet(
        self,
        workbook: Workbook,
        title: str,
        headers: list[str],
        widths: list[int],
        rows: Iterable[list],
    ) -> Worksheet:
        """Append a sheet with a styled header row and an auto-filter."""
        sheet = workbook.create_sheet(title=title)
        sheet.append(headers)
        font = Font(bold=True, color=HEADER_FONT_COLOR)
        fill = PatternFill(fill_type="solid", fgColor=HEADER_FILL)
        for index, width in enumerate(widths, start=1):
            cell = sheet.cell(row=1, column=index)
            cell.font = font
            cell.fill = fill
            sheet.column_dimensions[get_column_letter(index)].width = width
        for row in rows:
            sheet.append(row)
        sheet.auto_filter.ref = f"A1:{get_column_letter(len(headers))}1"
        return sheet

    @staticmethod
    def header_map(sheet: Worksheet) -> dict[str, int]:
        """Map header text in row 1 to its 1-based column index."""
        mapping: dict[str, int] = {}
        for cell in sheet[1]:
            if cell.value is not None:
                mapping[str(cell.value)] = cell.column
        return mapping


__all__ = ["WorkbookGateway", "HEADER_FILL"]
