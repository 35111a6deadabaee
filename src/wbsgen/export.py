"""Spreadsheet export of a generated WBS (xlsx and csv)."""

from __future__ import annotations

import csv
from datetime import date
from pathlib import Path

from loguru import logger
from openpyxl import Workbook
from openpyxl.styles import Font

from wbsgen.models import Task
from wbsgen.wbs import wbs_rows

HEADERS = ["Task Name", "Effort (Days)", "Start Date", "End Date", "% Complete", "Resource Name"]
COLUMN_WIDTHS = {"A": 35, "B": 12, "C": 12, "D": 12, "E": 12, "F": 20}
SHEET_TITLE = "WBS Tasks"


def default_filename(ticket_id: str) -> str:
    return f"{ticket_id or 'WBS'}.xlsx"


def export_xlsx(ticket_id: str, tasks: list[Task], path: str | Path | None = None) -> Path:
    """Write the WBS to an Excel workbook and return its path."""
    if not tasks:
        raise ValueError("No WBS data to export")
    out = Path(path) if path else Path(default_filename(ticket_id))

    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE
    bold = Font(bold=True)

    ws.append(HEADERS)
    for cell in ws[1]:
        cell.font = bold

    for row in wbs_rows(ticket_id, tasks):
        ws.append([
            row.task_name,
            row.effort if row.effort is not None else "",
            date.fromisoformat(row.start_date) if row.start_date else "",
            date.fromisoformat(row.end_date) if row.end_date else "",
            row.percent_complete,
            row.resource_name,
        ])
        if row.bold:
            for cell in ws[ws.max_row]:
                cell.font = bold

    for col in ("C", "D"):
        for cell in ws[col][1:]:
            if isinstance(cell.value, date):
                cell.number_format = "yyyy-mm-dd"

    for col, width in COLUMN_WIDTHS.items():
        ws.column_dimensions[col].width = width

    wb.save(out)
    logger.info(f"Exported WBS for {ticket_id or 'WBS'} to {out}")
    return out


def export_csv(ticket_id: str, tasks: list[Task], path: str | Path) -> Path:
    """Write the same layout as export_xlsx to a CSV file, dates as ISO text."""
    if not tasks:
        raise ValueError("No WBS data to export")
    out = Path(path)

    with out.open("w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(HEADERS)
        for row in wbs_rows(ticket_id, tasks):
            writer.writerow([
                row.task_name,
                "" if row.effort is None else f"{row.effort:g}",
                row.start_date or "",
                row.end_date or "",
                row.percent_complete,
                row.resource_name,
            ])
    logger.info(f"Exported WBS for {ticket_id or 'WBS'} to {out}")
    return out
