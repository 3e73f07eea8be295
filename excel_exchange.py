# excel_exchange.py
"""
Spreadsheet export/import driven by a header map.

A header map is an ordered ``{field_key: column_label}`` dict. Export walks it
to build columns; import inverts it to map column labels back to field keys.
"""
from __future__ import annotations
import io
import logging
import zipfile
from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, BinaryIO, Callable, Mapping, Union

from openpyxl import Workbook, load_workbook
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException

from config import (
    EXPORT_COLUMN_WIDTH,
    EXPORT_DATE_FORMAT,
    EXPORT_FALSE_LABEL,
    EXPORT_TRUE_LABEL,
    TEMPLATE_COLUMN_WIDTH,
)

logger = logging.getLogger(__name__)

Source = Union[bytes, bytearray, str, Path, BinaryIO]
Validator = Callable[[Any], bool]

DEFAULT_SHEET_NAME = "Sheet1"
TEMPLATE_SHEET_NAME = "Template"


class WorkbookParseError(ValueError):
    """The uploaded file is not a readable workbook."""


@dataclass
class ImportRow:
    row: int                     # worksheet row number, header row is 1
    values: dict[str, Any]
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class SheetImport:
    rows: list[ImportRow] = field(default_factory=list)
    unmapped_columns: list[str] = field(default_factory=list)

    @property
    def records(self) -> list[dict[str, Any]]:
        return [r.values for r in self.rows if r.ok]


# ========== Helpers ==========

def resolve_path(record: Any, path: str) -> Any:
    """
    Dotted lookup: resolve_path({"author": {"short_name": "X"}}, "author.short_name") -> "X".
    Any missing or non-mapping segment yields "".
    """
    value = record
    for key in path.split("."):
        if isinstance(value, Mapping) and key in value:
            value = value[key]
        else:
            return ""
    return value


def format_value(
    value: Any,
    date_format: str = EXPORT_DATE_FORMAT,
    true_label: str = EXPORT_TRUE_LABEL,
    false_label: str = EXPORT_FALSE_LABEL,
) -> Any:
    if value is None:
        return ""
    # bool before numbers, bool is an int
    if isinstance(value, bool):
        return true_label if value else false_label
    if isinstance(value, date):
        return value.strftime(date_format)
    if isinstance(value, (str, int, float)):
        return value
    return str(value)


def invert_headers(headers: Mapping[str, str]) -> dict[str, str]:
    # last key wins on duplicate labels
    return {label: key for key, label in headers.items()}


def _set_widths(ws, count: int, width: int) -> None:
    for i in range(1, count + 1):
        ws.column_dimensions[get_column_letter(i)].width = width


def _to_bytes(wb: Workbook) -> bytes:
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


# ========== Export ==========

def build_workbook(
    headers: Mapping[str, str],
    records: list[Mapping[str, Any]],
    sheet_name: str = DEFAULT_SHEET_NAME,
    column_width: int = EXPORT_COLUMN_WIDTH,
) -> Workbook:
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name
    ws.append(list(headers.values()))
    for rec in records:
        ws.append([format_value(resolve_path(rec, key)) for key in headers])
        for cell in ws[ws.max_row]:
            # text starting with "=" stays text, never a formula
            if isinstance(cell.value, str) and cell.value.startswith("="):
                cell.data_type = "s"
    _set_widths(ws, len(headers), column_width)
    return wb


def render_records(
    sheet_name: str,
    headers: Mapping[str, str],
    records: list[Mapping[str, Any]],
) -> bytes:
    return _to_bytes(build_workbook(headers, records, sheet_name))


def export_records(
    file_name: str | Path,
    sheet_name: str,
    headers: Mapping[str, str],
    records: list[Mapping[str, Any]],
) -> Path:
    path = Path(file_name)
    data = render_records(sheet_name, headers, records)
    path.write_bytes(data)
    logger.info("Exported %d rows to %s", len(records), path)
    return path


def generate_import_template(
    headers: Mapping[str, str],
    column_width: int = TEMPLATE_COLUMN_WIDTH,
) -> bytes:
    """Blank workbook with only the header row (and one empty row)."""
    wb = Workbook()
    ws = wb.active
    ws.title = TEMPLATE_SHEET_NAME
    ws.append(list(headers.values()))
    ws.append([""] * len(headers))
    _set_widths(ws, len(headers), column_width)
    return _to_bytes(wb)


# ========== Import ==========

def _open_first_sheet(source: Source):
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    try:
        wb = load_workbook(source, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as e:
        raise WorkbookParseError(f"Ошибка чтения файла: {e}") from e
    if not wb.sheetnames:
        raise WorkbookParseError("Файл не содержит листов")
    return wb, wb[wb.sheetnames[0]]


def _cell_value(value: Any) -> Any:
    # date cells come back as datetime; records must stay JSON-serialisable
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, (date, time)):
        return value.isoformat()
    return value


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def read_sheet(
    source: Source,
    headers: Mapping[str, str],
    validators: Mapping[str, Validator] | None = None,
) -> SheetImport:
    """
    Reads the first sheet. Row 1 holds column labels; every later non-blank
    row becomes an ImportRow keyed by field key. A rejected validator marks
    only that row as failed.
    """
    validators = validators or {}
    inverted = invert_headers(headers)
    wb, ws = _open_first_sheet(source)
    try:
        rows = ws.iter_rows(values_only=True)
        header_row = next(rows, None)
        if not header_row or all(_is_blank(c) for c in header_row):
            raise WorkbookParseError("Не найдена строка заголовков")

        labels = [str(c).strip() if c is not None else "" for c in header_row]
        columns: list[tuple[int, str]] = []
        result = SheetImport()
        for i, label in enumerate(labels):
            if not label:
                continue
            key = inverted.get(label)
            if key is None:
                result.unmapped_columns.append(label)
            else:
                columns.append((i, key))
        if result.unmapped_columns:
            logger.debug("Ignoring unmapped columns: %s", ", ".join(result.unmapped_columns))

        for row_no, cells in enumerate(rows, start=2):
            if all(_is_blank(c) for c in cells):
                continue
            values: dict[str, Any] = {}
            valid = True
            for i, key in columns:
                value = cells[i] if i < len(cells) else None
                if _is_blank(value):
                    continue
                value = _cell_value(value)
                check = validators.get(key)
                if check is not None and not check(value):
                    valid = False
                values[key] = value
            error = None if valid else f"Ошибка валидации в строке {row_no}"
            result.rows.append(ImportRow(row_no, values, error))
        return result
    finally:
        wb.close()


def import_records(
    source: Source,
    headers: Mapping[str, str],
    validators: Mapping[str, Validator] | None = None,
) -> list[dict[str, Any]]:
    """Records of all rows that passed validation, in sheet order."""
    return read_sheet(source, headers, validators).records
