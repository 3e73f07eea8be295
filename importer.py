# importer.py
from __future__ import annotations
import logging
import threading
from typing import Any, Callable, Mapping

from excel_exchange import SheetImport, Source, Validator, read_sheet
from models.import_outcome import ImportOutcome
from stores.library_api import FALLBACK_ERROR

logger = logging.getLogger(__name__)

CreateRecord = Callable[[dict[str, Any]], Any]


def run_import(
    sheet: SheetImport,
    create: CreateRecord,
    cancel: threading.Event | None = None,
) -> ImportOutcome:
    """
    Feeds rows to `create` one at a time, in sheet order.

    A row that failed validation or whose create call raised is recorded as a
    failure and the loop moves on. Setting `cancel` stops the loop before the
    next row; rows not reached are not counted.
    """
    outcome = ImportOutcome()

    for row in sheet.rows:
        if cancel is not None and cancel.is_set():
            outcome.cancelled = True
            logger.info("Import cancelled after %d rows", outcome.processed)
            break

        if not row.ok:
            outcome.record_failure(row.row, row.error or FALLBACK_ERROR)
            logger.warning("Row %d rejected: %s", row.row, row.error)
            continue

        try:
            create(row.values)
        except Exception as e:
            msg = str(e).strip() or FALLBACK_ERROR
            outcome.record_failure(row.row, msg)
            logger.warning("Row %d failed: %s", row.row, msg)
            continue

        outcome.record_success()

    logger.info(
        "Import finished: %d ok, %d failed%s",
        outcome.success_count,
        outcome.fail_count,
        " (cancelled)" if outcome.cancelled else "",
    )
    return outcome


def import_file(
    source: Source,
    headers: Mapping[str, str],
    create: CreateRecord,
    validators: Mapping[str, Validator] | None = None,
    cancel: threading.Event | None = None,
) -> tuple[ImportOutcome, SheetImport]:
    """
    Read + create in one call. WorkbookParseError propagates before any row
    is created.
    """
    sheet = read_sheet(source, headers, validators)
    return run_import(sheet, create, cancel), sheet
