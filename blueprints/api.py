from __future__ import annotations
import io
import logging

from flask import Blueprint, jsonify, request, send_file

from excel_exchange import WorkbookParseError, generate_import_template, render_records
from importer import import_file
from models.header_maps import ENTITIES, select_headers
from stores.library_api import LibraryApi, LibraryApiError

logger = logging.getLogger(__name__)

bp = Blueprint("api", __name__, url_prefix="/api")
backend = LibraryApi()

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
EXCEL_EXTENSIONS = (".xlsx",)

LOOKUPS = {
    "books": lambda code: backend.get_book_by_barcode(code),
    "readers": lambda code: backend.get_reader_by_barcode(code),
}


def _xlsx_response(data: bytes, file_name: str):
    return send_file(
        io.BytesIO(data),
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name=file_name,
    )


def _fields_arg(payload=None) -> list[str] | None:
    if payload is not None and isinstance(payload.get("fields"), list):
        return [str(f) for f in payload["fields"]]
    raw = (request.args.get("fields") or "").strip()
    return [f.strip() for f in raw.split(",") if f.strip()] or None


@bp.post("/scan/lookup")
def scan_lookup():
    payload = request.get_json(silent=True) or {}
    target = payload.get("target") or "books"
    lookup = LOOKUPS.get(target)
    if lookup is None:
        return jsonify({"error": f"Unknown lookup target '{target}'."}), 400

    barcode = (payload.get("code") or "").strip()
    if not barcode:
        return jsonify({"error": "Empty barcode."}), 400

    try:
        found = lookup(barcode)
    except LibraryApiError as e:
        if e.status == 404:
            return jsonify({"barcode": barcode, "record": None, "error": str(e)}), 404
        return jsonify({"barcode": barcode, "record": None, "error": str(e)}), 502

    return jsonify({"barcode": barcode, "record": found, "error": None}), 200


@bp.get("/<entity>/template")
def entity_template(entity: str):
    sheet = ENTITIES.get(entity)
    if sheet is None or sheet.import_headers is None:
        return jsonify({"error": "Not found"}), 404
    return _xlsx_response(generate_import_template(sheet.import_headers), sheet.template_name())


@bp.route("/<entity>/export", methods=["GET", "POST"])
def entity_export(entity: str):
    sheet = ENTITIES.get(entity)
    if sheet is None:
        return jsonify({"error": "Not found"}), 404

    if request.method == "POST":
        # rows already loaded (and filtered) on the page
        payload = request.get_json(silent=True) or {}
        records = payload.get("records")
        if not isinstance(records, list):
            return jsonify({"error": "Missing or invalid 'records' list."}), 400
        fields = _fields_arg(payload)
    else:
        try:
            records = backend.list(entity, {"search": request.args.get("q", "")})
        except LibraryApiError as e:
            return jsonify({"error": str(e)}), 502
        fields = _fields_arg()

    headers = select_headers(sheet.headers, fields)
    if not headers:
        return jsonify({"error": "No known fields selected."}), 400

    data = render_records(sheet.label, headers, records)
    logger.info("Export %s: %d rows, %d columns", entity, len(records), len(headers))
    return _xlsx_response(data, sheet.file_name())


@bp.post("/<entity>/import")
def entity_import(entity: str):
    sheet = ENTITIES.get(entity)
    if sheet is None or sheet.import_headers is None:
        return jsonify({"error": "Not found"}), 404

    upload = request.files.get("file")
    if upload is None or not upload.filename:
        return jsonify({"error": "Missing 'file' upload."}), 400
    if not upload.filename.lower().endswith(EXCEL_EXTENSIONS):
        return jsonify({"error": "Пожалуйста, выберите файл Excel (.xlsx)"}), 400

    try:
        outcome, parsed = import_file(
            upload.read(),
            sheet.import_headers,
            lambda record: backend.create(entity, record),
        )
    except WorkbookParseError as e:
        return jsonify({"error": str(e)}), 400

    body = outcome.summary()
    body["ignored_columns"] = parsed.unmapped_columns
    return jsonify(body), 200
