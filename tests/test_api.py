import io
from unittest.mock import MagicMock

import pytest

import blueprints.api as api_module
from app import app
from conftest import make_xlsx, read_xlsx
from stores.library_api import LibraryApiError


@pytest.fixture
def backend(monkeypatch):
    fake = MagicMock()
    monkeypatch.setattr(api_module, "backend", fake)
    return fake


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c


def upload(client, entity, data, name="import.xlsx"):
    return client.post(
        f"/api/{entity}/import",
        data={"file": (io.BytesIO(data), name)},
        content_type="multipart/form-data",
    )


def test_lookup_trims_and_finds_book(client, backend):
    backend.get_book_by_barcode.return_value = {"id": 1, "title": "X"}
    r = client.post("/api/scan/lookup", json={"code": "  46001 "})
    assert r.status_code == 200
    assert r.get_json() == {"barcode": "46001", "record": {"id": 1, "title": "X"}, "error": None}
    backend.get_book_by_barcode.assert_called_once_with("46001")


def test_lookup_reader_not_found(client, backend):
    backend.get_reader_by_barcode.side_effect = LibraryApiError("Reader not found", 404)
    r = client.post("/api/scan/lookup", json={"code": "R9", "target": "readers"})
    assert r.status_code == 404
    assert r.get_json()["error"] == "Reader not found"


def test_lookup_rejects_blank(client, backend):
    r = client.post("/api/scan/lookup", json={"code": "   "})
    assert r.status_code == 400
    backend.get_book_by_barcode.assert_not_called()


def test_template_download(client):
    r = client.get("/api/disks/template")
    assert r.status_code == 200
    assert read_xlsx(r.data)[0][:3] == ["Код", "Наименование", "Краткое наименование"]


def test_loans_have_no_template(client):
    assert client.get("/api/loans/template").status_code == 404


def test_export_posted_records_with_field_subset(client):
    r = client.post("/api/books/export", json={
        "records": [{"code": "B1", "title": "T", "is_available": True, "author": {"short_name": "A"}}],
        "fields": ["is_available", "code"],
    })
    assert r.status_code == 200
    assert "attachment" in r.headers["Content-Disposition"]
    # column order follows the header map, not the request
    assert read_xlsx(r.data) == [["Код", "Доступна"], ["B1", "Да"]]


def test_export_from_backend(client, backend):
    backend.list.return_value = [{"code": "D1", "title": "Диск", "publisher": {"name": "П"}}]
    r = client.get("/api/disks/export?fields=code,publisher.name")
    assert r.status_code == 200
    assert read_xlsx(r.data) == [["Код", "Издательство"], ["D1", "П"]]


def test_export_unknown_entity(client):
    assert client.post("/api/authors/export", json={"records": []}).status_code == 404


def test_import_reports_row_failures(client, backend):
    def create(entity, record):
        if record["barcode"] == "dup":
            raise LibraryApiError("Barcode already exists", 400)
        return {"id": 1, **record}

    backend.create.side_effect = create
    data = make_xlsx([
        ["Код", "Штрих-код", "Фамилия", "Лишняя"],
        ["R1", "111", "Иванов", "x"],
        ["R2", "dup", "Петров", "y"],
        ["R3", "333", "Сидоров", "z"],
    ])
    r = upload(client, "readers", data)
    body = r.get_json()

    assert r.status_code == 200
    assert body["success"] == 2
    assert body["failed"] == 1
    assert body["errors"] == [{"row": 3, "error": "Barcode already exists"}]
    assert body["ignored_columns"] == ["Лишняя"]
    assert backend.create.call_count == 3
    assert backend.create.call_args_list[0].args == ("readers", {"code": "R1", "barcode": "111", "last_name": "Иванов"})


def test_import_rejects_non_excel_name(client, backend):
    r = upload(client, "books", b"a,b", name="books.csv")
    assert r.status_code == 400
    backend.create.assert_not_called()


def test_import_rejects_corrupt_workbook(client, backend):
    r = upload(client, "books", b"not a zip", name="books.xlsx")
    assert r.status_code == 400
    assert "error" in r.get_json()
    backend.create.assert_not_called()


def test_import_rejects_legacy_xls(client, backend):
    r = upload(client, "readers", b"\xd0\xcf\x11\xe0", name="readers.xls")
    assert r.status_code == 400
    assert ".xlsx" in r.get_json()["error"]
    backend.create.assert_not_called()


def test_upload_over_size_limit(client, backend, monkeypatch):
    monkeypatch.setitem(app.config, "MAX_CONTENT_LENGTH", 1024)
    r = upload(client, "books", b"x" * 2048)
    assert r.status_code == 413
    assert "error" in r.get_json()
    backend.create.assert_not_called()
