from unittest.mock import MagicMock

import pytest
import requests

from stores.library_api import LibraryApi, LibraryApiError


def response(status=200, payload=None, content=b"x"):
    r = MagicMock()
    r.ok = 200 <= status < 300
    r.status_code = status
    r.content = content
    if isinstance(payload, Exception):
        r.json.side_effect = payload
    else:
        r.json.return_value = payload
    return r


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


def test_create_posts_json_with_token(session):
    session.request.return_value = response(201, {"id": 7, "code": "B1"})
    api = LibraryApi(base_url="http://backend/api/", token="t0k", session=session)

    assert api.create("books", {"code": "B1"}) == {"id": 7, "code": "B1"}
    method, url = session.request.call_args.args
    kwargs = session.request.call_args.kwargs
    assert (method, url) == ("POST", "http://backend/api/books")
    assert kwargs["json"] == {"code": "B1"}
    assert kwargs["headers"]["Authorization"] == "Bearer t0k"


def test_no_token_no_auth_header(session):
    session.request.return_value = response(200, {"id": 1})
    LibraryApi(base_url="http://b", token="", session=session).get_book_by_barcode("123")
    assert "Authorization" not in session.request.call_args.kwargs["headers"]
    assert session.request.call_args.args[1] == "http://b/books/barcode/123"


def test_backend_error_message_is_surfaced(session):
    session.request.return_value = response(400, {"error": "Barcode already exists"})
    api = LibraryApi(base_url="http://b", session=session)
    with pytest.raises(LibraryApiError) as exc:
        api.create("readers", {})
    assert str(exc.value) == "Barcode already exists"
    assert exc.value.status == 400


def test_backend_error_without_payload_uses_fallback(session):
    session.request.return_value = response(500, ValueError("no json"))
    with pytest.raises(LibraryApiError, match="Неизвестная ошибка"):
        LibraryApi(base_url="http://b", session=session).create("disks", {})


def test_transport_failure(session):
    session.request.side_effect = requests.ConnectionError("refused")
    with pytest.raises(LibraryApiError) as exc:
        LibraryApi(base_url="http://b", session=session).get_reader_by_barcode("R1")
    assert exc.value.status is None


def test_unknown_entity_is_rejected(session):
    with pytest.raises(LibraryApiError):
        LibraryApi(session=session).create("loans", {})
    session.request.assert_not_called()


def test_list_unwraps_paginated_payload(session):
    session.request.return_value = response(200, {"books": [{"id": 1}], "pagination": {"total": 1}})
    assert LibraryApi(base_url="http://b", session=session).list("books") == [{"id": 1}]

    session.request.return_value = response(200, [{"id": 2}])
    assert LibraryApi(base_url="http://b", session=session).list("disks") == [{"id": 2}]
