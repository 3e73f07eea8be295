# stores/library_api.py
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

import requests

from config import LIBRARY_API_TIMEOUT, LIBRARY_API_TOKEN, LIBRARY_API_URL

logger = logging.getLogger(__name__)

FALLBACK_ERROR = "Неизвестная ошибка"

# entity -> collection path on the backend
CREATE_PATHS = {
    "books": "/books",
    "readers": "/readers",
    "disks": "/disks",
}

LIST_PATHS = {
    **CREATE_PATHS,
    "loans": "/loans/history",
}


class LibraryApiError(RuntimeError):
    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


def _error_message(r: requests.Response) -> str:
    try:
        payload = r.json()
    except ValueError:
        return FALLBACK_ERROR
    if isinstance(payload, dict):
        msg = payload.get("error") or payload.get("message")
        if isinstance(msg, str) and msg.strip():
            return msg.strip()
    return FALLBACK_ERROR


@dataclass
class LibraryApi:
    """
    Thin JSON client for the library backend. The backend owns every
    business rule (duplicate barcodes, loan eligibility, required fields);
    this client only moves records and surfaces its error messages.
    """
    base_url: str = LIBRARY_API_URL
    token: str = LIBRARY_API_TOKEN
    timeout_s: int = LIBRARY_API_TIMEOUT
    session: requests.Session = field(default_factory=requests.Session)

    def _headers(self) -> dict[str, str]:
        h = {"Content-Type": "application/json"}
        if self.token:
            h["Authorization"] = f"Bearer {self.token}"
        return h

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url.rstrip('/')}{path}"
        try:
            r = self.session.request(method, url, headers=self._headers(), timeout=self.timeout_s, **kwargs)
        except requests.RequestException as e:
            logger.warning("Backend request %s %s failed: %s", method, url, e)
            raise LibraryApiError(f"Сервер недоступен: {e}") from e

        if not r.ok:
            msg = _error_message(r)
            logger.warning("Backend %s %s -> %s: %s", method, url, r.status_code, msg)
            raise LibraryApiError(msg, r.status_code)

        if not r.content:
            return None
        return r.json()

    def create(self, entity: str, record: dict[str, Any]) -> dict[str, Any]:
        path = CREATE_PATHS.get(entity)
        if path is None:
            raise LibraryApiError(f"Импорт не поддерживается: {entity}")
        return self._request("POST", path, json=record)

    def list(self, entity: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        path = LIST_PATHS.get(entity)
        if path is None:
            raise LibraryApiError(f"Неизвестный раздел: {entity}")
        data = self._request("GET", path, params=params or {})
        # paginated endpoints wrap the list: {"books": [...], "pagination": {...}}
        if isinstance(data, dict):
            data = data.get(entity) or data.get("items") or []
        return data or []

    def get_book_by_barcode(self, barcode: str) -> dict[str, Any]:
        return self._request("GET", f"/books/barcode/{quote(barcode, safe='')}")

    def get_reader_by_barcode(self, barcode: str) -> dict[str, Any]:
        return self._request("GET", f"/readers/barcode/{quote(barcode, safe='')}")
