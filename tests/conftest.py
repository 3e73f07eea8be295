"""Shared test fixtures."""

import io

import pytest
from openpyxl import Workbook, load_workbook


class FakeScheduler:
    """Collects settle callbacks instead of starting timers."""

    def __init__(self):
        self.calls = []

    def __call__(self, delay_s, fn):
        self.calls.append((delay_s, fn))

    def fire_all(self):
        calls, self.calls = self.calls, []
        for _, fn in calls:
            fn()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


def make_xlsx(rows: list[list]) -> bytes:
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def read_xlsx(data: bytes) -> list[list]:
    wb = load_workbook(io.BytesIO(data))
    ws = wb[wb.sheetnames[0]]
    return [list(r) for r in ws.iter_rows(values_only=True)]


@pytest.fixture
def book_records() -> list[dict]:
    return [
        {
            "code": "B1",
            "title": "Война и мир",
            "author": {"short_name": "Толстой Л.Н."},
            "publisher": {"name": "Эксмо"},
            "publication_year": 2019,
            "barcode": "4600000000011",
            "is_available": True,
        },
        {
            "code": "B2",
            "title": "Без автора",
            "author": None,
            "publisher": None,
            "publication_year": 2001,
            "barcode": "4600000000028",
            "is_available": False,
        },
    ]
