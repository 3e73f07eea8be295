# models/header_maps.py
"""
Field key -> column label maps for each exchanged entity.

Dict insertion order is the column order. Dotted keys (``author.short_name``)
are looked up on the nested related record.
"""
from __future__ import annotations
from dataclasses import dataclass
from datetime import date

BOOK_HEADERS = {
    "code": "Код",
    "title": "Наименование",
    "author.short_name": "Автор",
    "publisher.name": "Издательство",
    "publication_year": "Год издания",
    "barcode": "Штрих-код",
    "isbn": "ISBN",
    "bbk": "ББК",
    "udk": "УДК",
    "class_range": "Класс",
    "location": "Место размещения",
    "is_available": "Доступна",
}

# Related records and availability are set by the backend, not by import.
BOOK_IMPORT_HEADERS = {k: v for k, v in BOOK_HEADERS.items() if "." not in k and k != "is_available"}

READER_IMPORT_HEADERS = {
    "code": "Код",
    "barcode": "Штрих-код",
    "last_name": "Фамилия",
    "first_name": "Имя",
    "middle_name": "Отчество",
    "user_type": "Тип",
    "grade": "Класс",
    "gender": "Пол",
    "birth_date": "Дата рождения",
    "address": "Адрес",
    "phone": "Телефон",
    "email": "Email",
    "parent_mother_name": "ФИО матери",
    "parent_mother_phone": "Телефон матери",
    "parent_father_name": "ФИО отца",
    "parent_father_phone": "Телефон отца",
}

READER_HEADERS = {**READER_IMPORT_HEADERS, "active_loans_count": "Книг на руках"}

DISK_HEADERS = {
    "code": "Код",
    "title": "Наименование",
    "subject": "Предмет",
    "resource_type": "Тип ЭОР",
    "barcode": "Штрих-код",
    "publisher.name": "Издательство",
    "is_available": "Доступен",
    "comments": "Комментарии",
}

DISK_IMPORT_HEADERS = {
    "code": "Код",
    "title": "Наименование",
    "short_title": "Краткое наименование",
    "subject": "Предмет",
    "resource_type": "Тип ЭОР",
    "barcode": "Штрих-код",
    "comments": "Комментарии",
}

LOAN_HEADERS = {
    "book.title": "Книга",
    "book.barcode": "Штрих-код книги",
    "reader.last_name": "Фамилия читателя",
    "reader.first_name": "Имя читателя",
    "reader.grade": "Класс",
    "issue_date": "Дата выдачи",
    "return_date": "Дата возврата",
    "days_on_loan": "Дней на руках",
    "status": "Статус",
}


@dataclass(frozen=True)
class EntitySheet:
    name: str           # url segment, e.g. "books"
    label: str          # file/sheet label
    headers: dict[str, str]
    import_headers: dict[str, str] | None = None  # None = not importable

    def file_name(self, today: date | None = None) -> str:
        today = today or date.today()
        return f"{self.label.replace(' ', '_')}_{today.isoformat()}.xlsx"

    def template_name(self) -> str:
        return f"{self.name}_template.xlsx"


ENTITIES: dict[str, EntitySheet] = {
    "books": EntitySheet("books", "Книги", BOOK_HEADERS, BOOK_IMPORT_HEADERS),
    "readers": EntitySheet("readers", "Читатели", READER_HEADERS, READER_IMPORT_HEADERS),
    "disks": EntitySheet("disks", "Диски", DISK_HEADERS, DISK_IMPORT_HEADERS),
    "loans": EntitySheet("loans", "История выдач", LOAN_HEADERS),
}


def select_headers(headers: dict[str, str], keys: list[str] | None) -> dict[str, str]:
    """Restrict a header map to `keys`, keeping the map's own column order."""
    if not keys:
        return dict(headers)
    wanted = set(keys)
    return {k: v for k, v in headers.items() if k in wanted}
