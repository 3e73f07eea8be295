# models/import_outcome.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any

from config import IMPORT_ERROR_DETAIL_LIMIT


@dataclass(frozen=True)
class RowError:
    row: int
    error: str

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row, "error": self.error}


@dataclass
class ImportOutcome:
    """
    Aggregate result of one import run.
    success_count + fail_count always equals the number of rows processed.
    """
    success_count: int = 0
    fail_count: int = 0
    errors: list[RowError] = field(default_factory=list)
    cancelled: bool = False

    @property
    def processed(self) -> int:
        return self.success_count + self.fail_count

    def record_success(self) -> None:
        self.success_count += 1

    def record_failure(self, row: int, error: str) -> None:
        self.fail_count += 1
        self.errors.append(RowError(row, error))

    def summary(self, limit: int = IMPORT_ERROR_DETAIL_LIMIT) -> dict[str, Any]:
        shown = self.errors[:limit]
        return {
            "success": self.success_count,
            "failed": self.fail_count,
            "errors": [e.to_dict() for e in shown],
            "more_errors": max(0, len(self.errors) - len(shown)),
            "cancelled": self.cancelled,
        }
