# models/scan_events.py
from dataclasses import dataclass
from enum import Enum


class ScanState(str, Enum):
    LISTENING = "listening"
    STOPPED = "stopped"


@dataclass(frozen=True)
class ScanCompleted:
    barcode: str
    timestamp_ms: float
