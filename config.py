# config.py
import os
import dotenv

# ========== Load environment ==========
dotenv.load_dotenv()

FLASK_PORT = int(os.getenv("FLASK_PORT", 5000))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Backend (all business logic lives there)
LIBRARY_API_URL = os.getenv("LIBRARY_API_URL", "http://localhost:8080/api").rstrip("/")
LIBRARY_API_TOKEN = os.getenv("LIBRARY_API_TOKEN", "")
LIBRARY_API_TIMEOUT = int(os.getenv("LIBRARY_API_TIMEOUT", "10") or "10")

# Keyboard-wedge timing (milliseconds). Empirical values, tune per scanner model.
SCAN_KEY_GAP_MS = int(os.getenv("SCAN_KEY_GAP_MS", "100") or "100")
SCAN_SETTLE_DELAY_MS = int(os.getenv("SCAN_SETTLE_DELAY_MS", "500") or "500")

# Spreadsheet exchange
EXPORT_COLUMN_WIDTH = int(os.getenv("EXPORT_COLUMN_WIDTH", "50") or "50")
TEMPLATE_COLUMN_WIDTH = int(os.getenv("TEMPLATE_COLUMN_WIDTH", "20") or "20")
EXPORT_DATE_FORMAT = os.getenv("EXPORT_DATE_FORMAT", "%d.%m.%Y")
EXPORT_TRUE_LABEL = os.getenv("EXPORT_TRUE_LABEL", "Да")
EXPORT_FALSE_LABEL = os.getenv("EXPORT_FALSE_LABEL", "Нет")
IMPORT_ERROR_DETAIL_LIMIT = int(os.getenv("IMPORT_ERROR_DETAIL_LIMIT", "10") or "10")
IMPORT_MAX_UPLOAD_MB = int(os.getenv("IMPORT_MAX_UPLOAD_MB", "10") or "10")
