# scan_books.py
import logging
import sys

from config import LOG_LEVEL
from models.scan_events import ScanCompleted
from scanner import ScanSession, blocking_schedule, listen_keystrokes, listen_manual
from stores.library_api import LibraryApi, LibraryApiError


def show_book(api: LibraryApi, barcode: str) -> None:
    try:
        book = api.get_book_by_barcode(barcode)
    except LibraryApiError as e:
        print(f"{barcode}: {e}")
        return
    author = (book.get("author") or {}).get("short_name") or "-"
    state = "available" if book.get("is_available") else "on loan"
    print(f"{barcode}: {book.get('title')} / {author} ({state})")


def main():
    logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")
    api = LibraryApi()
    print(f"Backend: {api.base_url}")

    if not sys.stdin.isatty():
        for barcode in listen_manual(prompt=""):
            show_book(api, barcode)
        return

    def handle(event: ScanCompleted) -> None:
        show_book(api, event.barcode)
        session.reset()

    # settle delay runs inline, the terminal has a single input loop
    session = ScanSession(on_scan=handle, schedule=blocking_schedule)
    print("Ready. Scan a barcode (Ctrl+D or Ctrl+C to exit).")
    for key, ts in listen_keystrokes():
        session.on_key_event(key, ts)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nUser aborted program! Exiting.")
        sys.exit()
    except Exception as e:
        print(f"\nAn error occured: {e}")
        sys.exit(1)
