import os

from dotenv import load_dotenv

from domain.directory import UserDirectory
from domain.repositories import RecordStore
from infrastructure.db.record_store_json import JsonFileRecordStore
from infrastructure.db.record_store_sqlite import SqliteRecordStore
from infrastructure.log_config import configure_logging
from interfaces.cli.menu import create_menu


load_dotenv()

RECORD_STORE = os.environ.get("RECORD_STORE", "json")
RECORD_DIR = os.environ.get("RECORD_DIR", ".")
DB_PATH = os.environ.get("DB_PATH", "wallet.db")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "WARNING")


def build_store(kind: str) -> RecordStore:
    if kind == "json":
        return JsonFileRecordStore(RECORD_DIR)
    if kind == "sqlite":
        return SqliteRecordStore(DB_PATH)
    raise RuntimeError(f"Unknown RECORD_STORE {kind!r} (expected 'json' or 'sqlite').")


def main() -> None:
    configure_logging(LOG_LEVEL)

    store = build_store(RECORD_STORE)
    directory = UserDirectory()

    menu = create_menu(directory, store)
    menu()


if __name__ == "__main__":
    main()
