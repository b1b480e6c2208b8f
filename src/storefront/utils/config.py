import os

from dotenv import load_dotenv

load_dotenv()

# "sqlite" keeps everything in a local file, "rest" talks to a json-server style API
STORE_BACKEND = os.getenv("STOREFRONT_BACKEND", "sqlite").lower()

API_URL = os.getenv("STOREFRONT_API_URL", "http://localhost:3001").rstrip("/")

DB_PATH = os.getenv("STOREFRONT_DB_PATH", "data/db.sqlite")

HTTP_TIMEOUT = float(os.getenv("STOREFRONT_HTTP_TIMEOUT", "10"))

# Orders untouched for longer than this are reported as overdue
OVERDUE_AFTER_HOURS = int(os.getenv("STOREFRONT_OVERDUE_AFTER_HOURS", "48"))


def open_store():
    """Build the document store selected by STOREFRONT_BACKEND."""
    if STORE_BACKEND == "rest":
        from storefront.db.rest import RestDocumentStore

        return RestDocumentStore(API_URL, timeout=HTTP_TIMEOUT)
    if STORE_BACKEND == "sqlite":
        from storefront.db.database import SqliteDocumentStore

        return SqliteDocumentStore(DB_PATH)
    raise ValueError(f"Unknown STOREFRONT_BACKEND '{STORE_BACKEND}'")
