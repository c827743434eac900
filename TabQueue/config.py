from os import getenv, path
from dotenv import load_dotenv

load_dotenv(path.join(path.dirname(path.dirname(__file__)), "config.env"))


class Config:
    HOST = getenv("HOST", "127.0.0.1")
    PORT = int(getenv("PORT", "8000"))

    # memory | json
    STORE_BACKEND = getenv("STORE_BACKEND", "memory").lower()
    STORE_PATH = getenv("STORE_PATH", "queues.json")

    # seconds before a stalled / errored player advances the queue
    ERROR_ADVANCE_DELAY = float(getenv("ERROR_ADVANCE_DELAY", "3.0"))

    COORDINATOR_URL = getenv("COORDINATOR_URL", f"http://127.0.0.1:{PORT}").rstrip("/")
    REQUEST_TIMEOUT = float(getenv("REQUEST_TIMEOUT", "10"))

    LOG_FILE = getenv("LOG_FILE", "log.txt")
    LOG_TIMEZONE = getenv("LOG_TIMEZONE", "UTC")

    DEBUG_MODE = getenv("DEBUG_MODE", "False").lower() == "true"
