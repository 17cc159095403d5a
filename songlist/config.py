import os
import logging.config
from dotenv import load_dotenv
load_dotenv()

# --- Storage ---
DATA_DIR = os.getenv("DATA_DIR", os.path.join(os.getcwd(), "data"))
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{os.path.join(DATA_DIR, 'database.db')}")

# --- Server ---
PORT = int(os.getenv("PORT", 3001))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGIN", "*").split(",") if o.strip()]

# --- Admin auth ---
TOKEN_TTL_HOURS = int(os.getenv("TOKEN_TTL_HOURS", 24 * 7))
PASSWORD_MIN_LENGTH = 6
PBKDF2_ITERATIONS = int(os.getenv("PBKDF2_ITERATIONS", 260000))

# --- Playlist paging ---
DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 50

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE")

LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "default"},
    },
    "formatters": {"default": {"format": "%(asctime)s - %(levelname)s - %(name)s - %(message)s"}},
    "root": {"handlers": ["console"], "level": LOG_LEVEL},
}
if LOG_FILE:
    LOGGING_CONFIG["handlers"]["file"] = {
        "class": "logging.FileHandler", "filename": LOG_FILE, "formatter": "default", "encoding": "utf-8",
    }
    LOGGING_CONFIG["root"]["handlers"].append("file")

logging.config.dictConfig(LOGGING_CONFIG)
logger = logging.getLogger("songlist")
