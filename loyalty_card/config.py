import logging
import os

from dotenv import load_dotenv

# Load .env file with explicit UTF-8 encoding
load_dotenv(encoding="utf-8")


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./loyalty_card.db")

# Bounded retry for transient storage failures (lock timeouts, dropped connections)
STORAGE_RETRY_ATTEMPTS = int(os.getenv("LOYALTY_STORAGE_RETRY_ATTEMPTS", "3"))
STORAGE_RETRY_BACKOFF = float(os.getenv("LOYALTY_STORAGE_RETRY_BACKOFF", "0.05"))

SESSION_TTL_HOURS = int(os.getenv("LOYALTY_SESSION_TTL_HOURS", "24"))

# bcrypt cost factor for admin and store owner passwords
BCRYPT_ROUNDS = int(os.getenv("LOYALTY_BCRYPT_ROUNDS", "12"))

LOG_LEVEL = os.getenv("LOYALTY_LOG_LEVEL", "INFO")

BOOTSTRAP_ADMIN_USERNAME = os.getenv("LOYALTY_BOOTSTRAP_ADMIN_USERNAME")
BOOTSTRAP_ADMIN_PASSWORD = os.getenv("LOYALTY_BOOTSTRAP_ADMIN_PASSWORD")


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
