# config.py
"""
Application settings read from the environment (and a local .env file).

Every value has a default suitable for local development so that modules
can import this one without a configured environment.
"""
import os
from urllib.parse import quote_plus

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
     return os.getenv(name, str(default)).strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
     raw = os.getenv(name)
     if raw is None or not raw.strip():
          return default
     return int(raw)


# Database
DB_SERVER = os.getenv("DB_SERVER")
DB_PORT = os.getenv("DB_PORT", "1433")
DB_USER = os.getenv("DB_USER")
DB_PASS = os.getenv("DB_PASS")
DB_NAME = os.getenv("DB_NAME")


def build_database_url() -> str:
     """DATABASE_URL wins; otherwise assemble the MS SQL Server URL from DB_* parts."""
     url = os.getenv("DATABASE_URL")
     if url:
          return url
     if not DB_SERVER:
          return "sqlite:///./rentals.db"
     return (
          f"mssql+pymssql://{quote_plus(DB_USER or '')}:{quote_plus(DB_PASS or '')}"
          f"@{DB_SERVER}:{DB_PORT}/{DB_NAME}"
     )


DATABASE_URL = build_database_url()
SQL_ECHO = _env_bool("SQL_ECHO")

# Auth
JWT_SECRET = os.getenv("JWT_SECRET", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
CORS_ORIGINS = [o for o in os.getenv("CORS_ORIGINS", "").split(",") if o]

# Outbound mail (Brevo)
BREVO_API_KEY = os.getenv("BREVO_API_KEY")
MAIL_SENDER_EMAIL = os.getenv("MAIL_SENDER_EMAIL", "noreply@rentals.local")
MAIL_SENDER_NAME = os.getenv("MAIL_SENDER_NAME", "Rentals Back Office")

# Recurring jobs
ENABLE_SCHEDULER = _env_bool("ENABLE_SCHEDULER", True)
SCHEDULER_TIMEZONE = os.getenv("SCHEDULER_TIMEZONE", "UTC")
REMINDER_HOUR = _env_int("REMINDER_HOUR", 8)
INSURER_REPORT_HOUR = _env_int("INSURER_REPORT_HOUR", 7)
OVERDUE_LOOKBACK_DAYS = _env_int("OVERDUE_LOOKBACK_DAYS", 1)
SCHEDULER_TICK_DEADLINE_SECONDS = _env_int("SCHEDULER_TICK_DEADLINE_SECONDS", 300)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
PORT = _env_int("PORT", 10000)
