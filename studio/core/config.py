import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


APP_ENV = os.getenv("APP_ENV", "development")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./studio.db")
# How long a SQLite writer waits for another worker to release the database lock.
SQLITE_BUSY_TIMEOUT_SECONDS = float(os.getenv("SQLITE_BUSY_TIMEOUT_SECONDS", "30"))

CORS_ALLOWED_ORIGINS = _get_list(os.getenv("CORS_ALLOWED_ORIGINS"), ["http://localhost:3000"])

BUSINESS_NAME = os.getenv("BUSINESS_NAME", "Skincare Studio")
BUSINESS_EMAIL = os.getenv("BUSINESS_EMAIL", "contact@studio.example")
BUSINESS_PHONE = os.getenv("BUSINESS_PHONE", "+1-555-123-4567")
BUSINESS_ADDRESS = os.getenv("BUSINESS_ADDRESS", "123 Beauty Lane, City, State 12345")

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

# Availability grid. Bookings are validated against the real service duration.
SLOT_GRANULARITY_MINUTES = int(os.getenv("SLOT_GRANULARITY_MINUTES", "30"))
# When false, a slot that starts before close is offered even if it runs past it.
SLOT_REQUIRE_FULL_FIT = _get_bool(os.getenv("SLOT_REQUIRE_FULL_FIT"), default=True)

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if SLOT_GRANULARITY_MINUTES <= 0:
        raise RuntimeError("SLOT_GRANULARITY_MINUTES must be a positive number of minutes.")
