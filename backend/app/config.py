"""
Parcel Server Backend: Application Configuration
=================================================

What:  Centralized configuration management using Pydantic Settings.
Why:   The same image runs against SQLite in tests and PostgreSQL in
       production, with test or live Stripe keys; all of that is chosen by
       environment, never by code edits.
How:   Pydantic Settings reads environment variables (or a .env file),
       validates types/ranges, and exposes a singleton `settings` object.
Who:   Imported by main.py (bootstrap) and database.py (engine options).
When:  Loaded once at module import time.

Environment variables (case-insensitive):
    DATABASE_URL or DB_USER/DB_PASS/DB_HOST/DB_PORT/DB_NAME
    DB_POOL_SIZE, DB_MAX_OVERFLOW, DB_POOL_PRE_PING
    STRIPE_SECRET_KEY
    CORS_ORIGINS, HOST, PORT, LOG_LEVEL
"""

from typing import List
from urllib.parse import quote_plus

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have defaults suitable for local development.
    Production deployments MUST set either DATABASE_URL or the DB_* parts,
    and STRIPE_SECRET_KEY.
    """

    # ── Database ──────────────────────────────────────────────────────────
    # What: Full async SQLAlchemy URL, e.g. postgresql+asyncpg://user:pw@host/db
    # Why optional: hosted databases often hand out credentials as separate
    # variables; empty means "assemble from the DB_* parts below".
    # Tests: sqlite+aiosqlite:///path/to/file.db
    database_url: str = Field(default="", description="Async SQLAlchemy database URL")

    # What: Credentials and address used when DATABASE_URL is empty
    # How: user and password are URL-quoted, so any characters are allowed
    db_user: str = Field(default="parcel")
    db_pass: str = Field(default="")
    db_host: str = Field(default="localhost")
    db_port: int = Field(default=5432, ge=1, le=65535)
    db_name: str = Field(default="parcelDB")

    # What: Connection pool sizing; not applied to SQLite URLs
    # Why 10: a payment holds one connection for its update and insert;
    # ten covers a burst of concurrent checkouts.
    # Trade-off: higher = more concurrent transactions, more DB memory
    db_pool_size: int = Field(default=10, ge=1, le=100)

    # What: Extra connections beyond pool_size for traffic spikes
    # Trade-off: higher = better spike handling, risk of DB overload
    db_max_overflow: int = Field(default=10, ge=0, le=50)

    # What: Checks a pooled connection with a lightweight query before use
    # Why True: a database restart otherwise surfaces as "Failed to get
    # parcels" on the first request after it.
    # Trade-off: about one round trip per checkout from the pool
    db_pool_pre_ping: bool = Field(default=True)

    @property
    def sqlalchemy_url(self) -> str:
        """The effective database URL, assembled from DB_* parts when DATABASE_URL is unset."""
        if self.database_url:
            return self.database_url
        credentials = quote_plus(self.db_user)
        if self.db_pass:
            credentials = f"{credentials}:{quote_plus(self.db_pass)}"
        return (
            f"postgresql+asyncpg://{credentials}@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    # ── Payment Gateway ───────────────────────────────────────────────────
    # What: Secret key for the Stripe API (sk_test_... / sk_live_...)
    # Required: for POST /create-payment-intent only; parcels, tracking and
    # payment records work without it.
    # Why not fatal when empty: startup logs the gap and the other routes
    # stay up (see validate_required_for_production).
    stripe_secret_key: str = Field(
        default="",
        description="Stripe secret key used to create payment intents",
    )

    # ── CORS ──────────────────────────────────────────────────────────────
    # What: Comma-separated list of origins; "*" allows any origin
    # Why "*" by default: the frontend is served from its own domain
    # Trade-off: with "*" browsers will not send credentials (cookies)
    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    # What: Bind address and port for the `parcel-server` entry point
    # Why 0.0.0.0: reachable from outside a container
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000, ge=1, le=65535)

    # What: Root log level for application loggers
    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    # DEBUG adds one line per document insert
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def validate_required_for_production(self) -> None:
        """
        What:  Checks that the settings the payment endpoints need are present.
        When:  Called during app startup (lifespan); failures are logged, not fatal.
        """
        errors = []
        if not self.stripe_secret_key:
            errors.append(
                "STRIPE_SECRET_KEY is not set. "
                "POST /create-payment-intent will fail until it is configured."
            )
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance, imported throughout the application
settings = Settings()
