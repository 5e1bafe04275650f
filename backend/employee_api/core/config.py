from typing import Optional, List
from urllib.parse import urlsplit

from pydantic import Field, AliasChoices, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Known insecure default values that must be changed in production
_INSECURE_SECRET_KEYS = {
    "your-secret-key-change-this-in-production-min-32-chars",
    "default-secret-key",
    "changeme",
    "secret",
}
_INSECURE_DB_PASSWORDS = {
    "postgres",
    "password",
    "changeme",
}
_INSECURE_ADMIN_PASSWORDS = {
    "admin123",
    "admin",
    "password",
}

# Only the HMAC family is accepted for token signing
HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")


def _extract_password_from_database_url(database_url: str | None) -> str | None:
    if not database_url:
        return None
    try:
        return urlsplit(database_url).password
    except ValueError:
        return None


class Settings(BaseSettings):
    # Allow comma-separated env vars for list fields like ALLOWED_ORIGINS
    model_config = SettingsConfigDict(env_file=".env", env_parse_delimiter=",", extra="ignore")
    PROJECT_NAME: str = "Employee Records API"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    VERSION: str = "1.0.0"
    # Commit of the running image, set by the container build
    BUILD_SHA: str = "dev"

    # CORS
    # Accept either a JSON array or a comma-separated string; normalized below.
    ALLOWED_ORIGINS: List[str] | str = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:8080"],
        validation_alias=AliasChoices("ALLOWED_ORIGINS", "BACKEND_CORS_ORIGINS"),
    )

    # Database settings
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "password"
    POSTGRES_SERVER: str = Field(
        default="localhost",
        validation_alias=AliasChoices("POSTGRES_SERVER", "POSTGRES_HOST", "DB_HOST"),
    )
    POSTGRES_PORT: int = Field(default=5432, validation_alias=AliasChoices("POSTGRES_PORT", "DB_PORT"))
    POSTGRES_DB: str = Field(default="employee_db", validation_alias=AliasChoices("POSTGRES_DB", "DB_NAME"))

    # Database connection pooling and timeouts
    DB_POOL_SIZE: int = Field(default=5, description="Number of persistent DB connections")
    DB_MAX_OVERFLOW: int = Field(default=20, description="Max additional connections under load")
    DB_POOL_TIMEOUT: int = Field(default=30, description="Seconds to wait for a pooled connection")
    DB_COMMAND_TIMEOUT: int = Field(default=15, description="Seconds before a statement is cancelled")

    # Full DB URL (preferred in CI/containers). If not provided, we build it from POSTGRES_*.
    DATABASE_URL: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DATABASE_URL", "SQLALCHEMY_DATABASE_URI"),
    )

    SQLALCHEMY_ECHO: bool = False

    # Token settings
    SECRET_KEY: str = Field(
        default="your-secret-key-change-this-in-production-min-32-chars",
        validation_alias=AliasChoices("JWT_SECRET", "JWT_SECRET_KEY", "SECRET_KEY"),
    )
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Password policy
    MIN_PASSWORD_LENGTH: int = 6
    REQUIRE_SPECIAL_CHARS: bool = False
    BCRYPT_ROUNDS: int = 12

    # Listing
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # Default admin account seeded at startup
    CREATE_DEFAULT_ADMIN: bool = True
    DEFAULT_ADMIN_USERNAME: str = "admin"
    DEFAULT_ADMIN_EMAIL: str = "admin@company.com"
    DEFAULT_ADMIN_PASSWORD: str = "admin123"

    @property
    def full_version(self) -> str:
        if self.BUILD_SHA != "dev":
            return f"{self.VERSION}+{self.BUILD_SHA[:8]}"
        return self.VERSION

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    def model_post_init(self, __context):
        """
        Validate configuration on startup. In production, fail hard if insecure defaults are detected.
        This prevents accidental deployment with development credentials.
        """
        # Fill DATABASE_URL if it wasn't provided explicitly
        if not self.DATABASE_URL:
            self.DATABASE_URL = (
                f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
                f"@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
            )

        self.ALGORITHM = self.ALGORITHM.upper()
        if self.ALGORITHM not in HMAC_ALGORITHMS:
            raise ValueError(
                f"ALGORITHM must be one of {', '.join(HMAC_ALGORITHMS)} (got {self.ALGORITHM})."
            )

        if not self.is_production:
            return

        errors = []

        if self.SECRET_KEY in _INSECURE_SECRET_KEYS or len(self.SECRET_KEY) < 32:
            errors.append(
                "SECRET_KEY is insecure. Generate a new key with: "
                "python -c \"import secrets; print(secrets.token_urlsafe(32))\""
            )

        db_url_password = _extract_password_from_database_url(self.DATABASE_URL)
        if db_url_password and db_url_password in _INSECURE_DB_PASSWORDS:
            errors.append("DATABASE_URL contains an insecure password.")

        if self.CREATE_DEFAULT_ADMIN and self.DEFAULT_ADMIN_PASSWORD in _INSECURE_ADMIN_PASSWORDS:
            errors.append(
                "DEFAULT_ADMIN_PASSWORD is a well-known value. "
                "Set a strong password or disable CREATE_DEFAULT_ADMIN."
            )

        if self.DEBUG:
            errors.append("DEBUG must be False in production.")

        # Fail hard with all errors at once for easier debugging
        if errors:
            error_msg = "Production configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
            raise ValueError(error_msg)

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [v.strip() for v in value.split(",") if v.strip()]
        return value


settings = Settings()
