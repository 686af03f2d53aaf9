import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from dotenv import load_dotenv

from taskhub.utils.durations import parse_duration

load_dotenv()

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 20


class ConfigError(RuntimeError):
    pass


def _env_bool(name: str, default: bool = False) -> bool:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_list(name: str) -> list[str]:
    raw_value = os.getenv(name, "")
    return [item.strip() for item in raw_value.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    database_url: str = os.getenv("DATABASE_URL", "")
    jwt_access_secret: str = os.getenv("JWT_ACCESS_SECRET", "")
    jwt_refresh_secret: str = os.getenv("JWT_REFRESH_SECRET", "")
    jwt_access_expires_in: str = os.getenv("JWT_ACCESS_EXPIRES_IN", "")
    jwt_refresh_expires_in: str = os.getenv("JWT_REFRESH_EXPIRES_IN", "")
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    password_hash_scheme: str = os.getenv("PASSWORD_HASH_SCHEME", "scrypt")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_json: bool = _env_bool("LOG_JSON", False)
    seed_admin_email: str = os.getenv("SEED_ADMIN_EMAIL", "").strip().lower()
    seed_admin_password: str = os.getenv("SEED_ADMIN_PASSWORD", "")
    cors_origins: list[str] = field(default_factory=lambda: _env_list("CORS_ORIGINS"))

    @property
    def access_token_lifetime(self) -> timedelta:
        return parse_duration(self.jwt_access_expires_in)

    @property
    def refresh_token_lifetime(self) -> timedelta:
        return parse_duration(self.jwt_refresh_expires_in)

    def require_auth(self) -> None:
        required = {
            "JWT_ACCESS_SECRET": self.jwt_access_secret,
            "JWT_REFRESH_SECRET": self.jwt_refresh_secret,
            "JWT_ACCESS_EXPIRES_IN": self.jwt_access_expires_in,
            "JWT_REFRESH_EXPIRES_IN": self.jwt_refresh_expires_in,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ConfigError(f"Missing required settings: {', '.join(missing)}")
        for name in ("JWT_ACCESS_EXPIRES_IN", "JWT_REFRESH_EXPIRES_IN"):
            try:
                lifetime = parse_duration(required[name])
                # Session expiry is stored as now + lifetime.
                datetime.now(timezone.utc) + lifetime
            except (ValueError, OverflowError) as exc:
                raise ConfigError(f"{name}: {exc}") from exc

    def require_seed_admin(self) -> None:
        if not (self.seed_admin_email and self.seed_admin_password):
            return
        if "@" not in self.seed_admin_email:
            raise ConfigError("SEED_ADMIN_EMAIL: invalid email format")
        length = len(self.seed_admin_password)
        if not PASSWORD_MIN_LENGTH <= length <= PASSWORD_MAX_LENGTH:
            raise ConfigError(
                "SEED_ADMIN_PASSWORD: must be between "
                f"{PASSWORD_MIN_LENGTH} and {PASSWORD_MAX_LENGTH} characters"
            )


settings = Settings()
