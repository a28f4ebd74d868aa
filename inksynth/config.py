import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from .errors import ConfigurationError

load_dotenv()

DEFAULT_MODEL = "gemini-2.5-flash-image"
DEFAULT_CANONICAL_ORIGIN = "http://localhost:5173"

# Three designer images at the 10 MiB ceiling, base64-inflated, plus JSON overhead.
DEFAULT_MAX_CONTENT_LENGTH = 40 * 1024 * 1024


def _split_origins(raw: str) -> tuple:
    return tuple(o.strip().rstrip("/") for o in raw.split(",") if o.strip())


@dataclass(frozen=True)
class Settings:
    gemini_api_key: str
    app_env: str = "production"
    model: str = DEFAULT_MODEL
    timeout_seconds: float = 120.0
    canonical_origin: str = DEFAULT_CANONICAL_ORIGIN
    allowed_origins: tuple = field(default_factory=tuple)
    cors_max_age: int = 86400
    max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH
    log_level: str = "INFO"

    @property
    def expose_errors(self) -> bool:
        """Only development deployments return raw error details to callers."""
        return self.app_env == "development"

    @property
    def cors_origins(self) -> list:
        origins = [self.canonical_origin]
        origins.extend(o for o in self.allowed_origins if o != self.canonical_origin)
        return origins

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        env = os.environ if environ is None else environ

        api_key = env.get("GEMINI_API_KEY") or env.get("API_KEY")
        if not api_key:
            raise ConfigurationError(
                "GEMINI_API_KEY environment variable not set. "
                "Add it to the server environment or a .env file."
            )

        app_env = env.get("APP_ENV", "production").strip().lower()
        if app_env not in ("development", "production"):
            raise ConfigurationError(f"APP_ENV must be 'development' or 'production', got {app_env!r}")

        try:
            timeout = float(env.get("GEMINI_TIMEOUT", "120"))
            max_age = int(env.get("CORS_MAX_AGE", "86400"))
            max_content = int(env.get("MAX_CONTENT_LENGTH", str(DEFAULT_MAX_CONTENT_LENGTH)))
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e

        return cls(
            gemini_api_key=api_key,
            app_env=app_env,
            model=env.get("GEMINI_MODEL", DEFAULT_MODEL),
            timeout_seconds=timeout,
            canonical_origin=env.get("CANONICAL_ORIGIN", DEFAULT_CANONICAL_ORIGIN).rstrip("/"),
            allowed_origins=_split_origins(env.get("ALLOWED_ORIGINS", "")),
            cors_max_age=max_age,
            max_content_length=max_content,
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )
