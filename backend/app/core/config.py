import warnings
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import AnyUrl, BeforeValidator, computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing_extensions import Self

BACKEND_DIR = Path(__file__).resolve().parents[2]


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


def parse_csv(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip().lower() for i in v.split(",") if i.strip()]
    return v


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Use top level .env file (one level above ./backend/)
        env_file="../.env",
        env_ignore_empty=True,
        extra="ignore",
    )
    PROJECT_NAME: str = "Tree Wisdom"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    LOG_LEVEL: str = "INFO"

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = []
    FRONTEND_HOST: str = "http://localhost:5173"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS] + [
            self.FRONTEND_HOST
        ]

    SQLITE_PATH: str = str(BACKEND_DIR / "tree_wisdom.db")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        return f"sqlite:///{self.SQLITE_PATH}"

    # OpenAI-compatible generation endpoint
    LLM_API_KEY: str | None = None
    LLM_BASE_URL: str | None = None
    MODEL_DEFAULT: str = "gpt-4o-mini"
    LLM_TIMEOUT_SECONDS: float = 30.0

    UPLOAD_DIR: str = str(BACKEND_DIR / "uploads")
    MAX_UPLOAD_SIZE_BYTES: int = 10 * 1024 * 1024
    ALLOWED_IMAGE_TYPES: Annotated[list[str] | str, BeforeValidator(parse_csv)] = [
        "image/jpeg",
        "image/png",
        "image/webp",
    ]

    FIRST_USER_EMAIL: str = "walker@example.com"
    FIRST_USER_FULL_NAME: str | None = "Tree Walker"
    SEED_TREES: bool = True

    INTERPRETATION_FALLBACK_TEXT: str = (
        "The tree's story is quiet today. We could not reach the cultural "
        "interpretation service, but your reflection has been saved."
    )

    NARRATION_LANG: str = "en-US"
    NARRATION_RATE: float = 0.9
    NARRATION_PITCH: float = 1.0

    def _check_positive(self, var_name: str, value: float) -> None:
        if value <= 0:
            raise ValueError(f"{var_name} must be greater than zero, got {value}")

    @model_validator(mode="after")
    def _enforce_sane_values(self) -> Self:
        self._check_positive("MAX_UPLOAD_SIZE_BYTES", self.MAX_UPLOAD_SIZE_BYTES)
        self._check_positive("LLM_TIMEOUT_SECONDS", self.LLM_TIMEOUT_SECONDS)
        self._check_positive("NARRATION_RATE", self.NARRATION_RATE)
        if not self.LLM_API_KEY:
            message = (
                "LLM_API_KEY is not set, cultural interpretations will use the "
                "fallback text."
            )
            if self.ENVIRONMENT == "local":
                warnings.warn(message, stacklevel=1)
        return self


settings = Settings()  # type: ignore
