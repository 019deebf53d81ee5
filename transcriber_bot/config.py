import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import AnyHttpUrl, BaseModel, Field, ValidationError

# Корень проекта (папка, где лежит .env)
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_FILE = BASE_DIR / ".env"
if ENV_FILE.exists():
    load_dotenv(ENV_FILE)

DEFAULT_ASR_URL = "http://asr.default.svc.cluster.local/asr"

# --- Обязательные переменные -------------------------------------------------
REQUIRED_VARS = ("TELEGRAM_TOKEN", "PORT")

# --- Дополнительные переменные ----------------------------------------------
OPTIONAL_VARS = (
    "EXTERNAL_URL",
    "HOST",
    "ASR_URL",
    "ASR_TIMEOUT",
    "DOWNLOAD_TIMEOUT",
    "WEBHOOK_SECRET",
)


class Settings(BaseModel):
    telegram_token: str
    port: int = Field(..., ge=1, le=65535)
    external_url: Optional[AnyHttpUrl] = None
    host: str = "127.0.0.1"
    asr_url: str = DEFAULT_ASR_URL
    asr_timeout: float = Field(300.0, gt=0)
    download_timeout: int = Field(60, gt=0)
    webhook_secret: Optional[str] = None

    @property
    def use_webhook(self) -> bool:
        return self.external_url is not None

    @property
    def webhook_path(self) -> str:
        if self.external_url is None:
            return "/"
        return self.external_url.path or "/"


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Собирает Settings из окружения (по умолчанию os.environ)."""
    if environ is None:
        environ = os.environ

    missing = [name for name in REQUIRED_VARS if not environ.get(name)]
    if missing:
        raise EnvironmentError(
            f"Required environment variables are not set: {', '.join(missing)}"
        )

    values = {
        name.lower(): environ[name]
        for name in REQUIRED_VARS + OPTIONAL_VARS
        if environ.get(name)
    }
    try:
        return Settings(**values)
    except ValidationError as e:
        raise EnvironmentError(f"Invalid configuration: {e}") from e
