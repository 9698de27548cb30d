import json
import os
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv
from google.auth import exceptions as gauth_exc
from google.oauth2 import service_account

from .errors import ConfigError

# Load .env from the backend directory
BACKEND_DIR = Path(__file__).resolve().parents[1]
ENV_PATH = BACKEND_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)


def _split(raw: str) -> List[str]:
    return [p.strip() for p in raw.split(",") if p.strip()]


def _int(name: str, default: int) -> int:
    # an empty value means the default
    return int(os.getenv(name) or default)


def _optional_float(raw: str) -> Optional[float]:
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"expected a number, got {raw!r}") from exc


class Settings:
    GOOGLE_CREDENTIALS: str = os.getenv("GOOGLE_CREDENTIALS", "")
    DEEPL_API_KEY: str = os.getenv("DEEPL_API_KEY", "")
    DEEPL_API_URL: str = os.getenv("DEEPL_API_URL", "https://api-free.deepl.com/v2/translate")
    DEEPL_TIMEOUT: str = os.getenv("DEEPL_TIMEOUT", "")
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = _int("PORT", 3000)
    STT_LANGUAGE: str = os.getenv("STT_LANGUAGE", "ja-JP")
    STT_ALT_LANGUAGES: List[str] = _split(os.getenv("STT_ALT_LANGUAGES", "en-US"))
    STT_SAMPLE_RATE: int = _int("STT_SAMPLE_RATE", 48000)
    TARGET_LANG: str = os.getenv("TARGET_LANG", "EN")
    TTS_PROVIDER: str = os.getenv("TTS_PROVIDER", "google").lower()
    TTS_LANGUAGE: str = os.getenv("TTS_LANGUAGE", "en-US")
    TTS_GENDER: str = os.getenv("TTS_GENDER", "NEUTRAL").upper()
    PUBLIC_DIR: str = os.getenv("PUBLIC_DIR", str(BACKEND_DIR / "public"))
    FRONTEND_ORIGIN: str = os.getenv("FRONTEND_ORIGIN", "*")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def deepl_timeout(self) -> Optional[float]:
        return _optional_float(self.DEEPL_TIMEOUT)

    def google_credentials(self) -> Dict:
        """Parse the service-account JSON blob from GOOGLE_CREDENTIALS."""
        if not self.GOOGLE_CREDENTIALS.strip():
            raise ConfigError("GOOGLE_CREDENTIALS not set. Provide the service-account JSON in the environment or backend/.env")
        try:
            info = json.loads(self.GOOGLE_CREDENTIALS)
        except ValueError as exc:
            raise ConfigError(f"GOOGLE_CREDENTIALS is not valid JSON: {exc}") from exc
        if not isinstance(info, dict):
            raise ConfigError("GOOGLE_CREDENTIALS must be a JSON object")
        return info

    def service_account_credentials(self) -> service_account.Credentials:
        info = self.google_credentials()
        try:
            return service_account.Credentials.from_service_account_info(info)
        except (gauth_exc.MalformedError, ValueError) as exc:
            raise ConfigError(f"GOOGLE_CREDENTIALS is not a valid service-account key: {exc}") from exc

    def validate(self):
        """Fail fast on anything the relay cannot start without."""
        self.service_account_credentials()
        if not self.DEEPL_API_KEY.strip():
            raise ConfigError("DEEPL_API_KEY not set. See backend/.env.example")
        if self.TTS_PROVIDER not in {"google", "gtts"}:
            raise ConfigError(f"TTS_PROVIDER must be 'google' or 'gtts', got {self.TTS_PROVIDER!r}")
        timeout = self.deepl_timeout
        if timeout is not None and timeout <= 0:
            raise ConfigError(f"DEEPL_TIMEOUT must be positive, got {timeout}")


settings = Settings()
