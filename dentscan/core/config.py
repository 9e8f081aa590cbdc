# dentscan/core/config.py
import os
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict
from typing import Optional, List
from functools import lru_cache

from ..application.taxonomy import ANALYSIS_STEPS

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Application Settings
    APP_NAME: str = "DentScan X-Ray Report API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    DOCS_ENABLED: bool = True

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = int(os.environ.get("PORT", 8000))

    # CORS Settings (comma-separated)
    ALLOWED_ORIGINS: str = os.environ.get("ALLOWED_ORIGINS", "*")
    CORS_ALLOW_CREDENTIALS: bool = True

    # File Upload Settings
    MAX_FILE_SIZE: int = 10 * 1024 * 1024  # 10MB
    MAX_REQUEST_SIZE: int = 11 * 1024 * 1024  # file plus multipart overhead
    # Exact MIME types or "type/*" wildcards
    ALLOWED_IMAGE_TYPES: List[str] = ["image/*"]
    UPLOAD_DIR: str = "uploads"

    # Middleware settings
    GZIP_MIN_SIZE: int = 500

    # Analysis timing: one step per progress label, then a short settle
    ANALYSIS_STEP_SECONDS: float = 0.3
    ANALYSIS_SETTLE_SECONDS: float = 0.5
    RANDOM_SEED: Optional[int] = None

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    def _split_csv(self, value: str) -> List[str]:
        if value is None:
            return []
        value = value.strip()
        if value == "":
            return []
        return [item.strip() for item in value.split(",")]

    @property
    def allowed_origins_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_ORIGINS)

    def is_allowed_image_type(self, content_type: Optional[str]) -> bool:
        if not content_type:
            return False
        content_type = content_type.split(";")[0].strip().lower()
        for allowed in self.ALLOWED_IMAGE_TYPES:
            allowed = allowed.lower()
            if allowed.endswith("/*"):
                if content_type.startswith(allowed[:-1]):
                    return True
            elif content_type == allowed:
                return True
        return False

    @property
    def analysis_delay_seconds(self) -> float:
        return len(ANALYSIS_STEPS) * self.ANALYSIS_STEP_SECONDS + self.ANALYSIS_SETTLE_SECONDS

@lru_cache()
def get_settings() -> Settings:
    return Settings()

settings: Settings = get_settings()
