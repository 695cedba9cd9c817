from pathlib import Path
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # Staffbase API settings
    STAFFBASE_BASE_URL: str = "https://app.staffbase.com/api"
    STAFFBASE_TOKEN: str = ""
    STAFFBASE_AUTH_SCHEME: str = "Basic"
    STAFFBASE_SPACE_ID: str = ""
    STAFFBASE_STUDIO_URL: str | None = None
    REQUEST_TIMEOUT_SECONDS: float = 30.0

    # Directory settings
    HIDDEN_ATTRIBUTE_KEY: str = "storeid"
    DIRECTORY_CACHE_TTL_SECONDS: float = 900.0  # 15 minutes

    # Announcement access
    FIXED_OPS_IDS: str = ""
    OPS_GROUP_ID: str | None = None

    LOCAL_TIMEZONE: str = "UTC"

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # derive sensible defaults if not provided
    def studio_url(self) -> str | None:
        if self.STAFFBASE_STUDIO_URL:
            return self.STAFFBASE_STUDIO_URL.rstrip("/")
        if not self.STAFFBASE_BASE_URL:
            return None
        return self.STAFFBASE_BASE_URL.rstrip("/").replace("/api", "")

    def fixed_ops_ids(self) -> list[str]:
        """Operator IDs that are always granted access to new channels."""
        return [part.strip() for part in self.FIXED_OPS_IDS.split(",") if part.strip()]

    def local_tz(self) -> ZoneInfo:
        return ZoneInfo(self.LOCAL_TIMEZONE)


settings = Settings()
