from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Database
    database_url: str = Field(default="sqlite:///./nepa_buddy.db")

    # Tally window (minutes). Reports older than this stop counting.
    report_staleness_minutes: int = Field(default=30)

    # On-ratio thresholds
    on_ratio_threshold: float = Field(default=0.7)
    off_ratio_threshold: float = Field(default=0.3)

    # Confidence thresholds
    high_confidence_buddies: int = Field(default=10)
    high_confidence_recency_minutes: int = Field(default=10)
    medium_confidence_buddies: int = Field(default=3)
    medium_confidence_recency_minutes: int = Field(default=30)

    # Zone registration bounding box (Lagos metro)
    region_min_lat: float = Field(default=6.0)
    region_max_lat: float = Field(default=7.0)
    region_min_lng: float = Field(default=2.5)
    region_max_lng: float = Field(default=4.5)

    # Optimistic concurrency retries for zone status writes
    stale_write_retries: int = Field(default=3)

    # Scheduler intervals (minutes)
    status_sweep_interval: int = Field(default=5)
    osm_import_interval: int = Field(default=0)  # 0 = manual only

    # Overpass (OpenStreetMap) zone import
    overpass_api_url: str = Field(default="https://overpass-api.de/api/interpreter")
    osm_bbox: str = Field(default="6.3,3.0,6.8,4.0")  # south,west,north,east
    overpass_timeout: float = Field(default=60.0)

    # Notification relay. Empty = log only.
    notification_webhook_url: str = Field(default="")
    notification_timeout: float = Field(default=10.0)

    # Seed zones inserted on startup when missing
    seed_zones: bool = Field(default=True)

    log_level: str = Field(default="INFO")

    # CORS
    cors_origins: str = Field(default="http://localhost:5173,http://localhost:8080")

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",")]


settings = Settings()
