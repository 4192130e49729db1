"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app, the analysis workflow and
the maintenance scripts share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_REGISTRY_PATH = PACKAGE_ROOT / "data" / "dams.json"


class GeocodingSettings(BaseSettings):
    """Configuration for the OpenCage geocoding API."""

    model_config = SettingsConfigDict(
        env_file=".env", extra="ignore", populate_by_name=True
    )

    api_key: str = Field(..., validation_alias="OPENCAGE_API_KEY")
    base_url: HttpUrl = Field(
        "https://api.opencagedata.com/geocode/v1/json",
        validation_alias="OPENCAGE_BASE_URL",
    )
    country_code: str = Field("in", validation_alias="GEOCODER_COUNTRY_CODE")
    query_suffix: str = Field(
        ", India",
        validation_alias="GEOCODER_QUERY_SUFFIX",
        description="Appended to the dam name before geocoding.",
    )
    timeout_seconds: float = Field(
        10.0, validation_alias="GEOCODER_TIMEOUT_SECONDS"
    )
    retry_attempts: int = Field(
        1,
        ge=1,
        validation_alias="GEOCODER_RETRY_ATTEMPTS",
        description="Transport attempts per geocoding request (1 disables retries).",
    )


class EarthEngineSettings(BaseSettings):
    """Settings for the Google Earth Engine oracle."""

    model_config = SettingsConfigDict(
        env_file=".env", extra="ignore", populate_by_name=True
    )

    project: Optional[str] = Field(None, validation_alias="EE_PROJECT")
    service_account: Optional[str] = Field(
        None,
        validation_alias="EE_SERVICE_ACCOUNT",
        description="Service account e-mail. Uses default credentials when omitted.",
    )
    private_key_file: Optional[str] = Field(
        None, validation_alias="EE_PRIVATE_KEY_FILE"
    )
    imagery_collection: str = Field(
        "COPERNICUS/S2_SR_HARMONIZED", validation_alias="EE_IMAGERY_COLLECTION"
    )
    dem_image: str = Field("USGS/SRTMGL1_003", validation_alias="EE_DEM_IMAGE")
    vector_scale_m: int = Field(90, validation_alias="EE_VECTOR_SCALE_M")
    dem_scale_m: int = Field(30, validation_alias="EE_DEM_SCALE_M")
    composite_lookback_days: int = Field(
        365, validation_alias="EE_COMPOSITE_LOOKBACK_DAYS"
    )
    max_water_vectors: int = Field(
        25,
        validation_alias="EE_MAX_WATER_VECTORS",
        description="Largest water polygons fetched per analysis area.",
    )


class PipelineSettings(BaseSettings):
    """Tunables for the staged dam analysis."""

    model_config = SettingsConfigDict(
        env_file=".env", extra="ignore", populate_by_name=True
    )

    buffer_radius_m: float = Field(
        20000.0, gt=0, validation_alias="ANALYSIS_BUFFER_RADIUS_M"
    )
    history_years: int = Field(5, ge=1, validation_alias="ANALYSIS_HISTORY_YEARS")
    surface_percentile: int = Field(
        10,
        ge=0,
        le=100,
        validation_alias="ANALYSIS_SURFACE_PERCENTILE",
        description="Low DEM percentile used as the reservoir surface height.",
    )
    history_limit: int = Field(10, ge=1, validation_alias="HISTORY_LIMIT")


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    database_path: str = Field(
        "data/damwatch.db", validation_alias="DAMWATCH_DB_PATH"
    )
    dam_registry_path: str = Field(
        str(DEFAULT_REGISTRY_PATH), validation_alias="DAM_REGISTRY_PATH"
    )
    cors_origins: str = Field(
        "http://localhost:3000",
        validation_alias="CORS_ORIGINS",
        description="Comma-separated list of front-end origins.",
    )
    geocoding: GeocodingSettings = Field(default_factory=GeocodingSettings)
    earth_engine: EarthEngineSettings = Field(default_factory=EarthEngineSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)

    @property
    def allowed_origins(self) -> tuple[str, ...]:
        return tuple(
            origin.strip() for origin in self.cors_origins.split(",") if origin.strip()
        )


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "EarthEngineSettings",
    "GeocodingSettings",
    "PipelineSettings",
    "get_settings",
]
