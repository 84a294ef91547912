"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

REFERENCE_DIR = Path(__file__).resolve().parent / "data" / "reference"


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="FC_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Freight Compare API"
    api_prefix: str = "/api"
    vendor_directory_file: Path = Field(
        default=REFERENCE_DIR / "vendors.json",
        description="Zone-rate vendor directory with tariffs and zone matrices.",
    )
    vehicle_slab_file: Path = Field(
        default=REFERENCE_DIR / "vehicle_slabs.json",
        description="Full-truck-load vehicle slabs with distance-banded prices.",
    )
    postal_rate_file: Path = Field(
        default=REFERENCE_DIR / "postal_rates.json",
        description="Distance-banded postal tariff.",
    )
    pincode_zone_file: Path = Field(
        default=REFERENCE_DIR / "pincode_zones.json",
        description="Pincode prefix to zone mapping and centroid coordinates.",
    )
    distance_service_url: Optional[str] = Field(
        default=None,
        description="Base URL of the road-distance service (e.g., http://localhost:8080).",
    )
    distance_endpoint_path: str = "/api/vendor/wheelseye-distance"
    distance_timeout_seconds: float = Field(default=10.0, gt=0.0)
    provider_max_retries: int = Field(default=1, ge=0)
    provider_backoff_seconds: float = Field(default=0.25, ge=0.0)
    road_distance_factor: float = Field(
        default=1.25,
        ge=1.0,
        description="Multiplier applied to great-circle distance when estimating road distance.",
    )

    volumetric_divisors: dict[str, float] = Field(
        default={"Air": 5000.0, "Road": 3500.0, "Rail": 4000.0, "Ship": 6000.0},
        description="Volumetric divisor (cm3 per kg) by transport mode.",
    )
    ftl_min_weight_kg: float = Field(default=500.0, ge=0.0)
    ftl_markup_factor: float = Field(default=1.2, ge=1.0)
    ftl_km_per_day: float = Field(default=400.0, gt=0.0)
    postal_km_per_day: float = Field(default=300.0, gt=0.0)
    ftl_heuristic_fallback: bool = True
    special_vendor_default_rating: float = Field(default=4.6, ge=0.0, le=5.0)

    compare_cache_ttl_seconds: float = Field(default=30 * 60, ge=0.0)
    default_max_price: float = Field(default=10_000_000, gt=0)
    default_max_time_days: int = Field(default=300, ge=1)
    default_min_rating: float = Field(default=0.0, ge=0.0, le=5.0)

    tied_up_allow_lists: dict[str, tuple[str, ...]] = Field(
        default_factory=dict,
        description="Customer email -> the only vendor names shown as tied-up for that customer.",
    )
    available_only_vendors: tuple[str, ...] = Field(
        default=("DP World",),
        description="Vendors always listed as available, whatever their contract flag.",
    )
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator(
        "vendor_directory_file",
        "vehicle_slab_file",
        "postal_rate_file",
        "pincode_zone_file",
        mode="before",
    )
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("frontend_allowed_origins", "available_only_vendors", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @field_validator("tied_up_allow_lists", mode="before")
    @classmethod
    def _normalize_allow_lists(cls, value: Any) -> dict[str, tuple[str, ...]]:
        if value is None or value == "":
            return {}
        if isinstance(value, str):
            value = json.loads(value)
        return {
            str(email).strip().lower(): tuple(str(name) for name in names)
            for email, names in dict(value).items()
        }


settings = Settings()
