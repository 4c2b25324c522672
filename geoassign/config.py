"""Application configuration via Pydantic Settings.

NOTE: Every tunable is mapped to an explicit upper-case variable name
(DISTANCE_RETRY_COUNT, OPTIMALITY_TOLERANCE_PERCENT, etc.) to avoid silent
misconfiguration. Components take these as defaults only; callers can still
override any of them per instance or per call.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

from geoassign.domain.value_objects.enums import ExecutionContext


class Settings(BaseSettings):
    # Execution context
    execution_context: ExecutionContext = Field(
        default=ExecutionContext.CONTROLLED,
        validation_alias="EXECUTION_CONTEXT",
    )

    # Distance cache
    distance_cache_size: int = Field(default=1000, gt=0, validation_alias="DISTANCE_CACHE_SIZE")
    distance_cache_ttl_seconds: float | None = Field(
        default=None, gt=0, validation_alias="DISTANCE_CACHE_TTL_SECONDS"
    )

    # External lookups
    distance_retry_count: int = Field(default=3, ge=1, validation_alias="DISTANCE_RETRY_COUNT")
    distance_backoff_base_seconds: float = Field(
        default=1.0, ge=0, validation_alias="DISTANCE_BACKOFF_BASE_SECONDS"
    )
    distance_attempt_timeout_seconds: float = Field(
        default=5.0, gt=0, validation_alias="DISTANCE_ATTEMPT_TIMEOUT_SECONDS"
    )
    distance_overall_timeout_seconds: float | None = Field(
        default=None, gt=0, validation_alias="DISTANCE_OVERALL_TIMEOUT_SECONDS"
    )
    distance_fallback_to_geometric: bool = Field(
        default=True, validation_alias="DISTANCE_FALLBACK_TO_GEOMETRIC"
    )
    distance_batch_size: int = Field(default=10, gt=0, validation_alias="DISTANCE_BATCH_SIZE")

    # Optimality
    optimality_tolerance_percent: float = Field(
        default=10.0, ge=0, validation_alias="OPTIMALITY_TOLERANCE_PERCENT"
    )
    optimality_max_diff_km: float = Field(default=5.0, ge=0, validation_alias="OPTIMALITY_MAX_DIFF_KM")
    service_area_tolerance_km: float = Field(
        default=1.0, ge=0, validation_alias="SERVICE_AREA_TOLERANCE_KM"
    )
    override_max_age_hours: float = Field(default=24.0, gt=0, validation_alias="OVERRIDE_MAX_AGE_HOURS")

    # Capacity thresholds
    near_capacity_percent: float = Field(default=85.0, gt=0, validation_alias="NEAR_CAPACITY_PERCENT")
    critical_capacity_percent: float = Field(
        default=95.0, gt=0, validation_alias="CRITICAL_CAPACITY_PERCENT"
    )

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @model_validator(mode="after")
    def _check_thresholds(self) -> "Settings":
        if self.near_capacity_percent >= self.critical_capacity_percent:
            raise ValueError("NEAR_CAPACITY_PERCENT must be below CRITICAL_CAPACITY_PERCENT")
        return self


settings = Settings()
