"""Per-dataset policies: retention caps, freshness ceilings, integrity rules."""

from datetime import timedelta

from pydantic import BaseModel, ConfigDict, Field


class RetentionPolicy(BaseModel):
    """Caps on array length and time horizon applied before publishing.

    Maps snapshot field names to limits:
    - series_limits: keep the most recent N periods of a time series
    - ranked_limits: keep the first N entries of a ranked list
    - projected_fields: record arrays reduced to their display projection
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    series_limits: dict[str, int] = Field(default_factory=dict)
    ranked_limits: dict[str, int] = Field(default_factory=dict)
    projected_fields: tuple[str, ...] = Field(default_factory=tuple)


class FreshnessPolicy(BaseModel):
    """Age thresholds deciding how a cached snapshot is served."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ceiling_hours: float = Field(default=24.0, gt=0)
    hard_ceiling: bool = Field(default=False)

    @property
    def ceiling(self) -> timedelta:
        return timedelta(hours=self.ceiling_hours)


class IntegrityRules(BaseModel):
    """Fields whose zero/empty value is evidence of an upstream failure."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    critical_scalars: tuple[str, ...] = Field(default_factory=tuple)
    critical_arrays: tuple[str, ...] = Field(default_factory=tuple)
