"""Pydantic models describing engine inputs and per-activity results."""
from datetime import date, datetime, timezone
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


SWIM_SPORT_TYPES = frozenset({"Swim"})
DISCIPLINES = ("swim", "bike", "bike_indoor", "run", "other")
ZONE_COUNT = 5


class Activity(BaseModel):
    """A workout as supplied by the provider/persistence layer."""

    model_config = ConfigDict(frozen=True)

    id: int | str
    name: str | None = None
    sport_type: str = "Unknown"
    start_date: datetime
    moving_time_s: float = 0
    distance_m: float = 0
    average_heartrate: float | None = None
    max_heartrate: float | None = None
    total_elevation_gain_m: float = 0
    hidden: bool = False
    exclude_from_pace_analysis: bool = False
    zone_points: float | None = None  # stored score; stands in for load when no zones exist

    @field_validator("moving_time_s", "distance_m", "total_elevation_gain_m", mode="before")
    @classmethod
    def missing_numbers_are_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("sport_type", mode="before")
    @classmethod
    def missing_sport_is_unknown(cls, value: Any) -> Any:
        return value or "Unknown"

    @field_validator("hidden", "exclude_from_pace_analysis", mode="before")
    @classmethod
    def missing_flag_is_false(cls, value: Any) -> Any:
        return bool(value)

    @property
    def is_swim(self) -> bool:
        return self.sport_type in SWIM_SPORT_TYPES

    @property
    def calendar_date(self) -> date:
        """UTC calendar date of the activity start."""
        if self.start_date.tzinfo is not None:
            return self.start_date.astimezone(timezone.utc).date()
        return self.start_date.date()

    @property
    def moving_minutes(self) -> float:
        return self.moving_time_s / 60

    @property
    def has_heart_rate_summary(self) -> bool:
        return self.average_heartrate is not None or self.max_heartrate is not None

    def reference(self, include_sport: bool = True) -> dict[str, Any]:
        """Short JSON reference used by records and listings."""
        ref: dict[str, Any] = {"id": self.id, "name": self.name}
        if include_sport:
            ref["sport_type"] = self.sport_type
        ref["start_date"] = self.start_date.isoformat()
        return ref


class HeartRateSampleSeries(BaseModel):
    """Aligned heart-rate (bpm) and elapsed-time (s) samples."""

    model_config = ConfigDict(frozen=True)

    heart_rate: tuple[float, ...]
    elapsed_time: tuple[float, ...]

    @model_validator(mode="after")
    def check_alignment(self) -> "HeartRateSampleSeries":
        if len(self.heart_rate) != len(self.elapsed_time):
            raise ValueError(
                f"heart_rate has {len(self.heart_rate)} samples but "
                f"elapsed_time has {len(self.elapsed_time)}"
            )
        for earlier, later in zip(self.elapsed_time, self.elapsed_time[1:]):
            if later <= earlier:
                raise ValueError("elapsed_time must be strictly increasing")
        return self

    def __len__(self) -> int:
        return len(self.heart_rate)

    @property
    def total_duration(self) -> float:
        if len(self.elapsed_time) < 2:
            return 0.0
        return self.elapsed_time[-1] - self.elapsed_time[0]


class ZoneBand(BaseModel):
    """One heart-rate band; ``max=None`` means no upper limit."""

    model_config = ConfigDict(frozen=True)

    min: float = 0
    max: float | None = None

    @field_validator("min", mode="before")
    @classmethod
    def missing_min_is_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("max", mode="before")
    @classmethod
    def negative_max_is_unbounded(cls, value: Any) -> Any:
        # Strava reports the open-ended top zone as max=-1
        if isinstance(value, (int, float)) and value < 0:
            return None
        return value


class ZoneBoundarySet(BaseModel):
    """Exactly five ordered, non-decreasing bands."""

    model_config = ConfigDict(frozen=True)

    bands: tuple[ZoneBand, ...]

    @model_validator(mode="after")
    def check_bands(self) -> "ZoneBoundarySet":
        if len(self.bands) != ZONE_COUNT:
            raise ValueError(f"Expected {ZONE_COUNT} HR zones, got {len(self.bands)}")

        for index, band in enumerate(self.bands):
            if band.max is None:
                if index != ZONE_COUNT - 1:
                    raise ValueError(f"Only zone {ZONE_COUNT} may be unbounded (zone {index + 1} is)")
                continue
            if band.max < band.min:
                raise ValueError(f"Zone {index + 1} max {band.max} is below its min {band.min}")

        for index, (lower, upper) in enumerate(zip(self.bands, self.bands[1:]), start=1):
            if upper.min < lower.min:
                raise ValueError(f"Zone {index + 1} starts below zone {index}")
            if upper.max is not None and upper.max < lower.max:
                raise ValueError(f"Zone {index + 1} ends below zone {index}")
        return self

    def to_list(self) -> list[dict[str, float | None]]:
        return [{"min": band.min, "max": band.max} for band in self.bands]


ZoneSeconds = Annotated[float, Field(ge=0)]


class ZoneTimeBreakdown(BaseModel):
    """Seconds spent in each of the five zones."""

    model_config = ConfigDict(frozen=True)

    zone_1_time_s: ZoneSeconds = 0
    zone_2_time_s: ZoneSeconds = 0
    zone_3_time_s: ZoneSeconds = 0
    zone_4_time_s: ZoneSeconds = 0
    zone_5_time_s: ZoneSeconds = 0

    @field_validator(
        "zone_1_time_s", "zone_2_time_s", "zone_3_time_s", "zone_4_time_s", "zone_5_time_s",
        mode="before",
    )
    @classmethod
    def missing_seconds_are_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @classmethod
    def from_seconds(cls, seconds: list[float] | tuple[float, ...]) -> "ZoneTimeBreakdown":
        return cls(**{f"zone_{i}_time_s": value for i, value in enumerate(seconds, start=1)})

    @property
    def seconds(self) -> tuple[float, float, float, float, float]:
        return (
            self.zone_1_time_s,
            self.zone_2_time_s,
            self.zone_3_time_s,
            self.zone_4_time_s,
            self.zone_5_time_s,
        )

    @property
    def total_seconds(self) -> float:
        return sum(self.seconds)

    @property
    def high_intensity_seconds(self) -> float:
        """Zone 4 + Zone 5 time."""
        return self.zone_4_time_s + self.zone_5_time_s

    def minutes(self) -> tuple[float, ...]:
        return tuple(value / 60 for value in self.seconds)


class ZoneMethod(str, Enum):
    """How zone boundaries were obtained for an activity."""

    CUSTOM = "custom"
    PERCENT_OF_MAX = "percent_of_max"
    UNAVAILABLE = "unavailable"


class ZoneResolution(BaseModel):
    """Boundary strategy selected for one activity."""

    model_config = ConfigDict(frozen=True)

    method: ZoneMethod
    bands: ZoneBoundarySet | None = None
    max_hr: float | None = None

    @property
    def is_available(self) -> bool:
        return self.method is not ZoneMethod.UNAVAILABLE


class ScoringStrategy(str, Enum):
    """Scoring path chosen once per activity."""

    SWIM = "swim"
    NO_HEART_RATE = "no_heart_rate"
    HEART_RATE_ZONES = "heart_rate_zones"
    FLAT_FALLBACK = "flat_fallback"


class ActivityRecord(BaseModel):
    """An activity with whatever HR detail the caller has for it."""

    model_config = ConfigDict(frozen=True)

    activity: Activity
    samples: HeartRateSampleSeries | None = None
    zones: ZoneTimeBreakdown | None = None  # stored breakdown, e.g. from a previous sync


class ScoredActivity(BaseModel):
    """Per-activity scoring result."""

    model_config = ConfigDict(frozen=True)

    activity: Activity
    strategy: ScoringStrategy
    zone_method: ZoneMethod = ZoneMethod.UNAVAILABLE
    zones: ZoneTimeBreakdown = Field(default_factory=ZoneTimeBreakdown)
    zone_source: str | None = None  # "stream", "stored" or None
    points: float = 0
    training_load: float = 0

    @property
    def has_zone_data(self) -> bool:
        return self.zone_source is not None

    def summary(self) -> dict[str, Any]:
        """JSON-serializable view of the result."""
        return {
            **self.activity.reference(),
            "moving_time_s": self.activity.moving_time_s,
            "distance_m": self.activity.distance_m,
            "strategy": self.strategy.value,
            "zone_method": self.zone_method.value,
            "zones": self.zones.model_dump() if self.has_zone_data else None,
            "zone_points": self.points,
            "training_load": self.training_load,
        }


class DailyLoad(BaseModel):
    """Training load summed over one calendar date."""

    model_config = ConfigDict(frozen=True)

    date: date
    load: float = Field(ge=0)
    activities: int = 0


class CompetitionWindow(BaseModel):
    """Inclusive calendar-date range of a competition."""

    model_config = ConfigDict(frozen=True)

    name: str = "Competition"
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def check_order(self) -> "CompetitionWindow":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    def contains(self, activity: Activity) -> bool:
        return self.start_date <= activity.calendar_date <= self.end_date
