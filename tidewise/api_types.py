"""Report and response models for tidewise.

These models describe the results of service operations (seeding,
integrity audits, cache statistics, health) and the HTTP responses built
from them. Core value types are defined in types.py.
"""

# Standard library imports
import datetime
from typing import Dict, List, Optional

# Third-party imports
from pydantic import BaseModel, ConfigDict, Field

# Local imports
from tidewise.types import DataQuality, RegionalDataRecord


class InitializationResult(BaseModel):
    """Outcome of seeding the regional store."""

    model_config = ConfigDict(extra="forbid")

    success: bool = Field(
        ..., description="At least one record processed and no errors"
    )
    message: str = Field(..., description="Human-readable summary")
    inserted: int = Field(0, ge=0, description="Records inserted")
    updated: int = Field(0, ge=0, description="Existing records updated")
    errors: List[str] = Field(default_factory=list, description="Per-record errors")


class IntegrityReport(BaseModel):
    """Non-mutating audit of the regional store."""

    model_config = ConfigDict(extra="forbid")

    is_valid: bool = Field(..., description="True when no issues were found")
    issues: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class NearestRegion(BaseModel):
    """A region and its great-circle distance from a query point."""

    model_config = ConfigDict(extra="forbid")

    region: RegionalDataRecord
    distance_km: float = Field(..., ge=0, description="Distance in kilometers")
    bearing_deg: float = Field(
        ..., ge=0, lt=360, description="Initial bearing from the query point"
    )


class DatabaseStats(BaseModel):
    """Counts comparing the store with the built-in dataset."""

    model_config = ConfigDict(extra="forbid")

    seed_region_count: int
    stored_region_count: int
    quality_counts: Dict[DataQuality, int]
    last_updated: Optional[datetime.datetime]


class DatabaseStatus(BaseModel):
    model_config = ConfigDict(extra="forbid")

    total_regions: int
    active_regions: int
    high_quality_regions: int
    is_initialized: bool


class CacheStats(BaseModel):
    """Hit/miss counters and size of the result cache."""

    model_config = ConfigDict(extra="forbid")

    total_entries: int = Field(..., ge=0)
    capacity: int = Field(..., gt=0)
    hit_count: int = Field(..., ge=0)
    miss_count: int = Field(..., ge=0)
    hit_rate: float = Field(..., ge=0, le=1, description="Hits over lookups")
    memory_usage_bytes: int = Field(
        ..., ge=0, description="Approximate footprint of the in-memory entries"
    )


class HealthStatus(BaseModel):
    """Presence of each service component."""

    model_config = ConfigDict(extra="forbid")

    ready: bool
    components: Dict[str, bool]
