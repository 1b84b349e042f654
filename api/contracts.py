"""Pydantic models for API request/response schemas."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class DashboardDetection(BaseModel):
    """One enriched detection, reduced to what the map and charts use."""
    id: str = Field(..., description="Record identifier (<source file>:<row>)")
    latitude: float
    longitude: float
    municipality: str = Field(..., description="Municipality name or 'unidentified'")
    state: str = Field(..., description="State code or 'N/A'")
    biome: str = Field(..., description="Biome name or 'unidentified'")
    conservation_unit: Optional[str] = None
    indigenous_land: Optional[str] = None
    satellite: str
    date: str = Field(..., description="Detection date (YYYY-MM-DD)")
    timestamp: str = Field(..., description="Detection time, ISO 8601 UTC")
    confidence: int = Field(..., ge=0, le=100)


class DetectionList(BaseModel):
    """Filtered page of the dashboard dataset."""
    detections: List[DashboardDetection]
    count: int = Field(..., description="Detections in this page")
    total: int = Field(..., description="Detections matching the filters")


class ClassificationCounts(BaseModel):
    """How records of one region category were labelled."""
    classified: int = Field(..., description="Labelled by polygon containment")
    fallback: int = Field(..., description="Labelled by coordinate heuristic")
    unclassified: int


class Statistics(BaseModel):
    """Run statistics document."""
    total: int
    failed: int
    timestamps_estimated: int
    warnings: int
    batches: int
    classification: Dict[str, ClassificationCounts]
    by_municipality: Dict[str, int]
    by_state: Dict[str, int]
    by_biome: Dict[str, int]
    by_satellite: Dict[str, int]
    by_period: Dict[str, int]
    by_time_of_day: Dict[str, int]
    elapsed_seconds: float
    cancelled: bool


class Summary(BaseModel):
    """Headline figures for the dashboard cards."""
    total: int
    leader_municipality: str
    leader_state: str
    predominant_biome: str
    main_satellite: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: str
    data_available: bool
    cached_artifacts: int
    version: str
