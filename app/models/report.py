"""
Pydantic models for citizen reports.
These models handle validation for report submission, votes and responses.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List, Dict, Any
from enum import Enum

from app.utils.timestamps import parse_timestamp


class ReportStatus(str, Enum):
    """
    Report lifecycle. Declaration order IS the lifecycle order:
    SUBMITTED → REVIEWED → WORKING → RESOLVED
    """
    SUBMITTED = "submitted"   # Initial state, created by a citizen
    REVIEWED = "reviewed"     # Seen and acknowledged by an operator
    WORKING = "working"       # Response in progress
    RESOLVED = "resolved"     # Terminal state


class VoteChoice(str, Enum):
    YES = "yes"   # Confirm
    NO = "no"     # Uncertain / not sure


class ConfidenceLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ReportCreate(BaseModel):
    """
    Model for creating a new report (incoming POST request).
    Coordinates come from the device geolocation; state/city from the
    location picker or reverse geocoding.
    """
    title: str = Field(..., min_length=1, max_length=200, description="Short incident title")
    description: str = Field(..., min_length=1, max_length=2000, description="What the citizen observed")
    category: str = Field(..., min_length=1, max_length=100, description="Incident category (flood, fire, ...)")
    location_text: str = Field(..., min_length=1, max_length=500, description="Human-readable location")
    lat: Optional[float] = Field(None, ge=-90, le=90, description="Latitude (WGS-84)")
    lng: Optional[float] = Field(None, ge=-180, le=180, description="Longitude (WGS-84)")
    state: Optional[str] = Field(None, max_length=100, description="State / region code")
    city: Optional[str] = Field(None, max_length=100, description="City name")

    @field_validator("title", "description", "location_text")
    @classmethod
    def strip_text(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Water logging on station road",
                "description": "Knee-deep water near the bus depot, cars stalled.",
                "category": "flood",
                "location_text": "Station Road, Thane",
                "lat": 19.1860,
                "lng": 72.9750,
                "state": "MH",
                "city": "Thane",
            }
        }
        extra = "ignore"


class VoteRequest(BaseModel):
    """Community verification vote. Choice is validated by the engine, not here."""
    choice: str = Field(..., description="'yes' (confirm) or 'no' (uncertain)")


class StatusUpdateRequest(BaseModel):
    """Explicit single-step status change requested by an operator."""
    status: str = Field(..., description="Target status (must be exactly one step ahead)")
    note: Optional[str] = Field(None, max_length=500, description="Optional note explaining the change")


class AdvanceRequest(BaseModel):
    note: Optional[str] = Field(None, max_length=500, description="Optional note explaining the change")


class Report(BaseModel):
    """
    A stored report, normalized on read.

    `status` and `confidence_level` are kept as plain strings so legacy or
    malformed documents still load; the engines decide what to do with them.
    """
    id: str
    reporter_id: str
    reporter_email: Optional[str] = None
    title: str = ""
    description: str = ""
    category: Optional[str] = None
    location_text: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None
    state: Optional[str] = None
    city: Optional[str] = None
    status: str = ReportStatus.SUBMITTED.value
    status_history: List[Dict[str, Any]] = Field(default_factory=list)
    yes_count: int = Field(default=0, ge=0)
    no_count: int = Field(default=0, ge=0)
    confidence_level: str = ConfidenceLevel.LOW.value
    confidence_reason: Optional[str] = None
    voters: Dict[str, str] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def normalize_timestamp(cls, value):
        return parse_timestamp(value)

    @field_validator("yes_count", "no_count", mode="before")
    @classmethod
    def default_count(cls, value):
        return 0 if value is None else value

    @field_validator("voters", "status_history", mode="before")
    @classmethod
    def default_container(cls, value, info):
        if value is None:
            return {} if info.field_name == "voters" else []
        return value

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> "Report":
        payload = dict(data)
        payload["id"] = doc_id
        return cls(**payload)


class NearbyReport(Report):
    """Report annotated with a transient distance. Never written back to the store."""
    distance_in_km: Optional[float] = None


class NearbyReportsResponse(BaseModel):
    count: int
    hidden_count: int = Field(default=0, description="Reports removed by own-report/confidence filters")
    radius_km: Optional[float] = None
    reports: List[NearbyReport]


class VoteResponse(BaseModel):
    report_id: str
    yes_count: int
    no_count: int
    confidence_level: str
    confidence_reason: str


class AdvanceResponse(BaseModel):
    report_id: str
    from_status: str
    to_status: Optional[str] = None
    already_terminal: bool = False


class DashboardStats(BaseModel):
    total_reports: int
    active_reports: int
    working_reports: int
    resolved_today: int
    categories: List[str] = Field(default_factory=list)
