"""
Data Models for Water Analysis Results

Structured data classes for API responses, persisted history and internal processing.
The JSON wire shape (camelCase keys) is the one stored on disk and returned by the API.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Dict, Any, List, Optional, Tuple


class InvalidSampleError(ValueError):
    """Raised when a submitted sample cannot be analyzed as given."""


class RiskLevel(str, Enum):
    """Tri-state safety classification of a water sample."""
    SAFE = "SAFE"
    CAUTION = "CAUTION"
    UNSAFE = "UNSAFE"


TURBIDITY_LEVELS = ("Low", "Medium", "High")


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing Z for UTC."""
    if not isinstance(value, str):
        raise ValueError(f"Timestamp must be a string, got {type(value).__name__}")
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def _require_mapping(data: Any, name: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ValueError(f"{name} must be an object, got {type(data).__name__}")
    return data


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    region_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"latitude": self.latitude, "longitude": self.longitude}
        if self.region_name:
            data["regionName"] = self.region_name
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Location":
        data = _require_mapping(data, "location")
        return cls(
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            region_name=data.get("regionName"),
        )


@dataclass(frozen=True)
class WaterParameters:
    """
    Measured or model-inferred water-quality readings.

    Every field is optional: the model only reports what it could infer.

    Attributes:
        pH: Acidity (0-14)
        tds: Total dissolved solids in ppm
        turbidity: Low, Medium or High
        nitrates: Nitrate level in mg/L
        chlorine: Chlorine level in mg/L
        contaminants: Named contaminants suspected in the sample
    """
    pH: Optional[float] = None
    tds: Optional[float] = None
    turbidity: Optional[str] = None
    nitrates: Optional[float] = None
    chlorine: Optional[float] = None
    contaminants: Optional[Tuple[str, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for name in ("pH", "tds", "turbidity", "nitrates", "chlorine"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        if self.contaminants is not None:
            data["contaminants"] = list(self.contaminants)
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "WaterParameters":
        if not data:
            return cls()
        data = _require_mapping(data, "parameters")
        contaminants = data.get("contaminants")
        return cls(
            pH=data.get("pH"),
            tds=data.get("tds"),
            turbidity=data.get("turbidity"),
            nitrates=data.get("nitrates"),
            chlorine=data.get("chlorine"),
            contaminants=tuple(contaminants) if contaminants is not None else None,
        )


@dataclass(frozen=True)
class HealthAlert:
    title: str
    description: str
    severity: str  # high or medium

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "severity": self.severity,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HealthAlert":
        data = _require_mapping(data, "alert")
        return cls(
            title=data["title"],
            description=data["description"],
            severity=data["severity"],
        )


@dataclass(frozen=True)
class AnalysisResult:
    """
    Complete safety assessment of one water sample.

    Results are immutable once created. History only ever prepends and reads them.

    Attributes:
        risk_level: SAFE, CAUTION or UNSAFE
        score: Purity/safety score (0-100)
        summary: Professional description of the sample
        simple_explanation: Non-technical description in the requested output language
        parameters: Sparse record of measured or inferred readings
        recommendations: Actionable remediation steps, in the order received
        alerts: Named health risks, in the order received
        timestamp: ISO-8601 creation time, assigned when the reply is received
        location: Device position at submission time, when it could be determined
    """
    risk_level: RiskLevel
    score: float
    summary: str
    simple_explanation: str
    parameters: WaterParameters = field(default_factory=WaterParameters)
    recommendations: Tuple[str, ...] = ()
    alerts: Tuple[HealthAlert, ...] = ()
    timestamp: str = ""
    location: Optional[Location] = None

    @property
    def created_at(self) -> datetime:
        return parse_timestamp(self.timestamp)

    def tagged(self, location: Optional[Location]) -> "AnalysisResult":
        """Return a copy carrying the given location."""
        return replace(self, location=location)

    def to_dict(self) -> Dict[str, Any]:
        """Convert AnalysisResult to its JSON wire shape."""
        data = {
            "riskLevel": self.risk_level.value,
            "score": self.score,
            "summary": self.summary,
            "simpleExplanation": self.simple_explanation,
            "parameters": self.parameters.to_dict(),
            "recommendations": list(self.recommendations),
            "alerts": [alert.to_dict() for alert in self.alerts],
            "timestamp": self.timestamp,
        }
        if self.location is not None:
            data["location"] = self.location.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisResult":
        """
        Rebuild an AnalysisResult from its JSON wire shape.

        Raises:
            ValueError: If the entry or a nested record is not an object, or the timestamp is unparseable
            KeyError: If a required field is missing
        """
        data = _require_mapping(data, "history entry")
        parse_timestamp(data["timestamp"])
        location = data.get("location")
        return cls(
            risk_level=RiskLevel(data["riskLevel"]),
            score=data["score"],
            summary=data["summary"],
            simple_explanation=data["simpleExplanation"],
            parameters=WaterParameters.from_dict(data.get("parameters")),
            recommendations=tuple(data.get("recommendations", [])),
            alerts=tuple(HealthAlert.from_dict(a) for a in data.get("alerts", [])),
            timestamp=data["timestamp"],
            location=Location.from_dict(location) if location else None,
        )


@dataclass(frozen=True)
class Hotspot:
    """
    Pre-aggregated regional water-quality summary.

    A hotspot is placed either by true coordinates (latitude/longitude) or by an
    abstract grid position in [0,100]x[0,100] relative to the map center
    (grid_y runs north-south, grid_x east-west).
    True coordinates take precedence when both are set.
    """
    id: str
    region: str
    avg_score: float
    risk_count: int
    dominant_issue: str
    grid_x: Optional[float] = None
    grid_y: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "region": self.region,
            "avgScore": self.avg_score,
            "riskCount": self.risk_count,
            "dominantIssue": self.dominant_issue,
        }


# Seed data for the regional overlay until a backend aggregation job exists
DEFAULT_HOTSPOTS: Tuple[Hotspot, ...] = (
    Hotspot("1", "North District", 42, 15, "High Fluoride", grid_y=25, grid_x=30),
    Hotspot("2", "East Riverside", 88, 2, "Minor Silt", grid_y=65, grid_x=45),
    Hotspot("3", "Central Valley", 31, 24, "Nitrate Pollution", grid_y=45, grid_x=60),
    Hotspot("4", "West Highlands", 92, 0, "None", grid_y=20, grid_x=75),
    Hotspot("5", "South Plains", 55, 8, "Lead Suspicion", grid_y=75, grid_x=80),
)


@dataclass
class DroneData:
    """Manually entered sensor readings, consumed once by the analyzer."""
    ph: float = 7.0
    tds: float = 150
    turbidity: str = "Low"
    chlorine: float = 0.2

    def validate(self) -> None:
        errors: List[str] = []
        if not 0 <= self.ph <= 14:
            errors.append(f"pH must be between 0 and 14, got {self.ph}")
        if self.tds < 0:
            errors.append(f"TDS cannot be negative, got {self.tds}")
        if self.chlorine < 0:
            errors.append(f"Chlorine cannot be negative, got {self.chlorine}")
        if self.turbidity not in TURBIDITY_LEVELS:
            errors.append(
                f"Turbidity must be one of {', '.join(TURBIDITY_LEVELS)}, got {self.turbidity!r}"
            )
        if errors:
            raise InvalidSampleError("; ".join(errors))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pH": self.ph,
            "tds": self.tds,
            "turbidity": self.turbidity,
            "chlorine": self.chlorine,
        }
