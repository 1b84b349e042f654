"""Record types shared by the ingestion, enrichment and statistics stages."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Tuple

UNIDENTIFIED = "unidentified"
NOT_AVAILABLE = "N/A"

# Region categories, in enrichment order
MUNICIPALITY = "municipality"
BIOME = "biome"
CONSERVATION_UNIT = "conservation_unit"
INDIGENOUS_LAND = "indigenous_land"
CATEGORIES = (MUNICIPALITY, BIOME, CONSERVATION_UNIT, INDIGENOUS_LAND)

# Where a category label came from
SOURCE_POLYGON = "polygon"
SOURCE_FALLBACK = "fallback"
SOURCE_UNCLASSIFIED = "unclassified"

DEFAULT_SATELLITE = UNIDENTIFIED
DEFAULT_CONFIDENCE = 50
DEFAULT_TEMPERATURE = 300.0
DEFAULT_RADIATIVE_POWER = 0.0


@dataclass(frozen=True)
class Bounds:
    """Geographic bounding box in WGS84 degrees."""
    north: float
    south: float
    east: float
    west: float

    def contains(self, latitude: float, longitude: float) -> bool:
        return (self.south <= latitude <= self.north
                and self.west <= longitude <= self.east)

    @classmethod
    def from_config(cls, config: Optional[dict]) -> "Bounds":
        if not config:
            return BRAZIL_BOUNDS
        return cls(
            north=float(config['north']),
            south=float(config['south']),
            east=float(config['east']),
            west=float(config['west']),
        )

    def to_dict(self) -> Dict[str, float]:
        return {'north': self.north, 'south': self.south,
                'east': self.east, 'west': self.west}


# Continental Brazil: Roraima, Rio Grande do Sul, Fernando de Noronha, Acre
BRAZIL_BOUNDS = Bounds(north=5.264877, south=-33.742156,
                       east=-28.847894, west=-73.982817)


@dataclass(frozen=True)
class DetectionRecord:
    """One satellite heat spot detection, as read from a CSV row."""
    latitude: float
    longitude: float
    timestamp: datetime
    satellite: str = DEFAULT_SATELLITE
    confidence: int = DEFAULT_CONFIDENCE
    temperature: float = DEFAULT_TEMPERATURE
    radiative_power: float = DEFAULT_RADIATIVE_POWER
    timestamp_estimated: bool = False
    source: str = "<text>"
    row: int = 0

    @property
    def id(self) -> str:
        return f"{self.source}:{self.row}"

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'timestamp': self.timestamp.isoformat().replace('+00:00', 'Z'),
            'date': self.timestamp.date().isoformat(),
            'timestamp_estimated': self.timestamp_estimated,
            'satellite': self.satellite,
            'confidence': self.confidence,
            'temperature': self.temperature,
            'radiative_power': self.radiative_power,
            'source': self.source,
        }


@dataclass(frozen=True)
class ClassificationWarning:
    """A geometry test that failed while classifying one record."""
    category: str
    region: Optional[str]
    message: str

    def to_dict(self) -> dict:
        return {'category': self.category, 'region': self.region, 'message': self.message}


@dataclass(frozen=True)
class EnrichedRecord:
    """A detection plus the region labels attached to it.

    The wrapped detection is never modified; enrichment only adds fields.
    """
    detection: DetectionRecord
    municipality: str = UNIDENTIFIED
    state: str = NOT_AVAILABLE
    municipality_code: Optional[str] = None
    biome: str = UNIDENTIFIED
    conservation_unit: Optional[str] = None
    conservation_unit_category: Optional[str] = None
    indigenous_land: Optional[str] = None
    ethnicity: Optional[str] = None
    classification_source: Dict[str, str] = field(
        default_factory=lambda: {category: SOURCE_UNCLASSIFIED for category in CATEGORIES}
    )
    warnings: Tuple[ClassificationWarning, ...] = ()

    def to_dict(self) -> dict:
        data = self.detection.to_dict()
        data.update({
            'municipality': self.municipality,
            'state': self.state,
            'municipality_code': self.municipality_code,
            'biome': self.biome,
            'conservation_unit': self.conservation_unit,
            'conservation_unit_category': self.conservation_unit_category,
            'indigenous_land': self.indigenous_land,
            'ethnicity': self.ethnicity,
            'classification_source': dict(self.classification_source),
            'warnings': [w.to_dict() for w in self.warnings],
        })
        return data

    def to_dashboard_dict(self) -> dict:
        """Fields the map and charts need; a strict projection of to_dict()."""
        detection = self.detection
        return {
            'id': detection.id,
            'latitude': detection.latitude,
            'longitude': detection.longitude,
            'municipality': self.municipality,
            'state': self.state,
            'biome': self.biome,
            'conservation_unit': self.conservation_unit,
            'indigenous_land': self.indigenous_land,
            'satellite': detection.satellite,
            'date': detection.timestamp.date().isoformat(),
            'timestamp': detection.timestamp.isoformat().replace('+00:00', 'Z'),
            'confidence': detection.confidence,
        }
