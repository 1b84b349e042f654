"""Point-in-polygon lookup over reference region boundaries."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import shapely
from shapely.errors import GEOSException
from shapely.geometry import Point
from shapely.geometry.base import BaseGeometry
from shapely.strtree import STRtree

from ..models import ClassificationWarning
from ..utils import setup_logger

logger = setup_logger(__name__)


@dataclass(frozen=True, eq=False)
class RegionGeometry:
    """One named boundary (polygon or multipolygon) of a region category."""
    name: str
    category: str
    geometry: BaseGeometry
    properties: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'properties', MappingProxyType(dict(self.properties)))

    def get(self, *keys: str, default: Optional[str] = None) -> Optional[str]:
        """Return the first non-empty property among `keys`, as text."""
        for key in keys:
            value = self.properties.get(key)
            if value is not None and str(value).strip():
                return str(value).strip()
        return default


def _covers(geometry: BaseGeometry, point: Point) -> bool:
    # Boundary points count as inside
    return geometry.covers(point)


class RegionIndex:
    """
    Read-only collection of region geometries per category.

    Queries return the first geometry, in load order, that contains the
    point. Overlapping boundaries within one category are therefore resolved
    by load order.
    """

    def __init__(self, regions: Dict[str, Tuple[RegionGeometry, ...]]):
        self._regions = regions
        self._trees = {
            category: STRtree([region.geometry for region in items])
            for category, items in regions.items() if items
        }

    @classmethod
    def build(cls, collections: Mapping[str, Iterable[RegionGeometry]]) -> "RegionIndex":
        """
        Build an index from geometry collections.

        Args:
            collections: Dict of {category: geometries in load order}

        Returns:
            RegionIndex, immutable from here on
        """
        regions = {}
        for category, geometries in collections.items():
            items = tuple(geometries)
            for region in items:
                shapely.prepare(region.geometry)
            regions[category] = items
            logger.info(f"Indexed {len(items)} {category} geometries")

        return cls(regions)

    def categories(self) -> List[str]:
        return list(self._regions)

    def count(self, category: str) -> int:
        return len(self._regions.get(category, ()))

    def has_geometries(self, category: str) -> bool:
        return self.count(category) > 0

    def locate(
        self,
        category: str,
        latitude: float,
        longitude: float
    ) -> Tuple[Optional[RegionGeometry], List[ClassificationWarning]]:
        """
        Find the region containing a point, reporting failed geometry tests.

        A geometry whose containment test raises is treated as not containing
        the point.

        Returns:
            Tuple of (first containing region or None, warnings)
        """
        regions = self._regions.get(category)
        if not regions:
            return None, []

        point = Point(longitude, latitude)
        warnings = []

        for position in sorted(int(i) for i in self._trees[category].query(point)):
            region = regions[position]
            try:
                if _covers(region.geometry, point):
                    return region, warnings
            except (GEOSException, ValueError, TypeError) as e:
                logger.warning(f"Geometry test failed for {category} '{region.name}': {e}")
                warnings.append(ClassificationWarning(category, region.name, str(e)))

        return None, warnings

    def classify(self, category: str, latitude: float, longitude: float) -> Optional[RegionGeometry]:
        """Return the first region of `category` containing the point, or None."""
        region, _ = self.locate(category, latitude, longitude)
        return region
