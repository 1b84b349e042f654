"""Reference boundary loading (municipalities, biomes, protected areas)."""

from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from shapely.errors import GEOSException
from shapely.geometry import shape

from ..enrich.region_index import RegionGeometry
from ..exceptions import ReferenceDataError
from ..models import (
    BIOME,
    CATEGORIES,
    CONSERVATION_UNIT,
    INDIGENOUS_LAND,
    MUNICIPALITY,
    UNIDENTIFIED,
)
from ..utils import read_json, setup_logger

logger = setup_logger(__name__)

# Property holding the display name, per category (IBGE / MMA / FUNAI layers)
NAME_FIELDS = {
    MUNICIPALITY: ('NM_MUNICIP', 'NM_MUN', 'nome', 'name'),
    BIOME: ('NM_BIOMA', 'Bioma', 'bioma', 'nome', 'name'),
    CONSERVATION_UNIT: ('NOME_UC', 'nome_uc', 'nome', 'name'),
    INDIGENOUS_LAND: ('TERRA_INDI', 'terrai_nom', 'nome', 'name'),
}

DEFAULT_NAMES = {
    MUNICIPALITY: UNIDENTIFIED,
    BIOME: UNIDENTIFIED,
    CONSERVATION_UNIT: 'UC',
    INDIGENOUS_LAND: 'TI',
}

DEFAULT_REFERENCE_FILES = {
    MUNICIPALITY: 'municipios_brasil.geojson',
    BIOME: 'biomas_brasil.geojson',
    CONSERVATION_UNIT: 'unidades_conservacao.geojson',
    INDIGENOUS_LAND: 'terras_indigenas.geojson',
}

POLYGON_TYPES = ('Polygon', 'MultiPolygon')


def regions_from_geojson(collection: dict, category: str) -> List[RegionGeometry]:
    """
    Convert a GeoJSON FeatureCollection into region geometries.

    Features without a polygonal geometry, or whose geometry cannot be
    parsed, are skipped with a warning. Feature order is preserved.

    Args:
        collection: Parsed GeoJSON document
        category: Region category tag for every feature

    Returns:
        List of RegionGeometry in feature order
    """
    if not isinstance(collection, dict) or collection.get('type') != 'FeatureCollection':
        raise ReferenceDataError(f"{category}: expected a GeoJSON FeatureCollection")

    features = collection.get('features')
    if not isinstance(features, list):
        raise ReferenceDataError(f"{category}: FeatureCollection has no feature list")

    name_fields = NAME_FIELDS.get(category, ('nome', 'name'))
    default_name = DEFAULT_NAMES.get(category, UNIDENTIFIED)

    regions = []
    skipped = 0
    for position, feature in enumerate(features):
        if not isinstance(feature, dict) or not feature.get('geometry'):
            skipped += 1
            continue

        try:
            geometry = shape(feature['geometry'])
        except (GEOSException, ValueError, TypeError, KeyError, IndexError, AttributeError) as e:
            logger.warning(f"{category} feature {position}: unreadable geometry ({e})")
            skipped += 1
            continue

        if geometry.geom_type not in POLYGON_TYPES or geometry.is_empty:
            skipped += 1
            continue

        properties = feature.get('properties') or {}
        name = next(
            (str(properties[key]).strip() for key in name_fields
             if properties.get(key) is not None and str(properties[key]).strip()),
            default_name
        )
        regions.append(RegionGeometry(
            name=name,
            category=category,
            geometry=geometry,
            properties=properties,
        ))

    if skipped:
        logger.warning(f"{category}: skipped {skipped} features without usable polygons")

    return regions


def _read_geojson(path: Path) -> dict:
    # Boundary layers converted from shapefiles are often latin-1
    try:
        return read_json(path)
    except UnicodeDecodeError:
        logger.warning(f"{path.name} is not UTF-8, reading it as latin-1")
        return read_json(path, encoding='latin-1')


class ReferenceCache:
    """
    Parsed reference collections keyed by (file path, category).

    An entry is reloaded when the file's modification time changes;
    `clear()` drops everything.
    """

    def __init__(self):
        self._entries: Dict[Tuple[str, str], Tuple[int, Tuple[RegionGeometry, ...]]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, path: Path, category: str) -> List[RegionGeometry]:
        """Load `path` as `category` regions, reusing a cached parse."""
        key = (str(path.resolve()), category)
        mtime = path.stat().st_mtime_ns

        cached = self._entries.get(key)
        if cached is not None and cached[0] == mtime:
            logger.debug(f"Reference cache hit: {path.name}")
            return list(cached[1])

        regions = tuple(regions_from_geojson(_read_geojson(path), category))
        self._entries[key] = (mtime, regions)
        return list(regions)

    def clear(self) -> None:
        self._entries.clear()
        logger.debug("Reference cache cleared")


def load_reference_collections(
    references_dir: Path,
    files: Optional[Mapping[str, str]] = None,
    cache: Optional[ReferenceCache] = None
) -> Dict[str, List[RegionGeometry]]:
    """
    Load one reference collection per configured category.

    A missing or invalid file leaves its category empty, so enrichment uses
    the fallback classifier for it.

    Args:
        references_dir: Directory holding the GeoJSON files
        files: Dict of {category: file name}, defaults to DEFAULT_REFERENCE_FILES
        cache: Optional cache shared across runs

    Returns:
        Dict of {category: regions in file order}
    """
    files = DEFAULT_REFERENCE_FILES if files is None else files
    cache = cache if cache is not None else ReferenceCache()

    logger.info(f"Loading reference geometries from {references_dir}")

    collections = {}
    for category in CATEGORIES:
        filename = files.get(category)
        if not filename:
            collections[category] = []
            continue

        path = references_dir / filename
        if not path.exists():
            logger.warning(f"  {category}: {filename} not found, using fallback classification")
            collections[category] = []
            continue

        try:
            collections[category] = cache.get(path, category)
        except (ReferenceDataError, OSError, ValueError) as e:
            logger.error(f"  {category}: failed to load {filename}: {e}")
            collections[category] = []
            continue

        logger.info(f"  {category}: {len(collections[category])} features")

    logger.debug(f"Reference cache holds {len(cache)} collections")
    return collections
