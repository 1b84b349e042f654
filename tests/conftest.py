"""Shared fixtures for FocosBR tests."""

import json
from datetime import datetime, timezone

import pytest
from shapely.geometry import box

from pipeline.enrich.region_index import RegionGeometry
from pipeline.models import DetectionRecord


@pytest.fixture
def make_region():
    """Factory for rectangular regions: (name, category, (west, south, east, north))."""
    def _make(name, category, bbox, **properties):
        west, south, east, north = bbox
        return RegionGeometry(
            name=name,
            category=category,
            geometry=box(west, south, east, north),
            properties=properties,
        )
    return _make


@pytest.fixture
def make_record():
    """Factory for detection records at a given point."""
    def _make(latitude, longitude, **fields):
        fields.setdefault('timestamp', datetime(2024, 8, 15, 14, 30, tzinfo=timezone.utc))
        return DetectionRecord(latitude=latitude, longitude=longitude, **fields)
    return _make


@pytest.fixture
def feature_collection():
    """Factory for GeoJSON FeatureCollections of rectangles."""
    def _make(*features):
        return {
            'type': 'FeatureCollection',
            'features': [
                {
                    'type': 'Feature',
                    'properties': properties,
                    'geometry': {
                        'type': 'Polygon',
                        'coordinates': [[
                            [west, south], [east, south], [east, north],
                            [west, north], [west, south],
                        ]],
                    },
                }
                for (west, south, east, north), properties in features
            ],
        }
    return _make


@pytest.fixture
def write_geojson(tmp_path):
    """Write a GeoJSON document under tmp_path/references and return its path."""
    def _write(filename, collection):
        directory = tmp_path / 'references'
        directory.mkdir(exist_ok=True)
        path = directory / filename
        path.write_text(json.dumps(collection), encoding='utf-8')
        return path
    return _write


@pytest.fixture
def sample_csv():
    return (
        "lat,lon,data,satelite,confianca,frp\n"
        "-7.53,-46.03,2024-08-15 14:30:00,AQUA_M-T,80,12.5\n"
        "-2.53,-44.28,15/08/2024 03:10:00,NOAA-20,,\n"
        "91.0,-44.0,2024-08-15 10:00:00,AQUA_M-T,60,1.0\n"
        "-10.0,-55.0,2024-08-16,,,\n"
    )
