"""Tests for spatial enrichment of detections."""

from pipeline.enrich import RegionIndex, SpatialEnricher
from pipeline.models import (
    BIOME,
    CATEGORIES,
    CONSERVATION_UNIT,
    INDIGENOUS_LAND,
    MUNICIPALITY,
    SOURCE_FALLBACK,
    SOURCE_POLYGON,
    SOURCE_UNCLASSIFIED,
)


def test_biome_polygon_without_municipality_geometry(make_region, make_record):
    index = RegionIndex.build({
        MUNICIPALITY: [],
        BIOME: [make_region('Cerrado', BIOME, (-46, -4, -43, -1))],
    })
    record = make_record(-2.53, -44.28)

    enriched = SpatialEnricher(index).enrich(record)

    assert enriched.biome == 'Cerrado'
    assert enriched.municipality == 'unidentified'
    assert enriched.state == 'N/A'
    assert enriched.conservation_unit is None
    assert enriched.indigenous_land is None
    assert enriched.classification_source == {
        MUNICIPALITY: SOURCE_UNCLASSIFIED,
        BIOME: SOURCE_POLYGON,
        CONSERVATION_UNIT: SOURCE_UNCLASSIFIED,
        INDIGENOUS_LAND: SOURCE_UNCLASSIFIED,
    }


def test_municipality_polygon_sets_state_and_code(make_region, make_record):
    balsas = make_region('Balsas', MUNICIPALITY, (-46.4, -7.8, -45.7, -7.2),
                         SIGLA_UF='MA', CD_GEOCMU='2101400')
    enricher = SpatialEnricher(RegionIndex.build({MUNICIPALITY: [balsas]}))

    enriched = enricher.enrich(make_record(-7.53, -46.03))

    assert enriched.municipality == 'Balsas'
    assert enriched.state == 'MA'
    assert enriched.municipality_code == '2101400'
    assert enriched.classification_source[MUNICIPALITY] == SOURCE_POLYGON


def test_fallback_biome_when_no_geometries(make_record):
    enricher = SpatialEnricher(RegionIndex.build({}))

    enriched = enricher.enrich(make_record(-10.0, -50.0))

    assert enriched.biome == 'Cerrado'
    assert enriched.municipality == 'unidentified'
    assert enriched.state == 'N/A'
    assert enriched.classification_source[BIOME] == SOURCE_FALLBACK
    assert enriched.classification_source[MUNICIPALITY] == SOURCE_UNCLASSIFIED


def test_fallback_used_outside_every_biome_polygon(make_region, make_record):
    index = RegionIndex.build({BIOME: [make_region('Pampa', BIOME, (-57, -34, -50, -28))]})

    enriched = SpatialEnricher(index).enrich(make_record(-2.0, -60.0))

    assert enriched.biome == 'Amazônia'
    assert enriched.classification_source[BIOME] == SOURCE_FALLBACK


def test_unmatched_fallback_stays_unclassified(make_record):
    enriched = SpatialEnricher(RegionIndex.build({})).enrich(make_record(-25.0, -60.0))

    assert enriched.biome == 'unidentified'
    assert enriched.classification_source[BIOME] == SOURCE_UNCLASSIFIED


def test_protected_areas_carry_category_and_ethnicity(make_region, make_record):
    index = RegionIndex.build({
        CONSERVATION_UNIT: [make_region('PARNA Chapada das Mesas', CONSERVATION_UNIT,
                                        (-47.5, -7.5, -47.0, -7.0), CATEGORI3='Parque')],
        INDIGENOUS_LAND: [make_region('Araribóia', INDIGENOUS_LAND,
                                      (-47.5, -7.5, -47.0, -7.0), ETNIA='Guajajara')],
    })

    enriched = SpatialEnricher(index).enrich(make_record(-7.2, -47.2))

    assert enriched.conservation_unit == 'PARNA Chapada das Mesas'
    assert enriched.conservation_unit_category == 'Parque'
    assert enriched.indigenous_land == 'Araribóia'
    assert enriched.ethnicity == 'Guajajara'


def test_protected_area_without_attributes(make_region, make_record):
    index = RegionIndex.build({
        CONSERVATION_UNIT: [make_region('UC', CONSERVATION_UNIT, (-47.5, -7.5, -47.0, -7.0))],
    })

    enriched = SpatialEnricher(index).enrich(make_record(-7.2, -47.2))

    assert enriched.conservation_unit == 'UC'
    assert enriched.conservation_unit_category == 'N/A'
    assert enriched.indigenous_land is None
    assert enriched.ethnicity is None


def test_enrichment_is_idempotent_and_keeps_detection(make_region, make_record):
    index = RegionIndex.build({
        MUNICIPALITY: [make_region('Balsas', MUNICIPALITY, (-46.4, -7.8, -45.7, -7.2))],
    })
    enricher = SpatialEnricher(index)
    record = make_record(-7.53, -46.03, satellite='NOAA-20', confidence=90)

    first = enricher.enrich(record)
    second = enricher.enrich(record)

    assert first == second
    assert first.detection is record
    assert first.detection.confidence == 90


def test_lookup_errors_become_warnings(make_record, monkeypatch):
    index = RegionIndex.build({})

    def broken_locate(category, latitude, longitude):
        raise RuntimeError("index unavailable")

    monkeypatch.setattr(index, 'locate', broken_locate)

    enriched = SpatialEnricher(index).enrich(make_record(-10.0, -50.0))

    assert [w.category for w in enriched.warnings] == list(CATEGORIES)
    assert enriched.biome == 'Cerrado'
    assert enriched.classification_source[BIOME] == SOURCE_FALLBACK
