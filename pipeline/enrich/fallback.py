"""Coordinate-range region estimates for categories without boundary data.

These are coarse approximations: biome bands only. Labels produced here are
marked with a "fallback" classification source on the enriched record.
"""

from typing import Callable, Optional, Tuple

from ..models import BIOME, MUNICIPALITY, UNIDENTIFIED

# (label, rule) evaluated in order; first match wins
BIOME_RULES: Tuple[Tuple[str, Callable[[float, float], bool]], ...] = (
    ('Amazônia', lambda lat, lon: lat > -5 and lon < -55),
    ('Cerrado', lambda lat, lon: -20 < lat < -5 and -60 < lon < -40),
    ('Caatinga', lambda lat, lon: -15 < lat < -3 and -45 < lon < -35),
    ('Mata Atlântica', lambda lat, lon: -50 < lon < -35),
    ('Pantanal', lambda lat, lon: -22 < lat < -15 and -60 < lon < -55),
    ('Pampas', lambda lat, lon: lat < -28),
)


def estimate_biome(latitude: float, longitude: float) -> str:
    """Estimate the biome of a point from the fixed coordinate bands."""
    for label, rule in BIOME_RULES:
        if rule(latitude, longitude):
            return label
    return UNIDENTIFIED


class FallbackClassifier:
    """Heuristic labels per category, used when a category has no geometry."""

    _ESTIMATORS = {
        BIOME: estimate_biome,
        # No coordinate heuristic exists for thousands of municipalities
        MUNICIPALITY: lambda latitude, longitude: UNIDENTIFIED,
    }

    def supports(self, category: str) -> bool:
        return category in self._ESTIMATORS

    def estimate(self, category: str, latitude: float, longitude: float) -> Optional[str]:
        """
        Estimate a label for a point.

        Returns:
            Label, UNIDENTIFIED when no rule matches, or None for categories
            without any heuristic (conservation units, indigenous lands)
        """
        estimator = self._ESTIMATORS.get(category)
        if estimator is None:
            return None
        return estimator(latitude, longitude)
