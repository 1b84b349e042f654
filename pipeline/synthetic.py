"""Synthetic example detections for demos and development.

Nothing here is used by the enrichment path: these records only stand in
for real CSV input when a run is explicitly asked to fall back to example
data.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

import numpy as np

from .models import BRAZIL_BOUNDS, Bounds, DetectionRecord
from .utils import setup_logger

logger = setup_logger(__name__)

# (latitude, longitude, weight) of representative hot spot regions
HOTSPOT_CENTERS = (
    (-3.1, -60.0, 0.15),   # Manaus
    (-1.4, -48.5, 0.12),   # Belém
    (-8.8, -63.9, 0.08),   # Porto Velho
    (-9.9, -67.8, 0.06),   # Rio Branco
    (-7.5, -46.0, 0.10),   # Balsas
    (-5.1, -42.8, 0.08),   # Timon
    (-12.2, -45.0, 0.07),  # Barreiras
    (-9.4, -40.5, 0.05),   # Petrolina
    (-12.5, -55.7, 0.09),  # Sorriso
    (-11.9, -55.5, 0.07),  # Sinop
    (-19.0, -57.7, 0.05),  # Corumbá
    (-15.8, -47.9, 0.03),  # Brasília
    (-21.2, -47.8, 0.04),  # Ribeirão Preto
    (-19.7, -47.9, 0.03),  # Uberaba
    (-25.1, -50.2, 0.02),  # Ponta Grossa
)

SATELLITES = ('NOAA-21', 'NPP-375D', 'GOES-19', 'TERRA_M-T', 'METOP-C', 'AQUA_M-T', 'NOAA-20')


def generate_example_detections(
    n: int = 5000,
    seed: int = 42,
    bounds: Bounds = BRAZIL_BOUNDS,
    now: Optional[datetime] = None,
    days: int = 90
) -> List[DetectionRecord]:
    """
    Generate example detections scattered around known fire regions.

    Args:
        n: Number of detections
        seed: Random seed
        bounds: Box every coordinate is clipped to
        now: Reference time, detections fall in the preceding `days`
        days: Time window in days

    Returns:
        List of DetectionRecord with source "synthetic"
    """
    logger.info(f"Generating {n} synthetic detections (seed={seed})")

    rng = np.random.default_rng(seed)
    now = now or datetime.now(timezone.utc)

    centers = np.array([(lat, lon) for lat, lon, _ in HOTSPOT_CENTERS])
    weights = np.array([w for _, _, w in HOTSPOT_CENTERS])
    choice = rng.choice(len(centers), size=n, p=weights / weights.sum())

    # ~100 km scatter around each center
    offsets = rng.uniform(-0.5, 0.5, size=(n, 2))
    coords = centers[choice] + offsets
    latitudes = np.clip(coords[:, 0], bounds.south, bounds.north)
    longitudes = np.clip(coords[:, 1], bounds.west, bounds.east)

    minutes_ago = rng.integers(0, days * 24 * 60, size=n)
    satellites = rng.choice(len(SATELLITES), size=n)
    confidences = rng.integers(0, 101, size=n)
    temperatures = rng.uniform(300, 450, size=n)
    powers = rng.uniform(0, 100, size=n)

    return [
        DetectionRecord(
            latitude=float(latitudes[i]),
            longitude=float(longitudes[i]),
            timestamp=(now - timedelta(minutes=int(minutes_ago[i]))).replace(microsecond=0),
            satellite=SATELLITES[satellites[i]],
            confidence=int(confidences[i]),
            temperature=float(temperatures[i]),
            radiative_power=float(powers[i]),
            source='synthetic',
            row=i + 1,
        )
        for i in range(n)
    ]
