"""
Sitio Synthetic Data - Record Components
========================================
Context-conditioned generators for the repeated parts of a yearly record:
facilities, roads, water sources, hazards, crop/livestock palettes and
sitio names.
"""

from typing import List, Set, Tuple
import math
import logging

from .models import FacilityDetails, HazardDetails, RoadDetails, WaterSourceStatus
from .name_data import (
    BACKYARD_CROP_CATEGORIES,
    CROP_OPTIONS_COMMERCIAL,
    CROP_OPTIONS_HIGHLAND,
    CROP_OPTIONS_LOWLAND,
    LAKESIDE_MUNICIPALITIES,
    LIVESTOCK_AQUACULTURE,
    LIVESTOCK_OPTIONS_COMMON,
    LIVESTOCK_OPTIONS_HIGHLAND,
    LIVESTOCK_OPTIONS_RURAL,
    SITIO_NAMES_COMMON,
    SITIO_NAMES_INDIGENOUS,
    SITIO_NAMES_NATURE,
    SITIO_PREFIXES_INDIGENOUS,
    SITIO_PREFIXES_RURAL,
    SITIO_PREFIXES_URBAN,
)
from .profiles import AreaType, LocationProfile
from .random_source import SeededRandom


logger = logging.getLogger(__name__)

CONDITIONS = [1, 2, 3, 4, 5]
CONDITION_WEIGHTS_REMOTE = [0.15, 0.25, 0.35, 0.2, 0.05]
CONDITION_WEIGHTS_DEFAULT = [0.05, 0.15, 0.35, 0.3, 0.15]
CONDITION_WEIGHTS_PAVED = [0.05, 0.1, 0.25, 0.35, 0.25]
CONDITION_WEIGHTS_UNPAVED = [0.15, 0.25, 0.35, 0.2, 0.05]

# Occurrences in the past 12 months: 0, 1, 2, 3, 4-5, 6-10
HAZARD_WEIGHTS_LOW = [0.6, 0.25, 0.1, 0.03, 0.015, 0.005]
HAZARD_WEIGHTS_MEDIUM_LOW = [0.35, 0.3, 0.2, 0.1, 0.04, 0.01]
HAZARD_WEIGHTS_MEDIUM_HIGH = [0.15, 0.25, 0.3, 0.15, 0.1, 0.05]
HAZARD_WEIGHTS_HIGH = [0.05, 0.15, 0.3, 0.25, 0.15, 0.1]

MAX_NAME_ATTEMPTS = 20


# ============================================================
# FACILITIES
# ============================================================

def _facility_condition(rng: SeededRandom, remote: bool) -> int:
    weights = CONDITION_WEIGHTS_REMOTE if remote else CONDITION_WEIGHTS_DEFAULT
    return rng.pick_weighted(CONDITIONS, weights)


def _facility_with_presence(
    rng: SeededRandom, exists: bool, population: int, remote: bool
) -> FacilityDetails:
    if exists:
        base_count = 2 if population > 800 else 1
        count = base_count + 1 if rng.boolean(0.2) else base_count
        return FacilityDetails(exists=True, count=count,
                               condition=_facility_condition(rng, remote))

    base_distance, spread = (8, 15) if remote else (3, 8)
    distance = round(base_distance + rng.next() * spread, 1)
    return FacilityDetails(exists=False, distance_to_nearest=distance)


def facility_details(
    rng: SeededRandom,
    exists_probability: float,
    population: int,
    infrastructure_level: float,
    remote: bool,
) -> FacilityDetails:
    """
    Facility whose presence is drawn fresh each year.

    The base probability is scaled by infrastructure, cut for remote sitios,
    raised for large and lowered for small populations, then kept in
    [0.05, 0.95].
    """
    probability = exists_probability * infrastructure_level
    if remote:
        probability *= 0.6
    if population > 500:
        probability *= 1.2
    if population < 150:
        probability *= 0.7
    probability = min(0.95, max(0.05, probability))

    return _facility_with_presence(rng, rng.boolean(probability), population, remote)


def facility_from_state(
    rng: SeededRandom, exists: bool, population: int, remote: bool
) -> FacilityDetails:
    """Permanent facility: presence comes from the progression flag"""
    return _facility_with_presence(rng, exists, population, remote)


# ============================================================
# ROADS & WATER
# ============================================================

def road_exists_probability(road_type: str, road_maturity: float, remote: bool) -> float:
    base = {
        'asphalt': 0.15 + road_maturity * 0.4,
        'concrete': 0.25 + road_maturity * 0.35,
        'gravel': 0.5 + road_maturity * 0.2,
        'natural': 0.7 - road_maturity * 0.3,
    }[road_type]
    if remote:
        base *= 1.3 if road_type == 'natural' else 0.5
    return min(0.95, base)


def road_details(
    rng: SeededRandom,
    road_type: str,
    road_maturity: float,
    remote: bool,
    population: int,
) -> RoadDetails:
    if not rng.boolean(road_exists_probability(road_type, road_maturity, remote)):
        return RoadDetails(exists=False)

    if road_type == 'natural':
        base_length = 0.5 + rng.next() * 2
    elif road_type == 'gravel':
        base_length = 0.3 + rng.next() * 1.5
    else:
        base_length = 0.2 + rng.next() * 1
    length = round(base_length * (1 + population / 500), 2)

    if road_type in ('asphalt', 'concrete'):
        weights = CONDITION_WEIGHTS_PAVED
    else:
        weights = CONDITION_WEIGHTS_UNPAVED
    return RoadDetails(exists=True, length_km=length, condition=rng.pick_weighted(CONDITIONS, weights))


WATER_SCALE = {'natural': 1.0, 'level1': 0.7, 'level2': 0.5, 'level3': 0.3}


def water_exists_probability(source_type: str, water_maturity: float, remote: bool) -> float:
    base = {
        'natural': 0.65,
        'level1': 0.45 + water_maturity * 0.25,
        'level2': 0.25 + water_maturity * 0.35,
        'level3': 0.1 + water_maturity * 0.45,
    }[source_type]
    if remote:
        base *= 1.2 if source_type == 'natural' else 0.5
    return min(0.9, base)


def water_source_status(
    rng: SeededRandom,
    source_type: str,
    water_maturity: float,
    remote: bool,
    households: int,
) -> WaterSourceStatus:
    if not rng.boolean(water_exists_probability(source_type, water_maturity, remote)):
        return WaterSourceStatus(exists=False)

    max_units = max(1, math.ceil(households / 30 * WATER_SCALE[source_type]))
    total = rng.next_int(1, max_units)
    functioning_ratio = min(1.0, 0.5 + water_maturity * 0.4 + rng.next() * 0.1)
    functioning = int(round(total * functioning_ratio))
    return WaterSourceStatus(
        exists=True,
        functioning_count=functioning,
        not_functioning_count=total - functioning,
    )


# ============================================================
# HAZARDS
# ============================================================

def hazard_frequency_weights(probability: float) -> List[float]:
    """Weights over frequency buckets for a hazard likelihood band"""
    if probability < 0.2:
        return HAZARD_WEIGHTS_LOW
    if probability < 0.4:
        return HAZARD_WEIGHTS_MEDIUM_LOW
    if probability < 0.6:
        return HAZARD_WEIGHTS_MEDIUM_HIGH
    return HAZARD_WEIGHTS_HIGH


def hazard_details(rng: SeededRandom, hazard: str, profile: LocationProfile) -> HazardDetails:
    weights = hazard_frequency_weights(profile.hazard_profile.get(hazard))
    buckets = [0, 1, 2, 3, rng.next_int(4, 5), rng.next_int(6, 10)]
    return HazardDetails(frequency=rng.pick_weighted(buckets, weights))


# ============================================================
# CROPS, LIVESTOCK, GARDENS
# ============================================================

def _add_unique(items: List[str], value: str) -> None:
    if value not in items:
        items.append(value)


def _primary_subset(rng: SeededRandom, palette: Tuple[str, ...]) -> List[str]:
    shuffled = rng.shuffle(palette)
    upper = min(4, len(shuffled))
    return shuffled[:rng.next_int(min(2, upper), upper)]


def select_crops(rng: SeededRandom, profile: LocationProfile) -> Tuple[str, ...]:
    crops = []
    for crop in _primary_subset(rng, profile.primary_crops):
        _add_unique(crops, crop)

    if profile.area_type == AreaType.HIGHLAND:
        if rng.boolean(0.4):
            _add_unique(crops, rng.pick(CROP_OPTIONS_HIGHLAND))
    elif rng.boolean(0.3):
        _add_unique(crops, rng.pick(CROP_OPTIONS_LOWLAND))

    if profile.area_type == AreaType.SEMI_URBAN and rng.boolean(0.3):
        _add_unique(crops, rng.pick(CROP_OPTIONS_COMMERCIAL))
    return tuple(crops)


def select_livestock(rng: SeededRandom, profile: LocationProfile) -> Tuple[str, ...]:
    livestock = []
    for animal in _primary_subset(rng, profile.primary_livestock):
        _add_unique(livestock, animal)

    for animal in LIVESTOCK_OPTIONS_COMMON:
        if rng.boolean(0.5):
            _add_unique(livestock, animal)

    if profile.area_type == AreaType.HIGHLAND and rng.boolean(0.4):
        _add_unique(livestock, rng.pick(LIVESTOCK_OPTIONS_HIGHLAND))
    if profile.area_type == AreaType.RURAL and rng.boolean(0.3):
        _add_unique(livestock, rng.pick(LIVESTOCK_OPTIONS_RURAL))
    if profile.name in LAKESIDE_MUNICIPALITIES and rng.boolean(0.5):
        _add_unique(livestock, rng.pick(LIVESTOCK_AQUACULTURE))
    return tuple(livestock)


def select_backyard_crops(
    rng: SeededRandom, profile: LocationProfile, has_gardens: bool
) -> Tuple[str, ...]:
    if not has_gardens:
        return ()
    categories = rng.shuffle(BACKYARD_CROP_CATEGORIES)
    chosen = categories[:rng.next_int(1, len(categories))]
    # Highland gardens often grow the staple crop too
    if profile.area_type == AreaType.HIGHLAND and profile.primary_crops and rng.boolean(0.3):
        _add_unique(chosen, rng.pick(profile.primary_crops))
    return tuple(chosen)


# ============================================================
# NAMES
# ============================================================

def sitio_name(
    rng: SeededRandom,
    area_type: AreaType,
    indigenous: bool,
    used_names: Set[str],
) -> str:
    """
    Prefix + name, retried with a numeric suffix on collision.

    After MAX_NAME_ATTEMPTS retries the duplicate is accepted and logged.
    ``used_names`` is updated in place.
    """
    if area_type == AreaType.URBAN:
        prefix = rng.pick(SITIO_PREFIXES_URBAN)
    elif indigenous:
        prefix = rng.pick(SITIO_PREFIXES_INDIGENOUS)
    else:
        prefix = rng.pick(SITIO_PREFIXES_RURAL)

    if indigenous and rng.boolean(0.6):
        name = rng.pick(SITIO_NAMES_INDIGENOUS)
    elif rng.boolean(0.3):
        name = rng.pick(SITIO_NAMES_NATURE)
    else:
        name = rng.pick(SITIO_NAMES_COMMON)

    # Numbered zones and phases
    if prefix == "Zone":
        name = str(rng.next_int(1, 15))
    elif prefix == "Phase":
        name = str(rng.next_int(1, 5))

    candidate = f"{prefix} {name}"
    attempts = 0
    while candidate in used_names and attempts < MAX_NAME_ATTEMPTS:
        candidate = f"{prefix} {name} {rng.next_int(1, 9)}"
        attempts += 1

    if candidate in used_names:
        logger.warning(f"Name space exhausted after {MAX_NAME_ATTEMPTS} attempts, "
                       f"reusing '{candidate}'")
    used_names.add(candidate)
    return candidate
