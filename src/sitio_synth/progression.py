"""
Sitio Synthetic Data - Progression State
========================================
Hidden per-sitio ground truth that evolves year over year.

State is split into two groups:
- RatchetFields: access rates, documentation rates, income, facility flags
  and signal tier. These never decrease; every update goes through ``ratchet``.
- FreeFields: population, households and the rates allowed to wander
  (unemployment is a bounded random walk with event shocks).

``advance`` is a pure transition: it returns a new state and never touches
the one it was given.
"""

from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple
import math

from .config import DEFAULT_TIMELINE, PolicyTimeline
from .models import Classification, CommunityRecord, PriorityName
from .profiles import AreaType, LocationProfile
from .random_source import SeededRandom


# ============================================================
# CONSTANTS
# ============================================================

RATE_CAPS = {
    'electricity_rate': 0.99,
    'toilet_rate': 0.98,
    'internet_rate': 0.85,
    'water_maturity': 1.0,
    'road_maturity': 1.0,
    'national_id_rate': 0.95,
    'birth_cert_rate': 0.98,
}

UNEMPLOYMENT_FLOOR = 0.03
UNEMPLOYMENT_CEILING = 0.35
MAX_SIGNAL_TIER = 4

HOUSEHOLD_RANGES = {
    AreaType.URBAN: (60, 200),
    AreaType.SEMI_URBAN: (40, 150),
    AreaType.RURAL: (25, 100),
    AreaType.HIGHLAND: (15, 70),
}

# Starting-year draws. Keys: remote (GIDA), urban, other
BASELINE_RANGES = {
    'electricity_rate': {'remote': (0.15, 0.4), 'urban': (0.8, 0.95), 'other': (0.45, 0.75)},
    'toilet_rate': {'remote': (0.25, 0.5), 'urban': (0.75, 0.92), 'other': (0.4, 0.7)},
    'internet_rate': {'remote': (0.01, 0.08), 'urban': (0.15, 0.35), 'other': (0.05, 0.18)},
    'unemployment_rate': {'remote': (0.12, 0.25), 'urban': (0.06, 0.12), 'other': (0.08, 0.18)},
}

# Signal tier weights over tiers 0-3
SIGNAL_WEIGHTS = {
    'urban': [0.02, 0.08, 0.35, 0.55],
    'remote': [0.25, 0.35, 0.3, 0.1],
    'other': [0.1, 0.2, 0.45, 0.25],
}

FACILITY_CONSTRUCTION_CHANCE = {
    'has_health_center': 0.08,
    'has_elementary_school': 0.06,
    'has_high_school': 0.04,
}

# Facility flag -> priority whose urgent rating speeds construction
FACILITY_DEMAND_PRIORITY = {
    'has_health_center': PriorityName.HEALTH_SERVICES,
    'has_elementary_school': PriorityName.EDUCATION_SUPPORT,
    'has_high_school': PriorityName.EDUCATION_SUPPORT,
}
DEMAND_THRESHOLD = 2
DEMAND_MULTIPLIER = 1.5


# ============================================================
# STATE
# ============================================================

@dataclass(frozen=True)
class RatchetFields:
    electricity_rate: float
    toilet_rate: float
    internet_rate: float
    water_maturity: float
    road_maturity: float
    national_id_rate: float
    birth_cert_rate: float
    base_income: float
    has_health_center: bool
    has_elementary_school: bool
    has_high_school: bool
    signal_tier: int

    def __post_init__(self):
        """Chain-of-Verification: Validate constraints"""
        for name, cap in RATE_CAPS.items():
            value = getattr(self, name)
            assert 0.0 <= value <= cap, f"{name}={value} out of range [0, {cap}]"
        assert self.base_income > 0, f"Base income {self.base_income} must be positive"
        assert 0 <= self.signal_tier <= MAX_SIGNAL_TIER, f"Signal tier {self.signal_tier} out of range"


@dataclass(frozen=True)
class FreeFields:
    population: int
    households: int
    household_size: float
    growth_rate: float
    unemployment_rate: float
    farming_rate: float

    def __post_init__(self):
        """Chain-of-Verification: Validate constraints"""
        assert self.population >= 1, f"Population {self.population} must be >= 1"
        assert self.households >= 1, f"Households {self.households} must be >= 1"
        assert UNEMPLOYMENT_FLOOR <= self.unemployment_rate <= UNEMPLOYMENT_CEILING, \
            f"Unemployment {self.unemployment_rate} out of range"
        assert 0.0 <= self.farming_rate <= 1.0, f"Farming rate {self.farming_rate} out of range"


@dataclass(frozen=True)
class ProgressionState:
    ratchet: RatchetFields
    free: FreeFields

    def to_dict(self) -> dict:
        r = self.ratchet
        f = self.free
        return {
            'population': f.population,
            'households': f.households,
            'household_size': f.household_size,
            'growth_rate': f.growth_rate,
            'unemployment_rate': f.unemployment_rate,
            'farming_rate': f.farming_rate,
            'electricity_rate': r.electricity_rate,
            'toilet_rate': r.toilet_rate,
            'internet_rate': r.internet_rate,
            'water_maturity': r.water_maturity,
            'road_maturity': r.road_maturity,
            'national_id_rate': r.national_id_rate,
            'birth_cert_rate': r.birth_cert_rate,
            'base_income': r.base_income,
            'has_health_center': r.has_health_center,
            'has_elementary_school': r.has_elementary_school,
            'has_high_school': r.has_high_school,
            'signal_tier': r.signal_tier,
        }


# ============================================================
# UPDATE HELPERS
# ============================================================

def ratchet(current, proposed, cap=None):
    """Clamp ``proposed`` to ``cap`` but never below ``current``"""
    if cap is not None:
        proposed = min(cap, proposed)
    return max(current, proposed)


def headroom_step(rate: float, cap: float, step: float) -> float:
    """Increment shrinking as the rate approaches its cap"""
    if cap <= 0:
        return 0.0
    return step * math.sqrt(max(0.0, cap - rate) / cap)


def _context_key(classification: Classification, profile: LocationProfile) -> str:
    if classification.remote:
        return 'remote'
    if profile.area_type == AreaType.URBAN:
        return 'urban'
    return 'other'


def _draw_baseline(rng: SeededRandom, field_name: str, key: str) -> float:
    low, high = BASELINE_RANGES[field_name][key]
    return rng.next_float(low, high)


# ============================================================
# INITIALIZATION
# ============================================================

def initialize_state(
    rng: SeededRandom,
    profile: LocationProfile,
    classification: Classification,
) -> ProgressionState:
    """
    Starting state for the first generated year.

    Called once per sitio with the shared assembly generator. Remote sitios
    see their infrastructure scalar cut to 60%.
    """
    remote = classification.remote
    infra = profile.infrastructure_level * (0.6 if remote else 1.0)
    key = _context_key(classification, profile)

    low, high = HOUSEHOLD_RANGES[profile.area_type]
    households = rng.next_int(low, high)

    if profile.area_type == AreaType.URBAN:
        household_size = rng.gaussian_clamped(4.0, 0.5, 3.2, 5.5)
    elif classification.indigenous:
        household_size = rng.gaussian_clamped(5.5, 0.8, 4.5, 8.0)
    else:
        household_size = rng.gaussian_clamped(4.6, 0.6, 3.5, 6.5)
    population = max(1, int(round(households * household_size)))

    # Highland growth can go negative (outmigration)
    if profile.area_type == AreaType.URBAN:
        growth_rate = rng.gaussian_clamped(0.022, 0.008, 0.01, 0.04)
    elif profile.area_type == AreaType.HIGHLAND:
        growth_rate = rng.gaussian_clamped(0.008, 0.006, -0.01, 0.02)
    else:
        growth_rate = rng.gaussian_clamped(0.015, 0.007, 0.005, 0.03)

    electricity_rate = _draw_baseline(rng, 'electricity_rate', key)
    toilet_rate = _draw_baseline(rng, 'toilet_rate', key)
    internet_rate = _draw_baseline(rng, 'internet_rate', key)

    water_maturity = infra * rng.next_float(0.4, 0.7)
    road_maturity = infra * rng.next_float(0.5, 0.8)

    birth_cert_rate = rng.next_float(0.7, 0.85) if remote else rng.next_float(0.85, 0.96)
    national_id_rate = rng.next_float(0.2, 0.4) if remote else rng.next_float(0.35, 0.55)

    base_income = 500 * profile.base_income_multiplier * rng.next_float(0.85, 1.15)
    unemployment_rate = _draw_baseline(rng, 'unemployment_rate', key)
    if profile.area_type == AreaType.URBAN:
        farming_rate = rng.next_float(0.1, 0.3)
    else:
        farming_rate = rng.next_float(0.4, 0.75)

    has_health_center = rng.boolean(infra * 0.4)
    has_elementary_school = rng.boolean(infra * 0.6)
    has_high_school = rng.boolean(infra * 0.25)

    if profile.area_type == AreaType.URBAN:
        signal_weights = SIGNAL_WEIGHTS['urban']
    elif remote or profile.area_type == AreaType.HIGHLAND:
        signal_weights = SIGNAL_WEIGHTS['remote']
    else:
        signal_weights = SIGNAL_WEIGHTS['other']
    signal_tier = rng.pick_weighted([0, 1, 2, 3], signal_weights)

    return ProgressionState(
        ratchet=RatchetFields(
            electricity_rate=electricity_rate,
            toilet_rate=toilet_rate,
            internet_rate=internet_rate,
            water_maturity=water_maturity,
            road_maturity=road_maturity,
            national_id_rate=national_id_rate,
            birth_cert_rate=birth_cert_rate,
            base_income=base_income,
            has_health_center=has_health_center,
            has_elementary_school=has_elementary_school,
            has_high_school=has_high_school,
            signal_tier=signal_tier,
        ),
        free=FreeFields(
            population=population,
            households=households,
            household_size=household_size,
            growth_rate=growth_rate,
            unemployment_rate=unemployment_rate,
            farming_rate=farming_rate,
        ),
    )


# ============================================================
# YEARLY TRANSITION
# ============================================================

def shock_adjustment(year: int, timeline: PolicyTimeline) -> float:
    """Additive unemployment shock, partially reversed the following year"""
    if year == timeline.shock_year:
        return timeline.shock_unemployment_bump
    if year == timeline.shock_year + 1:
        return -timeline.shock_unemployment_bump * timeline.shock_reversal_fraction
    return 0.0


def _access_steps(
    rng: SeededRandom, state: RatchetFields, year: int, timeline: PolicyTimeline
) -> Dict[str, float]:
    """Raw yearly improvement draws before head-room scaling"""
    if state.electricity_rate < 0.9:
        electricity = rng.next_float(0.015, 0.04)
        if year >= timeline.electrification_year:
            electricity *= timeline.electrification_boost
    else:
        electricity = rng.next_float(0.005, 0.015)

    toilet = rng.next_float(0.01, 0.03)

    internet = rng.next_float(0.02, 0.05)
    if year >= timeline.pandemic_year:
        internet *= timeline.pandemic_internet_boost
    if year >= timeline.post_pandemic_year:
        internet *= timeline.post_pandemic_internet_boost

    # Water and roads move in project-sized jumps
    water = rng.next_float(0.02, 0.06) if rng.boolean(0.3) else rng.next_float(0.0, 0.015)
    road = rng.next_float(0.02, 0.05) if rng.boolean(0.25) else rng.next_float(0.0, 0.01)

    if year < timeline.national_id_rollout_year:
        national_id = rng.next_float(0.01, 0.03)
    elif year < timeline.national_id_acceleration_year:
        national_id = rng.next_float(0.03, 0.08)
    else:
        national_id = rng.next_float(0.06, 0.12)

    birth_cert = rng.next_float(0.01, 0.025)

    return {
        'electricity_rate': electricity,
        'toilet_rate': toilet,
        'internet_rate': internet,
        'water_maturity': water,
        'road_maturity': road,
        'national_id_rate': national_id,
        'birth_cert_rate': birth_cert,
    }


def _construction_chance(flag: str, record: Optional[CommunityRecord]) -> float:
    chance = FACILITY_CONSTRUCTION_CHANCE[flag]
    if record is not None and record.priority(FACILITY_DEMAND_PRIORITY[flag]) >= DEMAND_THRESHOLD:
        chance *= DEMAND_MULTIPLIER
    return chance


def advance(
    state: ProgressionState,
    record: Optional[CommunityRecord],
    rng: SeededRandom,
    year: int,
    timeline: PolicyTimeline = DEFAULT_TIMELINE,
) -> ProgressionState:
    """
    Next year's state from this year's state and synthesized record.

    Args:
        state: State the record was synthesized from
        record: This year's record; urgent health/education priorities
            raise the facility construction chance. None skips that boost.
        rng: The sitio-year generator, exclusively owned by the caller
        year: Calendar year that just finished
        timeline: Policy multipliers and event years
    """
    free = state.free
    current = state.ratchet

    # Demographics
    yearly_variance = rng.gaussian_clamped(1.0, 0.3, 0.7, 1.5)
    effective_growth = free.growth_rate * yearly_variance
    population = max(1, int(round(free.population * (1 + effective_growth))))
    household_growth = effective_growth * rng.next_float(0.7, 0.95)
    households = max(1, int(round(free.households * (1 + household_growth))))

    # Access and documentation rates
    updates = {}
    for name, step in _access_steps(rng, current, year, timeline).items():
        rate = getattr(current, name)
        cap = RATE_CAPS[name]
        updates[name] = ratchet(rate, rate + headroom_step(rate, cap, step), cap)

    income_growth = rng.next_float(0.025, 0.06)
    updates['base_income'] = ratchet(current.base_income, current.base_income * (1 + income_growth))

    # Unemployment random walk
    change = rng.gaussian_clamped(0.0, 0.015, -0.03, 0.03)
    unemployment = free.unemployment_rate + change + shock_adjustment(year, timeline)
    unemployment = max(UNEMPLOYMENT_FLOOR, min(UNEMPLOYMENT_CEILING, unemployment))

    # Facilities: once built, stay
    for flag in FACILITY_CONSTRUCTION_CHANCE:
        built = getattr(current, flag)
        if not built:
            built = rng.boolean(_construction_chance(flag, record))
        updates[flag] = ratchet(getattr(current, flag), built)

    # Mobile signal: at most one tier per year
    tier = current.signal_tier
    if tier < MAX_SIGNAL_TIER:
        upgrade_chance = 0.15 if year >= timeline.signal_upgrade_year else 0.08
        if rng.boolean(upgrade_chance):
            tier_cap = MAX_SIGNAL_TIER if year >= timeline.top_signal_year else MAX_SIGNAL_TIER - 1
            tier = ratchet(current.signal_tier, current.signal_tier + 1, tier_cap)
    updates['signal_tier'] = tier

    return ProgressionState(
        ratchet=replace(current, **updates),
        free=replace(free, population=population, households=households,
                     unemployment_rate=unemployment),
    )


def progression_pairs(state: ProgressionState) -> Tuple[Tuple[str, object], ...]:
    """Ratchet field values in a stable order, for monotonicity checks"""
    return tuple(
        (name, getattr(state.ratchet, name))
        for name in (*RATE_CAPS, 'has_health_center', 'has_elementary_school',
                     'has_high_school', 'signal_tier')
    )
