"""
Sitio Synthetic Data - Year Synthesizer
=======================================
Turns one year's progression state into a fully populated community record.

Cross-field guarantees:
- Gender and age bands partition the total population exactly
- Subgroup counts never exceed their parent totals
- Categorical fields are drawn with weights conditioned on context; a
  priority leans urgent exactly when the matching condition in the same
  record is deficient

The state, profile and catalog are read-only here.
"""

from typing import Dict, List, Optional, Sequence, Tuple
import math

from .components import (
    facility_details,
    facility_from_state,
    hazard_details,
    road_details,
    select_backyard_crops,
    select_crops,
    select_livestock,
    water_source_status,
)
from .config import DEFAULT_TIMELINE, PolicyTimeline
from .custom_fields import (
    CustomFieldDefinition,
    FieldContext,
    default_catalog,
    generate_custom_fields,
)
from .models import (
    HAZARD_TYPES,
    ROAD_TYPES,
    SIGNAL_TIERS,
    WATER_SOURCE_TYPES,
    AccessMode,
    Agriculture,
    BackyardGardens,
    CommunityRecord,
    Demographics,
    ElectricitySources,
    FacilityDetails,
    FoodSecurity,
    Livelihood,
    Pets,
    PriorityItem,
    PriorityName,
    RoadDetails,
    SanitationTypes,
    SitioIdentity,
    StudentsPerRoom,
    Utilities,
    VulnerableGroups,
    WaterSourceStatus,
    WorkerClass,
)
from .name_data import LAKESIDE_MUNICIPALITIES
from .profiles import AreaType, LocationProfile
from .progression import UNEMPLOYMENT_CEILING, UNEMPLOYMENT_FLOOR, ProgressionState
from .random_source import SeededRandom


ACCESS_MODES = [AccessMode.PAVED_ROAD, AccessMode.UNPAVED_ROAD, AccessMode.FOOTPATH, AccessMode.BOAT]
ROOM_OPTIONS = list(StudentsPerRoom)
FOOD_SECURITY_OPTIONS = list(FoodSecurity)
RATINGS = [0, 1, 2, 3]

YOUTH_SHARE = 0.18

# Share of workers per class: (base, +/- variance)
WORKER_DISTRIBUTION = {
    AreaType.URBAN: {
        'private_household': (0.06, 0.03),
        'private_establishment': (0.35, 0.1),
        'government': (0.18, 0.06),
        'self_employed': (0.25, 0.08),
        'employer': (0.06, 0.03),
        'ofw': (0.1, 0.05),
    },
    AreaType.SEMI_URBAN: {
        'private_household': (0.08, 0.03),
        'private_establishment': (0.25, 0.08),
        'government': (0.12, 0.05),
        'self_employed': (0.35, 0.1),
        'employer': (0.05, 0.03),
        'ofw': (0.15, 0.06),
    },
    AreaType.RURAL: {
        'private_household': (0.1, 0.04),
        'private_establishment': (0.12, 0.05),
        'government': (0.08, 0.04),
        'self_employed': (0.5, 0.12),
        'employer': (0.08, 0.04),
        'ofw': (0.12, 0.05),
    },
    AreaType.HIGHLAND: {
        'private_household': (0.05, 0.03),
        'private_establishment': (0.05, 0.03),
        'government': (0.05, 0.03),
        'self_employed': (0.7, 0.1),
        'employer': (0.1, 0.05),
        'ofw': (0.05, 0.03),
    },
}

# Rating weights over 0-3
URGENT_WEIGHTS = [0.05, 0.15, 0.35, 0.45]
PRESSING_WEIGHTS = [0.1, 0.2, 0.35, 0.35]
RELAXED_WEIGHTS = [0.4, 0.35, 0.2, 0.05]


def _round(value: float) -> int:
    return int(round(value))


# ============================================================
# SECTIONS
# ============================================================

def access_weights(
    profile: LocationProfile, remote: bool, road_maturity: float, year_offset: int
) -> List[float]:
    """Weights over paved road, unpaved road, footpath, boat"""
    if profile.name in LAKESIDE_MUNICIPALITIES:
        weights = [
            road_maturity * 0.3 + year_offset * 0.02,
            road_maturity * 0.4 + 0.2,
            0.3 - year_offset * 0.02 if remote else 0.15,
            0.15,
        ]
    elif remote:
        weights = [
            road_maturity * 0.2 + year_offset * 0.03,
            road_maturity * 0.3 + 0.15,
            0.6 - year_offset * 0.04,
            0.01,
        ]
    elif profile.area_type == AreaType.URBAN:
        weights = [0.6 + year_offset * 0.02, 0.3, 0.08, 0.02]
    else:
        weights = [
            road_maturity * 0.4 + year_offset * 0.02,
            0.35 + road_maturity * 0.2,
            0.25 - year_offset * 0.02,
            0.02,
        ]
    # Footpath weight fades out over long horizons
    return [max(0.0, w) for w in weights]


def record_unemployment_spike(year: int, timeline: PolicyTimeline) -> float:
    if year == timeline.shock_year:
        return timeline.shock_record_spike
    if year == timeline.shock_year + 1:
        return timeline.shock_record_aftershock
    return 0.0


def _demographics(
    rng: SeededRandom,
    state: ProgressionState,
    identity: SitioIdentity,
    profile: LocationProfile,
    year_offset: int,
    year: int,
    timeline: PolicyTimeline,
) -> Tuple[Demographics, VulnerableGroups]:
    classification = identity.classification
    remote = classification.remote

    households = max(1, _round(state.free.households * (1 + rng.next_float(-0.02, 0.02))))
    population = max(1, _round(state.free.population * (1 + rng.next_float(-0.015, 0.015))))

    male_share = rng.gaussian_clamped(0.504, 0.015, 0.48, 0.52)
    total_male = _round(population * male_share)
    total_female = population - total_male

    children_share = rng.gaussian_clamped(0.32 - year_offset * 0.003, 0.04, 0.2, 0.4)
    senior_share = rng.gaussian_clamped(0.065 + year_offset * 0.002, 0.015, 0.04, 0.15)
    school_age_children = _round(population * children_share)
    seniors = min(_round(population * senior_share), population - school_age_children)
    labor_force = population - school_age_children - seniors

    labor_60_to_64 = _round(seniors * rng.next_float(0.3, 0.4))

    voter_eligible = 1 - children_share * 0.6
    base_registration = 0.72 + year_offset * 0.015
    registration = min(0.95, rng.next_float(base_registration - 0.05, base_registration + 0.08))
    registered_voters = min(population, _round(population * voter_eligible * registration))

    unemployment = state.free.unemployment_rate + record_unemployment_spike(year, timeline)
    unemployment = max(UNEMPLOYMENT_FLOOR,
                       min(UNEMPLOYMENT_CEILING, unemployment + rng.next_float(-0.02, 0.02)))
    unemployed = _round(labor_force * unemployment)

    muslim_probability = 0.4 if classification.conflict else 0.15
    if rng.boolean(muslim_probability):
        muslim_count = _round(population * rng.next_float(0.05, 0.3))
    else:
        muslim_count = rng.next_int(0, math.floor(population * 0.05))

    if classification.indigenous:
        ip_count = _round(population * rng.next_float(0.6, 0.95))
    elif rng.boolean(0.2):
        ip_count = _round(population * rng.next_float(0.02, 0.15))
    else:
        ip_count = 0

    birth_cert_gap = 1 - state.ratchet.birth_cert_rate
    no_birth_cert = min(school_age_children,
                        _round(school_age_children * birth_cert_gap * rng.next_float(0.85, 1.15)))
    national_id_gap = 1 - state.ratchet.national_id_rate
    no_national_id = min(labor_force,
                         _round(labor_force * national_id_gap * rng.next_float(0.85, 1.15)))

    if remote:
        base_osy = 0.18
    elif profile.area_type == AreaType.URBAN:
        base_osy = 0.06
    else:
        base_osy = 0.1
    osy_rate = max(0.02, base_osy - year_offset * 0.008 + rng.next_float(-0.02, 0.02))
    youth_population = _round(population * YOUTH_SHARE)
    out_of_school_youth = min(youth_population, _round(youth_population * osy_rate))

    demographics = Demographics(
        total_population=population,
        total_households=households,
        total_male=total_male,
        total_female=total_female,
        school_age_children=school_age_children,
        labor_force_count=labor_force,
        seniors_count=seniors,
        youth_population=youth_population,
        registered_voters=registered_voters,
    )
    vulnerable = VulnerableGroups(
        muslim_count=muslim_count,
        ip_count=ip_count,
        labor_force_60_to_64_count=labor_60_to_64,
        unemployed_count=unemployed,
        no_birth_cert_count=no_birth_cert,
        no_national_id_count=no_national_id,
        out_of_school_youth=out_of_school_youth,
    )
    return demographics, vulnerable


def _normalize_sources(sources: Dict[str, int], electrified: int) -> Dict[str, int]:
    """Scale source counts down so they never exceed electrified households"""
    total = sum(sources.values())
    if total <= electrified:
        return sources
    return {name: math.floor(count * electrified / total) for name, count in sources.items()}


def _utilities(
    rng: SeededRandom,
    state: ProgressionState,
    households: int,
    remote: bool,
    year_offset: int,
    year: int,
    timeline: PolicyTimeline,
) -> Utilities:
    rates = state.ratchet
    with_toilet = _round(households * min(0.99, rates.toilet_rate * rng.next_float(0.95, 1.05)))
    electrified = _round(households * min(0.99, rates.electricity_rate * rng.next_float(0.95, 1.05)))

    sources = {'grid': 0, 'solar': 0, 'battery': 0, 'generator': 0}
    if electrified > 0:
        if remote:
            # Grid share expands over the years
            grid_share = min(0.6, 0.2 + year_offset * 0.04 + rng.next_float(-0.1, 0.1))
            sources['grid'] = _round(electrified * grid_share)
            sources['solar'] = _round(electrified * rng.next_float(0.15, 0.4))
            sources['battery'] = _round(electrified * rng.next_float(0.05, 0.2))
            sources['generator'] = _round(electrified * rng.next_float(0.03, 0.12))
        else:
            sources['grid'] = _round(electrified * rng.next_float(0.8, 0.95))
            if year >= timeline.solar_adoption_year and rng.boolean(0.35):
                sources['solar'] = _round(electrified * rng.next_float(0.02, 0.1))
            sources['battery'] = rng.next_int(1, 4) if rng.boolean(0.1) else 0
            sources['generator'] = rng.next_int(1, 6) if rng.boolean(0.15) else 0
    sources = _normalize_sources(sources, electrified)

    with_internet = _round(households * min(0.9, rates.internet_rate * rng.next_float(0.9, 1.1)))

    return Utilities(
        households_with_toilet=with_toilet,
        households_with_electricity=electrified,
        electricity_sources=ElectricitySources(**sources),
        mobile_signal=SIGNAL_TIERS[min(4, rates.signal_tier)],
        households_with_internet=with_internet,
    )


def _facilities(
    rng: SeededRandom,
    state: ProgressionState,
    population: int,
    muslim_count: int,
    remote: bool,
    year_offset: int,
) -> Dict[str, FacilityDetails]:
    flags = state.ratchet
    infra = flags.road_maturity * (0.7 if remote else 1.0)

    if muslim_count > 50:
        madrasah_probability = 0.6
    elif muslim_count > 20:
        madrasah_probability = 0.3
    else:
        madrasah_probability = 0.05

    # Draw order is fixed
    return {
        'health_center': facility_from_state(rng, flags.has_health_center, population, remote),
        'pharmacy': facility_details(rng, 0.3 + year_offset * 0.02, population, infra, remote),
        'community_toilet': facility_details(rng, 0.35 + year_offset * 0.02, population, infra, remote),
        'kindergarten': facility_details(rng, 0.55 + year_offset * 0.02, population, infra, remote),
        'elementary_school': facility_from_state(rng, flags.has_elementary_school, population, remote),
        'high_school': facility_from_state(rng, flags.has_high_school, population, remote),
        'madrasah': facility_details(rng, madrasah_probability, population, infra, remote),
        'market': facility_details(rng, 0.35 + year_offset * 0.015, population, infra, remote),
    }


def students_per_room_weights(
    has_elementary: bool, area_type: AreaType, remote: bool
) -> List[float]:
    if not has_elementary:
        return [0, 0, 0, 0, 1]
    if area_type == AreaType.URBAN:
        return [0.35, 0.3, 0.2, 0.12, 0.03]
    if remote:
        return [0.15, 0.2, 0.25, 0.25, 0.15]
    return [0.25, 0.28, 0.25, 0.17, 0.05]


def _sanitation(rng: SeededRandom, infra: float, remote: bool, year_offset: int) -> SanitationTypes:
    improvement = year_offset * 0.03
    water_sealed = rng.boolean(min(0.95, infra * 0.7 + 0.2 + improvement))
    if remote:
        pit_latrine = rng.boolean(max(0.2, 0.6 - improvement))
    else:
        pit_latrine = rng.boolean(max(0.1, 0.25 - improvement))
    community_cr = rng.boolean(min(0.8, infra * 0.35 + improvement))
    if remote:
        open_defecation = rng.boolean(max(0.02, 0.25 - improvement * 2))
    else:
        open_defecation = rng.boolean(max(0.01, 0.05 - improvement))

    # At least one facility type
    if not (water_sealed or pit_latrine or community_cr):
        pit_latrine = True
    return SanitationTypes(water_sealed=water_sealed, pit_latrine=pit_latrine,
                           community_cr=community_cr, open_defecation=open_defecation)


def _worker_class(rng: SeededRandom, area_type: AreaType, total_workers: int) -> WorkerClass:
    distribution = WORKER_DISTRIBUTION.get(area_type, WORKER_DISTRIBUTION[AreaType.RURAL])
    shares = {
        name: base + rng.next_float(-variance, variance)
        for name, (base, variance) in distribution.items()
    }
    share_total = sum(shares.values())
    counts = {
        name: math.floor(total_workers * max(0.0, share / share_total))
        for name, share in shares.items()
        if name != 'ofw'
    }
    # Remainder goes to OFW so classes sum to the employed count
    counts['ofw'] = max(0, total_workers - sum(counts.values()))
    return WorkerClass(**counts)


def _livelihood(
    rng: SeededRandom,
    state: ProgressionState,
    profile: LocationProfile,
    demographics: Demographics,
    vulnerable: VulnerableGroups,
    remote: bool,
    year_offset: int,
) -> Livelihood:
    area_type = profile.area_type
    households = demographics.total_households
    total_workers = demographics.labor_force_count - vulnerable.unemployed_count

    worker_class = _worker_class(rng, area_type, total_workers)
    average_daily_income = _round(state.ratchet.base_income * rng.next_float(0.85, 1.15))

    farmers = min(total_workers,
                  _round(total_workers * state.free.farming_rate * rng.next_float(0.85, 1.15)))
    agriculture = Agriculture(
        number_of_farmers=farmers,
        number_of_associations=rng.next_int(1, min(5, farmers // 25)) if farmers > 30 else 0,
        estimated_farm_area_hectares=_round(farmers * rng.next_float(0.5, 3)) if farmers > 0 else 0,
    )

    crops = select_crops(rng, profile)
    livestock = select_livestock(rng, profile)

    if area_type == AreaType.URBAN:
        pets_per_household = rng.next_float(0.3, 0.8)
    elif area_type in (AreaType.RURAL, AreaType.HIGHLAND):
        pets_per_household = rng.next_float(0.8, 2.0)
    else:
        pets_per_household = rng.next_float(0.5, 1.2)
    total_pets = _round(households * pets_per_household)
    dogs = _round(total_pets * rng.next_float(0.5, 0.7))
    cats = total_pets - dogs

    if area_type == AreaType.URBAN:
        base_vaccination = rng.next_float(0.4, 0.7)
    elif remote:
        base_vaccination = rng.next_float(0.1, 0.3)
    else:
        base_vaccination = rng.next_float(0.2, 0.5)
    vaccination = min(0.9, base_vaccination + year_offset * 0.03)
    pets = Pets(
        cats_count=cats,
        dogs_count=dogs,
        vaccinated_cats=min(cats, _round(cats * vaccination * rng.next_float(0.8, 1.1))),
        vaccinated_dogs=min(dogs, _round(dogs * vaccination * rng.next_float(0.9, 1.1))),
    )

    if area_type == AreaType.URBAN:
        garden_share = rng.next_float(0.15, 0.35)
    elif area_type in (AreaType.RURAL, AreaType.HIGHLAND):
        garden_share = rng.next_float(0.5, 0.8)
    else:
        garden_share = rng.next_float(0.3, 0.5)
    with_gardens = min(households, _round(households * garden_share))
    backyard = BackyardGardens(
        households_with_gardens=with_gardens,
        common_crops=select_backyard_crops(rng, profile, with_gardens > 0),
    )

    return Livelihood(
        worker_class=worker_class,
        average_daily_income=average_daily_income,
        agriculture=agriculture,
        crops=crops,
        livestock=livestock,
        pets=pets,
        backyard_gardens=backyard,
    )


def food_security_weights(average_daily_income: int, remote: bool) -> List[float]:
    if average_daily_income > 500 and not remote:
        return [0.7, 0.25, 0.05]
    if remote or average_daily_income < 300:
        return [0.25, 0.45, 0.3]
    return [0.5, 0.4, 0.1]


def priority_weights(
    name: PriorityName,
    *,
    remote: bool,
    main_access: AccessMode,
    demographics: Demographics,
    vulnerable: VulnerableGroups,
    utilities: Utilities,
    facilities: Dict[str, FacilityDetails],
    roads: Dict[str, RoadDetails],
    water_sources: Dict[str, WaterSourceStatus],
    farmers: int,
) -> List[float]:
    """Rating weights for one priority given the same record's conditions"""
    households = demographics.total_households

    if name == PriorityName.WATER_SYSTEM:
        if not water_sources['level2'].exists and not water_sources['level3'].exists:
            return URGENT_WEIGHTS
        return [0.35, 0.35, 0.2, 0.1]

    if name == PriorityName.COMMUNITY_CR:
        if utilities.households_with_toilet / households < 0.5:
            return [0.05, 0.2, 0.35, 0.4]
        return RELAXED_WEIGHTS

    if name == PriorityName.SOLAR_STREET_LIGHTS:
        if remote or utilities.households_with_electricity / households < 0.5:
            return PRESSING_WEIGHTS
        return [0.35, 0.35, 0.25, 0.05]

    if name == PriorityName.ROAD_OPENING:
        if main_access not in (AccessMode.PAVED_ROAD, AccessMode.UNPAVED_ROAD):
            return URGENT_WEIGHTS
        if not roads['asphalt'].exists and not roads['concrete'].exists:
            return [0.1, 0.25, 0.35, 0.3]
        return RELAXED_WEIGHTS

    if name == PriorityName.FARM_TOOLS:
        total_workers = demographics.labor_force_count - vulnerable.unemployed_count
        if farmers > total_workers * 0.3:
            return [0.15, 0.25, 0.35, 0.25]
        if farmers > 0:
            return [0.3, 0.35, 0.25, 0.1]
        return [0.6, 0.25, 0.1, 0.05]

    if name == PriorityName.HEALTH_SERVICES:
        health = facilities['health_center']
        if not health.exists:
            distance = health.distance_to_nearest if health.distance_to_nearest is not None else 5
            if distance > 10:
                return URGENT_WEIGHTS
            return [0.15, 0.3, 0.35, 0.2]
        return RELAXED_WEIGHTS

    if name == PriorityName.EDUCATION_SUPPORT:
        if (vulnerable.out_of_school_youth > demographics.youth_population * 0.1
                or not facilities['elementary_school'].exists):
            return PRESSING_WEIGHTS
        return [0.35, 0.35, 0.25, 0.05]

    return [0.25, 0.35, 0.25, 0.15]


def average_need_score(priorities: Tuple[PriorityItem, ...]) -> float:
    return round(sum(p.rating for p in priorities) / len(priorities), 2)


# ============================================================
# MAIN ENTRY
# ============================================================

def synthesize_year(
    state: ProgressionState,
    profile: LocationProfile,
    identity: SitioIdentity,
    rng: SeededRandom,
    year_offset: int,
    year: int,
    timeline: PolicyTimeline = DEFAULT_TIMELINE,
    catalog: Optional[Sequence[CustomFieldDefinition]] = None,
) -> CommunityRecord:
    """
    Synthesize one sitio-year record.

    Args:
        state: Progression state for this year
        profile: Location profile of the sitio's municipality
        identity: Fixed identity and classification
        rng: Generator owned by this sitio-year
        year_offset: Years since the first generated year
        year: Calendar year
        timeline: Policy event years
        catalog: Custom field definitions; None uses the packaged catalog
    """
    if catalog is None:
        catalog = default_catalog()
    remote = identity.classification.remote
    rates = state.ratchet

    # A. Access
    main_access = rng.pick_weighted(
        ACCESS_MODES, access_weights(profile, remote, rates.road_maturity, year_offset)
    )

    # B. Demographics
    demographics, vulnerable = _demographics(
        rng, state, identity, profile, year_offset, year, timeline
    )
    population = demographics.total_population
    households = demographics.total_households

    # C. Utilities
    utilities = _utilities(rng, state, households, remote, year_offset, year, timeline)

    # D. Facilities
    facilities = _facilities(rng, state, population, vulnerable.muslim_count, remote, year_offset)

    # E. Roads
    roads = {
        road_type: road_details(rng, road_type, rates.road_maturity, remote, population)
        for road_type in ROAD_TYPES
    }

    # F. Education
    students_per_room = rng.pick_weighted(
        ROOM_OPTIONS,
        students_per_room_weights(facilities['elementary_school'].exists, profile.area_type, remote),
    )

    # G. Water & sanitation
    water_sources = {
        source_type: water_source_status(rng, source_type, rates.water_maturity, remote, households)
        for source_type in WATER_SOURCE_TYPES
    }
    sanitation = _sanitation(rng, rates.road_maturity * (0.7 if remote else 1.0), remote, year_offset)

    # H. Livelihood
    livelihood = _livelihood(rng, state, profile, demographics, vulnerable, remote, year_offset)

    # I. Hazards & food security
    hazards = {hazard: hazard_details(rng, hazard, profile) for hazard in HAZARD_TYPES}
    food_security = rng.pick_weighted(
        FOOD_SECURITY_OPTIONS,
        food_security_weights(livelihood.average_daily_income, remote),
    )

    # J. Priorities
    priorities = tuple(
        PriorityItem(
            name=name,
            rating=rng.pick_weighted(RATINGS, priority_weights(
                name,
                remote=remote,
                main_access=main_access,
                demographics=demographics,
                vulnerable=vulnerable,
                utilities=utilities,
                facilities=facilities,
                roads=roads,
                water_sources=water_sources,
                farmers=livelihood.agriculture.number_of_farmers,
            )),
        )
        for name in PriorityName
    )

    # K. Custom fields
    context = FieldContext(
        year=year,
        population=population,
        households=households,
        remote=remote,
        indigenous=identity.classification.indigenous,
        conflict=identity.classification.conflict,
        urban=profile.area_type == AreaType.URBAN,
        tracking_year=timeline.assembly_tracking_year,
    )
    custom_fields = generate_custom_fields(rng, catalog, context)

    return CommunityRecord(
        year=year,
        municipality=identity.municipality,
        barangay=identity.barangay,
        sitio_name=identity.sitio_name,
        sitio_code=identity.sitio_code,
        latitude=identity.latitude,
        longitude=identity.longitude,
        classification=identity.classification,
        main_access=main_access,
        demographics=demographics,
        vulnerable_groups=vulnerable,
        utilities=utilities,
        facilities=facilities,
        infrastructure=roads,
        students_per_room=students_per_room,
        water_sources=water_sources,
        sanitation_types=sanitation,
        livelihood=livelihood,
        hazards=hazards,
        food_security=food_security,
        priorities=priorities,
        average_need_score=average_need_score(priorities),
        custom_fields=custom_fields,
    )
