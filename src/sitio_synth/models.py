"""
Sitio Synthetic Data - Data Models & Schemas
============================================
Dataclass models for sitio entities and their yearly community records.
Implements Chain-of-Verification through constructor constraints.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple
import logging

import pandas as pd


logger = logging.getLogger(__name__)


# ============================================================
# ENUMERATIONS - Constrained categorical values
# ============================================================

class MobileSignal(str, Enum):
    NONE = "none"
    G2 = "2g"
    G3 = "3g"
    G4 = "4g"
    G5 = "5g"


# Index = signal tier (0-4)
SIGNAL_TIERS = [MobileSignal.NONE, MobileSignal.G2, MobileSignal.G3,
                MobileSignal.G4, MobileSignal.G5]


class AccessMode(str, Enum):
    PAVED_ROAD = "paved_road"
    UNPAVED_ROAD = "unpaved_road"
    FOOTPATH = "footpath"
    BOAT = "boat"


class StudentsPerRoom(str, Enum):
    LESS_THAN_46 = "less_than_46"
    FROM_46_TO_50 = "46_50"
    FROM_51_TO_55 = "51_55"
    MORE_THAN_56 = "more_than_56"
    NO_CLASSROOM = "no_classroom"


class FoodSecurity(str, Enum):
    SECURE = "secure"
    SEASONAL_SCARCITY = "seasonal_scarcity"
    CRITICAL_SHORTAGE = "critical_shortage"


class PriorityName(str, Enum):
    WATER_SYSTEM = "water_system"
    COMMUNITY_CR = "community_cr"
    SOLAR_STREET_LIGHTS = "solar_street_lights"
    ROAD_OPENING = "road_opening"
    FARM_TOOLS = "farm_tools"
    HEALTH_SERVICES = "health_services"
    EDUCATION_SUPPORT = "education_support"


FACILITY_NAMES = ["health_center", "pharmacy", "community_toilet", "kindergarten",
                  "elementary_school", "high_school", "madrasah", "market"]
ROAD_TYPES = ["asphalt", "concrete", "gravel", "natural"]
WATER_SOURCE_TYPES = ["natural", "level1", "level2", "level3"]
HAZARD_TYPES = ["flood", "landslide", "drought", "earthquake"]


# ============================================================
# RECORD SECTIONS - With validation
# ============================================================

@dataclass(frozen=True)
class Classification:
    """Fixed for an entity's lifetime. remote = GIDA"""
    remote: bool = False
    indigenous: bool = False
    conflict: bool = False

    def to_dict(self) -> dict:
        return {'remote': self.remote, 'indigenous': self.indigenous, 'conflict': self.conflict}


@dataclass(frozen=True)
class SitioIdentity:
    """Fixed per-sitio fields copied into every yearly record"""
    municipality: str
    barangay: str
    sitio_name: str
    sitio_code: str
    latitude: float
    longitude: float
    classification: Classification


@dataclass(frozen=True)
class FacilityDetails:
    exists: bool
    count: Optional[int] = None
    condition: Optional[int] = None  # 1 (poor) - 5 (excellent)
    distance_to_nearest: Optional[float] = None  # km, when absent

    def __post_init__(self):
        if self.exists:
            assert self.count is not None and self.count >= 1, "Existing facility needs count >= 1"
            assert self.condition in (1, 2, 3, 4, 5), f"Condition {self.condition} out of range [1, 5]"
        else:
            assert self.distance_to_nearest is None or self.distance_to_nearest >= 0, \
                "Distance must be non-negative"

    def to_dict(self) -> dict:
        if self.exists:
            return {'exists': True, 'count': self.count, 'condition': self.condition}
        return {'exists': False, 'distance_to_nearest': self.distance_to_nearest}


@dataclass(frozen=True)
class RoadDetails:
    exists: bool
    length_km: Optional[float] = None
    condition: Optional[int] = None

    def __post_init__(self):
        if self.exists:
            assert self.length_km is not None and self.length_km >= 0, "Road length must be >= 0"
            assert self.condition in (1, 2, 3, 4, 5), f"Condition {self.condition} out of range [1, 5]"

    def to_dict(self) -> dict:
        if self.exists:
            return {'exists': True, 'length_km': self.length_km, 'condition': self.condition}
        return {'exists': False}


@dataclass(frozen=True)
class WaterSourceStatus:
    exists: bool
    functioning_count: int = 0
    not_functioning_count: int = 0

    def __post_init__(self):
        assert self.functioning_count >= 0 and self.not_functioning_count >= 0, \
            "Water source counts must be non-negative"
        if not self.exists:
            assert self.total == 0, "Absent water source cannot have units"

    @property
    def total(self) -> int:
        return self.functioning_count + self.not_functioning_count

    def to_dict(self) -> dict:
        if self.exists:
            return {'exists': True, 'functioning_count': self.functioning_count,
                    'not_functioning_count': self.not_functioning_count}
        return {'exists': False}


@dataclass(frozen=True)
class HazardDetails:
    frequency: int  # occurrences in the past 12 months

    def __post_init__(self):
        assert 0 <= self.frequency <= 10, f"Hazard frequency {self.frequency} out of range [0, 10]"


@dataclass(frozen=True)
class Demographics:
    """
    Population counts. Gender and age bands each partition the total.
    """
    total_population: int
    total_households: int
    total_male: int
    total_female: int
    school_age_children: int
    labor_force_count: int
    seniors_count: int
    youth_population: int
    registered_voters: int

    def __post_init__(self):
        """Chain-of-Verification: Validate constraints"""
        assert self.total_population >= 0 and self.total_households >= 0, "Negative totals"
        assert self.total_male + self.total_female == self.total_population, \
            f"Male ({self.total_male}) + Female ({self.total_female}) != Total ({self.total_population})"
        age_total = self.school_age_children + self.labor_force_count + self.seniors_count
        assert age_total == self.total_population, \
            f"Age bands sum to {age_total}, but Total is {self.total_population}"
        assert min(self.total_male, self.total_female, self.school_age_children,
                   self.labor_force_count, self.seniors_count) >= 0, "Negative subgroup count"
        assert 0 <= self.youth_population <= self.total_population, "Youth exceeds population"
        assert 0 <= self.registered_voters <= self.total_population, "Voters exceed population"


@dataclass(frozen=True)
class VulnerableGroups:
    muslim_count: int
    ip_count: int
    labor_force_60_to_64_count: int
    unemployed_count: int
    no_birth_cert_count: int
    no_national_id_count: int
    out_of_school_youth: int

    def __post_init__(self):
        assert min(self.muslim_count, self.ip_count, self.labor_force_60_to_64_count,
                   self.unemployed_count, self.no_birth_cert_count,
                   self.no_national_id_count, self.out_of_school_youth) >= 0, \
            "Negative vulnerable group count"


@dataclass(frozen=True)
class ElectricitySources:
    grid: int = 0
    solar: int = 0
    battery: int = 0
    generator: int = 0

    @property
    def total(self) -> int:
        return self.grid + self.solar + self.battery + self.generator


@dataclass(frozen=True)
class Utilities:
    households_with_toilet: int
    households_with_electricity: int
    electricity_sources: ElectricitySources
    mobile_signal: MobileSignal
    households_with_internet: int

    def __post_init__(self):
        assert self.electricity_sources.total <= self.households_with_electricity, \
            (f"Electricity sources ({self.electricity_sources.total}) exceed electrified "
             f"households ({self.households_with_electricity})")


@dataclass(frozen=True)
class SanitationTypes:
    water_sealed: bool = False
    pit_latrine: bool = False
    community_cr: bool = False
    open_defecation: bool = False


@dataclass(frozen=True)
class WorkerClass:
    private_household: int = 0
    private_establishment: int = 0
    government: int = 0
    self_employed: int = 0
    employer: int = 0
    ofw: int = 0

    def __post_init__(self):
        assert min(self.private_household, self.private_establishment, self.government,
                   self.self_employed, self.employer, self.ofw) >= 0, "Negative worker count"

    @property
    def total(self) -> int:
        return (self.private_household + self.private_establishment + self.government
                + self.self_employed + self.employer + self.ofw)


@dataclass(frozen=True)
class Agriculture:
    number_of_farmers: int = 0
    number_of_associations: int = 0
    estimated_farm_area_hectares: int = 0


@dataclass(frozen=True)
class Pets:
    cats_count: int = 0
    dogs_count: int = 0
    vaccinated_cats: int = 0
    vaccinated_dogs: int = 0

    def __post_init__(self):
        assert 0 <= self.vaccinated_cats <= self.cats_count, "Vaccinated cats exceed cats"
        assert 0 <= self.vaccinated_dogs <= self.dogs_count, "Vaccinated dogs exceed dogs"


@dataclass(frozen=True)
class BackyardGardens:
    households_with_gardens: int = 0
    common_crops: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Livelihood:
    worker_class: WorkerClass
    average_daily_income: int
    agriculture: Agriculture
    crops: Tuple[str, ...]
    livestock: Tuple[str, ...]
    pets: Pets
    backyard_gardens: BackyardGardens


@dataclass(frozen=True)
class PriorityItem:
    name: PriorityName
    rating: int  # 0 (not needed) - 3 (urgent)

    def __post_init__(self):
        assert self.rating in (0, 1, 2, 3), f"Priority rating {self.rating} out of range [0, 3]"


# ============================================================
# COMMUNITY RECORD - One sitio, one year
# ============================================================

@dataclass(frozen=True)
class CommunityRecord:
    """
    Table B: Sitio-Year Record
    One fully populated snapshot per sitio per year
    """
    year: int
    municipality: str
    barangay: str
    sitio_name: str
    sitio_code: str
    latitude: float
    longitude: float
    classification: Classification
    main_access: AccessMode
    demographics: Demographics
    vulnerable_groups: VulnerableGroups
    utilities: Utilities
    facilities: Mapping[str, FacilityDetails]
    infrastructure: Mapping[str, RoadDetails]
    students_per_room: StudentsPerRoom
    water_sources: Mapping[str, WaterSourceStatus]
    sanitation_types: SanitationTypes
    livelihood: Livelihood
    hazards: Mapping[str, HazardDetails]
    food_security: FoodSecurity
    priorities: Tuple[PriorityItem, ...]
    average_need_score: float
    custom_fields: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self):
        """Chain-of-Verification: cross-section constraints"""
        # Sections are read-only views over private copies
        for name in ("facilities", "infrastructure", "water_sources", "hazards"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))
        object.__setattr__(self, "custom_fields", MappingProxyType({
            k: tuple(v) if isinstance(v, list) else v for k, v in self.custom_fields.items()
        }))

        demo = self.demographics
        vg = self.vulnerable_groups
        util = self.utilities
        households = demo.total_households

        assert vg.labor_force_60_to_64_count <= demo.seniors_count, "60-64 exceed seniors"
        assert vg.unemployed_count <= demo.labor_force_count, "Unemployed exceed labor force"
        assert vg.no_birth_cert_count <= demo.school_age_children, "Birth cert gap exceeds children"
        assert vg.no_national_id_count <= demo.labor_force_count, "National ID gap exceeds labor force"
        assert vg.out_of_school_youth <= demo.youth_population, "OSY exceed youth"
        assert vg.muslim_count <= demo.total_population, "Muslim count exceeds population"
        assert vg.ip_count <= demo.total_population, "IP count exceeds population"
        for name in ("households_with_toilet", "households_with_electricity",
                     "households_with_internet"):
            value = getattr(util, name)
            assert 0 <= value <= households, f"{name} ({value}) exceeds households ({households})"
        assert self.livelihood.backyard_gardens.households_with_gardens <= households, \
            "Gardens exceed households"
        assert self.livelihood.worker_class.total == demo.labor_force_count - vg.unemployed_count, \
            "Worker classes do not sum to employed labor force"
        assert self.livelihood.agriculture.number_of_farmers <= self.livelihood.worker_class.total, \
            "Farmers exceed workers"
        assert len(self.priorities) == len(PriorityName), "Incomplete priority catalog"

    def priority(self, name: PriorityName) -> int:
        for item in self.priorities:
            if item.name == name:
                return item.rating
        raise KeyError(name)

    def to_dict(self) -> dict:
        demo = self.demographics
        vg = self.vulnerable_groups
        util = self.utilities
        lh = self.livelihood
        return {
            'year': self.year,
            'municipality': self.municipality,
            'barangay': self.barangay,
            'sitio_name': self.sitio_name,
            'sitio_code': self.sitio_code,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'classification': self.classification.to_dict(),
            'main_access': {mode.value: mode == self.main_access for mode in AccessMode},
            'total_population': demo.total_population,
            'total_households': demo.total_households,
            'registered_voters': demo.registered_voters,
            'labor_force_count': demo.labor_force_count,
            'school_age_children': demo.school_age_children,
            'population': {'total_male': demo.total_male, 'total_female': demo.total_female},
            'vulnerable_groups': {
                'muslim_count': vg.muslim_count,
                'ip_count': vg.ip_count,
                'seniors_count': demo.seniors_count,
                'labor_force_60_to_64_count': vg.labor_force_60_to_64_count,
                'unemployed_count': vg.unemployed_count,
                'no_birth_cert_count': vg.no_birth_cert_count,
                'no_national_id_count': vg.no_national_id_count,
                'out_of_school_youth': vg.out_of_school_youth,
            },
            'households_with_toilet': util.households_with_toilet,
            'households_with_electricity': util.households_with_electricity,
            'electricity_sources': {
                'grid': util.electricity_sources.grid,
                'solar': util.electricity_sources.solar,
                'battery': util.electricity_sources.battery,
                'generator': util.electricity_sources.generator,
            },
            'mobile_signal': util.mobile_signal.value,
            'households_with_internet': util.households_with_internet,
            'facilities': {k: v.to_dict() for k, v in self.facilities.items()},
            'infrastructure': {k: v.to_dict() for k, v in self.infrastructure.items()},
            'students_per_room': self.students_per_room.value,
            'water_sources': {k: v.to_dict() for k, v in self.water_sources.items()},
            'sanitation_types': {
                'water_sealed': self.sanitation_types.water_sealed,
                'pit_latrine': self.sanitation_types.pit_latrine,
                'community_cr': self.sanitation_types.community_cr,
                'open_defecation': self.sanitation_types.open_defecation,
            },
            'worker_class': {
                'private_household': lh.worker_class.private_household,
                'private_establishment': lh.worker_class.private_establishment,
                'government': lh.worker_class.government,
                'self_employed': lh.worker_class.self_employed,
                'employer': lh.worker_class.employer,
                'ofw': lh.worker_class.ofw,
            },
            'average_daily_income': lh.average_daily_income,
            'agriculture': {
                'number_of_farmers': lh.agriculture.number_of_farmers,
                'number_of_associations': lh.agriculture.number_of_associations,
                'estimated_farm_area_hectares': lh.agriculture.estimated_farm_area_hectares,
            },
            'crops': list(lh.crops),
            'livestock': list(lh.livestock),
            'pets': {
                'cats_count': lh.pets.cats_count,
                'dogs_count': lh.pets.dogs_count,
                'vaccinated_cats': lh.pets.vaccinated_cats,
                'vaccinated_dogs': lh.pets.vaccinated_dogs,
            },
            'backyard_gardens': {
                'households_with_gardens': lh.backyard_gardens.households_with_gardens,
                'common_crops': list(lh.backyard_gardens.common_crops),
            },
            'hazards': {k: {'frequency': v.frequency} for k, v in self.hazards.items()},
            'food_security': self.food_security.value,
            'priorities': [{'name': p.name.value, 'rating': p.rating} for p in self.priorities],
            'average_need_score': self.average_need_score,
            'custom_fields': {
                k: list(v) if isinstance(v, tuple) else v for k, v in self.custom_fields.items()
            },
        }

    def to_row(self) -> dict:
        """Flat row for the sitio-year table"""
        demo = self.demographics
        vg = self.vulnerable_groups
        util = self.utilities
        lh = self.livelihood
        row = {
            'year': self.year,
            'sitio_name': self.sitio_name,
            'sitio_code': self.sitio_code,
            'main_access': self.main_access.value,
            'total_population': demo.total_population,
            'total_households': demo.total_households,
            'total_male': demo.total_male,
            'total_female': demo.total_female,
            'school_age_children': demo.school_age_children,
            'labor_force_count': demo.labor_force_count,
            'seniors_count': demo.seniors_count,
            'youth_population': demo.youth_population,
            'registered_voters': demo.registered_voters,
            'muslim_count': vg.muslim_count,
            'ip_count': vg.ip_count,
            'labor_force_60_to_64_count': vg.labor_force_60_to_64_count,
            'unemployed_count': vg.unemployed_count,
            'no_birth_cert_count': vg.no_birth_cert_count,
            'no_national_id_count': vg.no_national_id_count,
            'out_of_school_youth': vg.out_of_school_youth,
            'households_with_toilet': util.households_with_toilet,
            'households_with_electricity': util.households_with_electricity,
            'electricity_grid': util.electricity_sources.grid,
            'electricity_solar': util.electricity_sources.solar,
            'electricity_battery': util.electricity_sources.battery,
            'electricity_generator': util.electricity_sources.generator,
            'mobile_signal': util.mobile_signal.value,
            'households_with_internet': util.households_with_internet,
            'students_per_room': self.students_per_room.value,
            'employed_count': lh.worker_class.total,
            'average_daily_income': lh.average_daily_income,
            'number_of_farmers': lh.agriculture.number_of_farmers,
            'cats_count': lh.pets.cats_count,
            'dogs_count': lh.pets.dogs_count,
            'vaccinated_cats': lh.pets.vaccinated_cats,
            'vaccinated_dogs': lh.pets.vaccinated_dogs,
            'households_with_gardens': lh.backyard_gardens.households_with_gardens,
            'food_security': self.food_security.value,
            'average_need_score': self.average_need_score,
        }
        for name in FACILITY_NAMES:
            row[f'has_{name}'] = self.facilities[name].exists
        for name in HAZARD_TYPES:
            row[f'{name}_frequency'] = self.hazards[name].frequency
        for item in self.priorities:
            row[f'priority_{item.name.value}'] = item.rating
        return row


# ============================================================
# ENTITY - One sitio across all generated years
# ============================================================

@dataclass
class SitioEntity:
    """
    Table A: Sitio Master Record
    One row per synthetic sitio; yearly_data holds its records by year
    """
    sitio_id: int
    municipality: str
    barangay: str
    sitio_name: str
    coding: str
    latitude: float
    longitude: float
    classification: Classification
    yearly_data: Dict[int, CommunityRecord] = field(default_factory=dict)
    available_years: List[int] = field(default_factory=list)
    progression: Dict[int, Any] = field(default_factory=dict)

    def __post_init__(self):
        assert self.sitio_id >= 1, f"Sitio id {self.sitio_id} must be >= 1"
        assert -90 <= self.latitude <= 90 and -180 <= self.longitude <= 180, "Invalid coordinates"

    def record_for(self, year: int) -> CommunityRecord:
        return self.yearly_data[year]

    def latest(self) -> CommunityRecord:
        return self.yearly_data[self.available_years[-1]]

    def to_dict(self) -> dict:
        return {
            'id': self.sitio_id,
            'municipality': self.municipality,
            'barangay': self.barangay,
            'sitio_name': self.sitio_name,
            'coding': self.coding,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'classification': self.classification.to_dict(),
            'yearly_data': {str(y): r.to_dict() for y, r in self.yearly_data.items()},
            'available_years': list(self.available_years),
        }


# ============================================================
# SCHEMA DEFINITIONS - For DataFrame validation
# ============================================================

ENTITY_SCHEMA = {
    'sitio_id': 'int32',
    'municipality': 'category',
    'barangay': 'category',
    'sitio_name': 'string',
    'coding': 'string',
    'latitude': 'float64',
    'longitude': 'float64',
    'remote': 'bool',
    'indigenous': 'bool',
    'conflict': 'bool',
    'first_year': 'int32',
    'last_year': 'int32',
}

COMMUNITY_YEAR_SCHEMA = {
    'sitio_id': 'int32',
    'year': 'int32',
    'sitio_name': 'string',
    'sitio_code': 'string',
    'main_access': 'category',
    'total_population': 'int32',
    'total_households': 'int32',
    'total_male': 'int32',
    'total_female': 'int32',
    'school_age_children': 'int32',
    'labor_force_count': 'int32',
    'seniors_count': 'int32',
    'youth_population': 'int32',
    'registered_voters': 'int32',
    'muslim_count': 'int32',
    'ip_count': 'int32',
    'labor_force_60_to_64_count': 'int32',
    'unemployed_count': 'int32',
    'no_birth_cert_count': 'int32',
    'no_national_id_count': 'int32',
    'out_of_school_youth': 'int32',
    'households_with_toilet': 'int32',
    'households_with_electricity': 'int32',
    'electricity_grid': 'int32',
    'electricity_solar': 'int32',
    'electricity_battery': 'int32',
    'electricity_generator': 'int32',
    'mobile_signal': 'category',
    'households_with_internet': 'int32',
    'students_per_room': 'category',
    'employed_count': 'int32',
    'average_daily_income': 'int32',
    'number_of_farmers': 'int32',
    'cats_count': 'int32',
    'dogs_count': 'int32',
    'vaccinated_cats': 'int32',
    'vaccinated_dogs': 'int32',
    'households_with_gardens': 'int32',
    'food_security': 'category',
    'average_need_score': 'float32',
    **{f'has_{name}': 'bool' for name in FACILITY_NAMES},
    **{f'{name}_frequency': 'int8' for name in HAZARD_TYPES},
    **{f'priority_{p.value}': 'int8' for p in PriorityName},
}

PROGRESSION_SCHEMA = {
    'sitio_id': 'int32',
    'year': 'int32',
    'population': 'int32',
    'households': 'int32',
    'household_size': 'float32',
    'growth_rate': 'float32',
    'unemployment_rate': 'float32',
    'farming_rate': 'float32',
    'electricity_rate': 'float64',
    'toilet_rate': 'float64',
    'internet_rate': 'float64',
    'water_maturity': 'float64',
    'road_maturity': 'float64',
    'national_id_rate': 'float64',
    'birth_cert_rate': 'float64',
    'base_income': 'float64',
    'has_health_center': 'bool',
    'has_elementary_school': 'bool',
    'has_high_school': 'bool',
    'signal_tier': 'int8',
}


def validate_dataframe(df: pd.DataFrame, schema: dict, table_name: str) -> list:
    """
    Chain-of-Verification: Validate DataFrame against schema
    Returns list of validation errors
    """
    errors = []

    # Check required columns
    missing_cols = set(schema.keys()) - set(df.columns)
    if missing_cols:
        errors.append(f"{table_name}: Missing columns: {sorted(missing_cols)}")

    # Check for unexpected columns
    extra_cols = set(df.columns) - set(schema.keys())
    if extra_cols:
        errors.append(f"{table_name}: Unexpected columns: {sorted(extra_cols)}")

    # Check for nulls in key fields
    for col in ['sitio_id', 'year'] if 'year' in schema else ['sitio_id']:
        if col in df.columns and df[col].isnull().any():
            errors.append(f"{table_name}: Null values in {col}")

    return errors


def apply_schema(df: pd.DataFrame, schema: dict) -> pd.DataFrame:
    """Apply schema types to DataFrame for memory optimization"""
    for col, dtype in schema.items():
        if col in df.columns:
            try:
                df[col] = df[col].astype(dtype)
            except (TypeError, ValueError) as e:
                logger.warning(f"Could not convert {col} to {dtype}: {e}")
    return df


# ============================================================
# TABULAR EXPORT
# ============================================================

def entities_to_frame(entities: List[SitioEntity]) -> pd.DataFrame:
    """Table A: one row per sitio"""
    rows = []
    for entity in entities:
        rows.append({
            'sitio_id': entity.sitio_id,
            'municipality': entity.municipality,
            'barangay': entity.barangay,
            'sitio_name': entity.sitio_name,
            'coding': entity.coding,
            'latitude': entity.latitude,
            'longitude': entity.longitude,
            'remote': entity.classification.remote,
            'indigenous': entity.classification.indigenous,
            'conflict': entity.classification.conflict,
            'first_year': entity.available_years[0],
            'last_year': entity.available_years[-1],
        })
    df = pd.DataFrame(rows, columns=list(ENTITY_SCHEMA.keys()))
    return apply_schema(df, ENTITY_SCHEMA)


def records_to_frame(entities: List[SitioEntity]) -> pd.DataFrame:
    """Table B: one row per sitio per year"""
    rows = []
    for entity in entities:
        for year in entity.available_years:
            row = {'sitio_id': entity.sitio_id}
            row.update(entity.record_for(year).to_row())
            rows.append(row)
    df = pd.DataFrame(rows, columns=list(COMMUNITY_YEAR_SCHEMA.keys()))
    return apply_schema(df, COMMUNITY_YEAR_SCHEMA)


def progression_to_frame(entities: List[SitioEntity]) -> pd.DataFrame:
    """Hidden ground truth each yearly record was synthesized from"""
    rows = []
    for entity in entities:
        for year in entity.available_years:
            row = {'sitio_id': entity.sitio_id, 'year': year}
            row.update(entity.progression[year].to_dict())
            rows.append(row)
    df = pd.DataFrame(rows, columns=list(PROGRESSION_SCHEMA.keys()))
    return apply_schema(df, PROGRESSION_SCHEMA)
