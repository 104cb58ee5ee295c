"""
Sitio Synthetic Data - Location Profile Table
=============================================
Static per-municipality parameters that shape generation probabilities.

Profiles are loaded from ``configs/locations.yaml`` and are never mutated.
Municipalities that are not listed resolve to the documented DEFAULT profile
(rural, mid-range probabilities).
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml


DEFAULT_LOCATIONS_PATH = Path(__file__).parent / "configs" / "locations.yaml"


class AreaType(str, Enum):
    URBAN = "urban"
    SEMI_URBAN = "semi-urban"
    RURAL = "rural"
    HIGHLAND = "highland"


@dataclass(frozen=True)
class HazardProfile:
    """Likelihood band of each natural hazard (0-1)"""
    flood: float = 0.35
    landslide: float = 0.25
    drought: float = 0.3
    earthquake: float = 0.2

    def __post_init__(self):
        for name in ("flood", "landslide", "drought", "earthquake"):
            value = getattr(self, name)
            assert 0.0 <= value <= 1.0, f"Hazard {name}={value} out of range [0, 1]"

    def get(self, hazard: str, default: float = 0.2) -> float:
        return getattr(self, hazard, default)


@dataclass(frozen=True)
class LocationProfile:
    """
    Generation parameters for one municipality.

    gida_probability drives the remote (GIDA) classification flag;
    infrastructure_level is a 0-1 maturity scalar, higher = better.
    """
    name: str
    area_type: AreaType = AreaType.RURAL
    center_lat: float = 6.35
    center_lng: float = 124.85
    lat_spread: float = 0.1
    lng_spread: float = 0.1
    gida_probability: float = 0.35
    indigenous_probability: float = 0.3
    conflict_probability: float = 0.1
    base_income_multiplier: float = 1.0
    infrastructure_level: float = 0.5
    primary_crops: Tuple[str, ...] = ("Palay", "Corn", "Coconut", "Banana")
    primary_livestock: Tuple[str, ...] = ("Pig", "Chicken", "Cow", "Duck")
    hazard_profile: HazardProfile = field(default_factory=HazardProfile)

    def __post_init__(self):
        """Chain-of-Verification: Validate constraints"""
        for name in ("gida_probability", "indigenous_probability",
                     "conflict_probability", "infrastructure_level"):
            value = getattr(self, name)
            assert 0.0 <= value <= 1.0, f"{self.name}: {name}={value} out of range [0, 1]"
        assert self.base_income_multiplier > 0, f"{self.name}: income multiplier must be positive"
        assert self.lat_spread >= 0 and self.lng_spread >= 0, f"{self.name}: negative spread"

    @classmethod
    def from_dict(cls, data: dict) -> "LocationProfile":
        center = data.get("center", [6.35, 124.85])
        spread = data.get("spread", [0.1, 0.1])
        return cls(
            name=data["name"],
            area_type=AreaType(data.get("area_type", "rural")),
            center_lat=float(center[0]),
            center_lng=float(center[1]),
            lat_spread=float(spread[0]),
            lng_spread=float(spread[1]),
            gida_probability=data.get("gida_probability", 0.35),
            indigenous_probability=data.get("indigenous_probability", 0.3),
            conflict_probability=data.get("conflict_probability", 0.1),
            base_income_multiplier=data.get("base_income_multiplier", 1.0),
            infrastructure_level=data.get("infrastructure_level", 0.5),
            primary_crops=tuple(data.get("primary_crops", [])),
            primary_livestock=tuple(data.get("primary_livestock", [])),
            hazard_profile=HazardProfile(**data.get("hazard_profile", {})),
        )


DEFAULT_PROFILE = LocationProfile(name="DEFAULT")


class ProfileTable:
    """
    Read-only lookup of location profiles and the barangays of each
    municipality.
    """

    def __init__(
        self,
        profiles: Dict[str, LocationProfile],
        barangays: Dict[str, List[str]],
        default: LocationProfile = DEFAULT_PROFILE,
    ):
        self._profiles = dict(profiles)
        self._barangays = {name: list(items) for name, items in barangays.items()}
        self.default = default

    @classmethod
    def from_yaml(cls, yaml_path: Optional[Path] = None) -> "ProfileTable":
        """
        Load the table from YAML.

        Args:
            yaml_path: Path to a locations file. If None, uses the packaged one.
        """
        if yaml_path is None:
            yaml_path = DEFAULT_LOCATIONS_PATH

        with open(yaml_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)

        if 'municipalities' not in data:
            raise ValueError(f"Missing 'municipalities' in {yaml_path}")

        profiles = {}
        barangays = {}
        for entry in data['municipalities']:
            profile = LocationProfile.from_dict(entry)
            profiles[profile.name] = profile
            barangays[profile.name] = [str(b) for b in entry.get('barangays', [])]

        default = LocationProfile.from_dict(data['default']) if 'default' in data else DEFAULT_PROFILE
        return cls(profiles, barangays, default)

    def profile_for(self, name: str) -> LocationProfile:
        """Named profile, or the default for unlisted municipalities"""
        return self._profiles.get(name, self.default)

    def municipalities(self) -> List[str]:
        return list(self._barangays.keys())

    def barangays_for(self, municipality: str) -> List[str]:
        return list(self._barangays.get(municipality, []))

    def locations(self) -> List[Tuple[str, str]]:
        """Flattened (municipality, barangay) pairs in table order"""
        return [
            (municipality, barangay)
            for municipality, items in self._barangays.items()
            for barangay in items
        ]

    def __contains__(self, name: str) -> bool:
        return name in self._profiles

    def __len__(self) -> int:
        return len(self._profiles)


_DEFAULT_TABLE: Optional[ProfileTable] = None


def default_profile_table() -> ProfileTable:
    """Packaged South Cotabato table, loaded once"""
    global _DEFAULT_TABLE
    if _DEFAULT_TABLE is None:
        _DEFAULT_TABLE = ProfileTable.from_yaml()
    return _DEFAULT_TABLE


def profile_for(name: str, table: Optional[ProfileTable] = None) -> LocationProfile:
    if table is None:
        table = default_profile_table()
    return table.profile_for(name)
