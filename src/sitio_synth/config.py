"""
Sitio Synthetic Data - Configuration
====================================
Generation defaults and the calendar-year policy timeline.

Configuration is YAML; the packaged ``configs/generation_config.yaml`` holds
the defaults. Any timeline key may be overridden by a caller's file.
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

import yaml


DEFAULT_CONFIG_PATH = Path(__file__).parent / "configs" / "generation_config.yaml"

REQUIRED_KEYS = ['generation', 'timeline']
REQUIRED_GENERATION_KEYS = ['count', 'seed', 'start_year', 'years_to_generate']


@dataclass(frozen=True)
class PolicyTimeline:
    """
    Real-world events that modulate the yearly progression.

    Years are calendar years; boosts are multipliers on the base yearly
    improvement draw.
    """
    electrification_year: int = 2020
    electrification_boost: float = 1.3
    pandemic_year: int = 2020
    pandemic_internet_boost: float = 1.8
    post_pandemic_year: int = 2023
    post_pandemic_internet_boost: float = 1.3
    national_id_rollout_year: int = 2020
    national_id_acceleration_year: int = 2022
    shock_year: int = 2020
    shock_unemployment_bump: float = 0.04
    shock_reversal_fraction: float = 0.5
    shock_record_spike: float = 0.05
    shock_record_aftershock: float = 0.025
    signal_upgrade_year: int = 2020
    top_signal_year: int = 2021
    solar_adoption_year: int = 2020
    assembly_tracking_year: int = 2020

    def __post_init__(self):
        assert self.national_id_rollout_year <= self.national_id_acceleration_year, \
            "National ID acceleration cannot precede rollout"
        assert 0.0 <= self.shock_reversal_fraction <= 1.0, "Reversal fraction out of range"

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "PolicyTimeline":
        data = data or {}
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown timeline keys: {sorted(unknown)}")
        return cls(**data)


@dataclass(frozen=True)
class GenerationConfig:
    """Top-level run parameters"""
    count: int = 100
    seed: int = 84
    start_year: int = 2018
    years_to_generate: int = 9
    timeline: PolicyTimeline = field(default_factory=PolicyTimeline)

    def __post_init__(self):
        """Chain-of-Verification: Validate constraints"""
        assert self.count > 0, f"Count {self.count} must be > 0"
        assert self.years_to_generate >= 1, f"Years {self.years_to_generate} must be >= 1"

    @property
    def end_year(self) -> int:
        return self.start_year + self.years_to_generate - 1


def load_config(config_path: Optional[Path] = None) -> GenerationConfig:
    """Load and validate configuration"""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}

    # Verification: Check required keys
    missing = [k for k in REQUIRED_KEYS if k not in config]
    if missing:
        raise ValueError(f"Missing config keys: {missing}")

    gen = config['generation'] or {}
    missing = [k for k in REQUIRED_GENERATION_KEYS if k not in gen]
    if missing:
        raise ValueError(f"Missing generation keys: {missing}")

    return GenerationConfig(
        count=int(gen['count']),
        seed=int(gen['seed']),
        start_year=int(gen['start_year']),
        years_to_generate=int(gen['years_to_generate']),
        timeline=PolicyTimeline.from_dict(config['timeline']),
    )


DEFAULT_TIMELINE = PolicyTimeline()
