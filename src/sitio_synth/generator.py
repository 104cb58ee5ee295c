"""
Sitio Synthetic Data - Generation Engine
========================================
Assembles synthetic sitios: location, identity, classification and
coordinates once per sitio, then a strictly sequential yearly fold of
synthesize -> advance over the progression state.

The whole run is a pure function of its arguments: the same count, seed,
start year, horizon, profile table, catalog and timeline give identical
output.
"""

from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple
import logging
import sys

import numpy as np
import pandas as pd

from .components import sitio_name
from .config import DEFAULT_TIMELINE, GenerationConfig, PolicyTimeline, load_config
from .custom_fields import CustomFieldDefinition, default_catalog, load_catalog
from .models import (
    Classification,
    CommunityRecord,
    SitioEntity,
    SitioIdentity,
    entities_to_frame,
    progression_to_frame,
    records_to_frame,
)
from .profiles import LocationProfile, ProfileTable, default_profile_table
from .progression import ProgressionState, advance, initialize_state
from .random_source import SeededRandom, derive_seed
from .synthesizer import synthesize_year
from .validation import SyntheticDataValidator, ValidationSeverity


logger = logging.getLogger(__name__)


# ============================================================
# PER-SITIO YEARLY FOLD
# ============================================================

def simulate_years(
    identity: SitioIdentity,
    profile: LocationProfile,
    initial_state: ProgressionState,
    seed: int,
    entity_index: int,
    start_year: int,
    years_to_generate: int,
    timeline: PolicyTimeline = DEFAULT_TIMELINE,
    catalog: Optional[Sequence[CustomFieldDefinition]] = None,
) -> Tuple[Dict[int, CommunityRecord], Dict[int, ProgressionState]]:
    """
    Run the yearly fold for one sitio.

    Each year gets its own generator seeded from (seed, entity_index,
    year_offset); it is used for that year's synthesis and then for the
    transition. Returns records and the state each record came from,
    both keyed by calendar year.
    """
    records = {}
    states = {}
    state = initial_state
    for year_offset in range(years_to_generate):
        year = start_year + year_offset
        year_rng = SeededRandom(derive_seed(seed, entity_index, year_offset))

        record = synthesize_year(state, profile, identity, year_rng, year_offset, year,
                                 timeline, catalog)
        records[year] = record
        states[year] = state

        state = advance(state, record, year_rng, year, timeline)
    return records, states


def _coordinate(rng: SeededRandom, center: float, spread: float) -> float:
    return round(center + (rng.next() - 0.5) * 2 * spread, 6)


def sitio_code(rng: SeededRandom, municipality: str, barangay: str) -> str:
    return f"{municipality[:3].upper()}-{barangay[:2].upper()}-{rng.next_int(100, 999)}"


# ============================================================
# ENTITY ASSEMBLER
# ============================================================

def generate_sitios(
    count: int,
    seed: int = 42,
    start_year: int = 2018,
    years_to_generate: int = 1,
    profiles: Optional[ProfileTable] = None,
    catalog: Optional[Sequence[CustomFieldDefinition]] = None,
    timeline: Optional[PolicyTimeline] = None,
) -> List[SitioEntity]:
    """
    Generate `count` sitios with `years_to_generate` yearly records each.

    Args:
        count: Number of sitios (> 0)
        seed: Master seed
        start_year: First calendar year
        years_to_generate: Years per sitio (>= 1)
        profiles: Location table; None uses the packaged South Cotabato table
        catalog: Custom field definitions; None uses the packaged catalog
        timeline: Policy events; None uses the defaults

    Raises:
        ValueError: non-positive count or horizon, or an empty location table
    """
    if count <= 0:
        raise ValueError(f"count must be > 0, got {count}")
    if years_to_generate < 1:
        raise ValueError(f"years_to_generate must be >= 1, got {years_to_generate}")

    if profiles is None:
        profiles = default_profile_table()
    catalog = default_catalog() if catalog is None else tuple(catalog)
    if timeline is None:
        timeline = DEFAULT_TIMELINE

    locations = profiles.locations()
    if not locations:
        raise ValueError("Profile table has no (municipality, barangay) locations")

    rng = SeededRandom(seed)
    used_names: Set[str] = set()
    entities = []

    for entity_index in range(1, count + 1):
        municipality, barangay = rng.pick(locations)
        profile = profiles.profile_for(municipality)

        # Classification first: it conditions everything else
        classification = Classification(
            remote=rng.boolean(profile.gida_probability),
            indigenous=rng.boolean(profile.indigenous_probability),
            conflict=rng.boolean(profile.conflict_probability),
        )

        name = sitio_name(rng, profile.area_type, classification.indigenous, used_names)
        code = sitio_code(rng, municipality, barangay)
        latitude = _coordinate(rng, profile.center_lat, profile.lat_spread)
        longitude = _coordinate(rng, profile.center_lng, profile.lng_spread)

        initial_state = initialize_state(rng, profile, classification)

        identity = SitioIdentity(
            municipality=municipality,
            barangay=barangay,
            sitio_name=name,
            sitio_code=code,
            latitude=latitude,
            longitude=longitude,
            classification=classification,
        )
        records, states = simulate_years(
            identity, profile, initial_state, seed, entity_index,
            start_year, years_to_generate, timeline, catalog,
        )

        entities.append(SitioEntity(
            sitio_id=entity_index,
            municipality=municipality,
            barangay=barangay,
            sitio_name=name,
            coding=code,
            latitude=latitude,
            longitude=longitude,
            classification=classification,
            yearly_data=records,
            available_years=sorted(records),
            progression=states,
        ))
        logger.debug(f"Generated sitio {entity_index}: {name} ({municipality}/{barangay})")

    return entities


# ============================================================
# CONFIG-DRIVEN RUNNER
# ============================================================

class SitioGenerator:
    """
    End-to-end generation from a YAML configuration.

    Produces the sitio table (Table A) and the sitio-year table (Table B),
    plus the hidden progression table, and runs a final
    Chain-of-Verification over them.
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        profiles: Optional[ProfileTable] = None,
        catalog: Optional[Sequence[CustomFieldDefinition]] = None,
        config: Optional[GenerationConfig] = None,
    ):
        self.config = config if config is not None else load_config(config_path)
        self.profiles = profiles if profiles is not None else ProfileTable.from_yaml()
        self.catalog = tuple(catalog if catalog is not None else load_catalog())

        self.entities: List[SitioEntity] = []
        self.progression_df: Optional[pd.DataFrame] = None
        self.validation_results = []

    def generate(self) -> List[SitioEntity]:
        cfg = self.config
        logger.info(f"Generating {cfg.count:,} sitios for {cfg.start_year}-{cfg.end_year} "
                    f"(seed={cfg.seed})")
        self.entities = generate_sitios(
            cfg.count,
            cfg.seed,
            cfg.start_year,
            cfg.years_to_generate,
            profiles=self.profiles,
            catalog=self.catalog,
            timeline=cfg.timeline,
        )
        return self.entities

    def run(self) -> Tuple[pd.DataFrame, pd.DataFrame]:
        """Generate and return (sitio table, sitio-year table)"""
        self.generate()

        entity_df = entities_to_frame(self.entities)
        year_df = records_to_frame(self.entities)
        self.progression_df = progression_to_frame(self.entities)

        self._final_verification(entity_df, year_df, self.progression_df)
        return entity_df, year_df

    def _final_verification(
        self, entity_df: pd.DataFrame, year_df: pd.DataFrame, progression_df: pd.DataFrame
    ):
        """Final Chain-of-Verification"""
        logger.info("FINAL CHAIN-OF-VERIFICATION")

        remote_rate = entity_df['remote'].mean()
        indigenous_rate = entity_df['indigenous'].mean()
        logger.info(f"Remote (GIDA): {remote_rate:.1%}, Indigenous: {indigenous_rate:.1%}")

        by_year = year_df.groupby('year', observed=True)
        population = by_year['total_population'].sum()
        if len(population) > 1:
            growth = np.diff(population.to_numpy(dtype=float)) / population.to_numpy(dtype=float)[:-1]
            logger.info(f"Mean yearly population growth: {np.mean(growth):.2%}")

        electrified = by_year['households_with_electricity'].sum() / by_year['total_households'].sum()
        first_year, last_year = electrified.index.min(), electrified.index.max()
        logger.info(f"Electrified households: {electrified[first_year]:.1%} ({first_year}) -> "
                    f"{electrified[last_year]:.1%} ({last_year})")

        validator = SyntheticDataValidator()
        self.validation_results = validator.validate_all(entity_df, year_df, progression_df)
        failures = [r for r in self.validation_results if r.severity == ValidationSeverity.FAIL]
        for result in failures:
            logger.error(f"{result.name}: {result.message}")

        logger.info(f"Sitio table: {len(entity_df):,} rows, sitio-year table: {len(year_df):,} rows")
        logger.info(f"Memory: sitios={entity_df.memory_usage(deep=True).sum() / 1e6:.2f}MB, "
                    f"yearly={year_df.memory_usage(deep=True).sum() / 1e6:.2f}MB")
        logger.info(f"Validation: {len(self.validation_results)} checks, {len(failures)} failed")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    config_arg = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    generator = SitioGenerator(config_path=config_arg)
    entity_df, year_df = generator.run()

    logger.info("Generation complete")
    logger.info(f"Sitios: {entity_df.shape}")
    logger.info(f"Sitio-years: {year_df.shape}")
