"""
Sitio Synthetic Data - Validation Module
========================================
Chain-of-Verification for generated sitio tables.
"""

import pandas as pd
import numpy as np
from typing import Dict, List, Optional
from dataclasses import dataclass
from enum import Enum

from .models import (
    COMMUNITY_YEAR_SCHEMA,
    ENTITY_SCHEMA,
    PROGRESSION_SCHEMA,
    validate_dataframe,
)


class ValidationSeverity(Enum):
    PASS = "PASS"
    WARNING = "WARNING"
    FAIL = "FAIL"
    INFO = "INFO"


@dataclass
class ValidationResult:
    name: str
    severity: ValidationSeverity
    message: str
    expected: Optional[str] = None
    actual: Optional[str] = None


# Subgroup column -> parent column it may never exceed
SUBGROUP_RULES = [
    ('labor_force_60_to_64_count', 'seniors_count'),
    ('unemployed_count', 'labor_force_count'),
    ('no_birth_cert_count', 'school_age_children'),
    ('no_national_id_count', 'labor_force_count'),
    ('out_of_school_youth', 'youth_population'),
    ('registered_voters', 'total_population'),
    ('muslim_count', 'total_population'),
    ('ip_count', 'total_population'),
    ('households_with_toilet', 'total_households'),
    ('households_with_electricity', 'total_households'),
    ('households_with_internet', 'total_households'),
    ('households_with_gardens', 'total_households'),
    ('vaccinated_cats', 'cats_count'),
    ('vaccinated_dogs', 'dogs_count'),
]

RATCHET_COLUMNS = [
    'electricity_rate', 'toilet_rate', 'internet_rate', 'water_maturity',
    'road_maturity', 'national_id_rate', 'birth_cert_rate', 'base_income',
    'has_health_center', 'has_elementary_school', 'has_high_school', 'signal_tier',
]

ELECTRICITY_SOURCE_COLUMNS = [
    'electricity_grid', 'electricity_solar', 'electricity_battery', 'electricity_generator',
]


def _severity(ok: bool) -> ValidationSeverity:
    return ValidationSeverity.PASS if ok else ValidationSeverity.FAIL


class SyntheticDataValidator:
    """Chain-of-Verification for synthetic sitio data"""

    def __init__(self):
        self.results: List[ValidationResult] = []

    def validate_all(
        self,
        entity_df: pd.DataFrame,
        year_df: pd.DataFrame,
        progression_df: Optional[pd.DataFrame] = None,
    ) -> List[ValidationResult]:
        self.results = []
        self._validate_schema(entity_df, ENTITY_SCHEMA, "sitios")
        self._validate_schema(year_df, COMMUNITY_YEAR_SCHEMA, "sitio_years")
        if progression_df is not None:
            self._validate_schema(progression_df, PROGRESSION_SCHEMA, "progression")

        self._validate_partitions(year_df)
        self._validate_subgroups(year_df)
        self._validate_electricity(year_df)
        self._validate_temporal(entity_df, year_df)
        self._validate_names(entity_df)
        if progression_df is not None:
            self._validate_monotonic(progression_df)
        self._summarize_distributions(entity_df, year_df)
        return self.results

    def _validate_schema(self, df: pd.DataFrame, schema: dict, table_name: str):
        errors = validate_dataframe(df, schema, table_name)

        self.results.append(ValidationResult(
            name=f"Schema: {table_name}",
            severity=_severity(not errors),
            message="All required columns present" if not errors else "; ".join(errors)
        ))

    def _validate_partitions(self, year_df: pd.DataFrame):
        gender_bad = int((year_df['total_male'] + year_df['total_female']
                          != year_df['total_population']).sum())
        self.results.append(ValidationResult(
            name="Rule: Male + female = population",
            severity=_severity(gender_bad == 0),
            message=f"{gender_bad} violations"
        ))

        age_total = (year_df['school_age_children'] + year_df['labor_force_count']
                     + year_df['seniors_count'])
        age_bad = int((age_total != year_df['total_population']).sum())
        self.results.append(ValidationResult(
            name="Rule: Age bands = population",
            severity=_severity(age_bad == 0),
            message=f"{age_bad} violations"
        ))

        employed_expected = year_df['labor_force_count'] - year_df['unemployed_count']
        workers_bad = int((year_df['employed_count'] != employed_expected).sum())
        self.results.append(ValidationResult(
            name="Rule: Worker classes = employed",
            severity=_severity(workers_bad == 0),
            message=f"{workers_bad} violations"
        ))

    def _validate_subgroups(self, year_df: pd.DataFrame):
        for child, parent in SUBGROUP_RULES:
            invalid = int((year_df[child] > year_df[parent]).sum())
            self.results.append(ValidationResult(
                name=f"Rule: {child} <= {parent}",
                severity=_severity(invalid == 0),
                message=f"{invalid} violations"
            ))

    def _validate_electricity(self, year_df: pd.DataFrame):
        sources = year_df[ELECTRICITY_SOURCE_COLUMNS].sum(axis=1)
        invalid = int((sources > year_df['households_with_electricity']).sum())
        self.results.append(ValidationResult(
            name="Rule: Electricity sources <= electrified",
            severity=_severity(invalid == 0),
            message=f"{invalid} violations"
        ))

    def _validate_temporal(self, entity_df: pd.DataFrame, year_df: pd.DataFrame):
        bad_sequences = 0
        for _, years in year_df.groupby('sitio_id', observed=True)['year']:
            values = np.sort(years.to_numpy())
            expected = np.arange(values[0], values[0] + len(values))
            if not np.array_equal(values, expected):
                bad_sequences += 1

        self.results.append(ValidationResult(
            name="Temporal: Year sequence",
            severity=_severity(bad_sequences == 0),
            message=f"{bad_sequences} sitios with gaps or duplicates"
        ))

        counts = year_df.groupby('sitio_id', observed=True).size()
        expected_counts = entity_df.set_index('sitio_id')['last_year'] - \
            entity_df.set_index('sitio_id')['first_year'] + 1
        mismatched = int((counts.reindex(expected_counts.index, fill_value=0) != expected_counts).sum())
        self.results.append(ValidationResult(
            name="Temporal: Years per sitio",
            severity=_severity(mismatched == 0),
            message=f"{mismatched} sitios with missing yearly records"
        ))

    def _validate_names(self, entity_df: pd.DataFrame):
        duplicates = int(entity_df['sitio_name'].duplicated().sum())
        # Duplicates are an accepted soft-fail once the name space is exhausted
        self.results.append(ValidationResult(
            name="Identity: Unique sitio names",
            severity=ValidationSeverity.PASS if duplicates == 0 else ValidationSeverity.WARNING,
            message=f"{duplicates} duplicate names"
        ))

    def _validate_monotonic(self, progression_df: pd.DataFrame):
        ordered = progression_df.sort_values(['sitio_id', 'year'])
        for column in RATCHET_COLUMNS:
            values = ordered[column].astype(float)
            steps = values.groupby(ordered['sitio_id'], observed=True).diff()
            decreases = int((steps < 0).sum())
            self.results.append(ValidationResult(
                name=f"Progression: {column} non-decreasing",
                severity=_severity(decreases == 0),
                message=f"{decreases} decreases"
            ))

    def _summarize_distributions(self, entity_df: pd.DataFrame, year_df: pd.DataFrame):
        remote_rate = entity_df['remote'].astype(float).mean()
        self.results.append(ValidationResult(
            name="Distribution: Remote (GIDA)",
            severity=ValidationSeverity.INFO,
            message=f"Remote: {remote_rate:.1%}"
        ))

        need = year_df['average_need_score'].astype(float)
        in_range = bool(((need >= 0) & (need <= 3)).all())
        self.results.append(ValidationResult(
            name="Distribution: Need score",
            severity=ValidationSeverity.PASS if in_range else ValidationSeverity.FAIL,
            message=f"Mean need score: {need.mean():.2f}",
            expected="0.00-3.00"
        ))

    def get_summary(self) -> Dict:
        return {
            'total': len(self.results),
            'passed': sum(1 for r in self.results if r.severity == ValidationSeverity.PASS),
            'warnings': sum(1 for r in self.results if r.severity == ValidationSeverity.WARNING),
            'failed': sum(1 for r in self.results if r.severity == ValidationSeverity.FAIL)
        }
