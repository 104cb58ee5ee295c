"""
Sitio Synthetic Data - Model Tests
==================================
"""

from dataclasses import replace

import pandas as pd
import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sitio_synth.generator import generate_sitios
from sitio_synth.models import (
    COMMUNITY_YEAR_SCHEMA,
    ENTITY_SCHEMA,
    PROGRESSION_SCHEMA,
    AccessMode,
    Demographics,
    ElectricitySources,
    FacilityDetails,
    MobileSignal,
    Pets,
    PriorityItem,
    PriorityName,
    RoadDetails,
    SitioEntity,
    Classification,
    Utilities,
    WaterSourceStatus,
    entities_to_frame,
    progression_to_frame,
    records_to_frame,
    validate_dataframe,
)


@pytest.fixture(scope="module")
def entities():
    return generate_sitios(count=4, seed=42, start_year=2018, years_to_generate=3)


class TestSections:
    """Test constructor constraints on record sections"""

    def test_demographics_gender_partition(self):
        """Test male + female must equal the total"""
        with pytest.raises(AssertionError):
            Demographics(100, 20, 50, 49, 30, 60, 10, 18, 60)

    def test_demographics_age_partition(self):
        """Test age bands must sum to the total"""
        with pytest.raises(AssertionError):
            Demographics(100, 20, 50, 50, 30, 60, 5, 18, 60)

    def test_valid_demographics(self):
        """Test a consistent population is accepted"""
        demo = Demographics(100, 20, 50, 50, 30, 60, 10, 18, 60)
        assert demo.total_population == 100

    def test_facility_condition(self):
        """Test existing facilities need a 1-5 condition"""
        with pytest.raises(AssertionError):
            FacilityDetails(exists=True, count=1, condition=6)

        with pytest.raises(AssertionError):
            FacilityDetails(exists=True, count=0, condition=3)

    def test_absent_water_source(self):
        """Test an absent source cannot report units"""
        with pytest.raises(AssertionError):
            WaterSourceStatus(exists=False, functioning_count=1)

    def test_priority_rating(self):
        """Test ratings outside 0-3 are rejected"""
        with pytest.raises(AssertionError):
            PriorityItem(PriorityName.FARM_TOOLS, 4)

    def test_electricity_sources_cap(self):
        """Test sources may not exceed electrified households"""
        with pytest.raises(AssertionError):
            Utilities(5, 3, ElectricitySources(grid=3, solar=1), MobileSignal.G4, 1)

    def test_vaccinated_pets(self):
        """Test vaccinated pets may not exceed pets"""
        with pytest.raises(AssertionError):
            Pets(cats_count=2, dogs_count=2, vaccinated_cats=3)

    def test_entity_id(self):
        """Test sitio ids start at 1"""
        with pytest.raises(AssertionError):
            SitioEntity(0, "A", "B", "Sitio X", "A-B-100", 6.0, 124.0, Classification())


class TestRecordSerialization:
    """Test record dict and row shapes"""

    def test_main_access_one_hot(self, entities):
        """Test exactly one access mode is set"""
        record = entities[0].latest()
        access = record.to_dict()['main_access']
        assert set(access) == {mode.value for mode in AccessMode}
        assert sum(access.values()) == 1
        assert access[record.main_access.value]

    def test_priority_lookup(self, entities):
        """Test priority() returns the stored rating"""
        record = entities[0].latest()
        for item in record.priorities:
            assert record.priority(item.name) == item.rating

    def test_entity_to_dict(self, entities):
        """Test entity dict carries years as string keys"""
        data = entities[1].to_dict()
        assert data['id'] == 2
        assert data['available_years'] == [2018, 2019, 2020]
        assert set(data['yearly_data']) == {'2018', '2019', '2020'}


class TestRecordImmutability:
    """Test records cannot be changed through their mappings"""

    def test_section_mappings_read_only(self, entities):
        """Test facility, road, water and hazard maps reject writes"""
        record = entities[0].latest()
        with pytest.raises(TypeError):
            record.facilities['health_center'] = FacilityDetails(False, distance_to_nearest=1.0)
        with pytest.raises(TypeError):
            record.water_sources['level3'] = WaterSourceStatus(False)
        with pytest.raises(TypeError):
            del record.hazards['flood']
        with pytest.raises(TypeError):
            record.infrastructure['asphalt'] = RoadDetails(False)

    def test_custom_fields_read_only(self, entities):
        """Test custom values reject writes and multi-value fields are tuples"""
        record = entities[0].latest()
        with pytest.raises(TypeError):
            record.custom_fields['beneficiaries_count'] = -1
        assert isinstance(record.custom_fields['available_services'], tuple)

    def test_to_dict_is_a_copy(self, entities):
        """Test editing a record's dict leaves the record unchanged"""
        record = entities[0].latest()
        before = record.to_dict()
        data = record.to_dict()
        data['custom_fields']['available_services'].append('Tampered')
        data['custom_fields']['beneficiaries_count'] = -1
        data['facilities']['health_center']['exists'] = not data['facilities']['health_center']['exists']
        assert record.to_dict() == before
        assert isinstance(before['custom_fields']['available_services'], list)

    def test_source_dict_changes_not_seen(self, entities):
        """Test a record keeps its own copy of the mappings it was built from"""
        record = entities[0].latest()
        facilities = dict(record.facilities)
        custom = {k: list(v) if isinstance(v, tuple) else v for k, v in record.custom_fields.items()}
        rebuilt = replace(record, facilities=facilities, custom_fields=custom)
        facilities.pop('health_center')
        custom['available_services'].append('Tampered')
        assert 'health_center' in rebuilt.facilities
        assert rebuilt.to_dict() == record.to_dict()


class TestFrames:
    """Test tabular export and schema checks"""

    def test_entity_frame_columns(self, entities):
        """Test sitio table matches its schema"""
        df = entities_to_frame(entities)
        assert list(df.columns) == list(ENTITY_SCHEMA)
        assert len(df) == 4
        assert validate_dataframe(df, ENTITY_SCHEMA, "sitios") == []

    def test_year_frame_columns(self, entities):
        """Test sitio-year table matches its schema"""
        df = records_to_frame(entities)
        assert list(df.columns) == list(COMMUNITY_YEAR_SCHEMA)
        assert len(df) == 12
        assert validate_dataframe(df, COMMUNITY_YEAR_SCHEMA, "sitio_years") == []

    def test_progression_frame_columns(self, entities):
        """Test progression table matches its schema"""
        df = progression_to_frame(entities)
        assert list(df.columns) == list(PROGRESSION_SCHEMA)
        assert len(df) == 12

    def test_missing_columns_detected(self):
        """Test schema validation reports missing columns"""
        df = pd.DataFrame({'sitio_id': [1]})
        errors = validate_dataframe(df, ENTITY_SCHEMA, "sitios")
        assert any("Missing columns" in e for e in errors)

    def test_unexpected_columns_detected(self, entities):
        """Test schema validation reports extra columns"""
        df = entities_to_frame(entities)
        df['extra'] = 1
        errors = validate_dataframe(df, ENTITY_SCHEMA, "sitios")
        assert any("Unexpected columns" in e for e in errors)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
