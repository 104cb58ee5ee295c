"""
Sitio Synthetic Data - Profile & Config Tests
=============================================
"""

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sitio_synth.config import GenerationConfig, PolicyTimeline, load_config
from sitio_synth.profiles import (
    AreaType,
    HazardProfile,
    LocationProfile,
    ProfileTable,
    default_profile_table,
    profile_for,
)


class TestLocationProfile:
    """Test LocationProfile dataclass"""

    def test_default_creation(self):
        """Test default instance is a mid-range rural profile"""
        profile = LocationProfile(name="X")
        assert profile.area_type == AreaType.RURAL
        assert 0 <= profile.gida_probability <= 1

    def test_probability_validation(self):
        """Test probabilities outside [0, 1] are rejected"""
        with pytest.raises(AssertionError):
            LocationProfile(name="X", gida_probability=1.2)

        with pytest.raises(AssertionError):
            LocationProfile(name="X", infrastructure_level=-0.1)

    def test_hazard_validation(self):
        """Test hazard likelihoods outside [0, 1] are rejected"""
        with pytest.raises(AssertionError):
            HazardProfile(earthquake=1.5)

    def test_from_dict(self):
        """Test construction from a YAML-shaped mapping"""
        profile = LocationProfile.from_dict({
            'name': 'SAMPLE',
            'area_type': 'highland',
            'center': [6.1, 124.6],
            'spread': [0.2, 0.3],
            'primary_crops': ['Coffee'],
            'hazard_profile': {'landslide': 0.7},
        })
        assert profile.area_type == AreaType.HIGHLAND
        assert profile.center_lat == 6.1
        assert profile.lng_spread == 0.3
        assert profile.primary_crops == ('Coffee',)
        assert profile.hazard_profile.landslide == 0.7


class TestProfileTable:
    """Test the packaged and in-code profile tables"""

    def test_packaged_table(self):
        """Test the packaged table lists the eleven municipalities"""
        table = default_profile_table()
        assert len(table) == 11
        assert "LAKE SEBU" in table
        assert all(table.barangays_for(m) for m in table.municipalities())

    def test_unlisted_resolves_to_default(self):
        """Test unknown names fall back to the default profile"""
        assert profile_for("ATLANTIS").name == "DEFAULT"
        assert profile_for("KORONADAL").area_type == AreaType.URBAN

    def test_locations_flattened(self):
        """Test locations() pairs every barangay with its municipality"""
        table = ProfileTable(
            {"A": LocationProfile(name="A")},
            {"A": ["ONE", "TWO"], "B": ["THREE"]},
        )
        assert table.locations() == [("A", "ONE"), ("A", "TWO"), ("B", "THREE")]
        assert table.profile_for("B").name == "DEFAULT"

    def test_packaged_hazards_in_range(self):
        """Test every packaged hazard profile carries an earthquake band"""
        table = default_profile_table()
        for name in table.municipalities():
            assert 0 <= table.profile_for(name).hazard_profile.earthquake <= 1


class TestConfig:
    """Test YAML configuration loading"""

    def test_load_default(self):
        """Test packaged defaults"""
        config = load_config()
        assert config.count == 100
        assert config.seed == 84
        assert config.start_year == 2018
        assert config.end_year == 2026
        assert config.timeline.pandemic_year == 2020

    def test_missing_keys(self, tmp_path):
        """Test missing top-level keys are reported"""
        path = tmp_path / "config.yaml"
        path.write_text("generation:\n  count: 5\n")
        with pytest.raises(ValueError, match="Missing config keys"):
            load_config(path)

    def test_missing_generation_keys(self, tmp_path):
        """Test missing generation keys are reported"""
        path = tmp_path / "config.yaml"
        path.write_text("generation:\n  count: 5\ntimeline: {}\n")
        with pytest.raises(ValueError, match="Missing generation keys"):
            load_config(path)

    def test_timeline_override(self, tmp_path):
        """Test timeline keys override defaults"""
        path = tmp_path / "config.yaml"
        path.write_text(
            "generation:\n  count: 3\n  seed: 1\n  start_year: 2015\n  years_to_generate: 2\n"
            "timeline:\n  shock_year: 2016\n"
        )
        config = load_config(path)
        assert config.timeline.shock_year == 2016
        assert config.timeline.electrification_year == 2020

    def test_unknown_timeline_key(self):
        """Test unknown timeline keys are rejected"""
        with pytest.raises(ValueError, match="Unknown timeline keys"):
            PolicyTimeline.from_dict({'moon_landing_year': 1969})

    def test_generation_validation(self):
        """Test count and horizon constraints"""
        with pytest.raises(AssertionError):
            GenerationConfig(count=0)

        with pytest.raises(AssertionError):
            GenerationConfig(years_to_generate=0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
