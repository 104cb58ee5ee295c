"""
Sitio Synthetic Data - Custom Field Tests
=========================================
"""

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sitio_synth.custom_fields import (
    CustomFieldDefinition,
    CustomFieldType,
    FieldContext,
    ValidationRules,
    default_catalog,
    generate_custom_fields,
    generate_field_value,
    load_catalog,
    validate_custom_field_value,
)
from sitio_synth.random_source import SeededRandom


def _context(**overrides):
    values = dict(year=2022, population=300, households=60)
    values.update(overrides)
    return FieldContext(**values)


def _definition(data_type, **rules):
    return CustomFieldDefinition(
        id="cf_test",
        field_name="test_field",
        display_label="Test Field",
        data_type=data_type,
        validation_rules=ValidationRules(**rules),
    )


class TestCatalog:
    """Test catalog loading"""

    def test_packaged_catalog(self):
        """Test the packaged catalog has twenty uniquely named fields"""
        catalog = load_catalog()
        assert len(catalog) == 20
        assert len({d.id for d in catalog}) == 20
        assert len({d.field_name for d in catalog}) == 20

    def test_sorted_by_display_order(self):
        """Test definitions come back in display order"""
        orders = [d.display_order for d in load_catalog()]
        assert orders == sorted(orders)

    def test_unknown_data_type(self):
        """Test an unknown data type is rejected"""
        with pytest.raises(ValueError, match="Unknown data type"):
            CustomFieldDefinition.from_dict({'id': 'x', 'field_name': 'x', 'data_type': 'color'})

    def test_duplicate_field_name(self, tmp_path):
        """Test duplicate field names are rejected"""
        path = tmp_path / "fields.yaml"
        path.write_text(
            "fields:\n"
            "  - {id: a, field_name: same, data_type: number}\n"
            "  - {id: b, field_name: same, data_type: boolean}\n"
        )
        with pytest.raises(ValueError, match="Duplicate field_name"):
            load_catalog(path)

    def test_unknown_group(self, tmp_path):
        """Test references to undeclared groups are rejected"""
        path = tmp_path / "fields.yaml"
        path.write_text(
            "groups:\n  - {id: g1, name: One}\n"
            "fields:\n  - {id: a, field_name: a, data_type: number, group_id: g2}\n"
        )
        with pytest.raises(ValueError, match="Unknown group"):
            load_catalog(path)

    def test_missing_fields(self, tmp_path):
        """Test a file without fields is rejected"""
        path = tmp_path / "fields.yaml"
        path.write_text("groups: []\n")
        with pytest.raises(ValueError, match="Missing 'fields'"):
            load_catalog(path)

    def test_choice_probabilities_must_match_choices(self, tmp_path):
        """Test a checkbox with one probability per choice missing is rejected"""
        path = tmp_path / "fields.yaml"
        path.write_text(
            "fields:\n"
            "  - id: a\n"
            "    field_name: services\n"
            "    data_type: checkbox\n"
            "    validation_rules: {choices: [A, B, C]}\n"
            "    hints: {choice_probabilities: [0.5, 0.5]}\n"
        )
        with pytest.raises(ValueError, match="2 choice_probabilities for 3 choices"):
            load_catalog(path)

    def test_choice_probabilities_checked_on_construction(self):
        """Test definitions built directly get the same probability check"""
        with pytest.raises(ValueError, match="choice_probabilities"):
            CustomFieldDefinition(
                id="cf_x", field_name="x", display_label="X",
                data_type=CustomFieldType.CHECKBOX,
                validation_rules=ValidationRules(choices=("A",)),
                hints={'choice_probabilities': [0.2, 0.3]},
            )


class TestCatalogImmutability:
    """Test the shared catalog cannot be altered by callers"""

    def test_default_catalog_is_shared_tuple(self):
        """Test the packaged catalog is one cached tuple"""
        catalog = default_catalog()
        assert isinstance(catalog, tuple)
        assert default_catalog() is catalog
        with pytest.raises(AttributeError):
            catalog.pop()

    def test_hints_read_only(self):
        """Test definition hints reject writes at every level"""
        definition = {d.field_name: d for d in default_catalog()}['available_services']
        with pytest.raises(TypeError):
            definition.hints['choice_probabilities'] = [1.0]
        with pytest.raises(TypeError):
            definition.hints['choice_probabilities'][0] = 1.0

    def test_hints_copied_from_source(self):
        """Test later edits to the source dict do not reach the definition"""
        hints = {'options': ['Rice', 'Corn']}
        definition = CustomFieldDefinition(
            id="cf_crops", field_name="crops", display_label="Crops",
            data_type=CustomFieldType.ARRAY, hints=hints,
        )
        hints['options'].append('Cassava')
        assert definition.hints['options'] == ('Rice', 'Corn')

    def test_generated_values_read_only(self):
        """Test generated value maps reject writes"""
        values = generate_custom_fields(SeededRandom(5), default_catalog(), _context())
        with pytest.raises(TypeError):
            values['beneficiaries_count'] = 0
        assert isinstance(values['available_services'], tuple)


class TestGeneration:
    """Test synthetic value generation"""

    @pytest.mark.parametrize("seed", range(20))
    def test_generated_values_validate(self, seed):
        """Test every generated value passes its own validation"""
        catalog = load_catalog()
        context = _context(remote=seed % 2 == 0, indigenous=seed % 3 == 0, conflict=seed % 4 == 0)
        values = generate_custom_fields(SeededRandom(seed), catalog, context)
        for definition in catalog:
            valid, error = validate_custom_field_value(values[definition.field_name], definition)
            assert valid, f"{definition.field_name}: {error}"

    def test_requires_unmet_gives_zero(self):
        """Test IP and conflict fields are zero where they do not apply"""
        values = generate_custom_fields(SeededRandom(1), load_catalog(), _context())
        assert values['indigenous_leaders_count'] == 0
        assert values['cultural_activities_per_year'] == 0
        assert values['peace_dialogues_conducted'] == 0
        assert values['security_incidents_last_year'] == 0

    def test_requires_met(self):
        """Test IP leader counts are drawn for indigenous sitios"""
        values = generate_custom_fields(SeededRandom(1), load_catalog(), _context(indigenous=True))
        assert 1 <= values['indigenous_leaders_count'] <= 8

    def test_date_before_tracking_year(self):
        """Test no assembly date before tracking starts"""
        values = generate_custom_fields(SeededRandom(2), load_catalog(), _context(year=2019))
        assert values['last_community_assembly'] is None

    def test_date_within_record_year_window(self):
        """Test assembly dates fall within a year before 31 December"""
        values = generate_custom_fields(SeededRandom(2), load_catalog(), _context(year=2023))
        assert "2022-12-31" <= values['last_community_assembly'] <= "2023-12-30"

    def test_participation_rate_bounds(self):
        """Test rate fields respect min and max"""
        catalog = {d.field_name: d for d in load_catalog()}
        rng = SeededRandom(7)
        for _ in range(200):
            value = generate_field_value(rng, catalog['program_participation_rate'], _context())
            assert 0 <= value <= 1

    def test_checkbox_subset_of_choices(self):
        """Test checkbox selections come from the declared choices"""
        catalog = {d.field_name: d for d in load_catalog()}
        definition = catalog['available_services']
        value = generate_field_value(SeededRandom(3), definition, _context())
        assert set(value) <= set(definition.validation_rules.choices)

    def test_inactive_fields_skipped(self):
        """Test inactive definitions produce no value"""
        definition = CustomFieldDefinition(
            id="cf_off", field_name="off", display_label="Off",
            data_type=CustomFieldType.BOOLEAN, is_active=False,
        )
        assert dict(generate_custom_fields(SeededRandom(1), [definition], _context())) == {}


class TestValidation:
    """Test value validation against definitions"""

    def test_required_empty(self):
        """Test required fields reject empty values"""
        valid, error = validate_custom_field_value("", _definition(CustomFieldType.TEXT, required=True))
        assert not valid
        assert "required" in error

    def test_optional_empty(self):
        """Test optional fields accept None"""
        assert validate_custom_field_value(None, _definition(CustomFieldType.NUMBER)) == (True, None)

    def test_text_length(self):
        """Test text length limits"""
        definition = _definition(CustomFieldType.TEXT, min_length=3, max_length=5)
        assert not validate_custom_field_value("ab", definition)[0]
        assert not validate_custom_field_value("abcdef", definition)[0]
        assert validate_custom_field_value("abcd", definition)[0]

    def test_text_pattern(self):
        """Test text pattern matching"""
        definition = _definition(CustomFieldType.TEXT, pattern=r"^\d+$")
        assert not validate_custom_field_value("12a", definition)[0]
        assert validate_custom_field_value("123", definition)[0]

    def test_number_bounds(self):
        """Test number min and max"""
        definition = _definition(CustomFieldType.NUMBER, min_value=0, max_value=1)
        assert not validate_custom_field_value(-0.1, definition)[0]
        assert not validate_custom_field_value(1.5, definition)[0]
        assert validate_custom_field_value("0.5", definition)[0]

    def test_number_rejects_text(self):
        """Test non-numeric values fail"""
        definition = _definition(CustomFieldType.NUMBER)
        assert not validate_custom_field_value("many", definition)[0]
        assert not validate_custom_field_value(True, definition)[0]

    def test_boolean(self):
        """Test boolean fields need real booleans"""
        definition = _definition(CustomFieldType.BOOLEAN)
        assert validate_custom_field_value(False, definition)[0]
        assert not validate_custom_field_value("yes", definition)[0]

    def test_date(self):
        """Test ISO dates are accepted and garbage rejected"""
        definition = _definition(CustomFieldType.DATE)
        assert validate_custom_field_value("2021-06-30", definition)[0]
        assert not validate_custom_field_value("2021-13-40", definition)[0]
        assert not validate_custom_field_value(20210630, definition)[0]

    def test_array(self):
        """Test array type and length checks"""
        definition = _definition(CustomFieldType.ARRAY, max_length=2)
        assert not validate_custom_field_value("a", definition)[0]
        assert not validate_custom_field_value(["a", "b", "c"], definition)[0]
        assert not validate_custom_field_value(["a", 1], definition)[0]
        assert validate_custom_field_value(["a"], definition)[0]

    def test_checkbox(self):
        """Test checkbox selections must be declared choices"""
        definition = _definition(CustomFieldType.CHECKBOX, choices=("A", "B"))
        assert validate_custom_field_value(["A"], definition)[0]
        assert validate_custom_field_value([], definition)[0]
        valid, error = validate_custom_field_value(["C"], definition)
        assert not valid
        assert "Invalid selection" in error

    def test_radio(self):
        """Test radio values must be a single declared choice"""
        definition = _definition(CustomFieldType.RADIO, choices=("Low", "High"))
        assert validate_custom_field_value("Low", definition)[0]
        assert not validate_custom_field_value("Medium", definition)[0]
        assert not validate_custom_field_value(["Low"], definition)[0]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
