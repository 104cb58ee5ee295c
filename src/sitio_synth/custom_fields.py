"""
Sitio Synthetic Data - Custom Fields
====================================
Admin-defined supplementary fields: the catalog of typed definitions,
synthetic value generation and value validation.

The catalog is a read-only collaborator. Values are keyed by the
definition's field_name so that they join across years.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple
import logging
import math
import re

import yaml

from .random_source import SeededRandom


logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent / "configs" / "custom_fields.yaml"


class CustomFieldType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    ARRAY = "array"
    CHECKBOX = "checkbox"  # multi-select
    RADIO = "radio"  # single-select


class AggregationType(str, Enum):
    SUM = "sum"
    AVERAGE = "average"
    COUNT = "count"
    MIN = "min"
    MAX = "max"


def _freeze(value: Any) -> Any:
    """Read-only copy: mappings become proxies, lists become tuples"""
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


@dataclass(frozen=True)
class ValidationRules:
    required: bool = False
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    choices: Tuple[str, ...] = ()

    def __post_init__(self):
        if self.min_value is not None and self.max_value is not None:
            assert self.min_value <= self.max_value, "min_value exceeds max_value"
        if self.min_length is not None and self.max_length is not None:
            assert self.min_length <= self.max_length, "min_length exceeds max_length"


@dataclass(frozen=True)
class CustomFieldDefinition:
    id: str
    field_name: str
    display_label: str
    data_type: CustomFieldType
    validation_rules: ValidationRules = field(default_factory=ValidationRules)
    aggregation_type: AggregationType = AggregationType.COUNT
    display_order: int = 0
    is_active: bool = True
    group_id: Optional[str] = None
    description: str = ""
    hints: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self):
        object.__setattr__(self, 'hints', _freeze(self.hints))

        probabilities = self.hints.get('choice_probabilities')
        choices = self.validation_rules.choices
        if probabilities is not None and len(probabilities) != len(choices):
            raise ValueError(
                f"Field {self.id}: {len(probabilities)} choice_probabilities "
                f"for {len(choices)} choices"
            )

    @classmethod
    def from_dict(cls, data: dict) -> "CustomFieldDefinition":
        try:
            data_type = CustomFieldType(data['data_type'])
        except ValueError:
            raise ValueError(
                f"Unknown data type '{data['data_type']}' for field {data.get('id')}"
            ) from None
        rules = dict(data.get('validation_rules') or {})
        if 'choices' in rules:
            rules['choices'] = tuple(rules['choices'])
        return cls(
            id=data['id'],
            field_name=data['field_name'],
            display_label=data.get('display_label', data['field_name']),
            data_type=data_type,
            validation_rules=ValidationRules(**rules),
            aggregation_type=AggregationType(data.get('aggregation_type', 'count')),
            display_order=int(data.get('display_order', 0)),
            is_active=bool(data.get('is_active', True)),
            group_id=data.get('group_id'),
            description=data.get('description', ''),
            hints=data.get('hints') or {},
        )


@dataclass(frozen=True)
class FieldContext:
    """What a value generator may condition on"""
    year: int
    population: int
    households: int
    remote: bool = False
    indigenous: bool = False
    conflict: bool = False
    urban: bool = False
    tracking_year: int = 2020


# ============================================================
# CATALOG LOADING
# ============================================================

def load_catalog(yaml_path: Optional[Path] = None) -> List[CustomFieldDefinition]:
    """
    Load field definitions, sorted by display order.

    Raises ValueError on a missing 'fields' key, an unknown data type,
    a duplicate field_name or a group_id not declared under 'groups'.
    """
    if yaml_path is None:
        yaml_path = DEFAULT_CATALOG_PATH

    with open(yaml_path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    if 'fields' not in data:
        raise ValueError(f"Missing 'fields' in {yaml_path}")

    group_ids = {g['id'] for g in data.get('groups') or []}
    definitions = [CustomFieldDefinition.from_dict(entry) for entry in data['fields']]

    seen = set()
    for definition in definitions:
        if definition.field_name in seen:
            raise ValueError(f"Duplicate field_name: {definition.field_name}")
        seen.add(definition.field_name)
        if definition.group_id is not None and group_ids and definition.group_id not in group_ids:
            raise ValueError(f"Unknown group '{definition.group_id}' for {definition.id}")

    logger.debug(f"Loaded {len(definitions)} custom field definitions from {yaml_path}")
    return sorted(definitions, key=lambda d: d.display_order)


_DEFAULT_CATALOG: Optional[Tuple[CustomFieldDefinition, ...]] = None


def default_catalog() -> Tuple[CustomFieldDefinition, ...]:
    global _DEFAULT_CATALOG
    if _DEFAULT_CATALOG is None:
        _DEFAULT_CATALOG = tuple(load_catalog())
    return _DEFAULT_CATALOG


# ============================================================
# VALUE GENERATION
# ============================================================

def _requirement_met(hints: Mapping[str, Any], context: FieldContext) -> bool:
    requirement = hints.get('requires')
    if requirement is None:
        return True
    return bool(getattr(context, requirement))


def _generate_number(rng: SeededRandom, definition: CustomFieldDefinition, context: FieldContext):
    hints = definition.hints
    rules = definition.validation_rules
    if not _requirement_met(hints, context):
        return 0

    low, high = hints.get('range', [rules.min_value or 0, rules.max_value or 100])
    per = hints.get('per')
    if per is not None:
        scale = getattr(context, per)
        low, high = low * scale, high * scale
    for attribute, share in (hints.get('max_share') or {}).items():
        high = min(high, getattr(context, attribute) * share)
    high = max(low, high)

    decimals = hints.get('decimals')
    if decimals is None:
        value = rng.next_int(math.floor(low), max(math.floor(low), math.floor(high)))
    else:
        value = round(rng.next_float(low, high), decimals)

    if rules.min_value is not None:
        value = max(rules.min_value, value)
    if rules.max_value is not None:
        value = min(rules.max_value, value)
    return value


def _generate_boolean(rng: SeededRandom, definition: CustomFieldDefinition, context: FieldContext):
    hints = definition.hints
    probability = hints.get('probability', 0.5)
    if context.urban and 'urban_probability' in hints:
        probability = hints['urban_probability']
    elif context.remote and 'remote_probability' in hints:
        probability = hints['remote_probability']
    return rng.boolean(probability)


def _generate_text(rng: SeededRandom, definition: CustomFieldDefinition, context: FieldContext):
    hints = definition.hints
    options = hints.get('options') or [""]
    if not rng.boolean(hints.get('fill_probability', 1.0)):
        return ""
    value = str(rng.pick(options))
    max_length = definition.validation_rules.max_length
    return value[:max_length] if max_length is not None else value


def _generate_date(rng: SeededRandom, definition: CustomFieldDefinition, context: FieldContext):
    hints = definition.hints
    if context.year < hints.get('min_year', context.tracking_year):
        return None
    low, high = hints.get('range', [1, 365])
    days_ago = rng.next_int(low, high)
    return (date(context.year, 12, 31) - timedelta(days=days_ago)).isoformat()


def _generate_array(rng: SeededRandom, definition: CustomFieldDefinition, context: FieldContext):
    hints = definition.hints
    options = list(hints.get('options') or [])
    low, high = hints.get('range', [0, len(options)])
    rules = definition.validation_rules
    if rules.max_length is not None:
        high = min(high, rules.max_length)
    wanted = rng.next_int(low, max(low, high))

    chosen = []
    for _ in range(wanted):
        remaining = [o for o in options if o not in chosen]
        if not remaining:
            break
        chosen.append(rng.pick(remaining))
    return tuple(chosen)


def _generate_checkbox(rng: SeededRandom, definition: CustomFieldDefinition, context: FieldContext):
    choices = definition.validation_rules.choices
    probabilities = definition.hints.get('choice_probabilities') or [0.5] * len(choices)
    return tuple(choice for choice, p in zip(choices, probabilities) if rng.boolean(p))


def _generate_radio(rng: SeededRandom, definition: CustomFieldDefinition, context: FieldContext):
    hints = definition.hints
    choices = list(definition.validation_rules.choices or hints.get('options') or [])
    weights = hints.get('remote_weights') if context.remote else None
    weights = weights or hints.get('weights')
    if weights:
        return rng.pick_weighted(choices, weights)
    return rng.pick(choices)


_GENERATORS: Dict[CustomFieldType, Callable] = {
    CustomFieldType.NUMBER: _generate_number,
    CustomFieldType.BOOLEAN: _generate_boolean,
    CustomFieldType.TEXT: _generate_text,
    CustomFieldType.DATE: _generate_date,
    CustomFieldType.ARRAY: _generate_array,
    CustomFieldType.CHECKBOX: _generate_checkbox,
    CustomFieldType.RADIO: _generate_radio,
}


def generate_field_value(
    rng: SeededRandom, definition: CustomFieldDefinition, context: FieldContext
) -> Any:
    return _GENERATORS[definition.data_type](rng, definition, context)


def generate_custom_fields(
    rng: SeededRandom,
    catalog: Sequence[CustomFieldDefinition],
    context: FieldContext,
) -> Mapping[str, Any]:
    """One read-only value per active definition, keyed by field_name"""
    return MappingProxyType({
        definition.field_name: generate_field_value(rng, definition, context)
        for definition in catalog
        if definition.is_active
    })


# ============================================================
# VALIDATION
# ============================================================

def _is_empty(value: Any) -> bool:
    return value is None or value == ""


def validate_custom_field_value(
    value: Any, definition: CustomFieldDefinition
) -> Tuple[bool, Optional[str]]:
    """
    Check a value against its definition.

    Returns (valid, error message). Empty values are valid unless the
    field is required.
    """
    rules = definition.validation_rules

    if _is_empty(value):
        if rules.required:
            return False, f"{definition.display_label} is required"
        return True, None

    data_type = definition.data_type

    if data_type == CustomFieldType.TEXT:
        if not isinstance(value, str):
            return False, "Value must be text"
        if rules.min_length is not None and len(value) < rules.min_length:
            return False, f"Must be at least {rules.min_length} characters"
        if rules.max_length is not None and len(value) > rules.max_length:
            return False, f"Must be at most {rules.max_length} characters"
        if rules.pattern and not re.search(rules.pattern, value):
            return False, "Value does not match required pattern"

    elif data_type == CustomFieldType.NUMBER:
        if isinstance(value, bool):
            return False, "Value must be a number"
        try:
            number = float(value)
        except (TypeError, ValueError):
            return False, "Value must be a number"
        if math.isnan(number):
            return False, "Value must be a number"
        if rules.min_value is not None and number < rules.min_value:
            return False, f"Must be at least {rules.min_value}"
        if rules.max_value is not None and number > rules.max_value:
            return False, f"Must be at most {rules.max_value}"

    elif data_type == CustomFieldType.BOOLEAN:
        if not isinstance(value, bool):
            return False, "Value must be Yes or No"

    elif data_type == CustomFieldType.DATE:
        if isinstance(value, str):
            try:
                date.fromisoformat(value)
            except ValueError:
                return False, "Invalid date"
        elif not isinstance(value, date):
            return False, "Invalid date"

    elif data_type == CustomFieldType.ARRAY:
        if not isinstance(value, (list, tuple)):
            return False, "Value must be a list"
        if rules.min_length is not None and len(value) < rules.min_length:
            return False, f"Must have at least {rules.min_length} items"
        if rules.max_length is not None and len(value) > rules.max_length:
            return False, f"Must have at most {rules.max_length} items"
        if not all(isinstance(item, str) for item in value):
            return False, "All items must be text"

    elif data_type == CustomFieldType.CHECKBOX:
        if not isinstance(value, (list, tuple)):
            return False, "Value must be an array of selections"
        if rules.choices:
            for item in value:
                if item not in rules.choices:
                    return False, f"Invalid selection: {item}"

    elif data_type == CustomFieldType.RADIO:
        if not isinstance(value, str):
            return False, "Value must be a single selection"
        if rules.choices and value not in rules.choices:
            return False, f"Invalid selection: {value}"

    return True, None
