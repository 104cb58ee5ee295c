"""
Sitio Synthetic Data Engine
===========================
Deterministic multi-year synthetic profiles for sitios (administrative
micro-communities), used to seed a community data bank.

Usage:
    from sitio_synth import generate_sitios

    sitios = generate_sitios(count=100, seed=84, start_year=2018, years_to_generate=9)
"""

from .config import (
    GenerationConfig,
    PolicyTimeline,
    load_config
)

from .profiles import (
    AreaType,
    HazardProfile,
    LocationProfile,
    ProfileTable
)

from .random_source import (
    SeededRandom,
    derive_seed
)

from .models import (
    CommunityRecord,
    SitioEntity,
    entities_to_frame,
    records_to_frame,
    progression_to_frame
)

from .progression import (
    ProgressionState,
    initialize_state,
    advance
)

from .synthesizer import synthesize_year

from .custom_fields import (
    CustomFieldDefinition,
    load_catalog,
    generate_custom_fields,
    validate_custom_field_value
)

from .generator import (
    generate_sitios,
    SitioGenerator
)

from .validation import (
    SyntheticDataValidator,
    ValidationSeverity
)

__version__ = "1.0.0"
