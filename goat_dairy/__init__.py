from goat_dairy.config import DEFAULT_CONFIG, EngineConfig, configure_logging
from goat_dairy.ecm import (
    BreedReference,
    BreedScenario,
    breed_table,
    build_breed_scenario,
    calc_ecm_kg,
    compare_two,
    rank_scenarios,
    validate_breed_scenario,
)
from goat_dairy.gestation import calculate_gestation_timeline
from goat_dairy.production import calculate_base_metrics
from goat_dairy.records import ScenarioInputs, ScenarioType
from goat_dairy.simulation import OVERRIDE_POLICY, compare_scenarios, run_simulation
from goat_dairy.transformation import (
    allocate_legacy_product,
    allocate_product_mix,
    compare_milk_vs_transformation,
    legacy_to_product,
)
from goat_dairy.validation import ValidationResult, validate_product_mix

__version__ = "1.0.0"
