import logging
from dataclasses import dataclass, fields

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass(frozen=True)
class EngineConfig:
    # 1. STORAGE BOUNDS (values the storage layer guarantees)
    decimal_min: float = -99999999.99
    decimal_max: float = 99999999.99
    int_min: int = 0
    int_max: int = 2147483647
    clamp_inputs: bool = True

    # 2. VALIDATION
    percentage_tolerance: float = 0.01
    strict_percentages: bool = False   # True = reject unbalanced product mixes

    # 3. BIOLOGY & CALENDAR
    kg_per_liter: float = 1.03         # Goat milk density (kg -> approx. L)
    days_per_year: int = 365
    default_gestation_days: int = 150

    @classmethod
    def from_dict(cls, values):
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))
        return cls(**{**BASE_CONFIG, **{k: v for k, v in values.items() if k in known}})


# --- DEFAULTS ---
BASE_CONFIG = {
    # Storage
    "decimal_min": -99999999.99, "decimal_max": 99999999.99,
    "int_min": 0, "int_max": 2147483647, "clamp_inputs": True,
    # Validation
    "percentage_tolerance": 0.01, "strict_percentages": False,
    # Biology
    "kg_per_liter": 1.03, "days_per_year": 365, "default_gestation_days": 150,
}

DEFAULT_CONFIG = EngineConfig(**BASE_CONFIG)


def configure_logging(level="INFO"):
    """Set up root logging for scripts and notebooks; the library itself never does this."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
