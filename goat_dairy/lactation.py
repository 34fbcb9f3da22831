import logging
from dataclasses import dataclass

from goat_dairy.coerce import safe_ratio
from goat_dairy.config import DEFAULT_CONFIG
from goat_dairy.records import LactationParameters, to_jsonable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LactationImpact:
    cycle_days: int
    cycles_per_year: float
    productive_days: float
    effective_production_days: float
    production_fraction: float        # share of productive life spent lactating
    replacement_rate: float           # reported as given, not used downstream

    def to_dict(self):
        return to_jsonable(self)


def calculate_lactation_impact(params, cfg=DEFAULT_CONFIG):
    """Lactation/dry cycle over the productive life of an animal.

    A cycle with no days at all has nothing to divide by; its ratios are 0.
    """
    if not isinstance(params, LactationParameters):
        params = LactationParameters.from_record(params, cfg)

    cycle_days = params.lactation_days + params.dry_days
    if cycle_days <= 0:
        logger.warning("Lactation cycle has %s days, time ratios set to 0", cycle_days)

    fraction = safe_ratio(params.lactation_days, cycle_days) if cycle_days > 0 else 0.0
    productive_days = params.productive_life_years * cfg.days_per_year

    return LactationImpact(
        cycle_days=cycle_days,
        cycles_per_year=safe_ratio(cfg.days_per_year, cycle_days) if cycle_days > 0 else 0.0,
        productive_days=productive_days,
        effective_production_days=productive_days * fraction,
        production_fraction=fraction,
        replacement_rate=params.replacement_rate_percent,
    )
