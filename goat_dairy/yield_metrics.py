from dataclasses import dataclass

from goat_dairy.config import DEFAULT_CONFIG
from goat_dairy.production import BaseMetrics, calculate_base_metrics
from goat_dairy.records import YieldParameters, to_jsonable


@dataclass(frozen=True)
class YieldMetrics:
    total_liters: float
    effective_liters: float
    converted_product: float
    waste_liters: float
    conversion_rate: float
    efficiency_percentage: float

    def to_dict(self):
        return to_jsonable(self)


def calculate_yield_metrics(production, params, cfg=DEFAULT_CONFIG):
    # Informational: never changes the scenario's revenue or cost
    base = production if isinstance(production, BaseMetrics) else calculate_base_metrics(production, cfg)
    if not isinstance(params, YieldParameters):
        params = YieldParameters.from_record(params, cfg)

    total = base.total_production_liters
    effective = total * (params.efficiency_percentage / 100)
    return YieldMetrics(
        total_liters=total,
        effective_liters=effective,
        converted_product=effective * params.conversion_rate,
        waste_liters=total - effective,
        conversion_rate=params.conversion_rate,
        efficiency_percentage=params.efficiency_percentage,
    )
