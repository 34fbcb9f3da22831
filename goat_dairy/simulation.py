"""Scenario orchestration: one entry point for every analysis mode.

``run_simulation`` always computes the base milk-sale figures, then layers the
module that matches the scenario type. Whether that module's output replaces
the headline revenue and cost is decided by ``OVERRIDE_POLICY``; yield
scenarios deliberately only attach their figures.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd

from goat_dairy.coerce import safe_ratio
from goat_dairy.config import DEFAULT_CONFIG
from goat_dairy.lactation import LactationImpact, calculate_lactation_impact
from goat_dairy.production import BaseMetrics, calculate_base_metrics
from goat_dairy.records import ScenarioInputs, ScenarioType, to_jsonable
from goat_dairy.transformation import ProductMixResult, allocate_product_mix, channel_mix, legacy_to_product
from goat_dairy.validation import PercentageError, UnknownSortKey, validate_product_mix
from goat_dairy.yield_metrics import YieldMetrics, calculate_yield_metrics

logger = logging.getLogger(__name__)

# Does the module's output replace the scenario's revenue/cost totals?
OVERRIDE_POLICY = {
    ScenarioType.MILK_SALE: False,
    ScenarioType.TRANSFORMATION: True,
    ScenarioType.LACTATION: True,
    ScenarioType.YIELD: False,
}

# Channel -> share column of the summary (percent of product kg)
SHARE_COLUMNS = {"direct": "directShare", "distributors": "distributorsShare", "third": "thirdShare"}

# Summary metric -> rank column
RANK_COLUMNS = {
    "totalRevenue": "revenueRank",
    "grossMargin": "marginRank",
    "marginPercentage": "marginPercentRank",
}


@dataclass(frozen=True)
class ModuleBreakdown:
    transformation_metrics: Optional[ProductMixResult] = None
    lactation_metrics: Optional[LactationImpact] = None
    yield_metrics: Optional[YieldMetrics] = None


@dataclass(frozen=True)
class ScenarioResult:
    scenario_type: str
    total_production_liters: float
    total_revenue: float
    total_costs: float
    gross_margin: float
    margin_percentage: float
    revenue_per_liter: float
    cost_per_liter: float
    base_metrics: BaseMetrics
    module_breakdown: ModuleBreakdown

    def to_dict(self):
        return to_jsonable(self)


def _overrides(scenario_type):
    return OVERRIDE_POLICY.get(scenario_type, False)


def run_simulation(scenario, cfg=DEFAULT_CONFIG):
    """Compute the ScenarioResult for one stored scenario.

    ``scenario`` is a ``ScenarioInputs`` or the stored bundle dict
    (productionData, transformationProducts | transformationData,
    lactationData, yieldData, scenarioType).
    """
    if not isinstance(scenario, ScenarioInputs):
        scenario = ScenarioInputs.from_record(scenario, cfg)

    scenario_type = ScenarioType.parse(scenario.scenario_type)
    if scenario_type is None:
        logger.warning("Unknown scenario type %r, computing base metrics only", scenario.scenario_type)

    # --- 1. BASE (always) ---
    base = calculate_base_metrics(scenario.production, cfg)
    liters = base.total_production_liters
    total_revenue = base.total_revenue
    total_costs = base.total_costs

    transformation = None
    lactation = None
    yield_metrics = None

    # --- 2. TRANSFORMATION ---
    # Legacy single-product data becomes a one-product mix here
    products = list(scenario.products)
    if not products and scenario.legacy_transformation is not None:
        products = [legacy_to_product(scenario.legacy_transformation, cfg)]

    if products:
        validation = validate_product_mix(products, cfg)
        if scenario_type == ScenarioType.TRANSFORMATION and not validation.valid and cfg.strict_percentages:
            raise PercentageError(validation.errors)
        transformation = allocate_product_mix(base, products, cfg, validation=validation)
        if scenario_type == ScenarioType.TRANSFORMATION and _overrides(scenario_type):
            total_revenue = transformation.total_product_revenue
            total_costs += transformation.total_processing_cost + transformation.total_packaging_cost

    # --- 3. LACTATION ---
    if scenario.lactation is not None:
        lactation = calculate_lactation_impact(scenario.lactation, cfg)
        if scenario_type == ScenarioType.LACTATION and _overrides(scenario_type):
            adjusted_liters = liters * lactation.production_fraction
            total_revenue = base.revenue_per_liter * adjusted_liters
            total_costs = base.cost_per_liter * adjusted_liters

    # --- 4. YIELD (attached only) ---
    if scenario.yield_params is not None:
        yield_metrics = calculate_yield_metrics(base, scenario.yield_params, cfg)

    # --- 5. FINAL ---
    gross_margin = total_revenue - total_costs
    result = ScenarioResult(
        scenario_type=scenario_type.value if scenario_type else str(scenario.scenario_type),
        total_production_liters=liters,
        total_revenue=total_revenue,
        total_costs=total_costs,
        gross_margin=gross_margin,
        margin_percentage=safe_ratio(gross_margin, total_revenue) * 100 if total_revenue > 0 else 0.0,
        revenue_per_liter=safe_ratio(total_revenue, liters),
        cost_per_liter=safe_ratio(total_costs, liters),
        base_metrics=base,
        module_breakdown=ModuleBreakdown(
            transformation_metrics=transformation,
            lactation_metrics=lactation,
            yield_metrics=yield_metrics,
        ),
    )
    logger.debug(
        "Scenario %s: revenue %.2f, costs %.2f, margin %.2f",
        result.scenario_type, total_revenue, total_costs, gross_margin,
    )
    return result


def compare_scenarios(scenarios, rank_by="totalRevenue", cfg=DEFAULT_CONFIG):
    """Run several scenarios side by side and rank them.

    ``scenarios`` is a dict name -> scenario or a list of (name, scenario)
    pairs. Ranks are 1-based and descending; equal values keep input order.
    Channel share columns are NaN for scenarios without a product mix.
    """
    if rank_by not in RANK_COLUMNS:
        raise UnknownSortKey(f"Cannot rank scenarios by {rank_by!r}; use one of {sorted(RANK_COLUMNS)}")

    items = scenarios.items() if isinstance(scenarios, dict) else scenarios
    rows = []
    for name, scenario in items:
        result = run_simulation(scenario, cfg)
        mix = result.module_breakdown.transformation_metrics
        # No product mix -> NaN shares
        shares = channel_mix(mix) if mix is not None else {}
        rows.append({
            "scenario": name,
            "scenarioType": result.scenario_type,
            "totalProductionLiters": result.total_production_liters,
            "totalRevenue": result.total_revenue,
            "totalCosts": result.total_costs,
            "grossMargin": result.gross_margin,
            "marginPercentage": result.margin_percentage,
            **{col: shares.get(channel, np.nan) for channel, col in SHARE_COLUMNS.items()},
        })

    columns = ["scenario", "scenarioType", "totalProductionLiters", "totalRevenue",
               "totalCosts", "grossMargin", "marginPercentage", *SHARE_COLUMNS.values()]
    df = pd.DataFrame(rows, columns=columns)
    for metric, rank_col in RANK_COLUMNS.items():
        df[rank_col] = df[metric].rank(method="first", ascending=False).astype(int)

    return df.sort_values(RANK_COLUMNS[rank_by], kind="mergesort").reset_index(drop=True)
