import logging
from dataclasses import dataclass

from goat_dairy.config import DEFAULT_CONFIG
from goat_dairy.records import ProductionInputs, to_jsonable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProductionMetrics:
    total_production_liters: float
    daily_production_liters: float
    production_days: int
    animals_count: int


@dataclass(frozen=True)
class CostBreakdown:
    cost_per_liter: float
    total_costs: float
    # Per category = rate * total liters
    feed_cost: float
    labor_cost: float
    health_cost: float
    infrastructure_cost: float
    other_costs: float


@dataclass(frozen=True)
class RevenueMetrics:
    revenue_per_liter: float
    total_revenue: float


@dataclass(frozen=True)
class BaseMetrics:
    production: ProductionMetrics
    costs: CostBreakdown
    revenue: RevenueMetrics

    @property
    def total_production_liters(self):
        return self.production.total_production_liters

    @property
    def cost_per_liter(self):
        return self.costs.cost_per_liter

    @property
    def total_costs(self):
        return self.costs.total_costs

    @property
    def total_revenue(self):
        return self.revenue.total_revenue

    @property
    def revenue_per_liter(self):
        return self.revenue.revenue_per_liter

    def to_dict(self):
        return to_jsonable(self)


def _inputs(data, cfg):
    if isinstance(data, ProductionInputs):
        return data
    return ProductionInputs.from_record(data, cfg)


def calculate_production_metrics(data, cfg=DEFAULT_CONFIG):
    p = _inputs(data, cfg)
    return ProductionMetrics(
        total_production_liters=p.total_liters,
        daily_production_liters=p.daily_production_liters,
        production_days=p.production_days,
        animals_count=p.animals_count,
    )


def calculate_costs(data, cfg=DEFAULT_CONFIG):
    p = _inputs(data, cfg)
    liters = p.total_liters
    cost_per_liter = (
        p.feed_cost_per_liter
        + p.labor_cost_per_liter
        + p.health_cost_per_liter
        + p.infrastructure_cost_per_liter
        + p.other_costs_per_liter
    )
    return CostBreakdown(
        cost_per_liter=cost_per_liter,
        total_costs=cost_per_liter * liters,
        feed_cost=p.feed_cost_per_liter * liters,
        labor_cost=p.labor_cost_per_liter * liters,
        health_cost=p.health_cost_per_liter * liters,
        infrastructure_cost=p.infrastructure_cost_per_liter * liters,
        other_costs=p.other_costs_per_liter * liters,
    )


def calculate_revenue(data, cfg=DEFAULT_CONFIG):
    p = _inputs(data, cfg)
    return RevenueMetrics(
        revenue_per_liter=p.milk_price_per_liter,
        total_revenue=p.milk_price_per_liter * p.total_liters,
    )


def calculate_base_metrics(data, cfg=DEFAULT_CONFIG):
    """Liters, cost and milk-sale revenue for one scenario.

    ``data`` is a ``ProductionInputs`` or a raw storage row; missing or
    malformed fields count as 0 so an unfinished form still previews.
    """
    p = _inputs(data, cfg)
    metrics = BaseMetrics(
        production=calculate_production_metrics(p, cfg),
        costs=calculate_costs(p, cfg),
        revenue=calculate_revenue(p, cfg),
    )
    logger.debug(
        "Base metrics: %.2f L, cost %.2f, revenue %.2f",
        metrics.total_production_liters, metrics.total_costs, metrics.total_revenue,
    )
    return metrics
