import pytest

from goat_dairy.production import (
    calculate_base_metrics,
    calculate_costs,
    calculate_production_metrics,
    calculate_revenue,
)
from goat_dairy.records import ProductionInputs


def test_base_metrics_example(production_row):
    base = calculate_base_metrics(production_row)

    assert base.total_production_liters == pytest.approx(45625)
    assert base.cost_per_liter == pytest.approx(0.45)
    assert base.total_costs == pytest.approx(20531.25)
    assert base.total_revenue == pytest.approx(27375)
    assert base.revenue_per_liter == pytest.approx(0.60)
    assert base.total_revenue - base.total_costs == pytest.approx(6843.75)


def test_cost_categories_add_up(production_row):
    costs = calculate_costs(production_row)
    parts = costs.feed_cost + costs.labor_cost + costs.health_cost + costs.infrastructure_cost + costs.other_costs
    assert parts == pytest.approx(costs.total_costs)
    assert costs.feed_cost == pytest.approx(0.15 * 45625)


def test_accepts_typed_inputs(production_row):
    inputs = ProductionInputs.from_record(production_row)
    assert calculate_production_metrics(inputs).total_production_liters == pytest.approx(45625)
    assert calculate_revenue(inputs).total_revenue == pytest.approx(27375)


def test_numeric_strings_and_camel_case_keys():
    row = {"dailyProductionLiters": "2", "productionDays": "10", "animalsCount": "3", "milkPricePerLiter": "1.5"}
    base = calculate_base_metrics(row)
    assert base.total_production_liters == pytest.approx(60)
    assert base.total_revenue == pytest.approx(90)


def test_empty_row_is_all_zero():
    base = calculate_base_metrics({})
    assert base.total_production_liters == 0
    assert base.total_costs == 0
    assert base.total_revenue == 0


def test_malformed_field_counts_as_zero(production_row):
    production_row["animals_count"] = "lots"
    base = calculate_base_metrics(production_row)
    assert base.total_production_liters == 0
    assert base.cost_per_liter == pytest.approx(0.45)


def test_to_dict_uses_contract_names(production_row):
    data = calculate_base_metrics(production_row).to_dict()
    assert data["production"]["totalProductionLiters"] == pytest.approx(45625)
    assert data["costs"]["costPerLiter"] == pytest.approx(0.45)
    assert data["revenue"]["totalRevenue"] == pytest.approx(27375)
