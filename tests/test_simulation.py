import pytest

from goat_dairy.config import EngineConfig
from goat_dairy.records import ScenarioInputs, ScenarioType
from goat_dairy.simulation import OVERRIDE_POLICY, compare_scenarios, run_simulation
from goat_dairy.validation import PercentageError, UnknownSortKey


@pytest.fixture
def bundle(production_row, product_rows, lactation_row):
    return {
        "productionData": production_row,
        "transformationProducts": product_rows,
        "lactationData": lactation_row,
        "yieldData": {"conversion_rate": 0.12, "efficiency_percentage": 90},
        "scenarioType": "milk_sale",
    }


def test_override_policy():
    assert OVERRIDE_POLICY[ScenarioType.TRANSFORMATION] is True
    assert OVERRIDE_POLICY[ScenarioType.LACTATION] is True
    assert OVERRIDE_POLICY[ScenarioType.YIELD] is False
    assert OVERRIDE_POLICY[ScenarioType.MILK_SALE] is False


def test_milk_sale(bundle):
    result = run_simulation(bundle)

    assert result.scenario_type == "milk_sale"
    assert result.total_revenue == pytest.approx(27375)
    assert result.total_costs == pytest.approx(20531.25)
    assert result.gross_margin == pytest.approx(6843.75)
    assert result.margin_percentage == pytest.approx(25.0, abs=0.02)
    assert result.revenue_per_liter == pytest.approx(0.60)
    assert result.cost_per_liter == pytest.approx(0.45)
    # Every supplied module is still attached
    breakdown = result.module_breakdown
    assert breakdown.transformation_metrics is not None
    assert breakdown.lactation_metrics is not None
    assert breakdown.yield_metrics is not None


def test_transformation_overrides_totals(bundle):
    bundle["scenarioType"] = "transformation"
    result = run_simulation(bundle)
    mix = result.module_breakdown.transformation_metrics

    assert result.total_revenue == pytest.approx(mix.total_product_revenue)
    assert result.total_costs == pytest.approx(
        20531.25 + mix.total_processing_cost + mix.total_packaging_cost
    )
    assert result.gross_margin == pytest.approx(result.total_revenue - result.total_costs)
    assert result.total_production_liters == pytest.approx(45625)
    assert mix.validation.valid


def test_lactation_scales_by_time_fraction(bundle):
    bundle["scenarioType"] = "lactation"
    result = run_simulation(bundle)

    assert result.total_revenue == pytest.approx(21000)
    assert result.total_costs == pytest.approx(15750)
    assert result.gross_margin == pytest.approx(5250)
    assert result.total_production_liters == pytest.approx(45625)


def test_yield_does_not_override(bundle):
    bundle["scenarioType"] = "yield"
    result = run_simulation(bundle)

    assert result.total_revenue == pytest.approx(27375)
    assert result.total_costs == pytest.approx(20531.25)
    assert result.module_breakdown.yield_metrics.effective_liters == pytest.approx(41062.5)


def test_legacy_bundle(thousand_liters_row):
    bundle = {
        "production_data": thousand_liters_row,
        "transformation_data": {
            "product_type": "cheese",
            "liters_per_kg_product": 8.5,
            "product_price_per_kg": 6.5,
        },
        "type": "transformation",
    }
    result = run_simulation(bundle)
    mix = result.module_breakdown.transformation_metrics

    assert len(mix.products_breakdown) == 1
    assert mix.products_breakdown[0].distribution_percentage == 100
    assert result.total_revenue == pytest.approx(764.71, abs=1e-2)


def test_unbalanced_mix_is_permissive_by_default(bundle):
    bundle["scenarioType"] = "transformation"
    bundle["transformationProducts"][0]["distribution_percentage"] = 50
    result = run_simulation(bundle)

    validation = result.module_breakdown.transformation_metrics.validation
    assert not validation.valid
    assert result.module_breakdown.transformation_metrics.products_breakdown[0].product_liters == pytest.approx(
        45625 * 0.5
    )


def test_strict_mode_rejects_unbalanced_mix(bundle):
    bundle["scenarioType"] = "transformation"
    bundle["transformationProducts"][0]["distribution_percentage"] = 50
    cfg = EngineConfig.from_dict({"strict_percentages": True})

    with pytest.raises(PercentageError) as excinfo:
        run_simulation(bundle, cfg)
    assert excinfo.value.errors


def test_unknown_type_uses_base_only(bundle, caplog):
    bundle["scenarioType"] = "gestation"
    result = run_simulation(bundle)

    assert result.scenario_type == "gestation"
    assert result.total_revenue == pytest.approx(27375)
    assert "Unknown scenario type" in caplog.text


def test_zero_inputs():
    result = run_simulation({"scenarioType": "transformation", "transformationProducts": [{}]})
    assert result.total_production_liters == 0
    assert result.total_revenue == 0
    assert result.margin_percentage == 0
    assert result.revenue_per_liter == 0
    assert result.cost_per_liter == 0


def test_idempotent(bundle):
    scenario = ScenarioInputs.from_record(bundle)
    assert run_simulation(scenario) == run_simulation(scenario)


def test_to_dict_contract(bundle):
    bundle["scenarioType"] = "transformation"
    data = run_simulation(bundle).to_dict()

    assert set(data) >= {"totalProductionLiters", "totalRevenue", "totalCosts", "grossMargin",
                         "marginPercentage", "revenuePerLiter", "costPerLiter", "moduleBreakdown"}
    product = data["moduleBreakdown"]["transformationMetrics"]["productsBreakdown"][0]
    assert product["productTypeCustom"] == "Aged cheese"
    assert set(product["salesChannels"]) == {"direct", "distributors", "third"}
    assert product["salesChannels"]["direct"]["pricePerKg"] == 12.0


def test_compare_scenarios(bundle):
    lactation = dict(bundle, scenarioType="lactation")
    transformation = dict(bundle, scenarioType="transformation")
    df = compare_scenarios({"milk": bundle, "lactation": lactation, "cheese": transformation})

    assert list(df["scenario"]) == ["cheese", "milk", "lactation"]
    assert list(df["revenueRank"]) == [1, 2, 3]
    milk = df.set_index("scenario").loc["milk"]
    assert milk["grossMargin"] == pytest.approx(6843.75)
    assert milk["marginRank"] == 2


def test_compare_scenarios_by_margin_percentage(bundle):
    df = compare_scenarios([("a", bundle), ("b", dict(bundle))], rank_by="marginPercentage")
    # Equal values keep input order
    assert list(df["scenario"]) == ["a", "b"]
    assert list(df["marginPercentRank"]) == [1, 2]


def test_compare_scenarios_unknown_metric(bundle):
    with pytest.raises(UnknownSortKey):
        compare_scenarios({"a": bundle}, rank_by="waste")


def test_compare_scenarios_channel_shares(bundle, production_row):
    plain = {"productionData": production_row, "scenarioType": "milk_sale"}
    df = compare_scenarios({"cheese": dict(bundle, scenarioType="transformation"), "plain": plain})
    df = df.set_index("scenario")

    cheese_kg = 45625 * 0.6 / 8.5
    yogurt_kg = 45625 * 0.4 / 1.1
    total_kg = cheese_kg + yogurt_kg
    cheese = df.loc["cheese"]
    assert cheese["directShare"] == pytest.approx((0.5 * cheese_kg + yogurt_kg) / total_kg * 100)
    assert cheese["distributorsShare"] == pytest.approx(0.3 * cheese_kg / total_kg * 100)
    assert cheese["directShare"] + cheese["distributorsShare"] + cheese["thirdShare"] == pytest.approx(100)
    assert df.loc[["plain"], ["directShare", "distributorsShare", "thirdShare"]].isna().all(axis=None)
