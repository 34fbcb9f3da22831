import pytest


@pytest.fixture
def production_row():
    # 50 goats, 2.5 L/day, full year
    return {
        "daily_production_liters": 2.5,
        "production_days": 365,
        "animals_count": 50,
        "feed_cost_per_liter": 0.15,
        "labor_cost_per_liter": 0.08,
        "health_cost_per_liter": 0.05,
        "infrastructure_cost_per_liter": 0.10,
        "other_costs_per_liter": 0.07,
        "milk_price_per_liter": 0.60,
    }


@pytest.fixture
def thousand_liters_row():
    return {
        "daily_production_liters": 10,
        "production_days": 100,
        "animals_count": 1,
        "feed_cost_per_liter": 0.20,
        "labor_cost_per_liter": 0.10,
        "milk_price_per_liter": 0.55,
    }


@pytest.fixture
def product_rows():
    return [
        {
            "product_type": "cheese",
            "product_type_custom": "Aged cheese",
            "distribution_percentage": 60,
            "liters_per_kg_product": 8.5,
            "processing_cost_per_liter": 0.20,
            "packaging_cost_per_kg": 0.50,
            "sales_channel_direct_percentage": 50,
            "sales_channel_distributors_percentage": 30,
            "sales_channel_third_percentage": 20,
            "direct_sale_price_per_kg": 12.0,
            "distributors_price_per_kg": 9.0,
            "third_channel_price_per_kg": 10.0,
        },
        {
            "product_type": "yogurt",
            "distribution_percentage": "40",
            "liters_per_kg_product": "1.1",
            "processing_cost_per_liter": "0.10",
            "packaging_cost_per_kg": "0.30",
            "sales_channel_direct_percentage": 100,
            "direct_sale_price_per_kg": 4.0,
        },
    ]


@pytest.fixture
def lactation_row():
    return {"lactation_days": 280, "dry_days": 85, "productive_life_years": 6, "replacement_rate": 20}


@pytest.fixture
def breed_rows():
    return [
        {
            "breed_key": "murciano_granadina",
            "breed_name": "Murciano-Granadina",
            "milk_kg_yr": 600,
            "fat_pct": 5.6,
            "protein_pct": 3.5,
            "lact_days_avg": 270,
            "lactations_lifetime_avg": 5,
            "country_or_system": "Spain",
        },
        {
            "breed_key": "saanen",
            "breed_name": "Saanen",
            "milk_kg_yr": "900",
            "fat_pct": "3.2",
            "protein_pct": "2.9",
            "lact_days_avg": 290,
            "lactations_lifetime_avg": 4,
            "ecm_kg_yr": 1.0,
        },
    ]
