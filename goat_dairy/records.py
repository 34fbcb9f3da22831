"""Input records as they arrive from storage, plus the JSON helpers for results.

Storage rows use snake_case column names and may carry numbers or numeric
strings; every ``from_record`` goes through the tolerant coercion in
:mod:`goat_dairy.coerce`, so a half-filled scenario still builds.
"""
import logging
from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from goat_dairy.coerce import to_safe_int, to_safe_number
from goat_dairy.config import DEFAULT_CONFIG

logger = logging.getLogger(__name__)


class ScenarioType(str, Enum):
    MILK_SALE = "milk_sale"
    TRANSFORMATION = "transformation"
    LACTATION = "lactation"
    YIELD = "yield"

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


class CostUnit(str, Enum):
    PER_LITER = "per_liter"
    PER_KG = "per_kg"

    @classmethod
    def parse(cls, value, default):
        if isinstance(value, cls):
            return value
        key = str(value or "").strip().lower().replace("_", "").replace(" ", "")
        if key in ("perliter", "liter", "l", "perl"):
            return cls.PER_LITER
        if key in ("perkg", "kg"):
            return cls.PER_KG
        if key:
            logger.warning("Unknown cost unit %r, using %s", value, default.value)
        return default


SALES_CHANNELS = ("direct", "distributors", "third")


# --- HELPER FUNCTIONS ---
def camel(name):
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _get(row, name, default=None):
    # Storage rows are snake_case; API payloads sometimes arrive camelCased
    if row is None:
        return default
    if name in row:
        return row[name]
    return row.get(camel(name), default)


def _num(row, name, cfg, default=0.0):
    return to_safe_number(_get(row, name), default=default, cfg=cfg, field=name)


def _int(row, name, cfg, default=0):
    return to_safe_int(_get(row, name), default=default, cfg=cfg, field=name)


def _optional_num(row, name, cfg, missing=None):
    # Absent field -> ``missing``; present but malformed -> 0
    raw = _get(row, name)
    if raw is None or raw == "":
        return missing
    return to_safe_number(raw, cfg=cfg, field=name)


def to_jsonable(value, camel_case=True):
    """Recursively turn result records into plain JSON types."""
    if is_dataclass(value) and not isinstance(value, type):
        out = {}
        for f in fields(value):
            if f.metadata.get("skip_json"):
                continue
            key = f.metadata.get("json_name") or (camel(f.name) if camel_case else f.name)
            out[key] = to_jsonable(getattr(value, f.name), camel_case)
        return out
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): to_jsonable(v, camel_case) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v, camel_case) for v in value]
    if isinstance(value, np.generic):
        return value.item()
    return value


# --- INPUT RECORDS ---
@dataclass(frozen=True)
class ProductionInputs:
    # Volume
    daily_production_liters: float = 0.0   # per animal per day
    production_days: int = 0
    animals_count: int = 0
    # Costs (per liter)
    feed_cost_per_liter: float = 0.0
    labor_cost_per_liter: float = 0.0
    health_cost_per_liter: float = 0.0
    infrastructure_cost_per_liter: float = 0.0
    other_costs_per_liter: float = 0.0
    # Price
    milk_price_per_liter: float = 0.0

    @classmethod
    def from_record(cls, row, cfg=DEFAULT_CONFIG):
        row = row or {}
        return cls(
            daily_production_liters=_num(row, "daily_production_liters", cfg),
            production_days=_int(row, "production_days", cfg),
            animals_count=_int(row, "animals_count", cfg),
            feed_cost_per_liter=_num(row, "feed_cost_per_liter", cfg),
            labor_cost_per_liter=_num(row, "labor_cost_per_liter", cfg),
            health_cost_per_liter=_num(row, "health_cost_per_liter", cfg),
            infrastructure_cost_per_liter=_num(row, "infrastructure_cost_per_liter", cfg),
            other_costs_per_liter=_num(row, "other_costs_per_liter", cfg),
            milk_price_per_liter=_num(row, "milk_price_per_liter", cfg),
        )

    @property
    def total_liters(self):
        return self.daily_production_liters * self.production_days * self.animals_count


@dataclass(frozen=True)
class ChannelSplit:
    percentage: float = 0.0
    price_per_kg: float = 0.0


@dataclass(frozen=True)
class TransformationProduct:
    product_type: str = ""
    custom_label: Optional[str] = None
    distribution_percentage: float = 0.0
    liters_per_kg_product: float = 0.0     # 0 is read as 1 by the allocator
    processing_cost: float = 0.0
    processing_cost_unit: CostUnit = CostUnit.PER_LITER
    packaging_cost: float = 0.0
    packaging_cost_unit: CostUnit = CostUnit.PER_KG
    direct: ChannelSplit = field(default_factory=lambda: ChannelSplit(100.0, 0.0))
    distributors: ChannelSplit = field(default_factory=ChannelSplit)
    third: ChannelSplit = field(default_factory=ChannelSplit)

    @classmethod
    def from_record(cls, row, cfg=DEFAULT_CONFIG):
        row = row or {}
        # Newer rows carry amount + unit, older ones the fixed per-liter / per-kg columns
        if _get(row, "processing_cost") is not None:
            processing = _num(row, "processing_cost", cfg)
            processing_unit = CostUnit.parse(_get(row, "processing_cost_unit"), CostUnit.PER_LITER)
        else:
            processing = _num(row, "processing_cost_per_liter", cfg)
            processing_unit = CostUnit.PER_LITER
        if _get(row, "packaging_cost") is not None:
            packaging = _num(row, "packaging_cost", cfg)
            packaging_unit = CostUnit.parse(_get(row, "packaging_cost_unit"), CostUnit.PER_KG)
        else:
            packaging = _num(row, "packaging_cost_per_kg", cfg)
            packaging_unit = CostUnit.PER_KG

        return cls(
            product_type=str(_get(row, "product_type") or ""),
            custom_label=_get(row, "product_type_custom") or _get(row, "custom_label"),
            distribution_percentage=_num(row, "distribution_percentage", cfg),
            liters_per_kg_product=_num(row, "liters_per_kg_product", cfg),
            processing_cost=processing,
            processing_cost_unit=processing_unit,
            packaging_cost=packaging,
            packaging_cost_unit=packaging_unit,
            direct=ChannelSplit(
                _optional_num(row, "sales_channel_direct_percentage", cfg, missing=100.0),
                _num(row, "direct_sale_price_per_kg", cfg),
            ),
            distributors=ChannelSplit(
                _num(row, "sales_channel_distributors_percentage", cfg),
                _num(row, "distributors_price_per_kg", cfg),
            ),
            third=ChannelSplit(
                _num(row, "sales_channel_third_percentage", cfg),
                _num(row, "third_channel_price_per_kg", cfg),
            ),
        )

    @property
    def label(self):
        return self.custom_label or self.product_type

    def channels(self):
        return {"direct": self.direct, "distributors": self.distributors, "third": self.third}


@dataclass(frozen=True)
class LegacyTransformation:
    """Single-product transformation row from before product mixes existed."""
    product_type: str = ""
    liters_per_kg_product: float = 0.0
    processing_cost_per_liter: float = 0.0
    packaging_cost_per_kg: float = 0.0
    product_price_per_kg: float = 0.0      # fallback for any channel without its own price
    sales_channel_direct_percentage: float = 100.0
    sales_channel_distributors_percentage: float = 0.0
    sales_channel_third_percentage: float = 0.0
    direct_sale_price_per_kg: Optional[float] = None
    distributors_price_per_kg: Optional[float] = None
    third_channel_price_per_kg: Optional[float] = None

    @classmethod
    def from_record(cls, row, cfg=DEFAULT_CONFIG):
        row = row or {}
        return cls(
            product_type=str(_get(row, "product_type") or ""),
            liters_per_kg_product=_num(row, "liters_per_kg_product", cfg),
            processing_cost_per_liter=_num(row, "processing_cost_per_liter", cfg),
            packaging_cost_per_kg=_num(row, "packaging_cost_per_kg", cfg),
            product_price_per_kg=_num(row, "product_price_per_kg", cfg),
            sales_channel_direct_percentage=_optional_num(
                row, "sales_channel_direct_percentage", cfg, missing=100.0
            ),
            sales_channel_distributors_percentage=_num(row, "sales_channel_distributors_percentage", cfg),
            sales_channel_third_percentage=_num(row, "sales_channel_third_percentage", cfg),
            direct_sale_price_per_kg=_optional_num(row, "direct_sale_price_per_kg", cfg),
            distributors_price_per_kg=_optional_num(row, "distributors_price_per_kg", cfg),
            third_channel_price_per_kg=_optional_num(row, "third_channel_price_per_kg", cfg),
        )


@dataclass(frozen=True)
class LactationParameters:
    lactation_days: int = 0
    dry_days: int = 0
    productive_life_years: float = 0.0
    replacement_rate_percent: float = 0.0  # informational only

    @classmethod
    def from_record(cls, row, cfg=DEFAULT_CONFIG):
        row = row or {}
        replacement = _get(row, "replacement_rate_percent")
        if replacement is None:
            replacement = _get(row, "replacement_rate")
        return cls(
            lactation_days=_int(row, "lactation_days", cfg),
            dry_days=_int(row, "dry_days", cfg),
            productive_life_years=_num(row, "productive_life_years", cfg),
            replacement_rate_percent=to_safe_number(replacement, cfg=cfg, field="replacement_rate"),
        )


@dataclass(frozen=True)
class YieldParameters:
    conversion_rate: float = 0.0
    efficiency_percentage: float = 100.0

    @classmethod
    def from_record(cls, row, cfg=DEFAULT_CONFIG):
        row = row or {}
        raw_efficiency = _get(row, "efficiency_percentage")
        if raw_efficiency is None or raw_efficiency == "":
            efficiency = 100.0
        else:
            efficiency = float(np.clip(_num(row, "efficiency_percentage", cfg), 0.0, 100.0))
        return cls(
            conversion_rate=_num(row, "conversion_rate", cfg),
            efficiency_percentage=efficiency,
        )


@dataclass(frozen=True)
class ScenarioInputs:
    production: ProductionInputs = field(default_factory=ProductionInputs)
    products: Tuple[TransformationProduct, ...] = ()
    legacy_transformation: Optional[LegacyTransformation] = None
    lactation: Optional[LactationParameters] = None
    yield_params: Optional[YieldParameters] = None
    scenario_type: str = ScenarioType.MILK_SALE.value

    @classmethod
    def from_record(cls, bundle, cfg=DEFAULT_CONFIG):
        """Build from the stored scenario bundle (productionData, transformationData, ...)."""
        bundle = bundle or {}
        products = _get(bundle, "transformation_products") or []
        legacy = _get(bundle, "transformation_data")
        lactation = _get(bundle, "lactation_data")
        yield_data = _get(bundle, "yield_data")
        scenario_type = _get(bundle, "scenario_type") or bundle.get("type") or ScenarioType.MILK_SALE.value

        return cls(
            production=ProductionInputs.from_record(_get(bundle, "production_data"), cfg),
            products=tuple(TransformationProduct.from_record(p, cfg) for p in products),
            legacy_transformation=LegacyTransformation.from_record(legacy, cfg) if legacy else None,
            lactation=LactationParameters.from_record(lactation, cfg) if lactation else None,
            yield_params=YieldParameters.from_record(yield_data, cfg) if yield_data else None,
            scenario_type=str(scenario_type),
        )
