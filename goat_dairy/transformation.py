"""Dairy transformation: splitting raw milk into products and sales channels.

One allocator handles every shape of transformation data. Legacy
single-product rows are turned into a one-product mix at 100% distribution
(:func:`legacy_to_product`) and go through the same code path.
"""
import logging
from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple

from goat_dairy.coerce import safe_ratio
from goat_dairy.config import DEFAULT_CONFIG
from goat_dairy.production import BaseMetrics, calculate_base_metrics
from goat_dairy.records import (
    SALES_CHANNELS,
    ChannelSplit,
    CostUnit,
    LegacyTransformation,
    TransformationProduct,
    to_jsonable,
)
from goat_dairy.validation import ValidationResult

logger = logging.getLogger(__name__)


# --- RESULT RECORDS ---
@dataclass(frozen=True)
class ChannelResult:
    percentage: float
    kg: float
    price_per_kg: float
    revenue: float


@dataclass(frozen=True)
class ProductBreakdown:
    product_type: str
    product_type_custom: Optional[str]
    distribution_percentage: float
    liters_per_kg_product: float
    product_liters: float
    product_kg: float
    processing_cost: float
    packaging_cost: float
    milk_cost: float                 # embodied cost of the raw milk used
    product_revenue: float
    sales_channels: Dict[str, ChannelResult]


@dataclass(frozen=True)
class ProductMixResult:
    total_liters: float
    total_product_kg: float
    total_processing_cost: float
    total_packaging_cost: float
    total_milk_cost: float
    total_product_revenue: float
    revenue_per_kg: float
    products_breakdown: Tuple[ProductBreakdown, ...]
    validation: Optional[ValidationResult] = None

    def to_dict(self):
        return to_jsonable(self)


@dataclass(frozen=True)
class TransformationComparison:
    milk_revenue: float
    milk_production_cost: float
    milk_margin: float
    product_revenue: float
    processing_cost: float
    packaging_cost: float
    transformation_margin: float
    margin_difference: float
    better_option: str               # "transformation" | "direct_sale"

    def to_dict(self):
        return to_jsonable(self)


@dataclass(frozen=True)
class ChannelMargin:
    percentage: float
    price_per_kg: float
    margin_per_kg: float
    margin_pct: float


@dataclass(frozen=True)
class UnitEconomics:
    liters_per_kg_product: float
    milk_cost_per_kg: float
    processing_cost_per_kg: float
    packaging_cost_per_kg: float
    total_cost_per_kg: float
    channels: Dict[str, ChannelMargin]

    def to_dict(self):
        return to_jsonable(self)


# --- HELPER FUNCTIONS ---
def _base(production, cfg):
    if isinstance(production, BaseMetrics):
        return production
    return calculate_base_metrics(production, cfg)


def _product(product, cfg):
    if isinstance(product, TransformationProduct):
        return product
    return TransformationProduct.from_record(product, cfg)


def _ratio(product):
    # Liters of milk per kg of product; a zero ratio would divide by zero
    if product.liters_per_kg_product > 0:
        return product.liters_per_kg_product
    logger.debug("Product %r has no liters/kg ratio, using 1", product.label)
    return 1.0


def _unit_cost(rate, unit, liters, kg):
    return rate * (liters if unit == CostUnit.PER_LITER else kg)


def legacy_to_product(legacy, cfg=DEFAULT_CONFIG):
    """Normalize a single-product transformation row into a 100% product."""
    if not isinstance(legacy, LegacyTransformation):
        legacy = LegacyTransformation.from_record(legacy, cfg)

    def price(own):
        return legacy.product_price_per_kg if own is None else own

    return TransformationProduct(
        product_type=legacy.product_type,
        distribution_percentage=100.0,
        liters_per_kg_product=legacy.liters_per_kg_product,
        processing_cost=legacy.processing_cost_per_liter,
        processing_cost_unit=CostUnit.PER_LITER,
        packaging_cost=legacy.packaging_cost_per_kg,
        packaging_cost_unit=CostUnit.PER_KG,
        direct=ChannelSplit(legacy.sales_channel_direct_percentage, price(legacy.direct_sale_price_per_kg)),
        distributors=ChannelSplit(
            legacy.sales_channel_distributors_percentage, price(legacy.distributors_price_per_kg)
        ),
        third=ChannelSplit(legacy.sales_channel_third_percentage, price(legacy.third_channel_price_per_kg)),
    )


def balance_channels(product):
    """Make the three channel shares add up to 100 by adjusting the third one.

    When direct + distributors already exceed 100, direct gives way and third is 0.
    """
    direct = product.direct.percentage
    dist = product.distributors.percentage
    remaining = 100.0 - direct - dist
    if remaining >= 0:
        return replace(product, third=replace(product.third, percentage=remaining))
    return replace(
        product,
        direct=replace(product.direct, percentage=max(0.0, 100.0 - dist)),
        third=replace(product.third, percentage=0.0),
    )


# --- ALLOCATOR ---
def allocate_product(product, total_liters, cost_per_liter):
    ratio = _ratio(product)

    # 1. Milk allocated to this product
    product_liters = total_liters * (product.distribution_percentage / 100)
    product_kg = product_liters / ratio

    # 2. Costs (processing / packaging by unit, plus the milk itself)
    processing = _unit_cost(product.processing_cost, product.processing_cost_unit, product_liters, product_kg)
    packaging = _unit_cost(product.packaging_cost, product.packaging_cost_unit, product_liters, product_kg)
    milk_cost = cost_per_liter * product_liters

    # 3. Sales channels
    channels = {}
    for name, split in product.channels().items():
        kg = product_kg * (split.percentage / 100)
        channels[name] = ChannelResult(
            percentage=split.percentage,
            kg=kg,
            price_per_kg=split.price_per_kg,
            revenue=split.price_per_kg * kg,
        )

    return ProductBreakdown(
        product_type=product.product_type,
        product_type_custom=product.custom_label,
        distribution_percentage=product.distribution_percentage,
        liters_per_kg_product=product.liters_per_kg_product,
        product_liters=product_liters,
        product_kg=product_kg,
        processing_cost=processing,
        packaging_cost=packaging,
        milk_cost=milk_cost,
        product_revenue=sum(channels[c].revenue for c in SALES_CHANNELS),
        sales_channels=channels,
    )


def allocate_product_mix(production, products, cfg=DEFAULT_CONFIG, validation=None):
    """Distribute the scenario's milk over ``products`` and their sales channels.

    ``production`` may be computed ``BaseMetrics``, ``ProductionInputs`` or a
    storage row. Percentages are used as given: a mix that does not add up to
    100% is computed anyway (see ``validate_product_mix``).
    """
    base = _base(production, cfg)
    items = [_product(p, cfg) for p in (products or [])]
    total_liters = base.total_production_liters

    breakdown = tuple(allocate_product(p, total_liters, base.cost_per_liter) for p in items)

    total_kg = sum(b.product_kg for b in breakdown)
    total_revenue = sum(b.product_revenue for b in breakdown)
    return ProductMixResult(
        total_liters=total_liters,
        total_product_kg=total_kg,
        total_processing_cost=sum(b.processing_cost for b in breakdown),
        total_packaging_cost=sum(b.packaging_cost for b in breakdown),
        total_milk_cost=sum(b.milk_cost for b in breakdown),
        total_product_revenue=total_revenue,
        revenue_per_kg=safe_ratio(total_revenue, total_kg),
        products_breakdown=breakdown,
        validation=validation,
    )


def allocate_legacy_product(production, legacy, cfg=DEFAULT_CONFIG):
    return allocate_product_mix(production, [legacy_to_product(legacy, cfg)], cfg)


# --- ANALYSIS ---
def compare_milk_vs_transformation(production, products, cfg=DEFAULT_CONFIG):
    """Margin of selling the milk as-is against transforming it.

    The raw milk cost is charged once on both sides so the margins compare like for like.
    """
    base = _base(production, cfg)
    mix = allocate_product_mix(base, products, cfg)

    milk_cost = base.total_costs
    milk_margin = base.total_revenue - milk_cost
    transformation_margin = (
        mix.total_product_revenue - mix.total_processing_cost - mix.total_packaging_cost - milk_cost
    )
    return TransformationComparison(
        milk_revenue=base.total_revenue,
        milk_production_cost=milk_cost,
        milk_margin=milk_margin,
        product_revenue=mix.total_product_revenue,
        processing_cost=mix.total_processing_cost,
        packaging_cost=mix.total_packaging_cost,
        transformation_margin=transformation_margin,
        margin_difference=transformation_margin - milk_margin,
        better_option="transformation" if transformation_margin > milk_margin else "direct_sale",
    )


def product_unit_economics(production, product, cfg=DEFAULT_CONFIG):
    base = _base(production, cfg)
    product = _product(product, cfg)
    ratio = _ratio(product)

    milk = base.cost_per_liter * ratio
    # One kg of product consumes ``ratio`` liters
    processing = _unit_cost(product.processing_cost, product.processing_cost_unit, ratio, 1.0)
    packaging = _unit_cost(product.packaging_cost, product.packaging_cost_unit, ratio, 1.0)
    total = milk + processing + packaging

    channels = {}
    for name, split in product.channels().items():
        margin = split.price_per_kg - total
        channels[name] = ChannelMargin(
            percentage=split.percentage,
            price_per_kg=split.price_per_kg,
            margin_per_kg=margin,
            margin_pct=safe_ratio(margin, split.price_per_kg) * 100,
        )

    return UnitEconomics(
        liters_per_kg_product=ratio,
        milk_cost_per_kg=milk,
        processing_cost_per_kg=processing,
        packaging_cost_per_kg=packaging,
        total_cost_per_kg=total,
        channels=channels,
    )


def channel_mix(mix):
    """Share of the mix's product kg sold through each channel, in percent."""
    kg = {name: 0.0 for name in SALES_CHANNELS}
    for item in mix.products_breakdown:
        for name in SALES_CHANNELS:
            kg[name] += item.sales_channels[name].kg
    return {name: safe_ratio(kg[name], mix.total_product_kg) * 100 for name in SALES_CHANNELS}
