import logging
from dataclasses import dataclass, field
from typing import List

import numpy as np

from goat_dairy.config import DEFAULT_CONFIG
from goat_dairy.records import TransformationProduct

logger = logging.getLogger(__name__)


class EngineError(Exception):
    pass


class PercentageError(EngineError, ValueError):
    """Raised only when ``strict_percentages`` is on and a product mix does not balance."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class UnknownRankingMode(EngineError, ValueError):
    pass


class UnknownSortKey(EngineError, ValueError):
    pass


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)

    def to_dict(self):
        return {"valid": self.valid, "errors": list(self.errors)}


def _sums_to_100(total, cfg):
    return bool(np.isclose(total, 100.0, rtol=0.0, atol=cfg.percentage_tolerance))


def validate_product_mix(products, cfg=DEFAULT_CONFIG):
    """Check distribution and channel percentages of a product mix. Never raises."""
    errors = []
    products = [
        p if isinstance(p, TransformationProduct) else TransformationProduct.from_record(p, cfg)
        for p in (products or [])
    ]
    if not products:
        return ValidationResult(False, ["At least one product is required"])

    distribution = np.array([p.distribution_percentage for p in products], dtype=float)
    if not _sums_to_100(distribution.sum(), cfg):
        errors.append(f"Distribution percentages must sum to 100% (currently {distribution.sum():.2f}%)")

    for i, product in enumerate(products, start=1):
        name = product.label or f"product {i}"
        if product.distribution_percentage < 0:
            errors.append(f"{name}: distribution percentage cannot be negative")
        shares = {k: c.percentage for k, c in product.channels().items()}
        for channel, pct in shares.items():
            if pct < 0:
                errors.append(f"{name}: {channel} channel percentage cannot be negative")
        channel_total = sum(shares.values())
        if not _sums_to_100(channel_total, cfg):
            errors.append(f"{name}: sales channel percentages must sum to 100% (currently {channel_total:.2f}%)")

    if errors:
        logger.warning("Product mix does not validate: %s", "; ".join(errors))
    return ValidationResult(not errors, errors)
