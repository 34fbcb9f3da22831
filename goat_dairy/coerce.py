import logging

import numpy as np

from goat_dairy.config import DEFAULT_CONFIG

logger = logging.getLogger(__name__)


def parse_number(value):
    # Returns a finite float or None
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not np.isfinite(number):
        return None
    return number


def to_safe_number(value, default=0.0, cfg=DEFAULT_CONFIG, field=None):
    """Parse a stored numeric field; anything unparseable becomes ``default``.

    Storage rows carry numbers or numeric strings. Partial scenarios must still
    produce a preview, so nothing here raises.
    """
    number = parse_number(value)
    if number is None:
        if value not in (None, ""):
            logger.warning("Non-numeric value %r for %s, using %s", value, field or "field", default)
        return default
    if cfg.clamp_inputs:
        clamped = float(np.clip(number, cfg.decimal_min, cfg.decimal_max))
        if clamped != number:
            logger.warning("Value %s for %s outside storage bounds, clamped to %s", number, field or "field", clamped)
        return clamped
    return number


def to_safe_int(value, default=0, cfg=DEFAULT_CONFIG, field=None):
    number = parse_number(value)
    if number is None:
        if value not in (None, ""):
            logger.warning("Non-numeric value %r for %s, using %s", value, field or "field", default)
        return default
    number = int(number)
    if cfg.clamp_inputs:
        clamped = int(np.clip(number, cfg.int_min, cfg.int_max))
        if clamped != number:
            logger.warning("Value %s for %s outside storage bounds, clamped to %s", number, field or "field", clamped)
        return clamped
    return number


def safe_ratio(numerator, denominator):
    # x / 0 -> 0 instead of inf/nan
    if not denominator:
        return 0.0
    return numerator / denominator
