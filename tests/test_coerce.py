import math

from goat_dairy.coerce import parse_number, safe_ratio, to_safe_int, to_safe_number
from goat_dairy.config import DEFAULT_CONFIG, EngineConfig


def test_numbers_and_numeric_strings():
    assert to_safe_number(12.5) == 12.5
    assert to_safe_number("12.5") == 12.5
    assert to_safe_number(" 7 ") == 7.0
    assert to_safe_int("365") == 365
    assert to_safe_int(365.9) == 365


def test_malformed_values_become_zero():
    assert to_safe_number(None) == 0.0
    assert to_safe_number("") == 0.0
    assert to_safe_number("abc") == 0.0
    assert to_safe_number(float("nan")) == 0.0
    assert to_safe_number(math.inf) == 0.0
    assert to_safe_number(True) == 0.0
    assert to_safe_int("n/a") == 0


def test_custom_default():
    assert to_safe_number(None, default=100.0) == 100.0
    assert parse_number("x") is None


def test_values_are_clamped_to_storage_bounds():
    assert to_safe_number(1e12) == DEFAULT_CONFIG.decimal_max
    assert to_safe_number(-1e12) == DEFAULT_CONFIG.decimal_min
    assert to_safe_int(-5) == 0
    assert to_safe_int(1e10) == DEFAULT_CONFIG.int_max


def test_clamping_can_be_disabled():
    cfg = EngineConfig.from_dict({"clamp_inputs": False})
    assert to_safe_number(1e12, cfg=cfg) == 1e12
    assert to_safe_int(-5, cfg=cfg) == -5


def test_safe_ratio():
    assert safe_ratio(10, 4) == 2.5
    assert safe_ratio(10, 0) == 0.0
