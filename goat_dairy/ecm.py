"""Breed reference ECM engine (energy corrected milk).

    ECM(kg) = milk(kg) x (0.327 + 0.122 x fat% + 0.077 x protein%)

All quantities are in kg; liters are only given as an approximation
(kg / density). "Fat + protein" is the sum of those two components, not total
solids. The ``calc_*`` helpers are plain arithmetic and therefore also work
element-wise on numpy arrays and pandas Series.
"""
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import pandas as pd

from goat_dairy.coerce import parse_number, to_safe_number
from goat_dairy.config import DEFAULT_CONFIG
from goat_dairy.records import to_jsonable
from goat_dairy.validation import UnknownRankingMode, ValidationResult

logger = logging.getLogger(__name__)

# Scientific constants, not configurable
ECM_BASE = 0.327
ECM_FAT_FACTOR = 0.122
ECM_PROTEIN_FACTOR = 0.077

RANKING_KEYS = {
    "per_head": "ecm_kg_lifetime",
    "total": "ecm_kg_lifetime_total",
}

# (min, max, message) per override
OVERRIDE_BOUNDS = {
    "fat_pct": (0, 20, "fat_pct must be between 0 and 20"),
    "protein_pct": (0, 20, "protein_pct must be between 0 and 20"),
    "lact_days_avg": (100, 400, "lact_days_avg must be between 100 and 400"),
    "lactations_lifetime_avg": (1, 10, "lactations_lifetime_avg must be between 1 and 10"),
    "herd_size": (1, 100000, "herd_size must be between 1 and 100000"),
}


# --- FORMULAS ---
def calc_fat_kg(milk_kg, fat_pct):
    return milk_kg * (fat_pct / 100)


def calc_protein_kg(milk_kg, protein_pct):
    return milk_kg * (protein_pct / 100)


def calc_fat_plus_protein_pct(fat_pct, protein_pct):
    return fat_pct + protein_pct


def calc_fat_plus_protein_kg(milk_kg, fat_pct, protein_pct):
    return calc_fat_kg(milk_kg, fat_pct) + calc_protein_kg(milk_kg, protein_pct)


def calc_ecm_kg(milk_kg, fat_pct, protein_pct):
    return milk_kg * (ECM_BASE + ECM_FAT_FACTOR * fat_pct + ECM_PROTEIN_FACTOR * protein_pct)


def calc_ecm_lifetime_kg(ecm_kg_per_year, lactations_lifetime_avg):
    return ecm_kg_per_year * lactations_lifetime_avg


# --- RECORDS ---
@dataclass(frozen=True)
class BreedReference:
    breed_key: str
    breed_name: str
    milk_kg_yr: float = 0.0
    fat_pct: float = 0.0
    protein_pct: float = 0.0
    lact_days_avg: float = 0.0
    lactations_lifetime_avg: float = 0.0
    # country_or_system, source_tags, notes, image_asset_key ...
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_record(cls, row, cfg=DEFAULT_CONFIG):
        numeric = ("milk_kg_yr", "fat_pct", "protein_pct", "lact_days_avg", "lactations_lifetime_avg")
        # Stored derived columns (ecm_kg_yr, ...) are recomputed, never trusted
        derived = {"fat_kg_yr", "protein_kg_yr", "fat_plus_protein_pct", "fat_plus_protein_kg_yr",
                   "ecm_kg_yr", "ecm_kg_lifetime", "approx_liters_note", "id"}
        skip = set(numeric) | derived | {"breed_key", "breed_name", "metadata"}
        metadata = dict(row.get("metadata") or {})
        metadata.update({k: v for k, v in row.items() if k not in skip})
        return cls(
            breed_key=str(row.get("breed_key") or ""),
            breed_name=str(row.get("breed_name") or ""),
            metadata=metadata,
            **{k: to_safe_number(row.get(k), cfg=cfg, field=k) for k in numeric},
        )


@dataclass(frozen=True)
class BreedScenario:
    breed_key: str
    breed_name: str
    metadata: Dict[str, Any]

    # Input parameters (reference or overridden)
    lact_days_avg: float
    lactations_lifetime_avg: float
    fat_pct: float
    protein_pct: float
    fat_plus_protein_pct: float

    # Per animal, per year
    milk_kg_yr: float
    milk_L_yr_approx: float
    fat_kg_yr: float
    protein_kg_yr: float
    fat_plus_protein_kg_yr: float
    ecm_kg_yr: float

    # Per animal, per lactation (one lactation per year)
    ecm_per_lactation: float
    milk_per_lactation: float
    fat_kg_per_lactation: float
    protein_kg_per_lactation: float

    # Per animal, lifetime
    milk_kg_lifetime: float
    milk_L_lifetime_approx: float
    fat_kg_lifetime: float
    protein_kg_lifetime: float
    fat_plus_protein_kg_lifetime: float
    ecm_kg_lifetime: float

    # Herd totals
    herd_size: float
    milk_kg_yr_total: float
    fat_kg_yr_total: float
    protein_kg_yr_total: float
    fat_plus_protein_kg_yr_total: float
    ecm_kg_yr_total: float
    ecm_kg_lifetime_total: float

    approx_liters_note: str

    def to_dict(self):
        return to_jsonable(self, camel_case=False)


@dataclass(frozen=True)
class BreedComparison:
    winner: str
    delta: Dict[str, float]
    ecm_delta_percent: float
    a_scenario: Any
    b_scenario: Any

    def to_dict(self):
        def plain(s):
            return s.to_dict() if isinstance(s, BreedScenario) else dict(s)
        return {
            "winner": self.winner,
            "delta": dict(self.delta),
            "ecmDeltaPercent": self.ecm_delta_percent,
            "aScenario": plain(self.a_scenario),
            "bScenario": plain(self.b_scenario),
        }


# --- ENGINE ---
def _reference(ref, cfg):
    if isinstance(ref, BreedReference):
        return ref
    return BreedReference.from_record(ref, cfg)


def _field(scenario, name):
    if isinstance(scenario, Mapping):
        return to_safe_number(scenario.get(name), field=name)
    return to_safe_number(getattr(scenario, name, None), field=name)


def build_breed_scenario(ref, overrides: Optional[dict] = None, cfg=DEFAULT_CONFIG):
    """Derive every per-year, per-lactation, lifetime and herd figure for a breed.

    ``overrides`` replaces reference values where given (None means "not
    overridden"). Call ``validate_breed_scenario`` first; nothing is
    re-validated here.
    """
    ref = _reference(ref, cfg)
    overrides = overrides or {}

    def pick(name, fallback):
        value = overrides.get(name)
        if value is None:
            return fallback
        return to_safe_number(value, cfg=cfg, field=name)

    milk_kg_yr = pick("milk_kg_yr", ref.milk_kg_yr)
    fat_pct = pick("fat_pct", ref.fat_pct)
    protein_pct = pick("protein_pct", ref.protein_pct)
    lact_days_avg = pick("lact_days_avg", ref.lact_days_avg)
    lactations = pick("lactations_lifetime_avg", ref.lactations_lifetime_avg)
    herd_size = pick("herd_size", 1.0)

    fat_kg_yr = calc_fat_kg(milk_kg_yr, fat_pct)
    protein_kg_yr = calc_protein_kg(milk_kg_yr, protein_pct)
    fat_plus_protein_kg_yr = fat_kg_yr + protein_kg_yr
    ecm_kg_yr = calc_ecm_kg(milk_kg_yr, fat_pct, protein_pct)
    ecm_kg_lifetime = calc_ecm_lifetime_kg(ecm_kg_yr, lactations)

    milk_L_yr_approx = milk_kg_yr / cfg.kg_per_liter

    return BreedScenario(
        breed_key=ref.breed_key,
        breed_name=ref.breed_name,
        metadata=dict(ref.metadata),
        lact_days_avg=lact_days_avg,
        lactations_lifetime_avg=lactations,
        fat_pct=fat_pct,
        protein_pct=protein_pct,
        fat_plus_protein_pct=calc_fat_plus_protein_pct(fat_pct, protein_pct),
        milk_kg_yr=milk_kg_yr,
        milk_L_yr_approx=milk_L_yr_approx,
        fat_kg_yr=fat_kg_yr,
        protein_kg_yr=protein_kg_yr,
        fat_plus_protein_kg_yr=fat_plus_protein_kg_yr,
        ecm_kg_yr=ecm_kg_yr,
        ecm_per_lactation=ecm_kg_yr,
        milk_per_lactation=milk_kg_yr,
        fat_kg_per_lactation=fat_kg_yr,
        protein_kg_per_lactation=protein_kg_yr,
        milk_kg_lifetime=milk_kg_yr * lactations,
        milk_L_lifetime_approx=milk_L_yr_approx * lactations,
        fat_kg_lifetime=fat_kg_yr * lactations,
        protein_kg_lifetime=protein_kg_yr * lactations,
        fat_plus_protein_kg_lifetime=fat_plus_protein_kg_yr * lactations,
        ecm_kg_lifetime=ecm_kg_lifetime,
        herd_size=herd_size,
        milk_kg_yr_total=milk_kg_yr * herd_size,
        fat_kg_yr_total=fat_kg_yr * herd_size,
        protein_kg_yr_total=protein_kg_yr * herd_size,
        fat_plus_protein_kg_yr_total=fat_plus_protein_kg_yr * herd_size,
        ecm_kg_yr_total=ecm_kg_yr * herd_size,
        ecm_kg_lifetime_total=ecm_kg_lifetime * herd_size,
        approx_liters_note=f"≈ {milk_L_yr_approx:,.0f} L/yr (kg / {cfg.kg_per_liter})",
    )


def compare_two(a, b):
    """A vs B on herd totals. Ties go to A; the percentage is relative to B."""
    def lifetime_total(s, name):
        return _field(s, name) * _field(s, "herd_size")

    delta = {
        "ecm_kg_lifetime_total": _field(a, "ecm_kg_lifetime_total") - _field(b, "ecm_kg_lifetime_total"),
        "ecm_kg_yr_total": _field(a, "ecm_kg_yr_total") - _field(b, "ecm_kg_yr_total"),
        "fat_plus_protein_kg_yr_total": (
            _field(a, "fat_plus_protein_kg_yr_total") - _field(b, "fat_plus_protein_kg_yr_total")
        ),
        "fat_kg_lifetime_total": lifetime_total(a, "fat_kg_lifetime") - lifetime_total(b, "fat_kg_lifetime"),
        "protein_kg_lifetime_total": (
            lifetime_total(a, "protein_kg_lifetime") - lifetime_total(b, "protein_kg_lifetime")
        ),
    }
    b_ecm = _field(b, "ecm_kg_lifetime_total")
    winner = "A" if _field(a, "ecm_kg_lifetime_total") >= b_ecm else "B"
    return BreedComparison(
        winner=winner,
        delta=delta,
        ecm_delta_percent=delta["ecm_kg_lifetime_total"] / b_ecm * 100 if b_ecm > 0 else 0.0,
        a_scenario=a,
        b_scenario=b,
    )


def rank_scenarios(scenarios, mode="per_head"):
    """Sort breed scenarios by lifetime ECM, best first.

    ``mode`` is "per_head" (ECM per animal) or "total" (herd total). Equal
    values are ordered by breed_key so the ranking is reproducible.
    """
    if mode not in RANKING_KEYS:
        raise UnknownRankingMode(f"Unknown ranking mode {mode!r}; use 'per_head' or 'total'")
    scenarios = list(scenarios)
    if not scenarios:
        return []

    key = RANKING_KEYS[mode]
    order = pd.DataFrame({
        "position": range(len(scenarios)),
        "value": [_field(s, key) for s in scenarios],
        "breed_key": [
            str(s.get("breed_key", "") if isinstance(s, Mapping) else getattr(s, "breed_key", ""))
            for s in scenarios
        ],
    }).sort_values(["value", "breed_key"], ascending=[False, True], kind="mergesort")
    return [scenarios[i] for i in order["position"]]


def breed_table(scenarios, mode="per_head"):
    ranked = rank_scenarios(scenarios, mode)
    df = pd.DataFrame([s.to_dict() if isinstance(s, BreedScenario) else dict(s) for s in ranked])
    df.insert(0, "rank", range(1, len(df) + 1))
    return df


def validate_breed_scenario(overrides):
    """Bounds-check user overrides. Returns a ValidationResult, never raises."""
    errors = []
    overrides = overrides or {}

    if overrides.get("milk_kg_yr") is not None:
        value = parse_number(overrides["milk_kg_yr"])
        if value is None or value < 0:
            errors.append("milk_kg_yr must be a positive number")
        elif value > 10000:
            errors.append("milk_kg_yr seems unrealistic (> 10000 kg)")

    for name, (low, high, message) in OVERRIDE_BOUNDS.items():
        if overrides.get(name) is None:
            continue
        value = parse_number(overrides[name])
        if value is None or value < low or value > high:
            errors.append(message)

    return ValidationResult(valid=not errors, errors=errors)
