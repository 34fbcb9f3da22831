import math
from dataclasses import dataclass
from typing import Tuple

import pandas as pd

from goat_dairy.coerce import to_safe_int
from goat_dairy.config import DEFAULT_CONFIG
from goat_dairy.records import to_jsonable

# Week -> (level, key); keys are translated by the UI
WEEK_ALERTS = {
    1: [("info", "gestation_week_1")],
    2: [("info", "gestation_week_2")],
    3: [("success", "gestation_week_3_to_5")],
    4: [("success", "gestation_week_3_to_5")],
    5: [("success", "gestation_week_3_to_5")],
    8: [("warning", "gestation_week_8")],
    12: [("info", "gestation_week_12")],
    15: [("warning", "gestation_week_15")],
    18: [("error", "gestation_week_18")],
    20: [("error", "gestation_week_20")],
    21: [("error", "gestation_week_21")],
    22: [("error", "gestation_week_21")],
}


@dataclass(frozen=True)
class GestationWeek:
    week: int
    start_day: int
    end_day: int
    start_date: pd.Timestamp
    stage: str                  # early | mid | late
    alerts: Tuple[Tuple[str, str], ...]
    is_current: bool
    is_past: bool


@dataclass(frozen=True)
class GestationTimeline:
    mating_date: pd.Timestamp
    birth_date: pd.Timestamp
    gestation_days: int
    total_weeks: int
    current_week: int
    days_from_mating: int
    days_until_birth: int
    weeks: Tuple[GestationWeek, ...]
    is_pregnant: bool
    has_given_birth: bool

    def to_dict(self):
        data = to_jsonable(self)
        # Timestamps -> ISO dates
        data["matingDate"] = self.mating_date.date().isoformat()
        data["birthDate"] = self.birth_date.date().isoformat()
        for row, week in zip(data["weeks"], self.weeks):
            row["startDate"] = week.start_date.date().isoformat()
        return data


def gestation_stage(week, total_weeks):
    progress = week / total_weeks
    if progress <= 0.33:
        return "early"
    if progress <= 0.67:
        return "mid"
    return "late"


def calculate_gestation_timeline(mating_date, gestation_days=None, today=None, cfg=DEFAULT_CONFIG):
    """Week-by-week gestation calendar from a mating date.

    Missing or zero gestation length falls back to ``cfg.default_gestation_days``.
    ``today`` defaults to the current date.
    """
    mating = pd.Timestamp(mating_date).normalize()
    now = pd.Timestamp(today).normalize() if today is not None else pd.Timestamp.today().normalize()
    days = to_safe_int(gestation_days, cfg=cfg, field="gestation_days")
    if days <= 0:
        days = cfg.default_gestation_days

    days_from_mating = (now - mating).days
    current_week = days_from_mating // 7   # completed weeks; week current_week + 1 is in progress
    total_weeks = math.ceil(days / 7)

    starts = pd.date_range(start=mating, periods=total_weeks, freq="7D")
    weeks = []
    for week, start in enumerate(starts, start=1):
        weeks.append(GestationWeek(
            week=week,
            start_day=(week - 1) * 7,
            end_day=min(week * 7, days),
            start_date=start,
            stage=gestation_stage(week, total_weeks),
            alerts=tuple(WEEK_ALERTS.get(week, ())),
            is_current=week == current_week + 1,
            is_past=week <= current_week,
        ))

    return GestationTimeline(
        mating_date=mating,
        birth_date=mating + pd.Timedelta(days=days),
        gestation_days=days,
        total_weeks=total_weeks,
        current_week=max(0, current_week),
        days_from_mating=max(0, days_from_mating),
        days_until_birth=days - days_from_mating,
        weeks=tuple(weeks),
        is_pregnant=0 <= days_from_mating <= days,
        has_given_birth=days_from_mating > days,
    )


def timeline_frame(timeline):
    df = pd.DataFrame([
        {
            "week": w.week,
            "start_date": w.start_date,
            "start_day": w.start_day,
            "end_day": w.end_day,
            "stage": w.stage,
            "alerts": [key for _, key in w.alerts],
            "is_current": w.is_current,
            "is_past": w.is_past,
        }
        for w in timeline.weeks
    ])
    return df.set_index("week")
