import pandas as pd
import pytest

from goat_dairy.config import EngineConfig
from goat_dairy.gestation import calculate_gestation_timeline, gestation_stage, timeline_frame


def test_timeline_dates():
    t = calculate_gestation_timeline("2026-01-01", 150, today="2026-01-20")

    assert t.birth_date == pd.Timestamp("2026-05-31")
    assert t.days_from_mating == 19
    assert t.current_week == 2
    assert t.days_until_birth == 131
    assert t.total_weeks == 22
    assert t.is_pregnant
    assert not t.has_given_birth


def test_current_and_past_weeks():
    t = calculate_gestation_timeline("2026-01-01", 150, today="2026-01-20")
    current = [w.week for w in t.weeks if w.is_current]
    past = [w.week for w in t.weeks if w.is_past]
    assert current == [3]
    assert past == [1, 2]


def test_weeks_and_alerts():
    t = calculate_gestation_timeline("2026-01-01", 150, today="2026-01-01")
    assert len(t.weeks) == 22
    assert t.weeks[0].start_date == pd.Timestamp("2026-01-01")
    assert t.weeks[1].start_date == pd.Timestamp("2026-01-08")
    assert t.weeks[-1].end_day == 150
    assert t.weeks[0].alerts == (("info", "gestation_week_1"),)
    assert t.weeks[17].alerts == (("error", "gestation_week_18"),)
    assert t.weeks[5].alerts == ()


def test_stages():
    assert gestation_stage(7, 22) == "early"
    assert gestation_stage(8, 22) == "mid"
    assert gestation_stage(14, 22) == "mid"
    assert gestation_stage(15, 22) == "late"


def test_missing_days_use_default():
    assert calculate_gestation_timeline("2026-01-01", None, today="2026-01-02").gestation_days == 150
    assert calculate_gestation_timeline("2026-01-01", "0", today="2026-01-02").gestation_days == 150
    cfg = EngineConfig.from_dict({"default_gestation_days": 145})
    assert calculate_gestation_timeline("2026-01-01", today="2026-01-02", cfg=cfg).gestation_days == 145


def test_after_birth():
    t = calculate_gestation_timeline("2025-01-01", 150, today="2026-01-01")
    assert t.has_given_birth
    assert not t.is_pregnant
    assert t.days_until_birth < 0


def test_before_mating():
    t = calculate_gestation_timeline("2026-03-01", 150, today="2026-02-20")
    assert not t.is_pregnant
    assert t.current_week == 0
    assert t.days_from_mating == 0
    assert not any(w.is_current or w.is_past for w in t.weeks)


def test_to_dict_and_frame():
    t = calculate_gestation_timeline("2026-01-01", 150, today="2026-01-20")
    data = t.to_dict()
    assert data["birthDate"] == "2026-05-31"
    assert data["weeks"][2]["startDate"] == "2026-01-15"
    assert data["weeks"][2]["isCurrent"] is True

    df = timeline_frame(t)
    assert df.index.name == "week"
    assert df.loc[3, "is_current"]
    assert df.loc[1, "alerts"] == ["gestation_week_1"]
