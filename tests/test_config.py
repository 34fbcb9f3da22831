import logging

from goat_dairy.config import BASE_CONFIG, DEFAULT_CONFIG, LOG_FORMAT, EngineConfig, configure_logging


def test_defaults():
    assert DEFAULT_CONFIG.percentage_tolerance == 0.01
    assert DEFAULT_CONFIG.kg_per_liter == 1.03
    assert DEFAULT_CONFIG.strict_percentages is False
    assert EngineConfig() == DEFAULT_CONFIG
    assert EngineConfig(**BASE_CONFIG) == DEFAULT_CONFIG


def test_from_dict_merges_and_ignores_unknown_keys(caplog):
    cfg = EngineConfig.from_dict({"strict_percentages": True, "colour": "blue"})
    assert cfg.strict_percentages is True
    assert cfg.days_per_year == 365
    assert "colour" in caplog.text


def test_configure_logging(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    configure_logging("DEBUG")
    assert calls == [{"level": "DEBUG", "format": LOG_FORMAT}]
