import pytest

from brenner_engine.config import Settings, get_settings
from brenner_engine.evaluation import InflationPolicy, validate_potency_check
from brenner_engine.records import PotencyCheck


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults(monkeypatch) -> None:
    for name in ("BRENNER_MIN_TEXT_LENGTH", "BRENNER_INFLATED_TOTAL_THRESHOLD", "BRENNER_FLAG_CHEAP_AND_FAST"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.min_text_length == 10
    assert settings.inflated_total_threshold == 11
    assert settings.flag_cheap_and_fast is True
    assert settings.confidence_boost_prediction_count == 3
    assert settings.potency_failure_confidence_penalty == 2


def test_environment_overrides_inflation_policy(monkeypatch) -> None:
    monkeypatch.setenv("BRENNER_INFLATED_TOTAL_THRESHOLD", "9")
    monkeypatch.setenv("BRENNER_FLAG_CHEAP_AND_FAST", "false")

    policy = InflationPolicy.from_settings()

    assert policy.inflated_total_threshold == 9
    assert policy.flag_cheap_and_fast is False


def test_environment_overrides_potency_length(monkeypatch) -> None:
    monkeypatch.setenv("BRENNER_MIN_TEXT_LENGTH", "3")
    assert validate_potency_check(PotencyCheck(positive_control="WT+")).valid is True
