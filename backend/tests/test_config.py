# tests/test_config.py
import pytest

from app.config import DEFAULT_ASSEMBLIES, DEFAULT_OVERLAP_RATIO, get_settings


@pytest.mark.parametrize(
    "raw,expected",
    [("0.5", 0.5), ("1.5", 1.0), ("-0.2", 0.0), ("abc", DEFAULT_OVERLAP_RATIO), ("  ", DEFAULT_OVERLAP_RATIO)],
)
def test_overlap_ratio_is_parsed_and_clamped(monkeypatch, raw, expected):
    monkeypatch.setenv("ATTENDANCE_OVERLAP_RATIO", raw)
    assert get_settings().attendance_overlap_ratio == expected


def test_defaults_without_environment(monkeypatch):
    for name in ("ATTENDANCE_OVERLAP_RATIO", "ASSEMBLIES", "OPENAI_API_KEY", "ADMIN_EMAIL"):
        monkeypatch.delenv(name, raising=False)
    s = get_settings()
    assert s.attendance_overlap_ratio == DEFAULT_OVERLAP_RATIO
    assert s.assemblies == DEFAULT_ASSEMBLIES
    assert s.openai_api_key is None
    assert s.admin_email is None


def test_roster_from_environment(monkeypatch):
    monkeypatch.setenv("ASSEMBLIES", " zion ,  house   of prayer,,")
    assert get_settings().assemblies == ["ZION", "HOUSE OF PRAYER"]
