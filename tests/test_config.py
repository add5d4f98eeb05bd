"""Tests for settings loaded from the environment."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from relpath.config import RelpathSettings, get_settings


@pytest.fixture
def clean_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults(clean_settings) -> None:
    settings = get_settings()

    assert settings.FILTER_PARAM == "filter"
    assert settings.DEDUPLICATE_IDS is True
    assert settings.MISSING_NODE_POLICY == "skip"
    assert settings.MAX_PATH_DEPTH == 16
    assert get_settings() is settings


def test_environment_overrides(clean_settings, monkeypatch) -> None:
    monkeypatch.setenv("RELPATH_MISSING_NODE_POLICY", "fail")
    monkeypatch.setenv("RELPATH_DEDUPLICATE_IDS", "false")
    monkeypatch.setenv("RELPATH_FILTER_PARAM", "q")

    settings = get_settings()

    assert settings.MISSING_NODE_POLICY == "fail"
    assert settings.DEDUPLICATE_IDS is False
    assert settings.FILTER_PARAM == "q"


def test_invalid_policy(monkeypatch) -> None:
    monkeypatch.setenv("RELPATH_MISSING_NODE_POLICY", "ignore")

    with pytest.raises(ValidationError):
        RelpathSettings()

