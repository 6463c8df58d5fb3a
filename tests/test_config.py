from __future__ import annotations

import pytest

from translatable import configure, get_settings, reset_settings


def test_locales_accept_comma_and_semicolon_separated_strings() -> None:
    assert configure(locales="en, fr;de").locales == ["en", "fr", "de"]


def test_locales_accept_json_mapping() -> None:
    settings = configure(locales='{"en": ["GB", "US"], "fr": null}')
    assert settings.locales == {"en": ["GB", "US"], "fr": []}


def test_locales_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TRANSLATABLE_LOCALES", "el;en")
    monkeypatch.setenv("TRANSLATABLE_USE_FALLBACK", "true")
    monkeypatch.setenv("TRANSLATABLE_FALLBACK_LOCALE", "'en'")
    settings = reset_settings()
    assert settings.locales == ["el", "en"]
    assert settings.use_fallback is True
    assert settings.fallback_locale == "en"
    assert get_settings() is settings


def test_blank_values_fall_back_to_defaults() -> None:
    settings = configure(app_locale=" ", fallback_locale="", locale_separator="")
    assert settings.app_locale == "en"
    assert settings.fallback_locale is None
    assert settings.locale_separator == "-"


def test_defaults() -> None:
    settings = configure()
    assert settings.locale_key == "locale"
    assert settings.translation_suffix == "Translation"
    assert settings.always_fillable is False
