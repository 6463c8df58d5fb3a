from __future__ import annotations

import pytest

from translatable import ConfigurationError, use_locale
from translatable.locales import (
    all_declared_locales,
    effective_locale,
    fallback_chain_for,
    fallback_locale_for,
    is_country_qualified,
    is_declared_locale,
    language_of,
)


def test_effective_locale_prefers_explicit_then_configured_then_request(settings) -> None:
    assert effective_locale() == "en"
    with use_locale("el"):
        assert effective_locale() == "el"
        assert effective_locale("fr") == "fr"
        settings(locale="de")
        assert effective_locale() == "de"


def test_use_locale_restores_previous_locale() -> None:
    with use_locale("fr"):
        with use_locale("de"):
            assert effective_locale() == "de"
        assert effective_locale() == "fr"
    assert effective_locale() == "en"


def test_country_qualified_locales() -> None:
    assert is_country_qualified("en-GB")
    assert not is_country_qualified("en")
    assert language_of("de-CH") == "de"


def test_custom_separator(settings) -> None:
    settings(locale_separator="_")
    assert language_of("en_GB") == "en"
    assert not is_country_qualified("en-GB")
    assert "en_US" in all_declared_locales()


def test_fallback_locale_for(settings) -> None:
    assert fallback_locale_for("en-GB") == "en"
    assert fallback_locale_for("fr") is None
    settings(fallback_locale="de")
    assert fallback_locale_for("fr") == "de"
    assert fallback_locale_for("en-US") == "en"


def test_fallback_chain_is_deduplicated(settings) -> None:
    settings(fallback_locale="en")
    assert fallback_chain_for("de-CH") == ["de-CH", "de", "en"]
    assert fallback_chain_for("en-GB") == ["en-GB", "en"]
    assert fallback_chain_for("en") == ["en"]


def test_all_declared_locales_flattens_country_mapping() -> None:
    assert all_declared_locales() == [
        "el", "en", "en-GB", "en-US", "fr", "de", "de-DE", "de-CH", "id",
    ]
    assert all_declared_locales(["en", "fr"]) == ["en", "fr"]
    assert is_declared_locale("de-CH")
    assert not is_declared_locale("name")


def test_no_declared_locales_raises(settings) -> None:
    settings(locales=[])
    with pytest.raises(ConfigurationError):
        all_declared_locales()
