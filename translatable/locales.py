from __future__ import annotations

from typing import Any, List, Optional

from translatable.config import get_settings
from translatable.context import get_locale
from translatable.exceptions import ConfigurationError


def effective_locale(explicit: Optional[str] = None) -> str:
    if explicit:
        return explicit
    return get_settings().locale or get_locale()


def locale_separator() -> str:
    return get_settings().locale_separator


def is_country_qualified(locale: Optional[str]) -> bool:
    if not locale:
        return False
    return locale_separator() in locale


def language_of(locale: str) -> str:
    """Return the part of ``locale`` before the first separator ("en-US" -> "en")."""
    return locale.split(locale_separator(), 1)[0]


def fallback_locale_for(locale: Optional[str] = None) -> Optional[str]:
    if locale and is_country_qualified(locale):
        language = language_of(locale)
        if language:
            return language
    return get_settings().fallback_locale


def fallback_chain_for(locale: str) -> List[str]:
    candidates = [locale]
    if is_country_qualified(locale):
        candidates.append(language_of(locale))
    candidates.append(get_settings().fallback_locale)

    chain: List[str] = []
    for candidate in candidates:
        if candidate and candidate not in chain:
            chain.append(candidate)
    return chain


def all_declared_locales(config: Any = None) -> List[str]:
    """Flatten the ``locales`` setting into the list of valid locale identifiers.

    Accepts either a plain list (``["en", "fr"]``) or a mapping of base
    language to country suffixes (``{"en": ["GB", "US"]}`` yields
    ``["en", "en-GB", "en-US"]``).
    """
    if config is None:
        config = get_settings().locales
    if not config:
        raise ConfigurationError(
            "No locales are declared. Set TRANSLATABLE_LOCALES or call "
            "translatable.config.configure(locales=[...])."
        )

    separator = locale_separator()
    locales: List[str] = []
    if isinstance(config, dict):
        for language, countries in config.items():
            locales.append(language)
            for country in countries or []:
                locales.append(f"{language}{separator}{country}")
    else:
        locales.extend(str(item) for item in config)
    return locales


def is_declared_locale(key: str) -> bool:
    return key in all_declared_locales()
