from typing import Any, Dict, List, Union
import json

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LocalesConfig = Union[List[str], Dict[str, List[str]]]


def _strip_wrapping_quotes(value: str) -> str:
    text = value.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in {'"', "'"}:
        return text[1:-1].strip()
    return text


def _parse_string_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(item).strip() for item in value if str(item).strip()]
    text = _strip_wrapping_quotes(str(value))
    return [part.strip() for part in text.replace(";", ",").split(",") if part.strip()]


def _parse_locales(value: Any) -> LocalesConfig:
    if value is None:
        return []
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        try:
            parsed = json.loads(text)
        except ValueError:
            parsed = None
        value = parsed if isinstance(parsed, (list, dict)) else text
    if isinstance(value, dict):
        # {"en": ["GB", "US"], "fr": None} keeps the declared order of languages.
        return {
            str(language).strip(): _parse_string_list(countries)
            for language, countries in value.items()
            if str(language).strip()
        }
    return _parse_string_list(value)


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = _strip_wrapping_quotes(str(value))
    return text or None


class TranslatableSettings(BaseSettings):
    # Keep Any here so env parser doesn't force JSON for list/dict fields.
    locales: Any = []
    locale: str | None = None
    app_locale: str = "en"
    fallback_locale: str | None = None
    use_fallback: bool = False
    locale_separator: str = "-"
    locale_key: str = "locale"
    translation_suffix: str = "Translation"
    always_fillable: bool = False
    database_url: str = "sqlite+pysqlite:///:memory:"

    @field_validator("locales", mode="before")
    @classmethod
    def _normalize_locales(cls, value: Any) -> LocalesConfig:
        return _parse_locales(value)

    @field_validator("locale", "fallback_locale", mode="before")
    @classmethod
    def _normalize_optional_locale(cls, value: Any) -> str | None:
        return _optional_text(value)

    @field_validator("app_locale", mode="before")
    @classmethod
    def _normalize_app_locale(cls, value: Any) -> str:
        return _optional_text(value) or "en"

    @field_validator("locale_separator", mode="before")
    @classmethod
    def _normalize_separator(cls, value: Any) -> str:
        if value is None or not str(value):
            return "-"
        return str(value)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="TRANSLATABLE_",
        extra="ignore",
    )


_settings: TranslatableSettings | None = None


def get_settings() -> TranslatableSettings:
    global _settings
    if _settings is None:
        _settings = TranslatableSettings()
    return _settings


def configure(**values: Any) -> TranslatableSettings:
    """Replace the active settings. Unspecified fields come from the environment."""
    global _settings
    _settings = TranslatableSettings(**values)
    return _settings


def reset_settings() -> TranslatableSettings:
    global _settings
    _settings = TranslatableSettings()
    return _settings
