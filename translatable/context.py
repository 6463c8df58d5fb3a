from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Iterator, Optional

from translatable.config import get_settings

_current_locale: ContextVar[Optional[str]] = ContextVar("translatable_locale", default=None)


def get_locale() -> str:
    """Locale of the active request, or the application locale when none is set."""
    return _current_locale.get() or get_settings().app_locale


def set_locale(locale: Optional[str]) -> Token:
    normalized = (locale or "").strip() or None
    return _current_locale.set(normalized)


def reset_locale(token: Token) -> None:
    _current_locale.reset(token)


@contextmanager
def use_locale(locale: Optional[str]) -> Iterator[str]:
    token = set_locale(locale)
    try:
        yield get_locale()
    finally:
        reset_locale(token)
