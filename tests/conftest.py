from __future__ import annotations

from typing import Any, Callable, Iterator

import pytest
from sqlalchemy.orm import Session

from translatable import configure, events, reset_settings
from translatable.database import create_session_factory

from tests.models import Base, Country, CountryTranslation

DEFAULT_SETTINGS: dict[str, Any] = {
    "locales": {"el": [], "en": ["GB", "US"], "fr": [], "de": ["DE", "CH"], "id": []},
    "locale": None,
    "app_locale": "en",
    "fallback_locale": None,
    "use_fallback": False,
}


@pytest.fixture
def settings() -> Iterator[Callable[..., Any]]:
    def apply(**overrides: Any):
        return configure(**{**DEFAULT_SETTINGS, **overrides})

    apply()
    yield apply
    reset_settings()


@pytest.fixture(autouse=True)
def _isolate_events(settings) -> Iterator[None]:
    events.clear()
    yield
    events.clear()


@pytest.fixture
def session() -> Iterator[Session]:
    factory = create_session_factory("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(factory.kw["bind"])
    session = factory()
    try:
        yield session
    finally:
        session.close()
        factory.kw["bind"].dispose()


def make_country(session: Session, code: str, **names: str) -> Country:
    country = Country(code=code)
    session.add(country)
    session.flush()
    for locale, name in names.items():
        session.add(CountryTranslation(country_id=country.id, locale=locale.replace("_", "-"), name=name))
    session.commit()
    session.expire(country, ["translations"])
    return country


@pytest.fixture
def seeded(session: Session) -> Session:
    make_country(session, "gr", el="Ελλάδα", en="Greece", fr="Grèce", de="Griechenland")
    make_country(session, "fr", en="France", fr="France", de="Frankreich")
    make_country(session, "id", id="Indonesia")
    return session
