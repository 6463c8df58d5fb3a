from __future__ import annotations

from sqlalchemy.orm import Session

from translatable.query import Query

from tests.models import Country, CountryTranslation


def test_get_or_create_reuses_existing_record() -> None:
    country = Country(code="gr")
    index = country.translation_index()
    assert not index.has("en")

    created = index.get_or_create("en")
    assert isinstance(created, CountryTranslation)
    assert created.locale == "en"
    assert index.get_or_create("en") is created
    assert index.locales() == ["en"]


def test_first_loaded_record_wins_for_duplicate_locales() -> None:
    country = Country(code="gr")
    first = CountryTranslation(locale="en", name="Greece")
    country.translations.append(first)
    country.translations.append(CountryTranslation(locale="en", name="Hellas"))
    assert country.translation_index().find("en") is first


def test_record_with_only_locale_is_not_dirty() -> None:
    country = Country(code="gr")
    index = country.translation_index()
    record = index.get_or_create("fr")
    assert list(index.dirty_records()) == []

    record.name = "Grèce"
    assert list(index.dirty_records()) == [record]


def test_loaded_records_become_dirty_when_changed(seeded: Session) -> None:
    country = Query(Country).where("code", "gr").first(seeded)
    index = country.translation_index()
    assert sorted(index.locales()) == ["de", "el", "en", "fr"]
    assert list(index.dirty_records()) == []

    country.name = "Hellas"
    dirty = list(index.dirty_records())
    assert [record.locale for record in dirty] == ["en"]
