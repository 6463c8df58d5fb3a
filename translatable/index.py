from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterator, List, Optional, Set

from sqlalchemy import inspect as sa_inspect

from translatable.enums import TranslatableAction, log_action

if TYPE_CHECKING:
    from translatable.mixin import TranslatableMixin

logger = logging.getLogger(__name__)


def changed_attributes(instance: Any) -> Set[str]:
    """Keys of mapped column attributes with pending changes on ``instance``."""
    state = sa_inspect(instance)
    return {
        prop.key
        for prop in state.mapper.column_attrs
        if state.attrs[prop.key].history.has_changes()
    }


class TranslationIndex:
    """Locale lookups over the translation records loaded on one entity.

    Lookups scan ``entity.translations`` in load order, so when two records
    share a locale the first one loaded wins.
    """

    def __init__(self, entity: "TranslatableMixin") -> None:
        self.entity = entity
        self.locale_key = entity.get_locale_key()

    @property
    def records(self) -> List[Any]:
        return self.entity.translations

    def _locale_of(self, record: Any) -> Optional[str]:
        return getattr(record, self.locale_key, None)

    def find(self, locale: str) -> Optional[Any]:
        for record in self.records:
            if self._locale_of(record) == locale:
                return record
        return None

    def has(self, locale: str) -> bool:
        return self.find(locale) is not None

    def get_or_create(self, locale: str) -> Any:
        record = self.find(locale)
        if record is None:
            record = self.create(locale)
        return record

    def create(self, locale: str) -> Any:
        translation_class = self.entity.translation_class()
        record = translation_class()
        setattr(record, self.locale_key, locale)
        self.records.append(record)
        log_action(
            logger,
            TranslatableAction.CREATE_TRANSLATION,
            entity=type(self.entity).__name__,
            locale=locale,
        )
        return record

    def locales(self) -> List[str]:
        return [self._locale_of(record) for record in self.records]

    def dirty_records(self) -> Iterator[Any]:
        for record in self.records:
            if changed_attributes(record) - {self.locale_key}:
                yield record
