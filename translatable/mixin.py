from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple

from sqlalchemy import ColumnClause, column, inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declared_attr, relationship

from translatable.config import get_settings
from translatable.enums import LoadMode, TranslatableAction, log_action
from translatable.exceptions import ConfigurationError, MassAssignmentError
from translatable.fillable import FillableMixin
from translatable.index import TranslationIndex
from translatable.locales import effective_locale, fallback_chain_for, is_declared_locale
from translatable.persistence import PersistenceCoordinator, SessionStorage

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _snake_case(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


@dataclass(frozen=True)
class Resolution:
    found: bool
    value: Any = None
    record: Any = None
    joined: bool = False


_NOT_RESOLVED = Resolution(found=False)


class TranslatedAttribute:
    """Typed accessor generated for each declared translated attribute.

    On an instance it reads and writes the value for the effective locale.
    On the class it returns a column reference that query scopes recognise
    as the translated attribute.
    """

    def __init__(self, name: str) -> None:
        self.name = name

    def __get__(self, instance: Any, owner: type) -> Any:
        if instance is None:
            return column(self.name)
        return instance.get_attribute(self.name)

    def __set__(self, instance: Any, value: Any) -> None:
        instance.set_attribute(self.name, value)


class TranslatableMixin(FillableMixin):
    __translated_attributes__: ClassVar[Tuple[str, ...]] = ()
    __translation_model__: ClassVar[Optional[str]] = None
    __translation_foreign_key__: ClassVar[Optional[str]] = None
    __locale_key__: ClassVar[Optional[str]] = None
    __translation_fallback__: ClassVar[Optional[bool]] = None
    __hidden__: ClassVar[Tuple[str, ...]] = ()

    # Overwritten per instance by mark_join_loaded().
    _translation_load_mode = LoadMode.NATIVE
    _joined_locale = None
    _joined_translations = MappingProxyType({})

    def __init_subclass__(cls, **kw: Any) -> None:
        for name in cls.__translated_attributes__:
            if name not in cls.__dict__:
                setattr(cls, name, TranslatedAttribute(name))
        super().__init_subclass__(**kw)

    @declared_attr
    def translations(cls):
        # Persistence of translation records is driven by PersistenceCoordinator.
        return relationship(cls.translation_model_name(), viewonly=True)

    # configuration

    @classmethod
    def translation_model_name(cls) -> str:
        return cls.__translation_model__ or cls.__name__ + get_settings().translation_suffix

    @classmethod
    def translation_class(cls) -> type:
        try:
            return sa_inspect(cls).relationships["translations"].entity.class_
        except (SQLAlchemyError, KeyError) as exc:
            raise ConfigurationError(
                f"{cls.__name__} has no resolvable translation model "
                f"'{cls.translation_model_name()}'"
            ) from exc

    @classmethod
    def translation_table(cls) -> Any:
        return sa_inspect(cls.translation_class()).local_table

    @classmethod
    def get_relation_key(cls) -> str:
        if cls.__translation_foreign_key__:
            return cls.__translation_foreign_key__
        key_name = cls.get_key_name()
        if key_name != "id":
            return key_name
        return f"{_snake_case(cls.__name__)}_id"

    @classmethod
    def get_key_name(cls) -> str:
        return sa_inspect(cls).primary_key[0].name

    @classmethod
    def get_locale_key(cls) -> str:
        return cls.__locale_key__ or get_settings().locale_key

    @classmethod
    def is_translation_attribute(cls, key: str) -> bool:
        return key in cls.__translated_attributes__

    @classmethod
    def is_translated_reference(cls, reference: Any) -> bool:
        """True for ``"name"`` or an unbound ``column("name")`` of a translated attribute."""
        if isinstance(reference, str):
            return "." not in reference and cls.is_translation_attribute(reference)
        if isinstance(reference, ColumnClause) and reference.table is None:
            return cls.is_translation_attribute(reference.name)
        return False

    @classmethod
    def uses_translation_fallback(cls) -> bool:
        if cls.__translation_fallback__ is not None:
            return cls.__translation_fallback__
        return get_settings().use_fallback

    def get_key(self) -> Any:
        return sa_inspect(type(self)).primary_key_from_instance(self)[0]

    # translation records

    def translation_index(self) -> TranslationIndex:
        return TranslationIndex(self)

    def get_translation(
        self, locale: Optional[str] = None, with_fallback: Optional[bool] = None
    ) -> Optional[Any]:
        locale = effective_locale(locale)
        if with_fallback is None:
            with_fallback = self.uses_translation_fallback()

        index = self.translation_index()
        translation = index.find(locale)
        if translation is not None or not with_fallback:
            return translation

        for candidate in fallback_chain_for(locale)[1:]:
            translation = index.find(candidate)
            if translation is not None:
                log_action(
                    logger,
                    TranslatableAction.RESOLVE_FALLBACK,
                    entity=type(self).__name__,
                    locale=locale,
                    fallback=candidate,
                )
                return translation
        return None

    def translate(self, locale: Optional[str] = None, with_fallback: bool = False) -> Optional[Any]:
        return self.get_translation(locale, with_fallback)

    def translate_or_default(self, locale: Optional[str] = None) -> Optional[Any]:
        return self.get_translation(locale, True)

    def translate_or_new(self, locale: Optional[str] = None) -> Any:
        return self.translation_index().get_or_create(effective_locale(locale))

    def get_new_translation(self, locale: str) -> Any:
        return self.translation_index().create(locale)

    def has_translation(self, locale: Optional[str] = None) -> bool:
        return self.translation_index().has(effective_locale(locale))

    # join-mode state

    @property
    def translation_load_mode(self) -> LoadMode:
        return self._translation_load_mode

    def mark_join_loaded(self, locale: str, values: Mapping[str, Any]) -> None:
        self._translation_load_mode = LoadMode.JOINED
        self._joined_locale = locale
        self._joined_translations = dict(values)

    def _is_join_resolved(self, key: str, locale: str) -> bool:
        return (
            self._translation_load_mode is LoadMode.JOINED
            and self._joined_locale == locale
            and key in self._joined_translations
        )

    def _forget_joined(self, key: str, locale: str) -> None:
        if self._is_join_resolved(key, locale):
            remaining = dict(self._joined_translations)
            remaining.pop(key)
            self._joined_translations = remaining

    # attribute dispatch

    def resolve(
        self, key: str, locale: Optional[str] = None, with_fallback: Optional[bool] = None
    ) -> Resolution:
        locale = effective_locale(locale)
        if self._is_join_resolved(key, locale):
            value = self._joined_translations[key]
            if value is None:
                return Resolution(found=False, joined=True)
            return Resolution(found=True, value=value, joined=True)

        translation = self.get_translation(locale, with_fallback)
        if translation is None:
            return _NOT_RESOLVED
        return Resolution(found=True, value=getattr(translation, key), record=translation)

    @staticmethod
    def _split_key(key: str) -> Tuple[str, str]:
        if ":" in key:
            name, locale = key.split(":", 1)
            return name, locale
        return key, effective_locale()

    def _own_column_value(self, key: str) -> Any:
        mapper = sa_inspect(type(self))
        own_column = mapper.local_table.c.get(key)
        if own_column is None:
            return None
        return getattr(self, mapper.get_property_by_column(own_column).key)

    def get_attribute(self, key: str) -> Any:
        name, locale = self._split_key(key)
        if not self.is_translation_attribute(name):
            return getattr(self, key)
        resolution = self.resolve(name, locale)
        if resolution.found:
            return resolution.value
        return self._own_column_value(name)

    def set_attribute(self, key: str, value: Any) -> None:
        name, locale = self._split_key(key)
        if not self.is_translation_attribute(name):
            setattr(self, key, value)
            return
        setattr(self.translate_or_new(locale), name, value)
        self._forget_joined(name, locale)

    # mass assignment

    @staticmethod
    def _translation_accepts(translation: Any, key: str) -> bool:
        if get_settings().always_fillable:
            return True
        is_fillable = getattr(translation, "is_fillable", None)
        return is_fillable is not None and is_fillable(key)

    def fill(self, attributes: Mapping[str, Any]) -> "TranslatableMixin":
        native: Dict[str, Any] = {}
        for key, values in attributes.items():
            if self.is_translation_attribute(key):
                for locale, value in values.items():
                    translation = self.translate_or_new(locale)
                    if not self._translation_accepts(translation, key):
                        raise MassAssignmentError(key, locale)
                    setattr(translation, key, value)
                    self._forget_joined(key, locale)
            elif is_declared_locale(key):
                translation = self.translate_or_new(key)
                for attribute, value in values.items():
                    if not self._translation_accepts(translation, attribute):
                        raise MassAssignmentError(attribute, key)
                    setattr(translation, attribute, value)
                    self._forget_joined(attribute, key)
            else:
                native[key] = values
        return super().fill(native)

    # serialization

    def to_dict(self) -> Dict[str, Any]:
        hidden = set(self.__hidden__)
        mapper = sa_inspect(type(self))
        data = {
            prop.key: getattr(self, prop.key)
            for prop in mapper.column_attrs
            if prop.key not in hidden
        }
        for name in self.__translated_attributes__:
            if name in hidden:
                continue
            resolution = self.resolve(name)
            if resolution.found:
                data[name] = resolution.value
        return data

    # persistence

    def save(self, session: Session, *, autocommit: bool = True) -> bool:
        storage = SessionStorage(session, autocommit=autocommit)
        return PersistenceCoordinator(storage).save(self)
