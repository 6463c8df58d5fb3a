from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, List, Optional

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from translatable import events
from translatable.enums import TranslatableAction, log_action
from translatable.index import changed_attributes

if TYPE_CHECKING:
    from translatable.mixin import TranslatableMixin

logger = logging.getLogger(__name__)


class SessionStorage:
    """Persists single instances through a SQLAlchemy session.

    With ``autocommit`` every successful ``persist`` is committed on its own.
    Callers that need the entity and its translations saved atomically pass
    ``autocommit=False`` and own the transaction.
    """

    def __init__(self, session: Session, *, autocommit: bool = True) -> None:
        self.session = session
        self.autocommit = autocommit

    @staticmethod
    def exists(instance: Any) -> bool:
        return sa_inspect(instance).has_identity

    @staticmethod
    def is_dirty(instance: Any) -> bool:
        return bool(changed_attributes(instance))

    def persist(self, instance: Any) -> bool:
        creating = not self.exists(instance)
        if not events.dispatch(instance, events.SAVING, halt=True):
            log_action(logger, TranslatableAction.SAVE_SKIPPED, model=type(instance).__name__, event=events.SAVING)
            return False
        before = events.CREATING if creating else events.UPDATING
        if not events.dispatch(instance, before, halt=True):
            log_action(logger, TranslatableAction.SAVE_SKIPPED, model=type(instance).__name__, event=before)
            return False

        self.session.add(instance)
        try:
            self.session.flush()
            if self.autocommit:
                self.session.commit()
        except SQLAlchemyError:
            logger.exception("Failed to persist %s", type(instance).__name__)
            self.session.rollback()
            return False

        events.dispatch(instance, events.CREATED if creating else events.UPDATED)
        events.dispatch(instance, events.SAVED)
        return True


class PersistenceCoordinator:
    """Saves a translatable entity and its dirty translation records as one unit."""

    def __init__(self, storage: SessionStorage) -> None:
        self.storage = storage

    def save(self, entity: "TranslatableMixin") -> bool:
        # Collected up front: committing the entity expires its translations collection.
        dirty = list(entity.translation_index().dirty_records())

        if self.storage.exists(entity) and not self.storage.is_dirty(entity):
            saved = self.save_translations(entity, dirty)
            if saved is None:
                return False
            if saved:
                events.dispatch(entity, events.SAVED)
                events.dispatch(entity, events.UPDATED)
            log_action(
                logger,
                TranslatableAction.SAVE_ENTITY,
                entity=type(entity).__name__,
                native=False,
                translations=saved,
            )
            return True

        if not self.storage.persist(entity):
            log_action(logger, TranslatableAction.SAVE_FAILED, entity=type(entity).__name__)
            return False
        log_action(logger, TranslatableAction.SAVE_ENTITY, entity=type(entity).__name__, native=True)
        return self.save_translations(entity, dirty) is not None

    def save_translations(self, entity: "TranslatableMixin", records: List[Any]) -> Optional[int]:
        """Persist ``records`` against ``entity``.

        Returns the number of records saved, or ``None`` when a save failed.
        Records saved before the failure are not rolled back.
        """
        if not records:
            return 0
        relation_key = entity.get_relation_key()
        locale_key = entity.get_locale_key()
        key = entity.get_key()

        saved = 0
        for translation in records:
            locale = getattr(translation, locale_key, None)
            setattr(translation, relation_key, key)
            if not self.storage.persist(translation):
                log_action(logger, TranslatableAction.SAVE_FAILED, entity=type(entity).__name__, locale=locale)
                return None
            saved += 1
            log_action(logger, TranslatableAction.SAVE_TRANSLATION, entity=type(entity).__name__, key=key, locale=locale)
        return saved
