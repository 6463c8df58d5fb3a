import logging
from typing import Any, Generic, List, Mapping, Optional, Type, TypeVar

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Session

from translatable import scopes
from translatable.enums import TranslatableAction, log_action
from translatable.models import TranslatedValue
from translatable.query import Query

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


class TranslatableRepository(Generic[ModelT]):
    """Session-bound access to one translatable model.

    Queries built here resolve translated attributes in SQL through the
    ``join_translation`` scope unless the repository was created with
    ``join_translations=False`` or the scope is removed from a query.
    """

    def __init__(
        self,
        session: Session,
        model: Type[ModelT],
        *,
        join_translations: bool = True,
        autocommit: bool = True,
    ):
        self.session = session
        self.model = model
        self.join_translations = join_translations
        self.autocommit = autocommit

    def _log(self, action: TranslatableAction, **kwargs: Any) -> None:
        log_action(logger, action, model=self.model.__name__, **kwargs)

    def query(self) -> Query:
        query = Query(self.model)
        if self.join_translations:
            query = query.with_scope(scopes.JOIN_TRANSLATION_SCOPE, scopes.join_translation)
        return query

    def get(self, key: Any) -> Optional[ModelT]:
        key_column = sa_inspect(self.model).local_table.c[self.model.get_key_name()]
        entity = self.query().where(key_column, "=", key).first(self.session)
        self._log(TranslatableAction.FETCH, key=key, found=entity is not None)
        return entity

    def all(self) -> List[ModelT]:
        return self.query().get(self.session)

    def create(self, attributes: Mapping[str, Any]) -> Optional[ModelT]:
        entity = self.model()
        entity.fill(attributes)
        if not self.save(entity):
            return None
        return entity

    def save(self, entity: ModelT) -> bool:
        saved = entity.save(self.session, autocommit=self.autocommit)
        if not saved:
            self._log(TranslatableAction.SAVE_FAILED, key=entity.get_key())
        return saved

    def list_translations(self, field: str) -> List[TranslatedValue]:
        key_name = self.model.get_key_name()
        rows = scopes.list_translations(self.query(), field).get(self.session)
        return [TranslatedValue(key=row[key_name], value=row[field]) for row in rows]
