"""Structured, immutable query builder compiled to SQLAlchemy ``Select``.

WHERE clauses are kept as data (``Predicate``, ``NestedPredicate``,
``ExistsPredicate``) until compile time so that scopes can inspect and
rewrite them. Every generative method returns a new ``Query``.
"""

from __future__ import annotations

import logging
import operator
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import and_, func, inspect as sa_inspect, literal_column, or_, select
from sqlalchemy.orm import Session
from sqlalchemy.sql import ClauseElement, ColumnElement, FromClause, Select

from translatable.enums import TranslatableAction, log_action

logger = logging.getLogger(__name__)

AND = "and"
OR = "or"

_MISSING = object()

_COMPARISONS: Dict[str, Callable[[Any, Any], Any]] = {
    "=": operator.eq,
    "==": operator.eq,
    "!=": operator.ne,
    "<>": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}

_METHODS: Dict[str, str] = {
    "like": "like",
    "not like": "not_like",
    "ilike": "ilike",
    "not ilike": "not_ilike",
    "in": "in_",
    "not in": "not_in",
    "is": "is_",
    "is not": "is_not",
}


@dataclass(frozen=True, eq=False)
class Predicate:
    column: Any
    operator: str
    value: Any
    boolean: str = AND

    @property
    def bindings(self) -> Tuple[Any, ...]:
        if self.value is None or isinstance(self.value, ClauseElement):
            return ()
        if self.operator in ("in", "not in"):
            return tuple(self.value)
        return (self.value,)


@dataclass(frozen=True, eq=False)
class NestedPredicate:
    predicates: Tuple[Any, ...]
    boolean: str = AND

    @property
    def bindings(self) -> Tuple[Any, ...]:
        return tuple(value for predicate in self.predicates for value in predicate.bindings)


@dataclass(frozen=True, eq=False)
class ExistsPredicate:
    relationship: str
    predicates: Tuple[Any, ...] = ()
    negate: bool = False
    boolean: str = AND

    @property
    def bindings(self) -> Tuple[Any, ...]:
        return tuple(value for predicate in self.predicates for value in predicate.bindings)


@dataclass(frozen=True, eq=False)
class Join:
    target: FromClause
    onclause: ColumnElement
    outer: bool = False


@dataclass(frozen=True)
class TranslationJoin:
    """Marks a query whose rows carry coalesced translation columns."""

    locale: str
    fallback_locales: Tuple[str, ...]
    locale_alias: str
    fallback_aliases: Tuple[str, ...]
    attributes: Tuple[str, ...]


Scope = Callable[["Query"], "Query"]


def _combine(clauses: Sequence[Tuple[str, ColumnElement]]) -> ColumnElement:
    # AND binds tighter than OR, as in the SQL the predicates read like.
    groups: List[List[ColumnElement]] = []
    for boolean, clause in clauses:
        if not groups or boolean == OR:
            groups.append([clause])
        else:
            groups[-1].append(clause)
    return or_(*(and_(*group) for group in groups))


@dataclass(frozen=True, eq=False)
class Query:
    model: type
    columns: Optional[Tuple[Any, ...]] = None
    joins: Tuple[Join, ...] = ()
    wheres: Tuple[Any, ...] = ()
    orders: Tuple[Tuple[Any, str], ...] = ()
    limit_value: Optional[int] = None
    offset_value: Optional[int] = None
    loader_options: Tuple[Any, ...] = ()
    scopes: Tuple[Tuple[str, Scope], ...] = ()
    translation_join: Optional[TranslationJoin] = None

    # columns and joins

    def select(self, *columns: Any) -> "Query":
        return replace(self, columns=tuple(columns))

    def add_select(self, *columns: Any) -> "Query":
        current = self.columns if self.columns is not None else (self.model,)
        return replace(self, columns=current + tuple(columns))

    def join(self, target: FromClause, onclause: ColumnElement, *, outer: bool = False) -> "Query":
        return replace(self, joins=self.joins + (Join(target, onclause, outer),))

    def left_join(self, target: FromClause, onclause: ColumnElement) -> "Query":
        return self.join(target, onclause, outer=True)

    # predicates

    def where(
        self, column: Any, op: Any = _MISSING, value: Any = _MISSING, boolean: str = AND
    ) -> "Query":
        if callable(column) and not isinstance(column, (str, ClauseElement, type)) and not hasattr(
            column, "__clause_element__"
        ):
            return self.where_nested(column, boolean)
        if value is _MISSING:
            op, value = "=", op
        op = str(op).lower()
        if value is None and op in ("=", "=="):
            op = "is"
        elif value is None and op in ("!=", "<>"):
            op = "is not"
        return replace(self, wheres=self.wheres + (Predicate(column, op, value, boolean),))

    def or_where(self, column: Any, op: Any = _MISSING, value: Any = _MISSING) -> "Query":
        return self.where(column, op, value, OR)

    def where_in(self, column: Any, values: Any, boolean: str = AND) -> "Query":
        if not isinstance(values, ClauseElement):
            values = list(values)
        return self.where(column, "in", values, boolean)

    def where_not_in(self, column: Any, values: Any, boolean: str = AND) -> "Query":
        if not isinstance(values, ClauseElement):
            values = list(values)
        return self.where(column, "not in", values, boolean)

    def where_nested(self, callback: Callable[["Query"], "Query"], boolean: str = AND) -> "Query":
        nested = callback(Query(self.model))
        if not nested.wheres:
            return self
        return replace(self, wheres=self.wheres + (NestedPredicate(nested.wheres, boolean),))

    def or_where_nested(self, callback: Callable[["Query"], "Query"]) -> "Query":
        return self.where_nested(callback, OR)

    def where_has(
        self,
        relationship: str,
        callback: Optional[Callable[["Query"], "Query"]] = None,
        boolean: str = AND,
        *,
        negate: bool = False,
    ) -> "Query":
        predicates: Tuple[Any, ...] = ()
        if callback is not None:
            related = getattr(self.model, relationship).property.mapper.class_
            predicates = callback(Query(related)).wheres
        exists = ExistsPredicate(relationship, predicates, negate, boolean)
        return replace(self, wheres=self.wheres + (exists,))

    def where_doesnt_have(
        self, relationship: str, callback: Optional[Callable[["Query"], "Query"]] = None
    ) -> "Query":
        return self.where_has(relationship, callback, negate=True)

    def has(self, relationship: str) -> "Query":
        return self.where_has(relationship)

    @property
    def bindings(self) -> List[Any]:
        return [value for predicate in self.wheres for value in predicate.bindings]

    # ordering, paging, loading

    def order_by(self, column: Any, direction: str = "asc") -> "Query":
        return replace(self, orders=self.orders + ((column, direction.lower()),))

    def limit(self, value: Optional[int]) -> "Query":
        return replace(self, limit_value=value)

    def offset(self, value: Optional[int]) -> "Query":
        return replace(self, offset_value=value)

    def options(self, *options: Any) -> "Query":
        return replace(self, loader_options=self.loader_options + options)

    # scopes

    def with_scope(self, name: str, scope: Scope) -> "Query":
        scopes = tuple(item for item in self.scopes if item[0] != name)
        return replace(self, scopes=scopes + ((name, scope),))

    def without_scope(self, name: str) -> "Query":
        return replace(self, scopes=tuple(item for item in self.scopes if item[0] != name))

    def without_scopes(self) -> "Query":
        return replace(self, scopes=())

    def apply_scopes(self) -> "Query":
        query = replace(self, scopes=())
        for _, scope in self.scopes:
            query = scope(query)
        return query

    # compilation

    def _tables(self) -> Dict[str, FromClause]:
        table = sa_inspect(self.model).local_table
        tables: Dict[str, FromClause] = {table.name: table}
        for join in self.joins:
            tables[join.target.name] = join.target
        return tables

    @staticmethod
    def _resolve(reference: Any, tables: Mapping[str, FromClause], default: FromClause) -> Any:
        if not isinstance(reference, str):
            return reference
        if "." in reference:
            table_name, name = reference.split(".", 1)
            table = tables.get(table_name)
            if table is not None and name in table.c:
                return table.c[name]
            return literal_column(reference)
        if reference in default.c:
            return default.c[reference]
        return literal_column(reference)

    def _compile_predicate(
        self, predicate: Any, tables: Mapping[str, FromClause], default: FromClause
    ) -> ColumnElement:
        if isinstance(predicate, NestedPredicate):
            return _combine(
                [(p.boolean, self._compile_predicate(p, tables, default)) for p in predicate.predicates]
            )
        if isinstance(predicate, ExistsPredicate):
            relationship = getattr(self.model, predicate.relationship)
            related = relationship.property.mapper.local_table
            related_tables = {related.name: related}
            criteria = [
                (p.boolean, self._compile_predicate(p, related_tables, related))
                for p in predicate.predicates
            ]
            clause = relationship.any(_combine(criteria)) if criteria else relationship.any()
            return ~clause if predicate.negate else clause

        column = self._resolve(predicate.column, tables, default)
        if predicate.operator in _COMPARISONS:
            return _COMPARISONS[predicate.operator](column, predicate.value)
        method = _METHODS.get(predicate.operator)
        if method is None:
            raise ValueError(f"Unsupported operator: {predicate.operator!r}")
        return getattr(column, method)(predicate.value)

    def selects_entity(self) -> bool:
        return self.columns is None or (len(self.columns) > 0 and self.columns[0] is self.model)

    def to_statement(self) -> Select:
        query = self.apply_scopes()
        tables = query._tables()
        table = sa_inspect(query.model).local_table

        columns = query.columns if query.columns is not None else (query.model,)
        stmt = select(*(query._resolve(column, tables, table) for column in columns)).select_from(table)
        for join in query.joins:
            stmt = stmt.join(join.target, join.onclause, isouter=join.outer)
        if query.wheres:
            stmt = stmt.where(
                _combine([(p.boolean, query._compile_predicate(p, tables, table)) for p in query.wheres])
            )
        for column, direction in query.orders:
            resolved = query._resolve(column, tables, table)
            stmt = stmt.order_by(resolved.desc() if direction == "desc" else resolved.asc())
        if query.limit_value is not None:
            stmt = stmt.limit(query.limit_value)
        if query.offset_value is not None:
            stmt = stmt.offset(query.offset_value)
        if query.loader_options:
            stmt = stmt.options(*query.loader_options)
        return stmt

    # execution

    def get(self, session: Session) -> List[Any]:
        query = self.apply_scopes()
        result = session.execute(query.to_statement())
        log_action(logger, TranslatableAction.FETCH, model=query.model.__name__, bindings=query.bindings)

        if not query.selects_entity():
            return [dict(row._mapping) for row in result]

        joined = query.translation_join
        entities = []
        for row in result:
            entity = row[0]
            if joined is not None:
                entity.mark_join_loaded(
                    joined.locale,
                    {name: row._mapping[name] for name in joined.attributes},
                )
            entities.append(entity)
        return entities

    def first(self, session: Session) -> Optional[Any]:
        rows = self.limit(1).get(session)
        return rows[0] if rows else None

    def count(self, session: Session) -> int:
        stmt = self.to_statement().order_by(None)
        return session.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()
