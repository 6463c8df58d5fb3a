"""Query scopes for translatable models.

Existence mode (``translated_in``, ``not_translated_in``, ``translated``,
``where_translation``) filters on the presence of translation rows. Join
mode (``join_translation``) left-joins the translation table once for the
requested locale and once per fallback locale, and exposes every translated
attribute as ``coalesce(locale.col, fallback.col, ...) AS col``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Any, List, Optional, Tuple

from sqlalchemy import and_, func, inspect as sa_inspect, select
from sqlalchemy.orm import selectinload

from translatable.enums import TranslatableAction, log_action
from translatable.locales import effective_locale, fallback_chain_for
from translatable.query import AND, OR, NestedPredicate, Predicate, Query, TranslationJoin

logger = logging.getLogger(__name__)

JOIN_TRANSLATION_SCOPE = "join_translation"

_UNSAFE_ALIAS_CHARS = re.compile(r"\W")


def translated_in(query: Query, locale: Optional[str] = None) -> Query:
    locale = effective_locale(locale)
    locale_key = query.model.get_locale_key()
    return query.where_has("translations", lambda q: q.where(locale_key, "=", locale))


def not_translated_in(query: Query, locale: Optional[str] = None) -> Query:
    locale = effective_locale(locale)
    locale_key = query.model.get_locale_key()
    return query.where_doesnt_have("translations", lambda q: q.where(locale_key, "=", locale))


def translated(query: Query) -> Query:
    return query.has("translations")


def where_translation(
    query: Query, key: str, value: Any, locale: Optional[str] = None, *, op: str = "="
) -> Query:
    locale_key = query.model.get_locale_key()

    def constrain(related: Query) -> Query:
        related = related.where(key, op, value)
        if locale:
            related = related.where(locale_key, op, locale)
        return related

    return query.where_has("translations", constrain)


def where_translation_like(
    query: Query, key: str, value: Any, locale: Optional[str] = None
) -> Query:
    return where_translation(query, key, value, locale, op="like")


def _alias_name(prefix: str, locale: str) -> str:
    return f"{prefix}_{_UNSAFE_ALIAS_CHARS.sub('_', locale)}"


def _reference_name(reference: Any) -> str:
    return reference if isinstance(reference, str) else reference.name


def _join_chain(locale: str) -> List[str]:
    # coalesce() needs two arguments, so a locale without fallbacks is joined twice.
    chain = fallback_chain_for(locale)
    if len(chain) == 1:
        chain.append(locale)
    return chain


def join_translation(query: Query, locale: Optional[str] = None) -> Query:
    """Resolve translated attributes in SQL for ``locale`` and its fallback chain.

    One alias of the translation table is left-joined per entry of
    ``fallback_chain_for(locale)``, so join mode sees the same candidates, in
    the same order, as per-row resolution.
    """
    model = query.model
    locale = effective_locale(locale)
    chain = _join_chain(locale)
    fallbacks = tuple(chain[1:])

    table = sa_inspect(model).local_table
    translation_table = model.translation_table()
    relation_key = model.get_relation_key()
    locale_key = model.get_locale_key()
    entity_key = table.c[model.get_key_name()]

    aliases = [translation_table.alias(_alias_name("_t", locale))]
    aliases += [translation_table.alias(_alias_name("_tf", fallback)) for fallback in fallbacks]

    joined = query
    for alias, bound_locale in zip(aliases, chain):
        joined = joined.left_join(
            alias,
            and_(alias.c[relation_key] == entity_key, alias.c[locale_key] == bound_locale),
        )

    def coalesced(name: str) -> Any:
        return func.coalesce(*(alias.c[name] for alias in aliases)).label(name)

    if query.columns is None:
        attributes: Tuple[str, ...] = tuple(model.__translated_attributes__)
        columns: Tuple[Any, ...] = (model,) + tuple(coalesced(name) for name in attributes)
    else:
        attributes = tuple(
            _reference_name(column) for column in query.columns if model.is_translated_reference(column)
        )
        columns = tuple(
            coalesced(_reference_name(column)) if model.is_translated_reference(column) else column
            for column in query.columns
        )

    def targets_translation(predicate: Any) -> bool:
        return isinstance(predicate, Predicate) and model.is_translated_reference(predicate.column)

    def rewrite(predicate: Predicate) -> NestedPredicate:
        name = _reference_name(predicate.column)
        return NestedPredicate(
            tuple(
                Predicate(alias.c[name], predicate.operator, predicate.value, AND if i == 0 else OR)
                for i, alias in enumerate(aliases)
            ),
            boolean=predicate.boolean,
        )

    wheres = tuple(rewrite(p) if targets_translation(p) else p for p in query.wheres)

    log_action(
        logger,
        TranslatableAction.JOIN_TRANSLATION,
        model=model.__name__,
        locale=locale,
        fallbacks=fallbacks,
        rewritten=sum(1 for p in query.wheres if targets_translation(p)),
    )
    return replace(
        joined,
        columns=columns,
        wheres=wheres,
        translation_join=TranslationJoin(
            locale=locale,
            fallback_locales=fallbacks,
            locale_alias=aliases[0].name,
            fallback_aliases=tuple(alias.name for alias in aliases[1:]),
            attributes=attributes,
        ),
    )


def list_translations(query: Query, field: str) -> Query:
    """Project ``(key, field)`` pairs for the effective locale.

    With fallback enabled, an entity with no row in the effective locale
    contributes its row from the first locale of the fallback chain that has
    one. Scopes registered on ``query`` keep applying, except the join scope.
    """
    model = query.model
    locale = effective_locale()
    table = sa_inspect(model).local_table
    translation_table = model.translation_table()
    relation_key = model.get_relation_key()
    locale_key = model.get_locale_key()
    entity_key = table.c[model.get_key_name()]

    base = query.without_scope(JOIN_TRANSLATION_SCOPE).apply_scopes()
    if base.wheres:
        # The caller's conditions stay one group, ANDed with the locale group.
        base = replace(base, wheres=(NestedPredicate(base.wheres),))

    def in_locales(nested: Query) -> Query:
        nested = nested.where(translation_table.c[locale_key], "=", locale)
        if not model.uses_translation_fallback():
            return nested
        preceding = [locale]
        for fallback in fallback_chain_for(locale)[1:]:
            covered = select(translation_table.c[relation_key]).where(
                translation_table.c[locale_key].in_(list(preceding))
            )
            nested = nested.or_where_nested(
                lambda group, fallback=fallback, covered=covered: group.where(
                    translation_table.c[locale_key], "=", fallback
                ).where_not_in(translation_table.c[relation_key], covered)
            )
            preceding.append(fallback)
        return nested

    listed = (
        base.select(entity_key, translation_table.c[field])
        .left_join(translation_table, translation_table.c[relation_key] == entity_key)
        .where_nested(in_locales)
    )

    log_action(logger, TranslatableAction.LIST_TRANSLATIONS, model=model.__name__, field=field, locale=locale)
    return listed


def with_translation(query: Query) -> Query:
    """Eager load only the translations for the effective locale (and its fallbacks)."""
    model = query.model
    locale = effective_locale()
    locales: List[str] = [locale]
    if model.uses_translation_fallback():
        locales = fallback_chain_for(locale)

    locale_column = getattr(model.translation_class(), model.get_locale_key())
    return query.options(selectinload(model.translations.and_(locale_column.in_(locales))))
