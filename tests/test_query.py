from __future__ import annotations

import pytest
from sqlalchemy.orm import Session

from translatable.query import AND, OR, NestedPredicate, Predicate, Query

from tests.models import Country


def _sql(query: Query) -> str:
    return str(query.to_statement())


def test_query_is_immutable() -> None:
    base = Query(Country)
    filtered = base.where("code", "gr")
    assert base.wheres == ()
    assert len(filtered.wheres) == 1
    assert filtered is not base


def test_bindings_follow_predicate_order() -> None:
    query = (
        Query(Country)
        .where("code", "gr")
        .where_in("id", [1, 2])
        .or_where("code", "!=", None)
        .where_nested(lambda q: q.where("id", ">", 3).or_where("id", "<", 0))
    )
    assert query.bindings == ["gr", 1, 2, 3, 0]


def test_where_with_none_uses_is_operators() -> None:
    predicate = Query(Country).where("code", None).wheres[0]
    assert (predicate.operator, predicate.bindings) == ("is", ())
    predicate = Query(Country).where("code", "<>", None).wheres[0]
    assert predicate.operator == "is not"


def test_where_callable_builds_nested_predicate() -> None:
    query = Query(Country).where(lambda q: q.where("code", "gr").or_where("code", "fr"))
    nested = query.wheres[0]
    assert isinstance(nested, NestedPredicate)
    assert [p.boolean for p in nested.predicates] == [AND, OR]


def test_compiles_to_select() -> None:
    sql = _sql(Query(Country).where("code", "gr").or_where("code", "fr"))
    assert "FROM countries" in sql
    assert "WHERE countries.code = :code_1 OR countries.code = :code_2" in sql


def test_and_binds_tighter_than_or() -> None:
    sql = _sql(Query(Country).where("code", "gr").where("id", 1).or_where("code", "fr"))
    assert "countries.code = :code_1 AND countries.id = :id_1 OR countries.code = :code_2" in sql


def test_unsupported_operator_raises() -> None:
    with pytest.raises(ValueError):
        Query(Country).where("code", "~", "gr").to_statement()


def test_existence_predicate_compiles_to_exists() -> None:
    query = Query(Country).where_has("translations", lambda q: q.where("locale", "en"))
    assert query.bindings == ["en"]
    sql = _sql(query)
    assert "EXISTS (SELECT 1" in sql
    assert "country_translations.locale = :locale_1" in sql
    assert "NOT (EXISTS" in _sql(Query(Country).where_doesnt_have("translations"))


def test_execution(seeded: Session) -> None:
    assert Query(Country).count(seeded) == 3
    assert Query(Country).where("code", "gr").first(seeded).code == "gr"
    codes = [country.code for country in Query(Country).order_by("code", "desc").get(seeded)]
    assert codes == ["id", "gr", "fr"]
    assert Query(Country).where("code", "xx").first(seeded) is None


def test_explicit_columns_return_rows(seeded: Session) -> None:
    rows = Query(Country).select("code").where_in("code", ["fr", "gr"]).order_by("code").get(seeded)
    assert rows == [{"code": "fr"}, {"code": "gr"}]


def test_limit_and_offset(seeded: Session) -> None:
    codes = [c.code for c in Query(Country).order_by("code").offset(1).limit(1).get(seeded)]
    assert codes == ["gr"]


def test_named_scopes_apply_at_compile_time(seeded: Session) -> None:
    query = Query(Country).with_scope("greek", lambda q: q.where("code", "gr"))
    assert query.wheres == ()
    assert query.count(seeded) == 1
    assert query.without_scope("greek").count(seeded) == 3
    assert query.without_scopes().scopes == ()


def test_nested_groups_execute(seeded: Session) -> None:
    query = Query(Country).where("code", "gr").or_where_nested(
        lambda q: q.where("code", "fr").where("id", ">", 0)
    )
    assert query.count(seeded) == 2


def test_predicate_bindings_ignore_sql_expressions() -> None:
    assert Predicate("code", "=", Country.__table__.c.code).bindings == ()
    assert Predicate("id", "in", (1, 2)).bindings == (1, 2)
