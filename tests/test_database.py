from __future__ import annotations

import pytest
from sqlalchemy import func, select

from translatable.database import create_session_factory, session_scope

from tests.models import Base, Country


def test_session_scope_commits_and_rolls_back() -> None:
    factory = create_session_factory("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(factory.kw["bind"])

    with session_scope(factory) as session:
        session.add(Country(code="gr"))

    with pytest.raises(RuntimeError):
        with session_scope(factory) as session:
            session.add(Country(code="fr"))
            session.flush()
            raise RuntimeError("boom")

    with session_scope(factory) as session:
        assert session.scalar(select(func.count()).select_from(Country)) == 1
    factory.kw["bind"].dispose()


def test_factory_uses_configured_database_url(settings) -> None:
    settings(database_url="sqlite+pysqlite:///:memory:")
    factory = create_session_factory()
    assert str(factory.kw["bind"].url) == "sqlite+pysqlite:///:memory:"
    assert factory.kw["expire_on_commit"] is False
