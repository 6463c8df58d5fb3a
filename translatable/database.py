from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from translatable.config import get_settings


def create_session_factory(url: Optional[str] = None, **engine_options) -> sessionmaker:
    engine = create_engine(
        url or get_settings().database_url,
        future=True,
        **engine_options,
    )
    return sessionmaker(bind=engine, expire_on_commit=False, class_=Session)


@contextmanager
def session_scope(factory: sessionmaker) -> Iterator[Session]:
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
