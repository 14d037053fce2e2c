# pylint: disable=redefined-outer-name, protected-access
"""pytest 에서 사용될 전역 Fixture들을 정의합니다."""
from __future__ import annotations

from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from easyrepo.orm import SessionMaker, clear_mappers, make_sessionmaker, start_mappers
from easyrepo.uow import SqlAlchemyUnitOfWork
from tests.app.adapters.orm import init_mappers


def memory_sessionmaker() -> SessionMaker:
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    clear_mappers()
    reg = start_mappers(use_exist=False, init_hooks=[init_mappers])
    reg.metadata.create_all(engine)
    return make_sessionmaker(engine)


@pytest.fixture
def get_session() -> SessionMaker:
    """매번 새로 생성된 인메모리 SQLite DB에 대한 Session 팩토리를 리턴합니다.

    :rtype: :class:`~easyrepo.orm.SessionMaker`
    """
    return memory_sessionmaker()


@pytest.fixture
def session(get_session: SessionMaker) -> Generator[Session, None, None]:
    """테스트에 사용될 새로운 :class:`.Session` 픽스처를 리턴합니다.

    :rtype: :class:`~sqlalchemy.orm.Session`
    """
    session = get_session()
    yield session
    session.close()


@pytest.fixture
def uow(get_session: SessionMaker) -> Generator[SqlAlchemyUnitOfWork[int], None, None]:
    uow = SqlAlchemyUnitOfWork[int](get_session=get_session)
    yield uow
    uow.dispose()
