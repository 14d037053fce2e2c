"""ORM 어댑터 모듈"""
from __future__ import annotations

from contextlib import AbstractContextManager, contextmanager
from typing import Any, Callable, Generator, Optional, Type, cast

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import clear_mappers as _clear_mappers
from sqlalchemy.orm import registry as Registry
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.session import Session
from sqlalchemy.pool import Pool

from easyrepo.config import EasyRepoConfig
from easyrepo.validation import install_validation

SessionMaker = Callable[[], Session]
"""Session 팩토리 타입."""
ScopedSession = AbstractContextManager[Session]
MapperHook = Callable[[Registry], Any]
"""도메인 클래스를 레지스트리에 매핑하는 사용자 함수 타입."""

mapper_registry: Optional[Registry] = None

__session_factory: Optional[SessionMaker] = None


def start_mappers(
    use_exist: bool = True, init_hooks: Optional[list[MapperHook]] = None
) -> Registry:
    """도메인 객체들을 SqlAlchemy ORM 매퍼에 등록합니다.

    각 훅은 :class:`~sqlalchemy.orm.registry` 를 받아
    ``registry.map_imperatively`` 로 클래스를 매핑합니다.
    """
    global mapper_registry  # pylint: disable=global-statement,invalid-name
    if use_exist and mapper_registry:
        return mapper_registry

    mapper_registry = Registry()

    # 사용자 매핑 함수 추가.
    if init_hooks:
        for hook in init_hooks:
            hook(mapper_registry)

    return mapper_registry


def clear_mappers() -> None:
    """ORM 매핑을 초기화 합니다."""
    global mapper_registry  # pylint: disable=global-statement,invalid-name
    _clear_mappers()
    mapper_registry = None


def init_engine(
    reg: Registry,
    url: str,
    connect_args: Optional[dict[str, Any]] = None,
    poolclass: Optional[Type[Pool]] = None,
    echo: bool = False,
    drop_all: bool = False,
) -> Engine:
    """ORM Engine을 초기화 하고 매핑된 테이블을 생성합니다."""
    kwargs: dict[str, Any] = dict(connect_args=connect_args or {}, echo=echo)
    if poolclass:
        kwargs["poolclass"] = poolclass

    engine = create_engine(url, **kwargs)

    if drop_all:
        reg.metadata.drop_all(engine)

    reg.metadata.create_all(engine)

    return engine


def make_sessionmaker(engine: Engine) -> SessionMaker:
    """유효성 검사 리스너가 등록된 Session 팩토리를 만듭니다.

    ``autoflush`` 는 꺼져 있어 스테이징된 변경은 UoW 커밋 시점에만 저장소에
    반영됩니다.
    """
    factory = sessionmaker(engine, autoflush=False)
    install_validation(factory)
    return cast(SessionMaker, factory)


def init_db(
    db_url: Optional[str] = None,
    drop_all: bool = False,
    init_hooks: Optional[list[MapperHook]] = None,
    config: Optional[EasyRepoConfig] = None,
) -> SessionMaker:
    """DB 엔진을 초기화 하고 기본 Session 팩토리로 등록합니다."""
    config = config or EasyRepoConfig(db_url=db_url)
    if db_url:
        config.db_url = db_url

    reg = start_mappers(init_hooks=init_hooks)

    engine = init_engine(
        reg,
        config.get_db_url(),
        connect_args=config.get_db_connect_args(),
        poolclass=config.get_db_poolclass(),
        echo=config.echo,
        drop_all=drop_all,
    )
    return set_default_sessionmaker(make_sessionmaker(engine))


def set_default_sessionmaker(factory: SessionMaker) -> SessionMaker:
    """:func:`get_sessionmaker` 가 리턴할 기본 팩토리를 지정합니다."""
    global __session_factory  # pylint: disable=global-statement,invalid-name
    __session_factory = factory
    return factory


def get_sessionmaker() -> SessionMaker:
    """기본설정으로 SqlAlchemy Session 팩토리를 만듭니다."""
    global __session_factory  # pylint: disable=global-statement,invalid-name

    if not __session_factory:
        config = EasyRepoConfig.load_from_config()
        engine = init_engine(
            start_mappers(),
            config.get_db_url(),
            connect_args=config.get_db_connect_args(),
            poolclass=config.get_db_poolclass(),
            echo=config.echo,
        )
        __session_factory = make_sessionmaker(engine)

    return __session_factory


def get_scoped_session(engine: Engine) -> Callable[[], ScopedSession]:
    """``with...`` 문으로 자동 리소스가 반환되는 세션을 리턴합니다.

    Example: ::

        with get_scoped_session(engine)() as db:
            customers = db.scalars(select(Customer)).all()
            ...

    Args:
        engine: Engine.

    """
    session_factory = make_sessionmaker(engine)

    @contextmanager
    def scoped_session() -> Generator[Session, None, None]:
        session: Optional[Session] = None
        try:
            yield (session := session_factory())  # pylint: disable=superfluous-parens
        finally:
            if session:
                session.close()  # pylint: disable=no-member

    return scoped_session
