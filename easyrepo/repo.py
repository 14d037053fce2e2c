"""레포지터리 패턴 구현."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Generator, Generic, Optional, Type, Union

from sqlalchemy import inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.sql import ClauseElement

from easyrepo.core import (
    AbstractRepository,
    ContextGuard,
    EntityNotFound,
    InvalidState,
    PersistenceError,
)
from easyrepo.core.models import E, K

Query = Union[ClauseElement, Callable[[Any], bool], None]
"""``Customer.name == "kim"`` 같은 SQL 조건식이나 엔티티를 받는 파이썬 함수."""


def _no_guard() -> None:
    return


def _disposed_guard() -> None:
    raise InvalidState("The data context is disposed and unusable")


def _find_pending(session: Session, entity_class: Type[E], id: Any) -> Optional[E]:
    key = id if isinstance(id, tuple) else (id,)
    for entity in session.new:
        if not isinstance(entity, entity_class):
            continue
        if tuple(inspect(entity).mapper.primary_key_from_instance(entity)) == key:
            return entity
    return None


@contextmanager
def engine_errors(message: str) -> Generator[None, None, None]:
    """블록 안에서 발생한 SqlAlchemy 에러를 :class:`PersistenceError` 로 바꿉니다."""
    try:
        yield
    except SQLAlchemyError as ex:
        raise PersistenceError(f"{message}\n{ex}") from ex


class SqlAlchemyRepository(AbstractRepository[K]):
    """SqlAlchemy ORM을 저장소로 하는 :class:`AbstractRepository` 구현입니다.

    세션을 소유하지 않으며 절대 닫지 않습니다. 모든 작업 전에 생성자로 받은
    ``guard`` 를 호출하며, ``guard`` 가 예외를 발생시키면 세션에 접근하지 않고
    작업이 중단됩니다.
    """

    def __init__(self, session: Session, guard: Optional[ContextGuard] = None):
        super().__init__()
        self.session: Optional[Session] = session
        self.guard: ContextGuard = guard or _no_guard

    def __repr__(self) -> str:
        return f"SqlAlchemyRepository[{self.session!r}]"

    def _before_action(self) -> Session:
        self.guard()
        if self.session is None:
            raise InvalidState("The data context is disposed and unusable")
        return self.session

    def detach(self) -> None:
        """세션 참조를 끊습니다. 이후 모든 작업은 :class:`InvalidState` 로 실패합니다."""
        self.session = None
        self.guard = _disposed_guard

    def of(self, entity_class: Type[E]) -> EntityRepository[E, K]:
        """``entity_class`` 가 고정된 레포지터리 뷰를 리턴합니다."""
        return EntityRepository(self, entity_class)

    def find_by_id(self, entity_class: Type[E], id: K) -> Optional[E]:
        """식별자에 해당하는 엔티티를 조회합니다.

        아직 flush 되지 않은 추가 대기 엔티티도 찾습니다.
        """
        session = self._before_action()
        with engine_errors("An error occured while finding an entity."):
            pending = _find_pending(session, entity_class, id)
            if pending is not None:
                return pending
            return session.get(entity_class, id)

    def get_list(self, entity_class: Type[E], query: Query = None) -> list[E]:
        return self.get_list_including(entity_class, query)

    def get_list_including(
        self, entity_class: Type[E], query: Query, *include_properties: Any
    ) -> list[E]:
        """조건에 맞는 엔티티들을 연관 속성과 함께 조회합니다.

        Args:
            query: SQL 조건식 또는 엔티티를 받아 ``bool`` 을 리턴하는 함수.
                ``None`` 이면 모든 엔티티를 조회합니다.
            include_properties: 즉시 로딩할 관계 속성(``Order.lines``) 또는 속성 이름.
        """
        session = self._before_action()
        stmt = select(entity_class)
        predicate: Optional[Callable[[Any], bool]] = None

        if isinstance(query, ClauseElement):
            stmt = stmt.where(query)
        elif query is not None:
            predicate = query

        if include_properties:
            stmt = stmt.options(
                *(
                    selectinload(self._resolve_property(entity_class, prop))
                    for prop in include_properties
                )
            )

        with engine_errors("An error occured while querying entities."):
            items = list(session.scalars(stmt).all())

        if predicate:
            items = [it for it in items if predicate(it)]

        return items

    @staticmethod
    def _resolve_property(entity_class: Type[E], prop: Any) -> Any:
        if not isinstance(prop, str):
            return prop

        attr = getattr(entity_class, prop, None)
        if attr is None:
            raise PersistenceError(
                f"{entity_class.__name__} has no related property: {prop}"
            )
        return attr

    def add(self, entity: E) -> E:
        session = self._before_action()
        with engine_errors("An error occured while adding an entity."):
            session.add(entity)
        return entity

    def update(self, entity: E) -> E:
        """엔티티의 모든 컬럼을 변경된 것으로 표시합니다.

        세션에 속하지 않은 엔티티는 저장소에 같은 식별자의 행이 있어야 하며,
        세션으로 병합된 인스턴스가 리턴됩니다.
        """
        session = self._before_action()
        with engine_errors("An error occured while updating an entity."):
            if entity not in session:
                mapper = inspect(entity).mapper
                ident = tuple(mapper.primary_key_from_instance(entity))
                missing = any(v is None for v in ident)
                if missing or session.get(type(entity), ident) is None:
                    raise EntityNotFound(
                        type(entity), ident[0] if len(ident) == 1 else ident
                    )
                entity = session.merge(entity)

            state = inspect(entity)
            for attr in state.mapper.column_attrs:
                if any(c.primary_key for c in attr.columns):
                    continue
                if attr.key in state.dict:
                    flag_modified(entity, attr.key)

        return entity

    def delete(self, entity_class: Type[E], id: K) -> None:
        """식별자에 해당하는 엔티티를 삭제 대기 상태로 만듭니다.

        Raises:
            :class:`EntityNotFound` 식별자에 해당하는 엔티티가 없을 때.
        """
        session = self._before_action()
        entity = self.find_by_id(entity_class, id)
        if entity is None:
            raise EntityNotFound(entity_class, id)

        with engine_errors("An error occured while deleting an entity."):
            if entity in session.new:
                session.expunge(entity)  # 저장된 적 없는 엔티티는 추가를 취소합니다.
            else:
                session.delete(entity)


class EntityRepository(Generic[E, K]):
    """엔티티 클래스 하나에 고정된 :class:`SqlAlchemyRepository` 뷰."""

    def __init__(self, repository: SqlAlchemyRepository[K], entity_class: Type[E]):
        self.repository = repository
        self.entity_class = entity_class

    def __repr__(self) -> str:
        return f"EntityRepository[{self.entity_class.__name__}]"

    def find_by_id(self, id: K) -> Optional[E]:
        return self.repository.find_by_id(self.entity_class, id)

    def get_list(self, query: Query = None) -> list[E]:
        return self.repository.get_list(self.entity_class, query)

    def get_list_including(self, query: Query, *include_properties: Any) -> list[E]:
        return self.repository.get_list_including(
            self.entity_class, query, *include_properties
        )

    def add(self, entity: E) -> E:
        return self.repository.add(entity)

    def update(self, entity: E) -> E:
        return self.repository.update(entity)

    def delete(self, id: K) -> None:
        self.repository.delete(self.entity_class, id)
