from __future__ import annotations

import abc
import enum
from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Generic,
    Literal,
    Optional,
    Type,
    TypeVar,
    Union,
)

from easyrepo.core.errors import PersistenceError, ValidationFailed


E = TypeVar("E")
"""엔티티 타입. 엔진이 매핑할 수 있는 임의의 클래스이면 됩니다."""
K = TypeVar("K")

ContextGuard = Callable[[], None]
"""레포지터리가 모든 작업 직전에 호출하는 컨텍스트 검사 함수 타입.

컨텍스트를 사용할 수 없다면 예외를 발생시켜 작업을 중단시킵니다.
"""


class TransactionState(enum.Enum):
    """UoW 트랜잭션 상태."""

    NO_TRANSACTION = "no_transaction"
    TRANSACTION_OPEN = "transaction_open"


@dataclass(frozen=True)
class CommitOk:
    """커밋 성공."""

    ok: Literal[True] = True


@dataclass(frozen=True)
class CommitInvalid:
    """엔티티 유효성 검사 실패로 커밋이 롤백되었습니다."""

    error: ValidationFailed
    ok: Literal[False] = False


@dataclass(frozen=True)
class CommitFailed:
    """엔진 에러로 커밋이 롤백되었습니다."""

    error: PersistenceError
    ok: Literal[False] = False


CommitResult = Union[CommitOk, CommitInvalid, CommitFailed]
"""예외 대신 분기 가능한 커밋 결과 타입."""


class AbstractRepository(Generic[K], abc.ABC):
    """Repository 패턴의 추상 인터페이스 입니다.

    ``K`` 는 엔티티 식별자 타입이며, 엔티티 타입은 각 메소드의 ``entity_class``
    인자로 따로 받습니다.
    """

    @abc.abstractmethod
    def find_by_id(self, entity_class: Type[E], id: K) -> Optional[E]:
        """식별자에 해당하는 엔티티를 조회합니다. 못 찾으면 ``None`` 을 리턴합니다."""
        raise NotImplementedError

    @abc.abstractmethod
    def get_list(self, entity_class: Type[E], query: Any = None) -> list[E]:
        """엔티티 리스트를 조회합니다. ``query`` 가 주어지면 조건에 맞는 것만 리턴합니다."""
        raise NotImplementedError

    @abc.abstractmethod
    def get_list_including(
        self, entity_class: Type[E], query: Any, *include_properties: Any
    ) -> list[E]:
        """:meth:`get_list` 와 같지만 연관 속성들을 즉시 로딩(eager load)합니다."""
        raise NotImplementedError

    @abc.abstractmethod
    def add(self, entity: E) -> E:
        """엔티티를 추가 대기 상태로 등록합니다."""
        raise NotImplementedError

    @abc.abstractmethod
    def update(self, entity: E) -> E:
        """엔티티의 모든 필드를 변경된 것으로 등록합니다."""
        raise NotImplementedError

    @abc.abstractmethod
    def delete(self, entity_class: Type[E], id: K) -> None:
        """식별자에 해당하는 엔티티를 삭제 대기 상태로 등록합니다."""
        raise NotImplementedError


R = TypeVar("R", bound=AbstractRepository)


class AbstractUnitOfWork(
    Generic[R], AbstractContextManager["AbstractUnitOfWork"]
):
    """UnitOfWork 패턴의 추상 인터페이스입니다.

    UnitOfWork(UoW)는 영속성 컨텍스트와 트랜잭션의 유일한 소유자이며,
    하나의 레포지터리를 통해 이루어지는 모든 작업의 트랜잭션 경계를 관리합니다.
    """

    repository: R

    def __enter__(self) -> AbstractUnitOfWork:
        """``with`` 블록에 진입했을때 실행되는 메소드입니다."""
        return self

    def __exit__(self, *args: Any) -> None:
        """``with`` 블록에서 빠져나갈 때 실행되는 메소드입니다."""
        try:
            if not self.disposed:
                self.rollback_transaction()  # commit 안된 변경을 롤백합니다.
        finally:
            self.dispose()

    @property
    @abc.abstractmethod
    def state(self) -> TransactionState:
        raise NotImplementedError

    @property
    @abc.abstractmethod
    def disposed(self) -> bool:
        raise NotImplementedError

    @property
    def in_transaction(self) -> bool:
        return self.state is TransactionState.TRANSACTION_OPEN

    @abc.abstractmethod
    def begin_transaction(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def commit_transaction(self) -> None:
        raise NotImplementedError

    def try_commit_transaction(self) -> CommitResult:
        """:meth:`commit_transaction` 의 결과를 예외 대신 값으로 리턴합니다.

        유효성 검사 실패와 영속성 에러만 값으로 바뀌며, 호출자의 잘못
        (:class:`~easyrepo.core.errors.InvalidState`,
        :class:`~easyrepo.core.errors.NoActiveTransaction`)은 그대로 예외로
        전파됩니다.
        """
        try:
            self.commit_transaction()
        except ValidationFailed as ex:
            return CommitInvalid(ex)
        except PersistenceError as ex:
            return CommitFailed(ex)
        return CommitOk()

    @abc.abstractmethod
    def rollback_transaction(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def dispose(self) -> None:
        raise NotImplementedError

    def close(self) -> None:
        """:meth:`dispose` 의 별칭."""
        self.dispose()
