"""UnitOfWork 패턴 모듈.

SqlAlchemy를 이용한 기본 구현체를 제공합니다.

UoW 는 영속성 컨텍스트(:class:`~sqlalchemy.orm.Session`)와 최대 하나의 열린
트랜잭션(:class:`~sqlalchemy.orm.SessionTransaction`)을 소유합니다. 트랜잭션
상태는 다음처럼 바뀝니다. ::

    NO_TRANSACTION   --begin_transaction-->     TRANSACTION_OPEN
    TRANSACTION_OPEN --commit_transaction-->    NO_TRANSACTION  (성공, 실패 모두)
    TRANSACTION_OPEN --rollback_transaction-->  NO_TRANSACTION
    NO_TRANSACTION   --rollback_transaction-->  NO_TRANSACTION  (no-op)
"""
from __future__ import annotations

from typing import Optional, Type

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, SessionTransaction

from easyrepo.core import (
    AbstractUnitOfWork,
    EntityValidationError,
    InvalidState,
    NoActiveTransaction,
    PersistenceError,
    RollbackError,
    TransactionAlreadyOpen,
    TransactionOpenError,
    TransactionState,
    ValidationFailed,
)
from easyrepo.core._logging import get_logger
from easyrepo.core.models import E, K
from easyrepo.orm import SessionMaker, get_sessionmaker
from easyrepo.repo import EntityRepository, SqlAlchemyRepository

logger = get_logger("easyrepo.uow")


def _release(transaction: SessionTransaction) -> None:
    """아직 닫히지 않은 트랜잭션 핸들을 닫습니다."""
    if transaction.is_active:
        transaction.close()


class SqlAlchemyUnitOfWork(AbstractUnitOfWork[SqlAlchemyRepository[K]]):
    """``SqlAlchemy`` ORM을 이용한 UnitOfWork 패턴 구현입니다.

    Example: ::

        with SqlAlchemyUnitOfWork[int]() as uow:
            uow.begin_transaction()
            uow.repository.add(Customer(name="kim"))
            uow.commit_transaction()
    """

    def __init__(
        self,
        session: Optional[Session] = None,
        get_session: Optional[SessionMaker] = None,
    ) -> None:
        """세션을 할당하고 레포지터리를 초기화합니다.

        ``session`` 이 주어지지 않으면 ``get_session`` (없으면 기본 Session 팩토리)
        으로 새 세션을 만듭니다. UoW 는 세션의 소유권을 가지며 :meth:`dispose` 에서
        닫습니다.
        """
        super().__init__()
        if session is None:
            session = (get_session or get_sessionmaker())()

        self._session: Optional[Session] = session
        self._transaction: Optional[SessionTransaction] = None
        self.repository = SqlAlchemyRepository(session, guard=self.ensure_context)

    def __repr__(self) -> str:
        return f"SqlAlchemyUnitOfWork[{self.state.value}]"

    def __enter__(self) -> SqlAlchemyUnitOfWork[K]:
        super().__enter__()
        return self

    def __getitem__(self, entity_class: Type[E]) -> EntityRepository[E, K]:
        return self.repository.of(entity_class)

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def transaction(self) -> Optional[SessionTransaction]:
        return self._transaction

    @property
    def state(self) -> TransactionState:
        if self._transaction is None:
            return TransactionState.NO_TRANSACTION
        return TransactionState.TRANSACTION_OPEN

    @property
    def disposed(self) -> bool:
        return self._session is None

    def ensure_context(self) -> None:
        """컨텍스트를 사용할 수 없으면 :class:`InvalidState` 를 발생시킵니다.

        레포지터리의 모든 작업 직전에도 호출됩니다.
        """
        if self._session is None:
            raise InvalidState("The data context is disposed and unusable")

    def _require_session(self) -> Session:
        self.ensure_context()
        assert self._session is not None
        return self._session

    def begin_transaction(self) -> None:
        """트랜잭션을 시작합니다.

        세션이 조회 등으로 이미 자동 시작(autobegin)한 트랜잭션이 있다면 그
        트랜잭션을 넘겨 받습니다.

        Raises:
            :class:`InvalidState` 컨텍스트가 해제된 경우.
            :class:`TransactionAlreadyOpen` 이미 열린 트랜잭션이 있는 경우.
            :class:`TransactionOpenError` 엔진이 트랜잭션 시작을 거부한 경우.
        """
        session = self._require_session()

        if self._transaction is not None:
            raise TransactionAlreadyOpen("There is already an open transaction")

        try:
            self._transaction = session.get_transaction() or session.begin()
        except SQLAlchemyError as ex:
            raise TransactionOpenError(
                f"An error occured while beginning transaction.\n{ex}"
            ) from ex

        logger.debug("transaction started: %r", self._transaction)

    def commit_transaction(self) -> None:
        """대기중인 모든 변경을 저장소에 반영(flush)하고 트랜잭션을 커밋합니다.

        실패하면 먼저 롤백을 시도한 뒤 에러를 발생시킵니다. 성공, 실패와 관계없이
        트랜잭션 핸들은 항상 닫히고 비워집니다.

        Raises:
            :class:`NoActiveTransaction` 열린 트랜잭션이 없는 경우.
            :class:`ValidationFailed` 엔티티 유효성 검사에 실패한 경우.
            :class:`PersistenceError` 그 밖의 엔진 에러.
        """
        session = self._require_session()

        if self._transaction is None:
            raise NoActiveTransaction("There is no current transaction")

        try:
            session.flush()
            self._transaction.commit()
        except EntityValidationError as ex:
            logger.error("commit failed validation:\n%s", ex.message)
            self._compensate()
            raise ValidationFailed(ex.failures) from ex
        except SQLAlchemyError as ex:
            logger.error("commit failed: %s", ex)
            self._compensate()
            raise PersistenceError(
                f"An error occured during the Commit transaction.\n{ex}"
            ) from ex
        except Exception as ex:  # pylint: disable=broad-except
            logger.error("commit failed: %r", ex)
            self._compensate()
            raise
        finally:
            self._close_transaction()

        logger.debug("transaction committed")

    def _compensate(self) -> None:
        """커밋 실패 후 롤백을 시도합니다. 롤백 에러는 기록만 합니다."""
        try:
            self.rollback_transaction()
        except RollbackError as ex:
            logger.error("compensating rollback failed: %s", ex.message)

    def _close_transaction(self) -> None:
        transaction, self._transaction = self._transaction, None
        if transaction is not None:
            _release(transaction)

    def rollback_transaction(self) -> None:
        """트랜잭션을 :meth:`begin_transaction` 시점의 상태로 되돌립니다.

        열린 트랜잭션이 없으면 아무 일도 하지 않습니다.

        Raises:
            :class:`RollbackError` 롤백 도중 엔진 에러가 발생한 경우.
        """
        self.ensure_context()

        if self._transaction is None:
            return

        transaction, self._transaction = self._transaction, None
        try:
            transaction.rollback()
            _release(transaction)
        except SQLAlchemyError as ex:
            raise RollbackError(
                f"An error occured during the Rollback transaction.\n{ex}"
            ) from ex

        logger.debug("transaction rolled back")

    def dispose(self) -> None:
        """세션을 닫고 레포지터리와의 연결을 끊습니다.

        세션을 닫다가 발생한 에러는 경고로 기록만 하고 전파하지 않습니다.
        이후 모든 작업은 :class:`InvalidState` 로 실패합니다.
        """
        session, self._session = self._session, None

        if session is not None:
            try:
                session.close()
            except Exception as ex:  # pylint: disable=broad-except
                logger.warning("failed to close session: %r", ex)

        self.repository.detach()
