"""EasyRepo - SqlAlchemy 기반의 범용 Repository / UnitOfWork 레이어."""
from easyrepo.config import EasyRepoConfig  # noqa
from easyrepo.core import (  # noqa
    CommitFailed,
    CommitInvalid,
    CommitOk,
    CommitResult,
    EasyRepoError,
    EntityNotFound,
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
from easyrepo.repo import EntityRepository, SqlAlchemyRepository  # noqa
from easyrepo.uow import SqlAlchemyUnitOfWork  # noqa
