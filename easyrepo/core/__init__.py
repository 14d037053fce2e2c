from .errors import (  # noqa
    EasyRepoError,
    EntityNotFound,
    EntityValidationError,
    InvalidState,
    NoActiveTransaction,
    PersistenceError,
    RollbackError,
    TransactionAlreadyOpen,
    TransactionOpenError,
    ValidationFailed,
)
from .models import (  # noqa
    AbstractRepository,
    AbstractUnitOfWork,
    CommitFailed,
    CommitInvalid,
    CommitOk,
    CommitResult,
    ContextGuard,
    TransactionState,
)
