"""EasyRepo 에러 정의.

모든 에러는 :class:`EasyRepoError` 를 상속합니다. 엔진(SqlAlchemy)에서 발생한
예외는 상호작용 지점에서 잡아 아래 에러로 변환하며, 원인 예외는 항상
``raise ... from ex`` 로 연결됩니다.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence

if TYPE_CHECKING:
    from easyrepo.validation import EntityValidationResult


class EasyRepoError(Exception):
    """``EasyRepo`` 와 관련된 모든 에러의 기본 클래스."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    ...


class InvalidState(EasyRepoError):
    """영속성 컨텍스트가 해제되어 더 이상 사용할 수 없는 상태입니다.

    해당 UoW 인스턴스에 대해서는 복구할 수 없습니다.
    """

    ...


class TransactionAlreadyOpen(InvalidState):
    """이미 열린 트랜잭션이 있는데 ``begin_transaction`` 을 호출했습니다."""

    ...


class NoActiveTransaction(EasyRepoError):
    """열린 트랜잭션 없이 ``commit_transaction`` 을 호출했습니다."""

    ...


class TransactionOpenError(EasyRepoError):
    """엔진이 트랜잭션 시작 요청을 거부했습니다."""

    ...


class RollbackError(EasyRepoError):
    """트랜잭션 롤백 중 엔진 에러가 발생했습니다."""

    ...


class PersistenceError(EasyRepoError):
    """엔티티 스테이징이나 커밋을 엔진이 거부했습니다."""

    ...


class EntityNotFound(PersistenceError):
    """주어진 식별자에 해당하는 엔티티가 저장소에 없습니다."""

    def __init__(self, entity_class: type, id: Any):  # pylint: disable=redefined-builtin
        super().__init__(f"{entity_class.__name__} not found for id: {id!r}")
        self.entity_class = entity_class
        self.id = id  # pylint: disable=invalid-name


def format_validation_failures(failures: Sequence[EntityValidationResult]) -> str:
    """엔티티별, 필드별 유효성 검사 메세지를 한 덩어리의 문자열로 만듭니다.

    Example: ::

        Customer failed validation
        - name : The name field is required.
    """
    lines: list[str] = []
    for failure in failures:
        lines.append(f"{type(failure.entity).__name__} failed validation")
        for error in failure.errors:
            lines.append(f"- {error.property_name} : {error.error_message}")
    return "\n".join(lines) + "\n" if lines else ""


class EntityValidationError(EasyRepoError):
    """flush 직전 엔티티 유효성 검사에서 실패한 경우 엔진 측에서 발생하는 에러."""

    def __init__(self, failures: Sequence[EntityValidationResult]):
        super().__init__(format_validation_failures(failures))
        self.failures = list(failures)


class ValidationFailed(EasyRepoError):
    """커밋 도중 엔티티 유효성 검사가 실패했습니다.

    메세지에는 실패한 엔티티의 타입 이름과 필드 이름, 필드별 메세지가 담깁니다.
    """

    def __init__(self, failures: Sequence[EntityValidationResult]):
        super().__init__(format_validation_failures(failures))
        self.failures = list(failures)
