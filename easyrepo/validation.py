"""엔티티 유효성 검사 모듈.

SqlAlchemy 는 flush 전에 엔티티를 검사하지 않으므로, ``before_flush`` 이벤트에
리스너를 달아 매핑된 컬럼 정의를 기준으로 새 엔티티와 변경된 엔티티를
검사합니다. 실패하면 엔티티별, 필드별 메세지를 모아
:class:`~easyrepo.core.errors.EntityValidationError` 를 발생시킵니다.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Union

from sqlalchemy import Column, Integer, String, event, inspect
from sqlalchemy.orm import Session, sessionmaker

from easyrepo.core.errors import EntityValidationError


@dataclass
class FieldError:
    """필드 하나의 유효성 검사 실패."""

    property_name: str
    error_message: str


@dataclass
class EntityValidationResult:
    """엔티티 하나의 유효성 검사 결과."""

    entity: Any
    errors: list[FieldError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _is_generated(column: Column) -> bool:
    """값이 없어도 DB나 SqlAlchemy가 채워주는 컬럼인지 여부.

    외래키 컬럼은 flush 도중 관계(relationship)로부터 값이 채워집니다.
    """
    if column.default is not None or column.server_default is not None:
        return True

    if column.foreign_keys:
        return True

    return (
        column.primary_key
        and column.autoincrement is not False
        and isinstance(column.type, Integer)
    )


def _check_column(key: str, column: Column, value: Any) -> Optional[FieldError]:
    if value is None:
        if column.nullable or _is_generated(column):
            return None
        return FieldError(key, f"The {key} field is required.")

    length = getattr(column.type, "length", None)
    if isinstance(column.type, String) and length and isinstance(value, str):
        if len(value) > length:
            return FieldError(
                key,
                f"The field {key} must be a string with a maximum length of {length}.",
            )

    return None


def validate_entity(entity: Any) -> EntityValidationResult:
    """매핑된 컬럼 정의에 따라 ``entity`` 를 검사합니다."""
    result = EntityValidationResult(entity)
    mapper = inspect(entity).mapper

    for prop in mapper.column_attrs:
        for column in prop.columns:
            if not isinstance(column, Column):
                continue  # column_property(select(...)) 같은 SQL 표현식

            error = _check_column(prop.key, column, getattr(entity, prop.key, None))
            if error:
                result.errors.append(error)

    return result


def validate_entities(entities: Iterable[Any]) -> list[EntityValidationResult]:
    """실패한 엔티티의 검사 결과만 리턴합니다."""
    results = (validate_entity(entity) for entity in entities)
    return [result for result in results if not result.is_valid]


def validate_pending(session: Session, flush_context: Any, instances: Any) -> None:
    """``before_flush`` 리스너. 새 엔티티와 변경된 엔티티를 검사합니다."""
    failures = validate_entities([*session.new, *session.dirty])
    if failures:
        raise EntityValidationError(failures)


def install_validation(target: Union[sessionmaker, Session]) -> None:
    """세션(또는 세션 팩토리)에 유효성 검사 리스너를 등록합니다.

    이미 등록되어 있다면 아무 일도 하지 않습니다.
    """
    if not event.contains(target, "before_flush", validate_pending):
        event.listen(target, "before_flush", validate_pending)
