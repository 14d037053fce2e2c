"""레포지터리의 컨텍스트 검사(guard) 단위 테스트."""
from __future__ import annotations

from typing import cast

import pytest
from sqlalchemy.orm import Session

from easyrepo.core import InvalidState
from easyrepo.repo import SqlAlchemyRepository
from easyrepo.test.unit import FakeSession
from easyrepo.uow import SqlAlchemyUnitOfWork
from tests.app.domain.models import Customer


class GuardCalled(Exception):
    pass


def raising_guard() -> None:
    raise GuardCalled()


@pytest.fixture
def repo() -> SqlAlchemyRepository[int]:
    # FakeSession 에는 CRUD 메소드가 없으므로 guard 가 먼저 실패해야 합니다.
    return SqlAlchemyRepository[int](cast(Session, FakeSession()), guard=raising_guard)


@pytest.mark.parametrize(
    "operation",
    [
        lambda repo: repo.find_by_id(Customer, 1),
        lambda repo: repo.get_list(Customer),
        lambda repo: repo.get_list(Customer, lambda c: True),
        lambda repo: repo.get_list_including(Customer, None, "orders"),
        lambda repo: repo.add(Customer("kim")),
        lambda repo: repo.update(Customer("kim", id=1)),
        lambda repo: repo.delete(Customer, 1),
        lambda repo: repo.of(Customer).find_by_id(1),
    ],
)
def test_guard_runs_before_every_operation(repo, operation):
    with pytest.raises(GuardCalled):
        operation(repo)


def test_detached_repository_raises_invalid_state():
    repo = SqlAlchemyRepository[int](cast(Session, FakeSession()))
    repo.detach()

    assert repo.session is None
    with pytest.raises(InvalidState):
        repo.get_list(Customer)


def test_uow_owns_exactly_one_repository():
    uow = SqlAlchemyUnitOfWork[int](cast(Session, FakeSession()))
    repository = uow.repository

    assert uow[Customer].repository is repository
    uow.begin_transaction()
    uow.commit_transaction()
    assert uow.repository is repository


def test_repository_of_uow_fails_after_dispose():
    uow = SqlAlchemyUnitOfWork[int](cast(Session, FakeSession()))
    repository = uow.repository
    uow.dispose()

    with pytest.raises(InvalidState):
        repository.find_by_id(Customer, 1)
    with pytest.raises(InvalidState):
        uow[Customer].add(Customer("kim"))
