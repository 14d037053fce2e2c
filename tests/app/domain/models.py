"""테스트용 도메인 모델."""

from __future__ import annotations

from typing import Optional


class Customer:
    """주문을 하는 고객입니다."""

    def __init__(
        self,
        name: Optional[str],
        email: Optional[str] = None,
        id: Optional[int] = None,
    ):  # pylint: disable=redefined-builtin
        self.id = id  # pylint: disable=invalid-name
        """매핑된 DB가 할당한 고유 ID. 세션 commit이 될 경우에만 값이 부여됩니다."""

        self.name = name
        self.email = email

    def __repr__(self) -> str:
        return f"Customer({self.id!r}, {self.name!r})"


class Order:
    """고객(:class:`Customer`)의 주문. 여러 개의 :class:`OrderLine` 을 가집니다."""

    def __init__(self, reference: Optional[str], lines: Optional[list[OrderLine]] = None):
        self.id: Optional[int] = None  # pylint: disable=invalid-name
        self.reference = reference
        self.lines = lines or []


class OrderLine:
    """주문선."""

    def __init__(self, sku: str, qty: int):
        self.id: Optional[int] = None  # pylint: disable=invalid-name
        self.sku = sku
        self.qty = qty
