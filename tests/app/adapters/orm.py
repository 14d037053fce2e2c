"""ORM 어댑터 모듈"""
from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Integer, String, Table
from sqlalchemy.orm import registry, relationship

from tests.app.domain.models import Customer, Order, OrderLine


def init_mappers(reg: registry) -> registry:
    """도메인 객체들을 SqlAlchemy ORM 매퍼에 등록합니다."""
    metadata = reg.metadata

    customer = Table(
        "customer",
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("name", String(50), nullable=False),
        Column("email", String(100), unique=True),
        extend_existing=True,
    )

    order = Table(
        "customer_order",
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("customer_id", ForeignKey("customer.id"), nullable=False),
        Column("reference", String(20), nullable=False),
        extend_existing=True,
    )

    order_line = Table(
        "order_line",
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("order_id", ForeignKey("customer_order.id"), nullable=False),
        Column("sku", String(255), nullable=False),
        Column("qty", Integer, nullable=False),
        extend_existing=True,
    )

    reg.map_imperatively(
        Customer,
        customer,
        properties={"orders": relationship(Order, cascade="all, delete-orphan")},
    )
    reg.map_imperatively(
        Order,
        order,
        properties={"lines": relationship(OrderLine, cascade="all, delete-orphan")},
    )
    reg.map_imperatively(OrderLine, order_line)

    return reg
