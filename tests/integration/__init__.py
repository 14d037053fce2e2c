from typing import Optional, cast

from sqlalchemy import text
from sqlalchemy.orm import Session


def insert_customer(session: Session, name: str, email: Optional[str] = None) -> int:
    session.execute(
        text("INSERT INTO customer (name, email) VALUES (:name, :email)"),
        dict(name=name, email=email),
    )
    [[customer_id]] = session.execute(
        text("SELECT id FROM customer WHERE name=:name"), dict(name=name)
    )
    session.commit()

    return cast(int, customer_id)


def insert_order(session: Session, customer_id: int, ref: str, skus: list[str]) -> int:
    session.execute(
        text("INSERT INTO customer_order (customer_id, reference) VALUES (:cid, :ref)"),
        dict(cid=customer_id, ref=ref),
    )
    [[order_id]] = session.execute(
        text("SELECT id FROM customer_order WHERE reference=:ref"), dict(ref=ref)
    )
    for sku in skus:
        session.execute(
            text("INSERT INTO order_line (order_id, sku, qty) VALUES (:oid, :sku, 1)"),
            dict(oid=order_id, sku=sku),
        )
    session.commit()

    return cast(int, order_id)


def count_rows(session: Session, table: str) -> int:
    [[count]] = session.execute(text(f"SELECT count(*) FROM {table}"))
    return cast(int, count)
