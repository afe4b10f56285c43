"""
Sibling ordering for columns and rows.

Columns and rows of a table carry an integer ``order``: new siblings append
at ``max(order) + 1`` (0 for the first one). Allocation runs inside the
caller's transaction and first bumps ``Table.revision`` with an UPDATE, which
takes the table row's write lock (row lock on PostgreSQL, reserved lock on
SQLite). A concurrent allocator under the same table therefore waits until
this transaction commits or rolls back before reading the max, so orders are
never duplicated and a rolled-back insert never leaves a gap.

The unique ``(table_id, sort_order)`` constraints remain as a backstop.
"""
from __future__ import annotations

from typing import Type, Union

from sqlalchemy import func, update

from ..extensions import db
from ..models import Table, TableColumn, TableRow

Sibling = Union[Type[TableColumn], Type[TableRow]]


def lock_table(table_id: int) -> None:
    """Serialize order allocation under ``table_id`` until the transaction ends."""
    db.session.execute(
        update(Table)
        .where(Table.id == table_id)
        .values(revision=Table.revision + 1)
        .execution_options(synchronize_session=False)
    )


def max_order(model: Sibling, table_id: int) -> int:
    current = (
        db.session.query(func.max(model.order))
        .filter(model.table_id == table_id)
        .scalar()
    )
    return -1 if current is None else int(current)


def next_order(model: Sibling, table_id: int) -> int:
    """Lock the parent table and return the next free order for ``model``."""
    lock_table(table_id)
    return max_order(model, table_id) + 1


def allocate_orders(model: Sibling, table_id: int, count: int) -> range:
    """Reserve ``count`` consecutive orders in one read (bulk inserts)."""
    start = next_order(model, table_id)
    return range(start, start + count)
