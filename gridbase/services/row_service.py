"""
Row Service

Rows and cells of a table. Rows are exposed "flattened": cells are folded
into a ``data`` mapping of column name -> value.

Cell values are stored as nullable strings. A column's ``type`` is a
rendering hint only; writes are neither validated nor coerced against it.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import selectinload

from gridbase.errors import NotFound
from gridbase.extensions import db
from gridbase.models import Cell, Table, TableColumn, TableRow
from gridbase.services.ordering import next_order
from gridbase.services.subscription_service import SubscriptionService
from gridbase.tenancy import RequestContext, require_table

CELL_TYPE_POLICY = "hint"


@dataclass(frozen=True)
class RowPage:
    rows: list
    page: int
    limit: int
    total: int
    total_pages: int

    def to_dict(self) -> dict:
        return {
            "rows": self.rows,
            "pagination": {
                "page": self.page,
                "limit": self.limit,
                "total": self.total,
                "totalPages": self.total_pages,
            },
        }


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    return value if value not in (None, "") else None


def flatten_row(row: TableRow, columns: list[TableColumn]) -> dict:
    values = {cell.column_id: cell.value for cell in row.cells}
    return {
        "id": row.id,
        "order": row.order,
        "createdAt": row.created_at.isoformat() if row.created_at else None,
        "updatedAt": row.updated_at.isoformat() if row.updated_at else None,
        "data": {column.name: values.get(column.id) for column in columns},
    }


def check_row_limit(table: Table, adding: int) -> None:
    current = TableRow.query.filter_by(table_id=table.id).count()
    SubscriptionService.check_limit(table.workspace.owner_id, "rows_per_table", current, adding)


class RowService:
    """List, create, update and delete rows of a table."""

    @staticmethod
    def list_rows(ctx: RequestContext, table_id: int, page: int = 1, limit: int = 50) -> RowPage:
        table = require_table(ctx, table_id)
        query = (
            db.select(TableRow)
            .where(TableRow.table_id == table_id)
            .options(selectinload(TableRow.cells))
            .order_by(TableRow.order.asc())
        )
        pagination = db.paginate(query, page=page, per_page=limit, max_per_page=None, error_out=False)
        return RowPage(
            rows=[flatten_row(row, table.columns) for row in pagination.items],
            page=page,
            limit=limit,
            total=pagination.total or 0,
            total_pages=pagination.pages,
        )

    @staticmethod
    def create_row(ctx: RequestContext, table_id: int, cells: dict[str, Optional[str]]) -> dict:
        """Append a row with one cell per existing column."""
        table = require_table(ctx, table_id)
        try:
            order = next_order(TableRow, table_id)
            check_row_limit(table, 1)
            row = TableRow(table_id=table_id, order=order)
            for column in table.columns:
                row.cells.append(Cell(column_id=column.id, value=_blank_to_none(cells.get(column.name))))
            db.session.add(row)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return flatten_row(row, table.columns)

    @staticmethod
    def update_row(ctx: RequestContext, table_id: int, row_id: int, cells: dict[str, Optional[str]]) -> dict:
        """
        Upsert cells by (row, column). Unknown column names are ignored, so
        sending the same payload twice yields the same result.
        """
        table = require_table(ctx, table_id)
        row = RowService._get_row(table_id, row_id)

        by_name = {column.name: column for column in table.columns}
        existing = {cell.column_id: cell for cell in row.cells}
        changed = False
        try:
            for name, value in cells.items():
                column = by_name.get(name)
                if column is None:
                    continue
                cell = existing.get(column.id)
                if cell is None:
                    cell = Cell(column_id=column.id)
                    row.cells.append(cell)
                    existing[column.id] = cell
                if cell.value != value:
                    cell.value = value
                    changed = True
            if changed:
                row.updated_at = datetime.utcnow()
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return flatten_row(row, table.columns)

    @staticmethod
    def delete_row(ctx: RequestContext, table_id: int, row_id: int) -> None:
        require_table(ctx, table_id)
        row = RowService._get_row(table_id, row_id)
        db.session.delete(row)
        db.session.commit()

    @staticmethod
    def _get_row(table_id: int, row_id: int) -> TableRow:
        row = db.session.get(TableRow, row_id)
        if row is None or row.table_id != table_id:
            raise NotFound("Row not found")
        return row
